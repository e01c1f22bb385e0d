"""Terminal output for the shai CLI."""

import json
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Iterable, Iterator, Optional

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.text import Text

if TYPE_CHECKING:
    from .sync.diff import DiffLine

FILE_OPERATION_LABELS: dict[str, tuple[str, str]] = {
    "created": ("Created", "green"),
    "updated": ("Updated", "yellow"),
    "deleted": ("Deleted", "red"),
    "uploading": ("Uploading", "cyan"),
    "would-create": ("Would create", "dim"),
    "would-update": ("Would update", "dim"),
    "would-delete": ("Would delete", "dim"),
    "conflict": ("Conflict", "red"),
}

DIFF_STYLES = {
    "hunk": "cyan",
    "added": "green",
    "removed": "red",
    "context": "",
    "marker": "dim",
}


class OutputFormatter:
    """Display sink for categorized messages and file operations.

    Messages are printed as plain text (no rich markup interpretation), so
    user data such as file paths is shown verbatim.
    """

    def __init__(
        self,
        quiet: bool = False,
        color: bool = True,
        console: Optional[Console] = None,
    ):
        """Initialize output formatter.

        Args:
            quiet: Suppress informational output (errors and warnings still
                shown)
            color: Enable colors
            console: Console to print to (mainly for tests)
        """
        self.quiet = quiet
        self.color = color
        self.console = console or Console(no_color=not color, highlight=False)
        self.err_console = console or Console(
            no_color=not color, highlight=False, stderr=True
        )

    def _emit(self, message: str, style: str = "", err: bool = False) -> None:
        console = self.err_console if err else self.console
        console.print(Text(message, style=style), soft_wrap=True)

    def print(self, message: str = "") -> None:
        if not self.quiet:
            self._emit(message)

    def blank(self) -> None:
        self.print("")

    def info(self, message: str) -> None:
        if not self.quiet:
            self._emit(message)

    def success(self, message: str) -> None:
        if not self.quiet:
            self._emit(f"✓ {message}", style="green")

    def warning(self, message: str) -> None:
        self._emit(f"Warning: {message}", style="yellow", err=True)

    def error(self, message: str) -> None:
        self._emit(f"Error: {message}", style="red", err=True)

    def header(self, title: str) -> None:
        if not self.quiet:
            self._emit(title, style="bold")

    def indent(self, text: str, spaces: int = 2) -> None:
        if self.quiet:
            return
        prefix = " " * spaces
        for line in text.splitlines() or [""]:
            self._emit(f"{prefix}{line}")

    def file_operation(self, operation: str, path: str) -> None:
        """Show one file operation (``created``, ``would-update``, ...)."""
        if self.quiet:
            return
        label, style = FILE_OPERATION_LABELS.get(operation, (operation, ""))
        line = Text("  ")
        line.append(label, style=style)
        line.append(f" {path}")
        self.console.print(line, soft_wrap=True)

    def diff(self, lines: Iterable["DiffLine"]) -> None:
        """Print tagged diff lines with per-tag colors."""
        if self.quiet:
            return
        for line in lines:
            self._emit(line.text, style=DIFF_STYLES.get(line.tag, ""))

    def output_json(self, data: Any) -> None:
        self.console.print_json(json.dumps(data, default=str))

    @contextmanager
    def spinner(self, message: str) -> Iterator[None]:
        """Show a transient spinner while a network call runs."""
        if self.quiet or not self.console.is_terminal:
            yield
            return
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=self.console,
            transient=True,
        ) as progress:
            progress.add_task(message, total=None)
            yield
