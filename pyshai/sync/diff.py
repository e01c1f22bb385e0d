"""Unified diff rendering for file contents."""

import difflib
from dataclasses import dataclass
from typing import Literal, Union

DiffTag = Literal["hunk", "context", "added", "removed", "marker"]

NO_NEWLINE_MARKER = "\\ No newline at end of file"

_PREFIX_TAGS: dict[str, DiffTag] = {
    "@": "hunk",
    "+": "added",
    "-": "removed",
    " ": "context",
}


@dataclass(frozen=True)
class DiffLine:
    """One line of rendered diff output."""

    tag: DiffTag
    text: str

    def __str__(self) -> str:
        return self.text


def _as_text(content: Union[str, bytes]) -> str:
    if isinstance(content, bytes):
        return content.decode("utf-8", errors="replace")
    return content


def _split_lines(text: str) -> list[str]:
    """Split on ``\\n`` only, keeping terminators."""
    parts = text.split("\n")
    lines = [part + "\n" for part in parts[:-1]]
    if parts[-1]:
        lines.append(parts[-1])
    return lines


def _display_text(line: str) -> str:
    text = line[:-1] if line.endswith("\n") else line
    # carriage returns are shown so CRLF changes stay visible
    if text.endswith("\r"):
        text = text[:-1] + "^M"
    return text


def render_diff(
    before: Union[str, bytes],
    after: Union[str, bytes],
    context_lines: int = 3,
) -> list[DiffLine]:
    """Render a unified diff between two file contents.

    File header lines (``---``/``+++``) are not produced; callers print
    their own headers naming the two sides. Lines are compared with their
    terminators, so a CRLF/LF change or a missing final newline still
    shows up. A CRLF ending is displayed as ``^M`` and a last line
    without a newline is followed by ``\\ No newline at end of file``.

    Args:
        before: Old content (empty for a pure addition)
        after: New content (empty for a pure deletion)
        context_lines: Unchanged lines shown around each change

    Returns:
        Tagged lines: hunk headers, context, added and removed lines, and
        no-newline markers. Identical inputs produce an empty list.

    Examples:
        >>> [str(line) for line in render_diff("a\\nb\\n", "a\\nc\\n")]
        ['@@ -1,2 +1,2 @@', ' a', '-b', '+c']
    """
    before_lines = _split_lines(_as_text(before))
    after_lines = _split_lines(_as_text(after))

    lines: list[DiffLine] = []
    diff = difflib.unified_diff(
        before_lines, after_lines, n=max(context_lines, 0), lineterm=""
    )
    for i, text in enumerate(diff):
        # first two lines are the ---/+++ file headers
        if i < 2:
            continue
        tag = _PREFIX_TAGS.get(text[:1])
        if tag is None:
            continue
        if tag == "hunk":
            lines.append(DiffLine(tag=tag, text=text.rstrip("\n")))
            continue
        lines.append(DiffLine(tag=tag, text=_display_text(text)))
        if not text.endswith("\n"):
            lines.append(DiffLine(tag="marker", text=NO_NEWLINE_MARKER))
    return lines
