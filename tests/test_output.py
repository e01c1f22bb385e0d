"""Tests for the output formatter."""

import io

import pytest
from rich.console import Console

from pyshai.output import OutputFormatter
from pyshai.sync.diff import DiffLine


@pytest.fixture
def buffer():
    return io.StringIO()


def make_output(buffer, quiet=False):
    console = Console(file=buffer, no_color=True, width=200, highlight=False)
    return OutputFormatter(quiet=quiet, console=console)


class TestOutputFormatter:
    """Tests for message categories."""

    def test_message_prefixes(self, buffer):
        out = make_output(buffer)

        out.success("Pushed 3 items")
        out.warning("careful")
        out.error("broken")

        assert buffer.getvalue().splitlines() == [
            "✓ Pushed 3 items",
            "Warning: careful",
            "Error: broken",
        ]

    def test_markup_is_not_interpreted(self, buffer):
        out = make_output(buffer)

        out.info("[bold]literal[/bold] .claude/[x].md")

        assert buffer.getvalue() == "[bold]literal[/bold] .claude/[x].md\n"

    def test_quiet_keeps_errors_and_warnings(self, buffer):
        out = make_output(buffer, quiet=True)

        out.info("hidden")
        out.success("hidden")
        out.header("hidden")
        out.file_operation("created", "hidden")
        out.warning("shown")
        out.error("shown")

        assert buffer.getvalue().splitlines() == ["Warning: shown", "Error: shown"]

    def test_file_operation_labels(self, buffer):
        out = make_output(buffer)

        out.file_operation("created", ".claude/")
        out.file_operation("would-delete", "a.md")
        out.file_operation("conflict", "b.md")

        assert buffer.getvalue().splitlines() == [
            "  Created .claude/",
            "  Would delete a.md",
            "  Conflict b.md",
        ]

    def test_indent_multiline(self, buffer):
        out = make_output(buffer)

        out.indent("one\ntwo", spaces=4)

        assert buffer.getvalue().splitlines() == ["    one", "    two"]

    def test_diff_lines(self, buffer):
        out = make_output(buffer)

        out.diff([DiffLine("hunk", "@@ -1 +1 @@"), DiffLine("added", "+x")])

        assert buffer.getvalue().splitlines() == ["@@ -1 +1 @@", "+x"]

    def test_spinner_without_terminal(self, buffer):
        out = make_output(buffer)

        with out.spinner("Fetching..."):
            out.info("inside")

        assert buffer.getvalue() == "inside\n"
