"""Tests for the local tree builder."""

import pytest

from pyshai.sync.scanner import LocalTreeBuilder


@pytest.fixture
def project(tmp_path):
    """Project directory with a typical agent configuration layout."""
    base = tmp_path / "project"
    files = {
        ".claude/settings.json": "{}",
        ".claude/settings.local.json": "{\"secret\": true}",
        ".claude/commands/review.md": "# Review",
        ".claude/.env": "TOKEN=1",
        ".cursor/rules/python.md": "use types",
        "CLAUDE.md": "# Rules",
        "src/main.py": "print()",
    }
    for relative_path, content in files.items():
        path = base / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    return base


class TestLocalTreeBuilder:
    """Tests for LocalTreeBuilder.build."""

    def test_build_canonical_order(self, project):
        builder = LocalTreeBuilder(project)

        tree = builder.build([".claude/**"], ["**/*.local.*", "**/.env"])

        assert tree.paths() == [
            ".claude",
            ".claude/commands",
            ".claude/commands/review.md",
            ".claude/settings.json",
        ]

    def test_build_is_deterministic(self, tmp_path):
        base = tmp_path / "unsorted"
        for relative_path in ["z.md", "docs/b.md", "a.md", "docs/a/c.md", "B.md"]:
            path = base / relative_path
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(relative_path)
        builder = LocalTreeBuilder(base)
        patterns = ["*.md", "docs/**", "docs/*.md", "a.md"]

        first = builder.build(patterns)
        second = builder.build(list(reversed(patterns)))

        assert first == second
        assert first.paths() == [
            "docs",
            "docs/a",
            "B.md",
            "a.md",
            "docs/a/c.md",
            "docs/b.md",
            "z.md",
        ]

    def test_contents_are_read_as_bytes(self, project):
        tree = LocalTreeBuilder(project).build(["CLAUDE.md"])

        assert tree.files() == {"CLAUDE.md": b"# Rules"}
        assert tree.folders() == []

    def test_multiple_patterns_do_not_duplicate(self, project):
        tree = LocalTreeBuilder(project).build(
            [".cursor/**", ".cursor/rules/*.md", "CLAUDE.md"]
        )

        assert tree.paths() == [
            ".cursor",
            ".cursor/rules",
            ".cursor/rules/python.md",
            "CLAUDE.md",
        ]

    def test_exclude_directory(self, project):
        tree = LocalTreeBuilder(project).build(
            [".claude/**"], [".claude/commands/**", "**/*.local.*", "**/.env"]
        )

        assert tree.paths() == [".claude", ".claude/settings.json"]

    def test_no_matches(self, project):
        tree = LocalTreeBuilder(project).build(["docs/**"])

        assert not tree

    def test_matches_outside_base_are_skipped(self, project):
        (project.parent / "secret.txt").write_text("secret")

        tree = LocalTreeBuilder(project).build(["../*.txt"])

        assert not tree

    def test_is_excluded(self, project):
        builder = LocalTreeBuilder(project)

        assert builder.is_excluded("a/b.local.json", ["**/*.local.*"])
        assert not builder.is_excluded("a/b.json", ["**/*.local.*"])
        assert not builder.is_excluded("a/b.json", [])


class TestReadPaths:
    """Tests for LocalTreeBuilder.read_paths."""

    def test_reads_existing_files_only(self, project):
        tree = LocalTreeBuilder(project).read_paths(
            ["CLAUDE.md", "missing.md", ".claude"]
        )

        assert tree.files() == {"CLAUDE.md": b"# Rules"}
