"""Tests for filesystem sync operations."""

import os
import sys

import pytest

from pyshai.sync.operations import SyncOperations
from pyshai.sync.tree import TreeNode


class TestSyncOperations:
    """Tests for SyncOperations."""

    def test_write_file_creates_parents(self, tmp_path):
        operations = SyncOperations(tmp_path)

        path = operations.write_file("a/b/c.txt", b"data")

        assert path.read_bytes() == b"data"
        assert operations.exists("a/b/c.txt")
        assert operations.read_file("a/b/c.txt") == b"data"

    def test_apply_node(self, tmp_path):
        operations = SyncOperations(tmp_path)

        operations.apply_node(TreeNode.folder("empty/nested"))
        operations.apply_node(TreeNode.file("x.md", "x"))

        assert (tmp_path / "empty/nested").is_dir()
        assert (tmp_path / "x.md").read_text() == "x"

    def test_delete_file(self, tmp_path):
        operations = SyncOperations(tmp_path)
        operations.write_file("x.md", b"x")

        assert operations.delete_file("x.md") is True
        assert operations.delete_file("x.md") is False

    def test_delete_file_ignores_directories(self, tmp_path):
        operations = SyncOperations(tmp_path)
        operations.create_folder("dir")

        assert operations.delete_file("dir") is False
        assert (tmp_path / "dir").is_dir()

    def test_delete_empty_folder(self, tmp_path):
        operations = SyncOperations(tmp_path)
        operations.create_folder("empty")
        operations.write_file("full/x.md", b"x")

        assert operations.delete_empty_folder("empty") is True
        assert operations.delete_empty_folder("full") is False
        assert operations.delete_empty_folder("missing") is False
        assert (tmp_path / "full/x.md").exists()

    @pytest.mark.skipif(sys.platform == "win32", reason="symlinks")
    def test_delete_empty_folder_skips_symlinks(self, tmp_path):
        target = tmp_path / "target"
        target.mkdir()
        base = tmp_path / "base"
        base.mkdir()
        os.symlink(target, base / "link")

        assert SyncOperations(base).delete_empty_folder("link") is False
        assert (base / "link").is_symlink()
