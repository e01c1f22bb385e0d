"""Tests for the tree model."""

import pytest

from pyshai.exceptions import ShaiInvalidInputError, ShaiInvalidResponseError
from pyshai.sync.tree import NodeKind, Tree, TreeNode


class TestTreeNode:
    """Tests for TreeNode constructors and properties."""

    def test_file_encodes_text(self):
        node = TreeNode.file("a.md", "héllo")
        assert node.kind == NodeKind.FILE
        assert node.content == "héllo".encode("utf-8")
        assert node.is_file
        assert not node.is_folder

    def test_folder_display_path(self):
        assert TreeNode.folder(".claude").display_path == ".claude/"
        assert TreeNode.file(".claude/a.md", "").display_path == ".claude/a.md"


class TestTree:
    """Tests for Tree ordering and lookups."""

    def test_duplicate_paths_rejected(self):
        with pytest.raises(ValueError, match="Duplicate path"):
            Tree([TreeNode.file("a", "1"), TreeNode.file("a", "2")])

    def test_canonical_order(self):
        tree = Tree.canonical(
            [
                TreeNode.file("b.txt", "b"),
                TreeNode.folder("z"),
                TreeNode.file("a/x.txt", "x"),
                TreeNode.folder("a"),
            ]
        )
        assert tree.paths() == ["a", "z", "a/x.txt", "b.txt"]

    def test_creation_order_puts_folders_first(self):
        tree = Tree([TreeNode.file("a/x.txt", "x"), TreeNode.folder("a")])
        assert [node.path for node in tree.creation_order()] == ["a", "a/x.txt"]
        # the tree itself keeps its order
        assert tree.paths() == ["a/x.txt", "a"]

    def test_files_and_folders(self):
        tree = Tree([TreeNode.folder("a"), TreeNode.file("a/x.txt", "x")])
        assert tree.files() == {"a/x.txt": b"x"}
        assert tree.folders() == ["a"]
        assert "a" in tree
        assert tree.get("missing") is None
        assert len(tree) == 2

    def test_empty_tree_is_falsy(self):
        assert not Tree()


class TestTreeApi:
    """Tests for (de)serialization of the tree wire format."""

    def test_from_api_response(self):
        tree = Tree.from_api(
            {
                "tree": [
                    {"kind": "folder", "path": ".claude"},
                    {"kind": "file", "path": ".claude/a.md", "content": "# A"},
                ]
            }
        )
        assert tree.paths() == [".claude", ".claude/a.md"]
        assert tree.get(".claude/a.md").content == b"# A"

    def test_from_api_accepts_plain_list(self):
        tree = Tree.from_api([{"kind": "file", "path": "a", "content": None}])
        assert tree.files() == {"a": b""}

    @pytest.mark.parametrize(
        "payload",
        [
            {"configurations": []},
            [{"kind": "symlink", "path": "a"}],
            [{"kind": "file"}],
            ["a"],
            [{"kind": "file", "path": "a", "content": 5}],
            [{"kind": "file", "path": "a", "content": {"text": "x"}}],
            [{"kind": "file", "path": "a", "content": ["x"]}],
            [{"kind": "file", "path": "a"}, {"kind": "file", "path": "a"}],
        ],
    )
    def test_from_api_invalid(self, payload):
        with pytest.raises(ShaiInvalidResponseError):
            Tree.from_api(payload)

    def test_to_api(self):
        tree = Tree([TreeNode.folder("a"), TreeNode.file("a/x.txt", "x")])
        assert tree.to_api() == [
            {"kind": "folder", "path": "a"},
            {"kind": "file", "path": "a/x.txt", "content": "x"},
        ]

    def test_to_api_rejects_binary(self):
        tree = Tree([TreeNode.file("image.png", b"\x89PNG\xff\xfe")])
        with pytest.raises(ShaiInvalidInputError, match="image.png"):
            tree.to_api()
