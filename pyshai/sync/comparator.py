"""Tree comparison logic for sync operations."""

from dataclasses import dataclass, field

from .tree import Tree


@dataclass
class TreeDiff:
    """Differences between a source and a target tree.

    The labels are directionless: callers decide which side is local and
    which is remote. Only file nodes are compared.
    """

    created: dict[str, bytes] = field(default_factory=dict)
    """Files only in the source (path -> source content)"""

    modified: dict[str, tuple[bytes, bytes]] = field(default_factory=dict)
    """Files in both with different content (path -> (source, target))"""

    removed: dict[str, bytes] = field(default_factory=dict)
    """Files only in the target (path -> target content)"""

    unchanged: set[str] = field(default_factory=set)
    """Files with identical content on both sides"""

    @property
    def has_changes(self) -> bool:
        return bool(self.created or self.modified or self.removed)

    @property
    def change_count(self) -> int:
        return len(self.created) + len(self.modified) + len(self.removed)


def compare_trees(source: Tree, target: Tree) -> TreeDiff:
    """Classify every file path of two trees.

    Each path of either tree ends up in exactly one of created, modified,
    removed or unchanged. Content is compared byte for byte without any
    whitespace or line ending normalization.

    Args:
        source: Tree whose content is considered new
        target: Tree being compared against

    Returns:
        TreeDiff with sorted keys

    Examples:
        >>> local = Tree([TreeNode.file("a.txt", b"1"), TreeNode.file("b.txt", b"2")])
        >>> remote = Tree([TreeNode.file("a.txt", b"1"), TreeNode.file("c.txt", b"3")])
        >>> result = compare_trees(local, remote)
        >>> sorted(result.created), sorted(result.removed)
        (['b.txt'], ['c.txt'])
    """
    source_files = source.files()
    target_files = target.files()
    result = TreeDiff()

    for path in sorted(source_files):
        content = source_files[path]
        if path not in target_files:
            result.created[path] = content
        elif target_files[path] != content:
            result.modified[path] = (content, target_files[path])
        else:
            result.unchanged.add(path)

    for path in sorted(target_files):
        if path not in source_files:
            result.removed[path] = target_files[path]

    return result
