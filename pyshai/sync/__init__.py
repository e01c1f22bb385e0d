"""Sync engine for shai - local/remote configuration tree synchronization."""

from .comparator import TreeDiff, compare_trees
from .diff import DiffLine, render_diff
from .engine import SyncEngine, derive_include_patterns
from .manifest import (
    DEFAULT_EXCLUDE,
    DEFAULT_INCLUDE,
    MANIFEST_FILE_NAME,
    SyncManifest,
    load_manifest,
    manifest_exists,
    remove_manifest,
    save_manifest,
)
from .operations import SyncOperations
from .safety import is_safe_path, validate_tree_paths
from .scanner import LocalTreeBuilder
from .tree import NodeKind, Tree, TreeNode

__all__ = [
    "SyncEngine",
    "SyncOperations",
    "LocalTreeBuilder",
    "Tree",
    "TreeNode",
    "NodeKind",
    "TreeDiff",
    "compare_trees",
    "DiffLine",
    "render_diff",
    "SyncManifest",
    "MANIFEST_FILE_NAME",
    "DEFAULT_INCLUDE",
    "DEFAULT_EXCLUDE",
    "load_manifest",
    "save_manifest",
    "manifest_exists",
    "remove_manifest",
    "is_safe_path",
    "validate_tree_paths",
    "derive_include_patterns",
]
