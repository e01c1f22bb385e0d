"""Path validation for remote-sourced tree entries.

A remote tree is untrusted input: every path it contains is checked
before anything is read from, written to or deleted on the local disk.
"""

import logging
import os
from pathlib import Path
from typing import Optional, Union

from ..exceptions import ShaiSecurityError
from .tree import Tree

logger = logging.getLogger(__name__)


def is_safe_path(path: Optional[str], base_dir: Union[str, Path]) -> bool:
    """Check that a relative path stays inside a base directory.

    Args:
        path: Relative, slash-separated path from a tree
        base_dir: Directory the path will be resolved against

    Returns:
        True if the path may be used under base_dir

    Examples:
        >>> is_safe_path("a/b/c.txt", "/home/user/project")
        True
        >>> is_safe_path("../../etc/passwd", "/home/user/project")
        False
        >>> is_safe_path("/etc/passwd", "/home/user/project")
        False
    """
    if not path:
        return False
    if "\0" in path:
        return False
    if path.startswith("/") or path.startswith("\\") or os.path.isabs(path):
        return False
    if ".." in path.replace("\\", "/").split("/"):
        return False

    base = os.path.realpath(base_dir)
    resolved = os.path.realpath(os.path.join(base, path))
    return resolved == base or resolved.startswith(base.rstrip(os.sep) + os.sep)


def validate_tree_paths(tree: Tree, base_dir: Union[str, Path]) -> None:
    """Ensure every node of a tree is safe to materialize under base_dir.

    Must be called before the first filesystem operation of a command so
    that an unsafe tree aborts the whole operation.

    Args:
        tree: Tree received from the remote side
        base_dir: Target directory

    Raises:
        ShaiSecurityError: On the first unsafe path
    """
    for node in tree:
        if not is_safe_path(node.path, base_dir):
            logger.warning(f"Rejected unsafe path in remote tree: {node.path!r}")
            raise ShaiSecurityError(
                f"Invalid path in remote configuration: {node.path!r}",
                path=node.path,
            )
