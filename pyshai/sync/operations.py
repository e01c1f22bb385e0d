"""Filesystem operations applied by the sync engine."""

import logging
from pathlib import Path
from typing import Union

from .tree import TreeNode

logger = logging.getLogger(__name__)


class SyncOperations:
    """Local filesystem primitives used when applying a tree.

    All paths are relative to ``base_path`` and must have been validated
    with ``validate_tree_paths`` before they reach this class.
    """

    def __init__(self, base_path: Union[str, Path]):
        """Initialize sync operations.

        Args:
            base_path: Directory the configuration lives in
        """
        self.base_path = Path(base_path)

    def local_path(self, relative_path: str) -> Path:
        return self.base_path / relative_path

    def exists(self, relative_path: str) -> bool:
        return self.local_path(relative_path).exists()

    def read_file(self, relative_path: str) -> bytes:
        return self.local_path(relative_path).read_bytes()

    def create_folder(self, relative_path: str) -> Path:
        """Create a folder (and missing parents)."""
        path = self.local_path(relative_path)
        path.mkdir(parents=True, exist_ok=True)
        logger.debug(f"Created folder {path}")
        return path

    def write_file(self, relative_path: str, content: bytes) -> Path:
        """Write file content, creating the parent directory if needed."""
        path = self.local_path(relative_path)
        # Ensure parent directory exists
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        logger.debug(f"Wrote {len(content)} bytes to {path}")
        return path

    def apply_node(self, node: TreeNode) -> Path:
        """Materialize a single tree node."""
        if node.is_folder:
            return self.create_folder(node.path)
        return self.write_file(node.path, node.content or b"")

    def delete_file(self, relative_path: str) -> bool:
        """Delete a file if it exists.

        Returns:
            True if a file was removed
        """
        path = self.local_path(relative_path)
        if not path.is_file():
            return False
        path.unlink()
        logger.debug(f"Deleted file {path}")
        return True

    def delete_empty_folder(self, relative_path: str) -> bool:
        """Remove a folder only when it is empty.

        Returns:
            True if the folder was removed, False if it is missing or still
            contains entries
        """
        path = self.local_path(relative_path)
        if not path.is_dir() or path.is_symlink():
            return False
        if any(path.iterdir()):
            logger.debug(f"Keeping non-empty folder {path}")
            return False
        path.rmdir()
        logger.debug(f"Removed folder {path}")
        return True
