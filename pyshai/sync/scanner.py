"""Local directory scanning for sync operations."""

import glob
import logging
import os
from pathlib import Path
from typing import Iterable, Optional, Union

from ..utils import glob_match
from .safety import is_safe_path
from .tree import Tree, TreeNode

logger = logging.getLogger(__name__)


class LocalTreeBuilder:
    """Builds a Tree of a local directory from include/exclude globs.

    Include patterns are expanded against the filesystem (``*`` within a
    path segment, ``**`` across segments). Exclude patterns are matched
    against the relative path of each candidate file with path-aware,
    dotfile-aware matching (see ``pyshai.utils.glob_to_regex``).

    Examples:
        >>> builder = LocalTreeBuilder(Path("/project"))
        >>> tree = builder.build([".claude/**"], ["**/*.local.*"])
        >>> for node in tree:
        ...     print(node.display_path)
    """

    def __init__(self, base_path: Union[str, Path]):
        """Initialize the builder.

        Args:
            base_path: Directory the patterns are relative to
        """
        self.base_path = Path(base_path)

    def is_excluded(self, relative_path: str, exclude_patterns: Iterable[str]) -> bool:
        """Check if a relative path matches any exclude pattern."""
        return any(glob_match(pattern, relative_path) for pattern in exclude_patterns)

    def _expand(self, pattern: str) -> list[str]:
        """Expand one include pattern to relative, slash-separated file paths."""
        matches = []
        for match in glob.glob(pattern, root_dir=self.base_path, recursive=True):
            relative_path = Path(os.path.normpath(match)).as_posix()
            if not is_safe_path(relative_path, self.base_path):
                logger.debug(f"Skipping match outside of {self.base_path}: {match}")
                continue
            if not (self.base_path / relative_path).is_file():
                continue
            matches.append(relative_path)
        return matches

    def build(
        self,
        include_patterns: Iterable[str],
        exclude_patterns: Optional[Iterable[str]] = None,
    ) -> Tree:
        """Scan the directory and return a canonical tree.

        Args:
            include_patterns: Globs selecting files to include
            exclude_patterns: Globs removing files from the selection

        Returns:
            Tree with folders (sorted) followed by files (sorted); every
            ancestor directory of an included file is listed as a folder
        """
        exclude = list(exclude_patterns or [])
        file_paths: set[str] = set()

        for pattern in include_patterns:
            for relative_path in self._expand(pattern):
                if self.is_excluded(relative_path, exclude):
                    logger.debug(f"Excluding (from rules): {relative_path}")
                    continue
                file_paths.add(relative_path)

        folders: set[str] = set()
        for relative_path in file_paths:
            parts = relative_path.split("/")[:-1]
            for i in range(len(parts)):
                folder = "/".join(parts[: i + 1])
                if folder and folder != ".":
                    folders.add(folder)

        nodes = [TreeNode.folder(folder) for folder in folders]
        for relative_path in file_paths:
            content = (self.base_path / relative_path).read_bytes()
            nodes.append(TreeNode.file(relative_path, content))

        tree = Tree.canonical(nodes)
        logger.debug(
            f"Scanned {self.base_path}: {len(folders)} folder(s), "
            f"{len(file_paths)} file(s)"
        )
        return tree

    def read_paths(self, paths: Iterable[str]) -> Tree:
        """Snapshot specific files as they currently exist on disk.

        Paths that do not exist, or are not regular files, are left out.

        Args:
            paths: Relative, slash-separated file paths (already validated)

        Returns:
            Canonical tree containing only file nodes
        """
        nodes = []
        for relative_path in paths:
            local_path = self.base_path / relative_path
            if local_path.is_file():
                nodes.append(TreeNode.file(relative_path, local_path.read_bytes()))
        return Tree.canonical(nodes)
