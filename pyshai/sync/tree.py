"""Tree model shared by the local and remote side of a sync."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Iterator, Optional, Union

from ..exceptions import ShaiInvalidInputError, ShaiInvalidResponseError


class NodeKind(str, Enum):
    """Kind of a tree entry, values match the wire format."""

    FOLDER = "folder"
    """Directory (may be empty)"""

    FILE = "file"
    """Regular file with content"""


@dataclass(frozen=True)
class TreeNode:
    """One filesystem entry under a configuration root."""

    kind: NodeKind
    """Folder or file"""

    path: str
    """Relative, slash-separated path"""

    content: Optional[bytes] = None
    """Raw file content (None for folders)"""

    @property
    def is_folder(self) -> bool:
        return self.kind == NodeKind.FOLDER

    @property
    def is_file(self) -> bool:
        return self.kind == NodeKind.FILE

    @property
    def display_path(self) -> str:
        """Path as shown to users, folders get a trailing slash."""
        return f"{self.path}/" if self.is_folder else self.path

    @classmethod
    def folder(cls, path: str) -> "TreeNode":
        return cls(kind=NodeKind.FOLDER, path=path)

    @classmethod
    def file(cls, path: str, content: Union[bytes, str]) -> "TreeNode":
        if isinstance(content, str):
            content = content.encode("utf-8")
        return cls(kind=NodeKind.FILE, path=path, content=content)


class Tree:
    """Ordered collection of tree nodes with unique paths.

    Local trees are built in canonical order (folders sorted by path, then
    files sorted by path). Remote trees keep the order the service returned.

    Examples:
        >>> tree = Tree.canonical([TreeNode.file("a/x.txt", b"1"), TreeNode.folder("a")])
        >>> [node.path for node in tree]
        ['a', 'a/x.txt']
    """

    def __init__(self, nodes: Iterable[TreeNode] = ()):
        """Create a tree.

        Args:
            nodes: Tree nodes in the desired order

        Raises:
            ValueError: If two nodes share a path
        """
        self._nodes: list[TreeNode] = []
        self._by_path: dict[str, TreeNode] = {}
        for node in nodes:
            if node.path in self._by_path:
                raise ValueError(f"Duplicate path in tree: {node.path}")
            self._nodes.append(node)
            self._by_path[node.path] = node

    @classmethod
    def canonical(cls, nodes: Iterable[TreeNode]) -> "Tree":
        """Create a tree in canonical order: folders first, then files."""
        nodes = list(nodes)
        folders = sorted((n for n in nodes if n.is_folder), key=lambda n: n.path)
        files = sorted((n for n in nodes if n.is_file), key=lambda n: n.path)
        return cls(folders + files)

    def __iter__(self) -> Iterator[TreeNode]:
        return iter(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    def __bool__(self) -> bool:
        return bool(self._nodes)

    def __contains__(self, path: object) -> bool:
        return path in self._by_path

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Tree):
            return NotImplemented
        return self._nodes == other._nodes

    def __repr__(self) -> str:
        return f"Tree({self._nodes!r})"

    def get(self, path: str) -> Optional[TreeNode]:
        return self._by_path.get(path)

    def paths(self) -> list[str]:
        return [node.path for node in self._nodes]

    def files(self) -> dict[str, bytes]:
        """Map of file path to content (folders excluded)."""
        return {
            node.path: node.content or b""
            for node in self._nodes
            if node.is_file
        }

    def folders(self) -> list[str]:
        return [node.path for node in self._nodes if node.is_folder]

    def creation_order(self) -> list[TreeNode]:
        """Nodes ordered so that parents are created before their children."""
        return list(Tree.canonical(self._nodes))

    @classmethod
    def from_api(cls, data: Any) -> "Tree":
        """Build a tree from a tree API response.

        Args:
            data: Either the response mapping (with a ``tree`` key) or the
                list of node objects itself

        Returns:
            Tree in the order returned by the service

        Raises:
            ShaiInvalidResponseError: If the payload is not a valid tree
        """
        if isinstance(data, dict):
            data = data.get("tree")
        if not isinstance(data, list):
            raise ShaiInvalidResponseError("Tree response does not contain a node list")

        nodes = []
        for item in data:
            if not isinstance(item, dict):
                raise ShaiInvalidResponseError(f"Invalid tree node: {item!r}")
            path = item.get("path")
            if not isinstance(path, str):
                raise ShaiInvalidResponseError(f"Tree node without path: {item!r}")
            try:
                kind = NodeKind(item.get("kind"))
            except ValueError as e:
                raise ShaiInvalidResponseError(
                    f"Unknown node kind {item.get('kind')!r} for {path}"
                ) from e

            if kind == NodeKind.FOLDER:
                nodes.append(TreeNode.folder(path))
            else:
                content = item.get("content")
                if content is not None and not isinstance(content, str):
                    raise ShaiInvalidResponseError(
                        f"File node {path} has non-text content: {content!r}"
                    )
                nodes.append(TreeNode.file(path, content or ""))

        try:
            return cls(nodes)
        except ValueError as e:
            raise ShaiInvalidResponseError(str(e)) from e

    def to_api(self) -> list[dict[str, str]]:
        """Serialize the tree for the tree update endpoint.

        Raises:
            ShaiInvalidInputError: If a file is not valid UTF-8 text
        """
        result = []
        for node in self._nodes:
            if node.is_folder:
                result.append({"kind": node.kind.value, "path": node.path})
                continue
            try:
                text = (node.content or b"").decode("utf-8")
            except UnicodeDecodeError as e:
                raise ShaiInvalidInputError(
                    f"Cannot push binary file: {node.path}"
                ) from e
            result.append({"kind": node.kind.value, "path": node.path, "content": text})
        return result
