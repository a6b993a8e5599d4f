"""Tree nodes of the course snapshot.

The snapshot is a strict rooted tree: a DirectoryNode exclusively owns
its children, and nodes hold no reference back to their parent.

    - Node: Common attributes (name, remote id, change time)
    - DirectoryNode: Folder; ordered children, frozen after the build
    - FileNode: Leaf with size and MIME type
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional, Sequence, Tuple, Union

DIRECTORY_SIZE = -1


class NodeType(Enum):
    """Type of snapshot node."""
    DIRECTORY = "directory"
    FILE = "file"


class Node:
    """Base class for snapshot nodes.

    Attributes:
        name: Display name; the key for path segment matching
        node_id: Remote-assigned identifier
        node_type: Directory or file
        changed_at: Remote modification time
    """

    node_type = NodeType.FILE

    def __init__(self, name: str, node_id: str, changed_at: Optional[datetime] = None):
        self.name = name
        self.node_id = node_id
        self.changed_at = changed_at

    @property
    def is_directory(self) -> bool:
        return self.node_type is NodeType.DIRECTORY

    @property
    def size(self) -> int:
        return DIRECTORY_SIZE

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}', id='{self.node_id}')"


class DirectoryNode(Node):
    """A remote folder.

    Children are appended during the build by the one task that owns this
    node, then frozen into a tuple. Appending to a frozen node raises
    RuntimeError.
    """

    node_type = NodeType.DIRECTORY

    def __init__(self, name: str, node_id: str, changed_at: Optional[datetime] = None):
        super().__init__(name, node_id, changed_at)
        self._children: Union[List[Node], Tuple[Node, ...]] = []

    @property
    def children(self) -> Sequence[Node]:
        return self._children

    @property
    def frozen(self) -> bool:
        return isinstance(self._children, tuple)

    def add_child(self, child: Node) -> None:
        if self.frozen:
            raise RuntimeError(f"Directory '{self.name}' is frozen")
        self._children.append(child)

    def freeze(self) -> None:
        """Freeze this directory and every directory below it."""
        stack: List[DirectoryNode] = [self]
        while stack:
            node = stack.pop()
            if not node.frozen:
                node._children = tuple(node._children)
            stack.extend(child for child in node._children if isinstance(child, DirectoryNode))

    def get_child(self, name: str) -> Optional[Node]:
        """First child whose name equals ``name`` exactly, or None."""
        for child in self._children:
            if child.name == name:
                return child
        return None


class FileNode(Node):
    """A remote file reference; always a leaf."""

    node_type = NodeType.FILE

    def __init__(
        self,
        name: str,
        node_id: str,
        size: int = 0,
        content_type: str = "",
        changed_at: Optional[datetime] = None,
    ):
        super().__init__(name, node_id, changed_at)
        self._size = size
        self.content_type = content_type

    @property
    def size(self) -> int:
        return self._size
