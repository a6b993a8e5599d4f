"""Projection of snapshot directories into host entries."""

import posixpath
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Union

from ..errors import DirectoryNotFoundError
from .base import DIRECTORY_SIZE, DirectoryNode, FileNode, Node


@dataclass(frozen=True)
class DirectoryEntry:
    """A folder as seen by the host."""
    remote: str
    name: str
    id: str
    mod_time: Optional[datetime]
    items: int

    is_directory = True

    @property
    def size(self) -> int:
        return DIRECTORY_SIZE


@dataclass(frozen=True)
class FileEntry:
    """A file as seen by the host."""
    remote: str
    name: str
    id: str
    size: int
    mime_type: str
    mod_time: Optional[datetime]

    is_directory = False


Entry = Union[DirectoryEntry, FileEntry]


def project(node: Node, dir_path: str = "") -> Entry:
    """Project a single node; ``dir_path`` is the path of its parent."""
    remote = posixpath.join(dir_path, node.name) if dir_path else node.name
    if isinstance(node, DirectoryNode):
        return DirectoryEntry(
            remote=remote,
            name=node.name,
            id=node.node_id,
            mod_time=node.changed_at,
            items=len(node.children),
        )
    if not isinstance(node, FileNode):
        raise TypeError(f"cannot project {type(node).__name__} {node.name!r}")
    return FileEntry(
        remote=remote,
        name=node.name,
        id=node.node_id,
        size=node.size,
        mime_type=node.content_type,
        mod_time=node.changed_at,
    )


def list_entries(node: Optional[Node], dir_path: str = "") -> List[Entry]:
    """List the children of a directory, sorted case-insensitively by name.

    Ties keep the order of the snapshot.

    Args:
        node: Resolved directory (None if the path didn't resolve)
        dir_path: Path of the directory, prefixed to each entry's ``remote``

    Raises:
        DirectoryNotFoundError: If ``node`` is None or not a directory
    """
    if node is None or not isinstance(node, DirectoryNode):
        raise DirectoryNotFoundError(f"directory not found: {dir_path or '/'}")

    entries = [project(child, dir_path) for child in node.children]
    entries.sort(key=lambda entry: entry.name.lower())
    return entries
