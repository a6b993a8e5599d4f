"""Path resolution against the course snapshot.

Paths are slash-delimited; the host's own separator is accepted too.
Empty and ``.`` segments address the root, ``..`` is collapsed
lexically before the walk.
"""

import os
import posixpath
from typing import List, Optional, Sequence

from .base import DirectoryNode, Node


def split_path(path: str) -> List[str]:
    """Split a path into segments.

    Args:
        path: Path such as "docs/a.pdf", "/docs/", "." or ""

    Returns:
        Segments without empty or "." parts; [] for the root
    """
    if os.sep != "/":
        path = path.replace(os.sep, "/")
    if not path:
        return []
    cleaned = posixpath.normpath(path)
    return [part for part in cleaned.split("/") if part not in ("", ".")]


def resolve_segments(node: Node, segments: Sequence[str]) -> Optional[Node]:
    """Walk ``segments`` down from ``node`` by exact name match.

    An empty sequence, ``["."]`` or ``[""]`` resolves to ``node`` itself,
    and the same holds for whatever node the walk has reached, so a
    trailing ``"."`` or ``""`` addresses the node before it.
    The first child whose name equals the segment is taken; a missing
    segment ends the walk with None.

    Args:
        node: Node to start from
        segments: Path segments

    Returns:
        Addressed node or None if the path doesn't exist
    """
    current = node
    for index, segment in enumerate(segments):
        if index == len(segments) - 1 and segment in (".", ""):
            return current
        if not isinstance(current, DirectoryNode):
            return None
        child = current.get_child(segment)
        if child is None:
            return None
        current = child
    return current


class PathResolver:
    """Resolves string paths against a fixed root node."""

    def __init__(self, root: DirectoryNode):
        """Initialize path resolver.

        Args:
            root: Root node of the snapshot
        """
        self.root = root

    def resolve(self, path: str) -> Optional[Node]:
        """Resolve a path to a node.

        Returns:
            Resolved node or None if path doesn't exist
        """
        return resolve_segments(self.root, split_path(path))

    def resolve_directory(self, path: str) -> Optional[DirectoryNode]:
        """Resolve a path to a directory node.

        Returns:
            Directory node or None if path doesn't exist or isn't a directory
        """
        node = self.resolve(path)
        if node is None or not isinstance(node, DirectoryNode):
            return None
        return node
