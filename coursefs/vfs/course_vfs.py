"""Main CourseVFS class - entry point for browsing a course's files."""

import logging
import threading
from datetime import datetime
from typing import Iterator, List, Optional, Tuple

from ..client import ContentStream, StudIPClient
from ..config import CourseFSConfig
from ..errors import (
    DirectoryNotFoundError,
    ObjectNotFoundError,
    PermissionDeniedError,
    UnsupportedError,
)
from ..fetcher import RemoteFetcher
from .base import FileNode, Node
from .builder import DEFAULT_MAX_WORKERS, BuildStats, TreeBuilder
from .listing import DirectoryEntry, Entry, FileEntry, list_entries, project
from .resolver import PathResolver, split_path

logger = logging.getLogger(__name__)


def _join(segments: List[str]) -> str:
    return "/".join(segments)


class CourseVFS:
    """Read-only view of one course's file tree.

    The whole tree is fetched once when the view is opened; listing and
    lookups afterwards are answered from the snapshot without network
    traffic. Only ``open`` talks to the remote store again.

    Usage:
        >>> vfs = CourseVFS.from_config(load_config())
        >>> for entry in vfs.list("Lectures"):
        ...     print(entry.name, entry.size)
        >>> with vfs.open("Lectures/week1.pdf") as stream:
        ...     data = stream.read()
    """

    precision = 1.0  # seconds

    def __init__(
        self,
        fetcher: RemoteFetcher,
        course_id: str,
        root: str = "",
        max_workers: int = DEFAULT_MAX_WORKERS,
        cancel_event: Optional[threading.Event] = None,
    ):
        """Build the snapshot for a course.

        Args:
            fetcher: Remote fetcher
            course_id: Course whose files are exposed
            root: Optional sub-directory to narrow the view to
            max_workers: Worker threads used for the tree build
            cancel_event: Event that aborts the build once set

        Raises:
            RemoteNotFoundError: Course or root folder missing remotely
            TransportError, DecodeError: Remote failure during the build
            DirectoryNotFoundError: ``root`` is not a directory of the course
        """
        self.fetcher = fetcher
        self.course_id = course_id
        self.root_path = _join(split_path(root))

        logger.debug(f"Initializing course view for course {course_id} at root {root!r}")
        fetcher.fetch_course(course_id)
        root_folder_id = fetcher.fetch_root_folder_id(course_id)

        builder = TreeBuilder(fetcher, max_workers=max_workers, cancel_event=cancel_event)
        self.course_root = builder.build(root_folder_id)
        self.stats: BuildStats = builder.stats

        root_node = PathResolver(self.course_root).resolve_directory(self.root_path)
        if root_node is None:
            raise DirectoryNotFoundError(f"root {root!r} is not a directory of course {course_id}")
        self.root = root_node
        self.resolver = PathResolver(self.root)

    @classmethod
    def from_config(
        cls,
        config: CourseFSConfig,
        cancel_event: Optional[threading.Event] = None,
    ) -> 'CourseVFS':
        """Create client, fetcher and snapshot from configuration.

        Raises:
            ConfigError: If the configuration is incomplete
        """
        config.validate()
        remote = config.remote
        client = StudIPClient(
            remote.base_url,
            username=remote.username,
            password=remote.password,
            timeout=remote.timeout,
            follow_pages=config.build.follow_pages,
            page_limit=config.build.page_limit,
        )
        fetcher = RemoteFetcher(client, cancel_event=cancel_event)
        try:
            return cls(
                fetcher,
                remote.course_id,
                root=config.build.root,
                max_workers=config.build.max_workers,
                cancel_event=cancel_event,
            )
        except BaseException:
            client.close()
            raise

    def close(self) -> None:
        """Release the HTTP connection pool."""
        self.fetcher.client.close()

    def __enter__(self) -> 'CourseVFS':
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def __str__(self) -> str:
        return self.fetcher.client.base_url

    # ------------------------------------------------------------------
    # Read operations
    # ------------------------------------------------------------------

    def get_node(self, path: str) -> Optional[Node]:
        """Resolve a path to a node.

        Returns:
            Resolved node or None
        """
        return self.resolver.resolve(path)

    def list(self, path: str = "") -> List[Entry]:
        """List children of a directory.

        Raises:
            DirectoryNotFoundError: If path is missing or not a directory
        """
        return list_entries(self.resolver.resolve(path), _join(split_path(path)))

    def stat(self, path: str) -> Entry:
        """Describe the node at ``path``.

        Raises:
            ObjectNotFoundError: If nothing exists at path
        """
        segments = split_path(path)
        node = self.resolver.resolve(path)
        if node is None:
            raise ObjectNotFoundError(f"object not found: {path}")
        if not segments:
            return DirectoryEntry(remote="", name=node.name, id=node.node_id,
                                  mod_time=node.changed_at, items=len(node.children))
        return project(node, _join(segments[:-1]))

    def new_object(self, path: str) -> FileEntry:
        """Look up the file at ``path``.

        Raises:
            ObjectNotFoundError: If path is missing or a directory
        """
        entry = self.stat(path)
        if not isinstance(entry, FileEntry):
            raise ObjectNotFoundError(f"{path} is a directory")
        return entry

    def open(self, path: str) -> ContentStream:
        """Open a byte stream over a file's content.

        Raises:
            ObjectNotFoundError: If path is missing or a directory
            TransportError: If the download request fails
        """
        node = self.resolver.resolve(path)
        if not isinstance(node, FileNode):
            raise ObjectNotFoundError(f"not a file: {path}")
        logger.debug(f"Opening {path} ({node.node_id})")
        return self.fetcher.open_file_content(node.node_id)

    def walk(self, path: str = "") -> Iterator[Tuple[str, List[Entry]]]:
        """Yield ``(dir_path, entries)`` for a directory and every directory below, depth first."""
        stack = [_join(split_path(path))]
        while stack:
            dir_path = stack.pop()
            entries = self.list(dir_path)
            yield dir_path, entries
            stack.extend(entry.remote for entry in reversed(entries) if entry.is_directory)

    def hash(self, path: str, hash_type: str = "md5") -> str:
        raise UnsupportedError(f"{hash_type} hashes are not available for {path}")

    # ------------------------------------------------------------------
    # Write operations: the course store is read-only
    # ------------------------------------------------------------------

    def _deny(self, operation: str, path: str) -> None:
        raise PermissionDeniedError(f"{operation} {path}: course files are read-only")

    def mkdir(self, path: str) -> None:
        self._deny("mkdir", path)

    def rmdir(self, path: str) -> None:
        self._deny("rmdir", path)

    def purge(self, path: str) -> None:
        self._deny("purge", path)

    def put(self, path: str, data: bytes) -> None:
        self._deny("put", path)

    def update(self, path: str, data: bytes) -> None:
        self._deny("update", path)

    def remove(self, path: str) -> None:
        self._deny("remove", path)

    def copy(self, src: str, dst: str) -> None:
        self._deny("copy", f"{src} -> {dst}")

    def move(self, src: str, dst: str) -> None:
        self._deny("move", f"{src} -> {dst}")

    def dirmove(self, src: str, dst: str) -> None:
        self._deny("dirmove", f"{src} -> {dst}")

    def set_mod_time(self, path: str, mod_time: datetime) -> None:
        self._deny("set_mod_time", path)
