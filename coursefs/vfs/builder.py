"""Concurrent construction of the course snapshot.

Every folder is filled in two stages, each a job on a bounded thread
pool:

1. subfolders: fetch the child folders, append a DirectoryNode per
   folder in server order, and start stage 1 for each of them;
2. files: once every child folder has finished without error, fetch the
   folder's file references and append the readable and downloadable
   ones in server order.

The coordinating thread keeps one counter per folder (its barrier). A
failed child never cancels its siblings: the folder waits for all of
them, then reports the first error it received to its own parent
without fetching its files. Workers never wait on other workers, so any
pool size works for any depth.
"""

import logging
import threading
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from ..errors import BuildCancelledError
from ..fetcher import RemoteFetcher
from .base import DirectoryNode, FileNode

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 8

_SUBFOLDERS = "subfolders"
_FILES = "files"


@dataclass
class BuildStats:
    """Counters collected during one build.

    ``tasks_completed`` counts folder tasks that reported to their parent
    (or finished the build), successful or not; ``tasks_failed`` is the
    failed subset.
    """
    folders: int = 0
    files: int = 0
    skipped_files: int = 0
    tasks_completed: int = 0
    tasks_failed: int = 0


class _FolderTask:
    """Barrier bookkeeping for one folder; touched only by the coordinator."""

    __slots__ = ("node", "parent", "pending", "error")

    def __init__(self, node: DirectoryNode, parent: Optional['_FolderTask'] = None):
        self.node = node
        self.parent = parent
        self.pending = 0
        self.error: Optional[BaseException] = None


class TreeBuilder:
    """Builds the folder/file tree below a remote folder.

    Usage:
        >>> builder = TreeBuilder(fetcher, max_workers=8)
        >>> root = builder.build(root_folder_id)
        >>> builder.stats.files
        42
    """

    def __init__(
        self,
        fetcher: RemoteFetcher,
        max_workers: int = DEFAULT_MAX_WORKERS,
        cancel_event: Optional[threading.Event] = None,
    ):
        """Initialize builder.

        Args:
            fetcher: Source of folder and file records
            max_workers: Upper bound on concurrently running fetch jobs
            cancel_event: Event checked before every build step
        """
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.fetcher = fetcher
        self.max_workers = max_workers
        self.cancel_event = cancel_event
        self.stats = BuildStats()
        self._futures: Dict[Future, Tuple[str, _FolderTask]] = {}
        self._executor: Optional[ThreadPoolExecutor] = None
        self._error: Optional[BaseException] = None

    def build(self, root_folder_id: str, name: str = "") -> DirectoryNode:
        """Build and freeze the snapshot rooted at ``root_folder_id``.

        Raises:
            TransportError, DecodeError: A fetch anywhere in the tree failed
            BuildCancelledError: The cancel event was set
        """
        root = DirectoryNode(name, root_folder_id)
        self.fill(root)
        root.freeze()
        return root

    def fill(self, node: DirectoryNode) -> None:
        """Populate the complete subtree of ``node``.

        Returns only after every started job has finished. On failure one
        of the errors raised by the jobs is re-raised.
        """
        self._check_cancelled()
        self.stats = BuildStats()
        self._error = None
        logger.info(f"Building tree below folder {node.node_id} ({self.max_workers} workers)")

        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="coursefs-build") as executor:
            self._executor = executor
            try:
                self._submit(_SUBFOLDERS, _FolderTask(node))
                self._drain()
            except BaseException:
                for future in self._futures:
                    future.cancel()
                raise
            finally:
                self._futures.clear()
                self._executor = None

        if self._error is not None:
            logger.warning(
                f"Tree build failed after {self.stats.tasks_completed} folder tasks "
                f"({self.stats.tasks_failed} failed): {self._error}"
            )
            raise self._error

        logger.info(
            f"Tree built: {self.stats.folders} folders, {self.stats.files} files "
            f"({self.stats.skipped_files} not accessible)"
        )

    def _drain(self) -> None:
        while self._futures:
            done, _ = wait(self._futures, return_when=FIRST_COMPLETED)
            for future in done:
                stage, task = self._futures.pop(future)
                try:
                    result = future.result()
                except Exception as e:
                    logger.debug(f"{stage} of folder {task.node.node_id} failed: {e}")
                    self._finish(task, e)
                    continue

                if stage == _SUBFOLDERS:
                    self._on_subfolders(task, result)
                else:
                    added, skipped = result
                    self.stats.files += added
                    self.stats.skipped_files += skipped
                    self._finish(task, None)

    def _on_subfolders(self, task: _FolderTask, children: List[DirectoryNode]) -> None:
        self.stats.folders += 1
        if not children:
            self._submit(_FILES, task)
            return
        task.pending = len(children)
        for child in children:
            self._submit(_SUBFOLDERS, _FolderTask(child, parent=task))

    def _finish(self, task: _FolderTask, error: Optional[BaseException]) -> None:
        """Report a finished folder task to its parent's barrier."""
        self.stats.tasks_completed += 1
        if error is not None:
            self.stats.tasks_failed += 1

        parent = task.parent
        if parent is None:
            self._error = error
            return

        parent.pending -= 1
        if error is not None and parent.error is None:
            parent.error = error
        if parent.pending == 0:
            if parent.error is not None:
                self._finish(parent, parent.error)
            else:
                self._submit(_FILES, parent)

    def _submit(self, stage: str, task: _FolderTask) -> None:
        job = self._fill_subfolders if stage == _SUBFOLDERS else self._fill_files
        future = self._executor.submit(job, task.node)
        self._futures[future] = (stage, task)

    def _fill_subfolders(self, node: DirectoryNode) -> List[DirectoryNode]:
        self._check_cancelled()
        children = []
        for folder in self.fetcher.fetch_subfolders(node.node_id):
            child = DirectoryNode(folder.name, folder.id, folder.changed_at)
            node.add_child(child)
            children.append(child)
        return children

    def _fill_files(self, node: DirectoryNode) -> Tuple[int, int]:
        self._check_cancelled()
        added = skipped = 0
        for record in self.fetcher.fetch_files(node.node_id):
            if not record.is_accessible:
                logger.debug(f"Skipping inaccessible file {record.name!r} ({record.id})")
                skipped += 1
                continue
            node.add_child(FileNode(
                record.name,
                record.id,
                size=record.size,
                content_type=record.mime_type,
                changed_at=record.changed_at,
            ))
            added += 1
        return added, skipped

    def _check_cancelled(self) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise BuildCancelledError("tree build cancelled")
