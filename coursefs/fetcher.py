"""Remote folder/file fetcher.

Issues the read queries the tree build needs and decodes them into
typed records. No tree logic lives here.
"""

import logging
import threading
from typing import List, Optional

from .client import ContentStream, StudIPClient
from .errors import BuildCancelledError, RemoteNotFoundError
from .models import (
    CourseRecord,
    FileRecord,
    FolderRecord,
    ROOT_FOLDER_TYPE,
    document_data,
)

logger = logging.getLogger(__name__)


class RemoteFetcher:
    """Read-only access to a course's folders and files.

    Every method checks the optional cancel event on entry and raises
    BuildCancelledError if it is set.
    """

    def __init__(self, client: StudIPClient, cancel_event: Optional[threading.Event] = None):
        """Initialize fetcher.

        Args:
            client: HTTP client for the course store
            cancel_event: Event that aborts pending and future calls once set
        """
        self.client = client
        self.cancel_event = cancel_event

    def check_cancelled(self) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise BuildCancelledError("operation cancelled")

    def fetch_course(self, course_id: str) -> CourseRecord:
        """Fetch the course record and verify the id the server answers with.

        Raises:
            RemoteNotFoundError: If the returned course id differs
        """
        self.check_cancelled()
        course = CourseRecord.from_json(document_data(self.client.get_json(f"courses/{course_id}")))
        if course.id != course_id:
            raise RemoteNotFoundError(
                f"received course id doesn't match configured course id, "
                f"received: {course.id}, want: {course_id}"
            )
        return course

    def fetch_root_folder_id(self, course_id: str) -> str:
        """Return the id of the course's root folder.

        Raises:
            RemoteNotFoundError: If no folder in the listing is the root folder
        """
        self.check_cancelled()
        for item in self.client.get_list(f"courses/{course_id}/folders"):
            folder = FolderRecord.from_json(item)
            if folder.is_root:
                logger.debug(f"Course {course_id} root folder is {folder.id}")
                return folder.id
        raise RemoteNotFoundError(f"folders of course {course_id} contain no {ROOT_FOLDER_TYPE}")

    def fetch_subfolders(self, folder_id: str) -> List[FolderRecord]:
        """Return the immediate child folders of a folder, in server order."""
        self.check_cancelled()
        return [FolderRecord.from_json(item) for item in self.client.get_list(f"folders/{folder_id}/folders")]

    def fetch_files(self, folder_id: str) -> List[FileRecord]:
        """Return the immediate file references of a folder, in server order."""
        self.check_cancelled()
        return [FileRecord.from_json(item) for item in self.client.get_list(f"folders/{folder_id}/file-refs")]

    def open_file_content(self, file_id: str) -> ContentStream:
        """Open a byte stream over a file's content."""
        self.check_cancelled()
        return self.client.stream(f"file-refs/{file_id}/content")
