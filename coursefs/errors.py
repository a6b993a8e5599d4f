"""Exception hierarchy for coursefs.

Remote errors (transport, decode, remote not-found) are fatal to the
operation that raised them and abort a tree build as a whole. Local
lookup errors (directory/object not found) only concern the single call
that raised them; the snapshot stays valid.
"""

from typing import Optional


class CourseFSError(Exception):
    """Base class for all coursefs errors."""
    pass


class TransportError(CourseFSError):
    """Network or HTTP failure talking to the remote store.

    Attributes:
        status_code: HTTP status code, if a response was received
        url: Requested URL, if known
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        url: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class DecodeError(CourseFSError):
    """Response body does not have the expected shape."""
    pass


class RemoteNotFoundError(CourseFSError):
    """An expected remote record (course, root folder) is missing."""
    pass


class DirectoryNotFoundError(CourseFSError):
    """Path does not resolve to a directory in the snapshot."""
    pass


class ObjectNotFoundError(CourseFSError):
    """Path does not resolve to a file in the snapshot."""
    pass


class PermissionDeniedError(CourseFSError, PermissionError):
    """Write-class operation on the read-only store."""
    pass


class UnsupportedError(CourseFSError):
    """Operation has no meaning for a read-only snapshot."""
    pass


class BuildCancelledError(CourseFSError):
    """The cancel event was set while a fetch or build step was pending."""
    pass


class ConfigError(CourseFSError, ValueError):
    """Invalid or incomplete configuration."""
    pass
