"""Typed records decoded from the course store's JSON:API responses.

Every ``from_json`` constructor raises DecodeError when the payload does
not have the expected shape, so callers never see KeyError/TypeError
from a malformed body.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from .errors import DecodeError

ROOT_FOLDER_TYPE = "RootFolder"


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp as sent by the remote store.

    Args:
        value: Timestamp string, or None

    Returns:
        Timezone-aware datetime (naive if the string has no offset), or None
    """
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise DecodeError(f"Timestamp is not a string: {value!r}")
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        return datetime.fromisoformat(text)
    except ValueError as e:
        raise DecodeError(f"Invalid timestamp {value!r}") from e


def _resource(item: Any) -> tuple:
    """Split a JSON:API resource object into (id, attributes)."""
    if not isinstance(item, dict):
        raise DecodeError(f"Resource object is not a mapping: {item!r}")
    resource_id = item.get("id")
    attributes = item.get("attributes")
    if not isinstance(resource_id, str) or not resource_id:
        raise DecodeError(f"Resource object without id: {item!r}")
    if not isinstance(attributes, dict):
        raise DecodeError(f"Resource {resource_id} has no attributes")
    return resource_id, attributes


def _text(attributes: Dict[str, Any], key: str) -> str:
    value = attributes.get(key) or ""
    if not isinstance(value, str):
        raise DecodeError(f"Attribute {key!r} is not a string: {value!r}")
    return value


def _flag(attributes: Dict[str, Any], key: str) -> bool:
    value = attributes.get(key, False)
    if not isinstance(value, bool):
        raise DecodeError(f"Attribute {key!r} is not a boolean: {value!r}")
    return value


def _integer(attributes: Dict[str, Any], key: str) -> int:
    value = attributes.get(key) or 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise DecodeError(f"Attribute {key!r} is not an integer: {value!r}")
    return value


@dataclass(frozen=True)
class PageMeta:
    """Paging metadata of a list response (``meta.page``)."""
    offset: int = 0
    limit: int = 0
    total: int = 0

    @classmethod
    def from_json(cls, document: Dict[str, Any]) -> 'PageMeta':
        meta = document.get("meta") or {}
        page = meta.get("page") if isinstance(meta, dict) else None
        if not isinstance(page, dict):
            return cls()
        return cls(
            offset=_integer(page, "offset"),
            limit=_integer(page, "limit"),
            total=_integer(page, "total"),
        )

    @property
    def has_more(self) -> bool:
        """True if the server reports records beyond this page."""
        return self.limit > 0 and self.offset + self.limit < self.total


@dataclass(frozen=True)
class CourseRecord:
    """A course (``courses/{id}``)."""
    id: str
    title: str = ""
    course_number: str = ""
    description: str = ""

    @classmethod
    def from_json(cls, item: Any) -> 'CourseRecord':
        resource_id, attributes = _resource(item)
        return cls(
            id=resource_id,
            title=_text(attributes, "title"),
            course_number=_text(attributes, "course-number"),
            description=_text(attributes, "description"),
        )


@dataclass(frozen=True)
class FolderRecord:
    """A folder as listed by ``courses/{id}/folders`` or ``folders/{id}/folders``."""
    id: str
    name: str
    folder_type: str = ""
    description: str = ""
    created_at: Optional[datetime] = None
    changed_at: Optional[datetime] = None
    is_visible: bool = False
    is_readable: bool = False
    is_writable: bool = False
    is_editable: bool = False
    is_empty: bool = False
    is_subfolder_allowed: bool = False

    @classmethod
    def from_json(cls, item: Any) -> 'FolderRecord':
        resource_id, attributes = _resource(item)
        return cls(
            id=resource_id,
            name=_text(attributes, "name"),
            folder_type=_text(attributes, "folder-type"),
            description=_text(attributes, "description"),
            created_at=parse_timestamp(attributes.get("mkdate")),
            changed_at=parse_timestamp(attributes.get("chdate")),
            is_visible=_flag(attributes, "is-visible"),
            is_readable=_flag(attributes, "is-readable"),
            is_writable=_flag(attributes, "is-writable"),
            is_editable=_flag(attributes, "is-editable"),
            is_empty=_flag(attributes, "is-empty"),
            is_subfolder_allowed=_flag(attributes, "is-subfolder-allowed"),
        )

    @property
    def is_root(self) -> bool:
        return self.folder_type == ROOT_FOLDER_TYPE


@dataclass(frozen=True)
class FileRecord:
    """A file reference as listed by ``folders/{id}/file-refs``."""
    id: str
    name: str
    size: int = 0
    mime_type: str = ""
    description: str = ""
    created_at: Optional[datetime] = None
    changed_at: Optional[datetime] = None
    downloads: int = 0
    is_readable: bool = False
    is_downloadable: bool = False
    is_editable: bool = False
    is_writable: bool = False

    @classmethod
    def from_json(cls, item: Any) -> 'FileRecord':
        resource_id, attributes = _resource(item)
        return cls(
            id=resource_id,
            name=_text(attributes, "name"),
            size=_integer(attributes, "filesize"),
            mime_type=_text(attributes, "mime-type"),
            description=_text(attributes, "description"),
            created_at=parse_timestamp(attributes.get("mkdate")),
            changed_at=parse_timestamp(attributes.get("chdate")),
            downloads=_integer(attributes, "downloads"),
            is_readable=_flag(attributes, "is-readable"),
            is_downloadable=_flag(attributes, "is-downloadable"),
            is_editable=_flag(attributes, "is-editable"),
            is_writable=_flag(attributes, "is-writable"),
        )

    @property
    def is_accessible(self) -> bool:
        """Both readable and downloadable; anything else is left out of the tree."""
        return self.is_readable and self.is_downloadable


def document_data(document: Any) -> Any:
    """Return the ``data`` member of a JSON:API document."""
    if not isinstance(document, dict) or "data" not in document:
        raise DecodeError("Response document has no 'data' member")
    return document["data"]


def document_list(document: Any) -> List[Any]:
    """Return the ``data`` member of a list document."""
    data = document_data(document)
    if not isinstance(data, list):
        raise DecodeError("Response 'data' member is not a list")
    return data
