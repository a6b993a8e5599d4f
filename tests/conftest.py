"""Shared fixtures: JSON:API payload builders, a mock HTTP transport and an
in-memory fetcher for builder tests."""

import json
import threading
import time
from collections import Counter
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

from coursefs.client import StudIPClient
from coursefs.errors import TransportError
from coursefs.fetcher import RemoteFetcher
from coursefs.models import FileRecord, FolderRecord

BASE_URL = "https://studip.test/jsonapi.php/v1/"
BASE_PATH = "/jsonapi.php/v1/"
CHDATE = "2024-03-01T12:30:00+01:00"


def folder_json(folder_id: str, name: str, folder_type: str = "StandardFolder", chdate: str = CHDATE) -> Dict[str, Any]:
    return {
        "type": "folders",
        "id": folder_id,
        "attributes": {
            "folder-type": folder_type,
            "name": name,
            "description": "",
            "mkdate": chdate,
            "chdate": chdate,
            "is-visible": True,
            "is-readable": True,
            "is-writable": False,
            "is-editable": False,
            "is-empty": False,
            "is-subfolder-allowed": False,
        },
    }


def file_json(
    file_id: str,
    name: str,
    size: int = 0,
    mime_type: str = "application/pdf",
    readable: bool = True,
    downloadable: bool = True,
    chdate: str = CHDATE,
) -> Dict[str, Any]:
    return {
        "type": "file-refs",
        "id": file_id,
        "attributes": {
            "name": name,
            "description": "",
            "mkdate": chdate,
            "chdate": chdate,
            "downloads": 3,
            "filesize": size,
            "mime-type": mime_type,
            "is-readable": readable,
            "is-downloadable": downloadable,
            "is-editable": False,
            "is-writable": False,
        },
    }


def list_document(items: List[Dict[str, Any]], offset: int = 0, limit: int = 30, total: Optional[int] = None) -> Dict[str, Any]:
    return {
        "meta": {"page": {"offset": offset, "limit": limit, "total": len(items) if total is None else total}},
        "data": items,
    }


class Routes:
    """Route table for httpx.MockTransport.

    Values are a JSON-serializable document, ``bytes`` for raw content,
    an ``int`` status code, or a callable taking the request.
    """

    def __init__(self, routes: Optional[Dict[str, Any]] = None):
        self.routes = dict(routes or {})
        self.requests: List[httpx.Request] = []

    def __setitem__(self, path: str, value: Any) -> None:
        self.routes[path] = value

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path[len(BASE_PATH):]
        value = self.routes.get(path, 404)
        if callable(value):
            return value(request)
        if isinstance(value, int):
            return httpx.Response(value, json={"errors": [{"status": str(value)}]})
        if isinstance(value, bytes):
            return httpx.Response(200, content=value, headers={"content-type": "application/octet-stream"})
        return httpx.Response(200, content=json.dumps(value).encode(),
                              headers={"content-type": "application/vnd.api+json"})

    @property
    def paths(self) -> List[str]:
        return [request.url.path[len(BASE_PATH):] for request in self.requests]


@pytest.fixture
def routes() -> Routes:
    return Routes()


@pytest.fixture
def make_client(routes) -> Callable[..., StudIPClient]:
    """Factory for a client wired to the ``routes`` fixture."""
    clients = []

    def factory(**kwargs) -> StudIPClient:
        client = StudIPClient(BASE_URL, username="alice", password="secret",
                              transport=httpx.MockTransport(routes.handler), **kwargs)
        clients.append(client)
        return client

    yield factory

    for client in clients:
        client.close()


@pytest.fixture
def course_routes(routes) -> Routes:
    """Remote tree used by the end-to-end tests.

    Structure:
        root/
        ├── docs/
        │   ├── a.pdf          (size 10)
        │   └── secret.pdf     (not downloadable)
        └── notes.txt          (size 5)
    """
    routes["courses/c1"] = {"data": {"type": "courses", "id": "c1", "attributes": {"title": "Algorithms"}}}
    routes["courses/c1/folders"] = list_document([
        folder_json("f-top", "Top", folder_type="TopFolder"),
        folder_json("f-root", "", folder_type="RootFolder"),
    ])
    routes["folders/f-root/folders"] = list_document([folder_json("f-docs", "docs")])
    routes["folders/f-root/file-refs"] = list_document([
        file_json("r-notes", "notes.txt", size=5, mime_type="text/plain"),
    ])
    routes["folders/f-docs/folders"] = list_document([])
    routes["folders/f-docs/file-refs"] = list_document([
        file_json("r-a", "a.pdf", size=10),
        file_json("r-secret", "secret.pdf", size=99, downloadable=False),
    ])
    routes["file-refs/r-a/content"] = b"0123456789"
    return routes


class FakeFetcher(RemoteFetcher):
    """In-memory fetcher; counts calls and can fail or delay per folder.

    Attributes:
        folders: folder id -> child FolderRecords
        files: folder id -> FileRecords
        fail_subfolders: folder ids whose subfolder fetch raises TransportError
        delays: folder id -> seconds to sleep inside fetch_subfolders
    """

    def __init__(self, cancel_event: Optional[threading.Event] = None):
        super().__init__(client=None, cancel_event=cancel_event)
        self.folders: Dict[str, List[FolderRecord]] = {}
        self.files: Dict[str, List[FileRecord]] = {}
        self.fail_subfolders = set()
        self.delays: Dict[str, float] = {}
        self.on_subfolders: Dict[str, Callable[[], None]] = {}
        self.subfolder_calls: Counter = Counter()
        self.completed_subfolder_calls: Counter = Counter()
        self.file_calls: Counter = Counter()
        self._lock = threading.Lock()
        self._active = 0
        self.peak_active = 0

    def add_folder(self, parent_id: str, folder_id: str, name: str) -> None:
        self.folders.setdefault(parent_id, []).append(FolderRecord(id=folder_id, name=name))

    def add_file(self, folder_id: str, file_id: str, name: str, size: int = 0,
                 readable: bool = True, downloadable: bool = True, mime_type: str = "text/plain") -> None:
        self.files.setdefault(folder_id, []).append(FileRecord(
            id=file_id, name=name, size=size, mime_type=mime_type,
            is_readable=readable, is_downloadable=downloadable,
        ))

    def _enter(self) -> None:
        with self._lock:
            self._active += 1
            self.peak_active = max(self.peak_active, self._active)

    def _leave(self) -> None:
        with self._lock:
            self._active -= 1

    def fetch_subfolders(self, folder_id: str) -> List[FolderRecord]:
        self.check_cancelled()
        with self._lock:
            self.subfolder_calls[folder_id] += 1
        self._enter()
        try:
            if folder_id in self.delays:
                time.sleep(self.delays[folder_id])
            if folder_id in self.on_subfolders:
                self.on_subfolders[folder_id]()
            if folder_id in self.fail_subfolders:
                raise TransportError(f"HTTP 500 for folders/{folder_id}/folders", status_code=500)
            return list(self.folders.get(folder_id, []))
        finally:
            self._leave()
            with self._lock:
                self.completed_subfolder_calls[folder_id] += 1

    def fetch_files(self, folder_id: str) -> List[FileRecord]:
        self.check_cancelled()
        with self._lock:
            self.file_calls[folder_id] += 1
        return list(self.files.get(folder_id, []))


@pytest.fixture
def fake_fetcher() -> FakeFetcher:
    return FakeFetcher()
