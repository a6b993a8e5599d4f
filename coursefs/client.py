"""
HTTP client for the course store's JSON:API.

Wraps an ``httpx.Client`` configured with the base URL, basic auth and
the JSON:API ``Accept`` header. All ``httpx`` failures are converted to
TransportError, malformed bodies to DecodeError.
"""

import logging
from typing import Any, Dict, Iterator, List, Optional

import httpx

from .errors import DecodeError, TransportError
from .models import PageMeta, document_list

logger = logging.getLogger(__name__)

USER_AGENT = "coursefs/0.1.0"
JSONAPI_MEDIA_TYPE = "application/vnd.api+json"
CHUNK_SIZE = 64 * 1024


class ContentStream:
    """Byte stream over a streamed HTTP response.

    Use as a context manager so the underlying connection is released:

        with client.stream("file-refs/abc/content") as stream:
            for chunk in stream.iter_bytes():
                ...
    """

    def __init__(self, response: httpx.Response):
        self._response = response

    @property
    def content_type(self) -> str:
        return self._response.headers.get("content-type", "")

    def iter_bytes(self, chunk_size: int = CHUNK_SIZE) -> Iterator[bytes]:
        """Yield the body in chunks."""
        try:
            yield from self._response.iter_bytes(chunk_size=chunk_size)
        except httpx.HTTPError as e:
            raise TransportError(f"Error reading response body: {e}", url=str(self._response.url)) from e

    def read(self) -> bytes:
        """Read the remaining body at once."""
        return b"".join(self.iter_bytes())

    def close(self) -> None:
        self._response.close()

    def __enter__(self) -> 'ContentStream':
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()


class StudIPClient:
    """Authenticated client for the read endpoints of the course store.

    Attributes:
        follow_pages: Follow ``meta.page`` until all records were read;
            when False only the first page is requested
        page_limit: Records requested per page when following pages
    """

    def __init__(
        self,
        base_url: str,
        username: str = "",
        password: str = "",
        timeout: float = 30.0,
        follow_pages: bool = True,
        page_limit: int = 100,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """Initialize the client.

        Args:
            base_url: Root of the JSON:API, e.g. https://host/jsonapi.php/v1/
            username: Login name for basic auth
            password: Password for basic auth
            timeout: Request timeout in seconds
            follow_pages: Whether list requests follow paging metadata
            page_limit: Page size requested when following pages
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        if not base_url.endswith("/"):
            base_url += "/"
        self.base_url = base_url
        self.follow_pages = follow_pages
        self.page_limit = page_limit
        auth = httpx.BasicAuth(username, password) if username else None
        self._client = httpx.Client(
            base_url=base_url,
            auth=auth,
            timeout=timeout,
            headers={"Accept": JSONAPI_MEDIA_TYPE, "User-Agent": USER_AGENT},
            transport=transport,
        )

    def get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """GET a path and decode the JSON body.

        Raises:
            TransportError: On connection failure or HTTP status >= 400
            DecodeError: If the body is not a JSON object
        """
        logger.debug(f"GET {path} {params or ''}")
        try:
            response = self._client.get(path, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TransportError(
                f"HTTP {e.response.status_code} for {e.request.url}",
                status_code=e.response.status_code,
                url=str(e.request.url),
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(f"Request to {path} failed: {e}", url=path) from e

        try:
            document = response.json()
        except ValueError as e:
            raise DecodeError(f"Response from {path} is not valid JSON") from e
        if not isinstance(document, dict):
            raise DecodeError(f"Response from {path} is not a JSON object")
        return document

    def get_list(self, path: str) -> List[Any]:
        """GET a list endpoint and return the resource objects of all pages.

        With ``follow_pages`` disabled only the first page (server default
        size) is returned. Paging stops when a later page does not start at
        the requested offset, i.e. the server ignores the paging parameters.
        """
        if not self.follow_pages:
            return document_list(self.get_json(path))

        items: List[Any] = []
        offset = 0
        while True:
            document = self.get_json(
                path, params={"page[offset]": offset, "page[limit]": self.page_limit}
            )
            meta = PageMeta.from_json(document)
            if offset and meta.offset != offset:
                logger.warning(
                    f"{path}: asked for offset {offset}, server answered offset {meta.offset}; "
                    f"keeping the first {len(items)} records"
                )
                break

            page_items = document_list(document)
            items.extend(page_items)
            if not page_items or not meta.has_more:
                break
            offset += len(page_items)
            logger.debug(f"{path}: fetching next page at offset {offset} of {meta.total}")

        return items

    def stream(self, path: str) -> ContentStream:
        """Open a streamed GET request.

        Raises:
            TransportError: On connection failure or non-2xx status
        """
        logger.debug(f"GET (stream) {path}")
        try:
            request = self._client.build_request("GET", path)
            response = self._client.send(request, stream=True)
        except httpx.HTTPError as e:
            raise TransportError(f"Request to {path} failed: {e}", url=path) from e

        if not response.is_success:
            response.close()
            raise TransportError(
                f"HTTP {response.status_code} for {response.url}",
                status_code=response.status_code,
                url=str(response.url),
            )
        return ContentStream(response)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> 'StudIPClient':
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()
