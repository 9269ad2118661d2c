"""Async access to the roster API collections.

The HTTP stores are thin wrappers around httpx so tests can point them
at the bundled API through an ``ASGITransport`` or swap them for an
in-memory fake implementing :class:`RemoteStore`.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar

import httpx

from models.entry import Entry, Experience, merge_created

from .exceptions import NotFound, TransportError, ValidationRejected

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_API_URL = "http://localhost:3000/api"
# Statuses the API uses for constraint violations on a submitted record
VALIDATION_STATUSES = {400, 409, 422}
# Only these methods carry a record the API can reject
WRITE_METHODS = {"POST", "PUT"}


class RemoteStore(ABC, Generic[T]):
    """list/get/create/update/delete against one remote collection."""

    @abstractmethod
    async def list(self) -> List[T]: ...

    @abstractmethod
    async def get(self, item_id: str) -> T: ...

    @abstractmethod
    async def create(self, draft: T) -> T: ...

    @abstractmethod
    async def update(self, entity: T) -> T: ...

    @abstractmethod
    async def delete(self, item_id: str) -> None: ...


class HttpRemoteStore(RemoteStore[T]):
    """JSON-over-HTTP collection at ``{base_url}/{collection}``."""

    def __init__(
        self,
        collection: str,
        decode: Callable[[Dict[str, Any]], T],
        encode: Callable[[T], Dict[str, Any]],
        base_url: str = DEFAULT_API_URL,
        timeout: float = 20.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.collection = collection
        self._decode = decode
        self._encode = encode
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    def _url(self, item_id: Optional[str] = None) -> str:
        url = f"{self.base_url}/{self.collection}"
        if item_id is not None:
            url += f"/{item_id}"
        return url

    async def _request(
        self, method: str, item_id: Optional[str] = None, **kwargs: Any
    ) -> httpx.Response:
        url = self._url(item_id)
        logger.debug("%s %s", method, url)
        try:
            resp = await self._http().request(method, url, **kwargs)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status == 404:
                raise NotFound(self.collection, item_id or "") from e
            if status in VALIDATION_STATUSES and method in WRITE_METHODS:
                raise ValidationRejected(
                    f"{self.collection}: request rejected (HTTP {status})",
                    detail=_error_detail(e.response),
                ) from e
            raise TransportError(
                f"{method} {url} failed with HTTP {status}", status_code=status
            ) from e
        except httpx.RequestError as e:
            raise TransportError(f"{method} {url} failed: {e.__class__.__name__}") from e
        return resp

    @staticmethod
    def _json(resp: httpx.Response) -> Any:
        try:
            return resp.json()
        except ValueError as e:
            raise TransportError(f"Invalid JSON from {resp.request.url}") from e

    async def _fetch_list(self, params: Optional[Dict[str, str]] = None) -> List[T]:
        data = self._json(await self._request("GET", params=params))
        if not isinstance(data, list):
            raise TransportError(f"Expected a list from {self._url()}")
        return [self._decode(item) for item in data]

    async def list(self) -> List[T]:
        return await self._fetch_list()

    async def get(self, item_id: str) -> T:
        return self._decode(self._json(await self._request("GET", item_id)))

    async def create(self, draft: T) -> T:
        body = self._encode(draft)
        body.pop("_id", None)
        return self._decode(self._json(await self._request("POST", json=body)))

    async def update(self, entity: T) -> T:
        item_id = getattr(entity, "id", None)
        if not item_id:
            raise ValueError("update() needs an entity with an id")
        resp = await self._request("PUT", item_id, json=self._encode(entity))
        return self._decode(self._json(resp))

    async def delete(self, item_id: str) -> None:
        await self._request("DELETE", item_id)


def _error_detail(resp: httpx.Response) -> object:
    try:
        return resp.json().get("detail")
    except (ValueError, AttributeError):
        return resp.text


class UserStore(HttpRemoteStore[Entry]):
    """The ``/users`` collection."""

    def __init__(self, base_url: str = DEFAULT_API_URL, timeout: float = 20.0, client=None):
        super().__init__("users", Entry.from_json, Entry.to_json, base_url, timeout, client)

    async def create(self, draft: Entry) -> Entry:
        created = await super().create(draft)
        return merge_created(draft, created)


class ExperienceStore(HttpRemoteStore[Experience]):
    """The ``/experiences`` collection."""

    def __init__(self, base_url: str = DEFAULT_API_URL, timeout: float = 20.0, client=None):
        super().__init__(
            "experiences", Experience.from_json, Experience.to_json, base_url, timeout, client
        )

    async def list_for_user(self, user_id: str) -> List[Experience]:
        """Experiences where the user is the owner or a participant."""
        return await self._fetch_list(params={"participant": user_id, "owner": user_id})
