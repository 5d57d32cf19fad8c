"""
HTTP transport for the sync engine.

The worker talks to the server through the RemoteAPI abstraction so tests
and applications can swap the network layer. HttpxRemoteAPI is the default
implementation, async using httpx.

Usage:
    endpoints = Endpoints("https://sync.example.com")
    async with HttpxRemoteAPI(token="...", timeout=30.0) as api:
        result = await api.execute(HTTPMethod.GET, endpoints.sync_get(features))
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, Optional
import logging

import httpx

from .errors import SyncTimeoutError, TransportError
from .models import Feature

logger = logging.getLogger(__name__)


class HTTPMethod(Enum):
    GET = "GET"
    PATCH = "PATCH"


@dataclass
class HTTPResult:
    """
    Raw outcome of an HTTP request.

    Attributes:
        status_code: HTTP status code
        data: Response body, None when the server sent no body
        headers: Response headers
    """
    status_code: int
    data: Optional[bytes] = None
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


@dataclass(frozen=True)
class Endpoints:
    """Sync server URLs derived from a base URL."""
    base_url: str

    def __post_init__(self):
        if not self.base_url:
            raise ValueError("Sync server base URL is required")
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))

    def sync_get(self, features: Iterable[Feature]) -> str:
        """GET /sync/{features_csv}"""
        names = ",".join(sorted(f.name for f in features))
        return f"{self.base_url}/sync/{names}"

    @property
    def sync_patch(self) -> str:
        """PATCH /sync/data"""
        return f"{self.base_url}/sync/data"


class RemoteAPI(ABC):
    """Abstract network transport used by the sync worker."""

    @abstractmethod
    async def execute(self,
                      method: HTTPMethod,
                      url: str,
                      headers: Optional[Dict[str, str]] = None,
                      body: Optional[bytes] = None,
                      content_type: Optional[str] = None) -> HTTPResult:
        """
        Issue a request and return its result.

        Raises:
            TransportError: Request could not be completed
            SyncTimeoutError: Request timed out
        """
        pass


class HttpxRemoteAPI(RemoteAPI):
    """
    RemoteAPI implemented with httpx.AsyncClient.

    The token is opaque to the engine and sent as a bearer Authorization
    header. Timeouts and connection failures surface as typed errors.
    """

    def __init__(self,
                 token: Optional[str] = None,
                 timeout: float = 30.0,
                 client: Optional[httpx.AsyncClient] = None):
        """
        Args:
            token: Opaque auth token (optional)
            timeout: Request timeout in seconds
            client: Preconfigured client (e.g. with a mock transport)
        """
        self.token = token
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self):
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        """Close the underlying client if this instance created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _headers(self, headers: Optional[Dict[str, str]], content_type: Optional[str]) -> Dict[str, str]:
        merged = {"Accept": "application/json"}
        if self.token:
            merged["Authorization"] = f"Bearer {self.token}"
        if content_type:
            merged["Content-Type"] = content_type
        merged.update(headers or {})
        return merged

    async def execute(self,
                      method: HTTPMethod,
                      url: str,
                      headers: Optional[Dict[str, str]] = None,
                      body: Optional[bytes] = None,
                      content_type: Optional[str] = None) -> HTTPResult:
        client = self._ensure_client()
        logger.debug(f"{method.value} {url} body={len(body) if body else 0} bytes")
        try:
            response = await client.request(
                method.value,
                url,
                headers=self._headers(headers, content_type),
                content=body,
            )
        except httpx.TimeoutException as e:
            raise SyncTimeoutError(f"{method.value} {url} timed out: {e}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"{method.value} {url} failed: {e}") from e

        logger.debug(f"{method.value} {url} -> {response.status_code}")
        return HTTPResult(
            status_code=response.status_code,
            data=response.content or None,
            headers=dict(response.headers),
        )


__all__ = ['HTTPMethod', 'HTTPResult', 'Endpoints', 'RemoteAPI', 'HttpxRemoteAPI']
