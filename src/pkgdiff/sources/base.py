"""PackageSource contract and the shared httpx transport."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx

from pkgdiff.archive.extract import extract_package
from pkgdiff.archive.models import ExtractedPackage

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class SourceError(Exception):
    """Raised when a package archive cannot be retrieved."""


class NotFoundError(SourceError):
    """The registry has no such package, version, or artifact."""


class NetworkError(SourceError):
    """Transport failure or unexpected HTTP status."""


class UnsupportedRegistryError(SourceError):
    """The source id does not name a known registry."""


class PackageSource(ABC):
    """Retrieves the compressed archive of one package version."""

    source_id: str

    @abstractmethod
    async def fetch_archive(self, package: str, version: str) -> bytes:
        """Return the archive for *package* at *version*.

        This is a ``.tgz`` unless the source overrides :meth:`extract`.

        :raises NotFoundError: if the registry has no such archive.
        :raises NetworkError: on transport failures.
        """
        raise NotImplementedError()

    def extract(self, data: bytes) -> ExtractedPackage:
        """Turn the bytes returned by :meth:`fetch_archive` into the package's file map."""
        return extract_package(data)

    async def aclose(self) -> None:
        """Release any held resources."""


class HttpSource(PackageSource):
    """Base class for registries reached over HTTP(S)."""

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-init HTTP client"""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout),
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _get(self, url: str) -> httpx.Response:
        logger.debug("GET %s", url)
        try:
            response = await self.client.get(url)
        except httpx.HTTPError as exc:
            raise NetworkError(f"Request to {url} failed: {exc}") from exc
        if response.status_code == 404:
            raise NotFoundError(f"Not found: {url}")
        if response.is_error:
            raise NetworkError(f"Request to {url} failed with HTTP {response.status_code}")
        return response

    async def _get_bytes(self, url: str) -> bytes:
        response = await self._get(url)
        return response.content

    async def _get_json(self, url: str) -> Any:
        response = await self._get(url)
        try:
            return response.json()
        except ValueError as exc:
            raise NetworkError(f"Invalid JSON from {url}: {exc}") from exc
