"""PyPI source — downloads the ``.tar.gz`` source distribution of a release."""

from __future__ import annotations

from typing import Any, Dict, List, Optional
from urllib.parse import quote

from pkgdiff.sources.base import HttpSource, NetworkError, NotFoundError

PYPI_URL = "https://pypi.org"

_TARBALL_SUFFIXES = (".tar.gz", ".tgz")


def select_sdist_url(urls: List[Dict[str, Any]]) -> Optional[str]:
    """Return the first sdist URL that is a gzip tarball, or None."""
    for entry in urls:
        url = entry.get("url", "")
        if entry.get("packagetype") == "sdist" and url.lower().endswith(_TARBALL_SUFFIXES):
            return url
    return None


class PyPISource(HttpSource):
    source_id = "pypi"

    def __init__(self, base_url: str = PYPI_URL, **kwargs) -> None:
        super().__init__(**kwargs)
        self.base_url = base_url.rstrip("/")

    def metadata_url(self, package: str, version: str) -> str:
        return f"{self.base_url}/pypi/{quote(package)}/{quote(version)}/json"

    async def fetch_archive(self, package: str, version: str) -> bytes:
        metadata = await self._get_json(self.metadata_url(package, version))
        urls = metadata.get("urls") if isinstance(metadata, dict) else None
        if not isinstance(urls, list):
            raise NetworkError(f"Unexpected PyPI metadata for {package} {version}")
        sdist_url = select_sdist_url(urls)
        if sdist_url is None:
            raise NotFoundError(f"No .tar.gz source distribution for {package} {version}")
        return await self._get_bytes(sdist_url)
