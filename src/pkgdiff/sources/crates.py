"""crates.io source. A ``.crate`` file is a gzip-compressed tar."""

from __future__ import annotations

from urllib.parse import quote

from pkgdiff.sources.base import HttpSource

CRATES_STATIC = "https://static.crates.io"


class CratesSource(HttpSource):
    source_id = "crates"

    def __init__(self, static_url: str = CRATES_STATIC, **kwargs) -> None:
        super().__init__(**kwargs)
        self.static_url = static_url.rstrip("/")

    def crate_url(self, package: str, version: str) -> str:
        name = quote(package)
        return f"{self.static_url}/crates/{name}/{name}-{quote(version)}.crate"

    async def fetch_archive(self, package: str, version: str) -> bytes:
        return await self._get_bytes(self.crate_url(package, version))
