"""npm registry source."""

from __future__ import annotations

from urllib.parse import quote

from pkgdiff.sources.base import HttpSource

NPM_REGISTRY = "https://registry.npmjs.org"


class NpmSource(HttpSource):
    source_id = "npm"

    def __init__(self, registry: str = NPM_REGISTRY, **kwargs) -> None:
        super().__init__(**kwargs)
        self.registry = registry.rstrip("/")

    def tarball_url(self, package: str, version: str) -> str:
        # Scoped packages keep the scope in the path but not in the file name:
        # @scope/pkg -> <registry>/@scope/pkg/-/pkg-1.0.0.tgz
        unscoped = package.split("/", 1)[1] if "/" in package else package
        return f"{self.registry}/{quote(package, safe='@/')}/-/{quote(unscoped)}-{quote(version)}.tgz"

    async def fetch_archive(self, package: str, version: str) -> bytes:
        return await self._get_bytes(self.tarball_url(package, version))
