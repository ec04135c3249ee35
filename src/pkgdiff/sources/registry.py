"""Source registry — maps source ids to PackageSource instances."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from pkgdiff.config.schema import PkgDiffConfig
from pkgdiff.sources.base import PackageSource, UnsupportedRegistryError
from pkgdiff.sources.crates import CratesSource
from pkgdiff.sources.npm import NpmSource
from pkgdiff.sources.pypi import PyPISource
from pkgdiff.sources.rubygems import RubyGemsSource


class SourceRegistry:
    """Central store for the package sources a session may use."""

    def __init__(self, sources: Iterable[PackageSource] = ()) -> None:
        self._sources: Dict[str, PackageSource] = {}
        for source in sources:
            self.register(source)

    def register(self, source: PackageSource) -> None:
        self._sources[source.source_id] = source

    @property
    def source_ids(self) -> List[str]:
        return sorted(self._sources)

    def get(self, source_id: str) -> PackageSource:
        try:
            return self._sources[source_id]
        except KeyError:
            known = ", ".join(self.source_ids) or "none"
            raise UnsupportedRegistryError(
                f"Unsupported registry: {source_id!r} (known: {known})"
            ) from None

    def __contains__(self, source_id: object) -> bool:
        return source_id in self._sources

    async def fetch_archive(self, source_id: str, package: str, version: str) -> bytes:
        return await self.get(source_id).fetch_archive(package, version)

    async def aclose(self) -> None:
        for source in self._sources.values():
            await source.aclose()


def build_source_registry(config: Optional[PkgDiffConfig] = None) -> SourceRegistry:
    """Create a registry with the npm, crates, pypi and rubygems sources."""
    cfg = (config or PkgDiffConfig()).sources
    return SourceRegistry([
        NpmSource(cfg.npm_registry, timeout=cfg.timeout),
        CratesSource(cfg.crates_static, timeout=cfg.timeout),
        PyPISource(cfg.pypi_url, timeout=cfg.timeout),
        RubyGemsSource(cfg.rubygems_url, timeout=cfg.timeout),
    ])
