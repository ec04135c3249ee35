"""Package sources — registry clients that fetch package archives."""

from pkgdiff.sources.base import (
    HttpSource,
    NetworkError,
    NotFoundError,
    PackageSource,
    SourceError,
    UnsupportedRegistryError,
)
from pkgdiff.sources.crates import CratesSource
from pkgdiff.sources.npm import NpmSource
from pkgdiff.sources.pypi import PyPISource
from pkgdiff.sources.registry import SourceRegistry, build_source_registry
from pkgdiff.sources.rubygems import RubyGemsSource

__all__ = [
    "CratesSource",
    "HttpSource",
    "NetworkError",
    "NotFoundError",
    "NpmSource",
    "PackageSource",
    "PyPISource",
    "RubyGemsSource",
    "SourceError",
    "SourceRegistry",
    "UnsupportedRegistryError",
    "build_source_registry",
]
