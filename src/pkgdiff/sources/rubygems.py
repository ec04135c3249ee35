"""RubyGems source.

A ``.gem`` is an uncompressed tar holding ``metadata.gz``, ``checksums.yaml.gz``
and ``data.tar.gz``. The data tar is the package's file tree; the metadata and
checksums are added to it as ``metadata.yml`` and ``checksums.yaml``.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Dict, Optional, Tuple
from urllib.parse import quote

from pkgdiff.archive.gzip import DecompressionError, decompress, is_gzip
from pkgdiff.archive.models import ArchiveEntry, EntryKind, ExtractedPackage
from pkgdiff.archive.paths import strip_common_root
from pkgdiff.archive.tar import MalformedArchiveError, MemberKind, decode_text, iter_members, parse_archive
from pkgdiff.sources.base import HttpSource, SourceError

logger = logging.getLogger(__name__)

RUBYGEMS_URL = "https://rubygems.org"

DATA_MEMBERS = ("data.tar.gz", "data.tar")

# gem member -> path of the decoded file in the extracted package
AUX_MEMBERS = {
    "metadata.gz": "metadata.yml",
    "checksums.yaml.gz": "checksums.yaml",
    "checksums.yaml": "checksums.yaml",
}


def _decode_aux(data: bytes) -> str:
    return decode_text(decompress(data) if is_gzip(data) else data)


def unwrap_gem(gem: bytes) -> Tuple[bytes, Dict[str, ArchiveEntry]]:
    """Split a ``.gem`` file into its data tar and its decoded metadata files.

    The data tar is returned as stored, gzip-compressed or not.
    """
    data: Optional[bytes] = None
    aux: Dict[str, ArchiveEntry] = {}
    try:
        for member in iter_members(gem, strict=True):
            if member.kind is not MemberKind.FILE:
                continue
            if member.name in DATA_MEMBERS:
                data = member.data
            elif member.name in AUX_MEMBERS:
                aux[AUX_MEMBERS[member.name]] = ArchiveEntry(EntryKind.FILE, _decode_aux(member.data))
    except (MalformedArchiveError, DecompressionError) as exc:
        raise SourceError(f"Corrupt gem file: {exc}") from exc
    if data is None:
        raise SourceError("data.tar.gz or data.tar not found in gem file")
    return data, aux


def extract_gem(gem: bytes) -> ExtractedPackage:
    """Extract a ``.gem`` file: the data tree plus ``metadata.yml`` and ``checksums.yaml``."""
    data, aux = unwrap_gem(gem)
    raw = decompress(data) if is_gzip(data) else data
    entries = strip_common_root(parse_archive(raw))
    entries.update(aux)
    logger.debug("Extracted gem: %d entries, %d metadata files", len(entries), len(aux))
    return MappingProxyType(entries)


class RubyGemsSource(HttpSource):
    source_id = "rubygems"

    def __init__(self, base_url: str = RUBYGEMS_URL, **kwargs) -> None:
        super().__init__(**kwargs)
        self.base_url = base_url.rstrip("/")

    def gem_url(self, package: str, version: str) -> str:
        return f"{self.base_url}/downloads/{quote(package)}-{quote(version)}.gem"

    async def fetch_archive(self, package: str, version: str) -> bytes:
        """Return the whole ``.gem`` file; see :meth:`extract`."""
        return await self._get_bytes(self.gem_url(package, version))

    def extract(self, data: bytes) -> ExtractedPackage:
        return extract_gem(data)
