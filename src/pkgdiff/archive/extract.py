"""Extraction pipeline: gzip -> tar -> root stripping."""

from __future__ import annotations

import logging
from types import MappingProxyType

from pkgdiff.archive.gzip import decompress
from pkgdiff.archive.models import ExtractedPackage
from pkgdiff.archive.paths import strip_common_root
from pkgdiff.archive.tar import parse_archive

logger = logging.getLogger(__name__)


def extract_package(data: bytes, *, strict: bool = False) -> ExtractedPackage:
    """Turn a ``.tgz``-style package archive into a read-only path -> entry mapping.

    Raises DecompressionError for invalid gzip data; MalformedArchiveError only
    in *strict* mode.
    """
    raw = decompress(data)
    entries = strip_common_root(parse_archive(raw, strict=strict))
    logger.debug(
        "Extracted %d entries (%d compressed bytes, %d raw bytes)",
        len(entries), len(data), len(raw),
    )
    return MappingProxyType(entries)
