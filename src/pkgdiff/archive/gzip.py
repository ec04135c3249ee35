"""Gzip container decoding for package archives."""

from __future__ import annotations

import gzip
import zlib

_GZIP_MAGIC = b"\x1f\x8b"


class DecompressionError(Exception):
    """Raised when the input is not a valid gzip stream."""


def is_gzip(data: bytes) -> bool:
    """Return True if *data* starts with the gzip magic bytes."""
    return data[:2] == _GZIP_MAGIC


def decompress(data: bytes) -> bytes:
    """Return the raw archive bytes wrapped by the gzip stream *data*.

    Multi-member streams are concatenated, as ``gzip -d`` does.
    """
    if not is_gzip(data):
        raise DecompressionError("Input is not gzip data (bad magic bytes)")
    try:
        return gzip.decompress(data)
    except (OSError, EOFError, zlib.error) as exc:
        raise DecompressionError(f"Gzip decompression failed: {exc}") from exc
