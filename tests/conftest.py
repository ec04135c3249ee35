"""Shared test fixtures — in-memory archives and a fake package source."""

from __future__ import annotations

import asyncio
import gzip
import io
import tarfile
from typing import Callable, Dict, Optional

import pytest

from pkgdiff.sources.base import NotFoundError, PackageSource
from pkgdiff.sources.registry import SourceRegistry

# path -> text content, or None for a directory entry
Tree = Dict[str, Optional[str]]


def _build_tar(files: Tree, fmt: int = tarfile.PAX_FORMAT) -> bytes:
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w", format=fmt) as tar:
        for name, content in files.items():
            info = tarfile.TarInfo(name)
            if content is None:
                info.type = tarfile.DIRTYPE
                info.mode = 0o755
                tar.addfile(info)
            else:
                data = content.encode("utf-8")
                info.size = len(data)
                info.mode = 0o644
                tar.addfile(info, io.BytesIO(data))
    return buf.getvalue()


@pytest.fixture
def make_tar() -> Callable[..., bytes]:
    """Build an uncompressed tar archive from a path -> content dict."""
    return _build_tar


@pytest.fixture
def make_tgz() -> Callable[..., bytes]:
    """Build a gzip-compressed tar archive from a path -> content dict."""

    def build(files: Tree, fmt: int = tarfile.PAX_FORMAT) -> bytes:
        return gzip.compress(_build_tar(files, fmt))

    return build


@pytest.fixture
def raw_header() -> Callable[..., bytes]:
    """Build a single hand-rolled 512-byte tar header (checksum left blank)."""

    def build(name: bytes, size: bytes = b"00000000000\0", typeflag: bytes = b"0") -> bytes:
        block = bytearray(512)
        block[0:len(name)] = name
        block[124:124 + len(size)] = size
        block[156:157] = typeflag
        block[257:263] = b"ustar\0"
        return bytes(block)

    return build


class FakeSource(PackageSource):
    """In-memory source: serves prebuilt archives and counts fetches."""

    source_id = "fake"

    def __init__(self, archives: Dict[str, bytes], gates: Optional[Dict[str, asyncio.Event]] = None):
        self.archives = archives
        self.gates = gates or {}
        self.fetches: Dict[str, int] = {}
        self.closed = False

    async def fetch_archive(self, package: str, version: str) -> bytes:
        self.fetches[version] = self.fetches.get(version, 0) + 1
        gate = self.gates.get(version)
        if gate is not None:
            await gate.wait()
        try:
            return self.archives[version]
        except KeyError:
            raise NotFoundError(f"{package}@{version} not found") from None

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def package_versions(make_tgz) -> Dict[str, bytes]:
    """Three versions of a small package, wrapped in ``package/`` like npm tarballs."""
    return {
        "1.0.0": make_tgz({
            "package/package.json": '{"name": "demo", "version": "1.0.0"}\n',
            "package/README.md": "# demo\n\nA demo package.\n",
            "package/lib/index.js": "module.exports = 1;\n",
            "package/lib/util.js": "exports.a = 1;\nexports.b = 2;\nexports.c = 3;\nexports.d = 4;\n",
        }),
        "2.0.0": make_tgz({
            "package/package.json": '{"name": "demo", "version": "2.0.0"}\n',
            "package/README.md": "# demo\n\nA demo package.\n",
            "package/lib/index.js": "module.exports = 2;\n",
            "package/src/util.js": "exports.a = 1;\nexports.b = 2;\nexports.c = 3;\nexports.e = 5;\n",
        }),
        "3.0.0": make_tgz({
            "package/package.json": '{"name": "demo", "version": "3.0.0"}\n',
            "package/README.md": "# demo\n",
        }),
    }


@pytest.fixture
def fake_source(package_versions) -> FakeSource:
    return FakeSource(package_versions)


@pytest.fixture
def fake_registry(fake_source) -> SourceRegistry:
    return SourceRegistry([fake_source])


@pytest.fixture
def make_source(package_versions) -> Callable[..., FakeSource]:
    """Build a FakeSource over the sample versions, optionally gating some of them."""

    def build(gates: Optional[Dict[str, asyncio.Event]] = None) -> FakeSource:
        return FakeSource(package_versions, gates)

    return build
