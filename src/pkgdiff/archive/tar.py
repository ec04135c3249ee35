"""Tar archive parser over an immutable byte view.

The header layout is described as data (``HeaderField`` entries) and applied
to ``memoryview`` slices, so every offset can be checked on its own.

Parsing is lenient by default: the walk stops at the first all-zero block and
anything after it is never inspected. A member whose declared content runs
past the end of the buffer, or whose size field is not a number, ends the walk
with a warning and the members read so far are returned. Pass ``strict=True``
to get a ``MalformedArchiveError`` instead.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, NamedTuple, Optional

from pkgdiff.archive.models import ArchiveEntry, EntryKind
from pkgdiff.archive.paths import ensure_directories, normalize_path

logger = logging.getLogger(__name__)

BLOCK_SIZE = 512
_ZERO_BLOCK = bytes(BLOCK_SIZE)


class MalformedArchiveError(Exception):
    """Raised in strict mode when a header or content region cannot be read."""


class HeaderField(NamedTuple):
    name: str
    offset: int
    width: int

    @property
    def end(self) -> int:
        return self.offset + self.width


NAME = HeaderField("name", 0, 100)
MODE = HeaderField("mode", 100, 8)
UID = HeaderField("uid", 108, 8)
GID = HeaderField("gid", 116, 8)
SIZE = HeaderField("size", 124, 12)
MTIME = HeaderField("mtime", 136, 12)
CHKSUM = HeaderField("chksum", 148, 8)
TYPEFLAG = HeaderField("typeflag", 156, 1)
LINKNAME = HeaderField("linkname", 157, 100)
MAGIC = HeaderField("magic", 257, 6)
VERSION = HeaderField("version", 263, 2)
UNAME = HeaderField("uname", 265, 32)
GNAME = HeaderField("gname", 297, 32)
DEVMAJOR = HeaderField("devmajor", 329, 8)
DEVMINOR = HeaderField("devminor", 337, 8)
PREFIX = HeaderField("prefix", 345, 155)

HEADER_LAYOUT = (
    NAME, MODE, UID, GID, SIZE, MTIME, CHKSUM, TYPEFLAG,
    LINKNAME, MAGIC, VERSION, UNAME, GNAME, DEVMAJOR, DEVMINOR, PREFIX,
)

# read_field() cuts at the first NUL, so a NUL typeflag reads as b"".
_REGULAR_TYPES = frozenset({b"0", b"", b"7"})
_DIRECTORY_TYPE = b"5"
_GNU_LONGNAME = b"L"
_GNU_LONGLINK = b"K"
_PAX_HEADER = b"x"
_PAX_GLOBAL = b"g"
_META_TYPES = frozenset({_GNU_LONGNAME, _GNU_LONGLINK, _PAX_HEADER, _PAX_GLOBAL})
_OCTAL_DIGITS = frozenset(b"01234567")


class MemberKind(str, Enum):
    FILE = "file"
    DIRECTORY = "directory"
    OTHER = "other"  # links, devices, fifos


@dataclass(frozen=True)
class TarMember:
    """A raw archive member: full name as stored, kind, and content bytes."""

    name: str
    kind: MemberKind
    data: bytes = b""


def field_bytes(block: memoryview, field: HeaderField) -> bytes:
    """Return the raw bytes of *field* in a header *block*."""
    return bytes(block[field.offset:field.end])


def read_field(block: memoryview, field: HeaderField) -> bytes:
    """Return *field* from *block*, cut at the first NUL byte."""
    raw = field_bytes(block, field)
    nul = raw.find(b"\0")
    return raw if nul < 0 else raw[:nul]


def parse_size(raw: bytes) -> int:
    """Decode a numeric header field: octal ASCII, or GNU base-256."""
    if raw and raw[0] & 0x80:
        value = raw[0] & 0x7F
        for byte in raw[1:]:
            value = (value << 8) | byte
        return value
    text = raw.split(b"\0", 1)[0].strip(b" ")
    if not text:
        return 0
    if not set(text) <= _OCTAL_DIGITS:
        raise MalformedArchiveError(f"Invalid octal number in header: {raw!r}")
    return int(text, 8)


def parse_pax_records(data: bytes) -> Dict[str, str]:
    """Parse ``"<len> <key>=<value>\\n"`` records of a pax extended header."""
    records: Dict[str, str] = {}
    pos = 0
    while pos < len(data):
        space = data.find(b" ", pos)
        if space < 0:
            break
        try:
            length = int(data[pos:space])
        except ValueError:
            break
        if length <= 0:
            break
        record = data[space + 1:pos + length]
        pos += length
        if record.endswith(b"\n"):
            record = record[:-1]
        key, sep, value = record.partition(b"=")
        if sep:
            records[key.decode("utf-8", "replace")] = value.decode("utf-8", "replace")
    return records


def _header_name(header: memoryview) -> str:
    name = read_field(header, NAME)
    # POSIX ustar only; old GNU headers reuse the prefix area for timestamps.
    if read_field(header, MAGIC) == b"ustar":
        prefix = read_field(header, PREFIX)
        if prefix:
            name = prefix + b"/" + name
    return name.decode("utf-8", "replace")


def _member_kind(typeflag: bytes, name: str) -> MemberKind:
    if typeflag == _DIRECTORY_TYPE:
        return MemberKind.DIRECTORY
    if typeflag in _REGULAR_TYPES:
        # Pre-POSIX archives mark directories with a trailing slash only.
        return MemberKind.DIRECTORY if name.endswith("/") else MemberKind.FILE
    return MemberKind.OTHER


def _padded(size: int) -> int:
    return -(-size // BLOCK_SIZE) * BLOCK_SIZE


def iter_members(raw: bytes, *, strict: bool = False) -> Iterator[TarMember]:
    """Yield the members of the uncompressed tar archive *raw* in stored order."""
    view = memoryview(raw)
    total = len(view)
    offset = 0
    pending_name: Optional[str] = None
    pending_size: Optional[int] = None

    while offset + BLOCK_SIZE <= total:
        header = view[offset:offset + BLOCK_SIZE]
        if header == _ZERO_BLOCK:
            return

        typeflag = read_field(header, TYPEFLAG)
        try:
            size = parse_size(field_bytes(header, SIZE))
        except MalformedArchiveError:
            if strict:
                raise
            logger.warning("Invalid size field in header at offset %d; stopping", offset)
            return
        if typeflag not in _META_TYPES and pending_size is not None:
            size = pending_size

        data_start = offset + BLOCK_SIZE
        data_end = data_start + size
        if data_end > total:
            message = (
                f"Member at offset {offset} declares {size} bytes "
                f"but only {total - data_start} remain"
            )
            if strict:
                raise MalformedArchiveError(message)
            logger.warning("%s; stopping", message)
            return
        data = view[data_start:data_end]
        offset = data_start + _padded(size)

        if typeflag == _GNU_LONGNAME:
            pending_name = bytes(data).split(b"\0", 1)[0].decode("utf-8", "replace")
            continue
        if typeflag == _PAX_HEADER:
            records = parse_pax_records(bytes(data))
            if "path" in records:
                pending_name = records["path"]
            if "size" in records and records["size"].isdigit():
                pending_size = int(records["size"])
            continue
        if typeflag in _META_TYPES:
            continue

        name = pending_name if pending_name is not None else _header_name(header)
        pending_name = None
        pending_size = None
        kind = _member_kind(typeflag, name)
        yield TarMember(name=name, kind=kind, data=bytes(data) if kind is MemberKind.FILE else b"")


def decode_text(data: bytes) -> str:
    """Decode file content as UTF-8; undecodable bytes become U+FFFD."""
    return data.decode("utf-8", errors="replace")


def parse_archive(raw: bytes, *, strict: bool = False) -> Dict[str, ArchiveEntry]:
    """Parse *raw* tar bytes into a normalized path -> ArchiveEntry mapping.

    Every ancestor directory of every path is present in the result, whether
    or not the archive stored it.
    """
    entries: Dict[str, ArchiveEntry] = {}
    for member in iter_members(raw, strict=strict):
        if member.kind is MemberKind.OTHER:
            continue
        is_directory = member.kind is MemberKind.DIRECTORY
        path = normalize_path(member.name, is_directory)
        if not path:
            continue
        if is_directory:
            entries[path] = ArchiveEntry(EntryKind.DIRECTORY)
        else:
            entries[path] = ArchiveEntry(EntryKind.FILE, decode_text(member.data))
    return ensure_directories(entries)
