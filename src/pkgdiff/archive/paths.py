"""Path normalization, ancestor synthesis and root stripping."""

from __future__ import annotations

from typing import Dict

from pkgdiff.archive.models import ArchiveEntry, EntryKind


def normalize_path(path: str, is_directory: bool) -> str:
    """Return the canonical form of an archive member path.

    Backslashes become ``/``, leading ``./`` and ``/`` are stripped, and
    directories lose their trailing separators. ``""`` means "drop this entry".
    """
    normalized = path.replace("\\", "/")
    while normalized.startswith("./"):
        normalized = normalized[2:]
    normalized = normalized.lstrip("/")
    if normalized in ("", "."):
        return ""
    if is_directory:
        normalized = normalized.rstrip("/")
    return normalized


def ensure_directories(entries: Dict[str, ArchiveEntry]) -> Dict[str, ArchiveEntry]:
    """Add a directory entry for every missing ancestor of every path (in place)."""
    for path in list(entries):
        current = ""
        for part in path.split("/")[:-1]:
            if not part:
                break
            current = f"{current}/{part}" if current else part
            if current not in entries:
                entries[current] = ArchiveEntry(EntryKind.DIRECTORY)
    return entries


def strip_common_root(entries: Dict[str, ArchiveEntry]) -> Dict[str, ArchiveEntry]:
    """Remove a single enclosing top-level directory, e.g. ``package/`` or ``pkg-1.0.0/``.

    The mapping is returned unchanged unless every path shares one first
    segment, that segment is a directory entry, and something is left after
    stripping it.
    """
    top_level = {path.split("/", 1)[0] for path in entries}
    top_level.discard("")
    if len(top_level) != 1:
        return entries

    root = next(iter(top_level))
    root_entry = entries.get(root)
    if root_entry is None or not root_entry.is_directory:
        return entries

    prefix = f"{root}/"
    stripped = {
        path[len(prefix):]: entry
        for path, entry in entries.items()
        if path.startswith(prefix) and len(path) > len(prefix)
    }
    return stripped if stripped else entries
