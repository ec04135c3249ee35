"""Data models for extracted archives."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional


class EntryKind(str, Enum):
    FILE = "file"
    DIRECTORY = "directory"


@dataclass(frozen=True, slots=True)
class ArchiveEntry:
    """A single file or directory of an extracted package, keyed by its path."""

    kind: EntryKind
    content: str = ""

    @property
    def is_file(self) -> bool:
        return self.kind is EntryKind.FILE

    @property
    def is_directory(self) -> bool:
        return self.kind is EntryKind.DIRECTORY


# Normalized path (no leading slash, no trailing slash on directories) -> entry.
ExtractedPackage = Mapping[str, ArchiveEntry]


def file_content(files: ExtractedPackage, path: str) -> Optional[str]:
    """Return the text of the file at *path*, or None if it is absent or a directory."""
    entry = files.get(path)
    if entry is None or not entry.is_file:
        return None
    return entry.content
