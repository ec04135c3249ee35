"""Data models for diff trees and file diffs."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional

from pkgdiff.archive.models import EntryKind


class DiffStatus(str, Enum):
    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"
    UNCHANGED = "unchanged"
    RENAMED = "renamed"


# to-path -> from-path; each side used at most once.
RenameMap = Dict[str, str]


@dataclass(frozen=True, slots=True)
class DiffCounts:
    """Number of inserted and deleted lines between two contents."""

    added: int = 0
    removed: int = 0

    @property
    def total(self) -> int:
        return self.added + self.removed


@dataclass
class DiffNode:
    """A file or directory in the diff tree.

    Directory counts are the sum of their children's counts and their status
    is derived from the children; the root node has path ``"/"``.
    """

    path: str
    kind: EntryKind
    status: DiffStatus = DiffStatus.UNCHANGED
    old_path: Optional[str] = None  # set on renames
    added_lines: int = 0
    removed_lines: int = 0
    children: Optional[List["DiffNode"]] = None

    @property
    def name(self) -> str:
        return self.path.rsplit("/", 1)[-1] if self.path != "/" else "/"

    @property
    def is_directory(self) -> bool:
        return self.kind is EntryKind.DIRECTORY

    def walk(self) -> Iterator["DiffNode"]:
        """Yield this node and all descendants, depth-first, in tree order."""
        yield self
        for child in self.children or ():
            yield from child.walk()

    def stats(self) -> Dict[DiffStatus, int]:
        """Count the files below this node by status."""
        counts = {s: 0 for s in DiffStatus}
        for node in self.walk():
            if not node.is_directory:
                counts[node.status] += 1
        return counts

    def find(self, path: str) -> Optional["DiffNode"]:
        """Return the node at *path*, or None."""
        for node in self.walk():
            if node.path == path:
                return node
        return None


@dataclass(frozen=True)
class FileDiff:
    """Rendered diff of one file pair."""

    path: str
    text: str
    is_textually_different: bool
    old_path: Optional[str] = None
    counts: DiffCounts = field(default_factory=DiffCounts)
