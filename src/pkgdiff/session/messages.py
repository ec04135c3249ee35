"""Request/response messages of the diff session boundary."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from pkgdiff.engine.models import DiffNode


@dataclass(frozen=True)
class StartDiff:
    source: str
    package: str
    from_version: str
    to_version: str


@dataclass(frozen=True)
class GetFileDiff:
    """Diff one file. Without contents, the session's latest tree diff supplies them."""

    path: str
    from_content: Optional[str] = None
    to_content: Optional[str] = None
    old_path: Optional[str] = None


@dataclass(frozen=True)
class Prefetch:
    source: str
    package: str
    from_version: str
    to_version: str


@dataclass(frozen=True)
class TreeDiffResult:
    request_id: int
    tree: DiffNode
    duration_ms: float = 0.0


@dataclass(frozen=True)
class FileDiffResult:
    request_id: int
    path: str
    text: str
    is_textually_different: bool


@dataclass(frozen=True)
class PrefetchResult:
    request_id: int


@dataclass(frozen=True)
class ErrorResponse:
    request_id: int
    message: str


Request = Union[StartDiff, GetFileDiff, Prefetch]
Response = Union[TreeDiffResult, FileDiffResult, PrefetchResult, ErrorResponse]
