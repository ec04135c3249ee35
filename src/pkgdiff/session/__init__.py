"""Session layer — extraction cache and the request/response boundary."""

from pkgdiff.session.cache import CacheKey, ExtractionCache
from pkgdiff.session.messages import (
    ErrorResponse,
    FileDiffResult,
    GetFileDiff,
    Prefetch,
    PrefetchResult,
    StartDiff,
    TreeDiffResult,
)
from pkgdiff.session.session import DiffOutcome, DiffSession, SessionError

__all__ = [
    "CacheKey",
    "DiffOutcome",
    "DiffSession",
    "ErrorResponse",
    "ExtractionCache",
    "FileDiffResult",
    "GetFileDiff",
    "Prefetch",
    "PrefetchResult",
    "SessionError",
    "StartDiff",
    "TreeDiffResult",
]
