"""Diff session — orchestrates extraction, tree building and file diffs.

A session owns its extraction cache. Every request gets an increasing
request id; only the most recent ``StartDiff`` is current, so callers can
drop results of superseded requests with ``is_current``.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import time
from dataclasses import dataclass
from typing import Optional, Tuple

from pkgdiff.archive.gzip import DecompressionError
from pkgdiff.archive.models import ExtractedPackage, file_content
from pkgdiff.archive.tar import MalformedArchiveError
from pkgdiff.config.schema import PkgDiffConfig
from pkgdiff.engine.linediff import diff_file
from pkgdiff.engine.models import DiffNode, FileDiff
from pkgdiff.engine.tree import DiffTreeBuilder
from pkgdiff.session.cache import ExtractionCache
from pkgdiff.session.messages import (
    ErrorResponse,
    FileDiffResult,
    GetFileDiff,
    Prefetch,
    PrefetchResult,
    Request,
    Response,
    StartDiff,
    TreeDiffResult,
)
from pkgdiff.sources.base import SourceError
from pkgdiff.sources.registry import SourceRegistry

logger = logging.getLogger(__name__)


class SessionError(Exception):
    """Raised when a session request cannot be served."""


@dataclass(frozen=True)
class DiffOutcome:
    """Result of a tree diff; keeps both extractions for later file diffs."""

    request_id: int
    tree: DiffNode
    from_files: ExtractedPackage
    to_files: ExtractedPackage
    duration_ms: float = 0.0


class DiffSession:
    """Request/response boundary of the diff engine."""

    def __init__(
        self,
        sources: SourceRegistry,
        config: Optional[PkgDiffConfig] = None,
        cache: Optional[ExtractionCache] = None,
    ) -> None:
        self.config = config or PkgDiffConfig()
        self.sources = sources
        self.cache = cache if cache is not None else ExtractionCache(sources)
        self._builder = DiffTreeBuilder(
            similarity_threshold=self.config.diff.similarity_threshold,
            basename_boost=self.config.diff.basename_boost,
        )
        self._request_ids = itertools.count(1)
        self._current_request: Optional[int] = None
        self._latest: Optional[DiffOutcome] = None

    async def __aenter__(self) -> "DiffSession":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.sources.aclose()

    # ---- request identity ----

    def next_request_id(self) -> int:
        return next(self._request_ids)

    def is_current(self, request_id: int) -> bool:
        """True if *request_id* belongs to the most recently started tree diff."""
        return request_id == self._current_request

    @property
    def latest(self) -> Optional[DiffOutcome]:
        return self._latest

    # ---- operations ----

    async def start_diff(
        self,
        source: str,
        package: str,
        from_version: str,
        to_version: str,
        *,
        request_id: Optional[int] = None,
    ) -> DiffOutcome:
        """Extract both versions concurrently, then build the diff tree."""
        if request_id is None:
            request_id = self.next_request_id()
        self.sources.get(source)
        self._current_request = request_id

        start = time.perf_counter()
        from_files, to_files = await asyncio.gather(
            self.cache.get_extracted(source, package, from_version),
            self.cache.get_extracted(source, package, to_version),
        )
        tree = await asyncio.to_thread(self._builder.build, from_files, to_files)
        elapsed = round((time.perf_counter() - start) * 1000, 2)
        logger.info(
            "Diff %s/%s %s..%s took %.2fms (+%d -%d)",
            source, package, from_version, to_version,
            elapsed, tree.added_lines, tree.removed_lines,
        )

        outcome = DiffOutcome(request_id, tree, from_files, to_files, elapsed)
        if self.is_current(request_id):
            self._latest = outcome
        return outcome

    def get_file_diff(
        self,
        path: str,
        from_content: Optional[str] = None,
        to_content: Optional[str] = None,
        old_path: Optional[str] = None,
    ) -> FileDiff:
        """Diff one file pair.

        Given no contents, both sides come from the latest tree diff; for a
        renamed file the old path is taken from the tree unless *old_path* is
        given.
        """
        if from_content is None and to_content is None:
            from_content, to_content, old_path = self._lookup(path, old_path)
        if from_content is None and to_content is None:
            raise SessionError(f"No content for {path!r} in either version")
        return diff_file(path, from_content, to_content, old_path=old_path)

    def _lookup(
        self, path: str, old_path: Optional[str]
    ) -> Tuple[Optional[str], Optional[str], Optional[str]]:
        if self._latest is None:
            raise SessionError("No tree diff available; start a diff first")
        if old_path is None:
            node = self._latest.tree.find(path)
            if node is not None:
                old_path = node.old_path
        from_content = file_content(self._latest.from_files, old_path or path)
        to_content = file_content(self._latest.to_files, path)
        return from_content, to_content, old_path

    async def prefetch(self, source: str, package: str, from_version: str, to_version: str) -> None:
        """Warm the cache for both versions. Failures are logged, not raised."""
        results = await asyncio.gather(
            self.cache.get_extracted(source, package, from_version),
            self.cache.get_extracted(source, package, to_version),
            return_exceptions=True,
        )
        for version, result in zip((from_version, to_version), results):
            if isinstance(result, Exception):
                logger.warning("Prefetch of %s/%s@%s failed: %s", source, package, version, result)

    # ---- message dispatch ----

    async def handle(self, request: Request) -> Response:
        """Serve one request message; every failure becomes an ErrorResponse."""
        request_id = self.next_request_id()
        try:
            if isinstance(request, StartDiff):
                outcome = await self.start_diff(
                    request.source,
                    request.package,
                    request.from_version,
                    request.to_version,
                    request_id=request_id,
                )
                return TreeDiffResult(request_id, outcome.tree, outcome.duration_ms)
            if isinstance(request, GetFileDiff):
                diff = self.get_file_diff(
                    request.path, request.from_content, request.to_content, request.old_path
                )
                return FileDiffResult(request_id, diff.path, diff.text, diff.is_textually_different)
            if isinstance(request, Prefetch):
                await self.prefetch(
                    request.source, request.package, request.from_version, request.to_version
                )
                return PrefetchResult(request_id)
            raise SessionError(f"Unknown request type: {type(request).__name__}")
        except (SourceError, DecompressionError, MalformedArchiveError, SessionError) as exc:
            logger.error("Request %d failed: %s", request_id, exc)
            return ErrorResponse(request_id, str(exc))
        except Exception as exc:
            logger.exception("Request %d failed unexpectedly", request_id)
            return ErrorResponse(request_id, f"Internal error: {exc}")
