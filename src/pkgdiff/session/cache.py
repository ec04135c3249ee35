"""Single-flight extraction cache keyed by (source, package, version).

The in-flight ``asyncio.Task`` itself is stored, so concurrent requests for
the same key await one fetch + extraction. Failed tasks are evicted so the
next request starts over; successful ones are kept for the cache's lifetime.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Dict, NamedTuple, Optional

from pkgdiff.archive.models import ExtractedPackage
from pkgdiff.sources.registry import SourceRegistry

logger = logging.getLogger(__name__)


class CacheKey(NamedTuple):
    source: str
    package: str
    version: str


class ExtractionCache:
    """Memoizes fetch + decompress + parse + normalize per CacheKey.

    Without an *extractor*, each source's own ``extract`` is used. Bound to
    the event loop it is first used on.
    """

    def __init__(
        self,
        sources: SourceRegistry,
        extractor: Optional[Callable[[bytes], ExtractedPackage]] = None,
    ) -> None:
        self._sources = sources
        self._extractor = extractor
        self._tasks: Dict[CacheKey, asyncio.Task] = {}

    def __contains__(self, key: object) -> bool:
        return key in self._tasks

    def __len__(self) -> int:
        return len(self._tasks)

    def clear(self) -> None:
        self._tasks.clear()

    async def get_extracted(self, source: str, package: str, version: str) -> ExtractedPackage:
        """Return the extracted package, starting the extraction at most once per key.

        :raises UnsupportedRegistryError: before any I/O if *source* is unknown.
        """
        self._sources.get(source)
        key = CacheKey(source, package, version)
        task = self._tasks.get(key)
        if task is None:
            task = asyncio.ensure_future(self._extract(key))
            self._tasks[key] = task
            task.add_done_callback(lambda done: self._evict_failed(key, done))
        # shield: a cancelled caller must not cancel the shared extraction
        return await asyncio.shield(task)

    async def _extract(self, key: CacheKey) -> ExtractedPackage:
        start = time.perf_counter()
        data = await self._sources.fetch_archive(key.source, key.package, key.version)
        extractor = self._extractor or self._sources.get(key.source).extract
        files = await asyncio.to_thread(extractor, data)
        elapsed = (time.perf_counter() - start) * 1000
        logger.info(
            "Extracted %s/%s@%s: %d entries in %.0fms",
            key.source, key.package, key.version, len(files), elapsed,
        )
        return files

    def _evict_failed(self, key: CacheKey, task: asyncio.Task) -> None:
        if not task.cancelled() and task.exception() is None:
            return
        if self._tasks.get(key) is task:
            del self._tasks[key]
            logger.debug("Evicted failed extraction %s", key)
