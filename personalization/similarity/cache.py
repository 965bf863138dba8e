"""
Recommendation cache: per-viewer result lists with a time-to-live and singleflight fill.

Entries older than the TTL are treated as absent. Invalidating a viewer removes
the entry and bumps the viewer's generation, so a computation that started
before the invalidation cannot store its (now stale) result.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional

from ..models.content import ContentItem

logger = logging.getLogger(__name__)

Builder = Callable[[], Awaitable[List[ContentItem]]]


@dataclass(frozen=True)
class CacheEntry:
    """One viewer's cached recommendation list."""

    items: List[ContentItem]
    computed_at: float


class RecommendationCache:
    """
    Viewer id -> CacheEntry with TTL expiry.

    Usage:
        cache = RecommendationCache(ttl_seconds=900)
        items = await cache.get_or_compute("u1", build)
        cache.invalidate("u1")
    """

    def __init__(self, ttl_seconds: float = 900.0, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._generations: Dict[str, int] = {}
        self._inflight: Dict[str, asyncio.Task] = {}

    def get(self, viewer_id: str) -> Optional[CacheEntry]:
        entry = self._entries.get(viewer_id)
        if entry is None:
            return None
        if self._clock() - entry.computed_at > self.ttl_seconds:
            self._entries.pop(viewer_id, None)
            logger.debug("[rec_cache] EXPIRED viewer_id=%s", viewer_id)
            return None
        return entry

    def set(self, viewer_id: str, items: List[ContentItem]) -> CacheEntry:
        entry = CacheEntry(items=list(items), computed_at=self._clock())
        self._entries[viewer_id] = entry
        return entry

    def invalidate(self, viewer_id: str) -> bool:
        """Drop the viewer's entry; returns True when one was present."""
        self._generations[viewer_id] = self._generations.get(viewer_id, 0) + 1
        return self._entries.pop(viewer_id, None) is not None

    def clear(self) -> None:
        for viewer_id in list(self._entries):
            self.invalidate(viewer_id)

    def __len__(self) -> int:
        return len(self._entries)

    async def get_or_compute(self, viewer_id: str, builder: Builder) -> List[ContentItem]:
        """
        Cached list for viewer_id, or the result of builder().

        Concurrent callers for the same viewer share one in-flight builder call
        and all receive its result (or its exception). The builder runs as its
        own task, so cancelling any one caller leaves the others waiting on it.
        """
        entry = self.get(viewer_id)
        if entry is not None:
            return entry.items

        task = self._inflight.get(viewer_id)
        if task is None:
            generation = self._generations.get(viewer_id, 0)
            task = asyncio.ensure_future(self._fill(viewer_id, builder, generation))
            task.add_done_callback(_retrieve_exception)
            self._inflight[viewer_id] = task
        return await asyncio.shield(task)

    async def _fill(self, viewer_id: str, builder: Builder, generation: int) -> List[ContentItem]:
        try:
            items = await builder()
        finally:
            if self._inflight.get(viewer_id) is asyncio.current_task():
                del self._inflight[viewer_id]

        if self._generations.get(viewer_id, 0) == generation:
            self.set(viewer_id, items)
        else:
            logger.debug("[rec_cache] STALE_RESULT_DROPPED viewer_id=%s", viewer_id)
        return items


def _retrieve_exception(task: asyncio.Task) -> None:
    # Every caller may have been cancelled; the failure is still re-raised to any that remain.
    if not task.cancelled():
        task.exception()
