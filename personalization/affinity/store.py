"""
Affinity Profile Store: per-viewer accumulation of category preference from reading events.

Read-modify-write of a viewer's profile is serialized with a per-viewer lock;
different viewers proceed independently (there is no global lock). Updates are
computed on a copy and only become visible once the persistence port accepted
them, so a failed, timed out, or cancelled save leaves the previous state in place.
A save abandoned by timeout or cancellation may still finish inside the store,
so the previous profile is written back after it.
"""

import asyncio
import logging
from datetime import datetime
from typing import Dict, Iterable, Optional, Set

from ..errors import ProfileStoreError
from ..models.config import EngineConfig, resolve_config
from ..models.profile import AffinityProfile, category_trend, completion_rate
from ..models.reading import ReadingEvent
from ..utils.time import parse_timestamp, utc_now
from .persistence import InMemoryProfilePersistence, ProfilePersistence

logger = logging.getLogger(__name__)


def apply_reading_event(
    profile: AffinityProfile,
    event: ReadingEvent,
    config: EngineConfig,
    now: Optional[datetime] = None,
) -> AffinityProfile:
    """
    Return a new profile with event folded in; profile itself is not modified.

    For each category of the event:
        base = match_weight (completed) or match_weight * 0.5 (abandoned)
        time_bonus = min(time_spent / full_read_seconds, 1) * time_weight
        delta = base + time_bonus + trend * trend_weight + completion_rate * completion_weight
        new = min(old * time_decay + delta, max_boost)
    Trend and completion rate come from the trend window of the history before this event.
    """
    engagement = min(event.time_spent_seconds / config.full_read_seconds, 1.0)
    recent = profile.recent_events(config.trend_window_days, now or event.timestamp)

    scores = dict(profile.category_scores)
    for category in dict.fromkeys(event.categories):
        base = config.match_weight if event.completed else config.match_weight * 0.5
        time_bonus = engagement * config.time_weight
        trend = category_trend(recent, category)
        rate = completion_rate(recent, category)
        delta = base + time_bonus + trend * config.trend_weight + rate * config.completion_weight
        old = scores.get(category, 0.0)
        scores[category] = max(0.0, min(old * config.time_decay + delta, config.max_boost))

    last_read = [event.item_id] + [i for i in profile.last_read_items if i != event.item_id]
    history = [event] + list(profile.history)
    return AffinityProfile(
        viewer_id=profile.viewer_id,
        category_scores=scores,
        last_read_items=last_read[: config.last_read_limit],
        history=history[: config.history_limit],
    )


class AffinityProfileStore:
    """
    Per-viewer affinity profiles backed by a ProfilePersistence port.

    Usage:
        store = AffinityProfileStore(JsonProfilePersistence("data/profiles.json"))
        await store.record_reading_event("u1", "post-9", ["tech"], 200, True)
        profile = await store.get_profile("u1")
    """

    def __init__(
        self,
        persistence: Optional[ProfilePersistence] = None,
        config: Optional[EngineConfig] = None,
        default_timeout: Optional[float] = None,
    ):
        self.persistence = persistence if persistence is not None else InMemoryProfilePersistence()
        self.config = resolve_config(config)
        self.default_timeout = default_timeout
        self._profiles: Dict[str, AffinityProfile] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._restores: Set[asyncio.Future] = set()

    def _lock(self, viewer_id: str) -> asyncio.Lock:
        if viewer_id not in self._locks:
            self._locks[viewer_id] = asyncio.Lock()
        return self._locks[viewer_id]

    def _timeout(self, timeout: Optional[float]) -> Optional[float]:
        return timeout if timeout is not None else self.default_timeout

    async def _load(self, viewer_id: str, timeout: Optional[float]) -> AffinityProfile:
        cached = self._profiles.get(viewer_id)
        if cached is not None:
            return cached
        try:
            loaded = await asyncio.wait_for(self.persistence.load(viewer_id), self._timeout(timeout))
        except asyncio.TimeoutError:
            raise
        except Exception as e:
            raise ProfileStoreError(viewer_id, "load", e) from e
        profile = loaded if loaded is not None else AffinityProfile.empty(viewer_id)
        self._profiles[viewer_id] = profile
        return profile

    async def _restore(self, viewer_id: str, previous: AffinityProfile) -> None:
        """
        Write the previous profile back after an abandoned save.

        A timed out or cancelled save may still complete inside the store (a
        worker thread, a request already on the wire). The restore runs as its
        own task so a second cancellation of the caller does not stop it.
        """
        restore = asyncio.ensure_future(self.persistence.save(viewer_id, previous))
        self._restores.add(restore)
        restore.add_done_callback(self._restores.discard)
        try:
            await asyncio.shield(restore)
        except Exception as e:
            logger.error("[profile] RESTORE_FAILED viewer_id=%s error=%s", viewer_id, e)
        else:
            logger.info("[profile] RESTORED viewer_id=%s", viewer_id)

    async def get_profile(self, viewer_id: str, timeout: Optional[float] = None) -> AffinityProfile:
        """
        Return the viewer's profile, or a fresh empty one.

        Ranking with no personalization is a valid degraded mode, so load
        faults are logged and answered with an empty profile.
        """
        try:
            profile = await self._load(viewer_id, timeout)
        except (ProfileStoreError, asyncio.TimeoutError) as e:
            logger.warning("[profile] LOAD_FAILED_EMPTY_FALLBACK viewer_id=%s error=%s", viewer_id, e)
            return AffinityProfile.empty(viewer_id)
        return profile.model_copy(deep=True)

    async def record_reading_event(
        self,
        viewer_id: str,
        item_id: str,
        categories: Iterable[str],
        time_spent_seconds: float,
        completed: bool,
        timestamp: Optional[datetime] = None,
        timeout: Optional[float] = None,
    ) -> AffinityProfile:
        """
        Fold one reading event into the viewer's profile and persist it.

        Raises ProfileStoreError when the profile cannot be loaded or saved and
        asyncio.TimeoutError when the store does not answer within timeout.
        Either way the previously visible profile is unchanged.
        """
        event = ReadingEvent(
            viewer_id=viewer_id,
            item_id=item_id,
            timestamp=parse_timestamp(timestamp) or utc_now(),
            time_spent_seconds=time_spent_seconds,
            completed=completed,
            categories=list(categories or []),
        )
        async with self._lock(viewer_id):
            current = await self._load(viewer_id, timeout)
            updated = apply_reading_event(current, event, self.config)
            try:
                await asyncio.wait_for(
                    self.persistence.save(viewer_id, updated), self._timeout(timeout)
                )
            except asyncio.TimeoutError:
                logger.error("[profile] SAVE_TIMEOUT viewer_id=%s item_id=%s", viewer_id, item_id)
                await self._restore(viewer_id, current)
                raise
            except asyncio.CancelledError:
                logger.warning("[profile] SAVE_CANCELLED viewer_id=%s item_id=%s", viewer_id, item_id)
                await self._restore(viewer_id, current)
                raise
            except Exception as e:
                logger.error("[profile] SAVE_FAILED viewer_id=%s item_id=%s error=%s", viewer_id, item_id, e)
                raise ProfileStoreError(viewer_id, "save", e) from e
            self._profiles[viewer_id] = updated
            logger.debug(
                "[profile] READING_RECORDED viewer_id=%s item_id=%s categories=%s history=%s",
                viewer_id, item_id, event.categories, len(updated.history),
            )
        return updated.model_copy(deep=True)

    def forget(self, viewer_id: str) -> None:
        """Drop the in-process copy so the next access reloads from persistence."""
        self._profiles.pop(viewer_id, None)
