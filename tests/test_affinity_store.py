"""
Affinity Profile Store Tests

Covers the category score update, bounded history, recently read ordering,
per-viewer serialization, rollback when persistence fails, and the JSON and
Firestore document layouts.

Run:
----
    pytest tests/test_affinity_store.py -v
"""

import asyncio
import time
from datetime import timedelta

import pytest

from personalization import (
    AffinityProfile,
    AffinityProfileStore,
    InMemoryProfilePersistence,
    JsonProfilePersistence,
    ProfileStoreError,
    ReadingEvent,
    rank_for_viewer,
)
from personalization.affinity import apply_reading_event
from personalization.affinity.persistence import _from_firestore_doc, _to_firestore_doc


class FlakyPersistence(InMemoryProfilePersistence):
    """In-memory persistence whose saves can be made to fail or hang."""

    def __init__(self):
        super().__init__()
        self.fail_saves = False
        self.save_delay = 0.0

    async def save(self, viewer_id, profile):
        if self.save_delay:
            await asyncio.sleep(self.save_delay)
        if self.fail_saves:
            raise OSError("disk full")
        await super().save(viewer_id, profile)


class BrokenLoadPersistence(InMemoryProfilePersistence):
    async def load(self, viewer_id):
        raise ConnectionError("store unreachable")


class YieldingPersistence(InMemoryProfilePersistence):
    """Yields to the event loop on every save so concurrent writers interleave."""

    async def save(self, viewer_id, profile):
        await asyncio.sleep(0)
        await super().save(viewer_id, profile)


class SlowJsonPersistence(JsonProfilePersistence):
    """JSON persistence whose file write blocks its worker thread for a while."""

    def _write(self, docs):
        time.sleep(0.3)
        super()._write(docs)


def _event(now, item_id="p1", categories=("tech",), seconds=0.0, completed=False, days_ago=0.0):
    return ReadingEvent(
        viewer_id="u1",
        item_id=item_id,
        categories=list(categories),
        time_spent_seconds=seconds,
        completed=completed,
        timestamp=now - timedelta(days=days_ago),
    )


class TestScoreUpdate:
    """Category score update: new = min(old * decay + delta, max_boost)."""

    def test_first_abandoned_read(self, now, config):
        profile = apply_reading_event(AffinityProfile.empty("u1"), _event(now, seconds=90), config)
        # base 1.5 + time bonus 0.5 * 2, no trend or completion history yet
        assert profile.category_scores["tech"] == pytest.approx(2.5)

    def test_first_completed_read_hits_cap(self, now, config):
        profile = apply_reading_event(
            AffinityProfile.empty("u1"), _event(now, seconds=180, completed=True), config
        )
        assert profile.category_scores["tech"] == pytest.approx(config.max_boost)

    def test_trend_from_recent_history(self, now, config):
        profile = apply_reading_event(AffinityProfile.empty("u1"), _event(now, days_ago=1), config)
        assert profile.category_scores["tech"] == pytest.approx(1.5)
        profile = apply_reading_event(profile, _event(now, item_id="p2"), config)
        # 1.5 * 0.8 + (1.5 base + 1.0 trend * 2.0)
        assert profile.category_scores["tech"] == pytest.approx(4.7)

    def test_history_outside_trend_window_is_ignored(self, now, config):
        profile = apply_reading_event(AffinityProfile.empty("u1"), _event(now, days_ago=10), config)
        profile = apply_reading_event(profile, _event(now, item_id="p2"), config)
        assert profile.category_scores["tech"] == pytest.approx(1.5 * 0.8 + 1.5)

    def test_scores_stay_within_bounds(self, now, config):
        profile = AffinityProfile.empty("u1")
        for idx in range(25):
            profile = apply_reading_event(
                profile, _event(now, item_id=f"p{idx}", seconds=600, completed=True), config
            )
            assert 0.0 <= profile.category_scores["tech"] <= config.max_boost

    def test_other_categories_untouched(self, now, config):
        profile = apply_reading_event(AffinityProfile.empty("u1"), _event(now, seconds=90), config)
        profile = apply_reading_event(
            profile, _event(now, item_id="p2", categories=["science"]), config
        )
        assert profile.category_scores["tech"] == pytest.approx(2.5)
        assert "science" in profile.category_scores

    def test_duplicate_categories_count_once(self, now, config):
        profile = apply_reading_event(
            AffinityProfile.empty("u1"), _event(now, categories=["tech", "tech"], seconds=90), config
        )
        assert profile.category_scores["tech"] == pytest.approx(2.5)

    def test_input_profile_not_modified(self, now, config):
        original = AffinityProfile.empty("u1")
        apply_reading_event(original, _event(now, seconds=90), config)
        assert original.is_empty


class TestHistory:

    def test_history_is_bounded(self, now, config):
        store = AffinityProfileStore(config=config)

        async def run():
            for idx in range(config.history_limit + 1):
                await store.record_reading_event("u1", f"p{idx}", ["tech"], 30, False, timestamp=now)
            return await store.get_profile("u1")

        profile = asyncio.run(run())
        assert len(profile.history) == config.history_limit
        assert profile.history[0].item_id == f"p{config.history_limit}"
        assert len(profile.last_read_items) == config.last_read_limit
        assert profile.last_read_items[0] == f"p{config.history_limit}"

    def test_reread_moves_item_to_front(self, now):
        store = AffinityProfileStore()

        async def run():
            for item_id in ("a", "b", "a"):
                await store.record_reading_event("u1", item_id, ["tech"], 30, False, timestamp=now)
            return await store.get_profile("u1")

        profile = asyncio.run(run())
        assert profile.last_read_items == ["a", "b"]
        assert [e.item_id for e in profile.history] == ["a", "b", "a"]


class TestStoreReads:

    def test_unknown_viewer_gets_empty_profile(self):
        profile = asyncio.run(AffinityProfileStore().get_profile("nobody"))
        assert profile.viewer_id == "nobody"
        assert profile.is_empty

    def test_load_failure_falls_back_to_empty(self):
        store = AffinityProfileStore(BrokenLoadPersistence())
        profile = asyncio.run(store.get_profile("u1"))
        assert profile.is_empty

    def test_load_failure_on_write_path_raises(self):
        store = AffinityProfileStore(BrokenLoadPersistence())
        with pytest.raises(ProfileStoreError) as exc_info:
            asyncio.run(store.record_reading_event("u1", "p1", ["tech"], 30, True))
        assert exc_info.value.operation == "load"

    def test_returned_profile_is_a_copy(self, now):
        store = AffinityProfileStore()

        async def run():
            await store.record_reading_event("u1", "p1", ["tech"], 90, False, timestamp=now)
            first = await store.get_profile("u1")
            first.category_scores["tech"] = 99.0
            first.last_read_items.append("bogus")
            return await store.get_profile("u1")

        profile = asyncio.run(run())
        assert profile.category_scores["tech"] == pytest.approx(2.5)
        assert profile.last_read_items == ["p1"]


class TestRollback:

    def test_failed_save_keeps_previous_profile(self, now):
        persistence = FlakyPersistence()
        store = AffinityProfileStore(persistence)

        async def run():
            await store.record_reading_event("u1", "p1", ["tech"], 90, False, timestamp=now)
            persistence.fail_saves = True
            with pytest.raises(ProfileStoreError):
                await store.record_reading_event("u1", "p2", ["science"], 90, True, timestamp=now)
            return await store.get_profile("u1")

        profile = asyncio.run(run())
        assert profile.last_read_items == ["p1"]
        assert "science" not in profile.category_scores
        assert len(profile.history) == 1

    def test_timed_out_save_keeps_previous_profile(self, now):
        persistence = FlakyPersistence()
        store = AffinityProfileStore(persistence)

        async def run():
            await store.record_reading_event("u1", "p1", ["tech"], 90, False, timestamp=now)
            persistence.save_delay = 0.2
            with pytest.raises(asyncio.TimeoutError):
                await store.record_reading_event(
                    "u1", "p2", ["tech"], 90, False, timestamp=now, timeout=0.01
                )
            return await store.get_profile("u1")

        profile = asyncio.run(run())
        assert [e.item_id for e in profile.history] == ["p1"]

    def test_timed_out_json_save_does_not_land_on_disk(self, tmp_path, now):
        path = tmp_path / "profiles.json"
        store = AffinityProfileStore(SlowJsonPersistence(path))

        async def run():
            await store.record_reading_event("u1", "p1", ["tech"], 90, False, timestamp=now)
            with pytest.raises(asyncio.TimeoutError):
                await store.record_reading_event(
                    "u1", "p2", ["science"], 90, False, timestamp=now, timeout=0.05
                )

        asyncio.run(run())
        reloaded = asyncio.run(AffinityProfileStore(JsonProfilePersistence(path)).get_profile("u1"))
        assert reloaded.last_read_items == ["p1"]
        assert "science" not in reloaded.category_scores

    def test_cancelled_json_save_does_not_land_on_disk(self, tmp_path, now):
        path = tmp_path / "profiles.json"
        store = AffinityProfileStore(SlowJsonPersistence(path))

        async def run():
            await store.record_reading_event("u1", "p1", ["tech"], 90, False, timestamp=now)
            task = asyncio.ensure_future(
                store.record_reading_event("u1", "p2", ["science"], 90, False, timestamp=now)
            )
            await asyncio.sleep(0.05)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task
            return await store.get_profile("u1")

        visible = asyncio.run(run())
        assert visible.last_read_items == ["p1"]
        reloaded = asyncio.run(AffinityProfileStore(JsonProfilePersistence(path)).get_profile("u1"))
        assert reloaded.last_read_items == ["p1"]

    def test_failed_save_for_one_viewer_does_not_block_another(self, now):
        persistence = FlakyPersistence()
        store = AffinityProfileStore(persistence)

        async def run():
            persistence.fail_saves = True
            with pytest.raises(ProfileStoreError):
                await store.record_reading_event("u1", "p1", ["tech"], 90, False, timestamp=now)
            persistence.fail_saves = False
            await store.record_reading_event("u2", "p1", ["tech"], 90, False, timestamp=now)
            return await store.get_profile("u1"), await store.get_profile("u2")

        first, second = asyncio.run(run())
        assert first.is_empty
        assert second.last_read_items == ["p1"]


class TestConcurrency:

    def test_concurrent_events_for_one_viewer_are_not_lost(self, now):
        store = AffinityProfileStore(YieldingPersistence())

        async def run():
            await asyncio.gather(*(
                store.record_reading_event("u1", f"p{idx}", ["tech"], 30, False, timestamp=now)
                for idx in range(20)
            ))
            return await store.get_profile("u1")

        profile = asyncio.run(run())
        assert len(profile.history) == 20
        assert len({e.item_id for e in profile.history}) == 20

    def test_viewers_are_independent(self, now):
        store = AffinityProfileStore(YieldingPersistence())

        async def run():
            await asyncio.gather(
                store.record_reading_event("u1", "p1", ["tech"], 30, False, timestamp=now),
                store.record_reading_event("u2", "p2", ["art"], 30, False, timestamp=now),
            )
            return await store.get_profile("u1"), await store.get_profile("u2")

        first, second = asyncio.run(run())
        assert list(first.category_scores) == ["tech"]
        assert list(second.category_scores) == ["art"]


class TestPersistence:

    def test_json_round_trip(self, tmp_path, now):
        path = tmp_path / "profiles.json"

        async def write():
            store = AffinityProfileStore(JsonProfilePersistence(path))
            await store.record_reading_event("u1", "p1", ["tech", "ai"], 120, True, timestamp=now)
            return await store.get_profile("u1")

        written = asyncio.run(write())
        assert path.exists()

        reloaded = asyncio.run(AffinityProfileStore(JsonProfilePersistence(path)).get_profile("u1"))
        assert reloaded.category_scores == pytest.approx(written.category_scores)
        assert reloaded.last_read_items == ["p1"]
        assert reloaded.history[0].timestamp == now
        assert reloaded.history[0].categories == ["tech", "ai"]

    def test_corrupt_json_file_starts_empty(self, tmp_path):
        path = tmp_path / "profiles.json"
        path.write_text("{not json")
        profile = asyncio.run(AffinityProfileStore(JsonProfilePersistence(path)).get_profile("u1"))
        assert profile.is_empty

    def test_firestore_document_layout(self, now, config):
        profile = apply_reading_event(
            AffinityProfile.empty("u1"), _event(now, seconds=90), config
        )
        doc = _to_firestore_doc(profile)
        assert set(doc) == {"categoryScores", "lastReadPosts", "readingHistory"}
        assert doc["readingHistory"][0]["postId"] == "p1"
        assert doc["readingHistory"][0]["timeSpent"] == 90

        restored = _from_firestore_doc("u1", doc)
        assert restored.category_scores == profile.category_scores
        assert restored.history[0].timestamp == now


class TestScenario:

    def test_three_tech_reads_prefer_tech(self, now, config, item_factory):
        store = AffinityProfileStore(config=config)

        async def run():
            for idx, days_ago in enumerate((2.0, 1.0, 0.0)):
                await store.record_reading_event(
                    "u1", f"read-{idx}", ["tech"], 200, True,
                    timestamp=now - timedelta(days=days_ago),
                )
            return await store.get_profile("u1")

        profile = asyncio.run(run())
        assert profile.category_score("tech") > profile.category_score("lifestyle")

        tech = item_factory("new-tech", ["tech"], hours_old=2, views=50, upvotes=3)
        lifestyle = item_factory("new-lifestyle", ["lifestyle"], hours_old=2, views=50, upvotes=3)
        ranked = rank_for_viewer(profile, [lifestyle, tech], config, now)
        assert [i.id for i in ranked] == ["new-tech", "new-lifestyle"]
