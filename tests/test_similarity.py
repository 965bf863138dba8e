"""
Content-Similarity Recommender Tests

Covers the text vectorizer, cosine similarity, the TTL recommendation cache
(expiry, invalidation, singleflight fill) and recommender ordering.

Run:
----
    pytest tests/test_similarity.py -v
"""

import asyncio
import math

import pytest

from personalization import (
    ContentSimilarityRecommender,
    RecommendationCache,
    VectorCache,
    cosine_similarity,
    vectorize,
)
from personalization.similarity import term_counts


class FakeClock:
    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class CountingRecommender(ContentSimilarityRecommender):
    """Counts scoring passes (each cache miss scores once)."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.passes = 0

    def _score_all(self, state, candidates):
        self.passes += 1
        return super()._score_all(state, candidates)


class TestVectorizer:

    def test_term_counts(self):
        counts = term_counts("The cat and the hat, THE end. A to be")
        assert counts == {"the": 3, "cat": 1, "and": 1, "hat": 1, "end": 1}
        assert list(counts) == ["the", "cat", "and", "hat", "end"]

    def test_vector_is_log_counts(self, item_factory):
        item = item_factory("a", title="Rust rust", body="tokio")
        assert vectorize(item) == pytest.approx([math.log(3), math.log(2)])

    def test_identical_text_identical_vector(self, item_factory):
        first = item_factory("a", title="Async Python", body="event loops and coroutines")
        second = item_factory("b", title="Async Python", body="event loops and coroutines")
        assert vectorize(first) == vectorize(second)

    def test_empty_text(self, item_factory):
        assert vectorize(item_factory("a", title="", body="")) == []

    def test_vector_cache_computes_once(self, item_factory):
        cache = VectorCache()
        item = item_factory("a", title="Async Python")
        first = cache.get_vector(item)
        assert cache.get_vector(item) is first
        assert "a" in cache
        assert cache.lookup("missing") is None
        assert len(cache) == 1


class TestCosine:

    def test_self_similarity(self):
        assert cosine_similarity([1.0, 2.0, 3.0], [1.0, 2.0, 3.0]) == pytest.approx(1.0)

    def test_bounds(self):
        assert cosine_similarity([1.0, 0.0], [-1.0, 0.0]) == pytest.approx(-1.0)
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)
        assert -1.0 <= cosine_similarity([0.3, -2.0, 5.0], [4.0, 1.0, -0.5]) <= 1.0

    def test_incomparable_vectors_score_zero(self):
        assert cosine_similarity([1.0, 2.0], [1.0, 2.0, 3.0]) == 0.0
        assert cosine_similarity([], []) == 0.0
        assert cosine_similarity([0.0, 0.0], [1.0, 1.0]) == 0.0


class TestRecommendationCache:

    def test_entries_expire_after_ttl(self, item_factory):
        clock = FakeClock()
        cache = RecommendationCache(ttl_seconds=900, clock=clock)
        cache.set("u1", [item_factory("a")])
        clock.advance(900)
        assert cache.get("u1") is not None
        clock.advance(1)
        assert cache.get("u1") is None
        assert len(cache) == 0

    def test_invalidate(self, item_factory):
        cache = RecommendationCache()
        cache.set("u1", [item_factory("a")])
        assert cache.invalidate("u1")
        assert not cache.invalidate("u1")
        assert cache.get("u1") is None

    def test_concurrent_misses_share_one_computation(self, item_factory):
        cache = RecommendationCache()
        calls = []

        async def build():
            calls.append(1)
            await asyncio.sleep(0.01)
            return [item_factory("a")]

        async def run():
            return await asyncio.gather(*(cache.get_or_compute("u1", build) for _ in range(5)))

        results = asyncio.run(run())
        assert len(calls) == 1
        assert all([i.id for i in r] == ["a"] for r in results)
        assert cache.get("u1") is not None

    def test_failed_computation_reaches_every_waiter(self):
        cache = RecommendationCache()
        calls = []

        async def build():
            calls.append(1)
            await asyncio.sleep(0.01)
            raise ValueError("scoring failed")

        async def run():
            return await asyncio.gather(
                *(cache.get_or_compute("u1", build) for _ in range(3)),
                return_exceptions=True,
            )

        results = asyncio.run(run())
        assert len(calls) == 1
        assert all(isinstance(r, ValueError) for r in results)
        assert cache.get("u1") is None

    def test_result_computed_before_invalidation_is_not_stored(self, item_factory):
        cache = RecommendationCache()

        async def build():
            cache.invalidate("u1")
            return [item_factory("a")]

        items = asyncio.run(cache.get_or_compute("u1", build))
        assert [i.id for i in items] == ["a"]
        assert cache.get("u1") is None

    def test_cancelling_first_caller_does_not_cancel_waiters(self, item_factory):
        cache = RecommendationCache()
        calls = []

        async def run():
            started = asyncio.Event()

            async def build():
                calls.append(1)
                started.set()
                await asyncio.sleep(0.05)
                return [item_factory("a")]

            first = asyncio.ensure_future(cache.get_or_compute("u1", build))
            await started.wait()
            waiter = asyncio.ensure_future(cache.get_or_compute("u1", build))
            await asyncio.sleep(0.01)
            first.cancel()
            items = await waiter
            return first, items

        first, items = asyncio.run(run())
        assert first.cancelled()
        assert [i.id for i in items] == ["a"]
        assert len(calls) == 1
        assert cache.get("u1") is not None


class TestRecommender:

    def test_interactions_are_counted(self, item_factory):
        recommender = ContentSimilarityRecommender()
        recommender.record_interaction("u1", item_factory("a", ["tech", "ai"], author="ada"))
        recommender.record_interaction("u1", item_factory("b", ["tech"], author=""))
        state = recommender.interactions("u1")
        assert state.categories == {"tech": 2, "ai": 1}
        assert state.authors == {"ada": 1}
        assert list(state.read_items) == ["a", "b"]

    def test_read_items_sorted_last_but_kept(self, item_factory):
        recommender = ContentSimilarityRecommender()
        read = item_factory("read", ["tech"], views=5000)
        recommender.record_interaction("u1", read)
        candidates = [read, item_factory("x", ["art"]), item_factory("y", ["tech"])]
        items = asyncio.run(recommender.get_recommendations("u1", candidates, limit=3))
        assert [i.id for i in items][-1] == "read"
        assert {i.id for i in items} == {"read", "x", "y"}

    def test_category_and_author_preference(self, item_factory):
        recommender = ContentSimilarityRecommender()
        # Same title everywhere so text similarity is equal across candidates
        recommender.record_interaction("u1", item_factory("seen", ["tech"], author="ada", title="Post"))
        candidates = [
            item_factory("art", ["art"], author="bob", title="Post"),
            item_factory("tech", ["tech"], author="bob", title="Post"),
            item_factory("tech-ada", ["tech"], author="ada", title="Post"),
        ]
        items = asyncio.run(recommender.get_recommendations("u1", candidates))
        assert [i.id for i in items] == ["tech-ada", "tech", "art"]

    def test_similar_text_ranks_first(self, item_factory):
        recommender = ContentSimilarityRecommender()
        recommender.record_interaction(
            "u1", item_factory("seen", title="Async Python", body="event loops coroutines")
        )
        candidates = [
            item_factory("other", title="Gardening", body="roses"),
            item_factory("similar", title="Async Python", body="event loops coroutines"),
        ]
        scored = recommender.score_candidates("u1", candidates)
        assert [s.item.id for s in scored] == ["similar", "other"]
        assert scored[0].score == pytest.approx(recommender.config.recommender_weight_similarity)

    def test_limit(self, item_factory):
        recommender = ContentSimilarityRecommender()
        candidates = [item_factory(f"i{n}", views=n) for n in range(15)]
        assert len(asyncio.run(recommender.get_recommendations("u1", candidates))) == 10
        assert asyncio.run(recommender.get_recommendations("u2", candidates, limit=0)) == []

    def test_cached_list_served_until_ttl(self, item_factory):
        clock = FakeClock()
        recommender = CountingRecommender(cache=RecommendationCache(ttl_seconds=900, clock=clock))
        first = [item_factory("a", views=10)]
        second = [item_factory("b", views=10)]

        async def run():
            initial = await recommender.get_recommendations("u1", first)
            clock.advance(600)
            cached = await recommender.get_recommendations("u1", second)
            clock.advance(301)
            refreshed = await recommender.get_recommendations("u1", second)
            return initial, cached, refreshed

        initial, cached, refreshed = asyncio.run(run())
        assert [i.id for i in initial] == ["a"]
        assert [i.id for i in cached] == ["a"]
        assert [i.id for i in refreshed] == ["b"]
        assert recommender.passes == 2

    def test_interaction_invalidates_cached_list(self, item_factory):
        recommender = CountingRecommender()
        candidates = [item_factory("a", ["art"]), item_factory("t", ["tech"])]

        async def run():
            before = await recommender.get_recommendations("u1", candidates)
            recommender.record_interaction("u1", item_factory("seen", ["tech"]))
            after = await recommender.get_recommendations("u1", candidates)
            return before, after

        before, after = asyncio.run(run())
        assert [i.id for i in before] == ["a", "t"]
        assert [i.id for i in after] == ["t", "a"]
        assert recommender.passes == 2

    def test_interaction_for_one_viewer_keeps_others_cached(self, item_factory):
        recommender = CountingRecommender()
        candidates = [item_factory("a")]

        async def run():
            await recommender.get_recommendations("u1", candidates)
            await recommender.get_recommendations("u2", candidates)
            recommender.record_interaction("u1", item_factory("seen"))
            await recommender.get_recommendations("u2", candidates)

        asyncio.run(run())
        assert recommender.passes == 2

    def test_concurrent_requests_score_once(self, item_factory):
        recommender = CountingRecommender()
        candidates = [item_factory(f"i{n}", views=n) for n in range(50)]

        async def run():
            return await asyncio.gather(
                *(recommender.get_recommendations("u1", candidates, limit=5) for _ in range(8))
            )

        results = asyncio.run(run())
        assert recommender.passes == 1
        assert all([i.id for i in r] == [i.id for i in results[0]] for r in results)
