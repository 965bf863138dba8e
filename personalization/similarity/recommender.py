"""
Content-Similarity Recommender: blend category/author frequency, text similarity
to recently read items, and engagement, with per-viewer result caching.

score = 0.3 * category_freq_sum + 0.2 * author_freq
      + 0.3 * avg cosine similarity to the last 5 read items
      + 0.2 * (upvotes*2 + views + comments*3) / 100
Already read candidates score -1: demoted to the end, never removed.

The caller's candidate list is authoritative; the recommender only reorders and
truncates it.
"""

import asyncio
import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from ..models.config import EngineConfig, resolve_config
from ..models.content import ContentItem
from ..models.scoring import ScoredItem
from ..utils.similarity import cosine_similarity
from ..utils.time import parse_timestamp, utc_now
from .cache import RecommendationCache
from .vectorizer import VectorCache

logger = logging.getLogger(__name__)

READ_SCORE = -1.0


@dataclass
class ViewerInteractions:
    """Unweighted interaction counters for one viewer (separate from the affinity profile)."""

    categories: Counter = field(default_factory=Counter)
    authors: Counter = field(default_factory=Counter)
    # item id -> read time, in read order (re-reads move to the end)
    read_items: Dict[str, datetime] = field(default_factory=dict)

    def recent_reads(self, limit: int) -> List[str]:
        return list(reversed(self.read_items))[:limit]

    def snapshot(self) -> "ViewerInteractions":
        return ViewerInteractions(
            categories=Counter(self.categories),
            authors=Counter(self.authors),
            read_items=dict(self.read_items),
        )


def engagement_raw(item: ContentItem) -> float:
    return (item.upvotes * 2 + item.views + item.comment_count * 3) / 100


class ContentSimilarityRecommender:
    """
    Per-viewer recommendations with text similarity and a TTL cache.

    Usage:
        recommender = ContentSimilarityRecommender()
        recommender.record_interaction("u1", item)
        top = await recommender.get_recommendations("u1", candidates, limit=10)
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        vector_cache: Optional[VectorCache] = None,
        cache: Optional[RecommendationCache] = None,
    ):
        self.config = resolve_config(config)
        self.vector_cache = vector_cache if vector_cache is not None else VectorCache(
            self.config.max_ignored_token_length
        )
        self.cache = cache if cache is not None else RecommendationCache(
            ttl_seconds=self.config.recommendation_ttl_seconds
        )
        self._viewers: Dict[str, ViewerInteractions] = {}

    def interactions(self, viewer_id: str) -> ViewerInteractions:
        """Copy of the viewer's counters (empty for unknown viewers)."""
        state = self._viewers.get(viewer_id)
        return state.snapshot() if state is not None else ViewerInteractions()

    def record_interaction(
        self,
        viewer_id: str,
        item: ContentItem,
        timestamp: Optional[datetime] = None,
    ) -> None:
        """Count the item's categories and author, mark it read, and invalidate the viewer's cache."""
        state = self._viewers.setdefault(viewer_id, ViewerInteractions())
        for category in item.categories:
            state.categories[category] += 1
        if item.author:
            state.authors[item.author] += 1
        state.read_items.pop(item.id, None)
        state.read_items[item.id] = parse_timestamp(timestamp) or utc_now()
        self.vector_cache.get_vector(item)
        self.cache.invalidate(viewer_id)
        logger.debug(
            "[recommender] INTERACTION viewer_id=%s item_id=%s reads=%s",
            viewer_id, item.id, len(state.read_items),
        )

    def _similarity(self, vector: List[float], context: List[List[float]]) -> float:
        if not context:
            return 0.0
        return sum(cosine_similarity(vector, other) for other in context) / len(context)

    def _score(self, state: ViewerInteractions, item: ContentItem, context: List[List[float]]) -> float:
        if item.id in state.read_items:
            return READ_SCORE
        config = self.config
        category_freq = sum(state.categories.get(c, 0) for c in item.categories)
        author_freq = state.authors.get(item.author, 0) if item.author else 0
        similarity = self._similarity(self.vector_cache.get_vector(item), context)
        return (
            config.recommender_weight_category * category_freq
            + config.recommender_weight_author * author_freq
            + config.recommender_weight_similarity * similarity
            + config.recommender_weight_engagement * engagement_raw(item)
        )

    def _score_all(self, state: ViewerInteractions, candidates: Sequence[ContentItem]) -> List[ScoredItem]:
        context = []
        for item_id in state.recent_reads(self.config.similarity_context_size):
            vector = self.vector_cache.lookup(item_id)
            if vector is not None:
                context.append(vector)
        scored = [ScoredItem(item=c, score=self._score(state, c, context)) for c in candidates]
        scored.sort(key=lambda s: -s.score)
        return scored

    def score_candidates(self, viewer_id: str, candidates: Sequence[ContentItem]) -> List[ScoredItem]:
        """All candidates scored and sorted (descending, stable); bypasses the cache."""
        return self._score_all(self.interactions(viewer_id), candidates)

    async def get_recommendations(
        self,
        viewer_id: str,
        candidates: Sequence[ContentItem],
        limit: Optional[int] = None,
    ) -> List[ContentItem]:
        """
        Top `limit` candidates for the viewer.

        A non-expired cached list is returned as is (truncated to limit);
        otherwise the candidates are scored once per viewer even under
        concurrent calls, and the result is cached for the TTL.
        """
        limit = self.config.default_recommendation_limit if limit is None else limit
        if limit <= 0:
            return []
        candidates = list(candidates)

        async def build() -> List[ContentItem]:
            state = self.interactions(viewer_id)
            scored = await asyncio.to_thread(self._score_all, state, candidates)
            logger.debug(
                "[recommender] COMPUTED viewer_id=%s candidates=%s limit=%s",
                viewer_id, len(candidates), limit,
            )
            return [s.item for s in scored[:limit]]

        items = await self.cache.get_or_compute(viewer_id, build)
        return items[:limit]
