"""
Relevance Scorer: rank candidate items for one viewer from their affinity profile.

Pure functions (no text similarity, no shared state). Each scoring term that
comes out non-finite contributes 0 instead of poisoning the whole score.
"""

import math
from concurrent.futures import Executor
from datetime import datetime
from functools import partial
from typing import List, Optional

from ..models.config import DEFAULT_CONFIG, EngineConfig
from ..models.content import ContentItem
from ..models.profile import AffinityProfile, category_trend, completion_rate
from ..models.scoring import ScoredItem
from ..utils.time import days_since, utc_now


def _finite(value: float) -> float:
    return value if math.isfinite(value) else 0.0


def engagement_term(item: ContentItem, config: EngineConfig = DEFAULT_CONFIG) -> float:
    """min(upvotes*2 + views/10 + comments*3, cap) * engagement_weight."""
    raw = item.upvotes * 2 + item.views / 10 + item.comment_count * 3
    return _finite(min(raw, config.engagement_cap)) * config.engagement_weight


def age_decay(item: ContentItem, config: EngineConfig = DEFAULT_CONFIG, now: Optional[datetime] = None) -> float:
    """exp(-days_since_publish / age_decay_days); unknown publish date counts as today."""
    return _finite(math.exp(-days_since(item.published_at, now) / config.age_decay_days))


def has_completion_affinity(
    profile: AffinityProfile,
    item: ContentItem,
    config: EngineConfig = DEFAULT_CONFIG,
) -> bool:
    """
    True when one of the item's categories is read to completion more often
    than the viewer's reads overall, over the viewer's most recent reads.
    """
    pattern = profile.history[: config.completion_pattern_window]
    if not pattern:
        return False
    overall = completion_rate(pattern)
    return any(completion_rate(pattern, category) > overall for category in item.categories)


def score_item(
    profile: AffinityProfile,
    item: ContentItem,
    config: EngineConfig = DEFAULT_CONFIG,
    now: Optional[datetime] = None,
) -> float:
    """
    Relevance of item for the viewer owning profile (higher is more relevant).

    1) affinity per category = category_score * match_weight * (1 + trend * trend_weight)
    2) sum of the top_categories strongest affinities
    3) * diversity_bonus when the item has more than one category
    4) + capped engagement term
    5) * age decay
    6) recency penalty for recently read items: max(0, score - (30 - index) * recency_penalty)
    7) * completion_weight when the reading pattern favors one of the item's categories
    """
    now = now or utc_now()
    recent = profile.recent_events(config.trend_window_days, now)

    # --- 1-2. Category affinity, strongest categories only ---
    affinities = []
    for category in item.categories:
        trend = category_trend(recent, category)
        affinities.append(
            _finite(profile.category_score(category) * config.match_weight * (1 + trend * config.trend_weight))
        )
    affinities.sort(reverse=True)
    score = sum(affinities[: config.top_categories])

    # --- 3. Diversity bonus ---
    if len(set(item.categories)) > 1:
        score *= config.diversity_bonus

    # --- 4-5. Engagement and age decay ---
    score += engagement_term(item, config)
    score *= age_decay(item, config, now)

    # --- 6. Recency penalty ---
    index = profile.last_read_index(item.id)
    if index is not None:
        score = max(0.0, score - (config.last_read_limit - index) * config.recency_penalty)

    # --- 7. Reading pattern completion boost ---
    if has_completion_affinity(profile, item, config):
        score *= config.completion_weight

    return _finite(score)


def _sort_key(profile: AffinityProfile, scored: ScoredItem):
    item = scored.item
    published = item.published_at.timestamp() if item.published_at else float("-inf")
    is_read = profile.last_read_index(item.id) is not None
    return (-scored.score, is_read, -published, item.id)


def score_candidates(
    profile: AffinityProfile,
    items: List[ContentItem],
    config: EngineConfig = DEFAULT_CONFIG,
    now: Optional[datetime] = None,
    executor: Optional[Executor] = None,
) -> List[ScoredItem]:
    """
    Score and sort items for the viewer.

    Ties: unread before read, then newer publish date, then item id.
    Pass an executor to spread scoring of large candidate sets across workers.
    """
    now = now or utc_now()
    score = partial(score_item, profile, config=config, now=now)
    scores = list(executor.map(score, items)) if executor is not None else [score(i) for i in items]
    scored = [ScoredItem(item=i, score=s) for i, s in zip(items, scores)]
    scored.sort(key=partial(_sort_key, profile))
    return scored


def rank_for_viewer(
    profile: AffinityProfile,
    items: List[ContentItem],
    config: EngineConfig = DEFAULT_CONFIG,
    now: Optional[datetime] = None,
    executor: Optional[Executor] = None,
) -> List[ContentItem]:
    """Items ordered by descending relevance for the viewer."""
    return [s.item for s in score_candidates(profile, items, config, now, executor)]
