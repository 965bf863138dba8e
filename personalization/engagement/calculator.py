"""
Engagement / Trending Calculator: viewer-independent, corpus-relative item scores.

total = (view_score + upvote_score + comment_score) * recency_boost * (1 + (velocity - 1) * velocity_weight)
where each component is log-normalized against the corpus maximum and multiplied
by a logarithmic time decay. Whole snapshots are scored at once with numpy.
"""

import logging
import math
from datetime import datetime
from typing import List, Optional, Sequence

import numpy as np

from ..models.config import DEFAULT_CONFIG, EngineConfig
from ..models.content import ContentItem
from ..models.scoring import EngagementScore
from ..utils.time import hours_since, utc_now
from .recent_activity import LifetimeFractionEstimator, RecentActivityEstimator

logger = logging.getLogger(__name__)


def _default_estimator(config: EngineConfig) -> RecentActivityEstimator:
    return LifetimeFractionEstimator(fraction=config.recent_activity_fraction)


def time_decay(
    item: ContentItem,
    config: EngineConfig = DEFAULT_CONFIG,
    now: Optional[datetime] = None,
) -> float:
    """decay_base ** (-ln(hours + 1) / ln(decay_horizon_hours)); gentler than exponential over long horizons."""
    hours = hours_since(item.published_at, now)
    return config.decay_base ** (-math.log(hours + 1) / math.log(config.decay_horizon_hours))


def _clamp(value: float, low: float, high: float) -> float:
    return min(max(value, low), high)


def velocity(
    item: ContentItem,
    config: EngineConfig = DEFAULT_CONFIG,
    estimator: Optional[RecentActivityEstimator] = None,
) -> float:
    """Weighted mix of clamped recent/lifetime ratios for views, upvotes, and comments."""
    recent = (estimator or _default_estimator(config)).recent_activity(item)
    low, high = config.velocity_min, config.velocity_max
    view_velocity = _clamp(recent.views / (item.views or 1), low, high)
    upvote_velocity = _clamp(recent.upvotes / (item.upvotes or 1), low, high)
    comment_velocity = _clamp(recent.comments / (item.comment_count or 1), low, high)
    return (
        view_velocity * config.velocity_mix_views
        + upvote_velocity * config.velocity_mix_upvotes
        + comment_velocity * config.velocity_mix_comments
    )


def normalize(value: float, max_in_corpus: float) -> float:
    """ln(value + 1) / ln(max + 1); 0 when the corpus maximum is 0."""
    if max_in_corpus <= 0:
        return 0.0
    return math.log(value + 1) / math.log(max_in_corpus + 1)


def _normalize_array(values: np.ndarray, max_in_corpus: float) -> np.ndarray:
    if max_in_corpus <= 0:
        return np.zeros_like(values)
    return np.log1p(values) / math.log1p(max_in_corpus)


def _corpus_max(corpus: Sequence[ContentItem], attr: str) -> float:
    return float(max((getattr(i, attr) for i in corpus), default=0))


def score_items(
    items: Sequence[ContentItem],
    corpus: Sequence[ContentItem],
    config: EngineConfig = DEFAULT_CONFIG,
    now: Optional[datetime] = None,
    estimator: Optional[RecentActivityEstimator] = None,
) -> List[EngagementScore]:
    """Engagement breakdowns for items, normalized against the corpus maxima."""
    if not items:
        return []
    now = now or utc_now()
    estimator = estimator or _default_estimator(config)

    views = np.array([i.views for i in items], dtype=float)
    upvotes = np.array([i.upvotes for i in items], dtype=float)
    comments = np.array([i.comment_count for i in items], dtype=float)
    hours = np.array([hours_since(i.published_at, now) for i in items], dtype=float)
    velocities = np.array([velocity(i, config, estimator) for i in items], dtype=float)

    decay = np.power(config.decay_base, -np.log1p(hours) / math.log(config.decay_horizon_hours))
    view_scores = _normalize_array(views, _corpus_max(corpus, "views")) * config.view_weight * decay
    upvote_scores = _normalize_array(upvotes, _corpus_max(corpus, "upvotes")) * config.upvote_weight * decay
    comment_scores = _normalize_array(comments, _corpus_max(corpus, "comment_count")) * config.comment_weight * decay
    recency_boost = np.where(hours < config.freshness_hours, config.freshness_boost, 1.0)
    totals = (
        (view_scores + upvote_scores + comment_scores)
        * recency_boost
        * (1 + (velocities - 1) * config.velocity_weight)
    )
    totals = np.nan_to_num(totals, nan=0.0, posinf=0.0, neginf=0.0)

    return [
        EngagementScore(
            item_id=item.id,
            view_score=float(view_scores[idx]),
            upvote_score=float(upvote_scores[idx]),
            comment_score=float(comment_scores[idx]),
            time_decay=float(decay[idx]),
            recency_boost=float(recency_boost[idx]),
            velocity=float(velocities[idx]),
            total_score=float(totals[idx]),
        )
        for idx, item in enumerate(items)
    ]


def score_corpus(
    corpus: Sequence[ContentItem],
    config: EngineConfig = DEFAULT_CONFIG,
    now: Optional[datetime] = None,
    estimator: Optional[RecentActivityEstimator] = None,
) -> List[EngagementScore]:
    """Engagement breakdown for every item of a corpus snapshot."""
    return score_items(corpus, corpus, config, now, estimator)


def engagement_score(
    item: ContentItem,
    corpus: Sequence[ContentItem],
    config: EngineConfig = DEFAULT_CONFIG,
    now: Optional[datetime] = None,
    estimator: Optional[RecentActivityEstimator] = None,
) -> EngagementScore:
    """Engagement breakdown for one item against a corpus snapshot."""
    return score_items([item], corpus, config, now, estimator)[0]


def mean_total_score(scores: Sequence[EngagementScore]) -> float:
    if not scores:
        return 0.0
    return float(np.mean([s.total_score for s in scores]))


def passes_trending_gate(
    score: EngagementScore,
    corpus_mean: float,
    config: EngineConfig = DEFAULT_CONFIG,
) -> bool:
    """Both a score well above the corpus mean and accelerating engagement are required."""
    return (
        score.total_score > corpus_mean * config.trending_score_multiplier
        and score.velocity > config.trending_min_velocity
    )


def is_trending(
    item: ContentItem,
    corpus: Sequence[ContentItem],
    config: EngineConfig = DEFAULT_CONFIG,
    now: Optional[datetime] = None,
    estimator: Optional[RecentActivityEstimator] = None,
) -> bool:
    """True iff total > mean(corpus totals) * 1.5 and velocity > 1.2."""
    now = now or utc_now()
    corpus_mean = mean_total_score(score_corpus(corpus, config, now, estimator))
    score = engagement_score(item, corpus, config, now, estimator)
    return passes_trending_gate(score, corpus_mean, config)


def trending_items(
    corpus: Sequence[ContentItem],
    config: EngineConfig = DEFAULT_CONFIG,
    now: Optional[datetime] = None,
    estimator: Optional[RecentActivityEstimator] = None,
) -> List[ContentItem]:
    """Trending items of a corpus, highest total score first."""
    scores = score_corpus(corpus, config, now, estimator)
    corpus_mean = mean_total_score(scores)
    hits = [
        (score, item)
        for score, item in zip(scores, corpus)
        if passes_trending_gate(score, corpus_mean, config)
    ]
    hits.sort(key=lambda pair: (-pair[0].total_score, pair[1].id))
    logger.debug("[trending] corpus=%s mean=%.4f trending=%s", len(corpus), corpus_mean, len(hits))
    return [item for _, item in hits]


def rank_by_engagement(
    items: Sequence[ContentItem],
    corpus: Optional[Sequence[ContentItem]] = None,
    config: EngineConfig = DEFAULT_CONFIG,
    now: Optional[datetime] = None,
    estimator: Optional[RecentActivityEstimator] = None,
) -> List[ContentItem]:
    """
    Viewer-independent ordering by total engagement score.

    corpus defaults to items. Ties: newer publish date, then item id.
    """
    corpus = items if corpus is None else corpus
    scores = score_items(items, corpus, config, now, estimator)

    def sort_key(pair):
        score, item = pair
        published = item.published_at.timestamp() if item.published_at else float("-inf")
        return (-score.total_score, -published, item.id)

    return [item for _, item in sorted(zip(scores, items), key=sort_key)]
