"""
Engagement and trending: corpus-relative, time-decayed, velocity-adjusted scores.

Public API: time_decay, velocity, normalize, engagement_score, score_corpus,
is_trending, trending_items, rank_by_engagement, recent activity estimators.
"""

from .calculator import (
    engagement_score,
    is_trending,
    mean_total_score,
    normalize,
    passes_trending_gate,
    rank_by_engagement,
    score_corpus,
    score_items,
    time_decay,
    trending_items,
    velocity,
)
from .recent_activity import LifetimeFractionEstimator, RecentActivity, RecentActivityEstimator

__all__ = [
    "engagement_score",
    "is_trending",
    "mean_total_score",
    "normalize",
    "passes_trending_gate",
    "rank_by_engagement",
    "score_corpus",
    "score_items",
    "time_decay",
    "trending_items",
    "velocity",
    "LifetimeFractionEstimator",
    "RecentActivity",
    "RecentActivityEstimator",
]
