"""
Engine configuration: affinity, relevance, recommender, and engagement parameters.

EngineConfig defaults are defined here. The server may pass a dict (e.g. loaded
from a JSON file named by ENGINE_CONFIG_PATH); from_dict() merges it with these defaults.
"""

from typing import Dict, Optional

from pydantic import BaseModel, model_validator


class EngineConfig(BaseModel):
    """Configuration for the personalization and ranking engine."""

    # -------------------------------------------------------------------------
    # Affinity Profile: category score update
    # new = min(old * time_decay + delta, max_boost)
    # delta = base + time_bonus + trend * trend_weight + completion_rate * completion_weight
    # -------------------------------------------------------------------------

    # Base weight for a category of an item read to completion (half when abandoned).
    match_weight: float = 3.0
    # Weight for categories that recur in the viewer's recent (trend window) reads.
    trend_weight: float = 2.0
    # Weight for time spent, scaled by min(time_spent / full_read_seconds, 1).
    time_weight: float = 2.0
    # Bonus for categories the viewer reads to completion. Also the coarse boost in relevance.
    completion_weight: float = 1.5
    # Multiplier applied to the old score once per update.
    time_decay: float = 0.8
    # Upper bound for any single category score.
    max_boost: float = 5.0
    # Seconds of reading that count as a full engagement.
    full_read_seconds: float = 180.0
    # Days of history considered when computing category trend and completion rate.
    trend_window_days: int = 7
    # Reading events kept per viewer (most recent first).
    history_limit: int = 100
    # Item ids kept in the recently read list (most recent first).
    last_read_limit: int = 30

    # -------------------------------------------------------------------------
    # Relevance Scorer
    # -------------------------------------------------------------------------

    # Only the strongest N category affinities of an item are summed.
    top_categories: int = 2
    # Multiplier for items tagged with more than one distinct category.
    diversity_bonus: float = 1.2
    # Weight for the capped engagement term: min(upvotes*2 + views/10 + comments*3, cap).
    engagement_weight: float = 1.8
    engagement_cap: float = 10.0
    # Age decay exp(-days / age_decay_days). At 30 days the factor is ~0.37.
    age_decay_days: float = 30.0
    # Penalty per position for items in the recently read list: (last_read_limit - index) * penalty.
    recency_penalty: float = 0.7
    # Most recent reading events used for the reading pattern completion boost.
    completion_pattern_window: int = 20

    # -------------------------------------------------------------------------
    # Content-Similarity Recommender
    # score = w_cat * category_freq + w_author * author_freq + w_sim * similarity + w_eng * engagement
    # -------------------------------------------------------------------------

    recommender_weight_category: float = 0.3
    recommender_weight_author: float = 0.2
    recommender_weight_similarity: float = 0.3
    recommender_weight_engagement: float = 0.2
    # Recently read items compared against each candidate.
    similarity_context_size: int = 5
    # Tokens of this length or shorter are dropped by the vectorizer.
    max_ignored_token_length: int = 2
    # Cache lifetime for a viewer's recommendation list (15 minutes).
    recommendation_ttl_seconds: float = 900.0
    default_recommendation_limit: int = 10

    # -------------------------------------------------------------------------
    # Engagement / Trending
    # time_decay = decay_base ** (-ln(hours + 1) / ln(decay_horizon_hours))
    # -------------------------------------------------------------------------

    decay_base: float = 1.5
    decay_horizon_hours: float = 24.0
    view_weight: float = 1.0
    upvote_weight: float = 3.0
    comment_weight: float = 2.0
    # Items younger than freshness_hours get freshness_boost.
    freshness_hours: float = 6.0
    freshness_boost: float = 1.2
    # total = base * recency_boost * (1 + (velocity - 1) * velocity_weight)
    velocity_weight: float = 2.0
    velocity_min: float = 0.5
    velocity_max: float = 2.0
    velocity_mix_views: float = 0.5
    velocity_mix_upvotes: float = 0.3
    velocity_mix_comments: float = 0.2
    # Fraction of lifetime totals assumed to be recent when no telemetry is supplied.
    recent_activity_fraction: float = 0.1
    # Trending: total > corpus mean * trending_score_multiplier and velocity > trending_min_velocity.
    trending_score_multiplier: float = 1.5
    trending_min_velocity: float = 1.2

    @model_validator(mode="after")
    def check_consistency(self):
        total = (
            self.recommender_weight_category
            + self.recommender_weight_author
            + self.recommender_weight_similarity
            + self.recommender_weight_engagement
        )
        if abs(total - 1.0) > 0.01:
            raise ValueError(f"Recommender weights must sum to 1.0, got {total}")
        if self.velocity_min > self.velocity_max:
            raise ValueError(
                f"velocity_min ({self.velocity_min}) must not exceed velocity_max ({self.velocity_max})"
            )
        if self.max_boost <= 0 or self.full_read_seconds <= 0 or self.age_decay_days <= 0:
            raise ValueError("max_boost, full_read_seconds and age_decay_days must be positive")
        if self.decay_horizon_hours <= 1:
            raise ValueError("decay_horizon_hours must be greater than 1")
        return self

    @classmethod
    def from_dict(cls, config_dict: Dict) -> "EngineConfig":
        """Create config from a dictionary (e.g. loaded from JSON).

        Accepts flat field names or sections (affinity, relevance, recommender,
        engagement); a recommender "weights" block maps onto recommender_weight_*.
        """
        flat = {}
        for section in ("affinity", "relevance", "recommender", "engagement"):
            if isinstance(config_dict.get(section), dict):
                flat.update(config_dict[section])
        weights = flat.pop("weights", None)
        if isinstance(weights, dict):
            for name in ("category", "author", "similarity", "engagement"):
                if name in weights:
                    flat[f"recommender_weight_{name}"] = weights[name]
        flat.update({k: v for k, v in config_dict.items() if k in cls.model_fields})
        allowed = set(cls.model_fields)
        filtered = {k: v for k, v in flat.items() if k in allowed}
        return cls.model_validate(filtered)


DEFAULT_CONFIG = EngineConfig()


def resolve_config(config: Optional["EngineConfig"]) -> "EngineConfig":
    """Return config or DEFAULT_CONFIG when none is provided."""
    return config if config is not None else DEFAULT_CONFIG
