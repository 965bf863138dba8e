"""
Personalization & Ranking Engine

Single entry point for the engine package:
- models/: EngineConfig, ContentItem, ReadingEvent, AffinityProfile, ScoredItem, EngagementScore
- affinity/: AffinityProfileStore and its persistence port (memory, JSON file, Firestore)
- relevance/: profile-weighted scoring and rank_for_viewer
- similarity/: text vectors, TTL recommendation cache, ContentSimilarityRecommender
- engagement/: viewer-independent engagement scores and trending detection
"""

from .affinity import (
    AffinityProfileStore,
    FirestoreProfilePersistence,
    InMemoryProfilePersistence,
    JsonProfilePersistence,
    ProfilePersistence,
)
from .engagement import (
    LifetimeFractionEstimator,
    engagement_score,
    is_trending,
    rank_by_engagement,
    score_corpus,
    trending_items,
)
from .errors import ProfileStoreError
from .models import (
    DEFAULT_CONFIG,
    AffinityProfile,
    ContentItem,
    EngagementScore,
    EngineConfig,
    ReadingEvent,
    ScoredItem,
    ensure_items,
    resolve_config,
)
from .relevance import rank_for_viewer, score_candidates, score_item
from .similarity import ContentSimilarityRecommender, RecommendationCache, VectorCache, vectorize
from .utils import cosine_similarity, estimate_reading_time, is_read_to_completion

__all__ = [
    "AffinityProfile",
    "AffinityProfileStore",
    "ContentItem",
    "ContentSimilarityRecommender",
    "DEFAULT_CONFIG",
    "EngagementScore",
    "EngineConfig",
    "FirestoreProfilePersistence",
    "InMemoryProfilePersistence",
    "JsonProfilePersistence",
    "LifetimeFractionEstimator",
    "ProfilePersistence",
    "ProfileStoreError",
    "ReadingEvent",
    "RecommendationCache",
    "ScoredItem",
    "VectorCache",
    "cosine_similarity",
    "engagement_score",
    "ensure_items",
    "estimate_reading_time",
    "is_read_to_completion",
    "is_trending",
    "rank_by_engagement",
    "rank_for_viewer",
    "resolve_config",
    "score_candidates",
    "score_corpus",
    "score_item",
    "trending_items",
    "vectorize",
]
