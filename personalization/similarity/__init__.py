"""
Content-similarity recommendation: text vectors, TTL result cache, recommender.

Public API: ContentSimilarityRecommender, RecommendationCache, VectorCache, vectorize.
"""

from .cache import CacheEntry, RecommendationCache
from .recommender import ContentSimilarityRecommender, ViewerInteractions
from .vectorizer import VectorCache, term_counts, vectorize

__all__ = [
    "CacheEntry",
    "ContentSimilarityRecommender",
    "RecommendationCache",
    "VectorCache",
    "ViewerInteractions",
    "term_counts",
    "vectorize",
]
