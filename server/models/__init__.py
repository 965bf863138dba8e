"""Pydantic request/response models for the API."""

from .profiles import ProfileResponse, ReadingEventRequest
from .rankings import (
    EngagementRankRequest,
    InteractionRequest,
    RankedItem,
    RankingResponse,
    RecommendationRequest,
    RecommendationResponse,
    RelevanceRankRequest,
    TrendingEntry,
    TrendingResponse,
)

__all__ = [
    "ProfileResponse",
    "ReadingEventRequest",
    "EngagementRankRequest",
    "InteractionRequest",
    "RankedItem",
    "RankingResponse",
    "RecommendationRequest",
    "RecommendationResponse",
    "RelevanceRankRequest",
    "TrendingEntry",
    "TrendingResponse",
]
