"""Request/response models for relevance, engagement, recommendation and trending rankings."""

from typing import List, Optional

from pydantic import BaseModel, Field

from personalization.models.content import ContentItem
from personalization.models.scoring import EngagementScore


class RelevanceRankRequest(BaseModel):
    viewer_id: str = Field(min_length=1)
    items: List[ContentItem] = Field(default_factory=list)


class EngagementRankRequest(BaseModel):
    """Items to rank; corpus defaults to the items themselves."""

    items: List[ContentItem] = Field(default_factory=list)
    corpus: Optional[List[ContentItem]] = None


class RecommendationRequest(BaseModel):
    items: List[ContentItem] = Field(default_factory=list)
    limit: Optional[int] = None


class InteractionRequest(BaseModel):
    item: ContentItem
    timestamp: Optional[str] = None


class RankedItem(BaseModel):
    item: ContentItem
    score: float


class RankingResponse(BaseModel):
    items: List[RankedItem]


class RecommendationResponse(BaseModel):
    viewer_id: str
    items: List[ContentItem]


class TrendingEntry(BaseModel):
    item: ContentItem
    trending: bool
    engagement: EngagementScore


class TrendingResponse(BaseModel):
    corpus_mean: float
    items: List[TrendingEntry]
