"""
Scoring models returned by the ranking paths.

Contains:
- ScoredItem: a content item with its relevance or recommendation score
- EngagementScore: the viewer-independent engagement breakdown for one item
"""

from pydantic import BaseModel

from .content import ContentItem


class ScoredItem(BaseModel):
    """A content item with the score it was ranked by."""

    item: ContentItem
    score: float


class EngagementScore(BaseModel):
    """Engagement components for one item against one corpus snapshot."""

    item_id: str
    view_score: float
    upvote_score: float
    comment_score: float
    time_decay: float
    recency_boost: float
    velocity: float
    total_score: float
