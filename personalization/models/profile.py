"""
Affinity profile model: per-viewer preference state accumulated from reading events.

Holds category scores, the recently read item ids, and the bounded reading
history (both most recent first). Also provides the history statistics shared
by the profile update and the relevance scorer (category trend and
completion rates).
"""

from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel, Field

from ..utils.time import utc_now
from .reading import ReadingEvent


def category_trend(events: Sequence[ReadingEvent], category: str) -> float:
    """Fraction of events that include category (0 when there are no events)."""
    if not events:
        return 0.0
    return sum(1 for e in events if category in e.categories) / len(events)


def completion_rate(events: Sequence[ReadingEvent], category: Optional[str] = None) -> float:
    """Fraction of events (optionally restricted to a category) marked completed."""
    if category is not None:
        events = [e for e in events if category in e.categories]
    if not events:
        return 0.0
    return sum(1 for e in events if e.completed) / len(events)


class AffinityProfile(BaseModel):
    """Per-viewer accumulated preference state."""

    viewer_id: str
    category_scores: Dict[str, float] = Field(default_factory=dict)
    last_read_items: List[str] = Field(default_factory=list)
    history: List[ReadingEvent] = Field(default_factory=list)

    @classmethod
    def empty(cls, viewer_id: str) -> "AffinityProfile":
        return cls(viewer_id=viewer_id)

    @property
    def is_empty(self) -> bool:
        return not (self.category_scores or self.last_read_items or self.history)

    def category_score(self, category: str) -> float:
        return self.category_scores.get(category, 0.0)

    def recent_events(self, window_days: float, now: Optional[datetime] = None) -> List[ReadingEvent]:
        """Events newer than now - window_days."""
        cutoff = (now or utc_now()) - timedelta(days=window_days)
        return [e for e in self.history if e.timestamp > cutoff]

    def last_read_index(self, item_id: str) -> Optional[int]:
        """Position of item_id in the recently read list, or None when unread."""
        try:
            return self.last_read_items.index(item_id)
        except ValueError:
            return None
