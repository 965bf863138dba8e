"""
Recent activity estimation for velocity.

Velocity compares recent engagement with lifetime totals. Items carrying real
windowed telemetry (recent_views, recent_upvotes, recent_comments) use it;
otherwise the estimator approximates recent counts as a fraction of lifetime
totals. Swap the estimator to plug in time-windowed telemetry without touching
the scoring formulas.
"""

import math
from dataclasses import dataclass
from typing import Optional, Protocol

from ..models.content import ContentItem


@dataclass(frozen=True)
class RecentActivity:
    """Recent view, upvote, and comment counts for one item."""

    views: int
    upvotes: int
    comments: int


class RecentActivityEstimator(Protocol):
    """Protocol for recent activity sources."""

    def recent_activity(self, item: ContentItem) -> RecentActivity:
        ...


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class LifetimeFractionEstimator:
    """
    Recent counts = explicit telemetry when present, else max(floor, round(total * fraction)).

    The default (10%, floor 1) assumes a tenth of lifetime engagement is recent,
    which puts velocity at the bottom of its clamp for well-viewed items.
    """

    fraction: float = 0.1
    floor: int = 1

    def _estimate(self, explicit: Optional[int], total: int) -> int:
        if explicit is not None:
            return explicit
        return max(self.floor, _round_half_up(total * self.fraction))

    def recent_activity(self, item: ContentItem) -> RecentActivity:
        return RecentActivity(
            views=self._estimate(item.recent_views, item.views),
            upvotes=self._estimate(item.recent_upvotes, item.upvotes),
            comments=self._estimate(item.recent_comments, item.comment_count),
        )
