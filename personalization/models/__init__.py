"""Data models for the personalization engine."""

from .config import DEFAULT_CONFIG, EngineConfig, resolve_config
from .content import ContentItem, ensure_items
from .profile import AffinityProfile, category_trend, completion_rate
from .reading import ReadingEvent
from .scoring import EngagementScore, ScoredItem

__all__ = [
    "DEFAULT_CONFIG",
    "AffinityProfile",
    "ContentItem",
    "EngagementScore",
    "EngineConfig",
    "ReadingEvent",
    "ScoredItem",
    "category_trend",
    "completion_rate",
    "ensure_items",
    "resolve_config",
]
