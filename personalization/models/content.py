"""
Content item model: read-only snapshot of a published item supplied by the content collaborator.

Built from API/store dicts via ContentItem.model_validate(d) or ensure_items().
Malformed fields degrade to neutral defaults instead of failing the whole request.
"""

import math
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from ..utils.time import parse_timestamp


def _non_negative_int(value: Any) -> int:
    """Coerce a count to a non-negative int; garbage becomes 0."""
    if isinstance(value, bool):
        return int(value)
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(number) or number < 0:
        return 0
    return int(number)


class ContentItem(BaseModel):
    """
    Content item used by every ranking path.

    categories: order irrelevant; empty means uncategorized.
    published_at: None when missing or unparsable, treated as "now" by time computations.
    recent_*: optional windowed telemetry; when absent, velocity falls back to
    an approximation from lifetime totals.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str
    title: str = ""
    body: str = ""
    categories: List[str] = []
    author: str = ""
    published_at: Optional[datetime] = None
    views: int = 0
    upvotes: int = 0
    comment_count: int = 0
    recent_views: Optional[int] = None
    recent_upvotes: Optional[int] = None
    recent_comments: Optional[int] = None

    @model_validator(mode="before")
    @classmethod
    def accept_aliases(cls, data: Any) -> Any:
        """Accept `content` for body, `date` for published_at and a comments list."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if "body" not in data and "content" in data:
            data["body"] = data["content"]
        if "published_at" not in data and "date" in data:
            data["published_at"] = data["date"]
        if "comment_count" not in data and "comments" in data:
            comments = data["comments"]
            data["comment_count"] = len(comments) if isinstance(comments, (list, tuple)) else comments
        for key in ("title", "body", "author"):
            if data.get(key) is None:
                data[key] = ""
        return data

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value: Any) -> str:
        return str(value)

    @field_validator("categories", mode="before")
    @classmethod
    def coerce_categories(cls, value: Any) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, (list, tuple, set)):
            return []
        seen: List[str] = []
        for cat in value:
            if cat is None:
                continue
            cat = str(cat)
            if cat and cat not in seen:
                seen.append(cat)
        return seen

    @field_validator("published_at", mode="before")
    @classmethod
    def coerce_published_at(cls, value: Any) -> Optional[datetime]:
        return parse_timestamp(value)

    @field_validator("views", "upvotes", "comment_count", mode="before")
    @classmethod
    def coerce_counts(cls, value: Any) -> int:
        return _non_negative_int(value)

    @field_validator("recent_views", "recent_upvotes", "recent_comments", mode="before")
    @classmethod
    def coerce_recent_counts(cls, value: Any) -> Optional[int]:
        if value is None:
            return None
        return _non_negative_int(value)

    @property
    def text(self) -> str:
        """Title and body joined for vectorization."""
        return f"{self.title} {self.body}"


def ensure_items(items: List[Union[Dict[str, Any], "ContentItem"]]) -> List["ContentItem"]:
    """Convert list of dicts or ContentItems to list of ContentItem models."""
    return [
        ContentItem.model_validate(i) if isinstance(i, dict) else i
        for i in items
    ]
