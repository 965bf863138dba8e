"""
Reading event model: one viewer finishing or abandoning one item.

Append-only; frozen after creation. Categories are captured at read time so
later re-tagging of the item does not rewrite history.
"""

from datetime import datetime
from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..utils.time import parse_timestamp, utc_now


class ReadingEvent(BaseModel):
    """A single reading event in a viewer's history."""

    model_config = ConfigDict(frozen=True)

    viewer_id: str
    item_id: str
    timestamp: datetime = Field(default_factory=utc_now)
    time_spent_seconds: float = 0.0
    completed: bool = False
    categories: List[str] = []

    @field_validator("timestamp", mode="before")
    @classmethod
    def coerce_timestamp(cls, value: Any) -> datetime:
        return parse_timestamp(value) or utc_now()

    @field_validator("time_spent_seconds", mode="before")
    @classmethod
    def coerce_time_spent(cls, value: Any) -> float:
        try:
            seconds = float(value)
        except (TypeError, ValueError):
            return 0.0
        return seconds if seconds > 0 and seconds != float("inf") else 0.0

    @field_validator("categories", mode="before")
    @classmethod
    def coerce_categories(cls, value: Any) -> List[str]:
        if not value:
            return []
        if isinstance(value, str):
            return [value]
        return [str(c) for c in value if c]
