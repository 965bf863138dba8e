"""Request/response models for affinity profiles and reading events."""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from personalization.models.reading import ReadingEvent


class ReadingEventRequest(BaseModel):
    """One reading event for the viewer in the path."""

    item_id: str = Field(min_length=1)
    categories: List[str] = Field(default_factory=list)
    time_spent_seconds: float = 0.0
    # Omit to infer from the estimated reading time of `body`
    completed: Optional[bool] = None
    body: Optional[str] = None
    timestamp: Optional[str] = None


class ProfileResponse(BaseModel):
    """Affinity profile as returned by the API."""

    viewer_id: str
    category_scores: Dict[str, float]
    last_read_items: List[str]
    history: List[ReadingEvent]
    completed: Optional[bool] = None  # Set on reading responses: the completion flag recorded
