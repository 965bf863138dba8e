"""Affinity profiles: read a viewer's profile, record reading events."""

import asyncio

from fastapi import APIRouter, HTTPException

from personalization import ProfileStoreError, is_read_to_completion

from ..models import ProfileResponse, ReadingEventRequest
from ..state import get_state

router = APIRouter()


@router.get("/{viewer_id}", response_model=ProfileResponse)
async def get_profile(viewer_id: str):
    """Viewer's affinity profile; unknown viewers (or an unreachable store) get an empty one."""
    state = get_state()
    profile = await state.profile_store.get_profile(viewer_id)
    return ProfileResponse(**profile.model_dump())


@router.post("/{viewer_id}/readings", response_model=ProfileResponse)
async def record_reading(viewer_id: str, request: ReadingEventRequest):
    """
    Fold one reading event into the viewer's profile.
    When `completed` is omitted it is inferred from the estimated reading time
    of `body` (no body: not completed).
    """
    state = get_state()
    completed = request.completed
    if completed is None:
        completed = bool(request.body) and is_read_to_completion(request.body, request.time_spent_seconds)
    try:
        profile = await state.profile_store.record_reading_event(
            viewer_id,
            request.item_id,
            request.categories,
            request.time_spent_seconds,
            completed,
            timestamp=request.timestamp,
        )
    except ProfileStoreError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except asyncio.TimeoutError:
        raise HTTPException(status_code=504, detail=f"Profile store timed out for viewer {viewer_id!r}")
    return ProfileResponse(**profile.model_dump(), completed=completed)
