"""Content-similarity recommendations and the interactions that feed them."""

from fastapi import APIRouter, HTTPException

from personalization.utils import parse_timestamp

from ..models import InteractionRequest, RecommendationRequest, RecommendationResponse
from ..state import get_state

router = APIRouter()


@router.post("/{viewer_id}", response_model=RecommendationResponse)
async def recommend(viewer_id: str, request: RecommendationRequest):
    """Top `limit` of the supplied candidates for the viewer (cached per viewer)."""
    if request.limit is not None and request.limit < 0:
        raise HTTPException(status_code=422, detail="limit must be >= 0")
    state = get_state()
    items = await state.recommender.get_recommendations(viewer_id, request.items, request.limit)
    return RecommendationResponse(viewer_id=viewer_id, items=items)


@router.post("/{viewer_id}/interactions")
async def record_interaction(viewer_id: str, request: InteractionRequest):
    """Record that the viewer read an item; drops the viewer's cached recommendations."""
    state = get_state()
    state.recommender.record_interaction(viewer_id, request.item, parse_timestamp(request.timestamp))
    interactions = state.recommender.interactions(viewer_id)
    return {
        "viewer_id": viewer_id,
        "item_id": request.item.id,
        "read_items": len(interactions.read_items),
    }
