"""Root and health endpoints."""

from fastapi import APIRouter

from ..state import get_state

router = APIRouter()


@router.get("/")
def root():
    state = get_state()
    return {
        "name": "Personalization & Ranking Engine API",
        "version": "1.0.0",
        "status": "ok",
        "profile_store": type(state.profile_store.persistence).__name__,
        "endpoints": {
            "profiles": ["/api/profiles/{viewer_id}", "/api/profiles/{viewer_id}/readings"],
            "rankings": ["/api/rankings/relevance", "/api/rankings/engagement"],
            "recommendations": [
                "/api/recommendations/{viewer_id}",
                "/api/recommendations/{viewer_id}/interactions",
            ],
            "trending": ["/api/trending"],
        },
    }


@router.get("/api/health")
def health():
    return {"status": "healthy"}
