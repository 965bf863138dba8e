"""Register all route modules on the FastAPI app."""

from fastapi import FastAPI

from .root import router as root_router
from .profiles import router as profiles_router
from .rankings import router as rankings_router
from .recommendations import router as recommendations_router
from .trending import router as trending_router


def register_routes(app: FastAPI) -> None:
    """Attach all API routers to the app."""
    app.include_router(root_router)
    app.include_router(profiles_router, prefix="/api/profiles", tags=["profiles"])
    app.include_router(rankings_router, prefix="/api/rankings", tags=["rankings"])
    app.include_router(recommendations_router, prefix="/api/recommendations", tags=["recommendations"])
    app.include_router(trending_router, prefix="/api", tags=["trending"])
