"""
Personalization & Ranking Engine: FastAPI app factory.

Use: uvicorn server.app:app
Or:  from server import app
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .routes import register_routes
from .state import get_state


def create_app() -> FastAPI:
    """Build FastAPI app with CORS, routes, and startup."""
    app = FastAPI(
        title="Personalization & Ranking Engine API",
        description="Affinity profiles, relevance ranking, content-similarity recommendations, and trending",
        version="1.0.0",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_routes(app)

    @app.on_event("startup")
    async def _startup_logging():
        state = get_state()
        config = state.config
        _, errors = config.validate()
        for error in errors:
            print(f"[startup] WARNING: {error}")
        print("Personalization & Ranking Engine API starting...")
        print(f"Profile store: {config.profile_store}")
        print(f"Profile store timeout: {config.profile_store_timeout}")
        print(f"Engine config: {config.engine_config_path or 'defaults'}")

    return app


app = create_app()
