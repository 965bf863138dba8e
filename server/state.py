"""Application state: engine config, profile store, and recommender."""

from typing import Optional

from personalization import (
    AffinityProfileStore,
    ContentSimilarityRecommender,
    EngineConfig,
    FirestoreProfilePersistence,
    InMemoryProfilePersistence,
    JsonProfilePersistence,
    ProfilePersistence,
)

from .config import ServerConfig, get_config


class AppState:
    """Global application state."""

    def __init__(self, config: ServerConfig, engine_config: Optional[EngineConfig] = None):
        self.config = config
        self.engine_config = engine_config if engine_config is not None else config.load_engine_config()

        persistence = self._create_persistence(config)
        print(f"[startup] Profile store: {type(persistence).__name__}")
        self.profile_store = AffinityProfileStore(
            persistence,
            config=self.engine_config,
            default_timeout=config.profile_store_timeout,
        )
        self.recommender = ContentSimilarityRecommender(config=self.engine_config)

    def _create_persistence(self, config: ServerConfig) -> ProfilePersistence:
        """Profile persistence from config (memory, JSON file, or Firestore)."""
        if config.profile_store == "json":
            return JsonProfilePersistence(config.profiles_json_path)
        if config.profile_store == "firebase":
            cred_path = config.firebase_credentials_path
            if not cred_path or not cred_path.is_file():
                print(
                    f"[startup] Firestore profile store skipped: credentials file not found: {cred_path}. "
                    "Profiles are kept in memory only."
                )
                return InMemoryProfilePersistence()
            return FirestoreProfilePersistence(
                project_id=config.firebase_project_id,
                credentials_path=cred_path,
            )
        return InMemoryProfilePersistence()


_state: Optional[AppState] = None


def get_state() -> AppState:
    global _state
    if _state is None:
        _state = AppState(get_config())
    return _state


def set_state(state: Optional[AppState]) -> None:
    """Replace (or with None, reset) the global state."""
    global _state
    _state = state
