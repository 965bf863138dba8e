"""
Server Configuration

Loads configuration from environment variables and provides defaults.
Supports loading from .env file using python-dotenv.
"""

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from personalization.models.config import DEFAULT_CONFIG, EngineConfig

# Single .env at the project root
root_env = Path(__file__).resolve().parent.parent / ".env"
if root_env.exists():
    load_dotenv(root_env)

PROFILE_STORES = ("memory", "json", "firebase")


@dataclass
class ServerConfig:
    """Server configuration."""

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8000

    # Profile persistence: "memory" | "json" | "firebase"
    profile_store: str = "memory"
    # When profile_store=json: path to the profiles JSON file
    profiles_json_path: Path = Path(__file__).parent.parent / "data" / "profiles.json"
    # When profile_store=firebase: service account JSON and optional project id
    firebase_credentials_path: Optional[Path] = None
    firebase_project_id: Optional[str] = None
    # Seconds before a profile load/save is abandoned (None = wait indefinitely)
    profile_store_timeout: Optional[float] = 5.0

    # Optional JSON file with EngineConfig overrides
    engine_config_path: Optional[Path] = None

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """Load configuration from environment variables."""
        base_dir = Path(__file__).parent.parent
        profile_store = os.getenv("PROFILE_STORE", "").strip().lower() or "memory"
        if profile_store not in PROFILE_STORES:
            profile_store = "memory"

        def _path_env(key: str, default: Optional[Path] = None) -> Optional[Path]:
            v = os.getenv(key)
            if not v:
                return default
            p = Path(v)
            return p if p.is_absolute() else (base_dir / p).resolve()

        timeout_env = os.getenv("PROFILE_STORE_TIMEOUT", "").strip()
        timeout = float(timeout_env) if timeout_env else 5.0

        return cls(
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8000")),
            profile_store=profile_store,
            profiles_json_path=_path_env("PROFILES_JSON_PATH", base_dir / "data" / "profiles.json"),
            firebase_credentials_path=_path_env("FIREBASE_CREDENTIALS_PATH") or _path_env("GOOGLE_APPLICATION_CREDENTIALS"),
            firebase_project_id=os.getenv("FIREBASE_PROJECT_ID") or None,
            profile_store_timeout=timeout if timeout > 0 else None,
            engine_config_path=_path_env("ENGINE_CONFIG_PATH"),
        )

    def validate(self) -> tuple[bool, list[str]]:
        """
        Validate the configuration.

        Returns:
            (is_valid, list_of_errors)
        """
        errors = []

        if self.profile_store == "firebase":
            if not self.firebase_credentials_path:
                errors.append("PROFILE_STORE=firebase requires FIREBASE_CREDENTIALS_PATH")
            elif not self.firebase_credentials_path.is_file():
                errors.append(f"Firebase credentials file not found: {self.firebase_credentials_path}")

        if self.engine_config_path and not self.engine_config_path.is_file():
            errors.append(f"Engine config file not found: {self.engine_config_path}")

        return len(errors) == 0, errors

    def load_engine_config(self) -> EngineConfig:
        """EngineConfig from engine_config_path, or defaults when unset."""
        if not self.engine_config_path:
            return DEFAULT_CONFIG
        with open(self.engine_config_path) as f:
            return EngineConfig.from_dict(json.load(f))


# Global config instance
_config: Optional[ServerConfig] = None


def get_config() -> ServerConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = ServerConfig.from_env()
    return _config


def reload_config() -> ServerConfig:
    """Reload configuration from environment."""
    global _config
    _config = None
    return get_config()
