"""Application configuration — loads .env, then overrides from settings.json."""

import json
import os
from pathlib import Path

from dotenv import load_dotenv

# Find the project root (where .env lives)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
load_dotenv(_PROJECT_ROOT / ".env")

# Runtime settings file for in-app configuration
_SETTINGS_FILE = _PROJECT_ROOT / "data" / "settings.json"


def _load_settings() -> dict:
    """Load saved runtime settings from JSON file."""
    if _SETTINGS_FILE.exists():
        try:
            return json.loads(_SETTINGS_FILE.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            pass
    return {}


def _save_settings(settings: dict):
    """Persist runtime settings to JSON file."""
    _SETTINGS_FILE.parent.mkdir(parents=True, exist_ok=True)
    _SETTINGS_FILE.write_text(
        json.dumps(settings, indent=2), encoding="utf-8"
    )


def _as_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


# Load saved settings once at import time
_runtime = _load_settings()


class Config:
    """Central configuration: .env defaults, settings.json overrides."""

    # Paths
    PROJECT_ROOT: Path = _PROJECT_ROOT
    LOCAL_STORE_PATH: Path = Path(
        os.getenv("LOCAL_STORE_PATH", str(_PROJECT_ROOT / "data" / "local_store.db"))
    )
    EXPORT_PATH: Path = Path(
        os.getenv("EXPORT_PATH", str(_PROJECT_ROOT / "data" / "exports"))
    )

    # Browser-style storage cap (~5MB)
    LOCAL_STORE_QUOTA_BYTES: int = int(
        os.getenv("LOCAL_STORE_QUOTA_BYTES", str(5 * 1024 * 1024))
    )

    # Remote table store (settings.json overrides .env)
    SUPABASE_URL: str = _runtime.get(
        "supabase_url",
        os.getenv("SUPABASE_URL", ""),
    )
    SUPABASE_KEY: str = _runtime.get(
        "supabase_key",
        os.getenv("SUPABASE_KEY", ""),
    )
    REMOTE_TIMEOUT: int = int(_runtime.get(
        "remote_timeout",
        os.getenv("REMOTE_TIMEOUT", "30"),
    ))

    # Sync
    SYNC_INTERVAL_MINUTES: int = int(_runtime.get(
        "sync_interval_minutes",
        os.getenv("SYNC_INTERVAL_MINUTES", "5"),
    ))
    PROPAGATE_ALL_DELETES: bool = _as_bool(_runtime.get(
        "propagate_all_deletes",
        os.getenv("PROPAGATE_ALL_DELETES", "false"),
    ))

    # LM Studio (settings.json overrides .env)
    LM_STUDIO_BASE_URL: str = _runtime.get(
        "lm_studio_base_url",
        os.getenv("LM_STUDIO_BASE_URL", "http://localhost:1234/v1"),
    )
    LM_STUDIO_API_KEY: str = _runtime.get(
        "lm_studio_api_key",
        os.getenv("LM_STUDIO_API_KEY", "lm-studio"),
    )
    LM_STUDIO_MODEL: str = _runtime.get(
        "lm_studio_model",
        os.getenv("LM_STUDIO_MODEL", "local-model"),
    )
    LM_STUDIO_TIMEOUT: int = int(_runtime.get(
        "lm_studio_timeout",
        os.getenv("LM_STUDIO_TIMEOUT", "60"),
    ))

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @classmethod
    def is_remote_configured(cls) -> bool:
        """True when both the remote URL and key are set."""
        return bool(cls.SUPABASE_URL and cls.SUPABASE_KEY)

    @classmethod
    def update_remote_settings(cls, url: str, key: str, timeout: int):
        """Update remote store settings at runtime and persist to disk."""
        cls.SUPABASE_URL = url
        cls.SUPABASE_KEY = key
        cls.REMOTE_TIMEOUT = timeout

        settings = _load_settings()
        settings["supabase_url"] = url
        settings["supabase_key"] = key
        settings["remote_timeout"] = timeout
        _save_settings(settings)

    @classmethod
    def update_sync_settings(cls, interval_minutes: int,
                             propagate_all_deletes: bool):
        """Update the polling interval and delete policy, and persist."""
        cls.SYNC_INTERVAL_MINUTES = interval_minutes
        cls.PROPAGATE_ALL_DELETES = propagate_all_deletes

        settings = _load_settings()
        settings["sync_interval_minutes"] = interval_minutes
        settings["propagate_all_deletes"] = propagate_all_deletes
        _save_settings(settings)

    @classmethod
    def update_llm_settings(cls, base_url: str, api_key: str,
                            model: str, timeout: int):
        """Update LLM settings at runtime and persist to disk."""
        cls.LM_STUDIO_BASE_URL = base_url
        cls.LM_STUDIO_API_KEY = api_key
        cls.LM_STUDIO_MODEL = model
        cls.LM_STUDIO_TIMEOUT = timeout

        settings = _load_settings()
        settings["lm_studio_base_url"] = base_url
        settings["lm_studio_api_key"] = api_key
        settings["lm_studio_model"] = model
        settings["lm_studio_timeout"] = timeout
        _save_settings(settings)
