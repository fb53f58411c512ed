"""
Application Configuration.

Pydantic Settings model for the homebase data-access layer.
All configuration is loaded from environment variables and .env files.
Inject an AppConfig instance via dependency injection where needed.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings


class AppConfig(BaseSettings):
    """Central configuration loaded from environment variables and defaults."""

    # --- Supabase ---
    SUPABASE_URL: str = ""
    SUPABASE_ANON_KEY: SecretStr = SecretStr("")

    # --- Backend selection ---
    # Explicit switch for offline / demo mode.  Local mode is also forced
    # when the Supabase credentials are missing (see ``use_local_backend``).
    USE_LOCAL_BACKEND: bool = False

    # --- Local store ---
    LOCAL_STORE_PATH: str = "homebase_local.db"
    STORAGE_NAMESPACE: str = "family-logistics"

    # --- Domain defaults ---
    DEFAULT_HOUSEHOLD_NAME: str = "My Household"
    DEFAULT_OWNER_DISPLAY_NAME: str = "Owner"
    SHARE_SLUG_LENGTH: int = Field(default=8, ge=4, le=32)

    # --- Logging ---
    LOG_FILE: Optional[str] = None
    LOG_MAX_BYTES: int = 5_242_880  # 5 MB
    LOG_BACKUP_COUNT: int = 3

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @model_validator(mode="after")
    def _warn_missing_env(self) -> "AppConfig":
        """Emit a startup warning when the remote backend cannot be used.

        Pydantic silently falls back to defaults when ``.env`` is missing.
        Missing Supabase credentials switch the application to the local
        store, which operators should know about on first run.
        """
        _log = logging.getLogger("homebase.config")

        if self.USE_LOCAL_BACKEND:
            _log.info("USE_LOCAL_BACKEND is set, running against the local store.")
        elif not self.has_supabase_credentials:
            _log.warning(
                "Supabase credentials not found, running in local mode. "
                "Data is persisted to '%s'.",
                self.LOCAL_STORE_PATH,
            )

        return self

    @property
    def has_supabase_credentials(self) -> bool:
        """``True`` when both the Supabase URL and anon key are set."""
        return bool(self.SUPABASE_URL and self.SUPABASE_ANON_KEY.get_secret_value())

    @property
    def use_local_backend(self) -> bool:
        """Return the backend-selection flag.

        Local mode is enabled when ``USE_LOCAL_BACKEND`` is explicitly set,
        or when the Supabase credentials are missing.
        """
        return self.USE_LOCAL_BACKEND or not self.has_supabase_credentials

    def backend_label(self) -> str:
        """Human-readable label of the active backend."""
        return "Local (SQLite)" if self.use_local_backend else "Supabase"


# ---------------------------------------------------------------------------
# Module-level singleton factory
# ---------------------------------------------------------------------------

_config_instance: Optional[AppConfig] = None
_config_lock: threading.Lock = threading.Lock()


def get_config() -> AppConfig:
    """Return a cached ``AppConfig`` singleton.

    On first call, creates an ``AppConfig`` instance (reading from ``.env``).
    Subsequent calls return the same instance.  Uses a check-lock-check
    pattern to avoid the lock overhead on the fast path while remaining
    thread-safe during first initialisation.

    Prefer direct constructor injection of ``AppConfig`` in new code.
    """
    global _config_instance
    if _config_instance is None:
        with _config_lock:
            if _config_instance is None:
                _config_instance = AppConfig()
    return _config_instance
