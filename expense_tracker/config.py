"""
Application Configuration.

Pydantic Settings model for the Expense Tracker core.
All configuration is loaded from environment variables and .env files.
Inject an AppConfig instance via dependency injection where needed.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings


class AppConfig(BaseSettings):
    """Central configuration loaded from environment variables and defaults."""

    # --- Local storage ---
    DATABASE_PATH: Path = Path("expense_tracker.db")

    # --- Remote mirror ---
    DEFAULT_REMOTE_URL: str = (
        "https://68e7865610e3f82fbf3f86d0.mockapi.io/expensetracker"
    )
    HTTP_TIMEOUT_S: float = Field(default=10.0, gt=0)

    # --- Statistics ---
    STATS_MONTH_WINDOW: int = Field(default=6, ge=1)

    # --- Logging ---
    LOG_FILE: str = "expense_tracker.log"
    LOG_MAX_BYTES: int = 5_242_880  # 5 MB
    LOG_BACKUP_COUNT: int = 3

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @field_validator("DEFAULT_REMOTE_URL")
    @classmethod
    def _strip_url(cls, value: str) -> str:
        return value.strip()

    @model_validator(mode="after")
    def _warn_missing_env(self) -> "AppConfig":
        """Emit a startup warning when running on built-in defaults.

        Pydantic silently falls back to defaults when ``.env`` is missing,
        so first-run diagnostics need an explicit log line.
        """
        _log = logging.getLogger("expense_tracker.config")

        if not Path(".env").exists():
            _log.warning(
                "No .env file found; configuration loaded from "
                "environment variables or defaults."
            )

        return self


# ---------------------------------------------------------------------------
# Module-level singleton factory
# ---------------------------------------------------------------------------

_config_instance: Optional[AppConfig] = None
_config_lock: threading.Lock = threading.Lock()


def get_config() -> AppConfig:
    """Return a cached ``AppConfig`` singleton.

    On first call, creates an ``AppConfig`` instance (reading from ``.env``).
    Subsequent calls return the same instance.  Uses a check-lock-check
    pattern so the fast path skips the lock.

    Prefer direct constructor injection of ``AppConfig`` in new code.
    """
    global _config_instance
    if _config_instance is None:
        with _config_lock:
            if _config_instance is None:
                _config_instance = AppConfig()
    return _config_instance
