"""Centralised application settings loaded from environment / .env file."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

_DEFAULT_DB_URL = f"sqlite+aiosqlite:///{_PROJECT_ROOT / 'data' / 'dawdle.db'}"


class Settings(BaseSettings):
    """All runtime configuration for dawdle.

    Values are read from environment variables first, then from a *.env* file
    located at the project root.  Every variable lives in the flat
    ``DAWDLE_`` namespace (``DAWDLE_ACTION_DELAY_MS=250`` ...).

    Thresholds are fixed for the lifetime of a process; there is no runtime
    reconfiguration.
    """

    model_config = SettingsConfigDict(
        env_prefix="DAWDLE_",
        env_file=str(_PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Zone thresholds ───────────────────────────────────────
    emotional_distance: float = Field(1.30, gt=0)  # 30% further
    emotional_velocity: float = Field(0.83, gt=0)  # 17% slower

    # ── Segmentation & debounce ───────────────────────────────
    action_delay_ms: int = Field(200, gt=0)  # pause that splits two actions
    debounce_window_ms: int = Field(1000, gt=0)  # quiet period before analysis

    # ── Baseline ──────────────────────────────────────────────
    baseline_window: int | None = Field(None, ge=1)  # None = every prior action
    baseline_mode: Literal["combined", "mean"] = "combined"

    # ── Logging ───────────────────────────────────────────────
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # ── API server ────────────────────────────────────────────
    api_host: str = "127.0.0.1"
    api_port: int = 8000

    # ── Notifications ─────────────────────────────────────────
    webhook_url: str = ""
    webhook_zones_only: bool = True

    # ── History ───────────────────────────────────────────────
    history_enabled: bool = False
    history_key: str = "dawdle-store"
    history_max_entries: int = Field(1000, ge=1)
    database_url: str = _DEFAULT_DB_URL

    @model_validator(mode="after")
    def _debounce_exceeds_action_delay(self) -> Settings:
        # The last action is only final once the quiet period is longer
        # than the pause that closes an action.
        if self.debounce_window_ms <= self.action_delay_ms:
            raise ValueError(
                "debounce_window_ms must be greater than action_delay_ms "
                f"({self.debounce_window_ms} <= {self.action_delay_ms})"
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """Return a cached :class:`Settings` singleton."""
    return Settings()
