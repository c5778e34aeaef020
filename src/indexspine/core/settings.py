"""
Centralized settings for indexspine.

All fields can be set through ``INDEXSPINE_*`` environment variables (e.g.
``INDEXSPINE_BATCH_SIZE=50``) or a ``.env`` file. Index definitions and
per-type default filters are structured data and live in the YAML file
named by ``config_file`` (see :mod:`indexspine.core.config`).

Examples:
    >>> from indexspine.core.settings import IndexSpineSettings
    >>> settings = IndexSpineSettings(batch_size=50, search_backend="memory")
    >>> settings.batch_size
    50

Tags:
    settings, configuration, pydantic, environment, indexspine

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from indexspine.core.models import DEFAULT_BATCH_SIZE


class SearchBackend(str, Enum):
    """Which remote search service implementation to use."""

    ALGOLIA = "algolia"
    MEMORY = "memory"


class IndexSpineSettings(BaseSettings):
    """indexspine configuration."""

    model_config = SettingsConfigDict(
        env_prefix="INDEXSPINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Batching & pacing ────────────────────────────────────────
    batch_size: int = Field(default=DEFAULT_BATCH_SIZE, ge=1)
    pacing_interval: float = Field(
        default=1.0,
        ge=0.0,
        description="Seconds between commits in interactive runs",
    )
    pacing_burst: int = Field(
        default=1,
        ge=1,
        description="Commits allowed back to back before pacing applies",
    )

    # ── Content store ────────────────────────────────────────────
    database_url: str = Field(default="sqlite:///data/indexspine.db")
    database_echo: bool = Field(default=False)
    versioned_types: list[str] = Field(default_factory=list)
    tenant_id: str | None = Field(default=None)

    # ── Index definitions ────────────────────────────────────────
    config_file: Path = Field(default=Path("indexspine.yaml"))

    # ── Remote search service ────────────────────────────────────
    search_backend: SearchBackend = Field(default=SearchBackend.ALGOLIA)
    algolia_app_id: str = Field(default="")
    algolia_api_key: str = Field(default="")
    algolia_timeout: float = Field(default=30.0, gt=0)

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="auto", description="auto, json or console")

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()

    @property
    def json_logs(self) -> bool | None:
        if self.log_format == "json":
            return True
        if self.log_format == "console":
            return False
        return None


_settings_cache: dict[str, IndexSpineSettings] = {}


def get_settings(*, _force_reload: bool = False) -> IndexSpineSettings:
    """Load, validate, and cache an :class:`IndexSpineSettings` instance."""
    if _force_reload or "default" not in _settings_cache:
        _settings_cache["default"] = IndexSpineSettings()
    return _settings_cache["default"]


def clear_settings_cache() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    _settings_cache.clear()


__all__ = [
    "SearchBackend",
    "IndexSpineSettings",
    "get_settings",
    "clear_settings_cache",
]
