"""Configuration management.

Loads from TOML config files + environment variables.
Uses pydantic-settings for validation; env vars fill in what the file
leaves out.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import tomli
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


# ---------------------------------------------------------------------------
# Sub-configs
# ---------------------------------------------------------------------------

class ObservabilityConfig(BaseModel):
    log_level: str = "INFO"
    log_format: str = "json"  # "json" or "console"


class ProjectDefaults(BaseModel):
    color: str = "#6366F1"  # Used when a project is created without one


class PagingConfig(BaseModel):
    default_page_size: int = 10
    max_page_size: int = 100


class EventsConfig(BaseModel):
    enforce_ownership: bool = True
    activity_log_capacity: int = 1000
    history_capacity: int = 1000  # Published events kept by the bus
    dead_letter_capacity: int = 100


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------

class Settings(BaseSettings):
    """Root configuration.

    Environment variables such as ``TASKIFY_PAGING__MAX_PAGE_SIZE=50``
    supply values that were not passed in.  Keyword arguments (which is
    how :func:`load_settings` hands over the TOML file) take priority over
    the environment.
    """

    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)
    projects: ProjectDefaults = Field(default_factory=ProjectDefaults)
    paging: PagingConfig = Field(default_factory=PagingConfig)
    events: EventsConfig = Field(default_factory=EventsConfig)

    model_config = {"env_prefix": "TASKIFY_", "env_nested_delimiter": "__"}

    def validate_paging(self) -> None:
        """Reject page sizes the task listing could not honour."""
        from .errors import ConfigError

        if self.paging.default_page_size < 1:
            raise ConfigError("paging.default_page_size must be at least 1")
        if self.paging.max_page_size < self.paging.default_page_size:
            raise ConfigError(
                "paging.max_page_size must not be smaller than "
                "paging.default_page_size"
            )
        for name in ("activity_log_capacity", "history_capacity", "dead_letter_capacity"):
            if getattr(self.events, name) < 1:
                raise ConfigError(f"events.{name} must be at least 1")


def load_settings(
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> Settings:
    """Load settings from TOML file + env vars.

    Values from the file and *overrides* take priority over environment
    variables.

    Args:
        config_path: Path to TOML config file (optional).
        overrides: Dict of top-level sections to apply on top.
    """
    data: dict[str, Any] = {}

    if config_path:
        path = Path(config_path)
        if path.exists():
            with open(path, "rb") as f:
                data = tomli.load(f)

    if overrides:
        data.update(overrides)

    settings = Settings(**data)
    settings.validate_paging()
    return settings
