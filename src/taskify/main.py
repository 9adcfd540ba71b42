"""Wiring: settings, logging, store, bus, activity feed, coordinator."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from taskify.application.activity import ActivityLogRecorder, register_activity_handlers
from taskify.application.coordinator import LifecycleCoordinator
from taskify.core.clock import IClock
from taskify.core.config import Settings, load_settings
from taskify.infrastructure.event_bus import InMemoryEventBus
from taskify.infrastructure.memory_store import InMemoryUnitOfWork
from taskify.observability.logger import setup_logging

logger = logging.getLogger(__name__)


@dataclass
class TaskifyApp:
    settings: Settings
    coordinator: LifecycleCoordinator
    event_bus: InMemoryEventBus
    activity: ActivityLogRecorder


def build_app(settings: Settings | None = None, clock: IClock | None = None) -> TaskifyApp:
    """Assemble an in-memory application from *settings*."""
    settings = settings or Settings()
    settings.validate_paging()

    setup_logging(
        level=settings.observability.log_level,
        format=settings.observability.log_format,
    )

    bus = InMemoryEventBus(
        enforce_ownership=settings.events.enforce_ownership,
        history_capacity=settings.events.history_capacity,
        dead_letter_capacity=settings.events.dead_letter_capacity,
    )
    activity = ActivityLogRecorder(capacity=settings.events.activity_log_capacity)
    register_activity_handlers(bus, activity)

    coordinator = LifecycleCoordinator(
        InMemoryUnitOfWork(), bus, clock=clock, settings=settings,
    )
    logger.info(
        "Taskify core ready (ownership enforced=%s)",
        settings.events.enforce_ownership,
    )
    return TaskifyApp(settings, coordinator, bus, activity)


def build_coordinator(
    settings: Settings | None = None, clock: IClock | None = None
) -> LifecycleCoordinator:
    return build_app(settings, clock).coordinator


def load_app(
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
    clock: IClock | None = None,
) -> TaskifyApp:
    """Load settings from TOML + env vars, then :func:`build_app`."""
    return build_app(load_settings(config_path, overrides), clock)
