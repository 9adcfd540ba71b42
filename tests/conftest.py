"""Shared fixtures for the taskify test suite."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from taskify.application.activity import ActivityLogRecorder, register_activity_handlers
from taskify.application.coordinator import LifecycleCoordinator
from taskify.core.clock import SimClock
from taskify.core.config import Settings
from taskify.core.enums import TaskPriority, TaskStatus
from taskify.domain.project import Project
from taskify.domain.task import Task
from taskify.domain.user import User
from taskify.infrastructure.event_bus import InMemoryEventBus
from taskify.infrastructure.memory_store import InMemoryUnitOfWork

START = datetime(2024, 6, 1, 9, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Time
# ---------------------------------------------------------------------------

@pytest.fixture
def clock() -> SimClock:
    """Simulated clock fixed at 2024-06-01 09:00 UTC."""
    return SimClock(START)


# ---------------------------------------------------------------------------
# Aggregates (pending events cleared)
# ---------------------------------------------------------------------------

@pytest.fixture
def task(clock) -> Task:
    t = Task.create(
        "Write release notes",
        "Summarise the sprint",
        TaskPriority.MEDIUM,
        TaskStatus.TODO,
        project_id=1,
        clock=clock,
    )
    t.clear_domain_events()
    return t


@pytest.fixture
def project(clock) -> Project:
    p = Project.create("Apollo", "Launch work", "#1E90FF", project_id=1, clock=clock)
    p.clear_domain_events()
    return p


@pytest.fixture
def user(clock) -> User:
    u = User.create("Ada Okafor", "ada@acme.io", clock=clock)
    u.clear_domain_events()
    return u


# ---------------------------------------------------------------------------
# Application wiring
# ---------------------------------------------------------------------------

@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def uow() -> InMemoryUnitOfWork:
    return InMemoryUnitOfWork()


@pytest.fixture
def bus() -> InMemoryEventBus:
    return InMemoryEventBus()


@pytest.fixture
def activity(bus) -> ActivityLogRecorder:
    recorder = ActivityLogRecorder(capacity=100)
    register_activity_handlers(bus, recorder)
    return recorder


@pytest.fixture
def coordinator(uow, bus, clock, settings) -> LifecycleCoordinator:
    return LifecycleCoordinator(uow, bus, clock=clock, settings=settings)
