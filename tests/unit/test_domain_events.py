"""Tests for domain events (``domain/events.py``) and the error hierarchy.

Covers:
- Every event type instantiates with defaults and is immutable.
- ``event_id`` is unique across instances.
- ``EVENT_OWNERSHIP`` maps every event type to one of the three aggregates.
- Aggregates stamp ``source`` to match the ownership table.
- Error classes carry their context and sit in the expected branches.
"""

from __future__ import annotations

import dataclasses
from datetime import datetime

import pytest

from taskify.core.enums import TaskStatus
from taskify.core.errors import (
    AlreadyExists,
    DuplicateTaskTitle,
    InvalidStatusTransition,
    NotFoundError,
    ProjectNotFound,
    TaskifyError,
    TaskNotFound,
    UserAlreadyExists,
    UserNotFound,
    ValidationError,
)
from taskify.domain.events import (
    ALL_DOMAIN_EVENTS,
    EVENT_OWNERSHIP,
    DomainEvent,
    TaskCreated,
)


class TestDomainEventBase:
    def test_default_fields_populated(self):
        e = DomainEvent()
        assert len(e.event_id) == 36  # UUID4 format
        assert isinstance(e.timestamp, datetime)
        assert e.correlation_id == ""
        assert e.causation_id == ""
        assert e.source == ""

    def test_event_id_unique(self):
        assert len({DomainEvent().event_id for _ in range(100)}) == 100

    def test_frozen(self):
        e = TaskCreated(task_id="t-1")
        with pytest.raises(dataclasses.FrozenInstanceError):
            e.task_id = "oops"  # type: ignore[misc]

    def test_replace_keeps_payload(self):
        e = TaskCreated(task_id="t-1", title="Ship")
        linked = dataclasses.replace(e, correlation_id="cmd-1")
        assert linked.correlation_id == "cmd-1"
        assert linked.event_id == e.event_id
        assert linked.title == "Ship"


class TestOwnership:
    def test_all_events_registered(self):
        assert set(ALL_DOMAIN_EVENTS) == set(EVENT_OWNERSHIP)
        assert len(ALL_DOMAIN_EVENTS) == 23

    def test_sources_are_aggregates(self):
        assert set(EVENT_OWNERSHIP.values()) == {"task", "project", "user"}

    @pytest.mark.parametrize("event_type", ALL_DOMAIN_EVENTS)
    def test_every_event_instantiates_with_defaults(self, event_type):
        event = event_type()
        assert isinstance(event, DomainEvent)

    def test_aggregates_stamp_their_source(self, task, project, user):
        task.update_status(TaskStatus.IN_PROGRESS)
        project.archive()
        user.update_department("Ops")
        for aggregate in (task, project, user):
            for event in aggregate.domain_events:
                assert event.source == EVENT_OWNERSHIP[type(event)]

    def test_aggregate_clock_stamps_timestamp(self, task, clock):
        clock.advance(minutes=10)
        task.update_status(TaskStatus.IN_PROGRESS)
        assert task.domain_events[0].timestamp == clock.now()


class TestErrors:
    def test_not_found_messages(self):
        assert str(TaskNotFound("t-9")) == "Task with ID t-9 was not found."
        assert str(ProjectNotFound(4)) == "Project with ID 4 was not found."
        assert UserNotFound("u-1").identifier == "u-1"

    def test_not_found_branch(self):
        for cls in (TaskNotFound, ProjectNotFound, UserNotFound):
            assert issubclass(cls, NotFoundError)
            assert issubclass(cls, TaskifyError)

    def test_duplicate_title_is_both_validation_and_conflict(self):
        err = DuplicateTaskTitle("Ship", 3)
        assert isinstance(err, ValidationError)
        assert isinstance(err, AlreadyExists)
        assert err.field == "title"
        assert err.project_id == 3

    def test_user_already_exists(self):
        err = UserAlreadyExists("ada@acme.io")
        assert isinstance(err, AlreadyExists)
        assert "ada@acme.io" in str(err)

    def test_invalid_transition_message(self):
        err = InvalidStatusTransition(TaskStatus.TODO, TaskStatus.REVIEW)
        assert "TODO" in str(err) and "REVIEW" in str(err)
