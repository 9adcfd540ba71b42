"""Canonical domain events for the task management core.

Design invariants
-----------------
1.  Every event is **immutable** (``frozen=True``).
2.  Every event type has exactly **one writer** aggregate, see
    ``EVENT_OWNERSHIP``.  Aggregates stamp ``source`` accordingly.
3.  ``event_id`` is a UUID4 generated at creation time; it serves as the
    idempotency / dedup key for downstream consumers.
4.  ``correlation_id`` links all events raised by the *same command*.
5.  Events are queued on the aggregate and dispatched by the caller only
    after a successful commit.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta

from taskify.core.enums import Position, TaskPriority, TaskStatus, UserRole
from taskify.core.ids import new_id as _uuid
from taskify.core.ids import utc_now as _now

# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DomainEvent:
    """Immutable base for every domain event.

    Shared fields
    ~~~~~~~~~~~~~
    event_id        Unique identity (UUID4).  Idempotency key.
    timestamp       UTC time the event occurred (aggregate clock).
    correlation_id  Groups events raised by the same command.
    causation_id    The ``event_id`` that directly caused this event.
    source          Aggregate kind that produced this event.
    """

    event_id: str = field(default_factory=_uuid)
    timestamp: datetime = field(default_factory=_now)
    correlation_id: str = ""
    causation_id: str = ""
    source: str = ""


# =========================================================================
# Task aggregate  (writer: task)
# =========================================================================

@dataclass(frozen=True)
class TaskCreated(DomainEvent):
    task_id: str = ""
    title: str = ""
    project_id: int = 0
    assignee_id: str | None = None
    priority: TaskPriority = TaskPriority.MEDIUM


@dataclass(frozen=True)
class TaskStatusChanged(DomainEvent):
    task_id: str = ""
    task_title: str = ""
    old_status: TaskStatus = TaskStatus.TODO
    new_status: TaskStatus = TaskStatus.TODO
    changed_by: str | None = None


@dataclass(frozen=True)
class TaskCompleted(DomainEvent):
    """Raised alongside ``TaskStatusChanged`` when a task reaches COMPLETED."""

    task_id: str = ""
    project_id: int = 0
    task_title: str = ""
    completed_by: str | None = None
    completed_at: datetime | None = None
    duration: timedelta = timedelta(0)


@dataclass(frozen=True)
class TaskAssigned(DomainEvent):
    task_id: str = ""
    task_title: str = ""
    old_assignee_id: str | None = None
    new_assignee_id: str = ""


@dataclass(frozen=True)
class TaskUnassigned(DomainEvent):
    task_id: str = ""
    task_title: str = ""
    old_assignee_id: str = ""


@dataclass(frozen=True)
class TaskDueDateChanged(DomainEvent):
    task_id: str = ""
    task_title: str = ""
    old_due_date: datetime | None = None
    new_due_date: datetime | None = None


@dataclass(frozen=True)
class TaskEdited(DomainEvent):
    """Title, description or priority changed (only raised on a real change)."""

    task_id: str = ""
    old_title: str = ""
    new_title: str = ""
    old_description: str = ""
    new_description: str = ""
    old_priority: TaskPriority = TaskPriority.MEDIUM
    new_priority: TaskPriority = TaskPriority.MEDIUM
    edited_by: str | None = None


@dataclass(frozen=True)
class TaskProjectChanged(DomainEvent):
    task_id: str = ""
    task_title: str = ""
    old_project_id: int = 0
    new_project_id: int = 0


@dataclass(frozen=True)
class TaskDeleted(DomainEvent):
    """Audit record raised just before the caller removes the task."""

    task_id: str = ""
    title: str = ""
    project_id: int = 0
    status: TaskStatus = TaskStatus.TODO
    deleted_by: str | None = None


# =========================================================================
# Project aggregate  (writer: project)
# =========================================================================

@dataclass(frozen=True)
class ProjectCreated(DomainEvent):
    project_id: int = 0
    name: str = ""
    color: str = ""


@dataclass(frozen=True)
class ProjectUpdated(DomainEvent):
    project_id: int = 0
    old_name: str = ""
    new_name: str = ""
    old_color: str = ""
    new_color: str = ""


@dataclass(frozen=True)
class ProjectArchived(DomainEvent):
    project_id: int = 0
    name: str = ""


@dataclass(frozen=True)
class ProjectMemberAdded(DomainEvent):
    project_id: int = 0
    project_name: str = ""
    user_id: str = ""


@dataclass(frozen=True)
class ProjectMemberRemoved(DomainEvent):
    project_id: int = 0
    project_name: str = ""
    user_id: str = ""


@dataclass(frozen=True)
class ProjectDeleted(DomainEvent):
    project_id: int = 0
    name: str = ""
    task_count: int = 0
    deleted_by: str | None = None


# =========================================================================
# User aggregate  (writer: user)
# =========================================================================

@dataclass(frozen=True)
class TeamMemberInvited(DomainEvent):
    user_id: str = ""
    name: str = ""
    email: str = ""
    role: UserRole = UserRole.MEMBER


@dataclass(frozen=True)
class TeamMemberProfileUpdated(DomainEvent):
    user_id: str = ""
    old_name: str = ""
    new_name: str = ""
    old_avatar: str | None = None
    new_avatar: str | None = None


@dataclass(frozen=True)
class TeamMemberRoleChanged(DomainEvent):
    user_id: str = ""
    user_name: str = ""
    old_role: UserRole = UserRole.MEMBER
    new_role: UserRole = UserRole.MEMBER


@dataclass(frozen=True)
class TeamMemberPositionChanged(DomainEvent):
    user_id: str = ""
    user_name: str = ""
    old_position: Position = Position.TEAM_MEMBER
    new_position: Position = Position.TEAM_MEMBER


@dataclass(frozen=True)
class TeamMemberDepartmentChanged(DomainEvent):
    user_id: str = ""
    user_name: str = ""
    old_department: str | None = None
    new_department: str | None = None


@dataclass(frozen=True)
class TeamMemberProjectAssigned(DomainEvent):
    user_id: str = ""
    user_name: str = ""
    project_id: int = 0
    project_name: str = ""


@dataclass(frozen=True)
class TeamMemberProjectUnassigned(DomainEvent):
    user_id: str = ""
    user_name: str = ""
    project_id: int = 0
    project_name: str = ""


@dataclass(frozen=True)
class TeamMemberRemoved(DomainEvent):
    user_id: str = ""
    name: str = ""
    email: str = ""
    role: UserRole = UserRole.MEMBER
    removed_by: str | None = None


# =========================================================================
# Write-ownership registry
# =========================================================================

TASK_SOURCE = "task"
PROJECT_SOURCE = "project"
USER_SOURCE = "user"

#: Maps each event type to the *only* ``source`` value allowed to produce
#: it.  ``InMemoryEventBus`` uses this table to reject misattributed
#: publishes.
EVENT_OWNERSHIP: dict[type[DomainEvent], str] = {
    # Task
    TaskCreated: TASK_SOURCE,
    TaskStatusChanged: TASK_SOURCE,
    TaskCompleted: TASK_SOURCE,
    TaskAssigned: TASK_SOURCE,
    TaskUnassigned: TASK_SOURCE,
    TaskDueDateChanged: TASK_SOURCE,
    TaskEdited: TASK_SOURCE,
    TaskProjectChanged: TASK_SOURCE,
    TaskDeleted: TASK_SOURCE,
    # Project
    ProjectCreated: PROJECT_SOURCE,
    ProjectUpdated: PROJECT_SOURCE,
    ProjectArchived: PROJECT_SOURCE,
    ProjectMemberAdded: PROJECT_SOURCE,
    ProjectMemberRemoved: PROJECT_SOURCE,
    ProjectDeleted: PROJECT_SOURCE,
    # User
    TeamMemberInvited: USER_SOURCE,
    TeamMemberProfileUpdated: USER_SOURCE,
    TeamMemberRoleChanged: USER_SOURCE,
    TeamMemberPositionChanged: USER_SOURCE,
    TeamMemberDepartmentChanged: USER_SOURCE,
    TeamMemberProjectAssigned: USER_SOURCE,
    TeamMemberProjectUnassigned: USER_SOURCE,
    TeamMemberRemoved: USER_SOURCE,
}


#: All domain event types in a deterministic order.
ALL_DOMAIN_EVENTS: tuple[type[DomainEvent], ...] = tuple(EVENT_OWNERSHIP.keys())
