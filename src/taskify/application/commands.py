"""Command and result types accepted and returned by the coordinator.

Commands are Pydantic models.  For partial updates the coordinator
inspects ``model_fields_set`` so that an omitted field and an explicit
``None`` can mean different things (e.g. ``assignee_id=None`` unassigns).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

from taskify.core.enums import Position, TaskPriority, TaskStatus, UserRole
from taskify.domain.events import DomainEvent

T = TypeVar("T")


class Command(BaseModel):
    """Base for all commands."""

    model_config = {"frozen": True}


# ===========================================================================
# Tasks
# ===========================================================================

class CreateTaskCommand(Command):
    title: str
    description: str = ""
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    project_id: int
    assignee_id: str | None = None
    due_date: datetime | None = None


class UpdateTaskCommand(Command):
    task_id: str
    title: str | None = None
    description: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    assignee_id: str | None = None
    due_date: datetime | None = None
    project_id: int | None = None


class ChangeTaskStatusCommand(Command):
    task_id: str
    status: TaskStatus
    changed_by: str | None = None


class DeleteTaskCommand(Command):
    task_id: str
    deleted_by: str | None = None


class AssignTaskCommand(Command):
    task_id: str
    user_id: str


class UnassignTaskCommand(Command):
    task_id: str


# ===========================================================================
# Team
# ===========================================================================

class InviteTeamMemberCommand(Command):
    email: str
    name: str
    role: UserRole = UserRole.MEMBER
    position: Position = Position.TEAM_MEMBER
    department: str | None = None
    avatar: str | None = None


class UpdateTeamMemberCommand(Command):
    user_id: str
    name: str
    avatar: str | None = None
    role: UserRole = UserRole.MEMBER
    position: Position = Position.TEAM_MEMBER
    department: str | None = None


class RemoveTeamMemberCommand(Command):
    user_id: str
    removed_by: str | None = None


class AssignProjectCommand(Command):
    user_id: str
    project_id: int


class UnassignProjectCommand(Command):
    user_id: str
    project_id: int


# ===========================================================================
# Projects
# ===========================================================================

class CreateProjectCommand(Command):
    name: str
    description: str = ""
    color: str | None = None  # None -> configured default
    member_ids: list[str] = Field(default_factory=list)


class UpdateProjectCommand(Command):
    project_id: int
    name: str
    description: str = ""
    color: str
    member_ids: list[str] = Field(default_factory=list)


class ArchiveProjectCommand(Command):
    project_id: int


class DeleteProjectCommand(Command):
    project_id: int
    deleted_by: str | None = None


# ===========================================================================
# Results
# ===========================================================================

@dataclass(frozen=True)
class CommandResult(Generic[T]):
    """Outcome of a committed command.

    ``events`` are the domain events drained after commit, in the order
    they were raised, already handed to the event bus if one is wired.
    """

    value: T
    events: tuple[DomainEvent, ...] = ()
    message: str = ""

    def events_of(self, event_type: type[DomainEvent]) -> list[DomainEvent]:
        return [e for e in self.events if type(e) is event_type]


@dataclass(frozen=True)
class ProjectProgress:
    project_id: int
    total: int
    todo: int
    in_progress: int
    review: int
    completed: int
    completion_percentage: float
