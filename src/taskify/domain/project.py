"""Project aggregate: task collection, member roster and progress metrics."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from taskify.core.clock import IClock, WallClock
from taskify.core.enums import ProjectStatus, TaskStatus
from taskify.core.errors import ValidationError
from taskify.domain.base import AggregateRoot, limit_text, require_text
from taskify.domain.events import (
    PROJECT_SOURCE,
    ProjectArchived,
    ProjectCreated,
    ProjectDeleted,
    ProjectMemberAdded,
    ProjectMemberRemoved,
    ProjectUpdated,
)

if TYPE_CHECKING:
    from taskify.domain.task import Task
    from taskify.domain.user import User

NAME_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 1000
DEFAULT_COLOR = "#6366F1"

_HEX_COLOR = re.compile(r"^#([0-9A-Fa-f]{3}){1,2}$")


def validate_color(color: str | None) -> str:
    """Return *color* if it is a 3- or 6-digit hex code such as ``#FF0000``."""
    if not color or not _HEX_COLOR.match(color):
        raise ValidationError(
            "Color must be a valid hex color code (e.g., #FF0000)", field="color"
        )
    return color


@dataclass(eq=False)
class Project(AggregateRoot):
    """A project owning its tasks and a roster of assigned users.

    ``id`` is allocated by the persistence collaborator (``next_id()``)
    before the project is built; ``0`` marks an unsaved project.
    Progress metrics are derived from ``tasks`` on every call.
    """

    event_source = PROJECT_SOURCE

    id: int = 0
    name: str = ""
    description: str = ""
    color: str = DEFAULT_COLOR
    status: ProjectStatus = ProjectStatus.ACTIVE
    tasks: list[Task] = field(default_factory=list)
    assigned_user_ids: set[str] = field(default_factory=set)

    @classmethod
    def create(
        cls,
        name: str,
        description: str | None,
        color: str,
        *,
        project_id: int = 0,
        clock: IClock | None = None,
    ) -> Project:
        name = require_text(name, "name", NAME_MAX_LENGTH)
        description = limit_text(description, "description", DESCRIPTION_MAX_LENGTH)
        color = validate_color(color)

        clock = clock or WallClock()
        now = clock.now()
        project = cls(
            id=project_id,
            name=name,
            description=description,
            color=color,
            created_at=now,
            updated_at=now,
            clock=clock,
        )
        project._record(
            ProjectCreated, project_id=project.id, name=name, color=color
        )
        return project

    def update_details(self, name: str, description: str | None, color: str) -> None:
        name = require_text(name, "name", NAME_MAX_LENGTH)
        description = limit_text(description, "description", DESCRIPTION_MAX_LENGTH)
        color = validate_color(color)

        if (name, description, color) == (self.name, self.description, self.color):
            return

        old_name, old_color = self.name, self.color
        self.name = name
        self.description = description
        self.color = color
        self.touch()
        self._record(
            ProjectUpdated,
            project_id=self.id,
            old_name=old_name,
            new_name=name,
            old_color=old_color,
            new_color=color,
        )

    def archive(self) -> None:
        if self.status == ProjectStatus.ARCHIVED:
            return
        self.status = ProjectStatus.ARCHIVED
        self.touch()
        self._record(ProjectArchived, project_id=self.id, name=self.name)

    def delete(self, deleted_by: str | None = None) -> None:
        """Raise ``ProjectDeleted``; the caller removes the project and its tasks."""
        self._record(
            ProjectDeleted,
            project_id=self.id,
            name=self.name,
            task_count=len(self.tasks),
            deleted_by=deleted_by,
        )

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    def add_task(self, task: Task) -> None:
        if task.project_id != self.id:
            raise ValidationError(
                f"Task belongs to project {task.project_id}, not {self.id}",
                field="project_id",
            )
        if any(t.id == task.id for t in self.tasks):
            return
        self.tasks.append(task)
        self.touch()

    def remove_task(self, task: Task) -> None:
        remaining = [t for t in self.tasks if t.id != task.id]
        if len(remaining) != len(self.tasks):
            self.tasks[:] = remaining
            self.touch()

    # ------------------------------------------------------------------
    # Roster
    # ------------------------------------------------------------------

    def has_member(self, user_id: str) -> bool:
        return user_id in self.assigned_user_ids

    def assign_user(self, user: User) -> None:
        """Add *user* to the roster.  Idempotent."""
        if user.id in self.assigned_user_ids:
            return
        self.assigned_user_ids.add(user.id)
        self.touch()
        self._record(
            ProjectMemberAdded,
            project_id=self.id,
            project_name=self.name,
            user_id=user.id,
        )

    def remove_user(self, user: User) -> None:
        """Drop *user* from the roster.  Idempotent."""
        if user.id not in self.assigned_user_ids:
            return
        self._drop_member(user.id)
        self.touch()

    def clear_assigned_users(self) -> None:
        if not self.assigned_user_ids:
            return
        for user_id in sorted(self.assigned_user_ids):
            self._drop_member(user_id)
        self.touch()

    def _drop_member(self, user_id: str) -> None:
        self.assigned_user_ids.discard(user_id)
        self._record(
            ProjectMemberRemoved,
            project_id=self.id,
            project_name=self.name,
            user_id=user_id,
        )

    # ------------------------------------------------------------------
    # Derived metrics
    # ------------------------------------------------------------------

    def _count(self, status: TaskStatus) -> int:
        return sum(1 for t in self.tasks if t.status == status)

    @property
    def completed_tasks_count(self) -> int:
        return self._count(TaskStatus.COMPLETED)

    @property
    def todo_tasks_count(self) -> int:
        return self._count(TaskStatus.TODO)

    @property
    def in_progress_tasks_count(self) -> int:
        return self._count(TaskStatus.IN_PROGRESS)

    @property
    def review_tasks_count(self) -> int:
        return self._count(TaskStatus.REVIEW)

    @property
    def completion_percentage(self) -> float:
        if not self.tasks:
            return 0.0
        return self.completed_tasks_count / len(self.tasks) * 100
