"""Task aggregate and its status state machine.

The task owns status, priority, assignment and due-date state.  Whether
a user is *eligible* to be assigned is not decided here: that needs the
user's project roster and is enforced by the lifecycle coordinator.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime

from taskify.core.clock import IClock, WallClock
from taskify.core.enums import TaskPriority, TaskStatus
from taskify.core.errors import InvalidStatusTransition, ValidationError
from taskify.core.ids import ensure_utc, new_id
from taskify.domain.base import AggregateRoot, limit_text, require_text
from taskify.domain.events import (
    TASK_SOURCE,
    TaskAssigned,
    TaskCompleted,
    TaskCreated,
    TaskDeleted,
    TaskDueDateChanged,
    TaskEdited,
    TaskProjectChanged,
    TaskStatusChanged,
    TaskUnassigned,
)

TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 1000


# ---------------------------------------------------------------------------
# Valid state transitions
# ---------------------------------------------------------------------------

_VALID_TRANSITIONS: dict[TaskStatus, frozenset[TaskStatus]] = {
    TaskStatus.TODO: frozenset(
        {TaskStatus.IN_PROGRESS, TaskStatus.COMPLETED}
    ),
    TaskStatus.IN_PROGRESS: frozenset(
        {TaskStatus.TODO, TaskStatus.REVIEW, TaskStatus.COMPLETED}
    ),
    TaskStatus.REVIEW: frozenset(
        {TaskStatus.TODO, TaskStatus.IN_PROGRESS, TaskStatus.COMPLETED}
    ),
    # Re-opening a completed task is allowed.
    TaskStatus.COMPLETED: frozenset(
        {TaskStatus.TODO, TaskStatus.IN_PROGRESS, TaskStatus.REVIEW}
    ),
}


def can_transition(current: TaskStatus, new: TaskStatus) -> bool:
    """Return ``True`` if *current* -> *new* is allowed (self-loops always are)."""
    if current == new:
        return True
    return new in _VALID_TRANSITIONS.get(current, frozenset())


def _validate_project_id(project_id: int) -> int:
    if project_id <= 0:
        raise ValidationError(
            "Project ID must be greater than 0", field="project_id"
        )
    return project_id


# ---------------------------------------------------------------------------
# Aggregate
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class Task(AggregateRoot):
    """A unit of work inside a project.

    Build with :meth:`create`; mutate only through the named methods.
    ``completed_at`` is stamped every time the task reaches COMPLETED and
    is left untouched when the task is re-opened.
    """

    event_source = TASK_SOURCE

    id: str = field(default_factory=new_id)
    title: str = ""
    description: str = ""
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    project_id: int = 0
    assignee_id: str | None = None
    due_date: datetime | None = None
    completed_at: datetime | None = None

    # ------------------------------------------------------------------
    # Factory
    # ------------------------------------------------------------------

    @classmethod
    def create(
        cls,
        title: str,
        description: str | None,
        priority: TaskPriority,
        status: TaskStatus,
        project_id: int,
        assignee_id: str | None = None,
        due_date: datetime | date | None = None,
        *,
        clock: IClock | None = None,
    ) -> Task:
        """Create a task and raise ``TaskCreated``.

        A task born COMPLETED gets ``completed_at = now`` but no
        ``TaskCompleted`` event.  The due date is not checked against
        today here; creation-time date rules belong to the coordinator.
        """
        title = require_text(title, "title", TITLE_MAX_LENGTH)
        description = limit_text(description, "description", DESCRIPTION_MAX_LENGTH)
        _validate_project_id(project_id)

        clock = clock or WallClock()
        now = clock.now()
        status = TaskStatus(status)
        task = cls(
            title=title,
            description=description,
            status=status,
            priority=TaskPriority(priority),
            project_id=project_id,
            assignee_id=assignee_id,
            due_date=ensure_utc(due_date) if due_date is not None else None,
            completed_at=now if status == TaskStatus.COMPLETED else None,
            created_at=now,
            updated_at=now,
            clock=clock,
        )
        task._record(
            TaskCreated,
            task_id=task.id,
            title=task.title,
            project_id=task.project_id,
            assignee_id=task.assignee_id,
            priority=task.priority,
        )
        return task

    @property
    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def update_status(
        self, new_status: TaskStatus, changed_by: str | None = None
    ) -> None:
        """Move to *new_status*.

        Raises ``InvalidStatusTransition`` if the pair is not in the
        table.  A self-transition is accepted and still raises
        ``TaskStatusChanged``.  Reaching COMPLETED also runs
        :meth:`mark_as_completed`.
        """
        new_status = TaskStatus(new_status)
        if not can_transition(self.status, new_status):
            raise InvalidStatusTransition(self.status, new_status)

        old_status = self.status
        self.status = new_status
        self.touch()
        self._record(
            TaskStatusChanged,
            task_id=self.id,
            task_title=self.title,
            old_status=old_status,
            new_status=new_status,
            changed_by=changed_by if changed_by is not None else self.assignee_id,
        )

        if new_status == TaskStatus.COMPLETED:
            self.mark_as_completed()

    def mark_as_completed(self) -> None:
        """Force COMPLETED, stamp ``completed_at`` and raise ``TaskCompleted``."""
        self.status = TaskStatus.COMPLETED
        self.completed_at = self.clock.now()
        self.touch()
        self._record(
            TaskCompleted,
            task_id=self.id,
            project_id=self.project_id,
            task_title=self.title,
            completed_by=self.assignee_id,
            completed_at=self.completed_at,
            duration=self.completed_at - self.created_at,
        )

    # ------------------------------------------------------------------
    # Assignment
    # ------------------------------------------------------------------

    def assign_to(self, user_id: str) -> None:
        old_assignee_id = self.assignee_id
        self.assignee_id = user_id
        self.touch()
        self._record(
            TaskAssigned,
            task_id=self.id,
            task_title=self.title,
            old_assignee_id=old_assignee_id,
            new_assignee_id=user_id,
        )

    def unassign_task(self) -> None:
        """Clear the assignee.  No-op (and no event) if already unassigned."""
        if self.assignee_id is None:
            return
        old_assignee_id = self.assignee_id
        self.assignee_id = None
        self.touch()
        self._record(
            TaskUnassigned,
            task_id=self.id,
            task_title=self.title,
            old_assignee_id=old_assignee_id,
        )

    # ------------------------------------------------------------------
    # Details
    # ------------------------------------------------------------------

    def set_due_date(self, due_date: datetime | date) -> None:
        """Set the due date; the date part must not be before today (UTC)."""
        due = ensure_utc(due_date)
        if due.date() < self.clock.today():
            raise ValidationError("Due date cannot be in the past", field="due_date")

        old_due_date = self.due_date
        self.due_date = due
        self.touch()
        self._record(
            TaskDueDateChanged,
            task_id=self.id,
            task_title=self.title,
            old_due_date=old_due_date,
            new_due_date=due,
        )

    def update_details(
        self, title: str, description: str | None, priority: TaskPriority
    ) -> None:
        """Replace title, description and priority.

        ``TaskEdited`` is raised only if at least one value differs.
        """
        title = require_text(title, "title", TITLE_MAX_LENGTH)
        description = limit_text(description, "description", DESCRIPTION_MAX_LENGTH)
        priority = TaskPriority(priority)

        if (title, description, priority) == (self.title, self.description, self.priority):
            return

        old_title, old_description, old_priority = (
            self.title, self.description, self.priority,
        )
        self.title = title
        self.description = description
        self.priority = priority
        self.touch()
        self._record(
            TaskEdited,
            task_id=self.id,
            old_title=old_title,
            new_title=title,
            old_description=old_description,
            new_description=description,
            old_priority=old_priority,
            new_priority=priority,
            edited_by=self.assignee_id,
        )

    def change_project(self, project_id: int) -> None:
        _validate_project_id(project_id)

        old_project_id = self.project_id
        self.project_id = project_id
        self.touch()
        self._record(
            TaskProjectChanged,
            task_id=self.id,
            task_title=self.title,
            old_project_id=old_project_id,
            new_project_id=project_id,
        )

    def delete(self, deleted_by: str | None = None) -> None:
        """Raise ``TaskDeleted``.  Removal itself is the caller's job."""
        self._record(
            TaskDeleted,
            task_id=self.id,
            title=self.title,
            project_id=self.project_id,
            status=self.status,
            deleted_by=deleted_by,
        )
