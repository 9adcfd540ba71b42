"""Activity feed built from published domain events.

``ActivityLogRecorder`` turns task, project and membership events into
``ActivityLog`` entries and keeps the most recent ones in a bounded
deque.  ``register_activity_handlers`` wires it (and the team-event
logger) onto an event bus.
"""

from __future__ import annotations

import itertools
import logging
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from taskify.core.enums import ActivityType, TaskStatus
from taskify.core.interfaces import IEventBus
from taskify.domain import events as ev

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActivityLog:
    id: int
    title: str
    description: str
    type: ActivityType
    timestamp: datetime
    user_id: str | None = None


_Entry = tuple[str, str, ActivityType, str | None]


# ---------------------------------------------------------------------------
# Event -> entry translation
# ---------------------------------------------------------------------------

def _task_created(e: ev.TaskCreated) -> _Entry:
    return "Task created", f"'{e.title}' was created", ActivityType.TASK_CREATED, e.assignee_id


def _task_status_changed(e: ev.TaskStatusChanged) -> _Entry | None:
    # Completion has its own entry from TaskCompleted.
    if e.new_status == TaskStatus.COMPLETED or e.old_status == e.new_status:
        return None
    if e.old_status == TaskStatus.COMPLETED:
        return (
            "Task reopened",
            f"'{e.task_title}' was reopened as {e.new_status.name}",
            ActivityType.TASK_REOPENED,
            e.changed_by,
        )
    return (
        "Task status changed",
        f"'{e.task_title}' moved from {e.old_status.name} to {e.new_status.name}",
        ActivityType.TASK_UPDATED,
        e.changed_by,
    )


def _task_completed(e: ev.TaskCompleted) -> _Entry:
    return "Task completed", f"'{e.task_title}' was completed", ActivityType.TASK_COMPLETED, e.completed_by


def _task_assigned(e: ev.TaskAssigned) -> _Entry:
    return "Task assigned", f"'{e.task_title}' was assigned", ActivityType.TASK_ASSIGNED, e.new_assignee_id


def _task_unassigned(e: ev.TaskUnassigned) -> _Entry:
    return "Task unassigned", f"'{e.task_title}' was unassigned", ActivityType.TASK_UNASSIGNED, e.old_assignee_id


def _task_edited(e: ev.TaskEdited) -> _Entry:
    return "Task updated", f"'{e.new_title}' was edited", ActivityType.TASK_UPDATED, e.edited_by


def _task_due_date_changed(e: ev.TaskDueDateChanged) -> _Entry:
    due = e.new_due_date.date().isoformat() if e.new_due_date else "none"
    return "Task updated", f"'{e.task_title}' is now due {due}", ActivityType.TASK_UPDATED, None


def _task_project_changed(e: ev.TaskProjectChanged) -> _Entry:
    return (
        "Task moved",
        f"'{e.task_title}' moved from project {e.old_project_id} to {e.new_project_id}",
        ActivityType.TASK_UPDATED,
        None,
    )


def _task_deleted(e: ev.TaskDeleted) -> _Entry:
    return "Task deleted", f"'{e.title}' was deleted", ActivityType.TASK_DELETED, e.deleted_by


def _project_created(e: ev.ProjectCreated) -> _Entry:
    return "Project created", f"Project '{e.name}' was created", ActivityType.PROJECT_CREATED, None


def _project_updated(e: ev.ProjectUpdated) -> _Entry:
    return "Project updated", f"Project '{e.new_name}' was updated", ActivityType.PROJECT_UPDATED, None


def _project_archived(e: ev.ProjectArchived) -> _Entry:
    return "Project archived", f"Project '{e.name}' was archived", ActivityType.PROJECT_UPDATED, None


def _project_deleted(e: ev.ProjectDeleted) -> _Entry:
    return (
        "Project deleted",
        f"Project '{e.name}' was deleted with {e.task_count} task(s)",
        ActivityType.PROJECT_DELETED,
        e.deleted_by,
    )


def _project_member_added(e: ev.ProjectMemberAdded) -> _Entry:
    return "Member added", f"A member joined project '{e.project_name}'", ActivityType.MEMBER_ADDED, e.user_id


def _project_member_removed(e: ev.ProjectMemberRemoved) -> _Entry:
    return "Member removed", f"A member left project '{e.project_name}'", ActivityType.MEMBER_REMOVED, e.user_id


def _member_invited(e: ev.TeamMemberInvited) -> _Entry:
    return "Member added", f"{e.name} joined the team as {e.role.name}", ActivityType.MEMBER_ADDED, e.user_id


def _member_removed(e: ev.TeamMemberRemoved) -> _Entry:
    # The user no longer exists, so the entry is not linked to them.
    return "Member removed", f"{e.name} was removed from the team", ActivityType.MEMBER_REMOVED, None


_TRANSLATORS: dict[type[ev.DomainEvent], Callable[..., _Entry | None]] = {
    ev.TaskCreated: _task_created,
    ev.TaskStatusChanged: _task_status_changed,
    ev.TaskCompleted: _task_completed,
    ev.TaskAssigned: _task_assigned,
    ev.TaskUnassigned: _task_unassigned,
    ev.TaskEdited: _task_edited,
    ev.TaskDueDateChanged: _task_due_date_changed,
    ev.TaskProjectChanged: _task_project_changed,
    ev.TaskDeleted: _task_deleted,
    ev.ProjectCreated: _project_created,
    ev.ProjectUpdated: _project_updated,
    ev.ProjectArchived: _project_archived,
    ev.ProjectDeleted: _project_deleted,
    ev.ProjectMemberAdded: _project_member_added,
    ev.ProjectMemberRemoved: _project_member_removed,
    ev.TeamMemberInvited: _member_invited,
    ev.TeamMemberRemoved: _member_removed,
}

TRACKED_EVENTS: tuple[type[ev.DomainEvent], ...] = tuple(_TRANSLATORS)


# ---------------------------------------------------------------------------
# Recorder
# ---------------------------------------------------------------------------

class ActivityLogRecorder:
    """Keeps the latest *capacity* activity entries, oldest evicted first."""

    def __init__(self, capacity: int = 1000) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._entries: deque[ActivityLog] = deque(maxlen=capacity)
        self._ids = itertools.count(1)

    async def handle(self, event: ev.DomainEvent) -> None:
        translate = _TRANSLATORS.get(type(event))
        if translate is None:
            return
        entry = translate(event)
        if entry is None:
            return
        title, description, activity_type, user_id = entry
        log = ActivityLog(
            id=next(self._ids),
            title=title,
            description=description,
            type=activity_type,
            timestamp=event.timestamp,
            user_id=user_id,
        )
        self._entries.append(log)
        logger.debug("Activity %d recorded: %s", log.id, activity_type.name)

    def entries(self, limit: int | None = None) -> list[ActivityLog]:
        """Most recent first."""
        newest = list(reversed(self._entries))
        return newest if limit is None else newest[:limit]

    def of_type(self, activity_type: ActivityType) -> list[ActivityLog]:
        return [e for e in self.entries() if e.type == activity_type]

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()


# ---------------------------------------------------------------------------
# Team event logging
# ---------------------------------------------------------------------------

async def log_team_event(event: ev.DomainEvent) -> None:
    if isinstance(event, ev.TeamMemberInvited):
        logger.info(
            "New team member invited: %s (%s) with role %s",
            event.name, event.email, event.role.name,
        )
    elif isinstance(event, ev.TeamMemberProfileUpdated):
        logger.info(
            "Team member profile updated - ID: %s, name changed from %s to %s",
            event.user_id, event.old_name, event.new_name,
        )
    elif isinstance(event, ev.TeamMemberRoleChanged):
        logger.info(
            "Team member role changed - %s: %s -> %s",
            event.user_name, event.old_role.name, event.new_role.name,
        )
    elif isinstance(event, ev.TeamMemberRemoved):
        logger.info(
            "Team member removed: %s (%s) with role %s",
            event.name, event.email, event.role.name,
        )


_TEAM_EVENTS = (
    ev.TeamMemberInvited,
    ev.TeamMemberProfileUpdated,
    ev.TeamMemberRoleChanged,
    ev.TeamMemberRemoved,
)


def register_activity_handlers(bus: IEventBus, recorder: ActivityLogRecorder) -> None:
    """Subscribe *recorder* and the team-event logger to *bus*."""
    for event_type in TRACKED_EVENTS:
        bus.subscribe(event_type, recorder.handle)
    for event_type in _TEAM_EVENTS:
        bus.subscribe(event_type, log_team_event)
