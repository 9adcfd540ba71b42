"""In-memory persistence for tests, demos and local development.

Design invariants
-----------------
1.  One ``InMemoryUnitOfWork`` owns one store.  Repositories read and
    write the store directly; the unit of work provides atomicity.
2.  Entering the unit of work captures a memento of every stored
    aggregate (field values, containers copied one level deep).
    ``rollback()`` restores them **in place**, so references held by
    callers observe the restored state, and drops anything added.
3.  Project ids are sequential, starting at 1.  Deleting a project
    cascades to its tasks.
4.  Every aggregate returned by or handed to a repository is tracked;
    ``collect_events()`` drains their pending events in first-seen order.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import TracebackType
from typing import Any, Callable, TypeVar

from taskify.core.errors import ValidationError
from taskify.core.interfaces import TaskPage
from taskify.domain.base import AggregateRoot
from taskify.domain.events import DomainEvent
from taskify.domain.filters import TaskFilters
from taskify.domain.project import Project
from taskify.domain.task import Task
from taskify.domain.user import User

logger = logging.getLogger(__name__)

A = TypeVar("A", bound=AggregateRoot)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)

_SORT_KEYS: dict[str, Callable[[Task], Any]] = {
    "title": lambda t: t.title.casefold(),
    "priority": lambda t: t.priority,
    # Tasks without a due date sort first, as NULLs do in SQL.
    "duedate": lambda t: (t.due_date is not None, t.due_date or _EPOCH),
    "status": lambda t: t.status,
}


# ---------------------------------------------------------------------------
# Store + mementos
# ---------------------------------------------------------------------------

@dataclass
class _Store:
    tasks: dict[str, Task] = field(default_factory=dict)
    projects: dict[int, Project] = field(default_factory=dict)
    users: dict[str, User] = field(default_factory=dict)
    last_project_id: int = 0


def _capture(entity: AggregateRoot) -> dict[str, Any]:
    return {
        key: copy.copy(value) if isinstance(value, (list, set, dict)) else value
        for key, value in vars(entity).items()
    }


def _restore(entity: AggregateRoot, memento: dict[str, Any]) -> None:
    state = vars(entity)
    state.clear()
    state.update(memento)


class _Tracker:
    """Aggregates seen during the current transaction, in first-seen order."""

    def __init__(self) -> None:
        self._seen: dict[int, AggregateRoot] = {}

    def track(self, entity: A | None) -> A | None:
        if entity is not None:
            self._seen.setdefault(id(entity), entity)
        return entity

    def track_all(self, entities: list[A]) -> list[A]:
        for entity in entities:
            self.track(entity)
        return entities

    def drain(self) -> list[DomainEvent]:
        events: list[DomainEvent] = []
        for entity in self._seen.values():
            events.extend(entity.pull_domain_events())
        return events

    def reset(self) -> None:
        self._seen.clear()


# ---------------------------------------------------------------------------
# Repositories
# ---------------------------------------------------------------------------

class InMemoryTaskRepository:
    def __init__(self, store: _Store, tracker: _Tracker) -> None:
        self._store = store
        self._tracker = tracker

    async def get(self, task_id: str) -> Task | None:
        return self._tracker.track(self._store.tasks.get(task_id))

    async def add(self, task: Task) -> None:
        self._store.tasks[task.id] = task
        self._tracker.track(task)

    async def delete(self, task: Task) -> None:
        self._tracker.track(task)
        self._store.tasks.pop(task.id, None)

    async def exists(self, task_id: str) -> bool:
        return task_id in self._store.tasks

    async def exists_by_title_in_project(
        self,
        title: str,
        project_id: int,
        exclude_task_id: str | None = None,
    ) -> bool:
        wanted = title.casefold()
        return any(
            t.project_id == project_id
            and t.title.casefold() == wanted
            and t.id != exclude_task_id
            for t in self._store.tasks.values()
        )

    async def list_by_project(self, project_id: int) -> list[Task]:
        return self._tracker.track_all(
            [t for t in self._store.tasks.values() if t.project_id == project_id]
        )

    async def list_by_assignee(self, user_id: str) -> list[Task]:
        return self._tracker.track_all(
            [t for t in self._store.tasks.values() if t.assignee_id == user_id]
        )

    async def list_tasks(
        self,
        filters: TaskFilters,
        page: int = 1,
        page_size: int = 10,
        sort_by: str | None = None,
        descending: bool = False,
    ) -> TaskPage:
        """Filter, sort and paginate.

        Unknown or missing ``sort_by`` falls back to newest first.
        """
        if page < 1:
            raise ValidationError("Page must be at least 1", field="page")
        if page_size < 1:
            raise ValidationError("Page size must be at least 1", field="page_size")

        matched = [t for t in self._store.tasks.values() if _matches(filters, t)]

        key = _SORT_KEYS.get((sort_by or "").lower())
        if key is None:
            matched.sort(key=lambda t: t.created_at, reverse=True)
        else:
            matched.sort(key=key, reverse=descending)

        start = (page - 1) * page_size
        return TaskPage(
            items=tuple(matched[start:start + page_size]),
            total_count=len(matched),
            page=page,
            page_size=page_size,
        )


def _matches(filters: TaskFilters, task: Task) -> bool:
    if filters.statuses is not None and task.status not in filters.statuses:
        return False
    if filters.priorities is not None and task.priority not in filters.priorities:
        return False
    if filters.project_id is not None and task.project_id != filters.project_id:
        return False
    if filters.assignee_id is not None and task.assignee_id != filters.assignee_id:
        return False
    if filters.search_term:
        term = filters.search_term.casefold()
        if term not in task.title.casefold() and term not in task.description.casefold():
            return False
    if filters.due_date_from is not None or filters.due_date_to is not None:
        if task.due_date is None:
            return False
        if filters.due_date_from is not None and task.due_date < _aware(filters.due_date_from):
            return False
        if filters.due_date_to is not None and task.due_date > _aware(filters.due_date_to):
            return False
    return True


def _aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class InMemoryProjectRepository:
    def __init__(self, store: _Store, tracker: _Tracker) -> None:
        self._store = store
        self._tracker = tracker

    async def next_id(self) -> int:
        self._store.last_project_id += 1
        return self._store.last_project_id

    async def get(self, project_id: int) -> Project | None:
        return self._tracker.track(self._store.projects.get(project_id))

    async def add(self, project: Project) -> None:
        if project.id <= 0:
            project.id = await self.next_id()
        self._store.last_project_id = max(self._store.last_project_id, project.id)
        self._store.projects[project.id] = project
        self._tracker.track(project)

    async def delete(self, project: Project) -> None:
        self._tracker.track(project)
        self._store.projects.pop(project.id, None)
        orphaned = [
            task_id
            for task_id, task in self._store.tasks.items()
            if task.project_id == project.id
        ]
        for task_id in orphaned:
            del self._store.tasks[task_id]
        if orphaned:
            logger.debug(
                "Cascade-deleted %d task(s) with project %d",
                len(orphaned),
                project.id,
            )

    async def exists(self, project_id: int) -> bool:
        return project_id in self._store.projects


class InMemoryUserRepository:
    def __init__(self, store: _Store, tracker: _Tracker) -> None:
        self._store = store
        self._tracker = tracker

    async def get(self, user_id: str) -> User | None:
        return self._tracker.track(self._store.users.get(user_id))

    async def get_by_email(self, email: str) -> User | None:
        wanted = email.strip().casefold()
        for user in self._store.users.values():
            if user.email.casefold() == wanted:
                return self._tracker.track(user)
        return None

    async def add(self, user: User) -> None:
        self._store.users[user.id] = user
        self._tracker.track(user)

    async def delete(self, user: User) -> None:
        self._tracker.track(user)
        self._store.users.pop(user.id, None)

    async def exists(self, user_id: str) -> bool:
        return user_id in self._store.users


# ---------------------------------------------------------------------------
# Unit of work
# ---------------------------------------------------------------------------

class InMemoryUnitOfWork:
    """Transactional facade over the three in-memory repositories.

    Not re-entrant: one open transaction at a time.
    """

    def __init__(self) -> None:
        self._store = _Store()
        self._tracker = _Tracker()
        self._snapshot: dict[str, Any] | None = None
        self.tasks = InMemoryTaskRepository(self._store, self._tracker)
        self.projects = InMemoryProjectRepository(self._store, self._tracker)
        self.users = InMemoryUserRepository(self._store, self._tracker)

    @property
    def in_transaction(self) -> bool:
        return self._snapshot is not None

    async def __aenter__(self) -> InMemoryUnitOfWork:
        if self._snapshot is not None:
            raise RuntimeError("Unit of work is already in a transaction")
        self._tracker.reset()
        self._snapshot = self._take_snapshot()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._snapshot is not None:
            await self.rollback()

    async def commit(self) -> None:
        self._snapshot = None

    async def rollback(self) -> None:
        snapshot = self._snapshot
        if snapshot is None:
            return
        for entity, memento in snapshot["mementos"]:
            _restore(entity, memento)
        self._store.tasks = snapshot["tasks"]
        self._store.projects = snapshot["projects"]
        self._store.users = snapshot["users"]
        self._store.last_project_id = snapshot["last_project_id"]
        self._snapshot = None
        self._tracker.reset()
        logger.debug("Unit of work rolled back")

    def collect_events(self) -> list[DomainEvent]:
        return self._tracker.drain()

    def _take_snapshot(self) -> dict[str, Any]:
        entities: list[AggregateRoot] = [
            *self._store.tasks.values(),
            *self._store.projects.values(),
            *self._store.users.values(),
        ]
        return {
            "tasks": dict(self._store.tasks),
            "projects": dict(self._store.projects),
            "users": dict(self._store.users),
            "last_project_id": self._store.last_project_id,
            "mementos": [(e, _capture(e)) for e in entities],
        }
