"""Protocol interfaces for the collaborators the core depends on.

All module boundaries are defined here as Protocol classes.  The
in-memory implementations in ``taskify.infrastructure`` satisfy them;
a database-backed store only has to provide the same surface.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from types import TracebackType
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from taskify.domain.events import DomainEvent
    from taskify.domain.filters import TaskFilters
    from taskify.domain.project import Project
    from taskify.domain.task import Task
    from taskify.domain.user import User

EventHandler = Callable[["DomainEvent"], Awaitable[None]]


@dataclass(frozen=True)
class TaskPage:
    """One page of a filtered task listing."""

    items: tuple[Task, ...] = ()
    total_count: int = 0
    page: int = 1
    page_size: int = 10

    @property
    def total_pages(self) -> int:
        if self.page_size <= 0:
            return 0
        return -(-self.total_count // self.page_size)


# ---------------------------------------------------------------------------
# Repositories
# ---------------------------------------------------------------------------

@runtime_checkable
class ITaskRepository(Protocol):
    async def get(self, task_id: str) -> Task | None: ...
    async def add(self, task: Task) -> None: ...
    async def delete(self, task: Task) -> None: ...
    async def exists(self, task_id: str) -> bool: ...

    async def exists_by_title_in_project(
        self,
        title: str,
        project_id: int,
        exclude_task_id: str | None = None,
    ) -> bool:
        """Case-insensitive title lookup within one project."""
        ...

    async def list_by_project(self, project_id: int) -> list[Task]: ...
    async def list_by_assignee(self, user_id: str) -> list[Task]: ...

    async def list_tasks(
        self,
        filters: TaskFilters,
        page: int = 1,
        page_size: int = 10,
        sort_by: str | None = None,
        descending: bool = False,
    ) -> TaskPage: ...


@runtime_checkable
class IProjectRepository(Protocol):
    async def next_id(self) -> int:
        """Reserve the next sequential project id."""
        ...

    async def get(self, project_id: int) -> Project | None: ...
    async def add(self, project: Project) -> None: ...

    async def delete(self, project: Project) -> None:
        """Remove the project and cascade to its tasks."""
        ...

    async def exists(self, project_id: int) -> bool: ...


@runtime_checkable
class IUserRepository(Protocol):
    async def get(self, user_id: str) -> User | None: ...
    async def get_by_email(self, email: str) -> User | None: ...
    async def add(self, user: User) -> None: ...
    async def delete(self, user: User) -> None: ...
    async def exists(self, user_id: str) -> bool: ...


# ---------------------------------------------------------------------------
# Unit of work
# ---------------------------------------------------------------------------

@runtime_checkable
class IUnitOfWork(Protocol):
    """Transaction boundary for one command.

    ``async with uow:`` opens the transaction; leaving the block without
    ``commit()`` (or through an exception) rolls it back.
    """

    tasks: ITaskRepository
    projects: IProjectRepository
    users: IUserRepository

    async def __aenter__(self) -> IUnitOfWork: ...

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None: ...

    async def commit(self) -> None: ...
    async def rollback(self) -> None: ...

    def collect_events(self) -> list[DomainEvent]:
        """Drain pending events from every aggregate seen in this transaction."""
        ...


# ---------------------------------------------------------------------------
# Event dispatch
# ---------------------------------------------------------------------------

@runtime_checkable
class IEventBus(Protocol):
    """Publish/subscribe bus routed by event type."""

    async def publish(self, event: DomainEvent) -> None: ...

    def subscribe(
        self,
        event_type: type[DomainEvent],
        handler: EventHandler,
    ) -> None: ...
