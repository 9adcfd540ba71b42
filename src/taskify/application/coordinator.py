"""Lifecycle coordinator: the application service for every command.

Each command runs in one unit of work:

    load -> check rules against the other aggregate -> mutate -> commit
         -> drain events -> publish -> return ``CommandResult``

Errors propagate to the caller after the unit of work has rolled back, so
a failed command leaves no trace in the store and publishes nothing.
Aggregates never reference each other directly; the rules in
:mod:`taskify.application.rules` receive ids and statuses only.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from taskify.application import rules
from taskify.application.commands import (
    ArchiveProjectCommand,
    AssignProjectCommand,
    AssignTaskCommand,
    ChangeTaskStatusCommand,
    CommandResult,
    CreateProjectCommand,
    CreateTaskCommand,
    DeleteProjectCommand,
    DeleteTaskCommand,
    InviteTeamMemberCommand,
    ProjectProgress,
    RemoveTeamMemberCommand,
    UnassignProjectCommand,
    UnassignTaskCommand,
    UpdateProjectCommand,
    UpdateTaskCommand,
    UpdateTeamMemberCommand,
)
from taskify.core.clock import IClock, WallClock
from taskify.core.config import Settings
from taskify.core.errors import (
    DuplicateTaskTitle,
    InvalidOperation,
    ProjectNotFound,
    TaskNotFound,
    UserAlreadyExists,
    UserNotFound,
)
from taskify.core.interfaces import IEventBus, IUnitOfWork, TaskPage
from taskify.domain.events import DomainEvent
from taskify.domain.filters import TaskFilters
from taskify.domain.project import Project
from taskify.domain.task import Task
from taskify.domain.user import User
from taskify.observability.logger import new_trace_id

logger = logging.getLogger(__name__)


class LifecycleCoordinator:
    """Runs commands that span the Task, Project and User aggregates.

    Parameters
    ----------
    uow
        Unit of work giving access to the three repositories.
    event_bus
        Receives drained events after commit.  ``None`` skips publishing;
        events are still returned on the result.
    clock
        Time source for new aggregates and "due date is not in the past".
    settings
        Supplies the default project color and paging limits.
    """

    def __init__(
        self,
        uow: IUnitOfWork,
        event_bus: IEventBus | None = None,
        *,
        clock: IClock | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._uow = uow
        self._bus = event_bus
        self._clock = clock or WallClock()
        self._settings = settings or Settings()

    @property
    def uow(self) -> IUnitOfWork:
        return self._uow

    @property
    def event_bus(self) -> IEventBus | None:
        return self._bus

    # ==================================================================
    # Tasks
    # ==================================================================

    async def create_task(self, command: CreateTaskCommand) -> CommandResult[Task]:
        correlation_id = new_trace_id()
        async with self._uow as uow:
            rules.require_positive_project_id(command.project_id)
            project = await self._project(command.project_id)
            if command.assignee_id is not None:
                await self._require_user(command.assignee_id)
            if await uow.tasks.exists_by_title_in_project(
                command.title, command.project_id
            ):
                raise DuplicateTaskTitle(command.title, command.project_id)
            if command.due_date is not None:
                rules.require_due_date_not_past(command.due_date, self._clock.today())

            task = Task.create(
                command.title,
                command.description,
                command.priority,
                command.status,
                command.project_id,
                command.assignee_id,
                command.due_date,
                clock=self._clock,
            )
            await uow.tasks.add(task)
            project.add_task(task)
            await uow.commit()

        events = await self._publish(correlation_id)
        logger.info("Task %s created in project %d", task.id, project.id)
        return CommandResult(task, events, "Task created successfully")

    async def update_task(self, command: UpdateTaskCommand) -> CommandResult[Task]:
        """Apply the fields present on *command*.

        ``assignee_id`` is applied whenever it was passed, so an explicit
        ``None`` unassigns.  Every other field is ignored when ``None``.
        """
        correlation_id = new_trace_id()
        sent = command.model_fields_set
        async with self._uow as uow:
            task = await self._task(command.task_id)

            # Resolve everything that can fail on lookup before mutating.
            target_project_id = task.project_id
            old_project: Project | None = None
            new_project: Project | None = None
            if command.project_id is not None and command.project_id != task.project_id:
                rules.require_positive_project_id(command.project_id)
                new_project = await self._project(command.project_id)
                old_project = await uow.projects.get(task.project_id)
                target_project_id = new_project.id

            if "assignee_id" in sent and command.assignee_id is not None:
                await self._require_user(command.assignee_id)

            if command.title is not None and (
                command.title != task.title or new_project is not None
            ):
                if await uow.tasks.exists_by_title_in_project(
                    command.title, target_project_id, exclude_task_id=task.id
                ):
                    raise DuplicateTaskTitle(command.title, target_project_id)

            if new_project is not None:
                if old_project is not None:
                    old_project.remove_task(task)
                task.change_project(new_project.id)
                new_project.add_task(task)

            if "assignee_id" in sent:
                if command.assignee_id is None:
                    task.unassign_task()
                elif command.assignee_id != task.assignee_id:
                    task.assign_to(command.assignee_id)

            if command.status is not None:
                task.update_status(command.status)

            if command.due_date is not None:
                rules.require_due_date_not_past(command.due_date, self._clock.today())
                task.set_due_date(command.due_date)

            if any(
                v is not None
                for v in (command.title, command.description, command.priority)
            ):
                task.update_details(
                    command.title if command.title is not None else task.title,
                    command.description
                    if command.description is not None
                    else task.description,
                    command.priority if command.priority is not None else task.priority,
                )

            await uow.commit()

        events = await self._publish(correlation_id)
        logger.info("Task %s updated (%d event(s))", task.id, len(events))
        return CommandResult(task, events, "Task updated successfully")

    async def change_task_status(
        self, command: ChangeTaskStatusCommand
    ) -> CommandResult[Task]:
        correlation_id = new_trace_id()
        async with self._uow as uow:
            task = await self._task(command.task_id)
            old_status = task.status
            task.update_status(command.status, command.changed_by)
            await uow.commit()

        events = await self._publish(correlation_id)
        logger.info(
            "Task %s status %s -> %s", task.id, old_status.name, task.status.name,
        )
        return CommandResult(
            task, events, f"Task status changed to {task.status.name}"
        )

    async def delete_task(self, command: DeleteTaskCommand) -> CommandResult[str]:
        correlation_id = new_trace_id()
        async with self._uow as uow:
            task = await self._task(command.task_id)
            project = await uow.projects.get(task.project_id)
            task.delete(command.deleted_by)
            if project is not None:
                project.remove_task(task)
            await uow.tasks.delete(task)
            await uow.commit()

        events = await self._publish(correlation_id)
        logger.info("Task %s deleted from project %d", task.id, task.project_id)
        return CommandResult(task.id, events, "Task deleted successfully")

    async def assign_task(self, command: AssignTaskCommand) -> CommandResult[Task]:
        correlation_id = new_trace_id()
        async with self._uow as uow:
            task = await self._task(command.task_id)
            user = await self._user(command.user_id)
            project = await self._project(task.project_id)
            rules.require_project_membership(
                project.assigned_user_ids,
                user.id,
                user_name=user.name,
                project_name=project.name,
            )
            task.assign_to(user.id)
            await uow.commit()

        events = await self._publish(correlation_id)
        logger.info("Task %s assigned to user %s", task.id, user.id)
        return CommandResult(
            task, events, f"Successfully assigned task '{task.title}' to {user.name}"
        )

    async def unassign_task(self, command: UnassignTaskCommand) -> CommandResult[Task]:
        correlation_id = new_trace_id()
        async with self._uow as uow:
            task = await self._task(command.task_id)
            if task.assignee_id is None:
                raise InvalidOperation("Task is not currently assigned to anyone")
            previous = task.assignee_id
            task.unassign_task()
            await uow.commit()

        events = await self._publish(correlation_id)
        logger.info("Task %s unassigned from user %s", task.id, previous)
        return CommandResult(task, events, "Task unassigned successfully")

    # ==================================================================
    # Team
    # ==================================================================

    async def invite_team_member(
        self, command: InviteTeamMemberCommand
    ) -> CommandResult[User]:
        correlation_id = new_trace_id()
        async with self._uow as uow:
            if await uow.users.get_by_email(command.email) is not None:
                raise UserAlreadyExists(command.email)
            user = User.create(
                command.name,
                command.email,
                command.role,
                command.position,
                command.department,
                command.avatar,
                clock=self._clock,
            )
            await uow.users.add(user)
            await uow.commit()

        events = await self._publish(correlation_id)
        logger.info("Team member %s invited as %s", user.id, user.role.name)
        return CommandResult(user, events, f"{user.name} has been invited")

    async def update_team_member(
        self, command: UpdateTeamMemberCommand
    ) -> CommandResult[User]:
        correlation_id = new_trace_id()
        async with self._uow as uow:
            user = await self._user(command.user_id)
            user.update_profile(command.name, command.avatar)
            user.change_role(command.role)
            user.update_position(command.position)
            user.update_department(command.department)
            await uow.commit()

        events = await self._publish(correlation_id)
        logger.info("Team member %s updated", user.id)
        return CommandResult(user, events, "Team member updated successfully")

    async def remove_team_member(
        self, command: RemoveTeamMemberCommand
    ) -> CommandResult[str]:
        """Delete a user who has no incomplete tasks.

        Completed tasks keep existing with no assignee.  The user leaves
        every project roster before being deleted.
        """
        correlation_id = new_trace_id()
        async with self._uow as uow:
            user = await self._user(command.user_id)
            assigned = await uow.tasks.list_by_assignee(user.id)
            rules.require_no_incomplete_tasks(
                (t.status for t in assigned),
                "Cannot remove team member with assigned incomplete tasks",
            )

            for task in assigned:
                task.unassign_task()
            for project_id in sorted(user.assigned_project_ids):
                project = await uow.projects.get(project_id)
                if project is not None:
                    project.remove_user(user)
                    user.unassign_from_project(project)

            user.remove(command.removed_by)
            await uow.users.delete(user)
            await uow.commit()

        events = await self._publish(correlation_id)
        logger.info(
            "Team member %s removed (%d completed task(s) released)",
            user.id,
            len(assigned),
        )
        return CommandResult(user.id, events, f"{user.name} has been removed")

    async def assign_project(
        self, command: AssignProjectCommand
    ) -> CommandResult[User]:
        correlation_id = new_trace_id()
        async with self._uow as uow:
            user = await self._user(command.user_id)
            project = await self._project(command.project_id)
            self._link(user, project)
            await uow.commit()

        events = await self._publish(correlation_id)
        logger.info("User %s assigned to project %d", user.id, project.id)
        return CommandResult(
            user, events, f"{user.name} assigned to project '{project.name}'"
        )

    async def unassign_project(
        self, command: UnassignProjectCommand
    ) -> CommandResult[User]:
        correlation_id = new_trace_id()
        async with self._uow as uow:
            user = await self._user(command.user_id)
            project = await self._project(command.project_id)
            await self._require_no_open_tasks_in(user.id, project)
            user.unassign_from_project(project)
            project.remove_user(user)
            await uow.commit()

        events = await self._publish(correlation_id)
        logger.info("User %s unassigned from project %d", user.id, project.id)
        return CommandResult(
            user, events, f"{user.name} unassigned from project '{project.name}'"
        )

    # ==================================================================
    # Projects
    # ==================================================================

    async def create_project(
        self, command: CreateProjectCommand
    ) -> CommandResult[Project]:
        correlation_id = new_trace_id()
        async with self._uow as uow:
            project = Project.create(
                command.name,
                command.description,
                command.color or self._settings.projects.color,
                project_id=await uow.projects.next_id(),
                clock=self._clock,
            )
            await uow.projects.add(project)
            await self._add_members(project, command.member_ids)
            await uow.commit()

        events = await self._publish(correlation_id)
        logger.info(
            "Project %d created with %d member(s)",
            project.id,
            len(project.assigned_user_ids),
        )
        return CommandResult(project, events, "Project created successfully")

    async def update_project(
        self, command: UpdateProjectCommand
    ) -> CommandResult[Project]:
        """Update details; a non-empty ``member_ids`` replaces the roster.

        Members left out of ``member_ids`` must have no incomplete tasks in
        the project.
        """
        correlation_id = new_trace_id()
        async with self._uow as uow:
            project = await self._project(command.project_id)
            if command.member_ids:
                dropped = project.assigned_user_ids - set(command.member_ids)
                for user_id in sorted(dropped):
                    await self._require_no_open_tasks_in(user_id, project)

            project.update_details(command.name, command.description, command.color)

            if command.member_ids:
                for user_id in sorted(project.assigned_user_ids):
                    user = await uow.users.get(user_id)
                    if user is not None:
                        user.unassign_from_project(project)
                project.clear_assigned_users()
                await self._add_members(project, command.member_ids)

            await uow.commit()

        events = await self._publish(correlation_id)
        logger.info("Project %d updated", project.id)
        return CommandResult(project, events, "Project updated successfully")

    async def archive_project(
        self, command: ArchiveProjectCommand
    ) -> CommandResult[Project]:
        correlation_id = new_trace_id()
        async with self._uow as uow:
            project = await self._project(command.project_id)
            project.archive()
            await uow.commit()

        events = await self._publish(correlation_id)
        logger.info("Project %d archived", project.id)
        return CommandResult(project, events, "Project archived")

    async def delete_project(
        self, command: DeleteProjectCommand
    ) -> CommandResult[int]:
        """Delete a project, its tasks, and its place in members' rosters."""
        correlation_id = new_trace_id()
        async with self._uow as uow:
            project = await self._project(command.project_id)
            for user_id in sorted(project.assigned_user_ids):
                user = await uow.users.get(user_id)
                if user is not None:
                    user.unassign_from_project(project)
            project.delete(command.deleted_by)
            await uow.projects.delete(project)
            await uow.commit()

        events = await self._publish(correlation_id)
        logger.info(
            "Project %d deleted with %d task(s)", project.id, len(project.tasks),
        )
        return CommandResult(project.id, events, "Project deleted successfully")

    # ==================================================================
    # Queries
    # ==================================================================

    async def get_task(self, task_id: str) -> Task:
        return await self._task(task_id)

    async def list_tasks(
        self,
        filters: TaskFilters | None = None,
        page: int = 1,
        page_size: int | None = None,
        sort_by: str | None = None,
        descending: bool = False,
    ) -> TaskPage:
        """Page through tasks.  ``page_size`` is capped at the configured maximum."""
        paging = self._settings.paging
        size = page_size if page_size is not None else paging.default_page_size
        return await self._uow.tasks.list_tasks(
            filters or TaskFilters(),
            page=page,
            page_size=min(size, paging.max_page_size),
            sort_by=sort_by,
            descending=descending,
        )

    async def get_project_progress(self, project_id: int) -> ProjectProgress:
        project = await self._project(project_id)
        return ProjectProgress(
            project_id=project.id,
            total=len(project.tasks),
            todo=project.todo_tasks_count,
            in_progress=project.in_progress_tasks_count,
            review=project.review_tasks_count,
            completed=project.completed_tasks_count,
            completion_percentage=project.completion_percentage,
        )

    # ==================================================================
    # Internals
    # ==================================================================

    async def _task(self, task_id: str) -> Task:
        task = await self._uow.tasks.get(task_id)
        if task is None:
            raise TaskNotFound(task_id)
        return task

    async def _project(self, project_id: int) -> Project:
        project = await self._uow.projects.get(project_id)
        if project is None:
            raise ProjectNotFound(project_id)
        return project

    async def _user(self, user_id: str) -> User:
        user = await self._uow.users.get(user_id)
        if user is None:
            raise UserNotFound(user_id)
        return user

    async def _require_user(self, user_id: str) -> None:
        if not await self._uow.users.exists(user_id):
            raise UserNotFound(user_id)

    async def _require_no_open_tasks_in(self, user_id: str, project: Project) -> None:
        assigned = await self._uow.tasks.list_by_assignee(user_id)
        user = await self._uow.users.get(user_id)
        name = user.name if user is not None else user_id
        rules.require_no_incomplete_tasks(
            (t.status for t in assigned if t.project_id == project.id),
            f"Cannot unassign {name} from project '{project.name}' "
            "while they have incomplete tasks in it",
        )

    async def _add_members(self, project: Project, member_ids: list[str]) -> None:
        # Unknown ids are skipped.
        for user_id in member_ids:
            user = await self._uow.users.get(user_id)
            if user is None:
                logger.debug("Skipping unknown member %s for project %d", user_id, project.id)
                continue
            self._link(user, project)

    @staticmethod
    def _link(user: User, project: Project) -> None:
        user.assign_to_project(project)
        project.assign_user(user)

    async def _publish(self, correlation_id: str) -> tuple[DomainEvent, ...]:
        events = tuple(
            replace(e, correlation_id=correlation_id)
            for e in self._uow.collect_events()
        )
        if self._bus is not None:
            for event in events:
                await self._bus.publish(event)
        return events
