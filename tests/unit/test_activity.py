"""Tests for the activity feed built from published events."""

from __future__ import annotations

import logging

import pytest

from taskify.application.activity import ActivityLogRecorder, log_team_event
from taskify.application.commands import (
    ChangeTaskStatusCommand,
    CreateProjectCommand,
    CreateTaskCommand,
    InviteTeamMemberCommand,
)
from taskify.core.enums import ActivityType, TaskStatus, UserRole
from taskify.core.errors import ProjectNotFound
from taskify.domain.events import (
    TaskCreated,
    TaskStatusChanged,
    TeamMemberInvited,
    TeamMemberProfileUpdated,
)


class TestRecorder:
    @pytest.mark.asyncio
    async def test_ignores_untracked_events(self):
        recorder = ActivityLogRecorder()
        await recorder.handle(TeamMemberProfileUpdated(source="user"))
        assert len(recorder) == 0

    @pytest.mark.asyncio
    async def test_capacity_evicts_oldest(self):
        recorder = ActivityLogRecorder(capacity=2)
        for title in ("a", "b", "c"):
            await recorder.handle(TaskCreated(source="task", title=title))
        assert [e.description for e in recorder.entries()] == [
            "'c' was created",
            "'b' was created",
        ]
        assert recorder.entries()[0].id == 3

    def test_capacity_must_be_positive(self):
        with pytest.raises(ValueError):
            ActivityLogRecorder(capacity=0)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "old,new,expected",
        [
            (TaskStatus.COMPLETED, TaskStatus.TODO, ActivityType.TASK_REOPENED),
            (TaskStatus.COMPLETED, TaskStatus.REVIEW, ActivityType.TASK_REOPENED),
            (TaskStatus.TODO, TaskStatus.IN_PROGRESS, ActivityType.TASK_UPDATED),
        ],
    )
    async def test_status_change_types(self, old, new, expected):
        recorder = ActivityLogRecorder()
        await recorder.handle(
            TaskStatusChanged(source="task", task_title="Ship", old_status=old, new_status=new)
        )
        [entry] = recorder.entries()
        assert entry.type == expected

    @pytest.mark.asyncio
    async def test_completion_and_self_loop_are_not_status_entries(self):
        recorder = ActivityLogRecorder()
        await recorder.handle(
            TaskStatusChanged(
                source="task", old_status=TaskStatus.REVIEW, new_status=TaskStatus.COMPLETED
            )
        )
        await recorder.handle(
            TaskStatusChanged(source="task", old_status=TaskStatus.TODO, new_status=TaskStatus.TODO)
        )
        assert len(recorder) == 0


class TestWiredThroughCoordinator:
    @pytest.mark.asyncio
    async def test_entries_follow_commands(self, coordinator, activity):
        project = (await coordinator.create_project(CreateProjectCommand(name="Apollo"))).value
        task = (
            await coordinator.create_task(
                CreateTaskCommand(title="Ship it", project_id=project.id)
            )
        ).value
        await coordinator.change_task_status(
            ChangeTaskStatusCommand(task_id=task.id, status=TaskStatus.COMPLETED)
        )
        await coordinator.change_task_status(
            ChangeTaskStatusCommand(task_id=task.id, status=TaskStatus.IN_PROGRESS)
        )

        types = [e.type for e in reversed(activity.entries())]
        assert types == [
            ActivityType.PROJECT_CREATED,
            ActivityType.TASK_CREATED,
            ActivityType.TASK_COMPLETED,
            ActivityType.TASK_REOPENED,
        ]

    @pytest.mark.asyncio
    async def test_failed_command_records_nothing(self, coordinator, activity):
        with pytest.raises(ProjectNotFound):
            await coordinator.create_task(CreateTaskCommand(title="x", project_id=9))
        assert len(activity) == 0

    @pytest.mark.asyncio
    async def test_invitation_is_logged(self, coordinator, activity, caplog):
        with caplog.at_level(logging.INFO, logger="taskify.application.activity"):
            await coordinator.invite_team_member(
                InviteTeamMemberCommand(email="ada@acme.io", name="Ada Okafor")
            )
        assert "New team member invited: Ada Okafor" in caplog.text
        assert activity.of_type(ActivityType.MEMBER_ADDED)


class TestTeamEventLogging:
    @pytest.mark.asyncio
    async def test_logs_role(self, caplog):
        event = TeamMemberInvited(
            source="user", name="Bo", email="bo@acme.io", role=UserRole.ADMIN
        )
        with caplog.at_level(logging.INFO, logger="taskify.application.activity"):
            await log_team_event(event)
        assert "with role ADMIN" in caplog.text
