"""Test the Project aggregate: details, roster, task collection, metrics."""

import pytest

from taskify.core.enums import ProjectStatus, TaskPriority, TaskStatus
from taskify.core.errors import ValidationError
from taskify.domain.events import (
    ProjectArchived,
    ProjectCreated,
    ProjectDeleted,
    ProjectMemberAdded,
    ProjectMemberRemoved,
    ProjectUpdated,
)
from taskify.domain.project import DEFAULT_COLOR, Project, validate_color
from taskify.domain.task import Task
from taskify.domain.user import User


def _task(clock, project_id=1, status=TaskStatus.TODO, title="t"):
    return Task.create(title, "", TaskPriority.LOW, status, project_id, clock=clock)


class TestCreate:
    def test_create_records_event(self, clock):
        project = Project.create("Apollo", None, DEFAULT_COLOR, project_id=4, clock=clock)
        [event] = project.domain_events
        assert isinstance(event, ProjectCreated)
        assert (event.project_id, event.name, event.color) == (4, "Apollo", "#6366F1")
        assert project.status == ProjectStatus.ACTIVE
        assert project.description == ""

    def test_blank_name_rejected(self, clock):
        with pytest.raises(ValidationError):
            Project.create(" ", "", DEFAULT_COLOR, clock=clock)

    @pytest.mark.parametrize("color", ["#fff", "#A1B2C3", "#abcdef"])
    def test_valid_colors(self, color):
        assert validate_color(color) == color

    @pytest.mark.parametrize("color", ["", None, "red", "#12", "#1234", "123456", "#GGGGGG"])
    def test_invalid_colors(self, color):
        with pytest.raises(ValidationError, match="hex color"):
            validate_color(color)


class TestDetails:
    def test_update_records_old_and_new(self, project):
        project.update_details("Apollo II", "Phase two", "#000000")
        [event] = project.domain_events
        assert isinstance(event, ProjectUpdated)
        assert (event.old_name, event.new_name) == ("Apollo", "Apollo II")
        assert (event.old_color, event.new_color) == ("#1E90FF", "#000000")

    def test_update_without_change_is_silent(self, project):
        project.update_details(project.name, project.description, project.color)
        assert project.domain_events == ()

    def test_archive_is_idempotent(self, project):
        project.archive()
        project.archive()
        assert project.status == ProjectStatus.ARCHIVED
        assert [type(e) for e in project.domain_events] == [ProjectArchived]

    def test_delete_reports_task_count(self, project, clock):
        project.add_task(_task(clock))
        project.delete(deleted_by="u-admin")
        [event] = project.domain_events
        assert isinstance(event, ProjectDeleted)
        assert event.task_count == 1


class TestRoster:
    def test_assign_and_remove(self, project, user):
        project.assign_user(user)
        project.assign_user(user)
        assert project.has_member(user.id)
        project.remove_user(user)
        project.remove_user(user)
        assert not project.has_member(user.id)
        assert [type(e) for e in project.domain_events] == [
            ProjectMemberAdded,
            ProjectMemberRemoved,
        ]

    def test_clear_assigned_users(self, project, clock):
        users = [User.create(f"U{i}", f"u{i}@acme.io", clock=clock) for i in range(3)]
        for u in users:
            project.assign_user(u)
        project.clear_domain_events()

        project.clear_assigned_users()
        assert project.assigned_user_ids == set()
        removed = [e.user_id for e in project.domain_events]
        assert removed == sorted(u.id for u in users)


class TestTasksAndMetrics:
    def test_add_task_checks_project(self, project, clock):
        with pytest.raises(ValidationError):
            project.add_task(_task(clock, project_id=2))

    def test_add_task_is_deduplicated(self, project, clock):
        task = _task(clock)
        project.add_task(task)
        project.add_task(task)
        assert len(project.tasks) == 1

    def test_remove_task(self, project, clock):
        task = _task(clock)
        project.add_task(task)
        project.remove_task(task)
        assert project.tasks == []

    def test_empty_project_completion_is_zero(self, project):
        assert project.completion_percentage == 0.0

    def test_metrics(self, project, clock):
        statuses = [
            TaskStatus.TODO,
            TaskStatus.IN_PROGRESS,
            TaskStatus.REVIEW,
            TaskStatus.COMPLETED,
        ]
        for i, status in enumerate(statuses):
            project.add_task(_task(clock, status=status, title=f"t{i}"))
        assert project.todo_tasks_count == 1
        assert project.in_progress_tasks_count == 1
        assert project.review_tasks_count == 1
        assert project.completed_tasks_count == 1
        assert project.completion_percentage == 25.0

    def test_metrics_follow_task_changes(self, project, clock):
        task = _task(clock)
        project.add_task(task)
        task.update_status(TaskStatus.COMPLETED)
        assert project.completion_percentage == 100.0
