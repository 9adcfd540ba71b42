"""CLI entry point for the Taskify core."""

from __future__ import annotations

import click

from .core.enums import TaskStatus


@click.group()
def main() -> None:
    """Taskify task lifecycle core."""


@main.command()
def transitions() -> None:
    """Print the task status transition table."""
    from .domain.task import can_transition

    statuses = list(TaskStatus)
    width = max(len(s.name) for s in statuses) + 2

    click.echo("from \\ to".ljust(width) + "".join(s.name.ljust(width) for s in statuses))
    for current in statuses:
        cells = "".join(
            ("yes" if can_transition(current, new) else "-").ljust(width)
            for new in statuses
        )
        click.echo(current.name.ljust(width) + cells)


@main.command()
@click.option("--config", default=None, help="Config file path")
@click.option("--log-level", default="WARNING", help="Log level override")
def demo(config: str | None, log_level: str) -> None:
    """Run a project -> member -> task -> complete -> remove walkthrough."""
    import asyncio

    from .main import load_app

    overrides: dict = {
        "observability": {"log_level": log_level, "log_format": "console"},
    }
    app = load_app(config_path=config, overrides=overrides)
    asyncio.run(_run_demo(app))

    click.echo("\nActivity (newest first):")
    for entry in app.activity.entries():
        click.echo(f"  [{entry.type.name:<16}] {entry.title}: {entry.description}")


async def _run_demo(app) -> None:
    from .application.commands import (
        AssignProjectCommand,
        AssignTaskCommand,
        ChangeTaskStatusCommand,
        CreateProjectCommand,
        CreateTaskCommand,
        InviteTeamMemberCommand,
        RemoveTeamMemberCommand,
    )
    from .core.errors import InvalidOperation

    c = app.coordinator

    project = (await c.create_project(CreateProjectCommand(name="Website relaunch"))).value
    click.echo(f"Created project {project.id}: {project.name}")

    user = (
        await c.invite_team_member(
            InviteTeamMemberCommand(email="dana@acme.io", name="Dana Reyes")
        )
    ).value
    click.echo(f"Invited {user.name} <{user.email}>")

    task = (
        await c.create_task(
            CreateTaskCommand(title="Draft landing page", project_id=project.id)
        )
    ).value
    click.echo(f"Created task '{task.title}'")

    try:
        await c.assign_task(AssignTaskCommand(task_id=task.id, user_id=user.id))
    except InvalidOperation as exc:
        click.echo(f"Rejected: {exc}")

    await c.assign_project(AssignProjectCommand(user_id=user.id, project_id=project.id))
    result = await c.assign_task(AssignTaskCommand(task_id=task.id, user_id=user.id))
    click.echo(result.message)

    try:
        await c.remove_team_member(RemoveTeamMemberCommand(user_id=user.id))
    except InvalidOperation as exc:
        click.echo(f"Rejected: {exc}")

    for status in (TaskStatus.IN_PROGRESS, TaskStatus.REVIEW, TaskStatus.COMPLETED):
        await c.change_task_status(ChangeTaskStatusCommand(task_id=task.id, status=status))
    click.echo(f"Task is now {task.status.name}")

    progress = await c.get_project_progress(project.id)
    click.echo(f"Project progress: {progress.completion_percentage:.0f}%")

    removed = await c.remove_team_member(RemoveTeamMemberCommand(user_id=user.id))
    click.echo(removed.message)


if __name__ == "__main__":
    main()
