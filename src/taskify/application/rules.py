"""Cross-aggregate rules.

Each rule receives only the data it needs from the second aggregate
(ids, statuses), never the aggregate itself, and raises on violation.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime

from taskify.core.enums import TaskStatus
from taskify.core.errors import InvalidOperation, ValidationError
from taskify.core.ids import ensure_utc


def require_project_membership(
    member_ids: Iterable[str],
    user_id: str,
    *,
    user_name: str,
    project_name: str,
) -> None:
    """A user must be on a project's roster before taking its tasks."""
    if user_id not in set(member_ids):
        raise InvalidOperation(
            f"User {user_name} is not assigned to project '{project_name}'. "
            "Users must be assigned to a project before being assigned to its tasks."
        )


def incomplete(statuses: Iterable[TaskStatus]) -> int:
    """Number of statuses other than COMPLETED."""
    return sum(1 for s in statuses if s != TaskStatus.COMPLETED)


def require_no_incomplete_tasks(statuses: Iterable[TaskStatus], message: str) -> None:
    if incomplete(statuses):
        raise InvalidOperation(message)


def require_positive_project_id(project_id: int) -> None:
    if project_id <= 0:
        raise ValidationError("Project ID is required", field="project_id")


def require_due_date_not_past(due_date: datetime | date, today: date) -> None:
    """Compare the date part only, in UTC."""
    if ensure_utc(due_date).date() < today:
        raise ValidationError("Due date cannot be in the past", field="due_date")
