"""Task query criteria (value object)."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from taskify.core.enums import TaskPriority, TaskStatus


class TaskFilters(BaseModel):
    """Immutable criteria for listing tasks.

    Every field is optional; ``None`` means "do not filter on this".
    Two filters are equal when all their values are equal.  Interpreting
    the criteria is the repository's job.
    """

    statuses: tuple[TaskStatus, ...] | None = None
    priorities: tuple[TaskPriority, ...] | None = None
    project_id: int | None = None
    assignee_id: str | None = None
    search_term: str | None = None
    due_date_from: datetime | None = None
    due_date_to: datetime | None = None

    model_config = {"frozen": True}
