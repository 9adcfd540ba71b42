"""Custom exception hierarchy for the task management core."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .enums import TaskStatus


class TaskifyError(Exception):
    """Base exception for all task management errors."""


# --- Configuration ---
class ConfigError(TaskifyError):
    """Invalid or missing configuration."""


# --- Validation ---
class ValidationError(TaskifyError):
    """Malformed or out-of-range value supplied to a factory or mutator."""

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


# --- Lookup ---
class NotFoundError(TaskifyError):
    """Referenced entity does not exist."""

    resource = "Entity"

    def __init__(self, identifier: object):
        self.identifier = identifier
        super().__init__(f"{self.resource} with ID {identifier} was not found.")


class TaskNotFound(NotFoundError):
    resource = "Task"


class ProjectNotFound(NotFoundError):
    resource = "Project"


class UserNotFound(NotFoundError):
    resource = "User"


# --- Lifecycle ---
class InvalidStatusTransition(TaskifyError):
    """Requested status change is not in the transition table."""

    def __init__(self, from_status: TaskStatus, to_status: TaskStatus):
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Cannot transition task status from {from_status.name} "
            f"to {to_status.name}."
        )


class InvalidOperation(TaskifyError):
    """Cross-aggregate rule violated; the caller must resolve the conflict first."""


# --- Uniqueness ---
class AlreadyExists(TaskifyError):
    """Unique value already taken."""


class UserAlreadyExists(AlreadyExists):
    def __init__(self, email: str):
        self.email = email
        super().__init__(f"User with email {email} already exists.")


class DuplicateTaskTitle(ValidationError, AlreadyExists):
    """Another task in the same project already has this title."""

    def __init__(self, title: str, project_id: int):
        self.title = title
        self.project_id = project_id
        super().__init__(
            "A task with this title already exists in the project",
            field="title",
        )


# --- Event dispatch ---
class WriteOwnershipError(TaskifyError):
    """Raised when an event is published under a source that does not own it."""
