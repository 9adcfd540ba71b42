"""Enumerations used across the task management core.

Ordinals are explicit and stable: they are the persisted representation
and must never be renumbered.
"""

from enum import IntEnum


class TaskStatus(IntEnum):
    TODO = 0
    IN_PROGRESS = 1
    REVIEW = 2
    COMPLETED = 3


class TaskPriority(IntEnum):
    LOW = 0
    MEDIUM = 1
    HIGH = 2
    URGENT = 3


class ProjectStatus(IntEnum):
    ACTIVE = 0
    ON_HOLD = 1
    COMPLETED = 2
    ARCHIVED = 3


class UserRole(IntEnum):
    MEMBER = 0
    PROJECT_MANAGER = 1
    ADMIN = 2


class Position(IntEnum):
    """Job title of a team member."""

    TEAM_MEMBER = 0
    TEAM_LEAD = 1
    PROJECT_MANAGER = 2
    DIRECTOR = 3
    EXECUTIVE = 4
    FRONTEND_DEVELOPER = 5
    BACKEND_DEVELOPER = 6
    FULL_STACK_DEVELOPER = 7
    DEVOPS_ENGINEER = 8
    QA_ENGINEER = 9
    UI_UX_DESIGNER = 10
    DATA_ANALYST = 11
    PRODUCT_MANAGER = 12
    TECHNICAL_LEAD = 13
    SOFTWARE_ARCHITECT = 14
    BUSINESS_ANALYST = 15
    SYSTEM_ADMINISTRATOR = 16
    DATABASE_ADMINISTRATOR = 17
    SECURITY_ENGINEER = 18
    MOBILE_APP_DEVELOPER = 19


class ActivityType(IntEnum):
    """Kind of entry in the activity feed."""

    TASK_CREATED = 0
    TASK_UPDATED = 1
    TASK_DELETED = 2
    TASK_ASSIGNED = 3
    TASK_UNASSIGNED = 4
    TASK_COMPLETED = 5
    TASK_REOPENED = 6
    PROJECT_CREATED = 7
    PROJECT_UPDATED = 8
    PROJECT_DELETED = 9
    MEMBER_ADDED = 10
    MEMBER_REMOVED = 11
