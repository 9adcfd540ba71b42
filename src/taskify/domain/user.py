"""User aggregate: profile, role, position and project membership."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from taskify.core.clock import IClock, WallClock
from taskify.core.enums import Position, UserRole
from taskify.core.errors import ValidationError
from taskify.core.ids import new_id
from taskify.domain.base import AggregateRoot, require_text
from taskify.domain.events import (
    USER_SOURCE,
    TeamMemberDepartmentChanged,
    TeamMemberInvited,
    TeamMemberPositionChanged,
    TeamMemberProfileUpdated,
    TeamMemberProjectAssigned,
    TeamMemberProjectUnassigned,
    TeamMemberRemoved,
    TeamMemberRoleChanged,
)

if TYPE_CHECKING:
    from taskify.domain.project import Project

NAME_MAX_LENGTH = 100

_EMAIL = TypeAdapter(EmailStr)


def validate_email(email: str | None) -> str:
    """Return the normalised address, or raise ``ValidationError``."""
    if email is None or not email.strip():
        raise ValidationError("Email cannot be empty", field="email")
    try:
        return _EMAIL.validate_python(email.strip())
    except PydanticValidationError as exc:
        raise ValidationError("Invalid email format", field="email") from exc


@dataclass(eq=False)
class User(AggregateRoot):
    """A team member.

    Assigned tasks are not held here; they are looked up by assignee id.
    """

    event_source = USER_SOURCE

    id: str = field(default_factory=new_id)
    name: str = ""
    email: str = ""
    role: UserRole = UserRole.MEMBER
    position: Position = Position.TEAM_MEMBER
    department: str | None = None
    avatar: str | None = None
    password_hash: str = field(default="", repr=False)
    assigned_project_ids: set[int] = field(default_factory=set)

    @classmethod
    def create(
        cls,
        name: str,
        email: str,
        role: UserRole = UserRole.MEMBER,
        position: Position = Position.TEAM_MEMBER,
        department: str | None = None,
        avatar: str | None = None,
        *,
        clock: IClock | None = None,
    ) -> User:
        """Invite a member; raises ``TeamMemberInvited``."""
        return cls._build(name, email, "", role, position, department, avatar, clock)

    @classmethod
    def create_with_password(
        cls,
        name: str,
        email: str,
        password_hash: str,
        role: UserRole = UserRole.MEMBER,
        position: Position = Position.TEAM_MEMBER,
        department: str | None = None,
        avatar: str | None = None,
        *,
        clock: IClock | None = None,
    ) -> User:
        return cls._build(
            name, email, password_hash, role, position, department, avatar, clock
        )

    @classmethod
    def _build(
        cls,
        name: str,
        email: str,
        password_hash: str,
        role: UserRole,
        position: Position,
        department: str | None,
        avatar: str | None,
        clock: IClock | None,
    ) -> User:
        name = require_text(name, "name", NAME_MAX_LENGTH)
        email = validate_email(email)

        clock = clock or WallClock()
        now = clock.now()
        user = cls(
            name=name,
            email=email,
            role=UserRole(role),
            position=Position(position),
            department=department,
            avatar=avatar,
            password_hash=password_hash,
            created_at=now,
            updated_at=now,
            clock=clock,
        )
        user._record(
            TeamMemberInvited,
            user_id=user.id,
            name=user.name,
            email=user.email,
            role=user.role,
        )
        return user

    def set_password_hash(self, password_hash: str) -> None:
        if not password_hash or not password_hash.strip():
            raise ValidationError(
                "Password hash cannot be empty", field="password_hash"
            )
        self.password_hash = password_hash
        self.touch()

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------

    def update_profile(self, name: str, avatar: str | None) -> None:
        name = require_text(name, "name", NAME_MAX_LENGTH)

        old_name, old_avatar = self.name, self.avatar
        self.name = name
        self.avatar = avatar
        self.touch()
        self._record(
            TeamMemberProfileUpdated,
            user_id=self.id,
            old_name=old_name,
            new_name=name,
            old_avatar=old_avatar,
            new_avatar=avatar,
        )

    def change_role(self, new_role: UserRole) -> None:
        new_role = UserRole(new_role)
        old_role = self.role
        self.role = new_role
        self.touch()
        self._record(
            TeamMemberRoleChanged,
            user_id=self.id,
            user_name=self.name,
            old_role=old_role,
            new_role=new_role,
        )

    def update_position(self, new_position: Position) -> None:
        new_position = Position(new_position)
        old_position = self.position
        self.position = new_position
        self.touch()
        self._record(
            TeamMemberPositionChanged,
            user_id=self.id,
            user_name=self.name,
            old_position=old_position,
            new_position=new_position,
        )

    def update_department(self, new_department: str | None) -> None:
        old_department = self.department
        self.department = new_department
        self.touch()
        self._record(
            TeamMemberDepartmentChanged,
            user_id=self.id,
            user_name=self.name,
            old_department=old_department,
            new_department=new_department,
        )

    # ------------------------------------------------------------------
    # Membership
    # ------------------------------------------------------------------

    def is_member_of(self, project_id: int) -> bool:
        return project_id in self.assigned_project_ids

    def assign_to_project(self, project: Project) -> None:
        if project.id in self.assigned_project_ids:
            return
        self.assigned_project_ids.add(project.id)
        self.touch()
        self._record(
            TeamMemberProjectAssigned,
            user_id=self.id,
            user_name=self.name,
            project_id=project.id,
            project_name=project.name,
        )

    def unassign_from_project(self, project: Project) -> None:
        if project.id not in self.assigned_project_ids:
            return
        self.assigned_project_ids.discard(project.id)
        self.touch()
        self._record(
            TeamMemberProjectUnassigned,
            user_id=self.id,
            user_name=self.name,
            project_id=project.id,
            project_name=project.name,
        )

    def remove(self, removed_by: str | None = None) -> None:
        """Raise ``TeamMemberRemoved``.  Deletion is the caller's job."""
        self._record(
            TeamMemberRemoved,
            user_id=self.id,
            name=self.name,
            email=self.email,
            role=self.role,
            removed_by=removed_by,
        )
