"""Aggregate root base: timestamps, clock and the pending event list.

Events raised by a mutator are appended to an ordered, in-memory list.
The application layer drains it with ``pull_domain_events()`` after a
successful commit; nothing here dispatches.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, TypeVar

from taskify.core.clock import IClock, WallClock
from taskify.core.errors import ValidationError
from taskify.core.ids import utc_now
from taskify.domain.events import DomainEvent

E = TypeVar("E", bound=DomainEvent)


def require_text(value: str | None, field_name: str, max_length: int) -> str:
    """Return *value* if it is non-blank and within *max_length*."""
    if value is None or not value.strip():
        raise ValidationError(
            f"{field_name.capitalize()} cannot be empty", field=field_name
        )
    if len(value) > max_length:
        raise ValidationError(
            f"{field_name.capitalize()} cannot exceed {max_length} characters",
            field=field_name,
        )
    return value


def limit_text(value: str | None, field_name: str, max_length: int) -> str:
    """Coerce ``None`` to ``""`` and enforce *max_length*."""
    value = value or ""
    if len(value) > max_length:
        raise ValidationError(
            f"{field_name.capitalize()} cannot exceed {max_length} characters",
            field=field_name,
        )
    return value


@dataclass(eq=False)
class AggregateRoot:
    """Shared state for Task, Project and User.

    Subclasses set ``event_source`` to the owner name registered in
    ``EVENT_OWNERSHIP``.  Equality is identity; compare ids explicitly.
    """

    event_source = ""

    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    clock: IClock = field(default_factory=WallClock, repr=False)
    _domain_events: list[DomainEvent] = field(
        default_factory=list, init=False, repr=False
    )

    @property
    def domain_events(self) -> tuple[DomainEvent, ...]:
        """Pending events, oldest first."""
        return tuple(self._domain_events)

    def touch(self) -> None:
        """Stamp the modification time."""
        self.updated_at = self.clock.now()

    def pull_domain_events(self) -> list[DomainEvent]:
        """Return and clear the pending events."""
        drained = self._domain_events[:]
        self._domain_events.clear()
        return drained

    def clear_domain_events(self) -> None:
        self._domain_events.clear()

    def _record(self, event_type: type[E], **fields: Any) -> E:
        event = event_type(
            source=self.event_source,
            timestamp=self.clock.now(),
            **fields,
        )
        self._domain_events.append(event)
        return event
