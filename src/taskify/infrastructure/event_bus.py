"""In-process delivery of committed domain events.

The coordinator drains events from its aggregates after a successful
commit and hands them to :class:`InMemoryEventBus`, which fans each one
out to the handlers subscribed to its exact class.

Delivery rules
--------------
*   An event whose ``source`` is not the aggregate named in
    ``EVENT_OWNERSHIP`` is refused with ``WriteOwnershipError`` before any
    handler sees it (unless ownership checks are switched off).
*   Handlers run in subscription order.  A handler that raises is logged,
    counted per event type and parked in the dead-letter buffer; the
    remaining handlers still run and the command that published the event
    is not affected, since its changes are already committed.
*   Published events and dead letters are kept in bounded buffers so a
    long-lived process does not grow without limit.
"""

from __future__ import annotations

import logging
from collections import Counter, defaultdict, deque

from taskify.core.errors import WriteOwnershipError
from taskify.core.interfaces import EventHandler
from taskify.domain.events import EVENT_OWNERSHIP, DomainEvent

logger = logging.getLogger(__name__)

DeadLetter = tuple[DomainEvent, str]


class InMemoryEventBus:
    """Type-routed event bus for a single process.

    Parameters
    ----------
    enforce_ownership
        Refuse events published under the wrong aggregate ``source``.
    history_capacity
        Number of most recent published events kept for inspection.
    dead_letter_capacity
        Number of most recent handler failures kept.
    """

    def __init__(
        self,
        *,
        enforce_ownership: bool = True,
        history_capacity: int = 1000,
        dead_letter_capacity: int = 100,
    ) -> None:
        if history_capacity < 1 or dead_letter_capacity < 1:
            raise ValueError("event bus capacities must be at least 1")
        self._enforce_ownership = enforce_ownership
        self._subscribers: defaultdict[
            type[DomainEvent], list[EventHandler]
        ] = defaultdict(list)
        self._published: deque[DomainEvent] = deque(maxlen=history_capacity)
        self._failed: deque[DeadLetter] = deque(maxlen=dead_letter_capacity)
        self._failures: Counter[str] = Counter()

    def subscribe(
        self,
        event_type: type[DomainEvent],
        handler: EventHandler,
    ) -> None:
        self._subscribers[event_type].append(handler)

    async def publish(self, event: DomainEvent) -> None:
        """Deliver *event* to its subscribers.

        Raises
        ------
        WriteOwnershipError
            If ownership checks are on and ``event.source`` is not the
            owning aggregate.
        """
        self._check_owner(event)
        self._published.append(event)
        await self._deliver(event)

    async def publish_all(self, events: list[DomainEvent]) -> None:
        """Publish *events* in order."""
        for event in events:
            await self.publish(event)

    def _check_owner(self, event: DomainEvent) -> None:
        if not self._enforce_ownership:
            return
        owner = EVENT_OWNERSHIP.get(type(event))
        if owner is not None and event.source != owner:
            raise WriteOwnershipError(
                f"{type(event).__name__} must be published by "
                f"source={owner!r}, got source={event.source!r}"
            )

    async def _deliver(self, event: DomainEvent) -> None:
        name = type(event).__name__
        for handler in self._subscribers.get(type(event), ()):
            try:
                await handler(event)
            except Exception as exc:
                self._failures[name] += 1
                self._failed.append((event, str(exc)))
                logger.exception("Event handler failed for %s", name)

    # -- Inspection --------------------------------------------------------

    def get_history(
        self,
        event_type: type[DomainEvent] | None = None,
    ) -> list[DomainEvent]:
        """Most recent published events, oldest first."""
        if event_type is None:
            return list(self._published)
        return [e for e in self._published if type(e) is event_type]

    def get_error_counts(self) -> dict[str, int]:
        return dict(self._failures)

    @property
    def dead_letters(self) -> list[DeadLetter]:
        return list(self._failed)

    def clear_dead_letters(self) -> list[DeadLetter]:
        """Drain and return dead letters."""
        drained = list(self._failed)
        self._failed.clear()
        return drained
