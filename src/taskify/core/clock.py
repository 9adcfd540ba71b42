"""Clock abstraction for deterministic time.

WallClock: real wall-clock time (service runtime)
SimClock: deterministic simulated time (tests, demos)

Aggregates never call datetime.now() directly; they use their clock.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Protocol


class IClock(Protocol):
    """Clock interface used by all time-dependent code."""

    def now(self) -> datetime:
        """Current time as timezone-aware UTC datetime."""
        ...

    def today(self) -> date:
        """Current UTC calendar date."""
        ...


class WallClock:
    """Real wall-clock time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def today(self) -> date:
        return self.now().date()


class SimClock:
    """Simulated clock.

    Time advances only when explicitly set by the caller.
    """

    def __init__(self, start: datetime | None = None) -> None:
        self._time = start or datetime(2024, 1, 1, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self._time

    def today(self) -> date:
        return self._time.date()

    def set_time(self, t: datetime) -> None:
        """Advance time. Must be monotonically increasing."""
        if t < self._time:
            raise ValueError(
                f"SimClock cannot go backwards: {t} < {self._time}"
            )
        self._time = t

    def advance(self, **kwargs: float) -> None:
        """Advance time by a ``timedelta(**kwargs)``."""
        self.set_time(self._time + timedelta(**kwargs))
