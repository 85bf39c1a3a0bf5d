"""
clock.py
Injectable "current date" provider.

Engine functions never call ``date.today()``; they receive ``as_of`` from a
Clock owned by the caller. SystemClock is the only place that reads the system
time.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date, datetime, time, timedelta


class Clock(ABC):
    """Source of the current calendar day and wall-clock time."""

    @abstractmethod
    def today(self) -> date:
        ...

    @abstractmethod
    def now(self) -> datetime:
        ...

    def today_iso(self) -> str:
        return self.today().isoformat()

    def check_in_time(self) -> str:
        """HH:MM stamp stored with attendance marks."""
        return self.now().strftime("%H:%M")


class SystemClock(Clock):
    """Production clock backed by the local system date."""

    def today(self) -> date:
        return date.today()

    def now(self) -> datetime:
        return datetime.now()


class FixedClock(Clock):
    """
    Test clock that returns the same day until moved.

    Args:
        fixed: Day to report. Defaults to 2024-01-01.
        at: Time of day reported by ``now()``. Defaults to midnight.
    """

    def __init__(self, fixed: date | None = None, at: time | None = None):
        self._fixed = fixed or date(2024, 1, 1)
        self._at = at or time(0, 0)

    def today(self) -> date:
        return self._fixed

    def now(self) -> datetime:
        return datetime.combine(self._fixed, self._at)

    def set_date(self, day: date) -> None:
        self._fixed = day

    def set_time(self, at: time) -> None:
        self._at = at

    def advance(self, days: int = 1) -> date:
        self._fixed = self._fixed + timedelta(days=days)
        return self._fixed
