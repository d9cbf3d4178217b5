"""Injectable time source.

Entities and use cases never call ``datetime.now`` directly; they receive a
:class:`Clock` so tests can pin time.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import UTC, datetime, timedelta

__all__ = ["Clock", "SystemClock", "FixedClock"]

logger = logging.getLogger(__name__)


class Clock(ABC):
    """Abstract time source returning timezone-aware UTC datetimes."""

    @abstractmethod
    def now(self) -> datetime:
        """Return the current instant."""


class SystemClock(Clock):
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(UTC)


class FixedClock(Clock):
    """A clock that returns a fixed instant until advanced.

    Args:
        start: Initial instant.  Naive values are treated as UTC.
    """

    def __init__(self, start: datetime | None = None) -> None:
        start = start or datetime(2026, 1, 1, tzinfo=UTC)
        if start.tzinfo is None:
            start = start.replace(tzinfo=UTC)
        self._now = start

    def now(self) -> datetime:
        return self._now

    def advance(self, **kwargs: float) -> datetime:
        """Move the clock forward by ``timedelta(**kwargs)`` and return the new instant."""
        self._now = self._now + timedelta(**kwargs)
        return self._now
