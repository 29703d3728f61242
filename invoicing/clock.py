"""
Invoicing Core - Clock
======================
Injectable time source. Components never call datetime.now() directly;
the rectificative number prefix reads its year, and batch runs time
themselves, from a Clock so tests can pin them.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Protocol


class Clock(Protocol):
    """Injectable time source."""

    def now_utc(self) -> datetime:
        ...  # pragma: no cover


class SystemClock:
    """Production clock: real system time."""

    def now_utc(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """
    Test clock returning a fixed timestamp.

    Usage:
        clock = FixedClock(datetime(2024, 3, 1, tzinfo=timezone.utc))
        assert clock.now_utc().year == 2024
    """

    def __init__(self, fixed_dt: datetime) -> None:
        if fixed_dt.tzinfo is None:
            raise ValueError("FixedClock requires timezone-aware datetime.")
        self._fixed_dt = fixed_dt

    def now_utc(self) -> datetime:
        return self._fixed_dt

    def advance(self, seconds: float) -> None:
        self._fixed_dt = self._fixed_dt + timedelta(seconds=seconds)
