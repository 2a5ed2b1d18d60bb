"""
Clock adapters.
"""

from datetime import UTC, datetime, timedelta

from phasegate.domain.interfaces import ClockInterface


class SystemClock(ClockInterface):
    """Wall-clock UTC time in ISO-8601."""

    def now(self) -> str:
        return datetime.now(UTC).isoformat()


class FixedClock(ClockInterface):
    """
    Deterministic clock for tests.

    Returns ``start`` on the first call and advances by ``step`` seconds
    on every subsequent call, so timestamps stay ordered.
    """

    def __init__(self, start: str = "2025-01-01T00:00:00+00:00", step: int = 1):
        self._current = datetime.fromisoformat(start)
        self._step = timedelta(seconds=step)

    def now(self) -> str:
        value = self._current.isoformat()
        self._current += self._step
        return value
