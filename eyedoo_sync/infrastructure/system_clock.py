"""System clock adapter."""

from datetime import UTC, datetime

from ..ports.clock import ClockPort


class SystemClock(ClockPort):
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(UTC)
