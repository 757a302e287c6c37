"""Clock port for time stamping documents."""

from abc import ABC, abstractmethod
from datetime import datetime


class ClockPort(ABC):
    """Source of the current time, replaceable in tests."""

    @abstractmethod
    def now(self) -> datetime:
        """Return the current time as a timezone-aware UTC datetime."""
        ...
