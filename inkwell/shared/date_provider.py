"""Clock abstraction for content timestamps.

The persistence layer never reads the clock itself: every audit and
publication timestamp is handed in by the caller. Callers that need "now"
take it from a DateProvider so tests can pin time.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Optional


class DateProvider(ABC):
    """Source of the current UTC time."""

    @abstractmethod
    def utcnow(self) -> datetime:
        """Get the current datetime in UTC.

        Returns:
            datetime: Current UTC datetime with timezone info
        """


class UTCDateProvider(DateProvider):
    """Production clock backed by the system time."""

    def utcnow(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedDateProvider(DateProvider):
    """Test clock that only moves when told to."""

    def __init__(self, fixed_datetime: Optional[datetime] = None):
        """Initialize with an optional starting time.

        Args:
            fixed_datetime: Time returned by utcnow(), defaults to 2024-01-15 00:00 UTC
        """
        self._fixed_datetime = fixed_datetime or datetime(2024, 1, 15, tzinfo=timezone.utc)
        if self._fixed_datetime.tzinfo is None:
            self._fixed_datetime = self._fixed_datetime.replace(tzinfo=timezone.utc)

    def utcnow(self) -> datetime:
        return self._fixed_datetime

    def set_datetime(self, new_datetime: datetime) -> None:
        """Move the clock to an absolute time."""
        if new_datetime.tzinfo is None:
            new_datetime = new_datetime.replace(tzinfo=timezone.utc)
        self._fixed_datetime = new_datetime

    def advance(self, **delta) -> datetime:
        """Move the clock forward by a timedelta expressed as keyword arguments.

        Returns:
            datetime: The new current time
        """
        self._fixed_datetime = self._fixed_datetime + timedelta(**delta)
        return self._fixed_datetime
