"""Time source used by the invitation lifecycle."""

from datetime import datetime, timezone
from typing import Protocol


class Clock(Protocol):
    """Supplies the current time."""

    def now(self) -> datetime:
        """Return the current time as a naive UTC datetime."""
        ...


class SystemClock:
    """Wall-clock time, naive UTC to match the ``DateTime`` columns."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc).replace(tzinfo=None)
