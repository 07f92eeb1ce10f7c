"""Clock capability.

Every "now" the services use comes from an injected Clock so that
expiration logic can be exercised without real-time waits.
"""

from datetime import UTC, datetime
from typing import Protocol


class Clock(Protocol):
    """Source of the current time."""

    def now(self) -> datetime:
        """Return the current time as a timezone-aware UTC datetime."""
        ...


class SystemClock:
    """Wall-clock implementation backed by datetime.now(UTC)."""

    def now(self) -> datetime:
        return datetime.now(UTC)


_system_clock = SystemClock()


def get_clock() -> Clock:
    """Dependency that provides the process clock.

    Tests override this via app.dependency_overrides[get_clock].
    """
    return _system_clock
