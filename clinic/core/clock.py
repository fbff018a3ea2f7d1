"""Time sources used for temporal policy checks."""

from datetime import UTC, date, datetime
from typing import Protocol
from zoneinfo import ZoneInfo

from clinic.config import settings


class Clock(Protocol):
    """Anything that can tell the current instant and calendar day."""

    def now(self) -> datetime: ...

    def today(self) -> date: ...


class SystemClock:
    """Wall clock evaluated in the clinic's timezone."""

    def __init__(self, timezone: str = "UTC"):
        self.tz = ZoneInfo(timezone)

    def now(self) -> datetime:
        return datetime.now(UTC)

    def today(self) -> date:
        return datetime.now(self.tz).date()


class FixedClock:
    """Clock frozen at a given instant."""

    def __init__(self, instant: datetime):
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=UTC)
        self.instant = instant

    def now(self) -> datetime:
        return self.instant

    def today(self) -> date:
        return self.instant.date()


def as_utc(value: datetime) -> datetime:
    """Normalize to an aware UTC timestamp; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


_system_clock = SystemClock(settings.clinic_timezone)


def get_clock() -> Clock:
    """Dependency returning the process-wide clock."""
    return _system_clock
