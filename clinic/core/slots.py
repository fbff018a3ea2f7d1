"""Weekly availability model: weekday tokens and half-open time-of-day slots."""

import re
from dataclasses import dataclass
from datetime import date
from enum import Enum
from itertools import combinations

SLOT_PATTERN = re.compile(r"^[0-9]{2}:[0-9]{2}-[0-9]{2}:[0-9]{2}$")
DATE_PATTERN = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")


class Weekday(str, Enum):
    """Canonical weekday tokens used to key availability entries."""

    MON = "Mon"
    TUE = "Tue"
    WED = "Wed"
    THU = "Thu"
    FRI = "Fri"
    SAT = "Sat"
    SUN = "Sun"


# Indexed by date.weekday(), Monday == 0
_WEEKDAYS = list(Weekday)


def weekday_token(day: date) -> Weekday:
    """Resolve a calendar date to its weekday token."""
    return _WEEKDAYS[day.weekday()]


class InvalidSlotFormat(ValueError):
    """Slot string is not a well-formed HH:MM-HH:MM range."""


def _minutes(clock: str, raw: str) -> int:
    hours, minutes = int(clock[:2]), int(clock[3:])
    if hours > 23 or minutes > 59:
        raise InvalidSlotFormat(f"{raw}: {clock} is not a valid time of day")
    return hours * 60 + minutes


@dataclass(frozen=True, order=True)
class TimeRange:
    """Half-open [start, end) interval in minutes since midnight."""

    start: int
    end: int

    @classmethod
    def parse(cls, raw: str) -> "TimeRange":
        """
        Parse a slot string.

        Args:
            raw: Slot in ``HH:MM-HH:MM`` form

        Returns:
            Parsed range

        Raises:
            InvalidSlotFormat: If the shape, the clock values or the ordering is wrong
        """
        if not isinstance(raw, str) or not SLOT_PATTERN.fullmatch(raw):
            raise InvalidSlotFormat(f"{raw!r} must be in HH:MM-HH:MM format (e.g., 09:00-09:30)")
        start_str, end_str = raw.split("-")
        start, end = _minutes(start_str, raw), _minutes(end_str, raw)
        if start >= end:
            raise InvalidSlotFormat(f"{raw}: start must be before end")
        return cls(start, end)

    def overlaps(self, other: "TimeRange") -> bool:
        """Touching ranges do not overlap."""
        return self.start < other.end and self.end > other.start

    def __str__(self) -> str:
        return (
            f"{self.start // 60:02d}:{self.start % 60:02d}-"
            f"{self.end // 60:02d}:{self.end % 60:02d}"
        )


def find_overlap(slots: list[str]) -> tuple[str, str] | None:
    """
    Return the first pair of overlapping slots, or None.

    Every pair is compared, so the result does not depend on input order.
    Slots must already be well-formed.
    """
    parsed = [(raw, TimeRange.parse(raw)) for raw in slots]
    for (raw_a, a), (raw_b, b) in combinations(parsed, 2):
        if a.overlaps(b):
            return raw_a, raw_b
    return None


def is_slot_declared(availability: list[dict], weekday: Weekday, slot: str) -> bool:
    """Exact string match of ``slot`` against the entry for ``weekday``."""
    for entry in availability or []:
        if entry.get("day") == weekday.value:
            return slot in (entry.get("slots") or [])
    return False


def declared_slots(availability: list[dict]) -> dict[str, set[str]]:
    """Map weekday token to its declared slot strings."""
    return {entry["day"]: set(entry.get("slots") or []) for entry in availability or []}
