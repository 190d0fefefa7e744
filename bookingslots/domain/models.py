"""
Domain models for working hours, appointments and candidate slots.
"""

from dataclasses import dataclass
from datetime import date, time
from typing import Any, List, Tuple

from pendulum import DateTime

WEEKDAY_NAMES: Tuple[str, ...] = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

CANCELLED_STATUS = "cancelled"


def weekday_name(day: date) -> str:
    """Return the canonical weekday name of a calendar date."""
    return WEEKDAY_NAMES[day.weekday()]


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable half-open time range ``[start, end)``.

    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int((self.end - self.start).total_seconds() / 60)

    def overlaps(self, other: "TimeRange") -> bool:
        """
        Check if this range overlaps with another.

        Ranges that only touch (one ends exactly when the other starts)
        do not overlap.
        """
        return self.start < other.end and other.start < self.end

    def in_timezone(self, tz) -> "TimeRange":
        """Return the same range expressed in another timezone."""
        return TimeRange(start=self.start.in_timezone(tz), end=self.end.in_timezone(tz))

    def __str__(self) -> str:
        return f"{self.start.format('YYYY-MM-DD HH:mm')} - {self.end.format('YYYY-MM-DD HH:mm')}"


@dataclass(frozen=True)
class WorkingHoursEntry:
    """
    One weekday of a professional's weekly schedule.

    Times are wall-clock times in the professional's timezone.
    """
    day: str
    enabled: bool
    start_time: time | None = None
    end_time: time | None = None

    @property
    def is_open(self) -> bool:
        """True when the day is enabled and fully configured."""
        return self.enabled and self.start_time is not None and self.end_time is not None

    @property
    def start_minutes(self) -> int:
        if self.start_time is None:
            raise ValueError(f"{self.day} has no start time")
        return self.start_time.hour * 60 + self.start_time.minute

    @property
    def end_minutes(self) -> int:
        if self.end_time is None:
            raise ValueError(f"{self.day} has no end time")
        return self.end_time.hour * 60 + self.end_time.minute

    @classmethod
    def closed(cls, day: str) -> "WorkingHoursEntry":
        return cls(day=day, enabled=False)


@dataclass(frozen=True)
class ParsedWorkingHours:
    """
    A professional's resolved weekly schedule.

    Holds exactly one entry per weekday in canonical order plus the IANA
    timezone used to interpret the entries' times.
    """
    timezone: str
    entries: Tuple[WorkingHoursEntry, ...]

    def entries_for(self, day: str) -> List[WorkingHoursEntry]:
        """Return the open entries for a weekday name."""
        key = day.lower()
        return [entry for entry in self.entries if entry.day == key and entry.is_open]

    def enabled_days(self) -> List[str]:
        """Weekday names with at least one open entry, canonical order."""
        return [day for day in WEEKDAY_NAMES if self.entries_for(day)]


@dataclass(frozen=True)
class Appointment:
    """An existing appointment, as far as conflict checking is concerned."""
    time_range: TimeRange
    booking_status: str
    professional_profile_id: str = ""

    @property
    def is_active(self) -> bool:
        return self.booking_status.lower() != CANCELLED_STATUS


@dataclass(frozen=True)
class CandidateSlot:
    """
    A bookable start time produced during one availability computation.
    """
    start_utc: DateTime
    end_utc: DateTime
    professional_local_time: time
    client_local_date: date
    client_local_time: time

    @property
    def time_range(self) -> TimeRange:
        return TimeRange(start=self.start_utc, end=self.end_utc)

    @property
    def client_time_label(self) -> str:
        """Client-local start time as ``HH:MM``."""
        return f"{self.client_local_time.hour:02d}:{self.client_local_time.minute:02d}"


@dataclass(frozen=True)
class WorkingHoursRecord:
    """Raw working hours as returned by a store."""
    weekly_schedule: Any
    timezone: str | None = None
