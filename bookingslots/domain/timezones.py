"""
Timezone and wall-clock helpers.

Every function takes its reference date or instant as a parameter; nothing
here reads the system clock or the machine's local timezone.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, time
from typing import List, Tuple

import pendulum
from pendulum import Date, DateTime

from .exceptions import InvalidInputError
from .models import WEEKDAY_NAMES, ParsedWorkingHours, WorkingHoursEntry

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60

# (IANA id, display label) offered to professionals when picking a timezone.
TIMEZONE_CHOICES: Tuple[Tuple[str, str], ...] = (
    ("UTC", "UTC (Coordinated Universal Time)"),
    # North America
    ("America/New_York", "Eastern Time (New York)"),
    ("America/Chicago", "Central Time (Chicago)"),
    ("America/Denver", "Mountain Time (Denver)"),
    ("America/Phoenix", "Mountain Time (Phoenix)"),
    ("America/Los_Angeles", "Pacific Time (Los Angeles)"),
    ("America/Anchorage", "Alaska Time (Anchorage)"),
    ("Pacific/Honolulu", "Hawaii Time (Honolulu)"),
    ("America/St_Johns", "Newfoundland Time (St. Johns)"),
    ("America/Halifax", "Atlantic Time (Halifax)"),
    ("America/Toronto", "Eastern Time (Toronto)"),
    ("America/Vancouver", "Pacific Time (Vancouver)"),
    ("America/Mexico_City", "Central Time (Mexico City)"),
    # South America
    ("America/Sao_Paulo", "Brazil Time (São Paulo)"),
    ("America/Argentina/Buenos_Aires", "Argentina Time (Buenos Aires)"),
    ("America/Bogota", "Colombia Time (Bogotá)"),
    # Europe
    ("Europe/London", "GMT (London)"),
    ("Europe/Dublin", "GMT (Dublin)"),
    ("Europe/Paris", "CET (Paris)"),
    ("Europe/Berlin", "CET (Berlin)"),
    ("Europe/Madrid", "CET (Madrid)"),
    ("Europe/Athens", "EET (Athens)"),
    ("Europe/Moscow", "MSK (Moscow)"),
    # Africa & Middle East
    ("Africa/Cairo", "EET (Cairo)"),
    ("Africa/Johannesburg", "SAST (Johannesburg)"),
    ("Asia/Dubai", "GST (Dubai)"),
    # Asia
    ("Asia/Kolkata", "IST (Kolkata)"),
    ("Asia/Kathmandu", "NPT (Kathmandu)"),
    ("Asia/Bangkok", "ICT (Bangkok)"),
    ("Asia/Singapore", "SGT (Singapore)"),
    ("Asia/Shanghai", "CST (Shanghai)"),
    ("Asia/Tokyo", "JST (Tokyo)"),
    ("Asia/Seoul", "KST (Seoul)"),
    # Australia & Pacific
    ("Australia/Perth", "AWST (Perth)"),
    ("Australia/Adelaide", "ACST (Adelaide)"),
    ("Australia/Sydney", "AEST (Sydney)"),
    ("Pacific/Auckland", "NZST (Auckland)"),
    ("Pacific/Fiji", "FJT (Fiji)"),
)


@dataclass(frozen=True)
class TimezoneOption:
    value: str
    label: str


@dataclass(frozen=True)
class DayBoundaryCrossing:
    """How a shift lands on the calendar once moved to another timezone."""
    crosses_midnight: bool
    next_day: bool
    previous_day: bool


@dataclass(frozen=True)
class ConvertedWorkingHours:
    """A professional's shift expressed in a client's timezone."""
    professional_day: str
    start: DateTime
    end: DateTime

    @property
    def client_start_day(self) -> str:
        return WEEKDAY_NAMES[self.start.weekday()]

    @property
    def client_end_day(self) -> str:
        # The shift is half-open, so a shift ending exactly at midnight
        # still belongs to the earlier day.
        return WEEKDAY_NAMES[self.end.subtract(minutes=1).weekday()]


def resolve_timezone(name: str):
    """
    Resolve an IANA timezone identifier.

    Raises:
        InvalidInputError: If the identifier is empty or unknown
    """
    if not isinstance(name, str) or not name.strip():
        raise InvalidInputError(f"Timezone must be a non-empty IANA identifier, got {name!r}")

    try:
        return pendulum.timezone(name.strip())
    except (ValueError, KeyError) as exc:
        raise InvalidInputError(f"Unknown timezone: '{name}'") from exc


def parse_time_of_day(value: str) -> time:
    """
    Parse a 24-hour ``HH:MM`` (or ``HH:MM:SS``) string.

    Raises:
        ValueError: If the value is not a valid time of day
    """
    if not isinstance(value, str):
        raise ValueError(f"Time of day must be a string, got {value!r}")

    parts = value.strip().split(":")
    if len(parts) not in (2, 3) or not all(part.isdigit() for part in parts):
        raise ValueError(f"Invalid time of day: '{value}'")

    hour, minute = int(parts[0]), int(parts[1])
    if not 0 <= hour <= 23 or not 0 <= minute <= 59:
        raise ValueError(f"Invalid time of day: '{value}'")

    return time(hour=hour, minute=minute)


def format_time_of_day(value: time) -> str:
    return f"{value.hour:02d}:{value.minute:02d}"


def label_to_minutes(label: str) -> int:
    parsed = parse_time_of_day(label)
    return parsed.hour * 60 + parsed.minute


def format_display_time(value: str) -> str:
    """
    Format a ``HH:MM`` string for display, e.g. ``13:30`` -> ``1:30 PM``.
    """
    parsed = parse_time_of_day(value)
    hour = parsed.hour % 12 or 12
    suffix = "AM" if parsed.hour < 12 else "PM"
    return f"{hour}:{parsed.minute:02d} {suffix}"


def parse_calendar_date(value: str | date) -> Date:
    """
    Parse a ``YYYY-MM-DD`` calendar date.

    Raises:
        InvalidInputError: If the value is not a valid date
    """
    if isinstance(value, date):
        return Date(value.year, value.month, value.day)

    if not isinstance(value, str):
        raise InvalidInputError(f"Date must be a YYYY-MM-DD string, got {value!r}")

    try:
        return pendulum.from_format(value.strip(), "YYYY-MM-DD").date()
    except ValueError as exc:
        raise InvalidInputError(f"Invalid date '{value}', expected YYYY-MM-DD") from exc


def date_for_weekday(reference_date: date, day: str) -> Date:
    """Return the date of ``day`` in the Monday-based week containing ``reference_date``."""
    reference = parse_calendar_date(reference_date)
    monday = reference.subtract(days=reference.weekday())
    return monday.add(days=WEEKDAY_NAMES.index(day.lower()))


def localize(day: date, minutes: int, tz) -> DateTime:
    """
    Build the wall-clock instant ``minutes`` after midnight on ``day`` in ``tz``.

    The offset comes from the timezone rule in force on that date. Wall
    times inside a DST gap are shifted forward by pendulum.
    """
    return pendulum.datetime(day.year, day.month, day.day, minutes // 60, minutes % 60, tz=tz)


def localize_exact(day: date, minutes: int, tz) -> DateTime | None:
    """
    Like :func:`localize` but returns ``None`` for wall times that do not
    exist on that date (spring-forward gap).
    """
    local = localize(day, minutes, tz)
    round_trip = local.in_timezone("UTC").in_timezone(tz)

    if round_trip.date() != day or (round_trip.hour, round_trip.minute) != divmod(minutes, 60):
        return None

    return local


def start_of_local_day(day: date, tz) -> DateTime:
    return localize(day, 0, tz)


def gmt_offset_label(tz_name: str, at: DateTime) -> str:
    """
    Describe the UTC offset of a timezone at a given instant.

    Examples: ``GMT+0``, ``GMT-4``, ``GMT+5:30``.
    """
    offset = at.in_timezone(resolve_timezone(tz_name)).utcoffset()
    total_minutes = int(offset.total_seconds() // 60)

    if total_minutes == 0:
        return "GMT+0"

    sign = "+" if total_minutes > 0 else "-"
    hours, minutes = divmod(abs(total_minutes), 60)

    if minutes == 0:
        return f"GMT{sign}{hours}"
    return f"GMT{sign}{hours}:{minutes:02d}"


def get_timezone_options(at: DateTime) -> List[TimezoneOption]:
    """
    Return the selectable timezones labelled with their offset at ``at``.

    Unknown identifiers are skipped and duplicates removed.
    """
    options: List[TimezoneOption] = []
    seen: set[str] = set()

    for value, label in TIMEZONE_CHOICES:
        if value in seen:
            continue

        try:
            offset = gmt_offset_label(value, at)
        except InvalidInputError:
            logger.info("Skipping invalid timezone: %s", value)
            continue

        options.append(TimezoneOption(value=value, label=f"{label} {offset}"))
        seen.add(value)

    return options


def _shift_bounds(entry: WorkingHoursEntry, on_date: date, from_tz, to_tz) -> Tuple[DateTime, DateTime]:
    start = localize(on_date, entry.start_minutes, from_tz).in_timezone(to_tz)
    end = localize(on_date, entry.end_minutes, from_tz).in_timezone(to_tz)
    return start, end


def check_day_boundary_crossing(
    entry: WorkingHoursEntry,
    from_timezone: str,
    to_timezone: str,
    on_date: date,
) -> DayBoundaryCrossing:
    """
    Check whether a shift lands on a different or on two calendar days
    once converted to another timezone.

    Args:
        entry: Working hours entry (closed entries never cross)
        from_timezone: Timezone the entry's times are expressed in
        to_timezone: Timezone of the viewer
        on_date: Professional-local date the shift is worked on
    """
    if not entry.is_open:
        return DayBoundaryCrossing(crosses_midnight=False, next_day=False, previous_day=False)

    start, end = _shift_bounds(
        entry,
        on_date,
        resolve_timezone(from_timezone),
        resolve_timezone(to_timezone),
    )
    last_minute = end.subtract(minutes=1)

    return DayBoundaryCrossing(
        crosses_midnight=start.date() != last_minute.date(),
        next_day=start.date() > on_date,
        previous_day=start.date() < on_date,
    )


def convert_working_hours_to_client_timezone(
    working_hours: ParsedWorkingHours,
    client_timezone: str,
    reference_date: date,
) -> List[ConvertedWorkingHours]:
    """
    Express every open shift of the week containing ``reference_date`` in
    the client's timezone.
    """
    from_tz = resolve_timezone(working_hours.timezone)
    to_tz = resolve_timezone(client_timezone)

    converted: List[ConvertedWorkingHours] = []
    for entry in working_hours.entries:
        if not entry.is_open:
            continue
        on_date = date_for_weekday(reference_date, entry.day)
        start, end = _shift_bounds(entry, on_date, from_tz, to_tz)
        converted.append(ConvertedWorkingHours(professional_day=entry.day, start=start, end=end))

    return converted
