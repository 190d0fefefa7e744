"""
Candidate slot generation for a single professional working day.
"""

from datetime import date, time
from typing import List

from .exceptions import InvalidInputError
from .models import CandidateSlot, WorkingHoursEntry
from .timezones import localize, localize_exact, resolve_timezone

# Spacing between candidate start times. Matches the booking UI's picker.
SLOT_GRANULARITY_MINUTES = 30


def validate_positive_minutes(value: int, name: str) -> int:
    """Reject durations that would produce empty or inverted slots."""
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InvalidInputError(f"{name} must be a positive number of minutes, got {value!r}")
    return value


def generate_candidate_slots(
    working_day: WorkingHoursEntry,
    professional_timezone: str,
    client_timezone: str,
    client_requested_date: date,
    professional_calendar_offset_days: int,
    required_duration_minutes: int,
    granularity_minutes: int = SLOT_GRANULARITY_MINUTES,
) -> List[CandidateSlot]:
    """
    Enumerate the start times a working day offers on the client's date.

    Start times step from the shift start to ``end - duration`` inclusive.
    Each one is placed on the professional's calendar date
    (``client_requested_date + professional_calendar_offset_days``) in the
    professional's timezone, converted to UTC and projected into the
    client's timezone. Slots landing on another client date are dropped;
    they are found when that date is queried.

    Args:
        working_day: Open working hours entry
        professional_timezone: IANA timezone of the entry's times
        client_timezone: IANA timezone of the viewer
        client_requested_date: Calendar date the client is looking at
        professional_calendar_offset_days: Day shift between the two calendars
        required_duration_minutes: Length of the service
        granularity_minutes: Spacing between candidate start times

    Returns:
        Candidate slots in ascending start order

    Raises:
        InvalidInputError: On non-positive duration/granularity or bad timezone
    """
    validate_positive_minutes(required_duration_minutes, "required_duration_minutes")
    validate_positive_minutes(granularity_minutes, "granularity_minutes")

    professional_tz = resolve_timezone(professional_timezone)
    client_tz = resolve_timezone(client_timezone)

    if not working_day.is_open:
        return []

    professional_date = date.fromordinal(
        client_requested_date.toordinal() + professional_calendar_offset_days
    )
    last_start = working_day.end_minutes - required_duration_minutes
    # Wall-clock stepping overshoots on a 23-hour day; the close instant bounds every slot.
    shift_end_utc = localize(professional_date, working_day.end_minutes, professional_tz).in_timezone("UTC")

    slots: List[CandidateSlot] = []

    for minutes in range(working_day.start_minutes, last_start + 1, granularity_minutes):
        local_start = localize_exact(professional_date, minutes, professional_tz)
        if local_start is None:
            continue

        start_utc = local_start.in_timezone("UTC")
        end_utc = start_utc.add(minutes=required_duration_minutes)
        if end_utc > shift_end_utc:
            continue

        client_start = start_utc.in_timezone(client_tz)

        if client_start.date() != client_requested_date:
            continue

        slots.append(
            CandidateSlot(
                start_utc=start_utc,
                end_utc=end_utc,
                professional_local_time=time(hour=minutes // 60, minute=minutes % 60),
                client_local_date=client_start.date(),
                client_local_time=time(hour=client_start.hour, minute=client_start.minute),
            )
        )

    return slots
