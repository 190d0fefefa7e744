"""
Core business logic for calculating bookable appointment times.

This is the heart of the application - pure domain logic without any
external dependencies (no API calls, no database, no I/O).
"""

import logging
from datetime import date
from typing import Iterable, List, Sequence, Set

from .conflicts import filter_conflicting_slots
from .models import WEEKDAY_NAMES, CandidateSlot, ParsedWorkingHours, TimeRange, weekday_name
from .slot_generator import SLOT_GRANULARITY_MINUTES, generate_candidate_slots, validate_positive_minutes
from .timezones import (
    date_for_weekday,
    label_to_minutes,
    localize,
    parse_calendar_date,
    resolve_timezone,
    start_of_local_day,
)

logger = logging.getLogger(__name__)

# Professional calendar days checked around the client's date. Offsets
# between any two timezones stay below a day, so one day either side is
# enough to catch shifts that cross midnight.
PROFESSIONAL_DAY_OFFSETS = (-1, 0, 1)

DEFAULT_WINDOW_PADDING_HOURS = 24


def appointment_query_window(
    client_date: date,
    client_timezone: str,
    padding_hours: int = DEFAULT_WINDOW_PADDING_HOURS,
) -> TimeRange:
    """
    UTC window of appointments relevant to one client-visible date.

    The client's calendar day is widened by ``padding_hours`` on both sides
    so appointments spilling over midnight are part of the fetch.
    """
    tz = resolve_timezone(client_timezone)
    day = parse_calendar_date(client_date)

    day_start = start_of_local_day(day, tz)
    day_end = start_of_local_day(day.add(days=1), tz)

    return TimeRange(
        start=day_start.subtract(hours=padding_hours).in_timezone("UTC"),
        end=day_end.add(hours=padding_hours).in_timezone("UTC"),
    )


class AvailabilityCalculator:
    """
    Calculates bookable start times from a professional's weekly schedule.

    Algorithm:
    1. Look at the professional's calendar one day either side of the
       client's date (timezone skew)
    2. Generate candidate slots for every open entry of those weekdays
    3. Keep slots that land on the client's date
    4. Drop slots overlapping an existing appointment
    5. Return unique client-local ``HH:MM`` labels, earliest first
    """

    def __init__(
        self,
        working_hours: ParsedWorkingHours,
        granularity_minutes: int = SLOT_GRANULARITY_MINUTES,
    ):
        self.working_hours = working_hours
        self.granularity_minutes = validate_positive_minutes(granularity_minutes, "granularity_minutes")

    def find_candidate_slots(
        self,
        client_date: date,
        required_duration_minutes: int,
        client_timezone: str,
    ) -> List[CandidateSlot]:
        """
        Generate every candidate slot on the client's date, before conflicts.
        """
        validate_positive_minutes(required_duration_minutes, "required_duration_minutes")
        resolve_timezone(client_timezone)
        requested = parse_calendar_date(client_date)

        return [
            slot
            for offset in PROFESSIONAL_DAY_OFFSETS
            for entry in self.working_hours.entries_for(weekday_name(requested.add(days=offset)))
            for slot in generate_candidate_slots(
                working_day=entry,
                professional_timezone=self.working_hours.timezone,
                client_timezone=client_timezone,
                client_requested_date=requested,
                professional_calendar_offset_days=offset,
                required_duration_minutes=required_duration_minutes,
                granularity_minutes=self.granularity_minutes,
            )
        ]

    def find_available_time_slots(
        self,
        client_date: date,
        required_duration_minutes: int,
        client_timezone: str,
        appointment_ranges: Sequence[TimeRange],
    ) -> List[str]:
        """
        Find bookable start times on a client-visible date.

        Args:
            client_date: Date in the client's calendar
            required_duration_minutes: Length of the service
            client_timezone: IANA timezone of the client
            appointment_ranges: Blocking (non-cancelled) appointments

        Returns:
            Client-local ``HH:MM`` labels, deduplicated and ascending.
            Empty when nothing is bookable.
        """
        candidates = self.find_candidate_slots(
            client_date=client_date,
            required_duration_minutes=required_duration_minutes,
            client_timezone=client_timezone,
        )
        free = filter_conflicting_slots(candidates, appointment_ranges)

        logger.debug(
            "%d candidate slot(s), %d free after conflict check",
            len(candidates),
            len(free),
        )

        return _unique_sorted_labels(slot.client_time_label for slot in free)

    def find_available_weekdays(self, client_timezone: str, reference_date: date) -> Set[str]:
        """
        Weekdays on which the client can see at least part of a shift.

        Each open shift's start and its last minute, on the date it falls
        in the week of ``reference_date``, are projected into the client's
        timezone. A long shift can therefore contribute two weekdays.
        """
        professional_tz = resolve_timezone(self.working_hours.timezone)
        client_tz = resolve_timezone(client_timezone)

        weekdays: Set[str] = set()
        for day in WEEKDAY_NAMES:
            on_date = date_for_weekday(reference_date, day)
            for entry in self.working_hours.entries_for(day):
                for minutes in (entry.start_minutes, entry.end_minutes - 1):
                    client_instant = localize(on_date, minutes, professional_tz).in_timezone(client_tz)
                    weekdays.add(weekday_name(client_instant))

        return weekdays


def _unique_sorted_labels(labels: Iterable[str]) -> List[str]:
    return sorted(set(labels), key=label_to_minutes)
