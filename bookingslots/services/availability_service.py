"""
Application services for answering booking availability questions.

The service coordinates fetching working hours and appointments via a store
adapter and delegates the actual availability calculation to the
domain-level ``AvailabilityCalculator``. Request handlers stay thin, and the
store can be swapped for a stub in tests via a simple protocol.

Results are advisory: they describe what looked free when the query ran.
Preventing double bookings is the job of whatever inserts the appointment.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import List, Protocol

import pendulum
from pendulum import DateTime

from ..domain.availability import (
    DEFAULT_WINDOW_PADDING_HOURS,
    AvailabilityCalculator,
    appointment_query_window,
)
from ..domain.conflicts import active_appointment_ranges
from ..domain.exceptions import StoreError
from ..domain.models import WEEKDAY_NAMES, Appointment, ParsedWorkingHours, WorkingHoursRecord
from ..domain.slot_generator import SLOT_GRANULARITY_MINUTES, validate_positive_minutes
from ..domain.timezones import parse_calendar_date, resolve_timezone
from ..domain.working_hours import parse_working_hours

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "UTC"


class AvailabilityStoreProtocol(Protocol):
    """Protocol describing the persistence reads needed by the service."""

    async def fetch_working_hours(self, professional_profile_id: str) -> WorkingHoursRecord:
        """Return the professional's persisted weekly schedule and timezone."""

    async def fetch_appointments_in_window(
        self,
        professional_profile_id: str,
        window_start: DateTime,
        window_end: DateTime,
    ) -> List[Appointment]:
        """Return appointments overlapping ``[window_start, window_end)``."""


class AvailabilityService:
    """
    Orchestrates store reads and availability calculation.

    Dependency inversion toward a protocol makes it easy to plug in the
    Supabase adapter, the JSON mock store, or a stub in tests.
    """

    def __init__(
        self,
        store: AvailabilityStoreProtocol,
        granularity_minutes: int = SLOT_GRANULARITY_MINUTES,
        window_padding_hours: int = DEFAULT_WINDOW_PADDING_HOURS,
    ) -> None:
        self._store = store
        self._granularity_minutes = validate_positive_minutes(granularity_minutes, "granularity_minutes")
        self._window_padding_hours = window_padding_hours

    async def get_available_time_slots(
        self,
        professional_profile_id: str,
        client_date: str | date,
        required_duration_minutes: int,
        professional_timezone: str | None = None,
        client_timezone: str = DEFAULT_TIMEZONE,
    ) -> List[str]:
        """
        Bookable client-local start times (``HH:MM``) on ``client_date``.

        Args:
            professional_profile_id: Professional to book
            client_date: ``YYYY-MM-DD`` date in the client's calendar
            required_duration_minutes: Total service length
            professional_timezone: Overrides the stored timezone when given
            client_timezone: IANA timezone of the client

        Returns:
            Ascending, deduplicated ``HH:MM`` strings; empty when closed or
            fully booked

        Raises:
            InvalidInputError: On bad date, duration or timezone
            StoreError: If working hours or appointments cannot be fetched
        """
        requested = parse_calendar_date(client_date)
        validate_positive_minutes(required_duration_minutes, "required_duration_minutes")
        resolve_timezone(client_timezone)
        if professional_timezone is not None:
            resolve_timezone(professional_timezone)

        if required_duration_minutes > self._window_padding_hours * 60:
            logger.warning(
                "Duration of %d minutes exceeds the %dh appointment window padding; "
                "conflicts starting outside the window will not be seen",
                required_duration_minutes,
                self._window_padding_hours,
            )

        window = appointment_query_window(requested, client_timezone, self._window_padding_hours)

        record, appointments = await asyncio.gather(
            self._fetch_working_hours(professional_profile_id),
            self._fetch_appointments(professional_profile_id, window.start, window.end),
        )

        working_hours = parse_working_hours(
            record.weekly_schedule,
            self._resolve_professional_timezone(professional_timezone, record),
        )
        calculator = AvailabilityCalculator(working_hours, granularity_minutes=self._granularity_minutes)

        slots = calculator.find_available_time_slots(
            client_date=requested,
            required_duration_minutes=required_duration_minutes,
            client_timezone=client_timezone,
            appointment_ranges=active_appointment_ranges(appointments),
        )

        logger.info(
            "%d slot(s) for professional %s on %s (%s)",
            len(slots),
            professional_profile_id,
            requested.isoformat(),
            client_timezone,
        )
        return slots

    async def get_available_dates(
        self,
        professional_profile_id: str,
        professional_timezone: str | None = None,
        client_timezone: str | None = None,
        reference_date: str | date | None = None,
    ) -> List[str]:
        """
        Weekday names bookable from the client's point of view.

        Args:
            professional_profile_id: Professional to book
            professional_timezone: Overrides the stored timezone when given
            client_timezone: Viewer timezone, defaults to the professional's
            reference_date: Any date of the week whose DST rules apply,
                defaults to today's UTC date

        Returns:
            Weekday names in Monday..Sunday order
        """
        if client_timezone is not None:
            resolve_timezone(client_timezone)

        reference = (
            parse_calendar_date(reference_date)
            if reference_date is not None
            else pendulum.now("UTC").date()
        )

        working_hours = await self.get_working_hours(professional_profile_id, professional_timezone)
        target_timezone = client_timezone or working_hours.timezone

        calculator = AvailabilityCalculator(working_hours, granularity_minutes=self._granularity_minutes)
        weekdays = calculator.find_available_weekdays(target_timezone, reference)

        return [day for day in WEEKDAY_NAMES if day in weekdays]

    async def get_working_hours(
        self,
        professional_profile_id: str,
        professional_timezone: str | None = None,
    ) -> ParsedWorkingHours:
        """Fetch and resolve a professional's weekly schedule."""
        if professional_timezone is not None:
            resolve_timezone(professional_timezone)

        record = await self._fetch_working_hours(professional_profile_id)
        return parse_working_hours(
            record.weekly_schedule,
            self._resolve_professional_timezone(professional_timezone, record),
        )

    async def _fetch_working_hours(self, professional_profile_id: str) -> WorkingHoursRecord:
        try:
            record = await self._store.fetch_working_hours(professional_profile_id)
        except StoreError:
            logger.error("Could not fetch working hours for %s", professional_profile_id)
            raise

        if record is None:
            return WorkingHoursRecord(weekly_schedule=None, timezone=None)
        return record

    async def _fetch_appointments(
        self,
        professional_profile_id: str,
        window_start: DateTime,
        window_end: DateTime,
    ) -> List[Appointment]:
        try:
            appointments = await self._store.fetch_appointments_in_window(
                professional_profile_id,
                window_start,
                window_end,
            )
        except StoreError:
            logger.error(
                "Could not fetch appointments for %s between %s and %s",
                professional_profile_id,
                window_start,
                window_end,
            )
            raise

        # An unknown appointment set must never be read as "no conflicts".
        if appointments is None:
            raise StoreError(
                f"Appointment store returned no result for {professional_profile_id}"
            )
        return list(appointments)

    @staticmethod
    def _resolve_professional_timezone(
        professional_timezone: str | None,
        record: WorkingHoursRecord,
    ) -> str:
        """Explicit argument, then stored timezone, then UTC."""
        if professional_timezone:
            return professional_timezone

        if record.timezone:
            try:
                resolve_timezone(record.timezone)
                return record.timezone
            except ValueError:
                logger.warning(
                    "Stored timezone %r is invalid, falling back to %s",
                    record.timezone,
                    DEFAULT_TIMEZONE,
                )

        return DEFAULT_TIMEZONE
