"""
Tests for the AvailabilityService orchestration layer.
"""

import asyncio
import logging
from typing import Any, List, Optional

import pendulum
import pytest

from bookingslots.domain.exceptions import InvalidInputError, StoreError
from bookingslots.domain.models import Appointment, TimeRange, WorkingHoursRecord
from bookingslots.services.availability_service import AvailabilityService

NEW_YORK_HOURS = {
    "monday": {"enabled": True, "startTime": "09:00", "endTime": "17:00"},
    "tuesday": {"enabled": False},
}


def _appointment(start: str, end: str, status: str = "confirmed") -> Appointment:
    return Appointment(
        time_range=TimeRange(start=pendulum.parse(start, tz="UTC"), end=pendulum.parse(end, tz="UTC")),
        booking_status=status,
    )


class StubStore:
    """Minimal stub matching AvailabilityStoreProtocol."""

    def __init__(
        self,
        weekly_schedule: Any = None,
        timezone: Optional[str] = None,
        appointments: Optional[List[Appointment]] = None,
        error: Optional[Exception] = None,
        return_none_appointments: bool = False,
    ):
        self._record = WorkingHoursRecord(weekly_schedule=weekly_schedule, timezone=timezone)
        self._appointments = appointments or []
        self._error = error
        self._return_none_appointments = return_none_appointments
        self.calls: List[str] = []
        self.windows: List[tuple] = []

    async def fetch_working_hours(self, professional_profile_id):
        self.calls.append(f"start:hours:{professional_profile_id}")
        await asyncio.sleep(0.01)
        self.calls.append("end:hours")
        return self._record

    async def fetch_appointments_in_window(self, professional_profile_id, window_start, window_end):
        self.calls.append(f"start:appointments:{professional_profile_id}")
        self.windows.append((window_start, window_end))
        await asyncio.sleep(0.01)
        self.calls.append("end:appointments")
        if self._error is not None:
            raise self._error
        if self._return_none_appointments:
            return None
        return self._appointments


class TestGetAvailableTimeSlots:

    def test_returns_free_slots(self):
        """Confirmed bookings block, cancelled ones do not."""
        store = StubStore(
            weekly_schedule=NEW_YORK_HOURS,
            timezone="America/New_York",
            appointments=[
                _appointment("2024-11-25 14:00", "2024-11-25 15:00"),
                _appointment("2024-11-25 18:00", "2024-11-25 19:00", status="cancelled"),
            ],
        )
        service = AvailabilityService(store=store)

        slots = asyncio.run(
            service.get_available_time_slots(
                "pro-1", "2024-11-25", 60, client_timezone="America/Los_Angeles"
            )
        )

        assert slots[0] == "07:00"
        assert slots[-1] == "13:00"
        assert "06:30" not in slots
        assert "10:00" in slots

    def test_reads_run_concurrently(self):
        store = StubStore(weekly_schedule=NEW_YORK_HOURS, timezone="America/New_York")
        service = AvailabilityService(store=store)

        asyncio.run(service.get_available_time_slots("pro-1", "2024-11-25", 30))

        assert store.calls[0].startswith("start:")
        assert store.calls[1].startswith("start:")

    def test_queries_padded_window(self):
        store = StubStore(weekly_schedule=NEW_YORK_HOURS, timezone="America/New_York")
        service = AvailabilityService(store=store)

        asyncio.run(
            service.get_available_time_slots(
                "pro-1", "2024-11-25", 60, client_timezone="America/Los_Angeles"
            )
        )

        window_start, window_end = store.windows[0]
        assert window_start == pendulum.datetime(2024, 11, 24, 8, 0)
        assert window_end == pendulum.datetime(2024, 11, 27, 8, 0)

    def test_duration_beyond_padding_warns_without_widening(self, caplog):
        store = StubStore(weekly_schedule=NEW_YORK_HOURS, timezone="America/New_York")
        service = AvailabilityService(store=store, window_padding_hours=1)

        with caplog.at_level(logging.WARNING, logger="bookingslots.services.availability_service"):
            asyncio.run(service.get_available_time_slots("pro-1", "2024-11-25", 90))

        assert "exceeds the 1h appointment window padding" in caplog.text
        window_start, window_end = store.windows[0]
        assert window_start == pendulum.datetime(2024, 11, 24, 23, 0)
        assert window_end == pendulum.datetime(2024, 11, 26, 1, 0)

    def test_duration_within_padding_does_not_warn(self, caplog):
        store = StubStore(weekly_schedule=NEW_YORK_HOURS, timezone="America/New_York")
        service = AvailabilityService(store=store)

        with caplog.at_level(logging.WARNING, logger="bookingslots.services.availability_service"):
            asyncio.run(service.get_available_time_slots("pro-1", "2024-11-25", 90))

        assert "exceeds" not in caplog.text

    def test_explicit_timezone_overrides_stored(self):
        store = StubStore(weekly_schedule=NEW_YORK_HOURS, timezone="America/New_York")
        service = AvailabilityService(store=store)

        slots = asyncio.run(
            service.get_available_time_slots(
                "pro-1", "2024-11-25", 60, professional_timezone="UTC", client_timezone="UTC"
            )
        )

        assert slots[0] == "09:00"
        assert slots[-1] == "16:00"

    def test_missing_timezone_falls_back_to_utc(self):
        store = StubStore(weekly_schedule=NEW_YORK_HOURS, timezone=None)
        service = AvailabilityService(store=store)

        slots = asyncio.run(service.get_available_time_slots("pro-1", "2024-11-25", 60))

        assert slots[0] == "09:00"

    def test_invalid_stored_timezone_falls_back_to_utc(self):
        store = StubStore(weekly_schedule=NEW_YORK_HOURS, timezone="Atlantis/Capital")
        service = AvailabilityService(store=store)

        slots = asyncio.run(service.get_available_time_slots("pro-1", "2024-11-25", 60))

        assert slots[0] == "09:00"

    def test_unknown_professional_has_no_slots(self):
        service = AvailabilityService(store=StubStore())

        assert asyncio.run(service.get_available_time_slots("nobody", "2024-11-25", 30)) == []

    def test_store_error_propagates(self):
        store = StubStore(weekly_schedule=NEW_YORK_HOURS, error=StoreError("connection refused"))
        service = AvailabilityService(store=store)

        with pytest.raises(StoreError, match="connection refused"):
            asyncio.run(service.get_available_time_slots("pro-1", "2024-11-25", 30))

    def test_missing_appointment_result_is_an_error(self):
        """No appointment data must not be read as no conflicts."""
        store = StubStore(weekly_schedule=NEW_YORK_HOURS, return_none_appointments=True)
        service = AvailabilityService(store=store)

        with pytest.raises(StoreError):
            asyncio.run(service.get_available_time_slots("pro-1", "2024-11-25", 30))

    @pytest.mark.parametrize(
        "args,kwargs",
        [
            (("pro-1", "2024-11-25", 0), {}),
            (("pro-1", "not-a-date", 30), {}),
            (("pro-1", "2024-11-25", 30), {"client_timezone": "Nowhere/Land"}),
            (("pro-1", "2024-11-25", 30), {"professional_timezone": "Nowhere/Land"}),
        ],
    )
    def test_invalid_input_fails_before_store_access(self, args, kwargs):
        store = StubStore(weekly_schedule=NEW_YORK_HOURS)
        service = AvailabilityService(store=store)

        with pytest.raises(InvalidInputError):
            asyncio.run(service.get_available_time_slots(*args, **kwargs))

        assert store.calls == []


class TestGetAvailableDates:

    def test_weekdays_in_professional_timezone_by_default(self):
        store = StubStore(weekly_schedule=NEW_YORK_HOURS, timezone="America/New_York")
        service = AvailabilityService(store=store)

        weekdays = asyncio.run(service.get_available_dates("pro-1", reference_date="2024-11-25"))

        assert weekdays == ["monday"]

    def test_weekdays_in_canonical_order(self):
        store = StubStore(
            weekly_schedule={
                "timezone": "Asia/Tokyo",
                "hours": {"monday": {"enabled": True, "startTime": "09:00", "endTime": "17:00"}},
            },
            timezone="UTC",
        )
        service = AvailabilityService(store=store)

        weekdays = asyncio.run(
            service.get_available_dates(
                "pro-1", client_timezone="America/New_York", reference_date="2024-11-25"
            )
        )

        assert weekdays == ["monday", "sunday"]

    def test_no_working_hours(self):
        service = AvailabilityService(store=StubStore())

        assert asyncio.run(service.get_available_dates("pro-1", reference_date="2024-11-25")) == []

    def test_invalid_client_timezone(self):
        service = AvailabilityService(store=StubStore(weekly_schedule=NEW_YORK_HOURS))

        with pytest.raises(InvalidInputError):
            asyncio.run(service.get_available_dates("pro-1", client_timezone="Nowhere/Land"))


def test_get_working_hours_uses_stored_timezone():
    store = StubStore(weekly_schedule=NEW_YORK_HOURS, timezone="America/New_York")
    service = AvailabilityService(store=store)

    working_hours = asyncio.run(service.get_working_hours("pro-1"))

    assert working_hours.timezone == "America/New_York"
    assert working_hours.enabled_days() == ["monday"]
