"""
Parsing of raw appointment rows shared by the store adapters.
"""

from typing import Any, Mapping

import pendulum
from pendulum import DateTime

from ..domain.exceptions import StoreError
from ..domain.models import Appointment, TimeRange


def parse_instant(value: Any) -> DateTime:
    """
    Parse an ISO 8601 timestamp into a UTC pendulum DateTime.

    Naive timestamps are read as UTC, matching how appointments are stored.

    Raises:
        StoreError: If the value is not a timestamp
    """
    if not isinstance(value, str) or not value:
        raise StoreError(f"Expected an ISO 8601 timestamp, got {value!r}")

    try:
        parsed = pendulum.parse(value, tz="UTC")
    except ValueError as exc:
        raise StoreError(f"Could not parse timestamp: {value}") from exc

    if not isinstance(parsed, DateTime):
        raise StoreError(f"Expected a date and time, got {value}")

    return parsed.in_timezone("UTC")


def appointment_from_row(row: Mapping[str, Any], professional_profile_id: str) -> Appointment:
    """
    Build an Appointment from a store row.

    Row format::

        {
            "start_time": "2024-11-25T14:00:00+00:00",
            "end_time": "2024-11-25T15:00:00+00:00",
            "bookings": {"status": "confirmed"}   # or a top-level "status"
        }

    Raises:
        StoreError: If the row cannot be interpreted. A row that is skipped
            instead could hide a real conflict.
    """
    try:
        start = parse_instant(row["start_time"])
        end = parse_instant(row["end_time"])
    except KeyError as exc:
        raise StoreError(f"Appointment row is missing {exc}") from exc

    try:
        time_range = TimeRange(start=start, end=end)
    except ValueError as exc:
        raise StoreError(f"Invalid appointment interval: {exc}") from exc

    booking = row.get("bookings") or {}
    if isinstance(booking, list):
        booking = booking[0] if booking else {}
    status = booking.get("status") or row.get("status") or ""

    return Appointment(
        time_range=time_range,
        booking_status=str(status),
        professional_profile_id=str(
            row.get("professional_profile_id")
            or booking.get("professional_profile_id")
            or professional_profile_id
        ),
    )
