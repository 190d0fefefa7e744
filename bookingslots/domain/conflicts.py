"""
Conflict detection between candidate slots and existing appointments.

All comparisons are between aware instants, so the timezone each value
happens to be expressed in does not matter.
"""

from typing import Iterable, List, Sequence

from pendulum import DateTime

from .models import Appointment, CandidateSlot, TimeRange


def intervals_overlap(a_start: DateTime, a_end: DateTime, b_start: DateTime, b_end: DateTime) -> bool:
    """
    Half-open overlap test for ``[a_start, a_end)`` and ``[b_start, b_end)``.

    Back-to-back intervals (``a_end == b_start``) do not overlap.
    """
    return a_start < b_end and b_start < a_end


def has_overlap(candidate: TimeRange, appointments: Iterable[TimeRange]) -> bool:
    """Check whether a candidate interval collides with any appointment."""
    return any(
        intervals_overlap(candidate.start, candidate.end, booked.start, booked.end)
        for booked in appointments
    )


def active_appointment_ranges(appointments: Iterable[Appointment]) -> List[TimeRange]:
    """Time ranges of appointments that still block the calendar."""
    return [appointment.time_range for appointment in appointments if appointment.is_active]


def filter_conflicting_slots(
    slots: Iterable[CandidateSlot],
    appointment_ranges: Sequence[TimeRange],
) -> List[CandidateSlot]:
    """Drop every slot whose occupied interval overlaps an appointment."""
    return [slot for slot in slots if not has_overlap(slot.time_range, appointment_ranges)]
