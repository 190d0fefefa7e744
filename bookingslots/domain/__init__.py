"""
Domain layer - Pure business logic without external dependencies.
"""

from .availability import AvailabilityCalculator, appointment_query_window
from .exceptions import InvalidInputError, SchedulingError, StoreError
from .models import (
    WEEKDAY_NAMES,
    Appointment,
    CandidateSlot,
    ParsedWorkingHours,
    TimeRange,
    WorkingHoursEntry,
    WorkingHoursRecord,
)
from .working_hours import parse_working_hours

__all__ = [
    "WEEKDAY_NAMES",
    "Appointment",
    "AvailabilityCalculator",
    "CandidateSlot",
    "InvalidInputError",
    "ParsedWorkingHours",
    "SchedulingError",
    "StoreError",
    "TimeRange",
    "WorkingHoursEntry",
    "WorkingHoursRecord",
    "appointment_query_window",
    "parse_working_hours",
]
