"""
Domain-specific exception hierarchy for the availability engine.
"""


class SchedulingError(Exception):
    """Base class for all application-level errors."""


class InvalidInputError(SchedulingError, ValueError):
    """Raised for unusable caller input (duration, timezone, date)."""


class StoreError(SchedulingError):
    """Raised when working hours or appointments cannot be fetched or parsed."""
