"""
Mock availability store for running without a Supabase project.
"""

import json
from pathlib import Path
from typing import Any, Dict, List

from pendulum import DateTime

from ..domain.exceptions import StoreError
from ..domain.models import Appointment, WorkingHoursRecord
from .rows import appointment_from_row

DEFAULT_DATA_FILE = Path(__file__).parent / "mock_availability_data.json"


class MockAvailabilityStore:
    """
    Store that serves professionals and appointments from a JSON file.

    Unlike the Supabase adapter it returns cancelled appointments as well,
    leaving the status filter to the service.
    """

    def __init__(self, data_file: Path | None = None):
        """
        Initialize the mock store.

        Args:
            data_file: JSON fixture, defaults to mock_availability_data.json
                next to this module

        Raises:
            StoreError: If the file exists but cannot be read
        """
        self.data_file = data_file or DEFAULT_DATA_FILE
        self._load_data()

    def _load_data(self) -> None:
        """Load mock data from the JSON file."""
        if not self.data_file.exists():
            # Fallback to an empty store if the file doesn't exist
            self.professionals: Dict[str, Dict[str, Any]] = {}
            self.appointments: List[Dict[str, Any]] = []
            return

        try:
            with open(self.data_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as exc:
            raise StoreError(f"Could not load mock data from {self.data_file}: {exc}") from exc

        self.professionals = {
            str(professional["id"]): professional
            for professional in data.get("professionals", [])
        }
        self.appointments = list(data.get("appointments", []))

    async def fetch_working_hours(self, professional_profile_id: str) -> WorkingHoursRecord:
        professional = self.professionals.get(professional_profile_id)

        if professional is None:
            return WorkingHoursRecord(weekly_schedule=None, timezone=None)

        return WorkingHoursRecord(
            weekly_schedule=professional.get("working_hours"),
            timezone=professional.get("timezone"),
        )

    async def fetch_appointments_in_window(
        self,
        professional_profile_id: str,
        window_start: DateTime,
        window_end: DateTime,
    ) -> List[Appointment]:
        """Appointments of the professional overlapping the window, any status."""
        appointments = [
            appointment_from_row(row, professional_profile_id)
            for row in self.appointments
            if str(row.get("professional_profile_id")) == professional_profile_id
        ]

        return [
            appointment
            for appointment in appointments
            if appointment.time_range.start < window_end and appointment.time_range.end > window_start
        ]

    def professional_ids(self) -> List[str]:
        return sorted(self.professionals)
