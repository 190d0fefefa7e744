"""
Supabase (PostgREST) client for reading working hours and appointments.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List

import requests
from pendulum import DateTime

from ..domain.exceptions import StoreError
from ..domain.models import CANCELLED_STATUS, Appointment, WorkingHoursRecord
from .rows import appointment_from_row

logger = logging.getLogger(__name__)


class SupabaseClient:
    """
    Store adapter backed by the Supabase REST API.

    Reads ``professional_profiles.working_hours/timezone`` and the
    ``appointments`` joined to their ``bookings``. Requests are blocking and
    are moved off the event loop with ``asyncio.to_thread`` so the two reads
    of one availability query can run concurrently.
    """

    REST_PATH = "/rest/v1"

    def __init__(self, url: str, service_key: str, timeout: int = 30):
        """
        Initialize the Supabase client.

        Args:
            url: Project URL, e.g. https://xyz.supabase.co
            service_key: API key sent as ``apikey`` and bearer token
            timeout: Per-request timeout in seconds
        """
        self.base_url = url.rstrip("/") + self.REST_PATH
        self.timeout = timeout
        self.headers = {
            "apikey": service_key,
            "Authorization": f"Bearer {service_key}",
            "Accept": "application/json",
        }

    async def fetch_working_hours(self, professional_profile_id: str) -> WorkingHoursRecord:
        """
        Get a professional's weekly schedule and timezone.

        A missing profile yields an empty record, which the engine treats
        as closed.

        Raises:
            StoreError: If the API call fails
        """
        rows = await asyncio.to_thread(
            self._get,
            "professional_profiles",
            {
                "select": "working_hours,timezone",
                "id": f"eq.{professional_profile_id}",
                "limit": "1",
            },
        )

        if not rows:
            logger.info("No professional profile found for %s", professional_profile_id)
            return WorkingHoursRecord(weekly_schedule=None, timezone=None)

        row = rows[0]
        return WorkingHoursRecord(
            weekly_schedule=row.get("working_hours"),
            timezone=row.get("timezone"),
        )

    async def fetch_appointments_in_window(
        self,
        professional_profile_id: str,
        window_start: DateTime,
        window_end: DateTime,
    ) -> List[Appointment]:
        """
        Get non-cancelled appointments overlapping ``[window_start, window_end)``.

        Raises:
            StoreError: If the API call fails or a row is malformed
        """
        rows = await asyncio.to_thread(
            self._get,
            "appointments",
            {
                "select": "start_time,end_time,bookings!inner(professional_profile_id,status)",
                "bookings.professional_profile_id": f"eq.{professional_profile_id}",
                "bookings.status": f"neq.{CANCELLED_STATUS}",
                # Overlap: starts before the window ends, ends after it starts.
                "start_time": f"lt.{window_end.in_timezone('UTC').to_iso8601_string()}",
                "end_time": f"gt.{window_start.in_timezone('UTC').to_iso8601_string()}",
            },
        )

        return [appointment_from_row(row, professional_profile_id) for row in rows]

    def _get(self, table: str, params: Dict[str, str]) -> List[Dict[str, Any]]:
        url = f"{self.base_url}/{table}"

        try:
            response = requests.get(url, headers=self.headers, params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as exc:
            raise StoreError(f"Failed to fetch {table} from Supabase: {exc}") from exc
        except ValueError as exc:
            raise StoreError(f"Supabase returned invalid JSON for {table}: {exc}") from exc

        if not isinstance(data, list):
            raise StoreError(f"Unexpected Supabase response for {table}: {type(data).__name__}")

        logger.debug("Fetched %d row(s) from %s", len(data), table)
        return data
