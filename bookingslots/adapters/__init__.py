"""
Adapters layer - External integrations (Supabase, JSON mock data).
"""

from .mock_store import MockAvailabilityStore
from .rows import appointment_from_row
from .supabase_client import SupabaseClient

__all__ = ["MockAvailabilityStore", "SupabaseClient", "appointment_from_row"]
