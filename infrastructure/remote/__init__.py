"""Remote device-state store clients."""

from .base import RemoteStateClient
from .memory_client import InMemoryStateClient
from .supabase_client import SupabaseStateClient

__all__ = ["InMemoryStateClient", "RemoteStateClient", "SupabaseStateClient"]
