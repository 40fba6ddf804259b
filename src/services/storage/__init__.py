"""
Storage Services Package

Provides the abstract record store interface and its implementations.
Supabase is the production backend; the in-memory store backs tests
and offline mode.
"""

from src.services.storage.interface import (
    ConnectionError,
    NotFoundError,
    Order,
    RecordStoreInterface,
    StorageError,
)
from src.services.storage.memory import InMemoryRecordStore
from src.services.storage.supabase_store import (
    SupabaseClient,
    SupabaseRecordStore,
)

__all__ = [
    # Interface
    "Order",
    "RecordStoreInterface",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    # Implementations
    "InMemoryRecordStore",
    "SupabaseClient",
    "SupabaseRecordStore",
]
