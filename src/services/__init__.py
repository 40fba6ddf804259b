"""Services package."""

from src.services.auth import AuthError, SessionProvider, Subscription
from src.services.export import InvoicePdfExporter, invoice_filename
from src.services.storage import (
    ConnectionError,
    InMemoryRecordStore,
    NotFoundError,
    Order,
    RecordStoreInterface,
    StorageError,
    SupabaseClient,
    SupabaseRecordStore,
)

__all__ = [
    # Auth
    "AuthError",
    "SessionProvider",
    "Subscription",
    # Export
    "InvoicePdfExporter",
    "invoice_filename",
    # Storage services
    "ConnectionError",
    "InMemoryRecordStore",
    "NotFoundError",
    "Order",
    "RecordStoreInterface",
    "StorageError",
    "SupabaseClient",
    "SupabaseRecordStore",
]
