"""
Supabase Record Store Implementation

DESIGN DECISION: Supabase is the storage backend because:
1. The studio already manages its admin user in Supabase Auth
2. Row-level security keeps the anon key safe to ship to the dashboard
3. Postgres underneath means cascading deletes are enforced by the schema
4. No server of our own to run

TRADEOFFS:
- Every call is a network round-trip (fine for a single admin)
- The Python client is synchronous; we call it from async methods
  and accept that it blocks the event loop for the duration
- No retries: a failed call is surfaced to the admin, who re-runs the action

The implementation follows the abstract interface, so the flows never
touch the PostgREST query builder directly.
"""

from typing import Any, Optional

import structlog
from postgrest.exceptions import APIError
from supabase import Client, create_client

from src.config import get_settings
from src.services.storage.interface import (
    ConnectionError,
    NotFoundError,
    Order,
    RecordStoreInterface,
    StorageError,
)


logger = structlog.get_logger(__name__)


class SupabaseClient:
    """
    Low-level Supabase client wrapper.

    Creates the client lazily so settings are only required once
    something actually talks to Supabase.
    """

    def __init__(self, client: Optional[Client] = None):
        self._client: Optional[Client] = client
        self._settings = get_settings().supabase if client is None else None

    def connect(self) -> Client:
        """Create (once) and return the Supabase client."""
        if self._client is None:
            try:
                self._client = create_client(
                    self._settings.url,
                    self._settings.anon_key,
                )
            except Exception as e:
                raise ConnectionError(f"Failed to create Supabase client: {e}")
        return self._client

    @property
    def auth(self):
        """The Supabase Auth client, used by the session provider."""
        return self.connect().auth


class SupabaseRecordStore(RecordStoreInterface):
    """
    Supabase implementation of the record store.

    Rows are plain dicts as returned by PostgREST; parsing into
    models is left to the caller.
    """

    def __init__(self, client: Optional[SupabaseClient] = None):
        self._client = client or SupabaseClient()

    def _table(self, table: str):
        return self._client.connect().table(table)

    async def select(
        self,
        table: str,
        filters: Optional[dict[str, Any]] = None,
        order: Optional[Order] = None,
        columns: str = "*",
    ) -> list[dict]:
        """Fetch rows matching all equality filters."""
        try:
            query = self._table(table).select(columns)
            for column, value in (filters or {}).items():
                query = query.eq(column, value)
            if order is not None:
                query = query.order(order.field, desc=order.descending)
            response = query.execute()
            return response.data or []
        except StorageError:
            raise
        except APIError as e:
            logger.error("store_select_failed", table=table, error=e.message)
            raise StorageError(f"Failed to load {table}: {e.message}")
        except Exception as e:
            logger.error("store_select_failed", table=table, error=str(e))
            raise StorageError(f"Failed to load {table}: {e}")

    async def insert(self, table: str, record: dict) -> dict:
        """Insert a row and return it as stored."""
        try:
            response = self._table(table).insert(record).execute()
        except StorageError:
            raise
        except APIError as e:
            logger.error("store_insert_failed", table=table, error=e.message)
            raise StorageError(f"Failed to save to {table}: {e.message}")
        except Exception as e:
            logger.error("store_insert_failed", table=table, error=str(e))
            raise StorageError(f"Failed to save to {table}: {e}")

        if not response.data:
            raise StorageError(f"Insert into {table} returned no row")
        return response.data[0]

    async def update(self, table: str, record_id: Any, fields: dict) -> dict:
        """Update one row by id."""
        try:
            response = (
                self._table(table)
                .update(fields)
                .eq("id", record_id)
                .execute()
            )
        except StorageError:
            raise
        except APIError as e:
            logger.error("store_update_failed", table=table, id=record_id, error=e.message)
            raise StorageError(f"Failed to update {table}: {e.message}")
        except Exception as e:
            logger.error("store_update_failed", table=table, id=record_id, error=str(e))
            raise StorageError(f"Failed to update {table}: {e}")

        if not response.data:
            raise NotFoundError(f"No row in {table} with id {record_id}")
        return response.data[0]

    async def delete(self, table: str, record_id: Any) -> None:
        """Delete one row by id."""
        try:
            self._table(table).delete().eq("id", record_id).execute()
        except StorageError:
            raise
        except APIError as e:
            logger.error("store_delete_failed", table=table, id=record_id, error=e.message)
            raise StorageError(f"Failed to delete from {table}: {e.message}")
        except Exception as e:
            logger.error("store_delete_failed", table=table, id=record_id, error=str(e))
            raise StorageError(f"Failed to delete from {table}: {e}")
