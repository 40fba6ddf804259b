"""
Abstract Record Store Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep the hosted backend (Supabase) out of the business logic
2. Use in-memory storage for testing and offline demos
3. Keep the dashboard flows decoupled from any query builder

The interface is intentionally simple - we're not building a full ORM.
Equality filters, one ordering column, and by-id mutations cover every
query the dashboard makes.
"""

from abc import ABC, abstractmethod
from typing import Any, NamedTuple, Optional


class Order(NamedTuple):
    """Ordering for a select: a column and its direction."""
    field: str
    descending: bool = False


class RecordStoreInterface(ABC):
    """
    Abstract interface for table-oriented record storage.

    Any storage implementation (Supabase, in-memory, etc.)
    must implement these methods. Failures raise StorageError
    rather than returning an error value.
    """

    @abstractmethod
    async def select(
        self,
        table: str,
        filters: Optional[dict[str, Any]] = None,
        order: Optional[Order] = None,
        columns: str = "*",
    ) -> list[dict]:
        """
        Fetch rows from a table.

        Args:
            table: Table name
            filters: {column: value} pairs, all matched by equality
            order: Optional ordering column and direction
            columns: Comma-separated column projection, "*" for all

        Returns:
            List of rows as dicts (empty if none match)

        Raises:
            StorageError: If the query fails
        """
        pass

    @abstractmethod
    async def insert(self, table: str, record: dict) -> dict:
        """
        Insert a row.

        Returns:
            The stored row, including store-assigned fields (id, created_at)

        Raises:
            StorageError: If the insert fails
        """
        pass

    @abstractmethod
    async def update(self, table: str, record_id: Any, fields: dict) -> dict:
        """
        Update the row with this primary key.

        Returns:
            The updated row

        Raises:
            NotFoundError: If no row has this id
            StorageError: If the update fails
        """
        pass

    @abstractmethod
    async def delete(self, table: str, record_id: Any) -> None:
        """
        Delete the row with this primary key.

        Deleting an id that does not exist is not an error.

        Raises:
            StorageError: If the delete fails
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
