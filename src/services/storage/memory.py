"""
In-Memory Record Store

Used by the test-suite and by the dashboard's offline mode when Supabase
is not configured. Behaves like the hosted store for everything the
dashboard relies on: store-assigned ids and created_at, equality filters,
ordering, and cascading client deletes.
"""

import copy
from datetime import datetime, timezone
from typing import Any, Optional

from src.services.storage.interface import (
    NotFoundError,
    Order,
    RecordStoreInterface,
)


class InMemoryRecordStore(RecordStoreInterface):
    """
    Dict-backed record store.

    `cascades` maps a parent table to (child table, foreign key column);
    deleting a parent row deletes its children, as the Postgres schema does.
    """

    def __init__(
        self,
        cascades: Optional[dict[str, tuple[str, str]]] = None,
    ):
        self._tables: dict[str, list[dict]] = {}
        self._last_id = 0
        self._cascades = cascades if cascades is not None else {
            "clients": ("projects", "client_id"),
        }

    def seed(self, table: str, rows: list[dict]) -> None:
        """Load rows as-is, without assigning ids or timestamps."""
        for row in rows:
            if isinstance(row.get("id"), int):
                self._last_id = max(self._last_id, row["id"])
        self._tables.setdefault(table, []).extend(copy.deepcopy(rows))

    def rows(self, table: str) -> list[dict]:
        return copy.deepcopy(self._tables.get(table, []))

    async def select(
        self,
        table: str,
        filters: Optional[dict[str, Any]] = None,
        order: Optional[Order] = None,
        columns: str = "*",
    ) -> list[dict]:
        rows = [
            row for row in self._tables.get(table, [])
            if all(row.get(k) == v for k, v in (filters or {}).items())
        ]
        if order is not None:
            # Rows without the ordering column sort last, as NULLs do in Postgres.
            present = [r for r in rows if r.get(order.field) is not None]
            missing = [r for r in rows if r.get(order.field) is None]
            present.sort(key=lambda r: r[order.field], reverse=order.descending)
            rows = present + missing

        if columns.strip() != "*":
            wanted = [c.strip() for c in columns.split(",")]
            rows = [{c: row.get(c) for c in wanted} for row in rows]
        return copy.deepcopy(rows)

    async def insert(self, table: str, record: dict) -> dict:
        row = copy.deepcopy(record)
        if row.get("id") is None:
            self._last_id += 1
            row["id"] = self._last_id
        row.setdefault("created_at", datetime.now(timezone.utc).isoformat())
        self._tables.setdefault(table, []).append(row)
        return copy.deepcopy(row)

    async def update(self, table: str, record_id: Any, fields: dict) -> dict:
        for row in self._tables.get(table, []):
            if row.get("id") == record_id:
                row.update(copy.deepcopy(fields))
                return copy.deepcopy(row)
        raise NotFoundError(f"No row in {table} with id {record_id}")

    async def delete(self, table: str, record_id: Any) -> None:
        self._tables[table] = [
            row for row in self._tables.get(table, [])
            if row.get("id") != record_id
        ]
        if table in self._cascades:
            child_table, foreign_key = self._cascades[table]
            self._tables[child_table] = [
                row for row in self._tables.get(child_table, [])
                if row.get(foreign_key) != record_id
            ]
