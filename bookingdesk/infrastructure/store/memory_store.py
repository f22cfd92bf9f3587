from __future__ import annotations

import threading
from typing import Callable

from bookingdesk.application.exceptions import RowConflictError
from bookingdesk.application.ports.table_store import Row, TableStorePort


class MemoryTableStore(TableStorePort):
    def __init__(self, tables: dict[str, list[Row]] | None = None) -> None:
        self._tables: dict[str, list[Row]] = {
            name: [dict(row) for row in rows] for name, rows in (tables or {}).items()
        }
        self._lock = threading.Lock()

    def get_rows(self, table: str) -> list[Row]:
        with self._lock:
            return [dict(row) for row in self._tables.get(table, [])]

    def append_row(
        self,
        table: str,
        row: Row,
        conflict: Callable[[Row], bool] | None = None,
    ) -> bool:
        with self._lock:
            rows = self._tables.setdefault(table, [])
            if conflict is not None and any(conflict(dict(existing)) for existing in rows):
                return False
            rows.append({key: str(value) for key, value in row.items()})
            return True

    def update_row(
        self,
        table: str,
        key_column: str,
        key: str,
        mutate: Callable[[Row], Row | None],
        conflict: Callable[[Row, Row], bool] | None = None,
    ) -> Row | None:
        with self._lock:
            rows = self._tables.get(table, [])
            for existing in rows:
                if (existing.get(key_column) or "").strip() != key.strip():
                    continue
                changes = mutate(dict(existing))
                if changes:
                    updated = {**existing, **{column: str(value) for column, value in changes.items()}}
                    if conflict is not None and any(
                        conflict(updated, dict(other)) for other in rows if other is not existing
                    ):
                        raise RowConflictError(f"{table} row {key} conflicts with an existing row")
                    existing.update(updated)
                return dict(existing)
        return None

    def replace_table(self, table: str, rows: list[Row]) -> None:
        with self._lock:
            self._tables[table] = [dict(row) for row in rows]
