from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Any, Callable

from bookingdesk.application.exceptions import RowConflictError, StoreUnavailableError
from bookingdesk.application.ports.table_store import Row, TableStorePort


class JsonTableStore(TableStorePort):
    """One JSON file per table; each file holds a list of string-valued rows.

    The files double as the editable source of truth for the Settings,
    Services and Availability tables on a single host.
    """

    def __init__(self, data_dir: str = "./data/tables") -> None:
        self._data_dir = Path(data_dir)
        self._data_dir.mkdir(parents=True, exist_ok=True)
        self._locks: dict[str, threading.Lock] = {}
        self._lock_lock = threading.Lock()  # Lock for managing locks dict
        self._logger = logging.getLogger(__name__)

    def _get_lock(self, table: str) -> threading.Lock:
        """Get or create a lock for a table."""
        with self._lock_lock:
            if table not in self._locks:
                self._locks[table] = threading.Lock()
            return self._locks[table]

    def _get_file_path(self, table: str) -> Path:
        safe_name = "".join(ch if ch.isalnum() or ch in "-_" else "_" for ch in table)
        return self._data_dir / f"{safe_name}.json"

    def _load_rows(self, table: str) -> list[Row]:
        """Load table rows from JSON file, empty if missing."""
        file_path = self._get_file_path(table)
        if not file_path.exists():
            return []
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            raise StoreUnavailableError(f"Table {table} could not be read: {e}") from e
        if isinstance(data, dict):
            data = data.get("rows", [])
        if not isinstance(data, list):
            raise StoreUnavailableError(f"Table {table} is not a list of rows")
        return [_stringify(row) for row in data if isinstance(row, dict)]

    def _save_rows(self, table: str, rows: list[Row]) -> None:
        """Save table rows to JSON file atomically."""
        file_path = self._get_file_path(table)
        temp_path = file_path.with_suffix(".json.tmp")

        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(rows, f, indent=2, ensure_ascii=False)
            temp_path.replace(file_path)
        except OSError as e:
            if temp_path.exists():
                try:
                    temp_path.unlink()
                except OSError:
                    self._logger.warning("Could not remove temp file", extra={"path": str(temp_path)})
            raise StoreUnavailableError(f"Table {table} could not be written: {e}") from e

    def get_rows(self, table: str) -> list[Row]:
        with self._get_lock(table):
            return self._load_rows(table)

    def append_row(
        self,
        table: str,
        row: Row,
        conflict: Callable[[Row], bool] | None = None,
    ) -> bool:
        with self._get_lock(table):
            rows = self._load_rows(table)
            if conflict is not None and any(conflict(existing) for existing in rows):
                return False
            rows.append(_stringify(row))
            self._save_rows(table, rows)
            return True

    def update_row(
        self,
        table: str,
        key_column: str,
        key: str,
        mutate: Callable[[Row], Row | None],
        conflict: Callable[[Row, Row], bool] | None = None,
    ) -> Row | None:
        with self._get_lock(table):
            rows = self._load_rows(table)
            for existing in rows:
                if (existing.get(key_column) or "").strip() != key.strip():
                    continue
                changes = mutate(dict(existing))
                if changes:
                    updated = {**existing, **_stringify(changes)}
                    if conflict is not None and any(
                        conflict(updated, dict(other)) for other in rows if other is not existing
                    ):
                        raise RowConflictError(f"{table} row {key} conflicts with an existing row")
                    existing.update(updated)
                    self._save_rows(table, rows)
                return dict(existing)
        return None

    def replace_table(self, table: str, rows: list[Row]) -> None:
        with self._get_lock(table):
            self._save_rows(table, [_stringify(row) for row in rows])


def _stringify(row: dict[str, Any]) -> Row:
    return {str(key): "" if value is None else str(value) for key, value in row.items()}
