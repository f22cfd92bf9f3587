from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable

Row = dict[str, str]


class TableStorePort(ABC):
    """Row-oriented external store: named tables of string-valued rows."""

    @abstractmethod
    def get_rows(self, table: str) -> list[Row]:
        """Return copies of all rows in ``table``, in insertion order."""
        raise NotImplementedError

    @abstractmethod
    def append_row(
        self,
        table: str,
        row: Row,
        conflict: Callable[[Row], bool] | None = None,
    ) -> bool:
        """Append ``row`` unless an existing row satisfies ``conflict``.

        The conflict scan and the append happen atomically. Returns False
        when a conflicting row was found and nothing was written.
        """
        raise NotImplementedError

    @abstractmethod
    def update_row(
        self,
        table: str,
        key_column: str,
        key: str,
        mutate: Callable[[Row], Row | None],
        conflict: Callable[[Row, Row], bool] | None = None,
    ) -> Row | None:
        """Apply ``mutate`` to the first row whose ``key_column`` equals ``key``.

        ``mutate`` receives a copy of the current row and returns the columns
        to overwrite, or None to leave the row unchanged. Returns the row as
        stored after the call, or None if no row matched.

        ``conflict`` is called with the updated row and every other row in the
        table; if it matches any of them nothing is written and
        ``RowConflictError`` is raised. Scan and write happen atomically.
        """
        raise NotImplementedError

    @abstractmethod
    def replace_table(self, table: str, rows: list[Row]) -> None:
        """Overwrite every row in ``table``. Used for seeding and tests."""
        raise NotImplementedError


BOOKINGS_TABLE = "Bookings"
SERVICES_TABLE = "Services"
AVAILABILITY_TABLE = "Availability"
SETTINGS_TABLE = "Settings"
CONSULTATIONS_TABLE = "Consultations"
