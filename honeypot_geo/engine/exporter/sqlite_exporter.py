"""Append geolocation results to the honeypot SQLite database."""

from __future__ import annotations

import sqlite3

from ...errors import StorageError
from ..records import GeolocationResult
from .base import BaseExporter

COLUMNS = (
    "RemoteIP",
    "Country",
    "CountryCode",
    "Region",
    "RegionName",
    "Zip",
    "ISP",
    "ASN",
    "Mobile",
    "Proxy",
    "Hosting",
)


class SQLiteExporter(BaseExporter):
    """Insert one row per result; duplicate runs produce duplicate rows."""

    name = "sqlite"

    def __init__(self, conn: sqlite3.Connection, table: str = "Geolocation") -> None:
        self.conn = conn
        self.table = table
        placeholders = ",".join("?" for _ in COLUMNS)
        self._statement = f"INSERT INTO {table} ({', '.join(COLUMNS)}) VALUES ({placeholders})"

    def export(self, result: GeolocationResult) -> None:
        row = result.as_row()
        try:
            self.conn.execute(self._statement, tuple(row[column] for column in COLUMNS))
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to store geolocation for {result.query}: {exc}") from exc

    def flush(self) -> None:
        try:
            self.conn.commit()
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to commit geolocation rows: {exc}") from exc

    def close(self) -> None:
        # The connection belongs to SQLiteManager
        self.flush()

    @property
    def location(self) -> str:
        return f"sqlite:{self.table}"


__all__ = ["COLUMNS", "SQLiteExporter"]
