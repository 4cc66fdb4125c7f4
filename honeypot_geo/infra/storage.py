"""SQLite handle management for the honeypot database."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Dict

from ..errors import StorageError

DEFAULT_MAX_OPEN_CONNECTIONS = 5


class SQLiteManager:
    """Hand out one connection per database path, up to a fixed cap.

    Constructed once per pipeline run and passed down to the record source
    and sink; ``close_all`` ends the lifecycle.
    """

    def __init__(
        self,
        max_open_connections: int = DEFAULT_MAX_OPEN_CONNECTIONS,
        login_table: str = "Login",
        geolocation_table: str = "Geolocation",
    ) -> None:
        self.max_open_connections = max_open_connections
        self.login_table = login_table
        self.geolocation_table = geolocation_table
        self._connections: Dict[Path, sqlite3.Connection] = {}

    def connect(self, path: Path) -> sqlite3.Connection:
        if path in self._connections:
            return self._connections[path]
        if len(self._connections) >= self.max_open_connections:
            raise StorageError(
                f"Connection limit reached ({self.max_open_connections}); cannot open {path}"
            )
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(path)
            conn.row_factory = sqlite3.Row
            self._ensure_schema(conn)
        except (sqlite3.Error, OSError) as exc:
            raise StorageError(f"Cannot open database {path}: {exc}") from exc
        self._connections[path] = conn
        return conn

    def _ensure_schema(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {self.login_table} (
                LoginID INTEGER PRIMARY KEY AUTOINCREMENT,
                Username TEXT,
                Password TEXT,
                RemoteIP TEXT,
                RemoteVersion TEXT,
                Timestamp TEXT
            )
            """
        )
        conn.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {self.geolocation_table} (
                RemoteIP TEXT,
                Country TEXT,
                CountryCode TEXT,
                Region TEXT,
                RegionName TEXT,
                Zip TEXT,
                ISP TEXT,
                ASN TEXT,
                Mobile BOOLEAN,
                Proxy BOOLEAN,
                Hosting BOOLEAN
            )
            """
        )
        conn.commit()

    @property
    def open_connections(self) -> int:
        return len(self._connections)

    def close_all(self) -> None:
        for conn in self._connections.values():
            conn.close()
        self._connections.clear()


__all__ = ["DEFAULT_MAX_OPEN_CONNECTIONS", "SQLiteManager"]
