"""Read login attempts recorded by the honeypot."""

from __future__ import annotations

import sqlite3

import structlog

from ..engine.records import LoginRecord
from ..errors import StorageError


class LoginRecordSource:
    """Expose every row of the login table as :class:`LoginRecord`."""

    def __init__(
        self,
        conn: sqlite3.Connection,
        table: str = "Login",
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.conn = conn
        self.table = table
        self.logger = logger or structlog.get_logger("honeypot_geo.source")

    def fetch_all_login_records(self) -> list[LoginRecord]:
        try:
            rows = self.conn.execute(
                f"SELECT LoginID, Username, Password, RemoteIP, RemoteVersion, Timestamp FROM {self.table}"
            ).fetchall()
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to read {self.table}: {exc}") from exc
        records = [
            LoginRecord(
                remote_ip=row["RemoteIP"] or "",
                login_id=row["LoginID"],
                username=row["Username"] or "",
                password=row["Password"] or "",
                remote_version=row["RemoteVersion"] or "",
                timestamp=str(row["Timestamp"] or ""),
            )
            for row in rows
        ]
        self.logger.info("login_records_loaded", count=len(records), table=self.table)
        return records

    def insert(self, record: LoginRecord) -> None:
        """Append a login attempt; used to seed databases."""

        try:
            self.conn.execute(
                f"INSERT INTO {self.table} (Username, Password, RemoteIP, RemoteVersion, Timestamp) VALUES (?, ?, ?, ?, ?)",
                (
                    record.username,
                    record.password,
                    record.remote_ip,
                    record.remote_version,
                    record.timestamp,
                ),
            )
            self.conn.commit()
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to insert into {self.table}: {exc}") from exc


__all__ = ["LoginRecordSource"]
