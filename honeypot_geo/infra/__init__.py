"""Infra layer utilities (SQLite handles, login record source)."""

from .login_source import LoginRecordSource
from .storage import SQLiteManager

__all__ = ["LoginRecordSource", "SQLiteManager"]
