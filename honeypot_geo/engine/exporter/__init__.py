"""Record sink SPI and implementations."""

from .base import BaseExporter
from .file_exporter import FileExporter
from .sqlite_exporter import SQLiteExporter

__all__ = ["BaseExporter", "FileExporter", "SQLiteExporter"]
