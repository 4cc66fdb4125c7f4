"""File based exporter supporting JSON Lines and CSV."""

from __future__ import annotations

import csv
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from ...errors import StorageError
from ..records import GeolocationResult
from .base import BaseExporter
from .sqlite_exporter import COLUMNS


class FileExporter(BaseExporter):
    """Write results to a local file, one record per line/row."""

    def __init__(self, output_dir: Path, fmt: str, run_tag: str | None = None) -> None:
        if fmt not in ("json", "csv"):
            raise ValueError(f"Unsupported file format: {fmt}")
        self.output_dir = output_dir
        self.format = fmt
        self.name = fmt
        self.run_tag = run_tag or datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
        self.path = self.output_dir / f"geolocation-{self.run_tag}.{self._extension}"
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            self._file = self.path.open("a", encoding="utf-8", newline="")
        except OSError as exc:
            raise StorageError(f"Cannot open {self.path}: {exc}") from exc
        self._csv_writer: Optional[csv.DictWriter] = None

    @property
    def _extension(self) -> str:
        return "jsonl" if self.format == "json" else "csv"

    def export(self, result: GeolocationResult) -> None:
        row = result.as_row()
        try:
            if self.format == "json":
                json.dump(row, self._file, ensure_ascii=False)
                self._file.write("\n")
            else:
                if not self._csv_writer:
                    self._csv_writer = csv.DictWriter(self._file, fieldnames=list(COLUMNS))
                    self._csv_writer.writeheader()
                self._csv_writer.writerow(row)
        except OSError as exc:
            raise StorageError(f"Failed to write {self.path}: {exc}") from exc

    def flush(self) -> None:
        self._file.flush()

    def close(self) -> None:
        self._file.close()

    @property
    def location(self) -> str:
        return str(self.path)


__all__ = ["FileExporter"]
