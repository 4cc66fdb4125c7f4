"""Pipeline driver wiring record source → dedup → chunks → rate control → sink."""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

import httpx
from structlog.contextvars import bound_contextvars

from .config import ApiConfig, GlobalConfig
from .engine import BatchClient, RateController, chunk, dedupe
from .engine.exporter import BaseExporter, FileExporter, SQLiteExporter
from .infra import LoginRecordSource, SQLiteManager
from .logging_conf import configure_logging
from .ui import ProgressReporter


@dataclass(slots=True)
class RunSummary:
    """Counters describing one completed pipeline run."""

    records: int = 0
    addresses: int = 0
    chunks: int = 0
    results: int = 0
    throttled: int = 0
    unfetched: int = 0
    paced: int = 0
    output: str = ""


class Pipeline:
    """Run one enrichment pass over the honeypot database."""

    def __init__(
        self,
        config: GlobalConfig,
        storage: SQLiteManager,
        base_dir: Path,
        client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
        run_tag: str | None = None,
    ) -> None:
        self.config = config
        self.storage = storage
        self.base_dir = base_dir
        self._http_client = client
        self.sleep = sleep
        self.run_tag = run_tag or datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
        self.logger = configure_logging().bind(component="pipeline")

    @property
    def database_path(self) -> Path:
        return self.config.storage.resolved_database_path(self.base_dir)

    def _source(self) -> LoginRecordSource:
        conn = self.storage.connect(self.database_path)
        return LoginRecordSource(conn, table=self.config.storage.login_table)

    def preview(self) -> list[str]:
        """Return the sorted deduplicated addresses without touching the network."""

        records = self._source().fetch_all_login_records()
        return sorted(dedupe(records))

    def _create_exporter(self) -> BaseExporter:
        storage_cfg = self.config.storage
        if storage_cfg.output_format == "sqlite":
            conn = self.storage.connect(self.database_path)
            return SQLiteExporter(conn, table=storage_cfg.geolocation_table)
        return FileExporter(
            storage_cfg.resolved_outputs_dir(self.base_dir),
            storage_cfg.output_format,
            run_tag=self.run_tag,
        )

    def run(self, progress_enabled: bool | None = None) -> RunSummary:
        api = self.config.api
        with bound_contextvars(
            run_tag=self.run_tag,
            batch_url=api.batch_url,
            requests_per_minute=api.requests_per_minute,
        ):
            return self._run(api, progress_enabled)

    def _run(self, api: ApiConfig, progress_enabled: bool | None) -> RunSummary:
        summary = RunSummary()

        records = self._source().fetch_all_login_records()
        summary.records = len(records)
        addresses = sorted(dedupe(records))
        summary.addresses = len(addresses)
        self.logger.info("addresses_deduplicated", count=summary.addresses, records=summary.records)

        chunks = chunk(addresses, api.chunk_size)
        summary.chunks = len(chunks)

        progress_flag = self.config.enable_progress_bar if progress_enabled is None else progress_enabled
        progress = ProgressReporter(enabled=progress_flag)
        client = BatchClient(api, client=self._http_client)
        controller = RateController(
            client,
            requests_per_minute=api.requests_per_minute,
            default_backoff=api.default_backoff,
            pacing_pause=api.pacing_pause,
            sleep=self.sleep,
            progress=progress,
        )
        progress.start(total=len(chunks))
        try:
            results = controller.run(chunks)
        finally:
            progress.close()
            client.close()
        summary.throttled = controller.stats.throttled
        summary.unfetched = controller.stats.unfetched
        summary.paced = controller.stats.paced

        exporter = self._create_exporter()
        try:
            summary.results = exporter.persist(results)
        finally:
            exporter.close()
        summary.output = exporter.location
        self.logger.info("results_persisted", count=summary.results, sink=summary.output)
        return summary


__all__ = ["Pipeline", "RunSummary"]
