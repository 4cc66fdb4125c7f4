"""Rate-controlled iteration of chunks through the batch client."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Iterable, Protocol, Sequence

import structlog

from ..errors import TransportError
from ..logging_conf import RATE_LOGGER
from .client import Outcome, Success, Throttled, TransportFailure
from .records import Address, Chunk, GeolocationResult

DEFAULT_REQUESTS_PER_MINUTE = 14
DEFAULT_BACKOFF_SECONDS = 60
PACING_PAUSE_SECONDS = 60.0


class Submitter(Protocol):
    def submit(self, addresses: Sequence[Address]) -> Outcome: ...


class ChunkProgress(Protocol):
    def advance(self, *, fetched: int, throttled: bool = False) -> None: ...


@dataclass
class RateState:
    """Chunks sent since the current pacing window began."""

    window_size: int
    sent: int = 0

    def record_chunk(self) -> bool:
        """Count one chunk; return True (and reset) when the window is full."""

        self.sent += 1
        if self.sent >= self.window_size:
            self.sent = 0
            return True
        return False


@dataclass
class RateStats:
    chunks: int = 0
    throttled: int = 0
    unfetched: int = 0
    paced: int = 0


class RateController:
    """Feed chunks through the client while staying inside the request budget.

    Each chunk is submitted once. A throttle signal (any non-200 answer)
    triggers a blocking backoff (the endpoint's ``Retry-After`` hint, else
    ``default_backoff``) followed by exactly one retry; a second throttle
    leaves that chunk unfetched. After every ``requests_per_minute``-th
    chunk the controller sleeps ``pacing_pause`` seconds regardless of what
    the endpoint said. A transport failure aborts the whole run with
    :class:`TransportError`.
    """

    def __init__(
        self,
        client: Submitter,
        requests_per_minute: int = DEFAULT_REQUESTS_PER_MINUTE,
        default_backoff: int = DEFAULT_BACKOFF_SECONDS,
        pacing_pause: float = PACING_PAUSE_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
        progress: ChunkProgress | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        if requests_per_minute < 1:
            raise ValueError("requests_per_minute must be >= 1")
        self.client = client
        self.requests_per_minute = requests_per_minute
        self.default_backoff = default_backoff
        self.pacing_pause = pacing_pause
        self.sleep = sleep
        self.progress = progress
        self.logger = logger or structlog.get_logger(RATE_LOGGER)
        self.stats = RateStats()

    def backoff_for(self, signal: Throttled) -> int:
        if signal.retry_after is not None and signal.retry_after >= 0:
            return signal.retry_after
        return self.default_backoff

    def run(self, chunks: Iterable[Chunk]) -> list[GeolocationResult]:
        state = RateState(window_size=self.requests_per_minute)
        self.stats = RateStats()
        results: list[GeolocationResult] = []
        for index, addresses in enumerate(chunks):
            self.stats.chunks += 1
            outcome = self._submit(index, addresses)
            throttled = isinstance(outcome, Throttled)
            if throttled:
                self.stats.throttled += 1
                backoff = self.backoff_for(outcome)
                self.logger.warning(
                    "chunk_throttled",
                    index=index,
                    status_code=outcome.status_code,
                    retry_after=outcome.retry_after,
                    backoff=backoff,
                )
                self.sleep(backoff)
                outcome = self._submit(index, addresses)

            fetched = 0
            if isinstance(outcome, Success):
                results.extend(outcome.results)
                fetched = len(outcome.results)
                if outcome.remaining is not None or outcome.reset_in is not None:
                    self.logger.debug(
                        "rate_window_status",
                        index=index,
                        remaining=outcome.remaining,
                        reset_in=outcome.reset_in,
                    )
            else:
                self.stats.unfetched += 1
                self.logger.warning("chunk_retry_throttled", index=index, size=len(addresses))
            if self.progress is not None:
                self.progress.advance(fetched=fetched, throttled=throttled)

            if state.record_chunk():
                self.stats.paced += 1
                self.logger.info("pacing_pause", index=index, seconds=self.pacing_pause)
                self.sleep(self.pacing_pause)
        return results

    def _submit(self, index: int, addresses: Sequence[Address]) -> Success | Throttled:
        self.logger.info("chunk_submitting", index=index, size=len(addresses))
        outcome = self.client.submit(addresses)
        if isinstance(outcome, TransportFailure):
            raise TransportError(
                f"Chunk {index} failed: {outcome.describe()}",
                chunk_index=index,
                status_code=outcome.status_code,
            ) from outcome.cause
        return outcome


__all__ = [
    "DEFAULT_BACKOFF_SECONDS",
    "DEFAULT_REQUESTS_PER_MINUTE",
    "PACING_PAUSE_SECONDS",
    "RateController",
    "RateState",
    "RateStats",
]
