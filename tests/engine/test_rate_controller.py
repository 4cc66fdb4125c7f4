from __future__ import annotations

from typing import Sequence

import httpx
import pytest

from honeypot_geo.engine.client import Outcome, Success, Throttled, TransportFailure
from honeypot_geo.engine.rate import RateController, RateState
from honeypot_geo.engine.records import GeolocationResult
from honeypot_geo.errors import TransportError


def _success(addresses: Sequence[str]) -> Success:
    return Success(results=[GeolocationResult(query=address) for address in addresses])


class ScriptedClient:
    """Return queued outcomes in order, falling back to success for every address."""

    def __init__(self, script: list[Outcome] | None = None) -> None:
        self.script = list(script or [])
        self.calls: list[list[str]] = []

    def submit(self, addresses: Sequence[str]) -> Outcome:
        self.calls.append(list(addresses))
        if self.script:
            return self.script.pop(0)
        return _success(addresses)


def _chunks(count: int, size: int = 2) -> list[list[str]]:
    return [[f"10.{n}.0.{i}" for i in range(size)] for n in range(count)]


def test_rate_state_signals_every_full_window() -> None:
    state = RateState(window_size=3)
    assert [state.record_chunk() for _ in range(7)] == [False, False, True, False, False, True, False]
    assert state.sent == 1


def test_pacing_pause_after_every_fourteenth_chunk() -> None:
    client = ScriptedClient()
    paused_at: list[tuple[int, float]] = []
    controller = RateController(
        client,
        requests_per_minute=14,
        sleep=lambda seconds: paused_at.append((len(client.calls) - 1, seconds)),
    )

    results = controller.run(_chunks(43, size=1))

    assert paused_at == [(13, 60.0), (27, 60.0), (41, 60.0)]
    assert controller.stats.paced == 3
    assert len(results) == 43


def test_no_pacing_below_budget(sleeper) -> None:
    controller = RateController(ScriptedClient(), requests_per_minute=14, sleep=sleeper)
    controller.run(_chunks(13))
    assert sleeper.calls == []


def test_throttle_uses_retry_after_then_retries_once(sleeper) -> None:
    chunks = _chunks(2)
    client = ScriptedClient([Throttled(retry_after=5), _success(chunks[0])])
    controller = RateController(client, sleep=sleeper)

    results = controller.run(chunks)

    assert sleeper.calls == [5]
    assert client.calls == [chunks[0], chunks[0], chunks[1]]
    assert [r.query for r in results] == chunks[0] + chunks[1]
    assert controller.stats.throttled == 1


def test_throttle_without_hint_waits_default(sleeper) -> None:
    chunks = _chunks(1)
    client = ScriptedClient([Throttled(retry_after=None), _success(chunks[0])])
    RateController(client, sleep=sleeper).run(chunks)
    assert sleeper.calls == [60]


def test_second_throttle_moves_on_without_results(sleeper) -> None:
    chunks = _chunks(2)
    client = ScriptedClient([Throttled(retry_after=1), Throttled(retry_after=1)])
    controller = RateController(client, sleep=sleeper)

    results = controller.run(chunks)

    # one retry only, then the next chunk
    assert client.calls == [chunks[0], chunks[0], chunks[1]]
    assert sleeper.calls == [1]
    assert [r.query for r in results] == chunks[1]
    assert controller.stats.unfetched == 1


def test_retry_results_appear_exactly_once(sleeper) -> None:
    chunks = _chunks(3, size=4)
    retry_results = _success(chunks[1])
    client = ScriptedClient(
        [_success(chunks[0]), Throttled(retry_after=10), retry_results]
    )
    results = RateController(client, sleep=sleeper).run(chunks)

    assert sleeper.calls == [10]
    queries = [r.query for r in results]
    for address in chunks[1]:
        assert queries.count(address) == 1
    assert len(results) == 12


def test_transport_failure_aborts_run(sleeper) -> None:
    chunks = _chunks(3)
    failure = TransportFailure(cause=httpx.ConnectError("down"))
    client = ScriptedClient([_success(chunks[0]), failure])
    controller = RateController(client, sleep=sleeper)

    with pytest.raises(TransportError) as excinfo:
        controller.run(chunks)

    assert excinfo.value.chunk_index == 1
    assert isinstance(excinfo.value.__cause__, httpx.ConnectError)
    assert client.calls == [chunks[0], chunks[1]]


def test_transport_failure_on_retry_is_fatal(sleeper) -> None:
    chunks = _chunks(2)
    failure = TransportFailure(cause=ValueError("Expected a JSON array, got dict"), status_code=200)
    client = ScriptedClient([Throttled(retry_after=2), failure])

    with pytest.raises(TransportError) as excinfo:
        RateController(client, sleep=sleeper).run(chunks)

    assert excinfo.value.status_code == 200
    assert sleeper.calls == [2]
    assert len(client.calls) == 2


def test_progress_receives_every_chunk(sleeper) -> None:
    class Recorder:
        def __init__(self) -> None:
            self.events: list[tuple[int, bool]] = []

        def advance(self, *, fetched: int, throttled: bool = False) -> None:
            self.events.append((fetched, throttled))

    chunks = _chunks(2, size=3)
    progress = Recorder()
    client = ScriptedClient([Throttled(retry_after=0), _success(chunks[0])])
    RateController(client, sleep=sleeper, progress=progress).run(chunks)
    assert progress.events == [(3, True), (3, False)]


def test_backoff_for_prefers_hint() -> None:
    controller = RateController(ScriptedClient(), default_backoff=42)
    assert controller.backoff_for(Throttled(retry_after=7)) == 7
    assert controller.backoff_for(Throttled(retry_after=0)) == 0
    assert controller.backoff_for(Throttled(retry_after=None)) == 42


def test_rejects_zero_budget() -> None:
    with pytest.raises(ValueError):
        RateController(ScriptedClient(), requests_per_minute=0)
