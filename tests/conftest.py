"""Pytest configuration providing shared fixtures."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Iterable

import httpx
import pytest

from honeypot_geo.config import ApiConfig, ConfigLocator, ConfigRepository, GlobalConfig, StorageConfig
from honeypot_geo.config.loader import HOME_ENV_VAR
from honeypot_geo.engine.records import LoginRecord
from honeypot_geo.infra import LoginRecordSource, SQLiteManager
from honeypot_geo.logging_conf import configure_logging


class SleepRecorder:
    """Stand-in for ``time.sleep`` that remembers every requested delay."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture(scope="session", autouse=True)
def session_logging(tmp_path_factory: pytest.TempPathFactory) -> None:
    # Handlers bind their stream once; do it before any CliRunner swaps stdio
    with pytest.MonkeyPatch.context() as patcher:
        patcher.setenv(HOME_ENV_VAR, str(tmp_path_factory.mktemp("logging-home")))
        configure_logging()


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv(HOME_ENV_VAR, str(tmp_path))
    return tmp_path


@pytest.fixture
def sleeper() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def sample_global_config(tmp_path: Path) -> GlobalConfig:
    return GlobalConfig(
        api=ApiConfig(),
        storage=StorageConfig(
            database_path=tmp_path / "honeypot.db",
            outputs_dir=tmp_path / "outputs",
        ),
        enable_progress_bar=False,
    )


@pytest.fixture
def temp_config_repository(tmp_path: Path) -> Iterable[ConfigRepository]:
    locator = ConfigLocator(project_root=tmp_path)
    yield ConfigRepository(locator)


@pytest.fixture
def geo_payload() -> Callable[..., dict[str, Any]]:
    def _builder(query: str, **overrides: Any) -> dict[str, Any]:
        base: dict[str, Any] = {
            "country": "Netherlands",
            "countryCode": "NL",
            "region": "NH",
            "regionName": "North Holland",
            "zip": "1012",
            "isp": "Example Hosting B.V.",
            "org": "Example Org",
            "as": "AS64496 Example Hosting B.V.",
            "mobile": False,
            "proxy": False,
            "hosting": True,
            "query": query,
        }
        base.update(overrides)
        return base

    return _builder


@pytest.fixture
def echo_batch_handler(geo_payload) -> Callable[[httpx.Request], httpx.Response]:
    """Answer every batch request with one result per queried address."""

    def _handler(request: httpx.Request) -> httpx.Response:
        queries = json.loads(request.content)
        return httpx.Response(200, json=[geo_payload(item["query"]) for item in queries])

    return _handler


@pytest.fixture
def mock_http_client() -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.Client]:
    def _factory(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(handler))

    return _factory


@pytest.fixture
def seed_logins(sample_global_config: GlobalConfig) -> Callable[[Iterable[str]], Path]:
    """Write login rows with the given remote addresses into the sample database."""

    def _seed(remote_ips: Iterable[str]) -> Path:
        path = sample_global_config.storage.database_path
        manager = SQLiteManager()
        source = LoginRecordSource(manager.connect(path))
        for index, remote in enumerate(remote_ips):
            source.insert(
                LoginRecord(
                    remote_ip=remote,
                    username=f"user{index}",
                    password="hunter2",
                    remote_version="SSH-2.0-Go",
                    timestamp="2024-05-01T12:00:00Z",
                )
            )
        manager.close_all()
        return path

    return _seed
