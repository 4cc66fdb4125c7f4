from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from honeypot_geo.config import DEFAULT_FIELDS, ApiConfig, GlobalConfig, StorageConfig


def test_api_defaults_match_endpoint_limits() -> None:
    api = ApiConfig()
    assert api.requests_per_minute == 14
    assert api.chunk_size == 100
    assert api.default_backoff == 60
    assert api.fields == DEFAULT_FIELDS
    assert DEFAULT_FIELDS.split(",")[-1] == "query"


def test_api_fields_accept_list_and_require_query() -> None:
    api = ApiConfig(fields=["country", " isp ", "query"])
    assert api.fields == "country,isp,query"
    with pytest.raises(ValidationError):
        ApiConfig(fields="country,isp")


@pytest.mark.parametrize(
    "overrides",
    [
        {"requests_per_minute": 0},
        {"chunk_size": 0},
        {"chunk_size": 101},
        {"timeout": 0},
        {"default_backoff": -1},
        {"pacing_pause": -5},
    ],
)
def test_api_limits_validation(overrides) -> None:
    with pytest.raises(ValueError):
        ApiConfig(**overrides)


def test_storage_table_names_are_checked() -> None:
    assert StorageConfig(login_table="login_attempts").login_table == "login_attempts"
    with pytest.raises(ValidationError):
        StorageConfig(geolocation_table="Geo; DROP TABLE Login")


def test_storage_paths_resolve_against_base(tmp_path: Path) -> None:
    storage = StorageConfig(database_path="data/honeypot.db")
    assert storage.resolved_database_path(tmp_path) == (tmp_path / "data" / "honeypot.db").resolve()
    absolute = tmp_path / "elsewhere.db"
    assert StorageConfig(database_path=absolute).resolved_database_path(Path("/ignored")) == absolute


def test_storage_rejects_zero_connections() -> None:
    with pytest.raises(ValueError):
        StorageConfig(max_open_connections=0)


def test_global_config_nested_from_mapping() -> None:
    config = GlobalConfig.model_validate(
        {"api": {"requests_per_minute": 10}, "storage": {"output_format": "csv"}}
    )
    assert config.api.requests_per_minute == 10
    assert config.storage.output_format == "csv"
    assert config.enable_progress_bar is True
