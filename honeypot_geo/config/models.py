"""Pydantic models used across the geolocation pipeline configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_BATCH_URL = "http://ip-api.com/batch"
DEFAULT_FIELDS = "country,countryCode,region,regionName,zip,isp,org,as,mobile,proxy,hosting,query"
MAX_CHUNK_SIZE = 100


class ApiConfig(BaseModel):
    """Remote batch endpoint settings and the request budget."""

    batch_url: str = DEFAULT_BATCH_URL
    fields: str = DEFAULT_FIELDS
    requests_per_minute: int = 14
    chunk_size: int = MAX_CHUNK_SIZE
    timeout: float = 15.0
    default_backoff: int = 60
    pacing_pause: float = 60.0

    @field_validator("fields", mode="before")
    @classmethod
    def _normalise_fields(cls, value: Any) -> str:
        if isinstance(value, (list, tuple)):
            value = ",".join(str(item) for item in value)
        if not isinstance(value, str):
            raise ValueError("fields expects a comma separated string or a list")
        names = [name.strip() for name in value.split(",") if name.strip()]
        if "query" not in names:
            raise ValueError("fields must include 'query' so results can be matched to addresses")
        return ",".join(names)

    @model_validator(mode="after")
    def _validate_limits(self) -> "ApiConfig":
        if self.requests_per_minute < 1:
            raise ValueError("requests_per_minute must be >= 1")
        if not 1 <= self.chunk_size <= MAX_CHUNK_SIZE:
            raise ValueError(f"chunk_size must be between 1 and {MAX_CHUNK_SIZE}")
        if self.timeout <= 0:
            raise ValueError("timeout must be > 0")
        if self.default_backoff < 0:
            raise ValueError("default_backoff must be >= 0")
        if self.pacing_pause < 0:
            raise ValueError("pacing_pause must be >= 0")
        return self


class StorageConfig(BaseModel):
    """Where login records are read from and where results go."""

    database_path: Path = Field(default=Path("data/honeypot.db"))
    login_table: str = "Login"
    geolocation_table: str = "Geolocation"
    max_open_connections: int = 5
    output_format: Literal["sqlite", "json", "csv"] = "sqlite"
    outputs_dir: Path = Field(default=Path("data/outputs"))

    @field_validator("database_path", "outputs_dir", mode="before")
    @classmethod
    def _coerce_path(cls, value: Any) -> Path:
        return Path(value)

    @field_validator("login_table", "geolocation_table")
    @classmethod
    def _validate_table(cls, value: str) -> str:
        # Table names are interpolated into SQL
        if not value or not value.replace("_", "").isalnum():
            raise ValueError(f"Invalid table name: {value!r}")
        return value

    @model_validator(mode="after")
    def _validate_connections(self) -> "StorageConfig":
        if self.max_open_connections < 1:
            raise ValueError("max_open_connections must be >= 1")
        return self

    def resolved_database_path(self, base_dir: Path) -> Path:
        """Return the database path relative to the project root."""

        if not self.database_path.is_absolute():
            return (base_dir / self.database_path).resolve()
        return self.database_path

    def resolved_outputs_dir(self, base_dir: Path) -> Path:
        if not self.outputs_dir.is_absolute():
            return (base_dir / self.outputs_dir).resolve()
        return self.outputs_dir


class GlobalConfig(BaseModel):
    """Top level configuration document."""

    api: ApiConfig = Field(default_factory=ApiConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    enable_progress_bar: bool = True


__all__ = [
    "ApiConfig",
    "DEFAULT_BATCH_URL",
    "DEFAULT_FIELDS",
    "GlobalConfig",
    "MAX_CHUNK_SIZE",
    "StorageConfig",
]
