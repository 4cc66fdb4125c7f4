"""Configuration loading helpers for the geolocation pipeline."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .models import GlobalConfig

GLOBAL_CONFIG_FILENAME = "global_config.yaml"
HOME_ENV_VAR = "HONEYPOT_GEO_HOME"


def _read_file(path: Path) -> dict:
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file must contain a mapping: {path}")
    return data


def _write_file(path: Path, payload: dict) -> None:
    with path.open("w", encoding="utf-8") as stream:
        yaml.safe_dump(payload, stream, allow_unicode=True, sort_keys=False)


def _assign_dotted(payload: dict, key: str, value: Any) -> None:
    parts = key.split(".")
    node = payload
    for part in parts[:-1]:
        child = node.get(part)
        if not isinstance(child, dict):
            raise KeyError(f"Unknown configuration section: {part}")
        node = child
    if parts[-1] not in node:
        raise KeyError(f"Unknown configuration key: {key}")
    node[parts[-1]] = value


@dataclass(slots=True)
class ConfigLocator:
    """Resolve important paths from project root."""

    project_root: Path | None = None
    data_dir: Path | None = None
    outputs_dir: Path | None = None
    logs_dir: Path | None = None

    def __post_init__(self) -> None:
        env_root = os.environ.get(HOME_ENV_VAR)
        if self.project_root is not None:
            root = Path(self.project_root).resolve()
        elif env_root:
            root = Path(env_root).expanduser().resolve()
        else:
            root = Path(__file__).resolve().parents[2]
        self.project_root = root
        self.data_dir = (root / "data").resolve()
        self.outputs_dir = (self.data_dir / "outputs").resolve()
        self.logs_dir = (root / "logs").resolve()
        self.ensure_directories()

    def ensure_directories(self) -> None:
        for directory in (self.data_dir, self.outputs_dir, self.logs_dir):
            directory.mkdir(parents=True, exist_ok=True)

    def global_config_path(self) -> Path:
        return self.data_dir / GLOBAL_CONFIG_FILENAME


class ConfigRepository:
    """Repository encapsulating config IO and schema validation."""

    def __init__(self, locator: ConfigLocator | None = None) -> None:
        self.locator = locator or ConfigLocator()
        self._global_cache: GlobalConfig | None = None

    def load_global_config(self) -> GlobalConfig:
        if self._global_cache is not None:
            return self._global_cache
        path = self.locator.global_config_path()
        if path.exists():
            payload = _read_file(path)
            global_cfg = GlobalConfig.model_validate(payload)
        else:
            global_cfg = GlobalConfig()
            self.save_global_config(global_cfg)
        self._global_cache = global_cfg
        return global_cfg

    def save_global_config(self, config: GlobalConfig) -> None:
        path = self.locator.global_config_path()
        payload = config.model_dump(mode="json")
        _write_file(path, payload)
        self._global_cache = config

    def update_value(self, key: str, value: Any) -> GlobalConfig:
        """Set a dotted key (``api.requests_per_minute``) and persist the result.

        The updated document is validated before it is written, so an invalid
        value leaves the stored configuration untouched.
        """

        payload = self.load_global_config().model_dump(mode="json")
        _assign_dotted(payload, key, value)
        updated = GlobalConfig.model_validate(payload)
        self.save_global_config(updated)
        return updated


__all__ = ["ConfigLocator", "ConfigRepository", "HOME_ENV_VAR"]
