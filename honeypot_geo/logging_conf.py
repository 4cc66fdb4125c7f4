"""Logging setup: structlog events rendered as JSON lines by stdlib handlers.

Every event lands in ``geolocate.log``; errors are copied to ``error.log``
and the rate controller's throttle and pacing events to ``rate.log``, so a
long paced run can be followed with ``honeypot-geo log show --rate``.
Context bound with :func:`structlog.contextvars.bound_contextvars` (the
pipeline binds run tag, batch URL and budget) is attached to each line.
"""

from __future__ import annotations

import logging.config
import os
from pathlib import Path

import structlog

from .config.loader import HOME_ENV_VAR

LOG_FILES = {
    "run": "geolocate.log",
    "error": "error.log",
    "rate": "rate.log",
}
RATE_LOGGER = "honeypot_geo.rate"

_LOGGING_INITIALISED = False


def default_log_dir() -> Path:
    env_root = os.environ.get(HOME_ENV_VAR)
    if env_root:
        return Path(env_root).expanduser().resolve() / "logs"
    return Path(__file__).resolve().parents[1] / "logs"


def log_path(kind: str = "run") -> Path:
    return default_log_dir() / LOG_FILES[kind]


def _file_handler(path: Path, level: str) -> dict:
    return {
        "class": "logging.FileHandler",
        "level": level,
        "filename": str(path),
        "encoding": "utf-8",
        "formatter": "json",
    }


def _dict_config(log_dir: Path, level: str) -> dict:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": "pythonjsonlogger.json.JsonFormatter",
                "fmt": "%(asctime)s %(levelname)s %(name)s %(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "json",
            },
            "run_file": _file_handler(log_dir / LOG_FILES["run"], "INFO"),
            "error_file": _file_handler(log_dir / LOG_FILES["error"], "ERROR"),
            "rate_file": _file_handler(log_dir / LOG_FILES["rate"], "INFO"),
        },
        "loggers": {
            "honeypot_geo": {
                "handlers": ["console", "run_file", "error_file"],
                "level": level,
                "propagate": False,
            },
            RATE_LOGGER: {
                "handlers": ["rate_file"],
                "level": level,
                "propagate": True,
            },
        },
    }


def configure_logging(verbose: bool = False) -> structlog.BoundLogger:
    """Install handlers once per process and return the application logger."""

    global _LOGGING_INITIALISED
    log_dir = default_log_dir()
    log_dir.mkdir(parents=True, exist_ok=True)
    for name in LOG_FILES.values():
        (log_dir / name).touch(exist_ok=True)

    if not _LOGGING_INITIALISED:
        logging.config.dictConfig(_dict_config(log_dir, "DEBUG" if verbose else "INFO"))
        # Event name becomes the record message, remaining keys become JSON fields
        structlog.configure(
            processors=[
                structlog.stdlib.filter_by_level,
                structlog.contextvars.merge_contextvars,
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.stdlib.render_to_log_kwargs,
            ],
            wrapper_class=structlog.stdlib.BoundLogger,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )
        _LOGGING_INITIALISED = True
    return structlog.get_logger("honeypot_geo")


def tail_log(path: Path, line_count: int = 100) -> list[str]:
    if not path.exists():
        return []
    with path.open("r", encoding="utf-8", errors="ignore") as stream:
        lines = stream.readlines()
    return lines[-line_count:]


__all__ = [
    "LOG_FILES",
    "RATE_LOGGER",
    "configure_logging",
    "default_log_dir",
    "log_path",
    "tail_log",
]
