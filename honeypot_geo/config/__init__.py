"""Configuration package exports."""

from .loader import ConfigLocator, ConfigRepository
from .models import (
    DEFAULT_BATCH_URL,
    DEFAULT_FIELDS,
    ApiConfig,
    GlobalConfig,
    StorageConfig,
)

__all__ = [
    "ApiConfig",
    "ConfigLocator",
    "ConfigRepository",
    "DEFAULT_BATCH_URL",
    "DEFAULT_FIELDS",
    "GlobalConfig",
    "StorageConfig",
]
