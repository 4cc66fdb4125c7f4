"""Record sink Service Provider Interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable

from ..records import GeolocationResult


class BaseExporter(ABC):
    """Uniform sink contract for persisting geolocation results."""

    name: str = "exporter"

    @abstractmethod
    def export(self, result: GeolocationResult) -> None:
        """Persist a single result."""

    def persist(self, results: Iterable[GeolocationResult]) -> int:
        count = 0
        for result in results:
            self.export(result)
            count += 1
        self.flush()
        return count

    @abstractmethod
    def flush(self) -> None:
        """Flush buffered data to destination."""

    @abstractmethod
    def close(self) -> None:
        """Release underlying resources."""

    @property
    def location(self) -> str:
        return self.name


__all__ = ["BaseExporter"]
