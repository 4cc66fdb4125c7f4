"""Error taxonomy shared across the pipeline."""

from __future__ import annotations


class GeolocateError(RuntimeError):
    """Base class for conditions that abort a pipeline run."""


class StorageError(GeolocateError):
    """Record source or sink failed to read or write."""


class TransportError(GeolocateError):
    """A batch submission failed at the network or decoding level."""

    def __init__(
        self,
        message: str,
        *,
        chunk_index: int | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.chunk_index = chunk_index
        self.status_code = status_code


__all__ = ["GeolocateError", "StorageError", "TransportError"]
