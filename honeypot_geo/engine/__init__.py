"""Engine components: dedup → chunk → rate-controlled fetch → export."""

from .batcher import chunk
from .client import BatchClient, Outcome, Success, Throttled, TransportFailure
from .dedup import dedupe, strip_port
from .rate import RateController, RateState
from .records import Address, Chunk, GeolocationResult, LoginRecord

__all__ = [
    "Address",
    "BatchClient",
    "Chunk",
    "GeolocationResult",
    "LoginRecord",
    "Outcome",
    "RateController",
    "RateState",
    "Success",
    "Throttled",
    "TransportFailure",
    "chunk",
    "dedupe",
    "strip_port",
]
