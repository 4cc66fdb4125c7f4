"""Single round-trip submission of address chunks to the batch endpoint."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence, Union

import httpx
import structlog
from pydantic import ValidationError

from ..config import ApiConfig
from .records import Address, GeolocationResult

_BODY_EXCERPT = 200


@dataclass(slots=True)
class Success:
    """Endpoint answered 200 with one result per recognised address."""

    results: list[GeolocationResult]
    remaining: int | None = None
    reset_in: int | None = None


@dataclass(slots=True)
class Throttled:
    """Endpoint refused the chunk with a non-200 status.

    429 is the usual rate-limit answer; other statuses (a 503 during
    maintenance, say) get the same backoff and single retry.
    """

    retry_after: int | None = None
    status_code: int = httpx.codes.TOO_MANY_REQUESTS


@dataclass(slots=True)
class TransportFailure:
    """Network or decoding failure; fatal to the run."""

    cause: Exception
    status_code: int | None = None
    detail: str = field(default="")

    def describe(self) -> str:
        parts = [f"{type(self.cause).__name__}: {self.cause}"]
        if self.status_code is not None:
            parts.append(f"status={self.status_code}")
        if self.detail:
            parts.append(f"body={self.detail!r}")
        return ", ".join(parts)


Outcome = Union[Success, Throttled, TransportFailure]


def parse_int_header(value: str | None) -> int | None:
    """Parse a non-negative integer header value, ``None`` when unusable."""

    if value is None:
        return None
    text = value.strip()
    if not (text.isascii() and text.isdigit()):
        return None
    return int(text)


class BatchClient:
    """Submit one chunk per call and classify the endpoint's answer."""

    def __init__(
        self,
        api_config: ApiConfig,
        client: httpx.Client | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.api_config = api_config
        self.logger = logger or structlog.get_logger("honeypot_geo.client")
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=api_config.timeout)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def build_payload(self, addresses: Sequence[Address]) -> list[dict[str, str]]:
        fields = self.api_config.fields
        return [{"query": address, "fields": fields} for address in addresses if address]

    def submit(self, addresses: Sequence[Address]) -> Outcome:
        payload = self.build_payload(addresses)
        try:
            response = self._client.post(
                self.api_config.batch_url,
                json=payload,
                headers={"Accept": "application/json"},
            )
        except httpx.HTTPError as exc:
            self.logger.warning("batch_request_error", size=len(payload), error=str(exc))
            return TransportFailure(cause=exc)

        if response.status_code != httpx.codes.OK:
            if response.status_code != httpx.codes.TOO_MANY_REQUESTS:
                self.logger.warning(
                    "batch_unexpected_status",
                    status_code=response.status_code,
                    body=response.text[:_BODY_EXCERPT],
                )
            return Throttled(
                retry_after=parse_int_header(response.headers.get("Retry-After")),
                status_code=response.status_code,
            )

        try:
            results = self._decode(response.json())
        except (ValueError, ValidationError) as exc:
            return TransportFailure(
                cause=exc,
                status_code=response.status_code,
                detail=response.text[:_BODY_EXCERPT],
            )
        return Success(
            results=results,
            remaining=parse_int_header(response.headers.get("X-Rl")),
            reset_in=parse_int_header(response.headers.get("X-Ttl")),
        )

    @staticmethod
    def _decode(body: Any) -> list[GeolocationResult]:
        if not isinstance(body, list):
            raise ValueError(f"Expected a JSON array, got {type(body).__name__}")
        return [GeolocationResult.model_validate(item) for item in body]


__all__ = [
    "BatchClient",
    "Outcome",
    "Success",
    "Throttled",
    "TransportFailure",
    "parse_int_header",
]
