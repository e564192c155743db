"""HTTP client for the upstream parking availability API."""

from __future__ import annotations

import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from errors import DecodeError, TransportError
from models.schemas import ApiResponse

logger = logging.getLogger(__name__)


class ParkingApiClient:
    """Performs one GET/decode round-trip per call, without retries."""

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.url = url
        self._client = httpx.Client(timeout=timeout, transport=transport)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "ParkingApiClient":
        return self

    def __exit__(self, *_exc_info: object) -> None:
        self.close()

    def fetch(self, url: Optional[str] = None) -> ApiResponse:
        target = url or self.url
        try:
            response = self._client.get(target, headers={"Accept": "application/json"})
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise TransportError(
                f"Upstream responded with status {exc.response.status_code} for {target}"
            ) from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise TransportError(f"Failed to send request to {target}: {exc}") from exc

        try:
            payload = ApiResponse.model_validate_json(response.content)
        except ValidationError as exc:
            raise DecodeError(
                f"Failed to parse API response: {exc.error_count()} schema error(s)"
            ) from exc

        logger.debug(
            "Fetched parking data reported for %s",
            payload.date,
            extra={"url": target, "point_count": len(payload.areas)},
        )
        return payload
