"""
HTTP transport for verification services.

Posts the JSON payload with an ``httpx.AsyncClient`` and reports timeouts and
connection errors through ``RawResponse`` instead of raising.
"""

from typing import Any

import httpx

from ekyc.infrastructure.observability.logging import get_logger
from ekyc.models.domain.transport_domain import RawResponse

logger = get_logger(__name__)

DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


class HttpxTransport:
    """JSON-over-HTTP transport backed by a shared async client."""

    def __init__(self, client: httpx.AsyncClient | None = None):
        self._client = client or self._create_client()

    def _create_client(self) -> httpx.AsyncClient:
        limits = httpx.Limits(max_keepalive_connections=20, max_connections=50)
        return httpx.AsyncClient(limits=limits, headers=DEFAULT_HEADERS)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def raw_call(
        self, endpoint: str, payload: dict[str, Any], timeout_seconds: float
    ) -> RawResponse:
        try:
            response = await self._client.post(
                endpoint, json=payload, timeout=httpx.Timeout(timeout_seconds)
            )
        except httpx.TimeoutException:
            logger.debug("Verification service timed out", endpoint=endpoint)
            return RawResponse.timeout()
        except httpx.RequestError as e:
            logger.debug("Verification service request error", endpoint=endpoint, error=str(e))
            return RawResponse.failure(e)

        logger.debug(
            "Verification service response",
            endpoint=endpoint,
            status_code=response.status_code,
            response_size=len(response.text) if response.text else 0,
        )
        return RawResponse(status_code=response.status_code, body=response.text)
