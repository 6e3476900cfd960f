"""
Resilient call layer for verification services.

Wraps an injected transport with admission control, per-attempt timeouts and
bounded exponential backoff. Each attempt is classified into a
``ResponseClass`` and the loop decides what to do from that tag alone:

- SUCCESS: returned immediately
- CLIENT_ERROR (4xx): raised immediately, never retried
- SERVER_ERROR (5xx), TIMEOUT, TRANSPORT_FAILURE: retried with backoff

Timeouts are per attempt, so one logical call can take up to
``timeout * max_attempts`` plus the backoff delays in between; see
``ResilientClient.worst_case_seconds``.
"""

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from ekyc.infrastructure.observability.logging import get_logger
from ekyc.models.domain.transport_domain import RawResponse, ResponseClass
from ekyc.services.errors import (
    AdmissionDeniedError,
    ClientResponseError,
    ServerErrorExhaustedError,
    TimeoutExhaustedError,
)
from ekyc.services.transport.base import Transport
from ekyc.services.transport.rate_limiter import SlidingWindowRateLimiter

logger = get_logger(__name__)

# Request retry defaults
MAX_ATTEMPTS = 3
BACKOFF_SCHEDULE_SECONDS = (1.0, 2.0, 4.0)

# Substrings of endpoint URLs mapped to service names for logs and errors
SERVICE_NAMES = {
    "verify-document": "DocumentVerification",
    "face-match": "BiometricService",
    "verify-address": "AddressVerification",
    "check-sanctions": "SanctionsScreening",
}


def service_name_for(endpoint: str) -> str:
    for fragment, name in SERVICE_NAMES.items():
        if fragment in endpoint:
            return name
    return "UnknownService"


class ResilientClient:
    """
    Retrying front for a verification transport.

    The rate limiter is consulted before every attempt. A denied admission
    fails fast with ``AdmissionDeniedError``: no attempt is made and nothing
    is retried.
    """

    def __init__(
        self,
        transport: Transport,
        rate_limiter: SlidingWindowRateLimiter,
        max_attempts: int = MAX_ATTEMPTS,
        backoff_schedule: Sequence[float] = BACKOFF_SCHEDULE_SECONDS,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if not backoff_schedule:
            raise ValueError("backoff_schedule must contain at least one delay")

        self._transport = transport
        self._rate_limiter = rate_limiter
        self.max_attempts = max_attempts
        self.backoff_schedule = tuple(float(delay) for delay in backoff_schedule)
        self._sleep = sleep

    @property
    def transport(self) -> Transport:
        return self._transport

    def backoff_delay(self, retry_index: int) -> float:
        """Delay before retry ``retry_index`` (0-based); reuses the last entry past the end."""
        if retry_index < len(self.backoff_schedule):
            return self.backoff_schedule[retry_index]
        return self.backoff_schedule[-1]

    def worst_case_seconds(self, timeout_seconds: float) -> float:
        """Upper bound on wall time for one logical call with this timeout."""
        delays = sum(self.backoff_delay(i) for i in range(self.max_attempts - 1))
        return timeout_seconds * self.max_attempts + delays

    async def call(
        self,
        endpoint: str,
        payload: dict[str, Any],
        timeout_seconds: float,
    ) -> RawResponse:
        """
        Execute a service call with admission control, retry and backoff.

        Args:
            endpoint: Service endpoint URL; also the rate limit key
            payload: Request payload, reused unchanged on every attempt
            timeout_seconds: Timeout applied to each attempt

        Returns:
            RawResponse: The first successful (2xx) response

        Raises:
            AdmissionDeniedError: Rate limiter refused an attempt
            ClientResponseError: Non-retryable status (4xx)
            TimeoutExhaustedError: Retries exhausted, last failure a timeout
            ServerErrorExhaustedError: Retries exhausted on 5xx or transport failures
        """
        service_name = service_name_for(endpoint)
        last_response: RawResponse | None = None
        last_status_code: int | None = None
        attempts = 0

        for attempt in range(1, self.max_attempts + 1):
            allowed, info = self._rate_limiter.check_rate_limit(endpoint)
            if not allowed:
                logger.warning(
                    "Call rejected by rate limiter",
                    service=service_name,
                    attempt=attempt,
                    retry_after=info.get("retry_after"),
                )
                raise AdmissionDeniedError(
                    service_name,
                    limit=info["limit"],
                    window_seconds=info["window_seconds"],
                    retry_after=info.get("retry_after"),
                )

            attempts = attempt
            response = await self._attempt(endpoint, payload, timeout_seconds)
            response_class = response.response_class

            if response_class is ResponseClass.SUCCESS:
                if attempt > 1:
                    logger.info(
                        "Request succeeded after retry", service=service_name, attempt=attempt
                    )
                return response

            if not response_class.retryable:
                logger.error(
                    "Non-retryable service error",
                    service=service_name,
                    status_code=response.status_code,
                    attempt=attempt,
                )
                raise ClientResponseError(service_name, response.status_code, response.body)

            last_response = response
            # None after a timeout or transport failure
            last_status_code = response.status_code

            if attempt < self.max_attempts:
                delay = self.backoff_delay(attempt - 1)
                logger.warning(
                    "Retryable service failure",
                    service=service_name,
                    response_class=response_class.value,
                    status_code=response.status_code,
                    error=str(response.transport_error) if response.transport_error else None,
                    attempt=attempt,
                    max_attempts=self.max_attempts,
                    backoff_seconds=delay,
                )
                await self._sleep(delay)

        logger.error(
            "Service call retries exhausted",
            service=service_name,
            attempts=attempts,
            last_class=last_response.response_class.value,
            status_code=last_status_code,
        )
        if last_response.response_class is ResponseClass.TIMEOUT:
            raise TimeoutExhaustedError(service_name, attempts, timeout_seconds)
        raise ServerErrorExhaustedError(
            service_name,
            attempts,
            last_class=last_response.response_class,
            status_code=last_status_code,
            last_error=last_response.transport_error,
        )

    async def _attempt(
        self, endpoint: str, payload: dict[str, Any], timeout_seconds: float
    ) -> RawResponse:
        """Run one transport attempt; never raises except on cancellation."""
        try:
            async with asyncio.timeout(timeout_seconds):
                return await self._transport.raw_call(endpoint, payload, timeout_seconds)
        except TimeoutError:
            return RawResponse.timeout()
        except Exception as e:
            logger.error(
                "Unexpected transport error",
                service=service_name_for(endpoint),
                error=str(e),
                error_type=type(e).__name__,
            )
            return RawResponse.failure(e)
