"""
Failure signals raised by the resilient call layer.

Verification clients catch ``VerificationServiceError`` and turn it into a
MANUAL_REVIEW outcome; nothing past the clients ever sees these.
"""

from ekyc.models.domain.transport_domain import ResponseClass


class VerificationServiceError(Exception):
    """Base exception for verification service call failures."""

    retryable = False

    def __init__(
        self,
        message: str,
        service_name: str,
        status_code: int | None = None,
        attempts: int = 1,
    ):
        super().__init__(message)
        self.service_name = service_name
        self.status_code = status_code
        self.attempts = attempts


class AdmissionDeniedError(VerificationServiceError):
    """Local rate limiter refused the call. Never retried."""

    def __init__(
        self,
        service_name: str,
        limit: int,
        window_seconds: float,
        retry_after: float | None = None,
    ):
        super().__init__(
            f"Rate limit exceeded: {limit} requests per {window_seconds:g} seconds",
            service_name,
            status_code=429,
        )
        self.limit = limit
        self.window_seconds = window_seconds
        self.retry_after = retry_after


class ClientResponseError(VerificationServiceError):
    """Service answered with a 4xx (or other non-retryable) status."""

    def __init__(self, service_name: str, status_code: int | None, body: str | None):
        super().__init__(f"Service returned error: {status_code}", service_name, status_code)
        self.body = body


class RetriesExhaustedError(VerificationServiceError):
    """Every attempt ended in a retryable failure."""

    retryable = True

    def __init__(
        self,
        message: str,
        service_name: str,
        attempts: int,
        last_class: ResponseClass,
        status_code: int | None = None,
        last_error: BaseException | None = None,
    ):
        super().__init__(message, service_name, status_code=status_code, attempts=attempts)
        self.last_class = last_class
        self.last_error = last_error


class TimeoutExhaustedError(RetriesExhaustedError):
    def __init__(self, service_name: str, attempts: int, timeout_seconds: float):
        super().__init__(
            f"Request timed out after {attempts} attempts",
            service_name,
            attempts=attempts,
            last_class=ResponseClass.TIMEOUT,
        )
        self.timeout_seconds = timeout_seconds


class ServerErrorExhaustedError(RetriesExhaustedError):
    def __init__(
        self,
        service_name: str,
        attempts: int,
        last_class: ResponseClass,
        status_code: int | None,
        last_error: BaseException | None = None,
    ):
        super().__init__(
            f"Request failed after {attempts} attempts",
            service_name,
            attempts=attempts,
            last_class=last_class,
            status_code=status_code,
            last_error=last_error,
        )
