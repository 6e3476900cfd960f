"""
Shared two-phase policy for verification clients.

1. Local precheck: business rules checked before any remote call
   (never retried, never rate limited)
2. Remote evaluation through the resilient call layer, then thresholding
   of the parsed reply

Every failure raised by the call layer is contained here and turned into a
MANUAL_REVIEW outcome, so callers only ever receive a VerificationOutcome.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import UTC, date, datetime
from typing import Any, ClassVar

from ekyc.config import ServiceEndpoint, Settings
from ekyc.infrastructure.observability.logging import get_logger
from ekyc.models.domain.verification_domain import (
    CheckKind,
    CustomerProfile,
    VerificationOutcome,
)
from ekyc.services.errors import VerificationServiceError
from ekyc.services.transport.resilient_client import ResilientClient
from ekyc.services.verification.replies import ServiceReply, ServiceStatus, parse_reply

logger = get_logger(__name__)


def utc_today() -> date:
    return datetime.now(UTC).date()


def parse_iso_date(value: str | None) -> date | None:
    """Parse ``YYYY-MM-DD``; None for missing or malformed values."""
    if not value:
        return None
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        return None


class VerificationClient(ABC):
    """Base class for the document, biometric, address and sanctions clients."""

    check_kind: ClassVar[CheckKind]
    label: ClassVar[str]

    def __init__(
        self,
        resilient_client: ResilientClient,
        settings: Settings,
        today: Callable[[], date] = utc_today,
    ):
        self._caller = resilient_client
        self._settings = settings
        self._today = today
        self.endpoint: ServiceEndpoint = settings.endpoint_for(self.check_kind)

    async def evaluate(self, customer: CustomerProfile) -> VerificationOutcome:
        """
        Run this check for one customer.

        Args:
            customer: Subject data for the onboarding event

        Returns:
            VerificationOutcome: Always a well-formed outcome; service failures
            degrade to MANUAL_REVIEW
        """
        logger.info(f"Starting {self.label} verification", customer_id=customer.customer_id)

        try:
            outcome = self.precheck(customer)
            if outcome is not None:
                logger.warning(
                    f"{self.label.capitalize()} precheck failed",
                    customer_id=customer.customer_id,
                    reasons=list(outcome.reasons),
                )
                return outcome

            payload = self.build_payload(customer)
            response = await self._caller.call(
                self.endpoint.url, payload, self.endpoint.timeout_seconds
            )

            try:
                reply = parse_reply(response.body)
            except ValueError as e:
                logger.error(
                    f"Invalid {self.label} service response",
                    customer_id=customer.customer_id,
                    error=str(e),
                )
                return VerificationOutcome.manual_review(
                    self.check_kind, reasons=[f"Invalid response from {self.label} service"]
                )

            outcome = self.interpret(reply)

        except VerificationServiceError as e:
            return self.on_service_failure(customer, e)
        except Exception as e:
            logger.error(
                f"Unexpected error during {self.label} verification",
                customer_id=customer.customer_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return VerificationOutcome.manual_review(
                self.check_kind, reasons=[f"Unexpected error: {e}"]
            )

        logger.info(
            f"{self.label.capitalize()} verification completed",
            customer_id=customer.customer_id,
            status=outcome.status.value,
            confidence=outcome.confidence,
        )
        return outcome

    def precheck(self, customer: CustomerProfile) -> VerificationOutcome | None:
        """Return a FAIL outcome to short-circuit the remote call, else None."""
        return None

    @abstractmethod
    def build_payload(self, customer: CustomerProfile) -> dict[str, Any]:
        """Service-specific request body."""

    @abstractmethod
    def interpret(self, reply: ServiceReply) -> VerificationOutcome:
        """Apply thresholds to a successful reply."""

    def on_service_failure(
        self, customer: CustomerProfile, error: VerificationServiceError
    ) -> VerificationOutcome:
        logger.error(
            f"{self.label.capitalize()} verification failed",
            customer_id=customer.customer_id,
            error=str(error),
            error_type=type(error).__name__,
            attempts=error.attempts,
        )
        return VerificationOutcome.manual_review(
            self.check_kind, reasons=[f"Service error: {error}"]
        )

    def _threshold_outcome(self, reply: ServiceReply, threshold: int) -> VerificationOutcome:
        """FAIL on a service FAIL, PASS strictly above threshold, otherwise review."""
        status = reply.service_status
        confidence = reply.confidence_score
        reasons = list(reply.reasons)

        if status is ServiceStatus.FAIL:
            return VerificationOutcome.failed(
                self.check_kind, reasons or [f"{self.label.capitalize()} verification failed"]
            )

        if status is not ServiceStatus.PASS:
            reasons.append(f"Unrecognized service status: {reply.status}")
            return VerificationOutcome.manual_review(self.check_kind, confidence, reasons)

        if confidence > threshold:
            return VerificationOutcome.passed(self.check_kind, confidence, reasons)

        reasons.append(f"Confidence score below threshold ({confidence}% <= {threshold}%)")
        return VerificationOutcome.manual_review(self.check_kind, confidence, reasons)
