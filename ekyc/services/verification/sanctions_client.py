"""Sanctions list screening client."""

from typing import Any

from ekyc.infrastructure.observability.logging import get_logger
from ekyc.models.domain.verification_domain import (
    CheckKind,
    CustomerProfile,
    VerificationOutcome,
)
from ekyc.services.errors import VerificationServiceError
from ekyc.services.verification.base import VerificationClient
from ekyc.services.verification.replies import ServiceReply, ServiceStatus

logger = get_logger(__name__)


class SanctionsScreeningClient(VerificationClient):
    """
    Screens a customer against sanctions lists.

    HIT or any positive match count is a FAIL. Only an explicit CLEAR passes:
    unknown statuses and service failures go to MANUAL_REVIEW, because an
    unverified sanctions check can never become an approval.
    """

    check_kind = CheckKind.SANCTIONS
    label = "sanctions"

    def build_payload(self, customer: CustomerProfile) -> dict[str, Any]:
        return {
            "customer_id": customer.customer_id,
            "full_name": customer.full_name,
            "date_of_birth": customer.date_of_birth,
            "nationality": customer.nationality,
        }

    def interpret(self, reply: ServiceReply) -> VerificationOutcome:
        status = reply.service_status

        if status is ServiceStatus.HIT or reply.match_count > 0:
            reasons = reply.match_reasons()
            if not reasons:
                match_count = max(reply.match_count, 1)
                reasons.append(f"Sanctions match found ({match_count} match(es))")
            logger.warning("Sanctions hit", match_count=reply.match_count, reasons=reasons)
            return VerificationOutcome.failed(self.check_kind, reasons)

        if status is ServiceStatus.CLEAR:
            return VerificationOutcome.passed(self.check_kind, 100)

        logger.warning("Unknown sanctions status", status=reply.status)
        return VerificationOutcome.manual_review(
            self.check_kind, reasons=[f"Unknown sanctions status: {reply.status}"]
        )

    def on_service_failure(
        self, customer: CustomerProfile, error: VerificationServiceError
    ) -> VerificationOutcome:
        logger.error(
            "CRITICAL: Sanctions screening failed",
            customer_id=customer.customer_id,
            error=str(error),
            error_type=type(error).__name__,
            attempts=error.attempts,
        )
        return VerificationOutcome.manual_review(
            self.check_kind, reasons=[f"CRITICAL: Sanctions service unavailable - {error}"]
        )
