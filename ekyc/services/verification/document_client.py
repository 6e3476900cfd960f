"""Identity document verification client."""

from typing import Any

from ekyc.models.domain.verification_domain import (
    CheckKind,
    CustomerProfile,
    VerificationOutcome,
)
from ekyc.services.verification.base import VerificationClient, parse_iso_date
from ekyc.services.verification.replies import ServiceReply


def mask_document_number(document_number: str | None) -> str:
    """Keep only the last four characters, e.g. ``****4567``."""
    if not document_number or len(document_number) <= 4:
        return "****"
    return "****" + document_number[-4:]


class DocumentVerificationClient(VerificationClient):
    """
    Verifies an identity document.

    Expired documents (expiry on or before today) and unreadable expiry
    dates fail locally without calling the service.
    """

    check_kind = CheckKind.DOCUMENT
    label = "document"

    def precheck(self, customer: CustomerProfile) -> VerificationOutcome | None:
        expiry = parse_iso_date(customer.document_expiry_date)
        if expiry is None:
            return VerificationOutcome.failed(
                self.check_kind,
                [f"Document expiry date is missing or invalid: {customer.document_expiry_date!r}"],
            )
        if expiry <= self._today():
            return VerificationOutcome.failed(
                self.check_kind, [f"Document has expired (expiry date {expiry.isoformat()})"]
            )
        return None

    def build_payload(self, customer: CustomerProfile) -> dict[str, Any]:
        return {
            "customer_id": customer.customer_id,
            "document_type": customer.document_type,
            "document_number": mask_document_number(customer.document_number),
            "expiry_date": customer.document_expiry_date,
            "document_image_url": customer.document_image_url,
        }

    def interpret(self, reply: ServiceReply) -> VerificationOutcome:
        return self._threshold_outcome(reply, self._settings.document_confidence_threshold)
