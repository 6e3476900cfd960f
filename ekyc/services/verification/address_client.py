"""Proof-of-address verification client."""

from typing import Any

from ekyc.models.domain.verification_domain import (
    CheckKind,
    CustomerProfile,
    VerificationOutcome,
)
from ekyc.services.verification.base import VerificationClient, parse_iso_date
from ekyc.services.verification.replies import ServiceReply


class AddressVerificationClient(VerificationClient):
    """
    Verifies a customer's proof of address.

    The proof must be dated within ``address_proof_validity_days`` of today;
    older or unreadable proof dates fail locally without calling the service.
    """

    check_kind = CheckKind.ADDRESS
    label = "address"

    def precheck(self, customer: CustomerProfile) -> VerificationOutcome | None:
        validity_days = self._settings.address_proof_validity_days
        proof_date = parse_iso_date(customer.proof_date)

        if proof_date is None:
            return VerificationOutcome.failed(
                self.check_kind,
                [f"Proof of address date is missing or invalid: {customer.proof_date!r}"],
            )

        age_days = (self._today() - proof_date).days
        if age_days > validity_days:
            return VerificationOutcome.failed(
                self.check_kind,
                [f"Proof of address is older than {validity_days} days ({age_days} days old)"],
            )
        return None

    def build_payload(self, customer: CustomerProfile) -> dict[str, Any]:
        return {
            "customer_id": customer.customer_id,
            "address": customer.address,
            "proof_type": customer.proof_type,
            "proof_date": customer.proof_date,
            "proof_url": customer.proof_url,
        }

    def interpret(self, reply: ServiceReply) -> VerificationOutcome:
        return self._threshold_outcome(reply, self._settings.address_confidence_threshold)
