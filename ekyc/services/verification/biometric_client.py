"""Face-match (selfie against ID photo) verification client."""

from typing import Any

from ekyc.models.domain.verification_domain import (
    CheckKind,
    CustomerProfile,
    VerificationOutcome,
)
from ekyc.services.verification.base import VerificationClient
from ekyc.services.verification.replies import ServiceReply, ServiceStatus


class BiometricVerificationClient(VerificationClient):
    """PASS needs both confidence and similarity strictly above their thresholds."""

    check_kind = CheckKind.BIOMETRIC
    label = "biometric"

    def build_payload(self, customer: CustomerProfile) -> dict[str, Any]:
        return {
            "customer_id": customer.customer_id,
            "selfie_url": customer.selfie_url,
            "id_photo_url": customer.id_photo_url,
        }

    def interpret(self, reply: ServiceReply) -> VerificationOutcome:
        status = reply.service_status
        confidence = reply.confidence_score
        similarity = reply.similarity
        confidence_threshold = self._settings.biometric_confidence_threshold
        similarity_threshold = self._settings.biometric_similarity_threshold
        reasons = list(reply.reasons)

        if status is ServiceStatus.FAIL:
            reasons.append("Face match failed")
            return VerificationOutcome.failed(self.check_kind, reasons)

        if status is not ServiceStatus.PASS:
            reasons.append(f"Unrecognized service status: {reply.status}")
            return VerificationOutcome.manual_review(self.check_kind, confidence, reasons)

        if confidence > confidence_threshold and similarity > similarity_threshold:
            return VerificationOutcome.passed(self.check_kind, confidence, reasons)

        if confidence <= confidence_threshold:
            reasons.append(
                f"Low confidence score ({confidence}% <= {confidence_threshold}%)"
            )
        if similarity <= similarity_threshold:
            reasons.append(
                f"Low similarity score ({similarity}% <= {similarity_threshold}%)"
            )
        return VerificationOutcome.manual_review(self.check_kind, confidence, reasons)
