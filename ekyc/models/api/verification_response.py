# ekyc/models/api/verification_response.py
"""
KYC verification response models.
Used by routes for output formatting.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from ekyc.models.domain.verification_domain import (
    CheckKind,
    Decision,
    OutcomeStatus,
    Verdict,
    VerificationOutcome,
)


class VerificationOutcomeResponse(BaseModel):
    """Response model for one verification check."""

    check_kind: CheckKind = Field(..., description="Check category")
    status: OutcomeStatus = Field(..., description="PASS, FAIL or MANUAL_REVIEW")
    confidence: int = Field(..., ge=0, le=100, description="Confidence score (0-100)")
    reasons: list[str] = Field(default_factory=list, description="Why this status was assigned")
    produced_at: datetime = Field(..., description="When the outcome was produced")

    @classmethod
    def from_domain(cls, outcome: VerificationOutcome) -> "VerificationOutcomeResponse":
        return cls(
            check_kind=outcome.check_kind,
            status=outcome.status,
            confidence=outcome.confidence,
            reasons=list(outcome.reasons),
            produced_at=outcome.produced_at,
        )


class KycDecisionResponse(BaseModel):
    """Response for a completed KYC verification run."""

    verdict: Verdict = Field(..., description="APPROVED, REJECTED or MANUAL_REVIEW")
    correlation_id: str = Field(..., description="Run identifier for log correlation")
    decided_at: datetime = Field(..., description="When the decision was made")
    rationale: str = Field(..., description="Precedence rule that produced the verdict")
    outcomes: list[VerificationOutcomeResponse] = Field(
        ..., description="Check outcomes in requested order"
    )

    @classmethod
    def from_domain(cls, decision: Decision) -> "KycDecisionResponse":
        return cls(
            verdict=decision.verdict,
            correlation_id=decision.correlation_id,
            decided_at=decision.decided_at,
            rationale=decision.rationale,
            outcomes=[VerificationOutcomeResponse.from_domain(o) for o in decision.outcomes],
        )
