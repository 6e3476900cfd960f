"""
Verification Domain Models
Typed results produced by the verification clients and consumed by the
decision engine. Instances are immutable once built.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum


class CheckKind(StrEnum):
    """The four verification categories of an onboarding event."""

    DOCUMENT = "document"
    BIOMETRIC = "biometric"
    ADDRESS = "address"
    SANCTIONS = "sanctions"


# Order used by a full verification run
FULL_CHECK_ORDER: tuple[CheckKind, ...] = (
    CheckKind.DOCUMENT,
    CheckKind.BIOMETRIC,
    CheckKind.ADDRESS,
    CheckKind.SANCTIONS,
)


class OutcomeStatus(StrEnum):
    PASS = "PASS"
    FAIL = "FAIL"
    MANUAL_REVIEW = "MANUAL_REVIEW"


class Verdict(StrEnum):
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    MANUAL_REVIEW = "MANUAL_REVIEW"


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class VerificationOutcome:
    """Result of one verification check."""

    check_kind: CheckKind
    status: OutcomeStatus
    confidence: int = 0
    reasons: tuple[str, ...] = ()
    produced_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self):
        # Accept any iterable of reasons but store an immutable tuple
        object.__setattr__(self, "reasons", tuple(self.reasons or ()))
        object.__setattr__(self, "confidence", max(0, min(100, int(self.confidence))))

    @classmethod
    def passed(cls, kind: CheckKind, confidence: int, reasons=()) -> "VerificationOutcome":
        return cls(kind, OutcomeStatus.PASS, confidence, tuple(reasons))

    @classmethod
    def failed(cls, kind: CheckKind, reasons=()) -> "VerificationOutcome":
        # Fail outcomes report confidence 0 by convention
        return cls(kind, OutcomeStatus.FAIL, 0, tuple(reasons))

    @classmethod
    def manual_review(cls, kind: CheckKind, confidence: int = 0, reasons=()) -> "VerificationOutcome":
        return cls(kind, OutcomeStatus.MANUAL_REVIEW, confidence, tuple(reasons))

    def to_dict(self) -> dict:
        return {
            "check_kind": self.check_kind.value,
            "status": self.status.value,
            "confidence": self.confidence,
            "reasons": list(self.reasons),
            "produced_at": self.produced_at.isoformat(),
        }


@dataclass(frozen=True, slots=True)
class Decision:
    """Terminal artifact of one orchestration run."""

    verdict: Verdict
    outcomes: tuple[VerificationOutcome, ...]
    correlation_id: str
    decided_at: datetime = field(default_factory=_utcnow)
    # Name of the precedence rule that produced the verdict
    rationale: str = ""

    @property
    def is_approved(self) -> bool:
        return self.verdict is Verdict.APPROVED

    def outcome_for(self, kind: CheckKind) -> VerificationOutcome | None:
        for outcome in self.outcomes:
            if outcome.check_kind is kind:
                return outcome
        return None


def _mask(value: str | None) -> str:
    if not value or len(value) <= 2:
        return "***"
    return f"{value[0]}***{value[-1]}"


@dataclass(frozen=True, slots=True)
class CustomerProfile:
    """Subject data for one onboarding event. Dates are ISO-8601 strings."""

    customer_id: str
    full_name: str | None = None
    date_of_birth: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    nationality: str | None = None

    # Document
    document_type: str | None = None
    document_number: str | None = None
    document_expiry_date: str | None = None
    document_image_url: str | None = None

    # Biometric
    selfie_url: str | None = None
    id_photo_url: str | None = None

    # Proof of address
    proof_type: str | None = None
    proof_date: str | None = None
    proof_url: str | None = None

    def __repr__(self) -> str:
        return f"CustomerProfile(customer_id={self.customer_id!r}, full_name={_mask(self.full_name)!r})"

    __str__ = __repr__
