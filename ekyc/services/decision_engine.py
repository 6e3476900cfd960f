"""
KYC decision engine.

Reduces verification outcomes to one verdict. Rules are evaluated in a fixed
precedence order and the first match wins:

1. No outcomes                      -> MANUAL_REVIEW (no_outcomes)
2. Sanctions outcome with FAIL      -> REJECTED      (sanctions_hit)
3. Any outcome with FAIL            -> REJECTED      (check_failed)
4. Every outcome PASS               -> APPROVED      (all_passed)
5. Anything else                    -> MANUAL_REVIEW (inconclusive)

The engine performs no I/O and never raises: entries that are not
VerificationOutcome instances are dropped from the decision and block
approval.
"""

from collections.abc import Iterable
from datetime import UTC, datetime

from ekyc.models.domain.verification_domain import (
    CheckKind,
    Decision,
    OutcomeStatus,
    Verdict,
    VerificationOutcome,
)

RULE_NO_OUTCOMES = "no_outcomes"
RULE_SANCTIONS_HIT = "sanctions_hit"
RULE_CHECK_FAILED = "check_failed"
RULE_ALL_PASSED = "all_passed"
RULE_INCONCLUSIVE = "inconclusive"


class DecisionEngine:
    """Pure reducer from outcomes to a Decision."""

    def decide(
        self,
        outcomes: Iterable[VerificationOutcome] | None,
        correlation_id: str,
        decided_at: datetime | None = None,
    ) -> Decision:
        """
        Make the final KYC decision.

        Args:
            outcomes: Verification outcomes in evaluation order (may be None)
            correlation_id: Identifier of the orchestration run
            decided_at: Decision timestamp (default: now, UTC)

        Returns:
            Decision: Verdict plus the outcomes in their input order
        """
        valid, malformed = _partition(outcomes)
        verdict, rationale = self._evaluate(valid, malformed)
        return Decision(
            verdict=verdict,
            outcomes=valid,
            correlation_id=correlation_id,
            decided_at=decided_at or datetime.now(UTC),
            rationale=rationale,
        )

    def _evaluate(
        self, outcomes: tuple[VerificationOutcome, ...], malformed: bool
    ) -> tuple[Verdict, str]:
        if not outcomes:
            return Verdict.MANUAL_REVIEW, RULE_NO_OUTCOMES

        # Sanctions hit is an absolute veto
        if any(
            o.check_kind is CheckKind.SANCTIONS and o.status is OutcomeStatus.FAIL
            for o in outcomes
        ):
            return Verdict.REJECTED, RULE_SANCTIONS_HIT

        if any(o.status is OutcomeStatus.FAIL for o in outcomes):
            return Verdict.REJECTED, RULE_CHECK_FAILED

        if not malformed and all(o.status is OutcomeStatus.PASS for o in outcomes):
            return Verdict.APPROVED, RULE_ALL_PASSED

        return Verdict.MANUAL_REVIEW, RULE_INCONCLUSIVE


def _partition(
    outcomes: Iterable[VerificationOutcome] | None,
) -> tuple[tuple[VerificationOutcome, ...], bool]:
    if outcomes is None:
        return (), False
    try:
        items = list(outcomes)
    except TypeError:
        return (), True
    valid = tuple(item for item in items if isinstance(item, VerificationOutcome))
    return valid, len(valid) != len(items)
