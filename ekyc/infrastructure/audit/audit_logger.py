"""
AuditLogger - Audit trail for KYC decisions.

Every orchestration run ends in exactly one audit event that records the
verdict, the precedence rule that produced it and each check's status, keyed
by the run's correlation id so it can be joined with the run's logs.

Usage:
    from ekyc.infrastructure.audit import audit_logger

    await audit_logger.log_decision(decision, customer_id="CUST-001")

Design Principles:
- Structured log is the audit sink (decisions are not persisted here)
- Never fail the run if audit logging fails
- No PII beyond the customer id
"""

from datetime import UTC, datetime
from typing import Any

from ekyc.infrastructure.observability.logging import get_logger
from ekyc.models.domain.verification_domain import Decision

logger = get_logger("audit")


class AuditLogger:
    """
    Centralized audit logging service.

    Thread-safe and async-ready.
    """

    @staticmethod
    async def log(
        action: str,
        resource_type: str | None = None,
        resource_id: str | None = None,
        correlation_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> bool:
        """
        Log an audit event to the structured log.

        Args:
            action: Action name (e.g., "kyc_decision_made")
            resource_type: Type of resource (e.g., "customer")
            resource_id: Specific resource ID (e.g., customer id)
            correlation_id: Orchestration run id
            metadata: Additional context (JSON-serializable dict)

        Returns:
            True if logged successfully, False if failed (never raises)
        """
        try:
            logger.info(
                "Audit event",
                audit_action=action,
                resource_type=resource_type,
                resource_id=resource_id,
                correlation_id=correlation_id,
                metadata=metadata or {},
                audited_at=datetime.now(UTC).isoformat(),
            )
            return True
        except Exception as e:
            # NEVER fail the run due to audit logging failure
            logger.error(
                "CRITICAL: Failed to write audit event",
                error=str(e),
                error_type=type(e).__name__,
                audit_action=action,
                correlation_id=correlation_id,
            )
            return False

    @staticmethod
    async def log_decision(decision: Decision, customer_id: str | None = None) -> bool:
        """
        Record one KYC decision.

        Args:
            decision: Terminal decision of an orchestration run
            customer_id: Customer the decision applies to

        Returns:
            True if logged successfully
        """
        return await AuditLogger.log(
            action="kyc_decision_made",
            resource_type="customer",
            resource_id=customer_id,
            correlation_id=decision.correlation_id,
            metadata={
                "verdict": decision.verdict.value,
                "rationale": decision.rationale,
                "decided_at": decision.decided_at.isoformat(),
                "checks": [
                    {
                        "check_kind": outcome.check_kind.value,
                        "status": outcome.status.value,
                        "confidence": outcome.confidence,
                        "reasons": list(outcome.reasons),
                    }
                    for outcome in decision.outcomes
                ],
            },
        )


# Global singleton instance
audit_logger = AuditLogger()
