"""
Verification orchestrator.

Runs the requested verification clients for one customer, collects their
outcomes in requested order and hands them to the decision engine.

Checks have no data dependency on each other, so by default they run
concurrently and are joined before the decision. Outcome order always follows
the requested order, never completion order. Cancelling a run cancels its
outstanding checks (including any in backoff) without touching other runs.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable, Iterable, Mapping
from datetime import date
from typing import Any

from ekyc.config import Settings
from ekyc.infrastructure.audit import AuditLogger, audit_logger
from ekyc.infrastructure.observability.logging import get_logger
from ekyc.models.domain.verification_domain import (
    FULL_CHECK_ORDER,
    CheckKind,
    CustomerProfile,
    Decision,
    VerificationOutcome,
)
from ekyc.services.decision_engine import DecisionEngine
from ekyc.services.transport.base import Transport
from ekyc.services.transport.rate_limiter import SlidingWindowRateLimiter
from ekyc.services.transport.resilient_client import ResilientClient
from ekyc.services.verification.address_client import AddressVerificationClient
from ekyc.services.verification.base import VerificationClient, utc_today
from ekyc.services.verification.biometric_client import BiometricVerificationClient
from ekyc.services.verification.document_client import DocumentVerificationClient
from ekyc.services.verification.sanctions_client import SanctionsScreeningClient
from ekyc.utils.correlation import bind_correlation_id, generate_correlation_id

logger = get_logger(__name__)

CLIENT_TYPES: dict[CheckKind, type[VerificationClient]] = {
    CheckKind.DOCUMENT: DocumentVerificationClient,
    CheckKind.BIOMETRIC: BiometricVerificationClient,
    CheckKind.ADDRESS: AddressVerificationClient,
    CheckKind.SANCTIONS: SanctionsScreeningClient,
}


def normalize_kinds(requested: Iterable[CheckKind | str]) -> tuple[CheckKind, ...]:
    """
    Coerce to CheckKind and drop repeats, keeping first occurrence order.

    Raises:
        ValueError: A name is not a known check kind
    """
    kinds: list[CheckKind] = []
    for item in requested:
        kind = CheckKind(item)
        if kind not in kinds:
            kinds.append(kind)
    return tuple(kinds)


class VerificationOrchestrator:
    """Sequences verification clients and produces the final Decision."""

    def __init__(
        self,
        clients: Mapping[CheckKind, VerificationClient],
        decision_engine: DecisionEngine | None = None,
        audit: AuditLogger = audit_logger,
        parallel: bool = True,
        correlation_ids: Callable[[], str] = generate_correlation_id,
    ):
        self._clients = dict(clients)
        self._engine = decision_engine or DecisionEngine()
        self._audit = audit
        self.parallel = parallel
        self._correlation_ids = correlation_ids

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: Transport,
        *,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
        today: Callable[[], date] = utc_today,
        audit: AuditLogger = audit_logger,
    ) -> "VerificationOrchestrator":
        """
        Wire the full component graph from one configuration value.

        One rate limiter and one resilient client are shared by all four
        clients; each client calls its own endpoint, so each has its own
        admission window.
        """
        rate_limiter = SlidingWindowRateLimiter(
            max_requests=settings.rate_limit_requests,
            window_seconds=settings.rate_limit_window_seconds,
            clock=clock,
        )
        resilient_client = ResilientClient(
            transport,
            rate_limiter,
            max_attempts=settings.max_retry_attempts,
            backoff_schedule=settings.backoff_schedule_seconds,
            sleep=sleep,
        )
        clients = {
            kind: client_type(resilient_client, settings, today=today)
            for kind, client_type in CLIENT_TYPES.items()
        }
        return cls(clients, audit=audit, parallel=settings.parallel_checks)

    def client_for(self, kind: CheckKind) -> VerificationClient | None:
        return self._clients.get(kind)

    async def run(
        self, customer: CustomerProfile, requested_kinds: Iterable[CheckKind | str]
    ) -> Decision:
        """
        Run the requested checks and decide.

        Args:
            customer: Subject data
            requested_kinds: Checks to run, in the order outcomes should appear

        Returns:
            Decision: Terminal decision for this run

        Raises:
            ValueError: A requested kind is not a known check kind
        """
        kinds = normalize_kinds(requested_kinds)
        correlation_id = self._correlation_ids()

        with bind_correlation_id(correlation_id):
            logger.info(
                "Starting KYC verification",
                customer_id=customer.customer_id,
                checks=[kind.value for kind in kinds],
                parallel=self.parallel,
            )

            if self.parallel:
                outcomes = list(
                    await asyncio.gather(*(self._run_check(kind, customer) for kind in kinds))
                )
            else:
                outcomes = [await self._run_check(kind, customer) for kind in kinds]

            decision = self._engine.decide(outcomes, correlation_id)

            logger.info(
                "KYC verification completed",
                customer_id=customer.customer_id,
                verdict=decision.verdict.value,
                rationale=decision.rationale,
            )
            await self._audit.log_decision(decision, customer.customer_id)

        return decision

    async def run_full(self, customer: CustomerProfile) -> Decision:
        """Run all four checks in document, biometric, address, sanctions order."""
        return await self.run(customer, FULL_CHECK_ORDER)

    async def _run_check(self, kind: CheckKind, customer: CustomerProfile) -> VerificationOutcome:
        client = self._clients.get(kind)
        if client is None:
            logger.error("No client configured for check", check=kind.value)
            return VerificationOutcome.manual_review(
                kind, reasons=[f"No {kind.value} verification client configured"]
            )

        outcome = await client.evaluate(customer)
        logger.info(
            "Verification check completed",
            check=kind.value,
            status=outcome.status.value,
            confidence=outcome.confidence,
        )
        return outcome
