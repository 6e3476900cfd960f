import asyncio
from unittest.mock import AsyncMock

import pytest

from ekyc.infrastructure.audit import AuditLogger
from ekyc.models.domain.transport_domain import RawResponse
from ekyc.models.domain.verification_domain import (
    FULL_CHECK_ORDER,
    CheckKind,
    OutcomeStatus,
    Verdict,
    VerificationOutcome,
)
from ekyc.services.orchestrator import VerificationOrchestrator, normalize_kinds
from ekyc.utils.correlation import current_correlation_id


@pytest.fixture
def audit():
    return AsyncMock(spec=AuditLogger)


@pytest.fixture
def build_orchestrator(settings, simulated_transport, clock, recording_sleep, today, audit):
    def _build(**overrides):
        effective = settings.model_copy(update=overrides) if overrides else settings
        return VerificationOrchestrator.from_settings(
            effective,
            simulated_transport,
            sleep=recording_sleep,
            clock=clock,
            today=lambda: today,
            audit=audit,
        )

    return _build


@pytest.mark.asyncio
async def test_full_run_with_default_replies_is_approved(
    build_orchestrator, customer, simulated_transport
):
    decision = await build_orchestrator().run_full(customer)

    assert decision.verdict is Verdict.APPROVED
    assert [o.check_kind for o in decision.outcomes] == list(FULL_CHECK_ORDER)
    assert decision.correlation_id.startswith("REQ-")
    assert len(decision.correlation_id) == 12
    assert len(simulated_transport.calls) == 4


@pytest.mark.asyncio
async def test_subset_runs_only_requested_checks(build_orchestrator, customer, simulated_transport):
    decision = await build_orchestrator().run(customer, [CheckKind.SANCTIONS, CheckKind.DOCUMENT])

    assert [o.check_kind for o in decision.outcomes] == [CheckKind.SANCTIONS, CheckKind.DOCUMENT]
    assert simulated_transport.calls_to("face-match") == []
    assert simulated_transport.calls_to("verify-address") == []


@pytest.mark.asyncio
async def test_requested_kinds_are_deduplicated(build_orchestrator, customer, simulated_transport):
    decision = await build_orchestrator().run(customer, ["address", "address", CheckKind.DOCUMENT])

    assert [o.check_kind for o in decision.outcomes] == [CheckKind.ADDRESS, CheckKind.DOCUMENT]
    assert len(simulated_transport.calls_to("verify-address")) == 1


@pytest.mark.asyncio
async def test_unknown_kind_is_rejected(build_orchestrator, customer, audit):
    with pytest.raises(ValueError):
        await build_orchestrator().run(customer, ["document", "credit"])

    audit.log_decision.assert_not_awaited()


@pytest.mark.asyncio
async def test_empty_request_needs_review(build_orchestrator, customer, simulated_transport):
    decision = await build_orchestrator().run(customer, [])

    assert decision.verdict is Verdict.MANUAL_REVIEW
    assert decision.outcomes == ()
    assert simulated_transport.calls == []


@pytest.mark.asyncio
async def test_sanctions_hit_rejects_run(
    build_orchestrator, customer, simulated_transport, settings
):
    simulated_transport.register_reply(
        settings.endpoint_for(CheckKind.SANCTIONS).url,
        {"status": "HIT", "matches": [{"name": "John Doe", "list": "EU Consolidated"}]},
    )

    decision = await build_orchestrator().run_full(customer)

    assert decision.verdict is Verdict.REJECTED
    assert decision.rationale == "sanctions_hit"
    assert decision.outcome_for(CheckKind.SANCTIONS).reasons == (
        "Match found: John Doe on EU Consolidated",
    )


@pytest.mark.asyncio
async def test_outage_on_one_check_needs_review(
    build_orchestrator, customer, simulated_transport, settings
):
    simulated_transport.register_reply(
        settings.endpoint_for(CheckKind.BIOMETRIC).url, {"error": "unavailable"}, status_code=503
    )

    decision = await build_orchestrator().run_full(customer)

    assert decision.verdict is Verdict.MANUAL_REVIEW
    assert decision.outcome_for(CheckKind.BIOMETRIC).status is OutcomeStatus.MANUAL_REVIEW
    assert len(simulated_transport.calls_to("face-match")) == 3


@pytest.mark.asyncio
async def test_sequential_mode_matches_parallel(build_orchestrator, customer, simulated_transport):
    parallel = await build_orchestrator().run_full(customer)
    sequential = await build_orchestrator(parallel_checks=False).run_full(customer)

    assert [o.status for o in parallel.outcomes] == [o.status for o in sequential.outcomes]
    assert sequential.verdict is parallel.verdict
    order = [call.endpoint.rsplit("/", 1)[-1] for call in simulated_transport.calls[4:]]
    assert order == ["verify-document", "face-match", "verify-address", "check-sanctions"]


@pytest.mark.asyncio
async def test_outcome_order_ignores_completion_order(customer, audit):
    class DelayedClient:
        def __init__(self, kind, delay):
            self.kind = kind
            self.delay = delay

        async def evaluate(self, customer):
            await asyncio.sleep(self.delay)
            return VerificationOutcome.passed(self.kind, 90)

    clients = {
        CheckKind.DOCUMENT: DelayedClient(CheckKind.DOCUMENT, 0.03),
        CheckKind.BIOMETRIC: DelayedClient(CheckKind.BIOMETRIC, 0.02),
        CheckKind.ADDRESS: DelayedClient(CheckKind.ADDRESS, 0.01),
        CheckKind.SANCTIONS: DelayedClient(CheckKind.SANCTIONS, 0),
    }
    orchestrator = VerificationOrchestrator(clients, audit=audit)

    decision = await orchestrator.run_full(customer)

    assert [o.check_kind for o in decision.outcomes] == list(FULL_CHECK_ORDER)


@pytest.mark.asyncio
async def test_missing_client_needs_review(customer, audit):
    orchestrator = VerificationOrchestrator({}, audit=audit)

    decision = await orchestrator.run(customer, ["sanctions"])

    assert decision.verdict is Verdict.MANUAL_REVIEW
    assert decision.outcomes[0].reasons == ("No sanctions verification client configured",)


@pytest.mark.asyncio
async def test_each_run_is_audited_once(build_orchestrator, customer, audit):
    decision = await build_orchestrator().run_full(customer)

    audit.log_decision.assert_awaited_once_with(decision, "CUST-001")


@pytest.mark.asyncio
async def test_correlation_id_is_bound_during_run(customer, audit):
    seen = []

    class ProbeClient:
        async def evaluate(self, customer):
            seen.append(current_correlation_id())
            return VerificationOutcome.passed(CheckKind.DOCUMENT, 99)

    orchestrator = VerificationOrchestrator(
        {CheckKind.DOCUMENT: ProbeClient()},
        audit=audit,
        correlation_ids=lambda: "REQ-DEADBEEF",
    )

    decision = await orchestrator.run(customer, ["document"])

    assert seen == ["REQ-DEADBEEF"]
    assert decision.correlation_id == "REQ-DEADBEEF"
    assert current_correlation_id() is None


@pytest.mark.asyncio
async def test_rate_limit_exhaustion_across_runs(build_orchestrator, customer, simulated_transport):
    orchestrator = build_orchestrator(rate_limit_requests=2)

    first = await orchestrator.run(customer, ["sanctions"])
    second = await orchestrator.run(customer, ["sanctions"])
    third = await orchestrator.run(customer, ["sanctions"])

    assert first.verdict is Verdict.APPROVED
    assert second.verdict is Verdict.APPROVED
    assert third.verdict is Verdict.MANUAL_REVIEW
    assert len(simulated_transport.calls) == 2


def test_normalize_kinds_keeps_first_occurrence():
    assert normalize_kinds(["sanctions", "document", "sanctions"]) == (
        CheckKind.SANCTIONS,
        CheckKind.DOCUMENT,
    )


@pytest.mark.asyncio
async def test_cancelling_run_stops_all_checks(
    settings, simulated_transport, clock, today, audit, customer
):
    in_backoff = asyncio.Event()

    async def blocking_sleep(delay):
        in_backoff.set()
        await asyncio.Event().wait()

    simulated_transport.register_reply(
        settings.endpoint_for(CheckKind.BIOMETRIC).url, {"error": "unavailable"}, status_code=503
    )
    orchestrator = VerificationOrchestrator.from_settings(
        settings,
        simulated_transport,
        sleep=blocking_sleep,
        clock=clock,
        today=lambda: today,
        audit=audit,
    )

    task = asyncio.create_task(orchestrator.run_full(customer))
    await in_backoff.wait()
    calls_at_cancel = len(simulated_transport.calls)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    for _ in range(5):
        await asyncio.sleep(0)

    assert task.cancelled()
    assert len(simulated_transport.calls) == calls_at_cancel
    assert len(simulated_transport.calls_to("face-match")) == 1
    audit.log_decision.assert_not_awaited()
