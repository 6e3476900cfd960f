"""KYC verification endpoints."""

from fastapi import APIRouter, Depends, Request

from ekyc.infrastructure.observability.logging import get_logger
from ekyc.models.api.verification_request import CustomerVerificationRequest
from ekyc.models.api.verification_response import KycDecisionResponse
from ekyc.services.orchestrator import VerificationOrchestrator

logger = get_logger(__name__)

router = APIRouter(prefix="/kyc", tags=["kyc"])


def get_orchestrator(request: Request) -> VerificationOrchestrator:
    return request.app.state.orchestrator


@router.post("/verifications", response_model=KycDecisionResponse)
async def create_verification(
    body: CustomerVerificationRequest,
    orchestrator: VerificationOrchestrator = Depends(get_orchestrator),
) -> KycDecisionResponse:
    """
    Run the requested checks for one customer and return the decision.

    Service failures never surface as HTTP errors: they show up as
    MANUAL_REVIEW outcomes inside the decision.
    """
    decision = await orchestrator.run(body.to_customer(), body.checks)
    return KycDecisionResponse.from_domain(decision)
