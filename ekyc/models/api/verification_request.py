# ekyc/models/api/verification_request.py
"""
KYC verification request models.
Used by routes for input validation.
"""

from pydantic import BaseModel, Field

from ekyc.models.domain.verification_domain import FULL_CHECK_ORDER, CheckKind, CustomerProfile


class CustomerVerificationRequest(BaseModel):
    """Customer data plus the checks to run."""

    customer_id: str = Field(..., min_length=1, description="Customer identifier")
    full_name: str | None = Field(None, description="Full legal name")
    date_of_birth: str | None = Field(None, description="Date of birth (YYYY-MM-DD)")
    email: str | None = Field(None, description="Email address")
    phone: str | None = Field(None, description="Phone number")
    address: str | None = Field(None, description="Residential address")
    nationality: str | None = Field(None, description="Nationality (ISO country code)")

    document_type: str | None = Field(None, description="e.g. PASSPORT")
    document_number: str | None = Field(None, description="Document number")
    document_expiry_date: str | None = Field(None, description="Document expiry (YYYY-MM-DD)")
    document_image_url: str | None = Field(None, description="Document scan URL")

    selfie_url: str | None = Field(None, description="Selfie image URL")
    id_photo_url: str | None = Field(None, description="ID photo image URL")

    proof_type: str | None = Field(None, description="e.g. UTILITY_BILL")
    proof_date: str | None = Field(None, description="Proof of address date (YYYY-MM-DD)")
    proof_url: str | None = Field(None, description="Proof of address document URL")

    checks: list[CheckKind] = Field(
        default_factory=lambda: list(FULL_CHECK_ORDER),
        description="Checks to run, in order (default: all four)",
    )

    def to_customer(self) -> CustomerProfile:
        return CustomerProfile(**self.model_dump(exclude={"checks"}))
