from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from ekyc.models.domain.verification_domain import CheckKind

ENV_PATH = Path(__file__).resolve().parent.parent / ".env.local"

Percentage = Annotated[int, Field(ge=0, le=100)]


@dataclass(frozen=True, slots=True)
class ServiceEndpoint:
    """Resolved location and per-attempt timeout for one verification service."""

    kind: CheckKind
    url: str
    timeout_seconds: float


class Settings(BaseSettings):
    # Environment settings
    environment: str = "development"
    log_level: str = "INFO"

    # Remote verification services
    service_base_url: str = "http://localhost:8080"
    document_endpoint: str = "/api/v1/verify-document"
    biometric_endpoint: str = "/api/v1/face-match"
    address_endpoint: str = "/api/v1/verify-address"
    sanctions_endpoint: str = "/api/v1/check-sanctions"

    # Per-attempt timeouts (seconds)
    document_timeout: float = Field(default=5, gt=0)
    biometric_timeout: float = Field(default=8, gt=0)
    address_timeout: float = Field(default=5, gt=0)
    sanctions_timeout: float = Field(default=3, gt=0)

    # Confidence thresholds (percentage, PASS requires strictly above)
    document_confidence_threshold: Percentage = 85
    biometric_confidence_threshold: Percentage = 85
    biometric_similarity_threshold: Percentage = 85
    address_confidence_threshold: Percentage = 80

    # Business rules
    address_proof_validity_days: int = Field(default=90, ge=0)

    # =================================================================
    # RESILIENCE SETTINGS
    # =================================================================
    max_retry_attempts: int = Field(default=3, ge=1)
    retry_backoff_ms: Annotated[tuple[int, ...], NoDecode] = (1000, 2000, 4000)
    rate_limit_requests: int = Field(default=10, ge=1)
    rate_limit_window_seconds: float = Field(default=60, gt=0)

    # Wiring
    transport: Literal["simulated", "http"] = "simulated"
    parallel_checks: bool = True

    model_config = SettingsConfigDict(
        env_prefix="EKYC_",
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    @field_validator("retry_backoff_ms", mode="before")
    @classmethod
    def _split_backoff(cls, value):
        # EKYC_RETRY_BACKOFF_MS=1000,2000,4000
        if isinstance(value, str):
            return tuple(int(part.strip()) for part in value.split(",") if part.strip())
        return value

    @model_validator(mode="after")
    def _check_backoff(self) -> "Settings":
        if not self.retry_backoff_ms:
            raise ValueError("retry_backoff_ms must contain at least one delay")
        if any(delay < 0 for delay in self.retry_backoff_ms):
            raise ValueError("retry_backoff_ms delays must be non-negative")
        return self

    @property
    def backoff_schedule_seconds(self) -> tuple[float, ...]:
        return tuple(delay / 1000 for delay in self.retry_backoff_ms)

    def endpoint_for(self, kind: CheckKind) -> ServiceEndpoint:
        """Resolve the service URL and timeout for a check kind."""
        paths = {
            CheckKind.DOCUMENT: (self.document_endpoint, self.document_timeout),
            CheckKind.BIOMETRIC: (self.biometric_endpoint, self.biometric_timeout),
            CheckKind.ADDRESS: (self.address_endpoint, self.address_timeout),
            CheckKind.SANCTIONS: (self.sanctions_endpoint, self.sanctions_timeout),
        }
        path, timeout = paths[kind]
        base = self.service_base_url.rstrip("/")
        return ServiceEndpoint(kind=kind, url=f"{base}{path}", timeout_seconds=timeout)

    def summary(self) -> dict:
        """Non-secret configuration snapshot for startup logging."""
        return {
            "environment": self.environment,
            "base_url": self.service_base_url,
            "timeouts": {
                "document": self.document_timeout,
                "biometric": self.biometric_timeout,
                "address": self.address_timeout,
                "sanctions": self.sanctions_timeout,
            },
            "thresholds": {
                "document": self.document_confidence_threshold,
                "biometric_confidence": self.biometric_confidence_threshold,
                "biometric_similarity": self.biometric_similarity_threshold,
                "address": self.address_confidence_threshold,
            },
            "address_proof_validity_days": self.address_proof_validity_days,
            "max_retry_attempts": self.max_retry_attempts,
            "retry_backoff_ms": list(self.retry_backoff_ms),
            "rate_limit": f"{self.rate_limit_requests}/{self.rate_limit_window_seconds}s",
            "transport": self.transport,
            "parallel_checks": self.parallel_checks,
        }


def load_settings(**overrides) -> Settings:
    """
    Build the configuration value for one process.

    Components receive this value at construction time; nothing in the
    package reads a module-level settings instance.
    """
    return Settings(**overrides)
