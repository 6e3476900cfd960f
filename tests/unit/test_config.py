import pytest
from pydantic import ValidationError

from ekyc.config import Settings, load_settings
from ekyc.models.domain.verification_domain import CheckKind


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("EKYC_RETRY_BACKOFF_MS", "EKYC_SERVICE_BASE_URL", "EKYC_MAX_RETRY_ATTEMPTS"):
        monkeypatch.delenv(name, raising=False)


def test_defaults(settings):
    assert settings.service_base_url == "http://localhost:8080"
    assert settings.max_retry_attempts == 3
    assert settings.backoff_schedule_seconds == (1.0, 2.0, 4.0)
    assert settings.rate_limit_requests == 10
    assert settings.rate_limit_window_seconds == 60
    assert settings.address_proof_validity_days == 90
    assert settings.address_confidence_threshold == 80
    assert settings.transport == "simulated"


@pytest.mark.parametrize(
    ("kind", "path", "timeout"),
    [
        (CheckKind.DOCUMENT, "/api/v1/verify-document", 5),
        (CheckKind.BIOMETRIC, "/api/v1/face-match", 8),
        (CheckKind.ADDRESS, "/api/v1/verify-address", 5),
        (CheckKind.SANCTIONS, "/api/v1/check-sanctions", 3),
    ],
)
def test_endpoint_for_each_kind(settings, kind, path, timeout):
    endpoint = settings.endpoint_for(kind)

    assert endpoint.url == "http://localhost:8080" + path
    assert endpoint.timeout_seconds == timeout
    assert endpoint.kind is kind


def test_base_url_trailing_slash_is_ignored():
    settings = Settings(_env_file=None, service_base_url="https://kyc.example.com/")

    assert settings.endpoint_for(CheckKind.DOCUMENT).url == "https://kyc.example.com/api/v1/verify-document"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("EKYC_RETRY_BACKOFF_MS", "250, 500")
    monkeypatch.setenv("EKYC_MAX_RETRY_ATTEMPTS", "5")

    settings = load_settings(_env_file=None)

    assert settings.retry_backoff_ms == (250, 500)
    assert settings.backoff_schedule_seconds == (0.25, 0.5)
    assert settings.max_retry_attempts == 5


@pytest.mark.parametrize(
    "overrides",
    [
        {"max_retry_attempts": 0},
        {"retry_backoff_ms": ()},
        {"retry_backoff_ms": "100,-1"},
        {"document_confidence_threshold": 101},
        {"sanctions_timeout": 0},
        {"rate_limit_requests": 0},
        {"transport": "grpc"},
    ],
)
def test_invalid_values_are_rejected(overrides):
    with pytest.raises(ValidationError):
        Settings(_env_file=None, **overrides)


def test_settings_are_immutable(settings):
    with pytest.raises(ValidationError):
        settings.max_retry_attempts = 7


def test_summary_reports_resilience_settings(settings):
    summary = settings.summary()

    assert summary["retry_backoff_ms"] == [1000, 2000, 4000]
    assert summary["rate_limit"].startswith("10/60")
