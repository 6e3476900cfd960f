from dataclasses import replace
from datetime import date, timedelta

import pytest

from ekyc.config import Settings
from ekyc.models.domain.verification_domain import CustomerProfile
from ekyc.services.transport.rate_limiter import SlidingWindowRateLimiter
from ekyc.services.transport.resilient_client import ResilientClient
from ekyc.services.transport.simulated_transport import SimulatedTransport

TODAY = date(2026, 1, 20)


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class ScriptedTransport:
    """Replies from a script; the last entry repeats. Exceptions are raised."""

    def __init__(self, *script):
        self.script = list(script)
        self.calls: list[tuple[str, dict, float]] = []

    async def raw_call(self, endpoint, payload, timeout_seconds):
        self.calls.append((endpoint, payload, timeout_seconds))
        item = self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if isinstance(item, BaseException):
            raise item
        return item

    async def close(self):
        return None


@pytest.fixture
def make_transport():
    return ScriptedTransport


@pytest.fixture
def settings():
    return Settings(_env_file=None)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def simulated_transport():
    return SimulatedTransport()


@pytest.fixture
def resilient_client(settings, simulated_transport, clock, recording_sleep):
    limiter = SlidingWindowRateLimiter(
        max_requests=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
        clock=clock,
    )
    return ResilientClient(
        simulated_transport,
        limiter,
        max_attempts=settings.max_retry_attempts,
        backoff_schedule=settings.backoff_schedule_seconds,
        sleep=recording_sleep,
    )


@pytest.fixture
def customer():
    return CustomerProfile(
        customer_id="CUST-001",
        full_name="John Doe",
        date_of_birth="1990-05-15",
        email="john.doe@example.com",
        phone="+1-555-123-4567",
        address="123 Main Street, New York, NY 10001",
        nationality="US",
        document_type="PASSPORT",
        document_number="AB1234567",
        document_expiry_date=(TODAY + timedelta(days=3 * 365)).isoformat(),
        document_image_url="https://example.com/docs/passport.jpg",
        selfie_url="https://example.com/selfie.jpg",
        id_photo_url="https://example.com/id_photo.jpg",
        proof_type="UTILITY_BILL",
        proof_date=(TODAY - timedelta(days=10)).isoformat(),
        proof_url="https://example.com/proof.pdf",
    )


@pytest.fixture
def customer_with():
    """Build a variant of the default customer: customer_with(base, proof_date=...)."""

    def _build(base: CustomerProfile, **overrides) -> CustomerProfile:
        return replace(base, **overrides)

    return _build


@pytest.fixture
def today():
    return TODAY
