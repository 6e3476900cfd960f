"""Transport boundary consumed by the resilient call layer."""

from typing import Any, Protocol

from ekyc.models.domain.transport_domain import RawResponse


class Transport(Protocol):
    """
    Performs one attempt against a verification service.

    Implementations report timeouts and connection problems through the
    returned ``RawResponse`` where they can; anything they raise instead is
    classified as a transport failure by the caller.
    """

    async def raw_call(
        self, endpoint: str, payload: dict[str, Any], timeout_seconds: float
    ) -> RawResponse: ...

    async def close(self) -> None: ...
