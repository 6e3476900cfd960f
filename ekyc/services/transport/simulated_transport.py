"""
Simulated verification services.

Stands in for the remote document, face-match, address and sanctions
services without any network I/O. Replies are canned per endpoint and can be
overridden per URL; timeouts and server errors can be scripted to exercise
the retry path.
"""

import json
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from ekyc.infrastructure.observability.logging import get_logger
from ekyc.models.domain.transport_domain import RawResponse

logger = get_logger(__name__)

Handler = Callable[[dict[str, Any]], RawResponse]

DEFAULT_REPLIES: dict[str, dict[str, Any]] = {
    "verify-document": {"status": "PASS", "confidence": 92, "reasons": []},
    "face-match": {"status": "PASS", "confidence": 88, "similarity_score": 91},
    "verify-address": {"status": "PASS", "confidence": 85, "reasons": []},
    "check-sanctions": {"status": "CLEAR", "match_count": 0, "matches": []},
}


@dataclass(slots=True)
class RecordedCall:
    endpoint: str
    payload: dict[str, Any]
    timeout_seconds: float


@dataclass(slots=True)
class _FailureScript:
    timeouts: int = 0
    server_errors: int = 0
    server_error_code: int = 503
    transport_errors: int = 0


class SimulatedTransport:
    """In-memory transport with canned replies and scriptable failures."""

    def __init__(self):
        self._handlers: dict[str, Handler] = {}
        self._script = _FailureScript()
        self.calls: list[RecordedCall] = []

    async def raw_call(
        self, endpoint: str, payload: dict[str, Any], timeout_seconds: float
    ) -> RawResponse:
        self.calls.append(RecordedCall(endpoint, dict(payload), timeout_seconds))
        logger.debug("Simulated service call", endpoint=endpoint, timeout_seconds=timeout_seconds)

        if self._script.timeouts > 0:
            self._script.timeouts -= 1
            return RawResponse.timeout()

        if self._script.server_errors > 0:
            self._script.server_errors -= 1
            return RawResponse.error(
                self._script.server_error_code, json.dumps({"error": "Internal Server Error"})
            )

        if self._script.transport_errors > 0:
            self._script.transport_errors -= 1
            raise ConnectionError("Simulated connection reset")

        handler = self._handlers.get(endpoint)
        if handler is not None:
            return handler(payload)

        for fragment, reply in DEFAULT_REPLIES.items():
            if fragment in endpoint:
                return RawResponse.ok(json.dumps(reply))

        return RawResponse.error(404, json.dumps({"error": "Unknown endpoint"}))

    async def close(self) -> None:
        return None

    def register_handler(self, endpoint: str, handler: Handler) -> None:
        """Serve ``endpoint`` from ``handler`` instead of the canned reply."""
        self._handlers[endpoint] = handler

    def register_reply(self, endpoint: str, reply: dict[str, Any], status_code: int = 200) -> None:
        body = json.dumps(reply)
        self.register_handler(endpoint, lambda _payload: RawResponse(status_code=status_code, body=body))

    def clear_handlers(self) -> None:
        self._handlers.clear()

    def simulate_timeouts(self, count: int) -> None:
        """Time out the next ``count`` calls, whatever their endpoint."""
        self._script.timeouts = count

    def simulate_server_errors(self, status_code: int, count: int) -> None:
        self._script.server_error_code = status_code
        self._script.server_errors = count

    def simulate_transport_errors(self, count: int) -> None:
        self._script.transport_errors = count

    def reset_simulations(self) -> None:
        self._script = _FailureScript()

    def calls_to(self, fragment: str) -> list[RecordedCall]:
        return [call for call in self.calls if fragment in call.endpoint]
