"""
Transport Domain Models
Raw per-attempt replies from a verification service and their classification.
"""

from dataclasses import dataclass
from enum import StrEnum


class ResponseClass(StrEnum):
    """Classification of one attempt; decides retry eligibility."""

    SUCCESS = "success"
    CLIENT_ERROR = "client_error"
    SERVER_ERROR = "server_error"
    TIMEOUT = "timeout"
    TRANSPORT_FAILURE = "transport_failure"

    @property
    def retryable(self) -> bool:
        return self in _RETRYABLE


_RETRYABLE = frozenset(
    {ResponseClass.SERVER_ERROR, ResponseClass.TIMEOUT, ResponseClass.TRANSPORT_FAILURE}
)


@dataclass(frozen=True, slots=True)
class RawResponse:
    """
    Reply to one transport attempt.

    Exactly one of a status code, ``timed_out`` or ``transport_error`` is set.
    """

    status_code: int | None = None
    body: str | None = None
    timed_out: bool = False
    transport_error: BaseException | None = None

    @classmethod
    def ok(cls, body: str, status_code: int = 200) -> "RawResponse":
        return cls(status_code=status_code, body=body)

    @classmethod
    def error(cls, status_code: int, body: str | None = None) -> "RawResponse":
        return cls(status_code=status_code, body=body)

    @classmethod
    def timeout(cls) -> "RawResponse":
        return cls(timed_out=True)

    @classmethod
    def failure(cls, error: BaseException) -> "RawResponse":
        return cls(transport_error=error)

    @property
    def response_class(self) -> ResponseClass:
        if self.transport_error is not None:
            return ResponseClass.TRANSPORT_FAILURE
        if self.timed_out:
            return ResponseClass.TIMEOUT
        code = self.status_code
        if code is None:
            return ResponseClass.TRANSPORT_FAILURE
        if 200 <= code < 300:
            return ResponseClass.SUCCESS
        if 500 <= code < 600:
            return ResponseClass.SERVER_ERROR
        # 4xx and anything unexpected (1xx/3xx) are not retried
        return ResponseClass.CLIENT_ERROR

    @property
    def is_success(self) -> bool:
        return self.response_class is ResponseClass.SUCCESS

    def __repr__(self) -> str:
        return (
            f"RawResponse(status_code={self.status_code}, timed_out={self.timed_out}, "
            f"has_body={self.body is not None}, has_error={self.transport_error is not None})"
        )
