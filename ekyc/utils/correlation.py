"""
Correlation identifiers for orchestration runs.

Each run gets one id, bound into structlog's context variables so every log
line emitted while the run is in progress carries ``correlation_id``.
asyncio tasks copy the context at creation, so concurrent runs stay isolated.
"""

import uuid
from collections.abc import Iterator
from contextlib import contextmanager

import structlog

CORRELATION_ID_KEY = "correlation_id"


def generate_correlation_id() -> str:
    """Return a new id such as ``REQ-1A2B3C4D``."""
    return "REQ-" + uuid.uuid4().hex[:8].upper()


def current_correlation_id() -> str | None:
    return structlog.contextvars.get_contextvars().get(CORRELATION_ID_KEY)


@contextmanager
def bind_correlation_id(correlation_id: str) -> Iterator[str]:
    with structlog.contextvars.bound_contextvars(**{CORRELATION_ID_KEY: correlation_id}):
        yield correlation_id
