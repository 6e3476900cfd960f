"""
RequestContext Middleware - Adds request tracking to all requests.

Adds to every request:
- request_id: Unique ID for request tracing (request.state.request_id)

The id is bound into structlog context for the duration of the request and
returned in the X-Request-ID response header.
"""

import uuid

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from ekyc.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Attach a request id and echo it as X-Request-ID."""

    async def dispatch(self, request: Request, call_next):
        """Process request and add context."""
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = request_id

        with structlog.contextvars.bound_contextvars(request_id=request_id):
            logger.debug(
                "Request started",
                method=request.method,
                path=request.url.path,
            )
            response = await call_next(request)

        response.headers["X-Request-ID"] = request_id
        return response
