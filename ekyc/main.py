"""
Application entry point: FastAPI app with verification component lifecycle.
"""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from ekyc.config import Settings, load_settings
from ekyc.infrastructure.observability.logging import get_logger, log_request, setup_logging
from ekyc.middleware.request_context import RequestContextMiddleware
from ekyc.routes import health, verification
from ekyc.services.orchestrator import VerificationOrchestrator
from ekyc.services.transport.base import Transport
from ekyc.services.transport.httpx_transport import HttpxTransport
from ekyc.services.transport.simulated_transport import SimulatedTransport

logger = get_logger(__name__)


def build_transport(settings: Settings) -> Transport:
    if settings.transport == "http":
        return HttpxTransport()
    return SimulatedTransport()


def create_app(settings: Settings | None = None, transport: Transport | None = None) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Configuration value (default: loaded from environment)
        transport: Transport override (default: chosen by settings.transport)
    """
    settings = settings or load_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Build the verification components once and release them on shutdown."""
        logger.info("Application starting", **settings.summary())

        app_transport = transport or build_transport(settings)
        app.state.settings = settings
        app.state.transport = app_transport
        app.state.orchestrator = VerificationOrchestrator.from_settings(settings, app_transport)

        yield

        logger.info("Application shutting down")
        try:
            await app_transport.close()
        except Exception as e:
            logger.error("Error closing transport", error=str(e))

    app = FastAPI(
        title="eKYC Decision Service",
        description="Aggregates document, biometric, address and sanctions checks into one KYC decision",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(RequestContextMiddleware)
    app.include_router(health.router)
    app.include_router(verification.router)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log HTTP requests with timing."""
        start_time = time.time()
        response = await call_next(request)
        log_request(
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round((time.time() - start_time) * 1000, 2),
            request_id=getattr(request.state, "request_id", None),
        )
        return response

    return app


def main() -> None:
    import uvicorn

    settings = load_settings()
    setup_logging(log_level=settings.log_level)
    uvicorn.run(create_app(settings), host="0.0.0.0", port=8000)


if __name__ == "__main__":
    main()
