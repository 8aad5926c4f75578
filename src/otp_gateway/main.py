"""FastAPI application entry point."""

import asyncio
import contextlib
import logging
import time
from collections.abc import Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from otp_gateway.api.router import MISSING_FIELDS_MESSAGE, otp_response
from otp_gateway.api.router import router as otp_router
from otp_gateway.config import Settings, settings
from otp_gateway.gateways.base import DeliveryGateway
from otp_gateway.gateways.factory import build_gateway
from otp_gateway.ledger.store import OTPLedger

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)

logger = logging.getLogger(__name__)


async def _sweep_forever(ledger: OTPLedger, interval: float) -> None:
    """Periodically drop expired challenges."""
    while True:
        await asyncio.sleep(interval)
        ledger.purge_expired()


def create_app(
    app_settings: Settings | None = None,
    gateway: DeliveryGateway | None = None,
    clock: Callable[[], float] = time.time,
) -> FastAPI:
    """Build the application with its own ledger.

    *gateway* overrides the backend chosen by ``delivery_backend``.
    Requests, the health probe and the sweep all use ``app.state.ledger``.
    """
    app_settings = app_settings or settings
    gateway = gateway or build_gateway(app_settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup / shutdown lifecycle hook."""
        logger.info(
            "Starting %s on port %d (delivery: %s) …",
            app_settings.app_name,
            app_settings.port,
            gateway.name,
        )
        sweeper = None
        if app_settings.sweep_interval_seconds > 0:
            sweeper = asyncio.create_task(
                _sweep_forever(app.state.ledger, app_settings.sweep_interval_seconds)
            )
        yield
        if sweeper is not None:
            sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper
        app.state.ledger.clear()
        logger.info("Shutting down %s …", app_settings.app_name)

    app = FastAPI(
        title=app_settings.app_name,
        description="Issues and verifies email one-time passcodes",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.ledger = OTPLedger(
        gateway,
        ttl_seconds=app_settings.otp_ttl_seconds,
        max_attempts=app_settings.otp_max_attempts,
        delivery_timeout=app_settings.delivery_timeout_seconds,
        clock=clock,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def bad_request(request: Request, exc: RequestValidationError):
        logger.debug("Rejected malformed request to %s: %s", request.url.path, exc.errors())
        return otp_response(400, MISSING_FIELDS_MESSAGE)

    app.include_router(otp_router)

    @app.get("/health")
    async def health_check(request: Request):
        """Simple liveness probe."""
        return {
            "status": "healthy",
            "app": app_settings.app_name,
            "pending_challenges": len(request.app.state.ledger),
        }

    return app


app = create_app()


def run() -> None:
    """Serve the application with uvicorn on the configured port."""
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port, log_level="info")


if __name__ == "__main__":
    run()
