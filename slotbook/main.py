"""Main FastAPI application."""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from starlette.exceptions import HTTPException as StarletteHTTPException

from slotbook.api import signup
from slotbook.core.config import settings
from slotbook.core.errors import (
    MSG_METHOD_NOT_ALLOWED,
    MSG_UNEXPECTED,
    STATUS_INTERNAL_ERROR,
    STATUS_METHOD_NOT_ALLOWED,
    SignupError,
    error_response,
)
from slotbook.core.logging_config import configure_logging
from slotbook.core.security_headers import SecurityHeadersMiddleware, with_security_headers
from slotbook.services.scheduler import MaintenanceScheduler
from slotbook.services.state import ServerState, build_state

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


def create_app(state: Optional[ServerState] = None) -> FastAPI:
    """Build the application around one ServerState."""
    state = state or build_state()
    scheduler = MaintenanceScheduler(state)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        # Startup
        logger.info("Starting slot signup service")
        logger.info(f"Timezone: {settings.TIMEZONE}")
        await scheduler.start()

        yield

        # Shutdown
        logger.info("Shutting down slot signup service")
        await scheduler.stop()

    app = FastAPI(
        title="Slot Signup",
        description="Book, look up and cancel time slots backed by a Google Sheet",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.server = state
    app.state.scheduler = scheduler

    app.add_middleware(SecurityHeadersMiddleware)

    @app.exception_handler(SignupError)
    async def signup_error_handler(request, exc: SignupError):
        return error_response(exc.status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request, exc: StarletteHTTPException):
        if exc.status_code == STATUS_METHOD_NOT_ALLOWED:
            return error_response(exc.status_code, MSG_METHOD_NOT_ALLOWED)
        return error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request, exc: Exception):
        logger.error(f"Unhandled error: {exc}", exc_info=True)
        # sent from outside the middleware stack
        return with_security_headers(error_response(STATUS_INTERNAL_ERROR, MSG_UNEXPECTED))

    app.include_router(signup.router)

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "scheduler_running": scheduler.running,
        }

    return app


app = create_app()
