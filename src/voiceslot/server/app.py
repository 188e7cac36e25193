"""FastAPI application factory for the voice slot scheduler.

The app owns the single ``CallScheduler`` instance (on ``app.state``) and
its ElevenLabs client. The lifespan starts the tick timer and, on
shutdown, stops it and closes the HTTP client.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from voiceslot import __version__
from voiceslot.core.logging import get_logger
from voiceslot.daemon.config import SchedulerConfig, warn_missing_settings
from voiceslot.daemon.scheduler import CallScheduler
from voiceslot.elevenlabs.client import ElevenLabsClient

_logger = get_logger("server.app")

SERVICE_NAME = "voice-slot-scheduler"


def get_scheduler(request: Request) -> CallScheduler:
    """Dependency returning the app's scheduler.

    Raises:
        RuntimeError: If the app was not built by ``create_app()``.
    """
    scheduler: CallScheduler | None = getattr(request.app.state, "scheduler", None)
    if scheduler is None:
        raise RuntimeError("Scheduler not configured. Use create_app().")
    return scheduler


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Start the tick timer on startup; stop it and close clients on shutdown."""
    scheduler: CallScheduler = app.state.scheduler
    warn_missing_settings(scheduler.config)
    await scheduler.start()
    try:
        yield
    finally:
        await scheduler.stop()
        client: ElevenLabsClient | None = getattr(app.state, "elevenlabs_client", None)
        if client is not None:
            await client.close()


async def _invalid_request_handler(
    request: Request, exc: RequestValidationError,
) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"detail": "Invalid payload", "errors": jsonable_encoder(exc.errors())},
    )


def create_app(
    config: SchedulerConfig | None = None,
    scheduler: CallScheduler | None = None,
    title: str = "Voice Slot Scheduler",
    version: str = __version__,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: Scheduler configuration (defaults when omitted). Ignored
            when ``scheduler`` is given.
        scheduler: Pre-built scheduler (tests inject fakes this way).
            When omitted, one is built around an ``ElevenLabsClient``.
        title: API title for OpenAPI docs.
        version: API version.

    Returns:
        Configured FastAPI application.
    """
    app = FastAPI(
        title=title,
        version=version,
        description="Admission control for outbound ElevenLabs calls",
        lifespan=lifespan,
    )

    if scheduler is None:
        config = config or SchedulerConfig()
        client = ElevenLabsClient(config.elevenlabs)
        scheduler = CallScheduler(config, oracle=client, gateway=client)
        app.state.elevenlabs_client = client
    app.state.scheduler = scheduler

    app.add_exception_handler(RequestValidationError, _invalid_request_handler)  # type: ignore[arg-type]

    from voiceslot.server.routes import router
    app.include_router(router)

    @app.get("/health", tags=["System"])
    async def health_check() -> dict[str, Any]:
        """Liveness check."""
        return {
            "status": "healthy",
            "version": version,
            "service": SERVICE_NAME,
        }

    @app.get("/", tags=["System"])
    async def root() -> dict[str, Any]:
        return {"name": SERVICE_NAME, "version": version}

    return app
