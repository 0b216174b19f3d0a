"""
FastAPI Application Entry Point.

Creates the FastAPI application, registers the routers and ties the
scheduler's lifetime to the application's: the dispatcher thread and worker
pool start with the app and are stopped (in-flight jobs allowed to finish)
when it shuts down.

Usage:
    # Run with uvicorn
    uvicorn tts_jobs.main:app --host 0.0.0.0 --port 3000

    # Or the installed script
    tts-jobs-server
"""

from __future__ import annotations

import os
from contextlib import asynccontextmanager
from typing import Callable, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from tts_jobs import __version__
from tts_jobs.api.dependencies import get_tts_service
from tts_jobs.api.jobs import router as jobs_router
from tts_jobs.api.routes import router
from tts_jobs.core.errors import ValidationError
from tts_jobs.core.logging import configure_logging
from tts_jobs.services.tts_service import TTSService


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Malformed bodies get the same error shape as rejected content
    err = ValidationError("Invalid request body", details={"errors": exc.errors()})
    return JSONResponse(status_code=400, content=jsonable_encoder(err.to_dict()))


def create_app(service: Optional[TTSService] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        service: Use this service instead of the process-wide singleton.
            Tests pass one built around a fake synthesis client.

    Returns:
        FastAPI: Configured application instance ready to serve requests.
    """
    # Initialize structured logging (reads TTS_JOBS_LOG_LEVEL env var)
    configure_logging()

    provider: Callable[[], TTSService] = get_tts_service
    if service is not None:
        provider = lambda: service  # noqa: E731

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        svc = provider()
        svc.start()
        try:
            yield
        finally:
            svc.stop()

    app = FastAPI(title="tts-jobs", version=__version__, lifespan=lifespan)

    if service is not None:
        app.dependency_overrides[get_tts_service] = provider

    app.include_router(router)        # /, /health, /voices, /tts/sync, /files, ...
    app.include_router(jobs_router)   # /tts, /job/{id}, /jobs

    app.add_exception_handler(RequestValidationError, _request_validation_handler)

    return app


def run() -> None:
    """Console entry point: serve the global app with uvicorn."""
    uvicorn.run(
        "tts_jobs.main:app",
        host=os.getenv("TTS_JOBS_HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "3000")),
    )


# Global application instance for ASGI servers (uvicorn, gunicorn, etc.)
app = create_app()
