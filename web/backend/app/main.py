"""FastAPI application for the Blotter records portal.

Provides REST API endpoints for:
- Officer signup (after Discord verification), login and profiles
- Filing citations and arrest reports (mirrored to a Discord channel)
- Admin moderation of users, records and username lists
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from blotter import __version__, settings
from blotter.auth.oauth import VerificationLedger
from blotter.discord.sink import DiscordSink, NotificationSink
from blotter.errors import AdmissionError, ProtectedUserError, RecordValidationError, StorageError
from blotter.logging_setup import configure_logging
from blotter.services.accounts import AccountService
from blotter.services.reports import ReportService
from blotter.storage import RecordStore
from web.backend.app.routers import admin, arrests, auth, citations

logger = logging.getLogger(__name__)

_ADMISSION_STATUS = {
    "credentials": status.HTTP_401_UNAUTHORIZED,
    "terminated": status.HTTP_403_FORBIDDEN,
    "blocked": status.HTTP_403_FORBIDDEN,
}


def create_app(
    records: Optional[RecordStore] = None,
    sink: Optional[NotificationSink] = None,
    data_dir: Optional[Path] = None,
) -> FastAPI:
    """Build the app. ``records`` and ``sink`` are opened from settings when omitted."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging()
        store = records if records is not None else RecordStore.open(data_dir)
        owns_sink = sink is None
        active_sink = DiscordSink.from_settings() if owns_sink else sink

        app.state.records = store
        app.state.reports = ReportService(store, active_sink, timeout=settings.DISCORD_TIMEOUT)
        app.state.accounts = AccountService(store)
        app.state.verifications = VerificationLedger()
        logger.info("Blotter API started with data in %s", store.base_dir)
        try:
            yield
        finally:
            if owns_sink and active_sink is not None:
                await active_sink.aclose()
            store.close()

    app = FastAPI(
        title="Blotter API",
        description=(
            "REST API for the Blotter records portal. "
            "Provides endpoints for officer accounts, citations, arrest reports "
            "and admin moderation."
        ),
        version=__version__,
        lifespan=lifespan,
    )

    # -----------------------------------------------------------------------
    # CORS middleware (allow all origins for development)
    # -----------------------------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -----------------------------------------------------------------------
    # Domain errors
    # -----------------------------------------------------------------------

    @app.exception_handler(RecordValidationError)
    async def record_validation_error(request: Request, exc: RecordValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": str(exc), "field": exc.field},
        )

    @app.exception_handler(ProtectedUserError)
    async def protected_user_error(request: Request, exc: ProtectedUserError):
        return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content={"detail": str(exc)})

    @app.exception_handler(AdmissionError)
    async def admission_error(request: Request, exc: AdmissionError):
        return JSONResponse(
            status_code=_ADMISSION_STATUS.get(exc.reason, status.HTTP_400_BAD_REQUEST),
            content={"detail": str(exc), "reason": exc.reason},
        )

    @app.exception_handler(StorageError)
    async def storage_error(request: Request, exc: StorageError):
        logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Failed to save changes"},
        )

    # -----------------------------------------------------------------------
    # Include routers
    # -----------------------------------------------------------------------
    app.include_router(auth.router)
    app.include_router(citations.router)
    app.include_router(arrests.router)
    app.include_router(admin.router)

    # -----------------------------------------------------------------------
    # Root and health-check endpoints
    # -----------------------------------------------------------------------

    @app.get("/", tags=["meta"])
    async def root():
        """Return basic API information."""
        return {
            "name": "Blotter API",
            "version": __version__,
            "description": "Citation and arrest report portal REST API",
            "docs": "/docs",
            "openapi": "/openapi.json",
        }

    @app.get("/health", tags=["meta"])
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app
