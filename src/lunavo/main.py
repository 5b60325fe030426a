# src/lunavo/main.py
"""Main entry point for the Lunavo Signal application."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from lunavo.api.v1 import (
    analysis_router,
    escalations_router,
    notifications_router,
    posts_router,
)
from lunavo.api.v1.dependencies import get_classifier, get_failure_log, get_notifier
from lunavo.core.settings import settings
from lunavo.db.session import create_tables
from lunavo.services.push import get_push_client
from lunavo.services.scheduler import ScheduledDeliveryWorker

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Lunavo Signal API",
    description="Crisis signal detection and priority-aware notification dispatch",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(analysis_router, prefix="/api/v1")
app.include_router(posts_router, prefix="/api/v1")
app.include_router(escalations_router, prefix="/api/v1")
app.include_router(notifications_router, prefix="/api/v1")


@app.on_event("startup")
async def on_startup() -> None:
    create_tables()
    # Fail fast on a malformed rule file.
    get_classifier()
    if settings.scheduler_enabled:
        worker = ScheduledDeliveryWorker(notifier=get_notifier(), failures=get_failure_log())
        await worker.start()
        app.state.delivery_worker = worker
        logger.info("Scheduled delivery worker started")
    else:
        app.state.delivery_worker = None


@app.on_event("shutdown")
async def on_shutdown() -> None:
    worker: ScheduledDeliveryWorker | None = getattr(app.state, "delivery_worker", None)
    if worker:
        await worker.stop()
    await get_push_client().close()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "description": "Crisis signal detection and priority-aware notification dispatch",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("lunavo.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
