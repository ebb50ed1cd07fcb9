"""FastAPI application entry point."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from rq import Worker

from approvebot.api import webhooks
from approvebot.config.settings import settings
from approvebot.queue.config import approve_queue, redis_conn
from approvebot.utils.logging import setup_observability

# Setup logging and observability
setup_observability()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown events."""
    logger.info(f"Starting approve-bot in {settings.environment} environment")
    yield
    logger.info("Shutting down approve-bot")


app = FastAPI(
    title="approve-bot",
    description="Keeps the approved label and status comment of GitHub PRs in sync with /approve and /lgtm commands",
    version="0.1.0",
    lifespan=lifespan,
)

# Instrument FastAPI with Logfire if configured
if settings.logfire_token:
    import logfire

    logfire.instrument_fastapi(app)

app.include_router(webhooks.router)


@app.get("/health")
async def health_check() -> dict[str, str | bool | int]:
    """Health check endpoint with configuration status."""
    redis_connected = False
    queue_size = 0
    active_workers = 0
    try:
        redis_connected = bool(redis_conn.ping())
        queue_size = approve_queue.count
        active_workers = len(Worker.all(connection=redis_conn))
    except Exception:
        logger.exception("Health check: failed to query Redis/queue state")

    return {
        "status": "healthy",
        "environment": settings.environment,
        "version": "0.1.0",
        "github_app_configured": settings.github_app_configured,
        "github_token_configured": bool(settings.github_token),
        "webhook_secret_configured": bool(settings.github_webhook_secret),
        "logfire_enabled": bool(settings.logfire_token),
        "redis_connected": redis_connected,
        "queue_size": queue_size,
        "active_workers": active_workers,
    }


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "message": "approve-bot API",
        "docs": "/docs",
        "health": "/health",
    }
