"""
HookRelay - Durable outbound webhook delivery

FastAPI application entry point.
"""
import asyncio
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

# Import observability modules
from hookrelay.config import settings
from hookrelay.logging_config import configure_logging
from hookrelay.sentry_config import configure_sentry
from hookrelay.middleware.logging import LoggingMiddleware
from hookrelay.routes.metrics import router as metrics_router

# Import route modules
from hookrelay.routes.webhooks import router as webhooks_router

from hookrelay.database import AsyncSessionLocal, engine
from hookrelay.worker import build_iteration, run_worker

# Initialize logging first
configure_logging()

# Initialize Sentry (if SENTRY_DSN is set)
configure_sentry()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Optionally run a delivery worker inside the API process."""
    if not settings.RUN_WORKER_IN_API:
        yield
        await engine.dispose()
        return

    stop = asyncio.Event()
    async with httpx.AsyncClient(timeout=settings.WEBHOOK_TIMEOUT_SECONDS) as client:
        worker = asyncio.create_task(
            run_worker(build_iteration(AsyncSessionLocal, client), stop)
        )
        try:
            yield
        finally:
            stop.set()
            await worker
    await engine.dispose()


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Durable at-least-once outbound webhook delivery with retries",
    lifespan=lifespan,
)

# Add logging middleware
app.add_middleware(LoggingMiddleware)

# Include metrics endpoint FIRST (so it's always available)
app.include_router(metrics_router)

# Include webhook routes
app.include_router(webhooks_router)


@app.get("/")
async def root():
    """Health check endpoint."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running"
    }


@app.get("/health")
async def health():
    """Detailed health check."""
    return {
        "status": "healthy",
        "worker_in_api": settings.RUN_WORKER_IN_API
    }
