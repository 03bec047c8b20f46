"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.responses import PlainTextResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from promptrelay.config import get_settings
from promptrelay.utils.logging import setup_logging

# Configure logging with file output
settings = get_settings()
setup_logging(level=settings.log_level, log_dir=settings.log_dir)
logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Authorization, Content-Type",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup/shutdown events."""
    from promptrelay.api.deps import get_content_cache, get_orchestrator
    from promptrelay.services.scheduler import UpdateScheduler

    # Startup
    logger.info(f"Starting application in {settings.environment} mode")
    scheduler = None
    if settings.schedule_enabled:
        scheduler = UpdateScheduler(
            get_orchestrator(),
            interval_seconds=settings.update_interval_seconds,
            cache=get_content_cache(),
            run_on_startup=settings.update_on_startup,
        )
        scheduler.start()
    else:
        logger.info("Scheduled updates disabled")
    yield
    # Shutdown
    if scheduler is not None:
        await scheduler.stop()
    logger.info("Shutting down application")


# Create FastAPI app
app = FastAPI(
    title="Prompt Relay API",
    description="Serves periodically generated LLM content",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
)


@app.middleware("http")
async def cors_headers(request: Request, call_next):
    """Answer preflight requests and add CORS headers to every response."""
    if request.method == "OPTIONS":
        return Response(status_code=204, headers=CORS_HEADERS)
    try:
        response = await call_next(request)
    except Exception as e:
        # Unhandled errors (e.g. a cache backend that cannot be built) still carry CORS
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return PlainTextResponse(
            f"Internal server error: {e}\n",
            status_code=500,
            headers=CORS_HEADERS,
        )
    response.headers.update(CORS_HEADERS)
    return response


# Import and include routers
from promptrelay.api import content  # noqa: E402

# Attach rate limiter to app
app.state.limiter = content.limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.include_router(content.router, tags=["Content"])
