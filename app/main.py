"""RetroScreen FastAPI application.

Picks the classic screening featured each day by the social media
automation, and serves that decision.
"""

import logging
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.api.routes import config, health, instagram
from app.config import get_settings

settings = get_settings()

logging.basicConfig(format="%(message)s", level=settings.log_level.upper())

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("starting_retroscreen", version="0.1.0", timezone=settings.timezone)
    yield
    logger.info("shutting_down_retroscreen")


app = FastAPI(
    title="RetroScreen",
    description="Daily classic-screening candidate selection",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(health.router)
app.include_router(instagram.router)
app.include_router(config.router)


@app.exception_handler(Exception)
async def server_error_handler(request: Request, exc: Exception):
    """Log unhandled errors and return a bare 500."""
    logger.error("server_error", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})
