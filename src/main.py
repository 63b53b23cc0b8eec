"""Main FastAPI application."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.gzip import GZipMiddleware
from starlette.middleware.sessions import SessionMiddleware

from src.api.router import addon_router, api_router, backup_router
from src.config import get_settings
from src.constants import SESSION_COOKIE_NAME, SESSION_TIMEOUT_DAYS
from src.db import async_session_maker, init_db
from src.exceptions import AppError
from src.utils.cache import cache
from src.utils.http_client import close_all_clients
from src.utils.logging import get_logger, setup_logging

APP_VERSION = "0.1.0"

settings = get_settings()
setup_logging()
logger = get_logger(__name__)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        # Prevent clickjacking
        response.headers["X-Frame-Options"] = "DENY"
        # Prevent MIME type sniffing
        response.headers["X-Content-Type-Options"] = "nosniff"
        # Referrer policy
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        # HSTS (only in production)
        if settings.is_production:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    # Startup
    await init_db()
    logger.info("Database initialized")

    # Initialize Redis cache
    if not cache.enabled:
        logger.info("REDIS_URL not set - running without caching")
    elif await cache.connect():
        logger.info("Redis cache connected")
    else:
        logger.warning("Redis cache unavailable - running without caching")

    yield

    # Close Redis cache connection
    await cache.close()

    # Close persistent HTTP clients
    await close_all_clients()
    logger.info("Application shutdown complete")


app = FastAPI(
    title=settings.app_name,
    version=APP_VERSION,
    lifespan=lifespan,
)

# Middleware (order matters - first added = last executed)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(GZipMiddleware, minimum_size=500)  # Compress responses > 500 bytes

# CORS for the catalog editor; the addon feed sets its own wildcard header
if settings.is_development:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://localhost:5173", "http://localhost:8080"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
else:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.app_url],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type"],
    )

app.add_middleware(
    SessionMiddleware,
    secret_key=settings.app_secret_key,
    session_cookie=SESSION_COOKIE_NAME,
    max_age=60 * 60 * 24 * SESSION_TIMEOUT_DAYS,
    same_site="lax",
    https_only=settings.is_production,
)

# Routers
app.include_router(api_router)
app.include_router(addon_router)
app.include_router(backup_router)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render application errors as ``{"detail": message}``."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# Store app start time for uptime tracking
_app_start_time = datetime.now(UTC)


@app.get("/health", include_in_schema=True, tags=["monitoring"])
async def health_check() -> JSONResponse:
    """Health check endpoint for monitoring and load balancers.

    Returns:
        JSONResponse with status, uptime, and service health checks.
    """
    health_status = {
        "status": "healthy",
        "timestamp": datetime.now(UTC).isoformat(),
        "uptime_seconds": (datetime.now(UTC) - _app_start_time).total_seconds(),
        "version": APP_VERSION,
        "checks": {},
    }

    # Check database connection
    try:
        async with async_session_maker() as db:
            await db.execute(text("SELECT 1"))
        health_status["checks"]["database"] = {"status": "healthy"}
    except SQLAlchemyError:
        health_status["checks"]["database"] = {"status": "unhealthy"}
        health_status["status"] = "degraded"

    # Redis is optional; only a configured but unreachable cache degrades health
    if not cache.enabled:
        health_status["checks"]["redis"] = {"status": "disabled"}
    else:
        try:
            await cache.ping()
            health_status["checks"]["redis"] = {"status": "healthy"}
        except Exception:
            health_status["checks"]["redis"] = {"status": "unhealthy"}
            health_status["status"] = "degraded"

    status_code = 200 if health_status["status"] == "healthy" else 503
    return JSONResponse(content=health_status, status_code=status_code)
