import asyncio
import logging
import uuid
from contextlib import asynccontextmanager
from contextvars import ContextVar
from datetime import datetime, UTC
from typing import Any, Dict

import sentry_sdk
from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from config import ENABLE_RATE_LIMITING, ERROR_TRACKING_DSN
from limiter import limiter
from src import __version__
from src.api.v1 import get_db, register_routes
from src.core.repositories.models import Base
from src.infrastructure.database import engine
from src.shared.exceptions import AppError, ErrorResponse

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30.0

# Correlation id of the request being served, "-" outside a request
_correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="-")

START_TIME = datetime.now(UTC)


class CorrelationIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        record.correlation_id = _correlation_id_var.get()
        return True


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Set up logging and error tracking, then create the ticket tables."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(correlation_id)s - %(name)s - %(message)s",
    )
    for handler in logging.getLogger().handlers:
        handler.addFilter(CorrelationIdFilter())

    if ERROR_TRACKING_DSN:
        sentry_sdk.init(dsn=ERROR_TRACKING_DSN)
        logger.info("Sentry error tracking enabled")

    global START_TIME
    START_TIME = datetime.now(UTC)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Ticket store ready")

    yield

    await engine.dispose()


app = FastAPI(
    title="Helpdesk Ticket Listing API",
    version=__version__,
    lifespan=lifespan,
)
app.state.limiter = limiter

if ENABLE_RATE_LIMITING:
    app.add_middleware(SlowAPIMiddleware)


@app.middleware("http")
async def add_correlation_id(request: Request, call_next):
    """Tag log records and the response with the caller's request id."""
    correlation_id = (
        request.headers.get("X-Request-ID")
        or request.headers.get("X-Correlation-ID")
        or uuid.uuid4().hex
    )
    token = _correlation_id_var.set(correlation_id)
    try:
        response = await call_next(request)
        response.headers["X-Request-ID"] = correlation_id
        response.headers["X-Correlation-ID"] = correlation_id
        return response
    finally:
        _correlation_id_var.reset(token)


@app.middleware("http")
async def request_timeout(request: Request, call_next):
    """Give up on a listing that outlives REQUEST_TIMEOUT seconds."""
    try:
        return await asyncio.wait_for(call_next(request), timeout=REQUEST_TIMEOUT)
    except asyncio.TimeoutError:
        logger.warning("Request timeout for %s %s", request.method, request.url.path)
        return _json_error(
            504,
            ErrorResponse(
                error_code="TIMEOUT",
                message=f"Request took longer than {REQUEST_TIMEOUT} seconds",
                timestamp=datetime.now(UTC),
            ),
        )


def _json_error(status_code: int, resp: ErrorResponse) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=jsonable_encoder(resp))


@app.exception_handler(RateLimitExceeded)
async def handle_rate_limit(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        status_code=429,
        content={"detail": "Rate limit exceeded. Please try again later."},
    )


@app.exception_handler(AppError)
async def handle_app_error(request: Request, exc: AppError):
    """NotFoundError → 404, ValidationError → 400, DatabaseError → 500."""
    return _json_error(exc.status_code, exc.to_response(datetime.now(UTC)))


@app.exception_handler(Exception)
async def handle_unexpected(request: Request, exc: Exception):
    logger.exception(
        "Unhandled exception during request to %s %s",
        request.method,
        request.url.path,
    )
    resp = ErrorResponse(
        error_code="UNEXPECTED_ERROR",
        message=str(exc) or "Internal server error",
        timestamp=datetime.now(UTC),
    )
    return _json_error(500, resp)


register_routes(app)


@app.get("/health", tags=["system"])
async def health(db: AsyncSession = Depends(get_db)) -> Dict[str, Any]:
    """Report uptime and whether the ticket store answers."""
    checks: Dict[str, Any] = {}
    status = "healthy"
    try:
        await asyncio.wait_for(db.execute(text("SELECT 1")), timeout=5.0)
        checks["database"] = {"status": "healthy"}
    except asyncio.TimeoutError:
        checks["database"] = {"status": "timeout"}
        status = "degraded"
        logger.warning("Database health check timed out")
    except Exception as e:
        checks["database"] = {"status": "unhealthy", "error": str(e)}
        status = "unhealthy"
        logger.error("Database health check failed: %s", e)

    return {
        "status": status,
        "timestamp": datetime.now(UTC).isoformat(),
        "version": __version__,
        "uptime": (datetime.now(UTC) - START_TIME).total_seconds(),
        "checks": checks,
    }


@app.get("/", tags=["system"])
async def root() -> Dict[str, Any]:
    return {
        "name": app.title,
        "version": __version__,
        "tickets_url": "/tickets",
        "health_url": "/health",
    }
