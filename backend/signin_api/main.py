from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import inspect

from signin_api import __version__
from signin_api.config import settings
from signin_api.database import engine
from signin_api.logging_config import setup_logging
from signin_api.middleware.logging import CORRELATION_HEADER, LoggingMiddleware
from signin_api.middleware.rate_limit import limiter
from signin_api.routers import sessions, signin
from signin_api.scheduler import shutdown_scheduler, start_scheduler
from signin_api.services.alert_service import send_error_alert

setup_logging()
logger = structlog.get_logger()

# Database tables are managed by Alembic migrations
# Run: alembic upgrade head
REQUIRED_TABLES = {"signin_challenges", "session_tokens"}


def check_database_tables() -> None:
    """Fail fast if migrations have not been applied."""
    existing = set(inspect(engine).get_table_names())
    missing = REQUIRED_TABLES - existing
    if missing:
        raise RuntimeError(
            f"Database tables missing: {', '.join(sorted(missing))}. "
            "Run `alembic upgrade head` before starting the API."
        )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Check the schema, then start/stop the cleanup scheduler."""
    check_database_tables()
    start_scheduler()
    logger.info("api_started", version=__version__, network=settings.network)
    yield
    shutdown_scheduler()
    logger.info("api_stopped")


app = FastAPI(
    title="Sign-in API",
    description="Challenge/response sign-in for Symbol accounts",
    version=__version__,
    lifespan=lifespan,
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log and alert on unexpected errors; never leak details to the caller."""
    correlation_id = getattr(request.state, "correlation_id", None)
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        error_type=type(exc).__name__,
        error=str(exc),
    )
    await send_error_alert(
        type(exc).__name__,
        str(exc),
        path=request.url.path,
        correlation_id=correlation_id,
        status_code=500,
    )
    headers = {CORRELATION_HEADER: correlation_id} if correlation_id else None
    return JSONResponse(
        status_code=500, content={"detail": "Internal Server Error"}, headers=headers
    )


# Request logging + correlation IDs
app.add_middleware(LoggingMiddleware)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(signin.router, prefix="/api/v1", tags=["sign-in"])
app.include_router(sessions.router, prefix="/api/v1", tags=["sessions"])


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
