"""
GolfCompete API Server

FastAPI server for golf series, events, rounds, courses and handicaps.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging
import os
import uvicorn
from slowapi import _rate_limit_exceeded_handler  # type: ignore
from slowapi.errors import RateLimitExceeded  # type: ignore

from golfcompete.api.responses import CODE_BY_STATUS, ApiError, error_response, success_response
from golfcompete.api.routes import router, limiter as routes_limiter
from golfcompete.database import db
from golfcompete.services import settings_service
from golfcompete.services.errors import ErrorCodes

# Set up logging
# Allow log level to be configured via environment variable (default: INFO)
log_level = os.getenv("LOG_LEVEL", "INFO").upper()
numeric_level = getattr(logging, log_level, logging.INFO)
logging.basicConfig(
    level=numeric_level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan handler for startup and shutdown events."""
    logger.info("Starting up GolfCompete API...")

    missing = settings_service.validate_settings()
    if missing:
        logger.error(f"Missing required settings: {', '.join(missing)}")

    # Create tables that migrations have not created yet
    try:
        await db.init_database()
        logger.info("Database initialized")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}", exc_info=True)
        # Don't raise - allow app to start so /api/health can report

    yield  # App is running

    logger.info("Shutting down GolfCompete API...")
    await db.engine.dispose()


app = FastAPI(
    title="GolfCompete API",
    description="API for golf series, events, rounds, courses and handicaps",
    version="1.0.0",
    lifespan=lifespan,
)

# Setup rate limiter
app.state.limiter = routes_limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Add CORS middleware - origins configured via ALLOWED_ORIGINS env var
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings_service.get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    return error_response(exc.status_code, exc.message, exc.code)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return error_response(
        400,
        "Request validation failed",
        ErrorCodes.VALIDATION_ERROR,
        details=jsonable_encoder(exc.errors(), exclude={"ctx"}),
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    code = CODE_BY_STATUS.get(exc.status_code, ErrorCodes.INTERNAL_SERVER_ERROR)
    response = error_response(exc.status_code, str(exc.detail), code)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return error_response(500, "Internal server error", ErrorCodes.INTERNAL_SERVER_ERROR)


# Include API routes
app.include_router(router)


@app.get("/api/health")
async def health_check():
    """Liveness probe."""
    return success_response({"service": "golfcompete-api", "status": "ok"})


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
