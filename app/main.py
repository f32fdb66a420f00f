"""
Campus Connect Backend API - Main Application
"""
import logging
import sys
import traceback
import uuid
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn

from .core.config import settings
from .core.exceptions import AppError, ValidationError
from .core.rate_limit import limiter
from .database import SessionLocal, init_db
from .api.v1 import api_router
from .schemas.common import ErrorResponse
from .utils.time_utils import to_utc_isoformat, utc_now

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.StreamHandler(sys.stdout),
    ]
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting Campus Connect Backend API")
    try:
        init_db()
        logger.info("Database initialized")
    except Exception as e:
        logger.error(f"Failed to initialize backend: {e}")
        raise

    logger.info(f"Debug mode: {settings.DEBUG}")
    logger.info(f"API running at http://{settings.API_HOST}:{settings.API_PORT}")

    yield

    logger.info("Shutting down Campus Connect Backend API")


# Create FastAPI application
app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Campus social network backend: friends, groups, chat, job postings and applications",
    version="1.0.0",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
    lifespan=lifespan,
    redirect_slashes=False
)

app.state.limiter = limiter

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error(status_code: int, message: str, errors=None, **extra) -> JSONResponse:
    content = ErrorResponse(message=message, errors=errors or None).model_dump(exclude_none=True)
    content.update(extra)
    return JSONResponse(status_code=status_code, content=content)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    """Domain errors raised by the services."""
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
    errors = exc.errors if isinstance(exc, ValidationError) else None
    return _error(exc.status_code, exc.message, errors)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Request body/query validation failures, keyed by field name."""
    errors = {}
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path", "form")]
        field = ".".join(loc) or "request"
        errors.setdefault(field, []).append(error.get("msg", "Invalid value"))
    return _error(422, "Validation failed", errors)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return _error(exc.status_code, str(exc.detail))


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    logger.warning(f"Rate limit exceeded on {request.url.path} from {request.client.host if request.client else '-'}")
    return _error(429, "Too many requests. Please slow down.")


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for unexpected errors."""
    error_id = str(uuid.uuid4())[:8]

    logger.error(
        f"[ERROR_ID: {error_id}] Unhandled exception on {request.method} {request.url.path}",
        exc_info=True
    )

    if settings.DEBUG:
        return _error(
            500,
            str(exc),
            error_id=error_id,
            type=type(exc).__name__,
            path=str(request.url.path),
            traceback=traceback.format_exc()
        )
    return _error(
        500,
        "An internal server error occurred. Please try again later.",
        error_id=error_id
    )


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "service": settings.PROJECT_NAME,
        "version": "1.0.0",
        "status": "running",
        "environment": settings.ENVIRONMENT,
        "docs_url": "/docs" if settings.DEBUG else "disabled",
        "features": [
            "JWT authentication",
            "Friend requests & friendships",
            "Groups with owner/admin/member roles",
            "Direct and group chat",
            "Job postings",
            "Job applications with PDF uploads"
        ]
    }


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        return {
            "status": "healthy",
            "timestamp": to_utc_isoformat(utc_now()),
            "service": "campus-connect-api",
            "version": "1.0.0",
            "services": {
                "database": {
                    "status": "connected",
                    "host": settings.DATABASE_HOST
                }
            }
        }
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        content = {"status": "unhealthy", "services": {"database": {"status": "disconnected"}}}
        if settings.DEBUG:
            content["error"] = str(e)
        return JSONResponse(status_code=503, content=content)
    finally:
        db.close()


app.include_router(api_router, prefix=settings.API_V1_PREFIX)


if __name__ == "__main__":
    uvicorn.run(
        "app.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
