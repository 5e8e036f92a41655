"""
Job Alerts API - FastAPI Application Entry Point.

Hosts the health endpoint and, when the queue backend is reachable, wires
up the alert workers and their recurring schedules at startup.
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.database import close_db, init_db
from app.core.exceptions import APIException
from app.core.logging import RequestIDMiddleware, get_logger, setup_logging
from app.api.routes import api_router
from app.workers.bootstrap import initialize_infrastructure
from app.workers.celery_app import celery_app
from app.workers.queue import QueueService

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler - startup and shutdown."""
    setup_logging()
    logger.info("starting_app", app_name=settings.app_name, env=settings.environment)
    await init_db()
    logger.info("database_initialized")

    queue_service = QueueService(celery_app)
    if initialize_infrastructure(queue_service):
        app.state.queue_service = queue_service
    else:
        # The API stays up without background processing.
        logger.warning("background_processing_disabled")
        app.state.queue_service = None

    yield

    logger.info("shutting_down")
    if app.state.queue_service is not None:
        app.state.queue_service.shutdown()
    await close_db()


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    description="Job alert matching and notification pipeline",
    version=settings.app_version,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan,
)

# Request ID correlation
app.add_middleware(RequestIDMiddleware)

# CORS middleware - explicit methods and headers, not wildcards
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
)


# Exception handlers
@app.exception_handler(APIException)
async def api_exception_handler(request: Request, exc: APIException):
    """Handle custom API exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.code,
            "message": exc.message,
            "details": exc.details,
        },
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions - log full detail, return sanitized message."""
    logger.error(
        "unhandled_exception",
        exc_type=type(exc).__name__,
        exc_message=str(exc),
        path=request.url.path,
        exc_info=True,
    )

    if settings.debug:
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_error",
                "message": str(exc),
            },
        )

    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_error",
            "message": "An unexpected error occurred",
        },
    )


# Include API routes
app.include_router(api_router, prefix=settings.api_prefix)


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint - API info."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs" if settings.debug else None,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )
