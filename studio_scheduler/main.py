"""
FastAPI application for studio appointment scheduling

Thin HTTP layer - scheduling rules live in services/
"""
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from studio_scheduler.config.settings import get_settings
from studio_scheduler.core.exceptions import (
    ConflictError,
    NotFoundError,
    PersistenceError,
    SchedulingError,
    ValidationError,
)
from studio_scheduler.core.middleware import correlation_id_middleware, request_logging_middleware
from studio_scheduler.core.monitoring import health_router
from studio_scheduler.api.v1.router import api_v1_router
from studio_scheduler.utils.my_logging import setup_logging

settings = get_settings()
logger = logging.getLogger(__name__)

# Most specific first; the code tells the UI "slot taken" apart from "try again"
ERROR_RESPONSES = (
    (ValidationError, 422, "validation_error"),
    (NotFoundError, 404, "not_found"),
    (ConflictError, 409, "slot_unavailable"),
    (PersistenceError, 503, "persistence_error"),
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    setup_logging()
    logger.info(f"{settings.APP_NAME} starting up (debug={settings.DEBUG})")
    yield
    logger.info(f"{settings.APP_NAME} shutting down")


async def scheduling_error_handler(request: Request, exc: SchedulingError):
    """Map domain errors to JSON responses"""
    status_code, code = 500, exc.code
    for error_class, mapped_status, mapped_code in ERROR_RESPONSES:
        if isinstance(exc, error_class):
            status_code, code = mapped_status, mapped_code
            break

    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected ({exc.code}): {exc.message}")

    content = exc.to_dict()
    content["code"] = code
    content["error_type"] = exc.code
    content["correlation_id"] = getattr(request.state, "correlation_id", None)
    return JSONResponse(status_code=status_code, content=content)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""

    app = FastAPI(
        title=settings.APP_NAME,
        description="Appointment scheduling for salons and studios",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "PUT"],
        allow_headers=["*"],
    )

    # Registered in reverse: correlation id is set before the request is logged
    app.middleware("http")(request_logging_middleware)
    app.middleware("http")(correlation_id_middleware)

    app.add_exception_handler(SchedulingError, scheduling_error_handler)

    # Include routers
    app.include_router(health_router, prefix="/health", tags=["monitoring"])
    app.include_router(api_v1_router, prefix="/api/v1", tags=["api"])

    @app.get("/")
    async def root():
        return {
            "service": settings.APP_NAME,
            "version": "0.1.0",
            "status": "running",
            "endpoints": {
                "api": "/api/v1/",
                "health": "/health",
                "docs": "/docs" if settings.DEBUG else "disabled"
            }
        }

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "studio_scheduler.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level="info"
    )
