"""
FastAPI application setup for the trip route planner.
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
import logging
import time
import uuid
from contextlib import asynccontextmanager

from tripplanner.config import get_settings
from tripplanner.core.logging import configure_logging
from tripplanner.core.error_handlers import setup_error_handlers
from tripplanner.api import route_router, health_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log startup and shutdown."""
    settings = get_settings()
    logger.info(
        f"Starting {settings.app_name} v{settings.app_version}",
        extra={'environment': settings.environment.value}
    )
    yield
    logger.info("Shutting down application")


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application.

    Returns:
        FastAPI: Configured application instance
    """
    settings = get_settings()
    configure_logging(settings.log_level.value)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        **settings.get_cors_config()
    )

    setup_error_handlers(app)

    @app.middleware("http")
    async def logging_middleware(request: Request, call_next):
        """Log requests and responses with timing information."""
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        start_time = time.time()
        response = await call_next(request)
        processing_time = (time.time() - start_time) * 1000

        logger.info(
            f"Request {request_id}: {request.method} {request.url.path} -> "
            f"{response.status_code} ({processing_time:.2f}ms)",
            extra={
                'request_id': request_id,
                'method': request.method,
                'path': request.url.path,
                'status_code': response.status_code,
                'processing_time_ms': processing_time
            }
        )
        response.headers["X-Request-ID"] = request_id
        return response

    app.include_router(route_router)
    app.include_router(health_router)

    return app


# Create application instance
app = create_app()
