"""FastAPI application setup"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Callable, Optional
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from mindshift.api.models import ErrorResponse
from mindshift.api.routes import router
from mindshift.api.middleware import setup_cors, setup_rate_limiting
from mindshift.config import LOG_LEVEL
from mindshift.db import create_store
from mindshift.db.postgres_store import PostgresStore
from mindshift.db.schema import create_schema
from mindshift.db.store import ProgressionStore
from mindshift.exceptions import (
    MindShiftError,
    ValidationError,
    AuthenticationError,
    AuthorizationError,
    LimitExceededError,
    ConflictError,
    RecordNotFoundError,
    DatabaseError,
)
from mindshift.services.container import init_container, reset_container
from mindshift.utils.datetime_helpers import now_utc

# Configure logging
logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=getattr(logging, LOG_LEVEL)
)

logger = logging.getLogger(__name__)

# Most specific first
ERROR_STATUS_CODES = (
    (ValidationError, 422),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (LimitExceededError, 403),
    (RecordNotFoundError, 404),
    (ConflictError, 409),
)


def status_code_for(exc: MindShiftError) -> int:
    """HTTP status for an application error"""
    for error_type, code in ERROR_STATUS_CODES:
        if isinstance(exc, error_type):
            return code
    if isinstance(exc, DatabaseError) and exc.retryable:
        return 503
    return 500


def create_api_application(
    store: Optional[ProgressionStore] = None,
    clock: Callable[[], datetime] = now_utc
) -> FastAPI:
    """
    Create and configure FastAPI application

    Args:
        store: Progression store (defaults to the configured backend)
        clock: Returns the current UTC instant
    """
    store = store or create_store()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifecycle manager for FastAPI application"""
        # Startup
        logger.info("Starting API server...")
        if isinstance(store, PostgresStore):
            await store.database.init_pool()
            logger.info("Database pool initialized")
            await create_schema(store.database)

        yield

        # Shutdown
        logger.info("Shutting down API server...")
        if isinstance(store, PostgresStore):
            await store.database.close_pool()
            logger.info("Database pool closed")
        reset_container()

    app = FastAPI(
        title="MindShift API",
        description="Progression engine for affirmation practice: XP, levels, streaks and badges",
        version="1.0.0",
        lifespan=lifespan
    )

    # Services
    init_container(store, clock)

    # Setup middleware
    setup_cors(app)
    setup_rate_limiting(app)

    # Include routes
    app.include_router(router)

    @app.exception_handler(MindShiftError)
    async def mindshift_exception_handler(request: Request, exc: MindShiftError):
        code = status_code_for(exc)
        if code >= 500:
            logger.error(f"{exc.__class__.__name__} on {request.url.path}: {exc.message}")
        return JSONResponse(status_code=code, content=ErrorResponse(**exc.to_dict()).model_dump(exclude_none=True))

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request, exc):
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "detail": str(exc)}
        )

    logger.info("FastAPI application created")

    return app
