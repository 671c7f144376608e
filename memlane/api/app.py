"""FastAPI application factory.

Creates and configures the FastAPI application with middleware,
exception handlers, route registration and the storage lifecycle.
"""

import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

from memlane import __version__
from memlane.api.exceptions import error_status, public_message
from memlane.api.middleware.context import RequestContextMiddleware
from memlane.api.models.errors import ErrorCode, ErrorResponse
from memlane.api.routes import register_routes
from memlane.config import get_settings
from memlane.config.settings import Settings
from memlane.errors import MemlaneError
from memlane.memory.service import ChunkIdGenerator
from memlane.observability.logging import get_logger
from memlane.observability.tracing import setup_tracing
from memlane.session.extraction import create_extractor
from memlane.storage.errors import StoreError
from memlane.storage.factory import create_storage
from memlane.storage.store import Storage

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Own the storage backend for the lifetime of the app.

    A backend passed to create_app() is used as is; otherwise one is built
    from settings and connected here. Either way it is closed on shutdown.
    """
    settings: Settings = app.state.settings

    if app.state.storage is None:
        storage = create_storage(settings.storage)
        await storage.connect()
        app.state.storage = storage

    logger.info("storage_ready", backend=app.state.storage.backend_name())
    try:
        yield
    finally:
        await app.state.storage.close()
        logger.info("storage_closed", backend=app.state.storage.backend_name())


def create_app(
    settings: Settings | None = None,
    storage: Storage | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Configuration; defaults to get_settings()
        storage: Ready-to-use backend; defaults to one built from settings
            at startup

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="memlane",
        description="Long-term memory service: identity facts, keyword memory search, review queue",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.storage = storage
    app.state.chunk_ids = ChunkIdGenerator()
    app.state.extractor = create_extractor(settings.extraction)
    app.state.started_at = time.monotonic()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=settings.api.cors_allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestContextMiddleware)

    _register_exception_handlers(app)

    metrics = settings.observability.metrics
    register_routes(app, metrics_path=metrics.path if metrics.enabled else None)

    tracing = settings.observability.tracing
    if tracing.enabled:
        setup_tracing(
            service_name=tracing.service_name,
            otlp_endpoint=tracing.otlp_endpoint,
            console_export=tracing.console_export,
        )
        FastAPIInstrumentor.instrument_app(app)
        logger.info("opentelemetry_instrumentation_enabled")

    logger.info(
        "app_created",
        debug=settings.debug,
        backend=settings.storage.backend,
    )

    return app


def _error_response(exc: Exception) -> JSONResponse:
    status_code, error_code = error_status(exc)
    body = ErrorResponse(error=public_message(exc), code=error_code)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def _register_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers.

    Every failure answers {"success": false, "error": ..., "code": ...}.
    """

    @app.exception_handler(MemlaneError)
    async def domain_error_handler(request: Request, exc: MemlaneError) -> JSONResponse:
        """Handle validation, policy and review errors raised by services."""
        status_code, error_code = error_status(exc)
        log = logger.error if status_code >= 500 else logger.warning
        log(
            "api_error",
            error_code=error_code.value,
            message=exc.message,
            path=request.url.path,
        )
        return _error_response(exc)

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
        """Handle backend failures without echoing driver details."""
        status_code, error_code = error_status(exc)
        log = logger.error if status_code >= 500 else logger.warning
        log(
            "storage_error",
            error_code=error_code.value,
            error=str(exc),
            error_type=type(exc).__name__,
            path=request.url.path,
        )
        return _error_response(exc)

    @app.exception_handler(TimeoutError)
    async def timeout_handler(request: Request, exc: TimeoutError) -> JSONResponse:
        """Handle an expired request deadline."""
        logger.warning("request_timeout", path=request.url.path)
        return _error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Handle malformed JSON and wrongly typed fields."""
        logger.warning(
            "validation_error",
            fields=[".".join(str(loc) for loc in e["loc"]) for e in exc.errors()],
            path=request.url.path,
        )
        body = ErrorResponse(error="invalid request body", code=ErrorCode.INVALID_REQUEST)
        return JSONResponse(status_code=400, content=body.model_dump(mode="json"))

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception(
            "unexpected_error",
            error=str(exc),
            error_type=type(exc).__name__,
            path=request.url.path,
        )
        body = ErrorResponse(error="An unexpected error occurred", code=ErrorCode.INTERNAL_ERROR)
        return JSONResponse(status_code=500, content=body.model_dump(mode="json"))

    logger.debug("exception_handlers_registered")
