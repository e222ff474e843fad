"""OrderDesk FastAPI application.

Usage:
    uvicorn app:app_factory --factory --app-dir src --host 0.0.0.0 --port 8000

Configuration comes from environment variables (see ``shared.config``).
Every request runs its commands synchronously in one database transaction;
domain errors are mapped to HTTP status codes here and nowhere else.
"""

from uuid import uuid4

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from protean.exceptions import ValidationError

from catalogue.api import category_router, product_router
from identity.api.routes import router as identity_router
from ordering.api.routes import order_router
from ordering.order.lifecycle import OrderLifecycleService
from shared.config import Settings
from shared.database import Database
from shared.errors import (
    ConcurrentModificationError,
    DuplicateKeyError,
    InsufficientStockError,
    InvalidStateTransitionError,
    NotFoundError,
    OrderDeskError,
    OutOfStockError,
)
from shared.logging import add_context, clear_context, configure_logging

logger = structlog.get_logger(__name__)

# Most specific first; anything unlisted is a client error
_STATUS_CODES = (
    (NotFoundError, 404),
    (ValidationError, 422),
    (OutOfStockError, 400),
    (InsufficientStockError, 400),
    (InvalidStateTransitionError, 400),
    (DuplicateKeyError, 409),
    (ConcurrentModificationError, 409),
)


def status_code_for(exc: OrderDeskError | ValidationError) -> int:
    for error_type, status_code in _STATUS_CODES:
        if isinstance(exc, error_type):
            return status_code
    return 400


def create_app(database: Database | None = None, settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings.from_env()
    database = database or Database.from_settings(settings)

    app = FastAPI(
        title="OrderDesk API",
        description="Orders, line-item stock reservations and the catalogue they draw from",
    )
    app.state.settings = settings
    app.state.database = database
    app.state.order_service = OrderLifecycleService(database, settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next):
        """Bind a request id to every log line emitted while serving the request."""
        request_id = request.headers.get("X-Request-ID") or uuid4().hex
        clear_context()
        add_context(request_id=request_id, method=request.method, path=request.url.path)
        try:
            response = await call_next(request)
        finally:
            clear_context()
        response.headers["X-Request-ID"] = request_id
        return response

    @app.exception_handler(OrderDeskError)
    async def domain_error_handler(request: Request, exc: OrderDeskError):
        status_code = status_code_for(exc)
        logger.info(
            "Request rejected",
            path=request.url.path,
            error=exc.code,
            detail=str(exc),
            status_code=status_code,
        )
        return JSONResponse(
            status_code=status_code,
            content={"error": exc.code, "detail": str(exc), **exc.to_dict()},
        )

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        logger.info("Request rejected", path=request.url.path, error="validation_error", messages=exc.messages)
        return JSONResponse(
            status_code=status_code_for(exc),
            content={"error": "validation_error", "detail": str(exc), "messages": exc.messages},
        )

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error", path=request.url.path)
        return JSONResponse(
            status_code=500,
            content={"error": "internal_error", "detail": "An unexpected error occurred"},
        )

    # -----------------------------------------------------------------------
    # Routers
    # -----------------------------------------------------------------------
    app.include_router(identity_router)
    app.include_router(product_router)
    app.include_router(category_router)
    app.include_router(order_router)

    # -----------------------------------------------------------------------
    # Health
    # -----------------------------------------------------------------------
    @app.get("/health")
    def health():
        return {"status": "ok", "environment": settings.env}

    return app


def app_factory() -> FastAPI:
    """Entry point for ``uvicorn --factory``: configures logging, then builds the app."""
    settings = Settings.from_env()
    configure_logging(settings)
    return create_app(settings=settings)
