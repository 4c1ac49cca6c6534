"""
DAX Store

FastAPI application entry point for the local HTTP API.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from daxstore.api.middleware.request_id import RequestIdMiddleware
from daxstore.api.v1 import router as api_v1_router
from daxstore.config import Settings, get_settings
from daxstore.exceptions import (
    AuditWriteFailed,
    MalformedResource,
    MigrationFailed,
    NotFound,
    PermissionDenied,
    StoreError,
    StoreNotReady,
)
from daxstore.logging_config import configure_logging, get_logger
from daxstore.schemas.common import HealthResponse
from daxstore.store import DataStore, StoreState

logger = get_logger(__name__)

_STATUS_BY_ERROR = (
    (PermissionDenied, status.HTTP_403_FORBIDDEN),
    (NotFound, status.HTTP_404_NOT_FOUND),
    (MalformedResource, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (MigrationFailed, status.HTTP_503_SERVICE_UNAVAILABLE),
    (StoreNotReady, status.HTTP_503_SERVICE_UNAVAILABLE),
    (AuditWriteFailed, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def _error_status(exc: StoreError) -> int:
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _response_headers(request: Request) -> dict:
    req_id = getattr(request.state, "request_id", None)
    return {"X-Request-ID": req_id} if req_id else {}


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[DataStore] = None,
) -> FastAPI:
    """
    Build the application around one DataStore.

    Args:
        settings: Configuration; defaults to the cached environment settings
        store: An existing store to serve; one is created from settings otherwise

    Returns:
        The FastAPI application. The store is initialized on startup and
        closed on shutdown.
    """
    settings = settings or (store.settings if store else get_settings())
    store = store or DataStore(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator:
        configure_logging(
            log_level=settings.log_level,
            environment=settings.environment,
            debug=settings.debug,
        )

        logger.info("Starting %s v%s", settings.project_name, settings.version)
        try:
            await store.initialize()
        except MigrationFailed:
            # Keep serving so /health and every request report the failure
            logger.critical("Serving in failed state; all requests will return 503")

        yield

        logger.info("Shutting down...")
        await store.close()

    app = FastAPI(
        title=settings.project_name,
        description="Permissioned record store for canvas nodes, knowledge graph "
        "entities and links, documents, agent configs and preferences.",
        version=settings.version,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )
    app.state.store = store
    app.state.settings = settings

    app.add_middleware(RequestIdMiddleware)

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError):
        """Map store errors to HTTP status codes."""
        code = _error_status(exc)
        if code >= 500:
            logger.error("Store error: %s", exc)
        content = {"detail": str(exc), "code": type(exc).__name__}
        if isinstance(exc, MalformedResource) and exc.errors:
            content["errors"] = exc.errors
        return JSONResponse(status_code=code, content=content, headers=_response_headers(request))

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=_response_headers(request),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle request validation errors."""
        errors = []
        for error in exc.errors():
            field = ".".join(str(loc) for loc in error["loc"])
            errors.append({
                "field": field,
                "message": error["msg"],
                "type": error["type"],
            })
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": "Validation error", "errors": errors},
            headers=_response_headers(request),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions."""
        logger.exception("Unhandled exception: %s", exc)
        req_id = getattr(request.state, "request_id", None)
        if settings.debug:
            content = {"detail": str(exc), "type": type(exc).__name__, "request_id": req_id}
        else:
            content = {"detail": "Internal server error", "request_id": req_id}
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=content,
            headers=_response_headers(request),
        )

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check():
        """Store state and schema version."""
        report = store.migration_report
        body = HealthResponse(
            status="ok" if store.state is StoreState.READY else "unavailable",
            version=settings.version,
            database=store.state.value,
            schema_version=report.current_version if report else None,
        )
        if store.state is not StoreState.READY:
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content=body.model_dump(),
            )
        return body

    app.include_router(api_v1_router, prefix=settings.api_v1_prefix)
    return app


def run() -> None:
    """Console entry point for local development."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "daxstore.main:create_app",
        factory=True,
        host="127.0.0.1",
        port=8000,
        reload=settings.debug,
    )


if __name__ == "__main__":
    run()
