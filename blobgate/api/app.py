"""FastAPI application factory for the upload gateway.

Gateway errors are mapped to HTTP statuses in ``STATUS_BY_KIND`` and nowhere
else. Every error response carries the same JSON body::

    {"error": ..., "message": ..., "key": ..., "operation": ...,
     "status": ..., "timestamp": ...}
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from blobgate import __version__
from blobgate.api.routes import router
from blobgate.api.schemas import ErrorResponse
from blobgate.gateway.errors import ErrorKind, GatewayError
from blobgate.gateway.service import ObjectGateway
from blobgate.settings import GatewaySettings, load_settings

logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    ErrorKind.INVALID_INPUT: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.SIZE_LIMIT_EXCEEDED: 413,
    ErrorKind.STORE_UNAVAILABLE: 503,
    ErrorKind.SIGNING_FAILED: 502,
    ErrorKind.UPLOAD_FAILED: 502,
}
INTERNAL_ERROR = "INTERNAL_ERROR"


def error_response(
    error: str,
    message: str,
    status: int,
    key: str | None = None,
    operation: str | None = None,
) -> JSONResponse:
    body = ErrorResponse(
        error=error,
        message=message,
        status=status,
        timestamp=datetime.now(UTC),
        key=key,
        operation=operation,
    )
    return JSONResponse(status_code=status, content=body.model_dump(mode="json", by_alias=True))


def create_app(
    gateway: ObjectGateway | None = None, settings: GatewaySettings | None = None
) -> FastAPI:
    """Build the HTTP application.

    Args:
        gateway: Gateway to serve; built from ``settings`` if not given
        settings: Deployment settings; loaded from the active profile if not given
    """
    if settings is None:
        settings = load_settings()
    if gateway is None:
        gateway = ObjectGateway.from_settings(settings)

    app = FastAPI(
        title=gateway.service_name,
        version=__version__,
        description="Upload, retrieve, list and sign links to files in object storage",
    )
    app.state.gateway = gateway

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=3600,
    )

    _register_exception_handlers(app)
    app.include_router(router)

    logger.info(f"{gateway.service_name} {__version__} ready")
    return app


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(GatewayError)
    async def _gateway_exc(request: Request, exc: GatewayError) -> JSONResponse:
        status = STATUS_BY_KIND.get(exc.kind, 500)
        if status >= 500:
            logger.error(f"{exc.kind.value} on {request.url.path}: {exc.message}")
        else:
            logger.warning(f"{exc.kind.value} on {request.url.path}: {exc.message}")
        return error_response(exc.kind.value, exc.message, status, exc.key, exc.operation)

    @app.exception_handler(RequestValidationError)
    async def _validation_exc(request: Request, exc: RequestValidationError) -> JSONResponse:
        problems = "; ".join(
            f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        logger.warning(f"Invalid request on {request.url.path}: {problems}")
        return error_response(ErrorKind.INVALID_INPUT.value, f"Invalid request: {problems}", 400)

    @app.exception_handler(Exception)
    async def _generic_exc(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error on {request.url.path}: {exc}")
        return error_response(INTERNAL_ERROR, "An unexpected error occurred", 500)
