"""
Error responses for the HTTP API.

Every error body has the shape {"error": <message>} so the client can
show it without knowing which layer failed.
"""

from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from spendwise.audit import get_logger
from spendwise.config import AppSettings


logger = get_logger(__name__)

UNAUTHORIZED = "Unauthorized"
INVALID_BODY = "Invalid request body"
PDF_FAILED = "Failed to generate PDF"
INTERNAL_ERROR = "Internal server error"


class InvalidRequestError(Exception):
    """The request body could not be parsed into the expected model."""

    def __init__(self, message: str = INVALID_BODY, details: Optional[list] = None):
        super().__init__(message)
        self.message = message
        self.details = details or []


def summarize_validation_errors(errors: list[dict[str, Any]]) -> list[dict[str, str]]:
    """Reduce pydantic error dicts to JSON-safe {field, message} pairs."""
    return [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": str(err.get("msg", "Invalid value")),
        }
        for err in errors
    ]


def error_response(status_code: int, message: str, **extra: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


def install_exception_handlers(app: FastAPI, settings: AppSettings) -> None:
    """Register the API's error handlers on `app`."""

    @app.exception_handler(InvalidRequestError)
    async def invalid_request_handler(request: Request, exc: InvalidRequestError):
        return error_response(400, exc.message, details=exc.details)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return error_response(400, INVALID_BODY, details=summarize_validation_errors(exc.errors()))

    @app.exception_handler(ValidationError)
    async def model_validation_handler(request: Request, exc: ValidationError):
        return error_response(400, INVALID_BODY, details=summarize_validation_errors(exc.errors()))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    # Backstop for failures in the middleware stack itself. Route failures
    # are answered earlier by UnhandledErrorMiddleware, inside CORS.
    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        return await unhandled_error_response(request, exc, settings)


async def unhandled_error_response(
    request: Request,
    exc: Exception,
    settings: AppSettings,
) -> JSONResponse:
    """Catch-all: generic message, internal detail outside production only."""
    logger.exception(
        "unhandled_exception",
        method=request.method,
        path=request.url.path,
        error_type=type(exc).__name__,
    )
    components = getattr(request.app.state, "components", None)
    if components is not None:
        await components.audit_logger.log_error(
            error_type=type(exc).__name__,
            error_message=str(exc),
            correlation_id=getattr(request.state, "correlation_id", None),
        )
    if settings.is_production:
        return error_response(500, INTERNAL_ERROR)
    return error_response(500, INTERNAL_ERROR, detail=str(exc))
