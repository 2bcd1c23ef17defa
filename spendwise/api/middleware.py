from typing import Optional
from uuid import UUID

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from spendwise.api.errors import unhandled_error_response
from spendwise.audit import create_correlation_id
from spendwise.config import AppSettings


REQUEST_ID_HEADER = "X-Request-ID"


def _parse_request_id(value: Optional[str]) -> UUID:
    if value:
        try:
            return UUID(value)
        except ValueError:
            pass
    return create_correlation_id()


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Assigns or propagates a request correlation id.

    Precedence:
      1. Incoming X-Request-ID header, when it is a UUID
      2. Generated UUID4
    Binds it into structlog's context for every log line of the request
    and echoes it in the response header.
    """

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        correlation_id = _parse_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.correlation_id = correlation_id
        structlog.contextvars.bind_contextvars(correlation_id=str(correlation_id))
        try:
            response: Response = await call_next(request)
        finally:
            structlog.contextvars.unbind_contextvars("correlation_id")
        response.headers[REQUEST_ID_HEADER] = str(correlation_id)
        return response


class UnhandledErrorMiddleware(BaseHTTPMiddleware):
    """Turns route failures into the generic 500 body.

    Registered innermost so the response still passes through
    CorrelationIdMiddleware and CORSMiddleware on its way out.
    """

    def __init__(self, app, settings: AppSettings):
        super().__init__(app)
        self._settings = settings

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        try:
            return await call_next(request)
        except Exception as e:
            return await unhandled_error_response(request, e, self._settings)
