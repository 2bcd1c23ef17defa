"""
FastAPI dependencies.

The auth gate runs BEFORE the request body is parsed, so an
unauthenticated request never reaches validation or handler logic,
whatever its body looks like.
"""

from typing import Optional, Type, TypeVar
from uuid import UUID

from fastapi import Depends, HTTPException, Request
from pydantic import BaseModel, ValidationError

from spendwise.api.errors import (
    INVALID_BODY,
    UNAUTHORIZED,
    InvalidRequestError,
    summarize_validation_errors,
)
from spendwise.audit import get_logger
from spendwise.models.identity import AuthenticatedUser
from spendwise.models.transaction import InsightRequest, ReportRequest
from spendwise.orchestrator import AppComponents
from spendwise.services.auth import AuthenticationError, extract_bearer_token


logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def get_components(request: Request) -> AppComponents:
    """Components created at startup (or injected by tests)."""
    return request.app.state.components


def get_correlation_id(request: Request) -> Optional[UUID]:
    return getattr(request.state, "correlation_id", None)


async def require_user(
    request: Request,
    components: AppComponents = Depends(get_components),
) -> AuthenticatedUser:
    """
    Token verification gate.

    Missing token, rejected token and provider failure all give the
    same 401 with no detail.
    """
    correlation_id = get_correlation_id(request)
    token = extract_bearer_token(request.headers.get("Authorization"))

    if token is None:
        await components.audit_logger.log_auth_rejected("missing_token", correlation_id)
        raise HTTPException(status_code=401, detail=UNAUTHORIZED)

    try:
        user = await components.token_verifier.verify(token)
    except AuthenticationError as e:
        await components.audit_logger.log_auth_rejected(str(e), correlation_id)
        raise HTTPException(status_code=401, detail=UNAUTHORIZED)
    except Exception as e:
        logger.exception("token_verifier_crashed", error_type=type(e).__name__)
        await components.audit_logger.log_external_service_error(
            service="supabase_auth",
            error_message=type(e).__name__,
            correlation_id=correlation_id,
        )
        await components.audit_logger.log_auth_rejected("verifier_error", correlation_id)
        raise HTTPException(status_code=401, detail=UNAUTHORIZED)

    request.state.user = user
    return user


async def parse_body(request: Request, model: Type[ModelT]) -> ModelT:
    """Decode the JSON body and validate it into `model`."""
    try:
        payload = await request.json()
    except ValueError:
        raise InvalidRequestError("Request body must be valid JSON")

    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise InvalidRequestError(INVALID_BODY, summarize_validation_errors(e.errors()))


async def insight_request_body(
    request: Request,
    user: AuthenticatedUser = Depends(require_user),
) -> InsightRequest:
    return await parse_body(request, InsightRequest)


async def report_request_body(
    request: Request,
    user: AuthenticatedUser = Depends(require_user),
) -> ReportRequest:
    return await parse_body(request, ReportRequest)
