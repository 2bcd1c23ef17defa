from datetime import datetime, timezone
from urllib.parse import quote

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, StreamingResponse

from spendwise.api.dependencies import (
    get_components,
    get_correlation_id,
    insight_request_body,
    report_request_body,
    require_user,
)
from spendwise.api.errors import PDF_FAILED, error_response
from spendwise.models.identity import AuthenticatedUser
from spendwise.models.transaction import InsightRequest, ReportRequest
from spendwise.orchestrator import AppComponents
from spendwise.services.reports import ReportRenderingError

router = APIRouter(prefix="/api")


def content_disposition(body: ReportRequest) -> str:
    """Attachment header with an RFC 6266 `filename*` for localized months."""
    header = f"attachment; filename={body.filename}"
    if body.unicode_filename != body.filename:
        header += f"; filename*=utf-8''{quote(body.unicode_filename)}"
    return header


@router.get("/health")
def health() -> dict:
    """Liveness probe. No auth, no outbound calls."""
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.post("/generate-insights")
async def generate_insights(
    request: Request,
    body: InsightRequest = Depends(insight_request_body),
    user: AuthenticatedUser = Depends(require_user),
    components: AppComponents = Depends(get_components),
):
    """Spending insight for the posted transactions.

    Provider failures come back as 200 with `fallback: true` and an
    offline summary in `insights`.
    """
    result = await components.insight_flow.generate_insights(
        body,
        user_id=user.id,
        correlation_id=get_correlation_id(request),
    )
    return JSONResponse(content=result.model_dump(mode="json", exclude_none=True))


@router.post("/generate-report")
async def generate_report(
    request: Request,
    body: ReportRequest = Depends(report_request_body),
    user: AuthenticatedUser = Depends(require_user),
    components: AppComponents = Depends(get_components),
):
    """Stream the PDF expense report for the posted month."""
    try:
        pdf = await components.report_flow.generate_report(
            body,
            user_id=user.id,
            correlation_id=get_correlation_id(request),
        )
    except ReportRenderingError:
        return error_response(500, PDF_FAILED)

    headers = {"Content-Disposition": content_disposition(body)}
    return StreamingResponse(
        iter([pdf]),
        media_type="application/pdf",
        headers=headers,
    )
