"""
Main Orchestrator for SpendWise

This module ties together all the components and defines the
end-to-end flows for:
1. Insights (transactions → statistics → live or offline insight)
2. Reports (transactions + summary → PDF)

DESIGN DECISION: Long-lived handles (HTTP client, Gemini model,
generators, renderer, audit logger) are built ONCE by
create_app_components() and handed to the API layer.
Nothing is created at import time, so tests can pass in doubles.
"""

import asyncio
from typing import Optional
from uuid import UUID

import httpx

from spendwise.agents import (
    NO_DATA_MESSAGE,
    FallbackInsightGenerator,
    GeminiInsightGenerator,
    InsightGenerator,
    OfflineInsightGenerator,
)
from spendwise.analytics import DEFAULT_TOP_N, compute_spending_stats
from spendwise.audit import AuditLogger, get_logger
from spendwise.config import Settings, get_settings, load_gemini_settings
from spendwise.models.transaction import (
    InsightMetadata,
    InsightRequest,
    InsightResponse,
    ReportRequest,
    to_cents,
)
from spendwise.services.auth import SupabaseTokenVerifier, TokenVerifier
from spendwise.services.reports import (
    ReportRenderer,
    ReportRenderingError,
    report_total,
)


logger = get_logger(__name__)


class InsightFlow:
    """
    Orchestrates the insight flow.

    Flow:
    1. Empty list → static "no data" message (no provider call)
    2. Compute statistics (deterministic)
    3. Generate insight (live, or offline on failure)
    4. Attach statistics as metadata

    This flow NEVER returns an error for provider failures.
    """

    def __init__(
        self,
        generator: InsightGenerator,
        audit_logger: Optional[AuditLogger] = None,
        top_n: int = DEFAULT_TOP_N,
    ):
        self._generator = generator
        self._audit_logger = audit_logger
        self._top_n = top_n

    async def generate_insights(
        self,
        request: InsightRequest,
        user_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> InsightResponse:
        """
        Produce the insight response for one request.

        Returns:
            InsightResponse with `fallback=True` when the offline
            generator had to step in.
        """
        if not request.transactions:
            if self._audit_logger:
                await self._audit_logger.log_insights_no_data(
                    user_id=user_id,
                    correlation_id=correlation_id,
                )
            return InsightResponse(
                insights=NO_DATA_MESSAGE,
                success=True,
                metadata=InsightMetadata.from_stats(compute_spending_stats([])),
            )

        stats = compute_spending_stats(request.transactions, self._top_n)
        outcome = await self._generator.generate(request, stats)
        metadata = InsightMetadata.from_stats(stats)

        if outcome.fallback:
            if self._audit_logger:
                await self._audit_logger.log_insights_fallback(
                    user_id=user_id,
                    transaction_count=stats.transaction_count,
                    error_message=outcome.error or "unknown",
                    correlation_id=correlation_id,
                )
            return InsightResponse(
                insights=outcome.text,
                success=False,
                fallback=True,
                error=outcome.error,
                metadata=metadata,
            )

        if self._audit_logger:
            await self._audit_logger.log_insights_generated(
                user_id=user_id,
                transaction_count=stats.transaction_count,
                total=stats.total_display,
                correlation_id=correlation_id,
            )
        return InsightResponse(
            insights=outcome.text,
            success=True,
            metadata=metadata,
        )


class ReportFlow:
    """
    Orchestrates PDF report generation.

    Rendering is CPU-bound, so it runs in a worker thread
    to keep the event loop responsive.
    """

    def __init__(
        self,
        renderer: Optional[ReportRenderer] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._renderer = renderer or ReportRenderer()
        self._audit_logger = audit_logger

    async def generate_report(
        self,
        request: ReportRequest,
        user_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> bytes:
        """
        Render the report.

        Raises:
            ReportRenderingError: If the PDF could not be produced
        """
        try:
            pdf = await asyncio.to_thread(self._renderer.render, request)
        except ReportRenderingError as e:
            if self._audit_logger:
                await self._audit_logger.log_report_failed(
                    user_id=user_id,
                    month=request.month,
                    year=request.year,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

        if self._audit_logger:
            await self._audit_logger.log_report_generated(
                user_id=user_id,
                month=request.month,
                year=request.year,
                transaction_count=len(request.transactions),
                total=str(to_cents(report_total(request.transactions))),
                correlation_id=correlation_id,
            )
        return pdf


class AppComponents:
    """
    Everything the API layer needs, created once per process.

    Call aclose() on shutdown to release the pooled HTTP client.
    """

    def __init__(
        self,
        token_verifier: TokenVerifier,
        insight_flow: InsightFlow,
        report_flow: ReportFlow,
        audit_logger: AuditLogger,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.token_verifier = token_verifier
        self.insight_flow = insight_flow
        self.report_flow = report_flow
        self.audit_logger = audit_logger
        self._http_client = http_client

    async def aclose(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()


def create_insight_generator(
    settings: Settings,
    use_live_provider: bool = True,
) -> FallbackInsightGenerator:
    """
    Build the live-with-fallback insight generator.

    Without a Gemini API key every request is served offline.
    """
    live = None
    if use_live_provider:
        gemini_settings = load_gemini_settings(settings)
        if gemini_settings is None:
            logger.warning("gemini_not_configured", detail="serving offline insights only")
        else:
            live = GeminiInsightGenerator(
                settings=gemini_settings,
                max_prompt_transactions=settings.app.max_prompt_transactions,
            )
    return FallbackInsightGenerator(primary=live, fallback=OfflineInsightGenerator())


def create_app_components(
    settings: Optional[Settings] = None,
    use_live_provider: bool = True,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        settings: Settings to use. Defaults to get_settings().
        use_live_provider: Set to False to skip Gemini entirely.

    Raises:
        pydantic.ValidationError: If Supabase is not configured.
            Without it no request can be authenticated.
    """
    settings = settings or get_settings()
    supabase = settings.supabase
    app_settings = settings.app

    audit_logger = AuditLogger()
    http_client = httpx.AsyncClient(timeout=supabase.timeout_seconds)

    return AppComponents(
        token_verifier=SupabaseTokenVerifier(supabase, http_client),
        insight_flow=InsightFlow(
            generator=create_insight_generator(settings, use_live_provider),
            audit_logger=audit_logger,
            top_n=app_settings.insight_top_categories,
        ),
        report_flow=ReportFlow(audit_logger=audit_logger),
        audit_logger=audit_logger,
        http_client=http_client,
    )
