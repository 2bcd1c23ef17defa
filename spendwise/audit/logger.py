"""
Audit Logger

DESIGN DECISION: Every significant server action is logged.
This provides:
1. Traceability of insight and report requests
2. Visibility into AI provider failures and fallbacks
3. A trail of rejected authentication attempts

The audit logger:
- Is async so handlers can await it without special casing
- Gracefully handles failures (never crashes a request if logging fails)
- Supports correlation IDs to trace all events of one request
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from spendwise.models.audit import AuditEvent, AuditEventBuilder


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def get_logger(name: Optional[str] = None):
    """Module loggers share the audit logger's structlog configuration."""
    return structlog.get_logger(name)


class AuditLogger:
    """
    Central audit logging service.

    Writes every event to the structured local log. Persistent storage
    belongs to the managed backend, so nothing is written anywhere else.
    """

    def __init__(self):
        self._logger = structlog.get_logger("spendwise.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns True if the event was written.
        """
        try:
            log_dict = event.to_log_dict()

            if event.severity.value in ("error", "critical"):
                self._logger.error("audit_event", **log_dict)
            elif event.severity.value == "warning":
                self._logger.warning("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception as e:
            # Audit failures must never break the request being audited
            self._logger.error(
                "audit_log_failed",
                error=str(e),
                event_id=str(event.event_id),
            )
            return False

        return True

    async def log_auth_rejected(
        self,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a rejected authentication attempt."""
        await self.log(AuditEventBuilder.auth_rejected(
            reason=reason,
            correlation_id=correlation_id,
        ))

    async def log_insights_no_data(
        self,
        user_id: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an insight request that had nothing to analyze."""
        await self.log(AuditEventBuilder.insights_no_data(
            user_id=user_id,
            correlation_id=correlation_id,
        ))

    async def log_insights_generated(
        self,
        user_id: Optional[str],
        transaction_count: int,
        total: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a successful AI insight."""
        await self.log(AuditEventBuilder.insights_generated(
            user_id=user_id,
            transaction_count=transaction_count,
            total=total,
            correlation_id=correlation_id,
        ))

    async def log_insights_fallback(
        self,
        user_id: Optional[str],
        transaction_count: int,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log that the offline summary replaced the AI insight."""
        await self.log(AuditEventBuilder.insights_fallback_used(
            user_id=user_id,
            transaction_count=transaction_count,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_report_generated(
        self,
        user_id: Optional[str],
        month: str,
        year: int,
        transaction_count: int,
        total: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a rendered PDF report."""
        await self.log(AuditEventBuilder.report_generated(
            user_id=user_id,
            month=month,
            year=year,
            transaction_count=transaction_count,
            total=total,
            correlation_id=correlation_id,
        ))

    async def log_report_failed(
        self,
        user_id: Optional[str],
        month: str,
        year: int,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a PDF rendering failure."""
        await self.log(AuditEventBuilder.report_failed(
            user_id=user_id,
            month=month,
            year=year,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))

    async def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log external service error."""
        await self.log(AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Used when a request arrives without an X-Request-ID header.
    """
    return uuid4()
