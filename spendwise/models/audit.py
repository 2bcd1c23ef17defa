"""
Audit Models for SpendWise

Every significant server action produces one audit event.
This provides:
1. Traceability of every insight and report request
2. Debugging information when an external provider misbehaves
3. A record of rejected authentication attempts

DESIGN DECISION: Audit events never carry transaction contents or tokens.
Only counts, totals and identifiers are logged.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Authentication
    AUTH_REJECTED = "auth_rejected"

    # Insights
    INSIGHTS_NO_DATA = "insights_no_data"
    INSIGHTS_GENERATED = "insights_generated"
    INSIGHTS_FALLBACK_USED = "insights_fallback_used"

    # Reports
    REPORT_GENERATED = "report_generated"
    REPORT_FAILED = "report_failed"

    # System events
    SYSTEM_ERROR = "system_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Who triggered it (provider user ID, when authenticated)
    user_id: Optional[str] = Field(
        default=None,
        description="Authenticated user, if any"
    )

    # Correlation - ties the event to one HTTP request
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="Request correlation ID"
    )

    # Event details
    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "user_id": self.user_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.auth_rejected(reason, correlation_id)
        event = AuditEventBuilder.report_generated(user_id, "3", 2025, 12, "402.10", correlation_id)
    """

    @staticmethod
    def auth_rejected(
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AUTH_REJECTED,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            description="Request rejected: unauthorized",
            details={"reason": reason},
        )

    @staticmethod
    def insights_no_data(
        user_id: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INSIGHTS_NO_DATA,
            user_id=user_id,
            correlation_id=correlation_id,
            description="Insights requested with no transactions",
        )

    @staticmethod
    def insights_generated(
        user_id: Optional[str],
        transaction_count: int,
        total: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INSIGHTS_GENERATED,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Insights generated for {transaction_count} transactions",
            details={
                "transaction_count": transaction_count,
                "total": total,
            },
        )

    @staticmethod
    def insights_fallback_used(
        user_id: Optional[str],
        transaction_count: int,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INSIGHTS_FALLBACK_USED,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            correlation_id=correlation_id,
            description="AI provider failed, served offline summary",
            details={"transaction_count": transaction_count},
            error_message=error_message,
        )

    @staticmethod
    def report_generated(
        user_id: Optional[str],
        month: str,
        year: int,
        transaction_count: int,
        total: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REPORT_GENERATED,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"PDF report generated for {month}/{year}",
            details={
                "month": month,
                "year": year,
                "transaction_count": transaction_count,
                "total": total,
            },
        )

    @staticmethod
    def report_failed(
        user_id: Optional[str],
        month: str,
        year: int,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REPORT_FAILED,
            severity=AuditSeverity.ERROR,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"PDF report failed for {month}/{year}",
            error_message=error_message,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={
                "service": service,
            },
            correlation_id=correlation_id,
        )
