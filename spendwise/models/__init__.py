"""
Data Models Package

This package contains all Pydantic models used by the SpendWise server.
Every request body and every derived result conforms to these schemas.
"""

from spendwise.models.transaction import (
    CategoryTotal,
    InsightMetadata,
    InsightRequest,
    InsightResponse,
    ReportRequest,
    SpendingStats,
    TransactionSnapshot,
    UNCATEGORIZED,
    format_money,
    month_label,
    percentage_of,
    to_cents,
)
from spendwise.models.identity import AuthenticatedUser
from spendwise.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Transaction models
    "CategoryTotal",
    "InsightMetadata",
    "InsightRequest",
    "InsightResponse",
    "ReportRequest",
    "SpendingStats",
    "TransactionSnapshot",
    "UNCATEGORIZED",
    "format_money",
    "month_label",
    "percentage_of",
    "to_cents",
    # Identity
    "AuthenticatedUser",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
