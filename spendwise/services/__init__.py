"""Services package."""

from spendwise.services.auth import (
    AuthenticationError,
    SupabaseTokenVerifier,
    TokenVerifier,
    extract_bearer_token,
)
from spendwise.services.reports import (
    ReportRenderer,
    ReportRenderingError,
    report_total,
)

__all__ = [
    # Auth services
    "AuthenticationError",
    "SupabaseTokenVerifier",
    "TokenVerifier",
    "extract_bearer_token",
    # Report services
    "ReportRenderer",
    "ReportRenderingError",
    "report_total",
]
