"""PDF report rendering."""

from spendwise.services.reports.pdf_renderer import (
    ReportRenderer,
    ReportRenderingError,
    report_total,
)

__all__ = ["ReportRenderer", "ReportRenderingError", "report_total"]
