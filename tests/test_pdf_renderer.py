"""Tests for the PDF expense report."""

from io import BytesIO

import pytest
from pypdf import PdfReader

from spendwise.audit import AuditLogger
from spendwise.models.audit import AuditEventType
from spendwise.models.transaction import ReportRequest
from spendwise.orchestrator import ReportFlow
from spendwise.services.reports import ReportRenderer, ReportRenderingError, report_total


def pdf_text(data: bytes) -> str:
    reader = PdfReader(BytesIO(data))
    return "\n".join(page.extract_text() or "" for page in reader.pages)


def make_request(**kwargs):
    kwargs.setdefault("month", "3")
    kwargs.setdefault("year", 2025)
    kwargs.setdefault("transactions", [
        {"amount": 12.50, "category": "Food", "date": "2025-03-02", "description": "Lunch"},
        {"amount": 40, "category": "Rent", "date": "2025-03-05"},
    ])
    return ReportRequest(**kwargs)


class TestReportRenderer:
    """Tests for ReportRenderer.render."""

    def test_produces_pdf(self):
        data = ReportRenderer().render(make_request())
        assert data.startswith(b"%PDF")

    def test_contains_title_table_and_total(self):
        text = pdf_text(ReportRenderer().render(make_request(summary="## Overview\n- Rent is **high**")))

        assert "Expense Report - 3/2025" in text
        assert "Transaction Details" in text
        assert "Lunch" in text
        assert "3/5/2025" in text
        assert "Total Expenses: $52.50" in text
        assert "Overview" in text

    def test_missing_summary_placeholder(self):
        text = pdf_text(ReportRenderer().render(make_request()))
        assert "No summary available" in text

    def test_caller_total_ignored(self):
        request = make_request(total=999)
        text = pdf_text(ReportRenderer().render(request))
        assert "$999" not in text
        assert "Total Expenses: $52.50" in text

    def test_empty_transactions(self):
        text = pdf_text(ReportRenderer().render(make_request(transactions=[])))
        assert "Total Expenses: $0.00" in text

    def test_markup_characters_are_escaped(self):
        request = make_request(
            transactions=[{"amount": 5, "category": "Food", "description": "<b>Fish & Chips"}],
            summary="Tom & Jerry <script>",
        )
        text = pdf_text(ReportRenderer().render(request))
        assert "Fish & Chips" in text

    def test_many_transactions_paginate(self):
        request = make_request(transactions=[
            {"amount": 1, "category": "Food", "description": f"item {i}"} for i in range(120)
        ])
        reader = PdfReader(BytesIO(ReportRenderer().render(request)))
        assert len(reader.pages) > 1
        assert "Total Expenses: $120.00" in pdf_text(ReportRenderer().render(request))

    def test_layout_failure_is_wrapped(self, monkeypatch):
        renderer = ReportRenderer()

        def broken(request):
            raise RuntimeError("layout")

        monkeypatch.setattr(renderer, "_story", broken)
        with pytest.raises(ReportRenderingError, match="RuntimeError"):
            renderer.render(make_request())


def test_report_total():
    assert f"{report_total(make_request().transactions):.2f}" == "52.50"


class RecordingAuditLogger(AuditLogger):
    def __init__(self):
        super().__init__()
        self.events = []

    async def log(self, event):
        self.events.append(event)
        return True


class TestReportFlow:
    """Tests for report orchestration."""

    @pytest.mark.asyncio
    async def test_audit_total_matches_report_rounding(self):
        audit = RecordingAuditLogger()
        flow = ReportFlow(audit_logger=audit)
        request = make_request(transactions=[{"amount": "0.125", "category": "Food"}])

        pdf = await flow.generate_report(request, user_id="u1")

        assert "Total Expenses: $0.13" in pdf_text(pdf)
        assert audit.events[-1].event_type == AuditEventType.REPORT_GENERATED
        assert audit.events[-1].details["total"] == "0.13"

    @pytest.mark.asyncio
    async def test_render_failure_is_audited(self):
        class FailingRenderer(ReportRenderer):
            def render(self, request):
                raise ReportRenderingError("PDF generation failed: LayoutError")

        audit = RecordingAuditLogger()
        flow = ReportFlow(renderer=FailingRenderer(), audit_logger=audit)

        with pytest.raises(ReportRenderingError):
            await flow.generate_report(make_request())

        assert [e.event_type for e in audit.events] == [AuditEventType.REPORT_FAILED]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
