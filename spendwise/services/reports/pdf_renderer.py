"""
PDF Expense Report Renderer

Lays out a paginated expense report with reportlab's platypus:
title, summary text, a transaction table and the total.

The total is always computed here from the listed amounts.
A caller-supplied total is never read.
"""

import re
from decimal import Decimal
from io import BytesIO
from typing import Sequence
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_RIGHT
from reportlab.lib.pagesizes import LETTER
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.platypus import (
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

from spendwise.models.transaction import ReportRequest, TransactionSnapshot, format_money


NO_SUMMARY = "No summary available"

MAX_CELL_CHARS = 500

_BOLD = re.compile(r"\*\*(.+?)\*\*")


class ReportRenderingError(Exception):
    """The PDF could not be produced."""
    pass


def report_total(transactions: Sequence[TransactionSnapshot]) -> Decimal:
    """Sum of the listed amounts."""
    return sum((t.amount for t in transactions), Decimal("0"))


def _clip(text: str, limit: int = MAX_CELL_CHARS) -> str:
    if len(text) <= limit:
        return text
    return text[:limit - 3] + "..."


def _markdown_line_to_markup(line: str) -> str:
    """Escape a line for reportlab markup and keep **bold** spans."""
    return _BOLD.sub(r"<b>\1</b>", escape(line))


class ReportRenderer:
    """Builds the expense report PDF for one request."""

    COLUMN_WIDTHS = [75, 100, 203, 90]

    def __init__(self):
        styles = getSampleStyleSheet()
        self._title = styles["Title"]
        self._heading = styles["Heading2"]
        self._subheading = styles["Heading3"]
        self._body = styles["BodyText"]
        self._cell = ParagraphStyle("Cell", parent=styles["BodyText"], fontSize=9, leading=11)
        self._total = ParagraphStyle(
            "Total",
            parent=styles["BodyText"],
            fontName="Helvetica-Bold",
            fontSize=12,
            alignment=TA_RIGHT,
        )

    def render(self, request: ReportRequest) -> bytes:
        """
        Render the report to PDF bytes.

        Raises:
            ReportRenderingError: If layout or PDF generation fails
        """
        try:
            buf = BytesIO()
            doc = SimpleDocTemplate(
                buf,
                pagesize=LETTER,
                title=f"Expense Report - {request.month}/{request.year}",
            )
            doc.build(self._story(request))
            return buf.getvalue()
        except Exception as e:
            raise ReportRenderingError(f"PDF generation failed: {type(e).__name__}") from e

    def _story(self, request: ReportRequest) -> list:
        story = [
            Paragraph(escape(f"Expense Report - {request.month}/{request.year}"), self._title),
            Spacer(1, 12),
            Paragraph("Summary", self._heading),
        ]
        story += self._summary_flowables(request.summary or NO_SUMMARY)
        story += [
            Spacer(1, 12),
            Paragraph("Transaction Details", self._heading),
            self._transaction_table(request.transactions),
            Spacer(1, 12),
            Paragraph(
                f"Total Expenses: {format_money(report_total(request.transactions))}",
                self._total,
            ),
        ]
        return story

    def _summary_flowables(self, summary: str) -> list:
        """Flatten markdown headings and bullets into paragraphs."""
        flowables = []
        for raw in summary.splitlines():
            line = raw.strip()
            if not line:
                continue
            if line.startswith("#"):
                flowables.append(
                    Paragraph(_markdown_line_to_markup(line.lstrip("#").strip()), self._subheading)
                )
            elif line.startswith(("- ", "* ")):
                flowables.append(
                    Paragraph(_markdown_line_to_markup(line[2:]), self._body, bulletText="•")
                )
            else:
                flowables.append(Paragraph(_markdown_line_to_markup(line), self._body))
        return flowables

    def _transaction_table(self, transactions: Sequence[TransactionSnapshot]) -> Table:
        rows = [["Date", "Category", "Description", "Amount"]]
        for t in transactions:
            # A table row cannot split across pages
            rows.append([
                t.display_date,
                Paragraph(escape(_clip(t.category_label)), self._cell),
                Paragraph(escape(_clip(t.description_label)), self._cell),
                format_money(t.amount),
            ])

        table = Table(rows, colWidths=self.COLUMN_WIDTHS, repeatRows=1, hAlign="LEFT")
        table.setStyle(
            TableStyle(
                [
                    ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#F0F0F0")),
                    ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
                    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                    ("FONTSIZE", (0, 0), (-1, -1), 9),
                    ("ALIGN", (3, 0), (3, -1), "RIGHT"),
                    ("VALIGN", (0, 0), (-1, -1), "TOP"),
                ]
            )
        )
        return table
