"""
Request and Result Models for SpendWise

The server never owns transactions, budgets or categories. Those live in
the managed backend behind row-level security. What arrives here is a
snapshot the client assembled for one request, and what leaves is derived
output (an insight string or a PDF).

DESIGN DECISION: We use Pydantic v2 for every payload.
Bad request bodies are caught at the edge and never reach the generators
or the renderer.
"""

import calendar
from datetime import date as date_type
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


CENT = Decimal("0.01")
TENTH = Decimal("0.1")

UNCATEGORIZED = "Uncategorized"


def to_cents(value: Decimal) -> Decimal:
    """Round a currency amount to cents (half-up)."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def format_money(value: Decimal) -> str:
    """Format an amount the way reports show it: $1,234.50"""
    return f"${to_cents(value):,.2f}"


# =============================================================================
# TRANSACTION SNAPSHOTS
# =============================================================================

class TransactionSnapshot(BaseModel):
    """
    One transaction as sent by the client.

    Older clients send the joined category as `category_name`, newer ones
    as `category`. Both are accepted; `category` wins when both are present.
    """
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    amount: Decimal = Field(
        ...,
        description="Transaction amount"
    )
    # Text fields are unbounded like the backend columns they come from.
    # Prompt lines and PDF cells do their own truncation and wrapping.
    category: Optional[str] = Field(
        default=None,
        description="Category name"
    )
    category_name: Optional[str] = Field(
        default=None,
        description="Legacy alias for category"
    )
    date: Optional[str] = Field(
        default=None,
        description="Transaction date (ISO-8601)"
    )
    description: Optional[str] = Field(
        default=None,
        description="Free-text description"
    )

    @field_validator("amount")
    @classmethod
    def amount_must_be_finite(cls, v: Decimal) -> Decimal:
        if not v.is_finite():
            raise ValueError("Amount must be a finite number")
        return v

    @field_validator("date", mode="before")
    @classmethod
    def coerce_date(cls, v: Any) -> Any:
        """Accept date objects as well as strings."""
        if isinstance(v, (datetime, date_type)):
            return v.isoformat()
        return v

    @property
    def category_label(self) -> str:
        """The category used for grouping."""
        return self.category or self.category_name or UNCATEGORIZED

    @property
    def description_label(self) -> str:
        """Description, or a dash placeholder when there is none."""
        return self.description or "-"

    @property
    def parsed_date(self) -> Optional[date_type]:
        """The calendar date, when the date string is ISO formatted."""
        if not self.date:
            return None
        try:
            return date_type.fromisoformat(self.date[:10])
        except ValueError:
            return None

    @property
    def display_date(self) -> str:
        """Date as M/D/YYYY, falling back to the raw string."""
        parsed = self.parsed_date
        if parsed is None:
            return self.date or "-"
        return f"{parsed.month}/{parsed.day}/{parsed.year}"

    def to_prompt_line(self) -> str:
        """Compact single-line rendering for LLM prompts."""
        parts = [self.date[:10] if self.date else "undated", self.category_label[:50], format_money(self.amount)]
        if self.description:
            parts.append(self.description[:50])
        return " | ".join(parts)


def _normalize_month(v: Any) -> Any:
    if isinstance(v, int) and not isinstance(v, bool):
        return str(v)
    return v


def month_label(month: Optional[str]) -> Optional[str]:
    """
    Human-readable month name.

    Numeric months ("3", "03") are turned into names; anything else
    (e.g. "March") is returned as sent.
    """
    if not month:
        return None
    if month.isdigit() and 1 <= int(month) <= 12:
        return calendar.month_name[int(month)]
    return month


class InsightRequest(BaseModel):
    """Body of POST /api/generate-insights."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    transactions: list[TransactionSnapshot] = Field(
        ...,
        description="Transactions to analyze, in client order"
    )
    month: Optional[str] = Field(
        default=None,
        max_length=20,
        description="Reporting month (name or number)"
    )
    year: Optional[int] = Field(
        default=None,
        ge=1900,
        le=9999,
        description="Reporting year"
    )
    budget: Optional[Decimal] = Field(
        default=None,
        gt=0,
        description="Optional monthly budget ceiling"
    )

    @field_validator("month", mode="before")
    @classmethod
    def month_to_string(cls, v: Any) -> Any:
        return _normalize_month(v)

    @property
    def period_label(self) -> str:
        """e.g. 'March 2025', 'March', or 'this period'."""
        parts = [p for p in (month_label(self.month), str(self.year) if self.year else None) if p]
        return " ".join(parts) if parts else "this period"


class ReportRequest(BaseModel):
    """
    Body of POST /api/generate-report.

    Any `total` the caller sends is ignored. The report always sums
    the listed amounts itself.
    """
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    month: str = Field(
        ...,
        min_length=1,
        max_length=20,
        description="Report month"
    )
    year: int = Field(
        ...,
        ge=1900,
        le=9999,
        description="Report year"
    )
    transactions: list[TransactionSnapshot] = Field(
        ...,
        description="Transactions to list, in display order"
    )
    summary: Optional[str] = Field(
        default=None,
        description="AI-generated or fallback summary"
    )

    @field_validator("month", mode="before")
    @classmethod
    def month_to_string(cls, v: Any) -> Any:
        return _normalize_month(v)

    @property
    def filename(self) -> str:
        """
        ASCII attachment filename: expense-report-<month>-<year>.pdf

        Response headers are Latin-1, so localized month names
        ("三月", "März") lose their non-ASCII characters here.
        The full name is in `unicode_filename`.
        """
        safe_month = "".join(
            ch for ch in self.month if ch.isascii() and (ch.isalnum() or ch in "-_")
        )
        if not safe_month:
            return f"expense-report-{self.year}.pdf"
        return f"expense-report-{safe_month}-{self.year}.pdf"

    @property
    def unicode_filename(self) -> str:
        """Attachment filename keeping localized month names."""
        safe_month = "".join(ch for ch in self.month if ch.isalnum() or ch in "-_")
        return f"expense-report-{safe_month}-{self.year}.pdf"

    @property
    def total(self) -> Decimal:
        return sum((t.amount for t in self.transactions), Decimal("0"))


# =============================================================================
# DERIVED STATISTICS
# =============================================================================

class CategoryTotal(BaseModel):
    """A category with its summed amount and share of total spend."""

    category: str
    total: Decimal
    percentage: Decimal = Field(
        description="Share of total spend, one decimal place"
    )

    def to_metadata(self) -> dict[str, str]:
        return {
            "category": self.category,
            "total": f"{to_cents(self.total):.2f}",
            "percentage": f"{self.percentage:.1f}",
        }


class SpendingStats(BaseModel):
    """Statistics computed from one request's transactions."""

    transaction_count: int = Field(ge=0)
    total: Decimal
    category_totals: dict[str, Decimal] = Field(
        default_factory=dict,
        description="Per-category totals in first-seen order"
    )
    top_categories: list[CategoryTotal] = Field(default_factory=list)
    largest_transaction: Optional[TransactionSnapshot] = None

    @property
    def total_display(self) -> str:
        """Total as a plain two-decimal string, e.g. '52.50'."""
        return f"{to_cents(self.total):.2f}"

    @property
    def is_empty(self) -> bool:
        return self.transaction_count == 0


class InsightMetadata(BaseModel):
    """Computed figures returned alongside an insight."""

    transaction_count: int
    total: str
    top_categories: list[dict[str, str]] = Field(default_factory=list)

    @classmethod
    def from_stats(cls, stats: SpendingStats) -> "InsightMetadata":
        return cls(
            transaction_count=stats.transaction_count,
            total=stats.total_display,
            top_categories=[c.to_metadata() for c in stats.top_categories],
        )


class InsightResponse(BaseModel):
    """
    Response of POST /api/generate-insights.

    `fallback` is True when the text was computed locally because
    the AI provider failed. In that case `success` is False and `error`
    carries a short, non-sensitive reason.
    """

    insights: str
    success: bool
    fallback: bool = False
    error: Optional[str] = None
    metadata: Optional[InsightMetadata] = None


def percentage_of(part: Decimal, whole: Decimal) -> Decimal:
    """Share of `part` in `whole` as a percentage with one decimal."""
    if whole == 0:
        return Decimal("0.0")
    return (part / whole * 100).quantize(TENTH, rounding=ROUND_HALF_UP)
