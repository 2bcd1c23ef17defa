"""Deterministic spending statistics."""

from spendwise.analytics.statistics import (
    DEFAULT_TOP_N,
    category_totals,
    compute_spending_stats,
    rank_categories,
)

__all__ = [
    "DEFAULT_TOP_N",
    "category_totals",
    "compute_spending_stats",
    "rank_categories",
]
