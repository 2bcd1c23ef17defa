"""
Spending Statistics

DESIGN DECISION: All figures are computed DETERMINISTICALLY from the
request's transactions before any LLM is involved.
The live generator embeds them in its prompt, the offline generator
turns them into prose, and the response metadata reports them as-is.
The LLM never computes a number the user sees in metadata.
"""

from decimal import Decimal
from typing import Iterable, Sequence

from spendwise.models.transaction import (
    CategoryTotal,
    SpendingStats,
    TransactionSnapshot,
    percentage_of,
)


DEFAULT_TOP_N = 3


def category_totals(transactions: Iterable[TransactionSnapshot]) -> dict[str, Decimal]:
    """
    Sum amounts per category.

    Keys keep first-seen order, which is what breaks ties in the ranking.
    """
    totals: dict[str, Decimal] = {}
    for txn in transactions:
        key = txn.category_label
        totals[key] = totals.get(key, Decimal("0")) + txn.amount
    return totals


def rank_categories(
    totals: dict[str, Decimal],
    grand_total: Decimal,
    top_n: int = DEFAULT_TOP_N,
) -> list[CategoryTotal]:
    """
    Top-N categories by descending total.

    sorted() is stable, so equal totals stay in first-seen order.
    """
    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    return [
        CategoryTotal(
            category=name,
            total=amount,
            percentage=percentage_of(amount, grand_total),
        )
        for name, amount in ranked[:top_n]
    ]


def compute_spending_stats(
    transactions: Sequence[TransactionSnapshot],
    top_n: int = DEFAULT_TOP_N,
) -> SpendingStats:
    """Compute total, per-category totals, ranking and largest transaction."""
    if not transactions:
        return SpendingStats(transaction_count=0, total=Decimal("0"))

    total = sum((t.amount for t in transactions), Decimal("0"))
    totals = category_totals(transactions)
    largest = max(transactions, key=lambda t: t.amount)

    return SpendingStats(
        transaction_count=len(transactions),
        total=total,
        category_totals=totals,
        top_categories=rank_categories(totals, total, top_n),
        largest_transaction=largest,
    )
