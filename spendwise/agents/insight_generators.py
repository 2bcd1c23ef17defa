"""
Insight Generators for SpendWise

DESIGN DECISION: Insight generation is an interface with two
implementations and a wrapper that picks between them:

1. GeminiInsightGenerator (live):
   - Builds a prompt from PRE-COMPUTED statistics and a bounded
     number of raw transaction lines
   - Returns the model's text verbatim
   - Raises InsightGenerationError on any provider problem

2. OfflineInsightGenerator (deterministic):
   - Turns the same statistics into templated markdown
   - Never calls anything external, never fails on valid input

3. FallbackInsightGenerator (wrapper):
   - Tries the live generator
   - On ANY failure, delegates to the offline generator and marks
     the outcome as a fallback

The LLM is a WRITER, not a CALCULATOR.
Every number it sees was computed locally first.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any, Optional

import google.generativeai as genai
from pydantic import BaseModel

from spendwise.audit import get_logger
from spendwise.config import GeminiSettings
from spendwise.models.transaction import (
    InsightRequest,
    SpendingStats,
    format_money,
)


NO_DATA_MESSAGE = "No transactions found for this period."

PROVIDER_UNAVAILABLE = "AI insights are temporarily unavailable"

logger = get_logger(__name__)


class InsightGenerationError(Exception):
    """The live provider could not produce an insight."""
    pass


class InsightOutcome(BaseModel):
    """What a generator produced."""

    text: str
    fallback: bool = False
    error: Optional[str] = None


class InsightGenerator(ABC):
    """
    Abstract interface for insight generation.

    Implementations receive the validated request together with the
    statistics already computed from it.
    """

    @abstractmethod
    async def generate(
        self,
        request: InsightRequest,
        stats: SpendingStats,
    ) -> InsightOutcome:
        """
        Produce an insight for a non-empty transaction list.

        Raises:
            InsightGenerationError: If no insight could be produced
        """
        pass


# =============================================================================
# LIVE GENERATOR
# =============================================================================

class GeminiInsightGenerator(InsightGenerator):
    """
    Live insight generator backed by Google Gemini.

    BOUNDARIES:
    - Exactly one generate call per request, no retries
    - NEVER asked to compute totals or percentages
    - Empty or blocked responses count as failures
    """

    def __init__(
        self,
        settings: Optional[GeminiSettings] = None,
        model: Optional[Any] = None,
        max_prompt_transactions: int = 50,
    ):
        """
        Args:
            settings: Gemini configuration. Used to build the model
                      when `model` is not given.
            model: Anything with an async `generate_content_async(prompt)`.
                   Injected directly in tests.
            max_prompt_transactions: Raw transaction lines kept in the prompt.
        """
        if model is None:
            if settings is None:
                raise ValueError("Either settings or model is required")
            model = self._configure_genai(settings)
        self._model = model
        self._max_lines = max_prompt_transactions

    @staticmethod
    def _configure_genai(settings: GeminiSettings):
        """Configure Google Generative AI."""
        genai.configure(api_key=settings.api_key)
        return genai.GenerativeModel(
            model_name=settings.model_name,
            generation_config={
                "temperature": settings.temperature,
                "max_output_tokens": settings.max_tokens,
            }
        )

    def build_prompt(
        self,
        request: InsightRequest,
        stats: SpendingStats,
    ) -> str:
        """Compose the prompt from statistics plus a bounded transaction sample."""
        category_lines = "\n".join(
            f"  - {c.category}: {format_money(c.total)} ({c.percentage:.1f}%)"
            for c in stats.top_categories
        )

        sample = request.transactions[:self._max_lines]
        transaction_lines = "\n".join(t.to_prompt_line() for t in sample)
        if len(request.transactions) > len(sample):
            transaction_lines += (
                f"\n... and {len(request.transactions) - len(sample)} more transactions"
            )

        data_block = f"""Spending data for {request.period_label}:
- Total spent: {format_money(stats.total)}
- Number of transactions: {stats.transaction_count}
- Top categories:
{category_lines}

Transactions (date | category | amount | description):
{transaction_lines or "(omitted)"}"""

        if request.budget is not None:
            task = f"""The student has a monthly budget of {format_money(request.budget)}.
Based on their past spending, create:
1. An ideal monthly expense distribution across categories (in %)
2. A recommended savings amount
3. Brief suggestions for staying within the budget

Formatting rules:
- Use markdown with the headings "## Ideal Distribution", "## Recommended Savings" and "## Suggestions"
- Use bullet points, not tables
- Keep it under 250 words"""
        else:
            task = """Write a concise summary that:
1. Highlights the main expense areas
2. Points out any overspending
3. Gives 2-3 specific suggestions for saving next month

Formatting rules:
- Use markdown with the headings "## Overview", "## Key Observations" and "## Suggestions"
- Use bullet points, not tables
- Keep it under 200 words"""

        return f"""You are a friendly financial coach helping a college student understand their spending.

{data_block}

{task}

IMPORTANT: Use ONLY the figures above. Do NOT invent amounts or transactions."""

    async def generate(
        self,
        request: InsightRequest,
        stats: SpendingStats,
    ) -> InsightOutcome:
        prompt = self.build_prompt(request, stats)

        try:
            response = await self._model.generate_content_async(prompt)
            # .text raises ValueError when the candidate was blocked
            text = (response.text or "").strip()
        except Exception as e:
            raise InsightGenerationError(f"Gemini request failed: {type(e).__name__}") from e

        if not text:
            raise InsightGenerationError("Gemini returned an empty response")

        return InsightOutcome(text=text)


# =============================================================================
# OFFLINE GENERATOR
# =============================================================================

CATEGORY_TIPS = {
    "food": "Cooking in batches and packing lunch a few days a week adds up quickly.",
    "rent": "Rent is hard to cut short-term; look at splitting utilities or finding a roommate next lease.",
    "travel": "Student transit passes and booking trips early usually beat last-minute fares.",
    "clothing": "Try a 48-hour wait before non-essential clothing purchases.",
    "entertainment": "Check for student discounts and share streaming subscriptions where allowed.",
}

DEFAULT_TIP = "Set a weekly limit for your top category and check in on it every Sunday."


class OfflineInsightGenerator(InsightGenerator):
    """
    Deterministic insight generator.

    Same statistics, same ranking, templated prose.
    Used whenever the live provider is unavailable.
    """

    async def generate(
        self,
        request: InsightRequest,
        stats: SpendingStats,
    ) -> InsightOutcome:
        return InsightOutcome(text=self.render(request, stats))

    def render(self, request: InsightRequest, stats: SpendingStats) -> str:
        plural = "transaction" if stats.transaction_count == 1 else "transactions"
        lines = [
            f"## Spending Summary for {request.period_label}",
            "",
            f"You spent **{format_money(stats.total)}** across "
            f"{stats.transaction_count} {plural}.",
            "",
            "### Top Categories",
        ]
        for c in stats.top_categories:
            lines.append(f"- **{c.category}**: {format_money(c.total)} ({c.percentage:.1f}%)")

        largest = stats.largest_transaction
        if largest is not None:
            detail = f" ({largest.description})" if largest.description else ""
            lines += [
                "",
                f"Largest single expense: {format_money(largest.amount)} "
                f"on {largest.category_label}{detail}.",
            ]

        if request.budget is not None:
            lines += ["", "### Budget", self._budget_line(request.budget, stats.total)]

        lines += [
            "",
            "### Suggestion",
            self._tip_for(stats),
            "",
            "_This summary was generated offline because AI insights are currently unavailable._",
        ]
        return "\n".join(lines)

    @staticmethod
    def _budget_line(budget: Decimal, total: Decimal) -> str:
        remaining = budget - total
        if remaining >= 0:
            return (
                f"You have {format_money(remaining)} left of your "
                f"{format_money(budget)} budget."
            )
        return (
            f"You are {format_money(-remaining)} over your "
            f"{format_money(budget)} budget."
        )

    @staticmethod
    def _tip_for(stats: SpendingStats) -> str:
        if not stats.top_categories:
            return DEFAULT_TIP
        return CATEGORY_TIPS.get(stats.top_categories[0].category.lower(), DEFAULT_TIP)


# =============================================================================
# FALLBACK WRAPPER
# =============================================================================

class FallbackInsightGenerator(InsightGenerator):
    """
    Tries the live generator, falls back to the offline one.

    The caller always gets an outcome. When the fallback was used,
    `outcome.fallback` is True and `outcome.error` carries a short
    reason that is safe to show to the client.
    """

    def __init__(
        self,
        primary: Optional[InsightGenerator],
        fallback: InsightGenerator,
    ):
        """
        Args:
            primary: Live generator. None means no provider is configured
                     and every request is served by the fallback.
            fallback: Deterministic generator.
        """
        self._primary = primary
        self._fallback = fallback

    @property
    def has_live_provider(self) -> bool:
        return self._primary is not None

    async def generate(
        self,
        request: InsightRequest,
        stats: SpendingStats,
    ) -> InsightOutcome:
        if self._primary is None:
            return await self._fall_back(request, stats, PROVIDER_UNAVAILABLE)

        try:
            return await self._primary.generate(request, stats)
        except InsightGenerationError as e:
            logger.warning("insight_provider_failed", error=str(e))
            return await self._fall_back(request, stats, str(e))
        except Exception as e:
            logger.exception("insight_provider_crashed", error_type=type(e).__name__)
            return await self._fall_back(request, stats, PROVIDER_UNAVAILABLE)

    async def _fall_back(
        self,
        request: InsightRequest,
        stats: SpendingStats,
        reason: str,
    ) -> InsightOutcome:
        outcome = await self._fallback.generate(request, stats)
        return InsightOutcome(text=outcome.text, fallback=True, error=reason)
