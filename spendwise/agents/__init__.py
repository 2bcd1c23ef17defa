"""Insight generators package."""

from spendwise.agents.insight_generators import (
    NO_DATA_MESSAGE,
    FallbackInsightGenerator,
    GeminiInsightGenerator,
    InsightGenerationError,
    InsightGenerator,
    InsightOutcome,
    OfflineInsightGenerator,
)

__all__ = [
    "NO_DATA_MESSAGE",
    "FallbackInsightGenerator",
    "GeminiInsightGenerator",
    "InsightGenerationError",
    "InsightGenerator",
    "InsightOutcome",
    "OfflineInsightGenerator",
]
