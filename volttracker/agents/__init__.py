"""AI Agents package."""

from volttracker.agents.ai_agents import (
    ANALYSIS_WINDOW,
    EMPTY_ANALYSIS_MESSAGE,
    AnalysisFailedError,
    BillInsightAgent,
    InsightError,
    select_recent,
)

__all__ = [
    "ANALYSIS_WINDOW",
    "EMPTY_ANALYSIS_MESSAGE",
    "AnalysisFailedError",
    "BillInsightAgent",
    "InsightError",
    "select_recent",
]
