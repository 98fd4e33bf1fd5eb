"""Statistics package."""

from volttracker.queries.statistics import (
    average_duration_days,
    average_spent,
    chart_series,
    compute_statistics,
    total_spent,
)

__all__ = [
    "average_duration_days",
    "average_spent",
    "chart_series",
    "compute_statistics",
    "total_spent",
]
