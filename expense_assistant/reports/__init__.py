"""Scheduled report aggregation package."""

from expense_assistant.reports.aggregator import (
    EligibilityPredicate,
    ReportAggregator,
    authorized_only,
    everyone,
    group_by_day,
)

__all__ = [
    "EligibilityPredicate",
    "ReportAggregator",
    "authorized_only",
    "everyone",
    "group_by_day",
]
