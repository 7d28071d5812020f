"""Spending analytics package."""

from spendwise.insights.analytics import (
    ENGINE_NAME,
    budget_usage,
    category_totals,
    detect_subscriptions,
    health_report,
    search_transactions,
    spending_summary,
)

__all__ = [
    "ENGINE_NAME",
    "budget_usage",
    "category_totals",
    "detect_subscriptions",
    "health_report",
    "search_transactions",
    "spending_summary",
]
