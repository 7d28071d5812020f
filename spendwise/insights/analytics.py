"""
Spending Analytics

Deterministic computations over stored transactions:

- subscription detection (a single-pass frequency count)
- budget usage (sum per category divided by a fixed limit)
- spending summary (totals per category and per day)
- free-text search

Nothing here calls a model or touches storage; callers pass the
transaction list in. Amounts are coerced leniently, so a malformed
amount counts as zero instead of failing the whole report.
"""

import math
from collections import Counter
from typing import Mapping, Optional

from spendwise.models.schemas import (
    BudgetUsage,
    CategoryTotal,
    DailyTotal,
    DatabaseStats,
    HealthReport,
    SpendingSummary,
)
from spendwise.models.transaction import Transaction, coerce_amount


ENGINE_NAME = "Spend Wise Secure v6.0"


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def detect_subscriptions(transactions: list[Transaction]) -> list[Transaction]:
    """
    Flag recurring charges.

    An item is a potential subscription when it appears more than once.
    Only positive amounts qualify. One transaction is returned per item,
    ordered by where the item first appears, and it is the last matching
    transaction for that item.
    """
    counts = Counter(tx.item for tx in transactions)

    subscriptions: dict[str, Transaction] = {}
    for tx in transactions:
        if counts[tx.item] > 1 and coerce_amount(tx.amount) > 0:
            subscriptions[tx.item] = tx
    return list(subscriptions.values())


def budget_usage(
    transactions: list[Transaction],
    limits: Mapping[str, float],
) -> list[BudgetUsage]:
    """
    Compare spending per category with its limit.

    Categories without a limit are ignored. ``percent`` is capped at 100.
    """
    totals = category_totals(transactions)

    usage = []
    for category, limit in limits.items():
        actual = totals.get(category, 0.0)
        percent = min(100, _round_half_up(actual / limit * 100)) if limit > 0 else 100
        usage.append(
            BudgetUsage(
                name=category,
                limit=limit,
                actual=actual,
                percent=max(0, percent),
            )
        )
    return usage


def category_totals(transactions: list[Transaction]) -> dict[str, float]:
    """Sum of amounts per category, in order of first appearance."""
    totals: dict[str, float] = {}
    for tx in transactions:
        totals[tx.category] = totals.get(tx.category, 0.0) + coerce_amount(tx.amount)
    return totals


def spending_summary(transactions: list[Transaction]) -> SpendingSummary:
    """Overall total, per-category totals and per-day totals sorted by date."""
    daily: dict[str, float] = {}
    total = 0.0
    for tx in transactions:
        amount = coerce_amount(tx.amount)
        total += amount
        daily[tx.date] = daily.get(tx.date, 0.0) + amount

    return SpendingSummary(
        total=total,
        by_category=[
            CategoryTotal(name=name, amount=amount)
            for name, amount in category_totals(transactions).items()
        ],
        daily=[DailyTotal(date=day, amount=daily[day]) for day in sorted(daily)],
    )


def search_transactions(
    transactions: list[Transaction],
    query: Optional[str],
) -> list[Transaction]:
    """Case-insensitive substring match on item or category."""
    if not query:
        return list(transactions)
    needle = query.lower()
    return [
        tx for tx in transactions
        if needle in tx.item.lower() or needle in tx.category.lower()
    ]


def health_report(
    uptime_seconds: float,
    provider_status: Mapping[str, str],
    database_size: int,
    record_count: int,
) -> HealthReport:
    """Snapshot of engine status for the admin console."""
    return HealthReport(
        engine=ENGINE_NAME,
        uptime=uptime_seconds,
        ai_nodes=dict(provider_status),
        database=DatabaseStats(size=database_size, records=record_count),
    )
