"""Spending aggregation by category"""

from datetime import date
from typing import Dict, Iterable, List, Optional

from money_dashboard.domain.models import CategorySpend, Transaction
from money_dashboard.utils.date_utils import period_start


def calculate_spending_by_category(
    transactions: Iterable[Transaction],
    time_period: str = "monthly",
    today: Optional[date] = None,
) -> List[CategorySpend]:
    """
    Group debits in the current period by category.

    Credits (amount >= 0) never count. Output is sorted by total spend,
    largest first.
    """
    if today is None:
        today = date.today()
    start = period_start(time_period, today)

    totals: Dict[str, float] = {}
    counts: Dict[str, int] = {}

    for txn in transactions:
        if not (start <= txn.date <= today):
            continue
        if txn.amount >= 0:
            continue

        category = txn.category or "other"
        totals[category] = totals.get(category, 0.0) + abs(txn.amount)
        counts[category] = counts.get(category, 0) + 1

    spending = [
        CategorySpend(
            category=category,
            amount=amount,
            transaction_count=counts[category],
            time_period=time_period,
        )
        for category, amount in totals.items()
    ]
    return sorted(spending, key=lambda s: s.amount, reverse=True)
