"""Conversion of bank aggregator records and paycheck/bonus heuristics"""

from datetime import date
from typing import Any, Dict, Iterable, Optional

from money_dashboard.domain.models import BonusRange, Transaction
from money_dashboard.utils.date_utils import utcnow

QUARTER_END_MONTHS = (3, 6, 9, 12)
BONUS_RANGE_HEADROOM = 1.5
BONUS_EARLIEST_DAY = 20
PAYCHECK_TOLERANCE = 50.0


def detect_regular_paycheck(amount: float, paycheck_amount: Optional[float]) -> bool:
    if not paycheck_amount:
        return False
    return abs(amount - paycheck_amount) <= PAYCHECK_TOLERANCE


def convert_plaid_transaction(
    record: Dict[str, Any], user_id: str, paycheck_amount: Optional[float] = None
) -> Transaction:
    """
    Convert a Plaid transaction to a Transaction.

    Plaid reports debits as positive amounts, so the sign is flipped. New
    records start uncategorised; credits near the configured paycheck amount
    are typed as paychecks, and analysis refines category and type later.

    Raises:
        KeyError, ValueError: when required fields are missing or malformed
    """
    plaid_amount = float(record["amount"])
    is_credit = plaid_amount < 0
    now = utcnow()

    if not is_credit:
        txn_type = "manual_charge"
    elif detect_regular_paycheck(-plaid_amount, paycheck_amount):
        txn_type = "paycheck"
    else:
        txn_type = "deposit"

    return Transaction(
        id=record["transaction_id"],
        user_id=user_id,
        plaid_transaction_id=record["transaction_id"],
        account_id=record.get("account_id") or "",
        amount=-plaid_amount,
        date=date.fromisoformat(record["date"]),
        vendor=record.get("merchant_name") or record.get("name") or "Unknown",
        description=record.get("name") or "",
        category="other",
        type=txn_type,
        pending=bool(record.get("pending", False)),
        created_at=now,
        updated_at=now,
    )


def detect_bonus_paycheck(amount: float, on: date, bonus_range: Optional[BonusRange]) -> bool:
    """
    A bonus lands late in a quarter-end month or the month after, and its
    amount falls in the configured range (with headroom above the max).
    """
    if bonus_range is None:
        return False
    if amount < bonus_range.min or amount > bonus_range.max * BONUS_RANGE_HEADROOM:
        return False

    previous_month = 12 if on.month == 1 else on.month - 1
    after_quarter_end = on.month in QUARTER_END_MONTHS or previous_month in QUARTER_END_MONTHS
    return after_quarter_end and on.day >= BONUS_EARLIEST_DAY


def analysis_trigger(
    has_automated_payments: bool,
    new_transactions: Iterable[Transaction],
    bonus_range: Optional[BonusRange],
) -> Optional[str]:
    """
    Reason an ingestion batch warrants a fresh AI analysis, or None.

    Users with no automated payments always need one; so do batches that
    contain a potential bonus. Any other non-empty batch also triggers one,
    since analysis frequency is not tracked yet.
    """
    new_transactions = list(new_transactions)
    if not new_transactions:
        return None
    if not has_automated_payments:
        return "no_automated_payments"
    if any(detect_bonus_paycheck(t.amount, t.date, bonus_range) for t in new_transactions):
        return "potential_bonus"
    return "new_transactions"


def latest_paycheck_date(transactions: Iterable[Transaction]) -> Optional[date]:
    """Most recent transaction classified as a paycheck"""
    dates = [t.date for t in transactions if t.type == "paycheck"]
    return max(dates) if dates else None
