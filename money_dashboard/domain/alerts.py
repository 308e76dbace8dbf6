"""Alert rule evaluation over an outlook, recent activity, and automated payments"""

import uuid
from datetime import date, timedelta
from typing import Iterable, List, Optional

from money_dashboard.domain.constants import (
    ALERT_LOOKBACK_DAYS,
    LARGE_TRANSACTION_AMOUNT,
    MISSING_PAYMENT_AFTER_DAY,
    MISSING_PAYMENT_TOLERANCE,
    UPCOMING_BONUS_DAYS,
)
from money_dashboard.domain.models import Alert, AutomatedPayment, FinancialOutlook, Transaction
from money_dashboard.utils.date_utils import is_same_month, utcnow


def _new_alert(user_id: str, type_: str, title: str, message: str, severity: str, dedupe_key: str, data: dict) -> Alert:
    return Alert(
        id=f"alert_{uuid.uuid4().hex}",
        user_id=user_id,
        type=type_,
        title=title,
        message=message,
        severity=severity,
        dedupe_key=dedupe_key,
        data=data,
        read=False,
        created_at=utcnow(),
    )


def _low_funds(user_id: str, outlook: FinancialOutlook, today: date) -> Optional[Alert]:
    if outlook.over_under >= 0:
        return None

    if outlook.next_bonus_date is not None:
        time_frame = f"until your next bonus on {outlook.next_bonus_date.isoformat()}"
    else:
        time_frame = f"over the next {outlook.projection_days} days"

    return _new_alert(
        user_id,
        "low_funds",
        "Low Funds Warning",
        f"You have a projected shortfall of ${abs(outlook.over_under):.2f} {time_frame}.",
        "warning",
        f"low_funds:{today.isoformat()}",
        {"shortfall": outlook.over_under, "days_until_bonus": outlook.days_until_bonus},
    )


def _upcoming_bonus(user_id: str, outlook: FinancialOutlook) -> Optional[Alert]:
    if outlook.next_bonus_date is None or not (0 < outlook.days_until_bonus <= UPCOMING_BONUS_DAYS):
        return None

    bonus_date = outlook.next_bonus_date.isoformat()
    return _new_alert(
        user_id,
        "upcoming_bonus",
        "Bonus Incoming",
        f"Your bonus is expected in {outlook.days_until_bonus} days on {bonus_date}.",
        "info",
        f"upcoming_bonus:{bonus_date}",
        {"bonus_date": bonus_date, "days_until_bonus": outlook.days_until_bonus},
    )


def _large_transactions(user_id: str, transactions: List[Transaction], since: date) -> List[Alert]:
    alerts = []
    for txn in transactions:
        if abs(txn.amount) <= LARGE_TRANSACTION_AMOUNT or txn.type in ("paycheck", "bonus") or txn.date < since:
            continue
        alerts.append(
            _new_alert(
                user_id,
                "unexpected_transaction",
                "Large Transaction Detected",
                f"A transaction of ${abs(txn.amount):.2f} at {txn.vendor} was detected. "
                "Please verify this is correct.",
                "warning",
                f"unexpected_transaction:{txn.id}",
                {
                    "transaction_id": txn.id,
                    "amount": txn.amount,
                    "vendor": txn.vendor,
                    "date": txn.date.isoformat(),
                },
            )
        )
    return alerts


def _detected_bonuses(user_id: str, transactions: List[Transaction], since: date) -> List[Alert]:
    return [
        _new_alert(
            user_id,
            "bonus_detected",
            "Bonus Received",
            f"A bonus deposit of ${abs(txn.amount):.2f} was received on {txn.date.isoformat()}.",
            "info",
            f"bonus_detected:{txn.id}",
            {"transaction_id": txn.id, "amount": txn.amount, "date": txn.date.isoformat()},
        )
        for txn in transactions
        if txn.type == "bonus" and txn.date >= since
    ]


def _missing_payments(
    user_id: str,
    transactions: List[Transaction],
    automated_payments: Iterable[AutomatedPayment],
    today: date,
) -> List[Alert]:
    if today.day <= MISSING_PAYMENT_AFTER_DAY:
        return []

    month_label = today.strftime("%B %Y")
    alerts = []
    for payment in automated_payments:
        if payment.frequency != "monthly":
            continue

        vendor = payment.vendor.lower()
        paid = any(
            vendor in (t.vendor or "").lower()
            and is_same_month(t.date, today)
            and abs(abs(t.amount) - payment.amount) < MISSING_PAYMENT_TOLERANCE
            for t in transactions
        )
        if paid:
            continue

        alerts.append(
            _new_alert(
                user_id,
                "missing_payment",
                "Missing Expected Payment",
                f"Expected monthly payment of ${payment.amount:.2f} to {payment.vendor} not found for {month_label}.",
                "warning",
                f"missing_payment:{payment.id}:{today.strftime('%Y-%m')}",
                {
                    "payment_id": payment.id,
                    "vendor": payment.vendor,
                    "expected_amount": payment.amount,
                    "frequency": payment.frequency,
                },
            )
        )
    return alerts


def generate_alerts(
    user_id: str,
    outlook: FinancialOutlook,
    recent_transactions: Iterable[Transaction],
    automated_payments: Iterable[AutomatedPayment],
    today: Optional[date] = None,
) -> List[Alert]:
    """
    Evaluate every alert rule and return the alerts that fire.

    Each alert carries a dedupe_key identifying the condition (e.g. one
    missing-payment alert per payment per month) so callers can skip
    conditions they have already reported.
    """
    if today is None:
        today = date.today()
    transactions = list(recent_transactions)
    since = today - timedelta(days=ALERT_LOOKBACK_DAYS)

    alerts: List[Alert] = []
    for alert in (_low_funds(user_id, outlook, today), _upcoming_bonus(user_id, outlook)):
        if alert is not None:
            alerts.append(alert)
    alerts.extend(_large_transactions(user_id, transactions, since))
    alerts.extend(_missing_payments(user_id, transactions, automated_payments, today))
    alerts.extend(_detected_bonuses(user_id, transactions, since))
    return alerts
