"""Validation and application of LLM transaction analysis results"""

import logging
import uuid
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

from money_dashboard.domain.constants import (
    AI_PAYMENT_CONFIDENCE,
    PAYMENT_FREQUENCIES,
    PAYMENT_MATCH_TOLERANCE,
    TRANSACTION_CATEGORIES,
)
from money_dashboard.domain.models import (
    AnalysisResult,
    Anomaly,
    AutomatedPayment,
    BonusMatch,
    CategoryMapping,
    PaycheckMatch,
    Transaction,
)
from money_dashboard.utils.date_utils import utcnow


def prepare_transactions_for_ai(transactions: Sequence[Transaction]) -> List[Dict[str, Any]]:
    """Indexed, minimal view of each transaction; the model refers back by index"""
    return [
        {
            "index": index,
            "id": txn.id,
            "date": txn.date.isoformat(),
            "amount": txn.amount,
            "vendor": txn.vendor,
            "description": txn.description,
            "pending": txn.pending,
        }
        for index, txn in enumerate(transactions)
    ]


def validate_frequency(frequency: Any) -> str:
    return frequency if frequency in PAYMENT_FREQUENCIES else "monthly"


def validate_category(category: Any) -> str:
    return category if category in TRANSACTION_CATEGORIES else "other"


def parse_iso_date(value: Any) -> Optional[date]:
    """Accept 'YYYY-MM-DD' or a full ISO timestamp; anything else is None"""
    if not isinstance(value, str) or len(value) < 10:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def _is_valid_automated_payment(payment: Any) -> bool:
    if not isinstance(payment, dict):
        return False
    amount = payment.get("amount")
    return (
        bool(payment.get("vendor"))
        and isinstance(amount, (int, float))
        and not isinstance(amount, bool)
        and amount > 0
        and bool(payment.get("frequency"))
        and bool(payment.get("category"))
    )


def _resolve(transactions: Sequence[Transaction], item: Any) -> Optional[Transaction]:
    """Map an item's transaction_index back to a transaction, or None if out of range"""
    if not isinstance(item, dict):
        return None
    index = item.get("transaction_index")
    if not isinstance(index, int) or isinstance(index, bool) or not 0 <= index < len(transactions):
        return None
    return transactions[index]


def _items(raw: Dict[str, Any], key: str) -> List[Any]:
    value = raw.get(key)
    return value if isinstance(value, list) else []


def _number(value: Any, default: float = 0.0) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    return default


def process_ai_results(
    raw: Dict[str, Any],
    transactions: Sequence[Transaction],
    user_id: str,
    start_date: date,
    end_date: date,
) -> AnalysisResult:
    """
    Turn the model's JSON into a validated AnalysisResult.

    - Automated payments need vendor, positive amount, frequency, and category;
      unknown frequencies become monthly and unknown categories become other.
    - Index-based entries whose index does not resolve to a transaction are dropped.
    - Confidences are clamped to [0, 1].
    """
    now = utcnow()
    result = AnalysisResult(user_id=user_id, start_date=start_date, end_date=end_date, analyzed_at=now)

    for payment in _items(raw, "automated_payments"):
        if not _is_valid_automated_payment(payment):
            logging.debug("Dropping invalid automated payment from analysis", extra={"user_id": user_id})
            continue
        result.automated_payments.append(
            AutomatedPayment(
                id=f"auto_{uuid.uuid4().hex}",
                user_id=user_id,
                vendor=payment["vendor"],
                amount=abs(float(payment["amount"])),
                frequency=validate_frequency(payment["frequency"]),
                category=validate_category(payment["category"]),
                last_occurrence=parse_iso_date(payment.get("last_occurrence")) or end_date,
                confidence=AI_PAYMENT_CONFIDENCE,
                created_at=now,
                updated_at=now,
            )
        )

    for item in _items(raw, "anomalies"):
        txn = _resolve(transactions, item)
        if txn is not None:
            result.anomalies.append(Anomaly(transaction_id=txn.id, reason=item.get("reason") or "Unusual transaction"))

    for item in _items(raw, "paychecks"):
        txn = _resolve(transactions, item)
        if txn is not None:
            result.paychecks.append(
                PaycheckMatch(
                    transaction_id=txn.id,
                    amount=_number(item.get("amount")),
                    date=parse_iso_date(item.get("date")) or txn.date,
                    is_bonus=bool(item.get("is_bonus", False)),
                )
            )

    for item in _items(raw, "bonuses"):
        txn = _resolve(transactions, item)
        if txn is not None:
            result.bonuses.append(
                BonusMatch(
                    transaction_id=txn.id,
                    amount=_number(item.get("amount")),
                    date=parse_iso_date(item.get("date")) or txn.date,
                )
            )

    for item in _items(raw, "categories"):
        txn = _resolve(transactions, item)
        if txn is not None:
            confidence = _number(item.get("confidence"), default=0.5) or 0.5
            result.category_mappings.append(
                CategoryMapping(
                    transaction_id=txn.id,
                    category=validate_category(item.get("category")),
                    confidence=max(0.0, min(1.0, confidence)),
                )
            )

    return result


def apply_analysis(analysis: AnalysisResult, transactions: Sequence[Transaction]) -> List[Transaction]:
    """
    Apply category and paycheck/bonus classifications to the analysed transactions.

    Returns only the transactions that changed (mutated in place).
    """
    by_id = {t.id: t for t in transactions}
    changed: Dict[str, Transaction] = {}
    now = utcnow()

    def _update(transaction_id: str, **fields: Any) -> None:
        txn = by_id.get(transaction_id)
        if txn is None:
            return
        for name, value in fields.items():
            setattr(txn, name, value)
        txn.updated_at = now
        changed[txn.id] = txn

    for mapping in analysis.category_mappings:
        _update(mapping.transaction_id, category=mapping.category)

    for paycheck in analysis.paychecks:
        _update(paycheck.transaction_id, type="bonus" if paycheck.is_bonus else "paycheck")

    for bonus in analysis.bonuses:
        _update(bonus.transaction_id, type="bonus")

    return list(changed.values())


def merge_automated_payments(
    existing: Sequence[AutomatedPayment],
    detected: Sequence[AutomatedPayment],
) -> List[AutomatedPayment]:
    """
    Merge newly detected payments into the existing list.

    A detected payment with the same vendor and an amount within $0.01 updates
    the existing entry (keeping its id and created_at); otherwise it is appended.
    """
    merged = list(existing)
    now = utcnow()

    for payment in detected:
        match_index = next(
            (
                i
                for i, current in enumerate(merged)
                if current.vendor == payment.vendor
                and abs(current.amount - payment.amount) < PAYMENT_MATCH_TOLERANCE
            ),
            None,
        )
        if match_index is None:
            merged.append(payment)
            continue

        current = merged[match_index]
        merged[match_index] = AutomatedPayment(
            id=current.id,
            user_id=current.user_id,
            vendor=payment.vendor,
            amount=payment.amount,
            frequency=payment.frequency,
            category=payment.category,
            last_occurrence=payment.last_occurrence,
            confidence=payment.confidence,
            next_expected=payment.next_expected or current.next_expected,
            created_at=current.created_at,
            updated_at=now,
        )

    return merged


def analysis_summary(analysis: AnalysisResult) -> Dict[str, int]:
    return {
        "automated_payment_count": len(analysis.automated_payments),
        "anomaly_count": len(analysis.anomalies),
        "paycheck_count": len(analysis.paychecks),
        "bonus_count": len(analysis.bonuses),
        "categorized_transactions": len(analysis.category_mappings),
    }
