"""Storing aggregator transactions and deciding when to re-analyse"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from money_dashboard.domain.ingestion import analysis_trigger, convert_plaid_transaction
from money_dashboard.domain.models import Transaction
from money_dashboard.infrastructure.database.repositories import (
    AutomatedPaymentRepository,
    SettingsRepository,
    TransactionRepository,
)
from money_dashboard.infrastructure.observability.metrics import transactions_ingested_counter
from money_dashboard.services.analysis import effective_bonus_range, effective_paycheck_amount


def convert_records(
    records: Iterable[Dict[str, Any]], user_id: str, paycheck_amount: Optional[float] = None
) -> List[Transaction]:
    """Convert aggregator records, skipping any that are malformed"""
    converted = []
    for record in records:
        try:
            converted.append(convert_plaid_transaction(record, user_id, paycheck_amount))
        except (KeyError, ValueError, TypeError) as e:
            logging.warning(f"Skipping malformed transaction record: {e}", extra={"user_id": user_id})
    return converted


def process_new_transactions(
    db: Session,
    user_id: str,
    records: Iterable[Dict[str, Any]],
    source: str,
) -> Tuple[List[Transaction], Optional[str]]:
    """
    Upsert aggregator records for a user.

    Returns the newly inserted transactions and the reason an analysis
    should run (None when nothing was received).
    """
    user_settings = SettingsRepository(db).get_or_default(user_id)
    transactions = convert_records(records, user_id, effective_paycheck_amount(user_settings))
    inserted = TransactionRepository(db).upsert_transactions(transactions)
    transactions_ingested_counter.labels(source=source).inc(len(transactions))

    trigger = analysis_trigger(
        AutomatedPaymentRepository(db).has_payments(user_id),
        transactions,
        effective_bonus_range(user_settings),
    )
    logging.info(
        "Transactions ingested",
        extra={
            "user_id": user_id,
            "source": source,
            "received": len(transactions),
            "inserted": len(inserted),
            "analysis_trigger": trigger,
        },
    )
    return inserted, trigger
