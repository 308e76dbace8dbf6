"""AI analysis runs: on demand, during setup, and in the background after ingestion"""

import logging
import time
from datetime import date
from typing import Callable, List, Optional, Tuple

from sqlalchemy.orm import Session

from money_dashboard.config import settings
from money_dashboard.domain.analysis import (
    analysis_summary,
    apply_analysis,
    merge_automated_payments,
    prepare_transactions_for_ai,
    process_ai_results,
)
from money_dashboard.domain.exceptions import InvalidAnalysisRangeError, LLMAPIError, NotFoundError
from money_dashboard.domain.models import AnalysisResult, BonusRange, Transaction, UserSettings
from money_dashboard.infrastructure.cache import TTLCache
from money_dashboard.infrastructure.clients.llm import LLMClient
from money_dashboard.infrastructure.database.repositories import (
    AnalysisRepository,
    AutomatedPaymentRepository,
    SettingsRepository,
    TransactionRepository,
)
from money_dashboard.infrastructure.observability.logging import log_analysis
from money_dashboard.infrastructure.observability.metrics import analysis_counter
from money_dashboard.utils.date_utils import lookback_range


def effective_paycheck_amount(user_settings: UserSettings) -> Optional[float]:
    return user_settings.paycheck_deposit_amount or settings.paycheck_deposit_amount


def effective_bonus_range(user_settings: UserSettings) -> Optional[BonusRange]:
    if user_settings.bonus_range is not None:
        return user_settings.bonus_range
    if settings.bonus_amount_min is not None and settings.bonus_amount_max is not None:
        return BonusRange(min=settings.bonus_amount_min, max=settings.bonus_amount_max)
    return None


def validate_range(start_date: date, end_date: date) -> None:
    if end_date < start_date:
        raise InvalidAnalysisRangeError("end_date must not be before start_date")
    if (end_date - start_date).days > settings.max_analysis_range_days:
        raise InvalidAnalysisRangeError("Date range cannot exceed 3 months")


async def analyze_range(
    db: Session,
    llm_client: LLMClient,
    user_id: str,
    start_date: date,
    end_date: date,
) -> Tuple[AnalysisResult, List[Transaction]]:
    """
    Run a fresh analysis over the user's transactions in [start_date, end_date]
    and store the result.

    Raises:
        InvalidAnalysisRangeError: range reversed or longer than the maximum
        NotFoundError: no transactions in range
        LLMAPIError: model call failed
    """
    validate_range(start_date, end_date)

    transactions = TransactionRepository(db).get_user_transactions(user_id, start_date, end_date)
    if not transactions:
        raise NotFoundError("No transactions found in the specified date range")

    user_settings = SettingsRepository(db).get_or_default(user_id)
    raw = await llm_client.analyze_transactions(
        prepare_transactions_for_ai(transactions),
        paycheck_amount=effective_paycheck_amount(user_settings),
        bonus_range=effective_bonus_range(user_settings),
    )
    analysis = process_ai_results(raw, transactions, user_id, start_date, end_date)
    AnalysisRepository(db).save_analysis(analysis)
    return analysis, transactions


def apply_to_account(db: Session, analysis: AnalysisResult, transactions: List[Transaction]) -> None:
    """Write classifications back to transactions and merge detected payments"""
    changed = apply_analysis(analysis, transactions)
    TransactionRepository(db).save_classifications(changed)

    payment_repo = AutomatedPaymentRepository(db)
    merged = merge_automated_payments(payment_repo.get_payments(analysis.user_id), analysis.automated_payments)
    payment_repo.replace_all(analysis.user_id, merged)


async def run_background_analysis(
    session_factory: Callable[[], Session],
    llm_client: LLMClient,
    cache: TTLCache,
    user_id: str,
    trigger: str,
) -> None:
    """
    Analyse the look-back window and apply the result.

    Runs after the response is sent, so failures are logged and counted
    rather than raised.
    """
    start_time = time.time()
    start_date, end_date = lookback_range(settings.analysis_lookback_days)
    db = session_factory()
    try:
        analysis, transactions = await analyze_range(db, llm_client, user_id, start_date, end_date)
        apply_to_account(db, analysis, transactions)
        db.commit()
    except NotFoundError:
        db.rollback()
        logging.info("No transactions to analyse", extra={"user_id": user_id, "trigger": trigger})
        return
    except LLMAPIError as e:
        db.rollback()
        analysis_counter.labels(outcome="failure").inc()
        logging.warning(f"Background analysis failed: {e}", extra={"user_id": user_id, "trigger": trigger})
        return
    except Exception as e:
        db.rollback()
        analysis_counter.labels(outcome="failure").inc()
        logging.error(f"Unexpected error during analysis: {e}", extra={"user_id": user_id, "trigger": trigger})
        return
    finally:
        db.close()

    cache.invalidate_user(user_id)
    analysis_counter.labels(outcome="success").inc()
    duration_ms = (time.time() - start_time) * 1000
    log_analysis(user_id, len(transactions), analysis_summary(analysis), duration_ms, trigger)
