"""Setup wizard: status, bonus configuration with initial analysis, and payment confirmation"""

import logging
import uuid
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from money_dashboard.api.dependencies import get_cache, get_current_user, get_llm_client, get_request_id
from money_dashboard.api.v1.schemas import (
    AnalysisSummarySchema,
    AutomatedPaymentSchema,
    SetupCompleteRequest,
    SetupCompleteResponse,
    SetupInitializeRequest,
    SetupInitializeResponse,
    SetupProgress,
    SetupStatusResponse,
)
from money_dashboard.config import settings
from money_dashboard.domain.constants import USER_PAYMENT_CONFIDENCE
from money_dashboard.domain.exceptions import LLMAPIError, NotFoundError
from money_dashboard.domain.models import AutomatedPayment
from money_dashboard.infrastructure.cache import TTLCache
from money_dashboard.infrastructure.clients.llm import LLMClient
from money_dashboard.infrastructure.database.models import User
from money_dashboard.infrastructure.database.repositories import AutomatedPaymentRepository, SettingsRepository
from money_dashboard.infrastructure.database.session import get_db
from money_dashboard.services.analysis import analyze_range, effective_bonus_range, effective_paycheck_amount
from money_dashboard.utils.date_utils import lookback_range, utcnow

router = APIRouter(prefix="/setup")


@router.get("/status", response_model=SetupStatusResponse)
def setup_status(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    user_settings = SettingsRepository(db).get_or_default(user.id)
    has_bank = user_settings.has_bank_connection
    has_bonus = user_settings.next_bonus_date is not None
    has_payments = AutomatedPaymentRepository(db).has_payments(user.id)

    return SetupStatusResponse(
        is_setup_complete=has_bank and has_bonus and has_payments,
        has_bank_connection=has_bank,
        has_bonus_date=has_bonus,
        has_automated_payments=has_payments,
        setup_progress=SetupProgress(bank=has_bank, bonus=has_bonus, payments=has_payments),
    )


@router.post("/initialize", response_model=SetupInitializeResponse)
async def setup_initialize(
    body: SetupInitializeRequest,
    request: Request,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    llm_client: LLMClient = Depends(get_llm_client),
    cache: TTLCache = Depends(get_cache),
):
    """
    Store the bonus configuration, then analyse the last 90 days and return
    the detected automated payments for the user to review.
    """
    request_id = get_request_id(request)

    if body.has_bonus:
        if body.bonus_date is None:
            raise HTTPException(status_code=400, detail="Bonus date is required when bonuses are enabled")
        if body.bonus_date <= date.today():
            raise HTTPException(status_code=400, detail="Bonus date must be in the future")

    repo = SettingsRepository(db)
    user_settings = repo.get_or_default(user.id)
    user_settings.next_bonus_date = body.bonus_date if body.has_bonus else None
    user_settings.paycheck_deposit_amount = effective_paycheck_amount(user_settings)
    bonus_range = effective_bonus_range(user_settings)
    if bonus_range is not None:
        user_settings.bonus_amount_min, user_settings.bonus_amount_max = bonus_range.min, bonus_range.max
    repo.save_settings(user_settings)
    db.commit()
    cache.invalidate_user(user.id)

    start_date, end_date = lookback_range(settings.analysis_lookback_days)
    try:
        analysis, transactions = await analyze_range(db, llm_client, user.id, start_date, end_date)
        db.commit()

    except NotFoundError:
        return SetupInitializeResponse(message="No transactions found for analysis", automated_payments=[])

    except LLMAPIError as e:
        db.rollback()
        logging.error(f"LLM API error: {e}", extra={"request_id": request_id, "user_id": user.id})
        raise HTTPException(status_code=502, detail="Transaction analysis unavailable")

    return SetupInitializeResponse(
        message="Analysis complete",
        automated_payments=[AutomatedPaymentSchema.model_validate(p) for p in analysis.automated_payments],
        analysis_summary=AnalysisSummarySchema(
            total_transactions=len(transactions),
            automated_payments_found=len(analysis.automated_payments),
            anomalies_found=len(analysis.anomalies),
            paychecks_found=len(analysis.paychecks),
            bonuses_found=len(analysis.bonuses),
        ),
    )


@router.post("/complete", response_model=SetupCompleteResponse)
def setup_complete(
    body: SetupCompleteRequest,
    request: Request,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: TTLCache = Depends(get_cache),
):
    """Replace the user's automated payments with the confirmed list"""
    now = utcnow()
    payments = [
        AutomatedPayment(
            id=item.id or f"payment_{uuid.uuid4().hex}",
            user_id=user.id,
            vendor=item.vendor,
            amount=abs(item.amount),
            frequency=item.frequency,
            category=item.category,
            last_occurrence=now.date(),
            confidence=USER_PAYMENT_CONFIDENCE,
            created_at=now,
            updated_at=now,
        )
        for item in body.automated_payments
    ]
    AutomatedPaymentRepository(db).replace_all(user.id, payments)
    db.commit()
    cache.invalidate_user(user.id)

    logging.info(
        "Setup completed",
        extra={"request_id": get_request_id(request), "user_id": user.id, "automated_payments": len(payments)},
    )
    return SetupCompleteResponse(message="Setup completed successfully", automated_payments_count=len(payments))
