"""GET /v1/calculations - financial outlook and spending by category"""

import logging
from typing import Literal

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from money_dashboard.api.dependencies import get_cache, get_current_user, get_plaid_client, get_request_id
from money_dashboard.api.v1.schemas import CategorySpendSchema, OutlookResponse, OutlookSchema, SpendingResponse
from money_dashboard.config import settings
from money_dashboard.domain.spending import calculate_spending_by_category
from money_dashboard.infrastructure.cache import TTLCache, calculations_key
from money_dashboard.infrastructure.clients.plaid import PlaidClient
from money_dashboard.infrastructure.database.models import User
from money_dashboard.infrastructure.database.repositories import TransactionRepository
from money_dashboard.infrastructure.database.session import get_db
from money_dashboard.infrastructure.observability.logging import log_outlook
from money_dashboard.services.finances import build_outlook

router = APIRouter(prefix="/calculations")


@router.get("/outlook", response_model=OutlookResponse)
async def get_outlook(
    request: Request,
    force: bool = Query(False, description="Recalculate even when a cached outlook exists"),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    plaid_client: PlaidClient = Depends(get_plaid_client),
    cache: TTLCache = Depends(get_cache),
):
    """
    Project funds until the next bonus (or 90 days).

    Flow:
    1. Serve the cached outlook unless force is set
    2. Resolve the balance (live from Plaid when connected)
    3. Calculate the outlook from settings and automated payments
    4. Cache for five minutes
    """
    key = calculations_key(user.id, "outlook")
    outlook = None if force else cache.get(key)
    cached = outlook is not None

    if outlook is None:
        outlook = OutlookSchema.model_validate(await build_outlook(db, plaid_client, user.id))
        db.commit()
        cache.set(key, outlook, settings.cache_ttl_calculations)

    log_outlook(get_request_id(request), user.id, outlook.risk_level, outlook.over_under, cached)
    return OutlookResponse(outlook=outlook, cached=cached)


@router.get("/spending", response_model=SpendingResponse)
def get_spending(
    period: Literal["monthly", "quarterly", "yearly"] = Query("monthly"),
    force: bool = Query(False),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: TTLCache = Depends(get_cache),
):
    key = calculations_key(user.id, f"spending:{period}")
    spending = None if force else cache.get(key)
    cached = spending is not None

    if spending is None:
        transactions = TransactionRepository(db).get_user_transactions(user.id)
        spending = [
            CategorySpendSchema.model_validate(s) for s in calculate_spending_by_category(transactions, period)
        ]
        cache.set(key, spending, settings.cache_ttl_calculations)

    total = round(sum(s.amount for s in spending), 2)
    logging.debug("Spending calculated", extra={"user_id": user.id, "period": period, "cached": cached})
    return SpendingResponse(time_period=period, spending=spending, total=total, cached=cached)
