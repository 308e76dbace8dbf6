"""GET /v1/dashboard - aggregate view for the home screen"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from money_dashboard.api.dependencies import get_cache, get_current_user, get_plaid_client, get_request_id
from money_dashboard.api.v1.schemas import DashboardResponse
from money_dashboard.config import settings
from money_dashboard.infrastructure.cache import TTLCache, dashboard_key
from money_dashboard.infrastructure.clients.plaid import PlaidClient
from money_dashboard.infrastructure.database.models import User
from money_dashboard.infrastructure.database.session import get_db
from money_dashboard.services.finances import build_dashboard

router = APIRouter()


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(
    request: Request,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    plaid_client: PlaidClient = Depends(get_plaid_client),
    cache: TTLCache = Depends(get_cache),
):
    """
    Outlook, recent transactions, automated payments, active alerts, and
    monthly spending. Building it runs the alert rule pass.
    """
    request_id = get_request_id(request)
    key = dashboard_key(user.id)
    cached = cache.get(key)
    if cached is not None:
        return cached

    try:
        response = DashboardResponse.model_validate(await build_dashboard(db, plaid_client, user.id))
        db.commit()
    except Exception as e:
        db.rollback()
        logging.error(f"Dashboard build failed: {e}", extra={"request_id": request_id, "user_id": user.id})
        raise HTTPException(status_code=500, detail="Failed to load dashboard data")

    cache.set(key, response, settings.cache_ttl_dashboard)
    logging.info(
        "Dashboard served",
        extra={"request_id": request_id, "user_id": user.id, "risk_level": response.financial_outlook.risk_level},
    )
    return response
