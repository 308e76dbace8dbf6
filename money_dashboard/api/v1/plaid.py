"""Bank linking, sync, balances, and Plaid webhooks"""

import json
import logging
from datetime import date
from typing import Any, Callable, Dict, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from money_dashboard.api.dependencies import (
    get_cache,
    get_current_user,
    get_llm_client,
    get_plaid_client,
    get_request_id,
)
from money_dashboard.api.v1.schemas import (
    BalanceResponse,
    ConnectionResponse,
    ExchangeRequest,
    LinkTokenResponse,
    PlaidTransactionsResponse,
    SyncResponse,
    WebhookResponse,
)
from money_dashboard.config import settings
from money_dashboard.domain.exceptions import BankAPIError, BankNotConnectedError
from money_dashboard.domain.models import UserSettings
from money_dashboard.infrastructure.cache import TTLCache
from money_dashboard.infrastructure.clients.llm import LLMClient
from money_dashboard.infrastructure.clients.plaid import PlaidClient, total_depository_balance
from money_dashboard.infrastructure.database.models import User
from money_dashboard.infrastructure.database.repositories import SettingsRepository
from money_dashboard.infrastructure.database.session import get_db, get_session_factory
from money_dashboard.services.analysis import run_background_analysis
from money_dashboard.services.ingestion import process_new_transactions
from money_dashboard.utils.date_utils import lookback_range

router = APIRouter(prefix="/plaid")


def _require_connection(db: Session, user_id: str) -> UserSettings:
    user_settings = SettingsRepository(db).get_or_default(user_id)
    if not user_settings.has_bank_connection:
        raise BankNotConnectedError("No bank account connected")
    return user_settings


async def sync_user_transactions(
    db: Session,
    plaid_client: PlaidClient,
    user_settings: UserSettings,
    source: str,
) -> Dict[str, Any]:
    """
    Cursor sync for one user: upsert added and modified records, store the cursor.

    Removed records are only counted; stored transactions are deleted by an
    account reset.
    """
    data = await plaid_client.sync_transactions(user_settings.plaid_access_token, user_settings.plaid_cursor)
    _, trigger = process_new_transactions(
        db, user_settings.user_id, data["added"] + data["modified"], source=source
    )

    user_settings.plaid_cursor = data["next_cursor"]
    SettingsRepository(db).save_settings(user_settings)
    db.commit()
    return {
        "added": len(data["added"]),
        "modified": len(data["modified"]),
        "removed": len(data["removed"]),
        "trigger": trigger,
    }


@router.post("/link-token", response_model=LinkTokenResponse)
async def create_link_token(
    request: Request,
    user: User = Depends(get_current_user),
    plaid_client: PlaidClient = Depends(get_plaid_client),
):
    try:
        return LinkTokenResponse(link_token=await plaid_client.create_link_token(user.id))
    except BankAPIError as e:
        logging.error(f"Plaid API error: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=503, detail="Bank service unavailable")


@router.get("/connection", response_model=ConnectionResponse)
def get_connection(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    user_settings = SettingsRepository(db).get_or_default(user.id)
    return ConnectionResponse(
        connected=user_settings.has_bank_connection,
        item_id=user_settings.plaid_item_id if user_settings.has_bank_connection else None,
    )


@router.post("/exchange", response_model=ConnectionResponse)
async def exchange_public_token(
    body: ExchangeRequest,
    request: Request,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    plaid_client: PlaidClient = Depends(get_plaid_client),
    cache: TTLCache = Depends(get_cache),
):
    """Store the access token and item id for a completed Plaid Link flow"""
    request_id = get_request_id(request)

    try:
        exchanged = await plaid_client.exchange_public_token(body.public_token)

        repo = SettingsRepository(db)
        user_settings = repo.get_or_default(user.id)
        user_settings.plaid_access_token = exchanged["access_token"]
        user_settings.plaid_item_id = exchanged["item_id"]
        user_settings.plaid_cursor = None
        repo.save_settings(user_settings)
        db.commit()
        cache.invalidate_user(user.id)

        logging.info("Bank connected", extra={"request_id": request_id, "user_id": user.id})
        return ConnectionResponse(connected=True, item_id=exchanged["item_id"])

    except BankAPIError as e:
        db.rollback()
        logging.error(f"Plaid API error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Bank service unavailable")


@router.post("/sync", response_model=SyncResponse)
async def sync(
    request: Request,
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    plaid_client: PlaidClient = Depends(get_plaid_client),
    llm_client: LLMClient = Depends(get_llm_client),
    cache: TTLCache = Depends(get_cache),
    session_factory: Callable[[], Session] = Depends(get_session_factory),
):
    request_id = get_request_id(request)

    try:
        user_settings = _require_connection(db, user.id)
        result = await sync_user_transactions(db, plaid_client, user_settings, source="sync")
        cache.invalidate_user(user.id)

        if result["trigger"]:
            background_tasks.add_task(
                run_background_analysis, session_factory, llm_client, cache, user.id, result["trigger"]
            )

        return SyncResponse(
            added=result["added"],
            modified=result["modified"],
            removed=result["removed"],
            analysis_triggered=result["trigger"] is not None,
        )

    except BankNotConnectedError as e:
        raise HTTPException(status_code=400, detail=str(e))

    except BankAPIError as e:
        db.rollback()
        logging.error(f"Plaid API error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Bank service unavailable")


@router.get("/transactions", response_model=PlaidTransactionsResponse)
async def get_transactions(
    request: Request,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    count: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    plaid_client: PlaidClient = Depends(get_plaid_client),
):
    """Raw aggregator transactions; defaults to the analysis look-back window"""
    default_start, default_end = lookback_range(settings.analysis_lookback_days)

    try:
        user_settings = _require_connection(db, user.id)
        data = await plaid_client.get_transactions(
            user_settings.plaid_access_token,
            start_date or default_start,
            end_date or default_end,
            count=count,
            offset=offset,
        )
        transactions = data.get("transactions", [])
        return PlaidTransactionsResponse(
            transactions=transactions,
            total_transactions=data.get("total_transactions", len(transactions)),
        )

    except BankNotConnectedError as e:
        raise HTTPException(status_code=400, detail=str(e))

    except BankAPIError as e:
        logging.error(f"Plaid API error: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=503, detail="Bank service unavailable")


@router.get("/balance", response_model=BalanceResponse)
async def get_balance(
    request: Request,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    plaid_client: PlaidClient = Depends(get_plaid_client),
    cache: TTLCache = Depends(get_cache),
):
    """Live account balances; refreshes the stored last known balance"""
    try:
        repo = SettingsRepository(db)
        user_settings = _require_connection(db, user.id)
        accounts = await plaid_client.get_balance(user_settings.plaid_access_token)

        user_settings.last_known_balance = total_depository_balance(accounts)
        repo.save_settings(user_settings)
        db.commit()
        cache.invalidate_user(user.id)

        return BalanceResponse(current_balance=user_settings.last_known_balance, accounts=accounts)

    except BankNotConnectedError as e:
        raise HTTPException(status_code=400, detail=str(e))

    except BankAPIError as e:
        db.rollback()
        logging.error(f"Plaid API error: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=503, detail="Bank service unavailable")


async def _handle_transactions_webhook(
    payload: Dict[str, Any],
    user_settings: UserSettings,
    db: Session,
    plaid_client: PlaidClient,
) -> Optional[str]:
    """Returns the analysis trigger when new data was ingested"""
    code = payload.get("webhook_code")
    user_id = user_settings.user_id

    if code == "INITIAL_UPDATE":
        start_date, end_date = lookback_range(settings.analysis_lookback_days)
        data = await plaid_client.get_transactions(user_settings.plaid_access_token, start_date, end_date)
        _, trigger = process_new_transactions(db, user_id, data.get("transactions", []), source="initial")
        db.commit()
        return trigger

    if code in ("DEFAULT_UPDATE", "SYNC_UPDATES_AVAILABLE"):
        if code == "DEFAULT_UPDATE" and not payload.get("new_transactions", 0):
            return None
        result = await sync_user_transactions(db, plaid_client, user_settings, source="webhook")
        return result["trigger"]

    if code in ("HISTORICAL_UPDATE", "TRANSACTIONS_REMOVED"):
        logging.info(f"Transactions webhook {code}", extra={"user_id": user_id})
        return None

    logging.info(f"Unhandled transaction webhook code: {code}", extra={"user_id": user_id})
    return None


@router.post("/webhook", response_model=WebhookResponse)
async def webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    plaid_client: PlaidClient = Depends(get_plaid_client),
    llm_client: LLMClient = Depends(get_llm_client),
    cache: TTLCache = Depends(get_cache),
    session_factory: Callable[[], Session] = Depends(get_session_factory),
):
    """
    Plaid webhook receiver.

    Always answers 200 so Plaid does not retry with the same payload;
    failures are reported in the body and the logs.
    """
    request_id = get_request_id(request)

    try:
        payload = json.loads(await request.body())
        if not isinstance(payload, dict):
            raise ValueError("webhook body must be a JSON object")

        webhook_type = payload.get("webhook_type")
        item_id = payload.get("item_id")
        logging.info(
            "Received Plaid webhook",
            extra={"request_id": request_id, "webhook_type": webhook_type, "webhook_code": payload.get("webhook_code")},
        )

        user_id = SettingsRepository(db).find_user_by_item_id(item_id) if item_id else None
        if user_id is None:
            logging.warning("No user for webhook item", extra={"request_id": request_id, "item_id": item_id})
            return WebhookResponse(status="ok")

        if webhook_type == "TRANSACTIONS":
            user_settings = SettingsRepository(db).get_or_default(user_id)
            trigger = await _handle_transactions_webhook(payload, user_settings, db, plaid_client)
            cache.invalidate_user(user_id)
            if trigger:
                background_tasks.add_task(run_background_analysis, session_factory, llm_client, cache, user_id, trigger)

        elif webhook_type == "ITEM":
            code = payload.get("webhook_code")
            if code in ("ERROR", "PENDING_EXPIRATION", "USER_PERMISSION_REVOKED"):
                logging.warning(
                    f"Plaid item webhook {code}",
                    extra={"request_id": request_id, "user_id": user_id, "error": payload.get("error")},
                )
            else:
                logging.info(f"Plaid item webhook {code}", extra={"request_id": request_id, "user_id": user_id})

        else:
            logging.info(f"Unhandled webhook type: {webhook_type}", extra={"request_id": request_id})

        return WebhookResponse(status="ok")

    except Exception as e:
        db.rollback()
        logging.error(f"Webhook processing error: {e}", extra={"request_id": request_id})
        return WebhookResponse(status="error", message="Processing failed")
