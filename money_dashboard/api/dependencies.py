"""Dependency injection for FastAPI endpoints"""

import logging
from datetime import timedelta

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from money_dashboard.config import settings
from money_dashboard.infrastructure.cache import TTLCache
from money_dashboard.infrastructure.clients.llm import LLMClient
from money_dashboard.infrastructure.clients.plaid import PlaidClient
from money_dashboard.infrastructure.database.models import User
from money_dashboard.infrastructure.database.repositories import SessionRepository, UserRepository
from money_dashboard.infrastructure.database.session import get_db
from money_dashboard.utils.date_utils import as_utc, utcnow

# Sessions older than this are pushed out to a fresh TTL on use
SESSION_REFRESH_AFTER = timedelta(hours=12)


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_plaid_client() -> PlaidClient:
    """Provide Plaid API client instance"""
    return PlaidClient()


def get_llm_client() -> LLMClient:
    """Provide LLM client instance"""
    return LLMClient()


def get_cache(request: Request) -> TTLCache:
    """Response cache owned by the app instance"""
    return request.app.state.cache


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    """
    Resolve the session cookie to a user.

    Raises:
        HTTPException 401: cookie missing, session unknown or expired
    """
    session_id = request.cookies.get(settings.session_cookie_name)
    if not session_id:
        raise HTTPException(status_code=401, detail="Authentication required")

    sessions = SessionRepository(db)
    record = sessions.get_active(session_id)
    user = UserRepository(db).get_by_id(record.user_id) if record else None
    if user is None:
        db.commit()
        raise HTTPException(status_code=401, detail="Authentication required")

    if utcnow() - as_utc(record.created_at) > SESSION_REFRESH_AFTER:
        sessions.extend(record, settings.session_ttl_seconds)
        logging.debug("Session extended", extra={"request_id": get_request_id(request), "user_id": user.id})
    db.commit()
    return user
