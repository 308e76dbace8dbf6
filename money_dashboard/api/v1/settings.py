"""GET/PUT /v1/settings - per-user projection inputs"""

import logging
from dataclasses import asdict

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from money_dashboard.api.dependencies import get_cache, get_current_user, get_request_id
from money_dashboard.api.v1.schemas import SettingsResponse, SettingsUpdate
from money_dashboard.domain.models import UserSettings
from money_dashboard.infrastructure.cache import TTLCache
from money_dashboard.infrastructure.database.models import User
from money_dashboard.infrastructure.database.repositories import SettingsRepository
from money_dashboard.infrastructure.database.session import get_db

router = APIRouter()


def _to_response(user_settings: UserSettings) -> SettingsResponse:
    return SettingsResponse(**asdict(user_settings), has_bank_connection=user_settings.has_bank_connection)


@router.get("/settings", response_model=SettingsResponse)
def get_settings(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return _to_response(SettingsRepository(db).get_or_default(user.id))


@router.put("/settings", response_model=SettingsResponse)
def update_settings(
    body: SettingsUpdate,
    request: Request,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: TTLCache = Depends(get_cache),
):
    """Apply the fields present in the body; an explicit null clears the bonus date"""
    repo = SettingsRepository(db)
    user_settings = repo.get_or_default(user.id)

    for name in body.model_fields_set:
        value = getattr(body, name)
        if value is None and name != "next_bonus_date":
            continue
        setattr(user_settings, name, value)

    saved = repo.save_settings(user_settings)
    db.commit()
    cache.invalidate_user(user.id)

    logging.info(
        "Settings updated",
        extra={"request_id": get_request_id(request), "user_id": user.id, "fields": sorted(body.model_fields_set)},
    )
    return _to_response(saved)
