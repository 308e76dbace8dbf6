"""Alert listing, read state, and dismissal"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from money_dashboard.api.dependencies import get_cache, get_current_user
from money_dashboard.api.v1.schemas import AlertCountResponse, AlertSchema, AlertsResponse
from money_dashboard.infrastructure.cache import TTLCache, dashboard_key
from money_dashboard.infrastructure.database.models import User
from money_dashboard.infrastructure.database.repositories import AlertRepository
from money_dashboard.infrastructure.database.session import get_db

router = APIRouter(prefix="/alerts")


@router.get("", response_model=AlertsResponse)
def list_alerts(
    unread_only: bool = Query(False),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    repo = AlertRepository(db)
    alerts = repo.get_active_alerts(user.id, unread_only=unread_only)
    return AlertsResponse(
        alerts=[AlertSchema.model_validate(a) for a in alerts],
        unread_count=repo.unread_count(user.id),
    )


@router.get("/count", response_model=AlertCountResponse)
def unread_count(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return AlertCountResponse(unread_count=AlertRepository(db).unread_count(user.id))


@router.post("/{alert_id}/read", response_model=AlertSchema)
def mark_read(
    alert_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: TTLCache = Depends(get_cache),
):
    alert = AlertRepository(db).mark_read(user.id, alert_id)
    if alert is None:
        raise HTTPException(status_code=404, detail="Alert not found")
    db.commit()
    cache.invalidate(dashboard_key(user.id))
    return AlertSchema.model_validate(alert)


@router.post("/{alert_id}/dismiss", response_model=AlertSchema)
def dismiss(
    alert_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: TTLCache = Depends(get_cache),
):
    alert = AlertRepository(db).dismiss(user.id, alert_id)
    if alert is None:
        raise HTTPException(status_code=404, detail="Alert not found")
    db.commit()
    cache.invalidate(dashboard_key(user.id))
    return AlertSchema.model_validate(alert)
