"""Automated payment listing, edits, and removal"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from money_dashboard.api.dependencies import get_cache, get_current_user, get_request_id
from money_dashboard.api.v1.schemas import (
    AutomatedPaymentSchema,
    AutomatedPaymentsResponse,
    AutomatedPaymentUpdate,
    MessageResponse,
)
from money_dashboard.infrastructure.cache import TTLCache
from money_dashboard.infrastructure.database.models import User
from money_dashboard.infrastructure.database.repositories import AutomatedPaymentRepository
from money_dashboard.infrastructure.database.session import get_db

router = APIRouter(prefix="/automated-payments")


@router.get("", response_model=AutomatedPaymentsResponse)
def list_payments(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    payments = AutomatedPaymentRepository(db).get_payments(user.id)
    return AutomatedPaymentsResponse(automated_payments=[AutomatedPaymentSchema.model_validate(p) for p in payments])


@router.put("/{payment_id}", response_model=AutomatedPaymentSchema)
def update_payment(
    payment_id: str,
    body: AutomatedPaymentUpdate,
    request: Request,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: TTLCache = Depends(get_cache),
):
    payment = AutomatedPaymentRepository(db).update_payment(user.id, payment_id, **body.model_dump())
    if payment is None:
        raise HTTPException(status_code=404, detail="Automated payment not found")
    db.commit()
    cache.invalidate_user(user.id)

    logging.info(
        "Automated payment updated",
        extra={"request_id": get_request_id(request), "user_id": user.id, "payment_id": payment_id},
    )
    return AutomatedPaymentSchema.model_validate(payment)


@router.delete("/{payment_id}", response_model=MessageResponse)
def delete_payment(
    payment_id: str,
    request: Request,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: TTLCache = Depends(get_cache),
):
    if not AutomatedPaymentRepository(db).delete_payment(user.id, payment_id):
        raise HTTPException(status_code=404, detail="Automated payment not found")
    db.commit()
    cache.invalidate_user(user.id)

    logging.info(
        "Automated payment deleted",
        extra={"request_id": get_request_id(request), "user_id": user.id, "payment_id": payment_id},
    )
    return MessageResponse(message="Automated payment deleted")
