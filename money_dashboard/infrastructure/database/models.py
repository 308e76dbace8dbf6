"""SQLAlchemy ORM models"""

import uuid

from sqlalchemy import JSON, Boolean, Column, Date, DateTime, Float, ForeignKey, Index, Text
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


def _uuid() -> str:
    return uuid.uuid4().hex


class User(Base):
    """Registered dashboard user"""

    __tablename__ = "app_user"

    id = Column(Text, primary_key=True, default=lambda: f"user_{_uuid()}")
    email = Column(Text, nullable=False, unique=True, index=True)
    name = Column(Text, nullable=True)
    password_hash = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())


class UserSession(Base):
    """Server-side session referenced by the session cookie"""

    __tablename__ = "user_session"

    id = Column(Text, primary_key=True)
    user_id = Column(Text, ForeignKey("app_user.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)


class UserSettingsRecord(Base):
    """Projection inputs and bank link for one user"""

    __tablename__ = "user_settings"

    user_id = Column(Text, ForeignKey("app_user.id", ondelete="CASCADE"), primary_key=True)
    next_bonus_date = Column(Date, nullable=True)
    paycheck_deposit_amount = Column(Float, nullable=True)
    bonus_amount_min = Column(Float, nullable=True)
    bonus_amount_max = Column(Float, nullable=True)
    plaid_access_token = Column(Text, nullable=True)
    plaid_item_id = Column(Text, nullable=True, index=True)
    plaid_cursor = Column(Text, nullable=True)
    analysis_schedule = Column(Text, nullable=False, default="manual")
    last_known_balance = Column(Float, nullable=False, default=0.0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())


class TransactionRecord(Base):
    """Bank transaction; ids are unique per user"""

    __tablename__ = "bank_transaction"

    user_id = Column(Text, ForeignKey("app_user.id", ondelete="CASCADE"), primary_key=True)
    id = Column(Text, primary_key=True)
    plaid_transaction_id = Column(Text, nullable=False)
    account_id = Column(Text, nullable=False, default="")
    amount = Column(Float, nullable=False)
    date = Column(Date, nullable=False)
    vendor = Column(Text, nullable=False)
    description = Column(Text, nullable=False, default="")
    category = Column(Text, nullable=False, default="other")
    type = Column(Text, nullable=False, default="manual_charge")
    pending = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class AutomatedPaymentRecord(Base):
    """Recurring charge for a user"""

    __tablename__ = "automated_payment"

    id = Column(Text, primary_key=True, default=lambda: f"payment_{_uuid()}")
    user_id = Column(Text, ForeignKey("app_user.id", ondelete="CASCADE"), nullable=False, index=True)
    vendor = Column(Text, nullable=False)
    amount = Column(Float, nullable=False)
    frequency = Column(Text, nullable=False)
    category = Column(Text, nullable=False, default="other")
    last_occurrence = Column(Date, nullable=False)
    next_expected = Column(Date, nullable=True)
    confidence = Column(Float, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class AlertRecord(Base):
    """Alert shown on the dashboard until dismissed or pruned"""

    __tablename__ = "alert"
    __table_args__ = (Index("ix_alert_user_dedupe", "user_id", "dedupe_key"),)

    id = Column(Text, primary_key=True)
    user_id = Column(Text, ForeignKey("app_user.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(Text, nullable=False)
    title = Column(Text, nullable=False)
    message = Column(Text, nullable=False)
    severity = Column(Text, nullable=False)
    data = Column(JSON, nullable=True)
    dedupe_key = Column(Text, nullable=False)
    read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
    dismissed_at = Column(DateTime(timezone=True), nullable=True)


class AnalysisRecord(Base):
    """Stored AI analysis for a user and date range"""

    __tablename__ = "analysis_result"

    user_id = Column(Text, ForeignKey("app_user.id", ondelete="CASCADE"), primary_key=True)
    start_date = Column(Date, primary_key=True)
    end_date = Column(Date, primary_key=True)
    payload = Column(JSON, nullable=False)
    analyzed_at = Column(DateTime(timezone=True), nullable=False)
