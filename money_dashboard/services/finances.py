"""Balance resolution, outlook, alerts, and the dashboard aggregate"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from money_dashboard.config import settings
from money_dashboard.domain.alerts import generate_alerts
from money_dashboard.domain.exceptions import BankAPIError
from money_dashboard.domain.ingestion import latest_paycheck_date
from money_dashboard.domain.models import (
    Alert,
    AutomatedPayment,
    CategorySpend,
    FinancialOutlook,
    Transaction,
    UserSettings,
)
from money_dashboard.domain.outlook import calculate_financial_outlook
from money_dashboard.domain.spending import calculate_spending_by_category
from money_dashboard.infrastructure.clients.plaid import PlaidClient, total_depository_balance
from money_dashboard.infrastructure.database.repositories import (
    AlertRepository,
    AutomatedPaymentRepository,
    SettingsRepository,
    TransactionRepository,
)
from money_dashboard.infrastructure.observability.metrics import alerts_generated_counter, record_outlook
from money_dashboard.services.analysis import effective_paycheck_amount
from money_dashboard.utils.date_utils import days_ago, utcnow

RECENT_TRANSACTION_LIMIT = 10


@dataclass
class Dashboard:
    current_balance: float
    financial_outlook: FinancialOutlook
    recent_transactions: List[Transaction]
    automated_payments: List[AutomatedPayment]
    alerts: List[Alert]
    spending_by_category: List[CategorySpend]
    last_updated: datetime


async def refresh_balance(db: Session, plaid_client: PlaidClient, user_settings: UserSettings) -> float:
    """
    Live depository balance from Plaid, stored as the last known balance.

    Raises:
        BankAPIError: Plaid unreachable or returned invalid data
    """
    accounts = await plaid_client.get_balance(user_settings.plaid_access_token)
    user_settings.last_known_balance = total_depository_balance(accounts)
    SettingsRepository(db).save_settings(user_settings)
    return user_settings.last_known_balance


async def resolve_balance(db: Session, plaid_client: PlaidClient, user_settings: UserSettings) -> float:
    """Live balance when a bank is connected; otherwise, or if Plaid fails, the last known balance"""
    if not user_settings.has_bank_connection:
        return user_settings.last_known_balance
    try:
        return await refresh_balance(db, plaid_client, user_settings)
    except BankAPIError as e:
        logging.warning(f"Using last known balance: {e}", extra={"user_id": user_settings.user_id})
        return user_settings.last_known_balance


async def build_outlook(
    db: Session,
    plaid_client: PlaidClient,
    user_id: str,
    today: Optional[date] = None,
) -> FinancialOutlook:
    user_settings = SettingsRepository(db).get_or_default(user_id)
    payments = AutomatedPaymentRepository(db).get_payments(user_id)
    recent = TransactionRepository(db).get_user_transactions(
        user_id, start_date=days_ago(settings.analysis_lookback_days, today)
    )
    balance = await resolve_balance(db, plaid_client, user_settings)

    outlook = calculate_financial_outlook(
        current_balance=balance,
        automated_payments=payments,
        next_bonus_date=user_settings.next_bonus_date,
        paycheck_deposit_amount=effective_paycheck_amount(user_settings),
        last_paycheck_date=latest_paycheck_date(recent),
        today=today,
    )
    record_outlook(outlook.risk_level)
    return outlook


def refresh_alerts(
    db: Session,
    user_id: str,
    outlook: FinancialOutlook,
    transactions: List[Transaction],
    payments: List[AutomatedPayment],
    today: Optional[date] = None,
) -> List[Alert]:
    """Prune old alerts, run the rule pass, store new conditions, return active alerts"""
    repo = AlertRepository(db)
    repo.prune_expired(user_id)
    stored = repo.store_alerts(user_id, generate_alerts(user_id, outlook, transactions, payments, today))
    for alert in stored:
        alerts_generated_counter.labels(type=alert.type).inc()
    return repo.get_active_alerts(user_id)


async def build_dashboard(db: Session, plaid_client: PlaidClient, user_id: str) -> Dashboard:
    outlook = await build_outlook(db, plaid_client, user_id)
    transactions = TransactionRepository(db).get_user_transactions(user_id)
    payments = outlook.automated_payments

    alerts = refresh_alerts(db, user_id, outlook, transactions, payments)

    return Dashboard(
        current_balance=outlook.current_balance,
        financial_outlook=outlook,
        recent_transactions=transactions[:RECENT_TRANSACTION_LIMIT],
        automated_payments=payments,
        alerts=alerts,
        spending_by_category=calculate_spending_by_category(transactions, "monthly"),
        last_updated=utcnow(),
    )
