"""Pytest fixtures for testing"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")

import pytest
from datetime import date, timedelta
from typing import Any, Dict, Generator, List, Optional
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from money_dashboard.api.dependencies import get_llm_client, get_plaid_client
from money_dashboard.api.main import create_app
from money_dashboard.domain.exceptions import BankAPIError, LLMAPIError
from money_dashboard.domain.models import AutomatedPayment, Transaction
from money_dashboard.infrastructure.database.models import Base
from money_dashboard.infrastructure.database.repositories import (
    AutomatedPaymentRepository,
    SettingsRepository,
    TransactionRepository,
)
from money_dashboard.infrastructure.database.session import get_db, get_session_factory


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

SAMPLE_TODAY = date(2026, 3, 18)


class FakePlaidClient:
    """In-memory stand-in for PlaidClient"""

    def __init__(self):
        self.accounts: List[Dict[str, Any]] = []
        self.transactions: List[Dict[str, Any]] = []
        self.sync_result: Dict[str, Any] = {"added": [], "modified": [], "removed": [], "next_cursor": "cursor-1"}
        self.error: Optional[BankAPIError] = None
        self.calls: List[tuple] = []

    def _check(self):
        if self.error is not None:
            raise self.error

    async def create_link_token(self, user_id: str) -> str:
        self._check()
        self.calls.append(("link_token", user_id))
        return "link-sandbox-123"

    async def exchange_public_token(self, public_token: str) -> Dict[str, str]:
        self._check()
        self.calls.append(("exchange", public_token))
        return {"access_token": "access-sandbox-abc", "item_id": "item-abc"}

    async def get_balance(self, access_token: str) -> List[Dict[str, Any]]:
        self._check()
        self.calls.append(("balance", access_token))
        return self.accounts

    async def get_transactions(self, access_token, start_date, end_date, count=500, offset=0) -> Dict[str, Any]:
        self._check()
        self.calls.append(("transactions", access_token, start_date, end_date))
        return {"transactions": self.transactions, "total_transactions": len(self.transactions)}

    async def sync_transactions(self, access_token: str, cursor: Optional[str] = None) -> Dict[str, Any]:
        self._check()
        self.calls.append(("sync", access_token, cursor))
        return dict(self.sync_result)


class FakeLLMClient:
    """Returns a canned analysis payload and records what it was sent"""

    def __init__(self):
        self.response: Dict[str, Any] = {
            "automated_payments": [],
            "anomalies": [],
            "paychecks": [],
            "bonuses": [],
            "categories": [],
        }
        self.error: Optional[LLMAPIError] = None
        self.calls: List[Dict[str, Any]] = []

    async def analyze_transactions(self, transactions, paycheck_amount=None, bonus_range=None) -> Dict[str, Any]:
        self.calls.append(
            {"transactions": transactions, "paycheck_amount": paycheck_amount, "bonus_range": bonus_range}
        )
        if self.error is not None:
            raise self.error
        return self.response


def plaid_record(
    transaction_id: str,
    amount: float,
    on: date,
    name: str = "Purchase",
    merchant_name: Optional[str] = None,
    pending: bool = False,
) -> Dict[str, Any]:
    """Plaid-shaped transaction; positive amounts are debits"""
    return {
        "transaction_id": transaction_id,
        "account_id": "acc-1",
        "amount": amount,
        "date": on.isoformat(),
        "name": name,
        "merchant_name": merchant_name,
        "pending": pending,
    }


def make_transaction(
    transaction_id: str,
    amount: float,
    on: date,
    vendor: str = "Vendor",
    category: str = "other",
    type: str = "manual_charge",
    user_id: str = "user_1",
    description: str = "",
) -> Transaction:
    return Transaction(
        id=transaction_id,
        user_id=user_id,
        plaid_transaction_id=transaction_id,
        account_id="acc-1",
        amount=amount,
        date=on,
        vendor=vendor,
        description=description or vendor,
        category=category,
        type=type,
    )


def make_payment(
    payment_id: str,
    vendor: str,
    amount: float,
    frequency: str = "monthly",
    user_id: str = "user_1",
    category: str = "other",
) -> AutomatedPayment:
    return AutomatedPayment(
        id=payment_id,
        user_id=user_id,
        vendor=vendor,
        amount=amount,
        frequency=frequency,
        category=category,
        last_occurrence=date.today(),
        confidence=0.9,
    )


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def fake_plaid() -> FakePlaidClient:
    return FakePlaidClient()


@pytest.fixture
def fake_llm() -> FakeLLMClient:
    return FakeLLMClient()


@pytest.fixture
def client(db: Session, fake_plaid: FakePlaidClient, fake_llm: FakeLLMClient) -> TestClient:
    """Create FastAPI test client with test database and fake external clients"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: TestingSessionLocal
    app.dependency_overrides[get_plaid_client] = lambda: fake_plaid
    app.dependency_overrides[get_llm_client] = lambda: fake_llm
    return TestClient(app)


@pytest.fixture
def auth_client(client: TestClient) -> TestClient:
    """Client holding a session cookie for a freshly registered user (id on client.user_id)"""
    response = client.post(
        "/v1/auth/register",
        json={"email": "ada@example.com", "password": "correct-horse", "name": "Ada"},
    )
    assert response.status_code == 201
    client.user_id = response.json()["user"]["id"]
    return client


@pytest.fixture
def sample_transactions() -> list[Transaction]:
    """Mixed activity for one user, mid-March 2026"""
    today = SAMPLE_TODAY
    return [
        make_transaction("t1", -50.0, today, vendor="Pizza Place", category="dining"),
        make_transaction("t2", -30.0, today, vendor="Corner Cafe", category="dining"),
        make_transaction("t3", 200.0, today, vendor="Venmo", category="other", type="deposit"),
        make_transaction("t4", -1200.0, today - timedelta(days=1), vendor="Landlord LLC", category="rent"),
        make_transaction("t5", 2000.0, today - timedelta(days=2), vendor="Acme Payroll", category="other", type="paycheck"),
    ]


def store_transactions(db: Session, transactions: List[Transaction]) -> None:
    TransactionRepository(db).upsert_transactions(transactions)
    db.commit()


def store_payments(db: Session, user_id: str, payments: List[AutomatedPayment]) -> None:
    AutomatedPaymentRepository(db).replace_all(user_id, payments)
    db.commit()


def connect_bank(db: Session, user_id: str, last_known_balance: float = 0.0) -> None:
    """Link the fake Plaid item used by FakePlaidClient to a user"""
    repo = SettingsRepository(db)
    user_settings = repo.get_or_default(user_id)
    user_settings.plaid_access_token = "access-sandbox-abc"
    user_settings.plaid_item_id = "item-abc"
    user_settings.last_known_balance = last_known_balance
    repo.save_settings(user_settings)
    db.commit()
