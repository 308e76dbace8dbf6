"""Data access layer for dashboard entities"""

from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from money_dashboard.domain.constants import ALERT_RETENTION_DAYS
from money_dashboard.domain.models import (
    Alert,
    AnalysisResult,
    Anomaly,
    AutomatedPayment,
    BonusMatch,
    CategoryMapping,
    PaycheckMatch,
    Transaction,
    UserSettings,
)
from money_dashboard.infrastructure.database.models import (
    AlertRecord,
    AnalysisRecord,
    AutomatedPaymentRecord,
    TransactionRecord,
    User,
    UserSession,
    UserSettingsRecord,
)
from money_dashboard.utils.date_utils import as_utc, utcnow

_SETTINGS_FIELDS = (
    "next_bonus_date",
    "paycheck_deposit_amount",
    "bonus_amount_min",
    "bonus_amount_max",
    "plaid_access_token",
    "plaid_item_id",
    "plaid_cursor",
    "analysis_schedule",
    "last_known_balance",
)


class UserRepository:
    """Repository for registered users"""

    def __init__(self, db: Session):
        self.db = db

    def create_user(self, email: str, password_hash: str, name: Optional[str] = None) -> User:
        user = User(email=email.lower(), password_hash=password_hash, name=name)
        self.db.add(user)
        self.db.flush()
        return user

    def get_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email.lower()).first()

    def get_by_id(self, user_id: str) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()


class SessionRepository:
    """Repository for login sessions"""

    def __init__(self, db: Session):
        self.db = db

    def create_session(self, session_id: str, user_id: str, ttl_seconds: int) -> UserSession:
        now = utcnow()
        record = UserSession(
            id=session_id,
            user_id=user_id,
            created_at=now,
            expires_at=now + timedelta(seconds=ttl_seconds),
        )
        self.db.add(record)
        self.db.flush()
        return record

    def get_active(self, session_id: str) -> Optional[UserSession]:
        """Session by id, or None when missing or expired (expired rows are removed)"""
        record = self.db.query(UserSession).filter(UserSession.id == session_id).first()
        if record is None:
            return None
        if as_utc(record.expires_at) <= utcnow():
            self.db.delete(record)
            self.db.flush()
            return None
        return record

    def extend(self, record: UserSession, ttl_seconds: int) -> None:
        now = utcnow()
        record.created_at = now
        record.expires_at = now + timedelta(seconds=ttl_seconds)
        self.db.flush()

    def delete_session(self, session_id: str) -> None:
        self.db.query(UserSession).filter(UserSession.id == session_id).delete()


class SettingsRepository:
    """Repository for per-user settings"""

    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def _to_domain(record: UserSettingsRecord) -> UserSettings:
        return UserSettings(user_id=record.user_id, **{name: getattr(record, name) for name in _SETTINGS_FIELDS})

    def get_settings(self, user_id: str) -> Optional[UserSettings]:
        record = self.db.get(UserSettingsRecord, user_id)
        return self._to_domain(record) if record else None

    def get_or_default(self, user_id: str) -> UserSettings:
        return self.get_settings(user_id) or UserSettings(user_id=user_id)

    def save_settings(self, user_settings: UserSettings) -> UserSettings:
        record = self.db.get(UserSettingsRecord, user_settings.user_id)
        if record is None:
            record = UserSettingsRecord(user_id=user_settings.user_id)
            self.db.add(record)
        for name in _SETTINGS_FIELDS:
            setattr(record, name, getattr(user_settings, name))
        self.db.flush()
        return self._to_domain(record)

    def find_user_by_item_id(self, item_id: str) -> Optional[str]:
        record = self.db.query(UserSettingsRecord).filter(UserSettingsRecord.plaid_item_id == item_id).first()
        return record.user_id if record else None


class TransactionRepository:
    """Repository for bank transactions"""

    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def _to_domain(record: TransactionRecord) -> Transaction:
        return Transaction(
            id=record.id,
            user_id=record.user_id,
            plaid_transaction_id=record.plaid_transaction_id,
            account_id=record.account_id,
            amount=record.amount,
            date=record.date,
            vendor=record.vendor,
            description=record.description,
            category=record.category,
            type=record.type,
            pending=record.pending,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )

    def get_user_transactions(
        self,
        user_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: Optional[int] = None,
    ) -> List[Transaction]:
        """User's transactions, newest first"""
        query = self.db.query(TransactionRecord).filter(TransactionRecord.user_id == user_id)
        if start_date is not None:
            query = query.filter(TransactionRecord.date >= start_date)
        if end_date is not None:
            query = query.filter(TransactionRecord.date <= end_date)
        query = query.order_by(TransactionRecord.date.desc(), TransactionRecord.id)
        if limit is not None:
            query = query.limit(limit)
        return [self._to_domain(r) for r in query.all()]

    def upsert_transactions(self, transactions: Iterable[Transaction]) -> List[Transaction]:
        """
        Insert new transactions and refresh existing ones.

        An existing record keeps its category and type, which may have been
        set by analysis or by the user. Returns only the newly inserted ones.
        """
        inserted = []
        seen = set()
        now = utcnow()
        for txn in transactions:
            if txn.id in seen:
                continue
            seen.add(txn.id)
            record = self.db.get(TransactionRecord, (txn.user_id, txn.id))
            if record is None:
                self.db.add(
                    TransactionRecord(
                        user_id=txn.user_id,
                        id=txn.id,
                        plaid_transaction_id=txn.plaid_transaction_id,
                        account_id=txn.account_id,
                        amount=txn.amount,
                        date=txn.date,
                        vendor=txn.vendor,
                        description=txn.description,
                        category=txn.category,
                        type=txn.type,
                        pending=txn.pending,
                        created_at=txn.created_at or now,
                        updated_at=txn.updated_at or now,
                    )
                )
                inserted.append(txn)
                continue

            record.amount = txn.amount
            record.date = txn.date
            record.vendor = txn.vendor
            record.description = txn.description
            record.account_id = txn.account_id
            record.pending = txn.pending
            record.updated_at = now
        self.db.flush()
        return inserted

    def update_classification(
        self,
        user_id: str,
        transaction_id: str,
        category: Optional[str] = None,
        type_: Optional[str] = None,
    ) -> Optional[Transaction]:
        record = self.db.get(TransactionRecord, (user_id, transaction_id))
        if record is None:
            return None
        if category is not None:
            record.category = category
        if type_ is not None:
            record.type = type_
        record.updated_at = utcnow()
        self.db.flush()
        return self._to_domain(record)

    def save_classifications(self, transactions: Iterable[Transaction]) -> int:
        count = 0
        for txn in transactions:
            if self.update_classification(txn.user_id, txn.id, txn.category, txn.type) is not None:
                count += 1
        return count

    def delete_all(self, user_id: str) -> int:
        return self.db.query(TransactionRecord).filter(TransactionRecord.user_id == user_id).delete()


class AutomatedPaymentRepository:
    """Repository for automated payments"""

    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def _to_domain(record: AutomatedPaymentRecord) -> AutomatedPayment:
        return AutomatedPayment(
            id=record.id,
            user_id=record.user_id,
            vendor=record.vendor,
            amount=record.amount,
            frequency=record.frequency,
            category=record.category,
            last_occurrence=record.last_occurrence,
            confidence=record.confidence,
            next_expected=record.next_expected,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )

    def get_payments(self, user_id: str) -> List[AutomatedPayment]:
        records = (
            self.db.query(AutomatedPaymentRecord)
            .filter(AutomatedPaymentRecord.user_id == user_id)
            .order_by(AutomatedPaymentRecord.created_at, AutomatedPaymentRecord.id)
            .all()
        )
        return [self._to_domain(r) for r in records]

    def has_payments(self, user_id: str) -> bool:
        return (
            self.db.query(AutomatedPaymentRecord.id)
            .filter(AutomatedPaymentRecord.user_id == user_id)
            .first()
            is not None
        )

    def replace_all(self, user_id: str, payments: Iterable[AutomatedPayment]) -> List[AutomatedPayment]:
        """Replace the user's payment list"""
        self.db.query(AutomatedPaymentRecord).filter(AutomatedPaymentRecord.user_id == user_id).delete()
        now = utcnow()
        for payment in payments:
            self.db.add(
                AutomatedPaymentRecord(
                    id=payment.id,
                    user_id=user_id,
                    vendor=payment.vendor,
                    amount=payment.amount,
                    frequency=payment.frequency,
                    category=payment.category,
                    last_occurrence=payment.last_occurrence,
                    next_expected=payment.next_expected,
                    confidence=payment.confidence,
                    created_at=payment.created_at or now,
                    updated_at=payment.updated_at or now,
                )
            )
        self.db.flush()
        return self.get_payments(user_id)

    def update_payment(self, user_id: str, payment_id: str, **fields: Any) -> Optional[AutomatedPayment]:
        record = (
            self.db.query(AutomatedPaymentRecord)
            .filter(AutomatedPaymentRecord.user_id == user_id, AutomatedPaymentRecord.id == payment_id)
            .first()
        )
        if record is None:
            return None
        for name, value in fields.items():
            if value is not None:
                setattr(record, name, value)
        record.updated_at = utcnow()
        self.db.flush()
        return self._to_domain(record)

    def delete_payment(self, user_id: str, payment_id: str) -> bool:
        deleted = (
            self.db.query(AutomatedPaymentRecord)
            .filter(AutomatedPaymentRecord.user_id == user_id, AutomatedPaymentRecord.id == payment_id)
            .delete()
        )
        return deleted > 0


class AlertRepository:
    """Repository for dashboard alerts"""

    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def _to_domain(record: AlertRecord) -> Alert:
        return Alert(
            id=record.id,
            user_id=record.user_id,
            type=record.type,
            title=record.title,
            message=record.message,
            severity=record.severity,
            dedupe_key=record.dedupe_key,
            data=record.data or {},
            read=record.read,
            created_at=record.created_at,
            dismissed_at=record.dismissed_at,
        )

    def store_alerts(self, user_id: str, alerts: Iterable[Alert]) -> List[Alert]:
        """Persist alerts whose dedupe key is new for the user; returns those stored"""
        existing = {
            key
            for (key,) in self.db.query(AlertRecord.dedupe_key).filter(AlertRecord.user_id == user_id).all()
        }
        stored = []
        for alert in alerts:
            if alert.dedupe_key in existing:
                continue
            existing.add(alert.dedupe_key)
            self.db.add(
                AlertRecord(
                    id=alert.id,
                    user_id=user_id,
                    type=alert.type,
                    title=alert.title,
                    message=alert.message,
                    severity=alert.severity,
                    data=alert.data,
                    dedupe_key=alert.dedupe_key,
                    read=alert.read,
                    created_at=alert.created_at or utcnow(),
                )
            )
            stored.append(alert)
        self.db.flush()
        return stored

    def get_active_alerts(self, user_id: str, unread_only: bool = False) -> List[Alert]:
        """Alerts not dismissed, newest first"""
        query = self.db.query(AlertRecord).filter(
            AlertRecord.user_id == user_id,
            AlertRecord.dismissed_at.is_(None),
        )
        if unread_only:
            query = query.filter(AlertRecord.read.is_(False))
        return [self._to_domain(r) for r in query.order_by(AlertRecord.created_at.desc()).all()]

    def unread_count(self, user_id: str) -> int:
        return (
            self.db.query(AlertRecord)
            .filter(
                AlertRecord.user_id == user_id,
                AlertRecord.dismissed_at.is_(None),
                AlertRecord.read.is_(False),
            )
            .count()
        )

    def _get(self, user_id: str, alert_id: str) -> Optional[AlertRecord]:
        return (
            self.db.query(AlertRecord)
            .filter(AlertRecord.user_id == user_id, AlertRecord.id == alert_id)
            .first()
        )

    def mark_read(self, user_id: str, alert_id: str) -> Optional[Alert]:
        record = self._get(user_id, alert_id)
        if record is None:
            return None
        record.read = True
        self.db.flush()
        return self._to_domain(record)

    def dismiss(self, user_id: str, alert_id: str) -> Optional[Alert]:
        record = self._get(user_id, alert_id)
        if record is None:
            return None
        record.read = True
        record.dismissed_at = utcnow()
        self.db.flush()
        return self._to_domain(record)

    def prune_expired(self, user_id: str, now: Optional[datetime] = None) -> int:
        cutoff = (now or utcnow()) - timedelta(days=ALERT_RETENTION_DAYS)
        return (
            self.db.query(AlertRecord)
            .filter(AlertRecord.user_id == user_id, AlertRecord.created_at < cutoff)
            .delete()
        )


class AnalysisRepository:
    """Repository for stored AI analyses"""

    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def _payload(analysis: AnalysisResult) -> Dict[str, Any]:
        def _iso(value: Optional[date]) -> Optional[str]:
            return value.isoformat() if value else None

        return {
            "automated_payments": [
                {
                    "id": p.id,
                    "vendor": p.vendor,
                    "amount": p.amount,
                    "frequency": p.frequency,
                    "category": p.category,
                    "last_occurrence": _iso(p.last_occurrence),
                    "confidence": p.confidence,
                }
                for p in analysis.automated_payments
            ],
            "anomalies": [{"transaction_id": a.transaction_id, "reason": a.reason} for a in analysis.anomalies],
            "paychecks": [
                {"transaction_id": p.transaction_id, "amount": p.amount, "date": _iso(p.date), "is_bonus": p.is_bonus}
                for p in analysis.paychecks
            ],
            "bonuses": [
                {"transaction_id": b.transaction_id, "amount": b.amount, "date": _iso(b.date)}
                for b in analysis.bonuses
            ],
            "category_mappings": [
                {"transaction_id": c.transaction_id, "category": c.category, "confidence": c.confidence}
                for c in analysis.category_mappings
            ],
        }

    @staticmethod
    def _to_domain(record: AnalysisRecord) -> AnalysisResult:
        payload = record.payload or {}

        def _date(value: Optional[str]) -> Optional[date]:
            return date.fromisoformat(value) if value else None

        return AnalysisResult(
            user_id=record.user_id,
            start_date=record.start_date,
            end_date=record.end_date,
            automated_payments=[
                AutomatedPayment(
                    id=p["id"],
                    user_id=record.user_id,
                    vendor=p["vendor"],
                    amount=p["amount"],
                    frequency=p["frequency"],
                    category=p["category"],
                    last_occurrence=_date(p["last_occurrence"]) or record.end_date,
                    confidence=p["confidence"],
                )
                for p in payload.get("automated_payments", [])
            ],
            anomalies=[Anomaly(**a) for a in payload.get("anomalies", [])],
            paychecks=[
                PaycheckMatch(p["transaction_id"], p["amount"], _date(p["date"]), p["is_bonus"])
                for p in payload.get("paychecks", [])
            ],
            bonuses=[BonusMatch(b["transaction_id"], b["amount"], _date(b["date"])) for b in payload.get("bonuses", [])],
            category_mappings=[CategoryMapping(**c) for c in payload.get("category_mappings", [])],
            analyzed_at=record.analyzed_at,
        )

    def save_analysis(self, analysis: AnalysisResult) -> None:
        key = (analysis.user_id, analysis.start_date, analysis.end_date)
        record = self.db.get(AnalysisRecord, key)
        if record is None:
            record = AnalysisRecord(user_id=analysis.user_id, start_date=analysis.start_date, end_date=analysis.end_date)
            self.db.add(record)
        record.payload = self._payload(analysis)
        record.analyzed_at = analysis.analyzed_at or utcnow()
        self.db.flush()

    def get_analysis(self, user_id: str, start_date: date, end_date: date) -> Optional[AnalysisResult]:
        record = self.db.get(AnalysisRecord, (user_id, start_date, end_date))
        return self._to_domain(record) if record else None
