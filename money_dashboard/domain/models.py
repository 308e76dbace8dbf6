"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional


@dataclass
class Transaction:
    """Bank transaction owned by a user"""

    id: str
    user_id: str
    plaid_transaction_id: str
    account_id: str
    amount: float  # Positive for credits, negative for debits
    date: date
    vendor: str
    description: str
    category: str = "other"
    type: str = "manual_charge"
    pending: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class AutomatedPayment:
    """Recurring charge detected by analysis or declared during setup"""

    id: str
    user_id: str
    vendor: str
    amount: float
    frequency: str
    category: str
    last_occurrence: date
    confidence: float
    next_expected: Optional[date] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class FinancialOutlook:
    """Projected surplus or deficit until the next bonus (or a fixed horizon)"""

    current_balance: float
    next_bonus_date: Optional[date]
    days_until_bonus: int
    projection_days: int
    paychecks_until_bonus: int
    expected_paycheck_deposits: float
    expected_expenses: float
    available_funds: float
    required_funds: float
    over_under: float  # Positive = surplus, negative = deficit
    automated_payments: List[AutomatedPayment]
    risk_level: str
    recommendations: List[str]
    calculated_at: datetime


@dataclass
class CategorySpend:
    """Debit total for one category within a period"""

    category: str
    amount: float
    transaction_count: int
    time_period: str


@dataclass
class Alert:
    """User-facing notice produced by the alert rule pass"""

    id: str
    user_id: str
    type: str
    title: str
    message: str
    severity: str
    dedupe_key: str
    data: Dict[str, Any] = field(default_factory=dict)
    read: bool = False
    created_at: Optional[datetime] = None
    dismissed_at: Optional[datetime] = None


@dataclass
class SearchCriteria:
    """Filters, ordering, and window for a transaction search"""

    query: Optional[str] = None
    vendor: Optional[str] = None
    category: Optional[str] = None
    type: Optional[str] = None
    min_amount: Optional[float] = None
    max_amount: Optional[float] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    sort_by: str = "date"
    sort_order: str = "DESC"
    limit: int = 25
    offset: int = 0


@dataclass
class DateRange:
    min: Optional[date] = None
    max: Optional[date] = None


@dataclass
class SearchFacets:
    categories: Dict[str, int]
    types: Dict[str, int]
    date_range: DateRange


@dataclass
class SearchResult:
    transactions: List[Transaction]
    total_count: int
    facets: SearchFacets


@dataclass
class UserSettings:
    """Per-user configuration for projections, analysis, and the bank link"""

    user_id: str
    next_bonus_date: Optional[date] = None
    paycheck_deposit_amount: Optional[float] = None
    bonus_amount_min: Optional[float] = None
    bonus_amount_max: Optional[float] = None
    plaid_access_token: Optional[str] = None
    plaid_item_id: Optional[str] = None
    plaid_cursor: Optional[str] = None
    analysis_schedule: str = "manual"
    last_known_balance: float = 0.0

    @property
    def has_bank_connection(self) -> bool:
        return bool(self.plaid_access_token and self.plaid_item_id)

    @property
    def bonus_range(self) -> Optional["BonusRange"]:
        if self.bonus_amount_min is None or self.bonus_amount_max is None:
            return None
        return BonusRange(min=self.bonus_amount_min, max=self.bonus_amount_max)


@dataclass
class BonusRange:
    min: float
    max: float


@dataclass
class Anomaly:
    transaction_id: str
    reason: str


@dataclass
class PaycheckMatch:
    transaction_id: str
    amount: float
    date: Optional[date]
    is_bonus: bool = False


@dataclass
class BonusMatch:
    transaction_id: str
    amount: float
    date: Optional[date]


@dataclass
class CategoryMapping:
    transaction_id: str
    category: str
    confidence: float


@dataclass
class AnalysisResult:
    """Validated output of an LLM transaction analysis"""

    user_id: str
    start_date: date
    end_date: date
    automated_payments: List[AutomatedPayment] = field(default_factory=list)
    anomalies: List[Anomaly] = field(default_factory=list)
    paychecks: List[PaycheckMatch] = field(default_factory=list)
    bonuses: List[BonusMatch] = field(default_factory=list)
    category_mappings: List[CategoryMapping] = field(default_factory=list)
    analyzed_at: Optional[datetime] = None


@dataclass
class CategorySuggestion:
    """Rule-based category guess for a transaction"""

    transaction_id: str
    suggested_category: str
    suggested_type: str
    confidence: float
