"""Pydantic schemas for API request/response validation"""

from datetime import date, datetime
import datetime as dt
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

Category = Literal[
    "rent",
    "utilities",
    "investments",
    "media",
    "groceries",
    "dining",
    "transportation",
    "entertainment",
    "healthcare",
    "shopping",
    "subscriptions",
    "insurance",
    "other",
]
TransactionType = Literal[
    "paycheck", "bonus", "automated_payment", "manual_charge", "transfer", "deposit", "withdrawal"
]
Frequency = Literal["monthly", "bi-weekly", "weekly", "quarterly", "annual"]
AnalysisSchedule = Literal["manual", "daily", "weekly"]
SortField = Literal["date", "amount", "vendor"]
SortOrder = Literal["ASC", "DESC"]


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# Auth


class RegisterRequest(BaseModel):
    """Request body for POST /v1/auth/register"""

    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$", max_length=254)
    password: str = Field(..., min_length=8, max_length=128)
    name: Optional[str] = Field(None, max_length=100)


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)


class UserResponse(ORMModel):
    id: str
    email: str
    name: Optional[str] = None
    created_at: Optional[datetime] = None


class AuthResponse(BaseModel):
    user: UserResponse


class MessageResponse(BaseModel):
    message: str


# Settings


class SettingsResponse(ORMModel):
    next_bonus_date: Optional[date] = None
    paycheck_deposit_amount: Optional[float] = None
    bonus_amount_min: Optional[float] = None
    bonus_amount_max: Optional[float] = None
    analysis_schedule: AnalysisSchedule = "manual"
    last_known_balance: float = 0.0
    has_bank_connection: bool = False


class SettingsUpdate(BaseModel):
    """Request body for PUT /v1/settings; omitted fields are left unchanged"""

    next_bonus_date: Optional[date] = None
    paycheck_deposit_amount: Optional[float] = Field(None, gt=0)
    bonus_amount_min: Optional[float] = Field(None, gt=0)
    bonus_amount_max: Optional[float] = Field(None, gt=0)
    analysis_schedule: Optional[AnalysisSchedule] = None

    @model_validator(mode="after")
    def check_bonus_range(self) -> "SettingsUpdate":
        if (
            self.bonus_amount_min is not None
            and self.bonus_amount_max is not None
            and self.bonus_amount_min > self.bonus_amount_max
        ):
            raise ValueError("bonus_amount_min must not exceed bonus_amount_max")
        return self


# Plaid


class LinkTokenResponse(BaseModel):
    link_token: str


class ExchangeRequest(BaseModel):
    public_token: str = Field(..., min_length=1)


class ConnectionResponse(BaseModel):
    connected: bool
    item_id: Optional[str] = None


class SyncResponse(BaseModel):
    added: int
    modified: int
    removed: int
    analysis_triggered: bool


class BalanceResponse(BaseModel):
    current_balance: float
    accounts: List[Dict[str, Any]]


class PlaidTransactionsResponse(BaseModel):
    transactions: List[Dict[str, Any]]
    total_transactions: int


class WebhookResponse(BaseModel):
    status: str
    message: Optional[str] = None


# Transactions


class TransactionSchema(ORMModel):
    id: str
    plaid_transaction_id: str
    account_id: str
    amount: float
    date: date
    vendor: str
    description: str
    category: str
    type: str
    pending: bool


class DateRangeSchema(ORMModel):
    min: Optional[date] = None
    max: Optional[date] = None


class FacetsSchema(ORMModel):
    categories: Dict[str, int]
    types: Dict[str, int]
    date_range: DateRangeSchema


class PaginationSchema(ORMModel):
    page: int
    page_size: int
    total_count: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool


class SearchResponse(BaseModel):
    transactions: List[TransactionSchema]
    total_count: int
    facets: FacetsSchema
    pagination: PaginationSchema


class SearchFilters(BaseModel):
    vendor: Optional[str] = None
    category: Optional[Category] = None
    type: Optional[TransactionType] = None
    min_amount: Optional[float] = Field(None, ge=0)
    max_amount: Optional[float] = Field(None, ge=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class SortOptions(BaseModel):
    by: SortField = "date"
    order: SortOrder = "DESC"


class PageOptions(BaseModel):
    page: int = Field(1, ge=1)
    page_size: int = Field(25, ge=1, le=100)


class SearchRequest(BaseModel):
    """Request body for POST /v1/transactions/search"""

    query: Optional[str] = None
    filters: SearchFilters = Field(default_factory=SearchFilters)
    sort: SortOptions = Field(default_factory=SortOptions)
    pagination: PageOptions = Field(default_factory=PageOptions)


class SuggestionsResponse(BaseModel):
    suggestions: List[str]


class CategoriesResponse(BaseModel):
    categories: List[str]
    types: List[str]


class CategorizeRequest(BaseModel):
    """Request body for PUT /v1/transactions/{id}/categorize"""

    category: Optional[Category] = None
    type: Optional[TransactionType] = None

    @model_validator(mode="after")
    def check_not_empty(self) -> "CategorizeRequest":
        if self.category is None and self.type is None:
            raise ValueError("category or type is required")
        return self


class CategorySuggestionSchema(ORMModel):
    suggested_category: str
    suggested_type: str
    confidence: float


class UncategorizedItem(BaseModel):
    transaction: TransactionSchema
    suggestion: CategorySuggestionSchema


class UncategorizedResponse(BaseModel):
    items: List[UncategorizedItem]
    total_count: int


class BulkCategorizeItem(CategorizeRequest):
    transaction_id: str = Field(..., min_length=1)


class BulkCategorizeRequest(BaseModel):
    updates: List[BulkCategorizeItem] = Field(..., min_length=1, max_length=500)


class BulkCategorizeError(BaseModel):
    transaction_id: str
    error: str


class BulkCategorizeResponse(BaseModel):
    updated: int
    errors: List[BulkCategorizeError]


class ResetResponse(BaseModel):
    deleted: int


# Calculations


class AutomatedPaymentSchema(ORMModel):
    id: str
    vendor: str
    amount: float
    frequency: str
    category: str
    last_occurrence: date
    next_expected: Optional[date] = None
    confidence: float


class OutlookSchema(ORMModel):
    current_balance: float
    next_bonus_date: Optional[date] = None
    days_until_bonus: int
    projection_days: int
    paychecks_until_bonus: int
    expected_paycheck_deposits: float
    expected_expenses: float
    available_funds: float
    required_funds: float
    over_under: float
    automated_payments: List[AutomatedPaymentSchema]
    risk_level: Literal["low", "medium", "high"]
    recommendations: List[str]
    calculated_at: datetime


class OutlookResponse(BaseModel):
    outlook: OutlookSchema
    cached: bool


class CategorySpendSchema(ORMModel):
    category: str
    amount: float
    transaction_count: int
    time_period: str


class SpendingResponse(BaseModel):
    time_period: str
    spending: List[CategorySpendSchema]
    total: float
    cached: bool


# Alerts


class AlertSchema(ORMModel):
    id: str
    type: str
    title: str
    message: str
    severity: str
    data: Dict[str, Any] = Field(default_factory=dict)
    read: bool
    created_at: Optional[datetime] = None


class AlertsResponse(BaseModel):
    alerts: List[AlertSchema]
    unread_count: int


class AlertCountResponse(BaseModel):
    unread_count: int


# Dashboard


class DashboardResponse(ORMModel):
    current_balance: float
    financial_outlook: OutlookSchema
    recent_transactions: List[TransactionSchema]
    automated_payments: List[AutomatedPaymentSchema]
    alerts: List[AlertSchema]
    spending_by_category: List[CategorySpendSchema]
    last_updated: datetime


# Automated payments


class AutomatedPaymentsResponse(BaseModel):
    automated_payments: List[AutomatedPaymentSchema]


class AutomatedPaymentUpdate(BaseModel):
    vendor: Optional[str] = Field(None, min_length=1)
    amount: Optional[float] = Field(None, gt=0)
    frequency: Optional[Frequency] = None
    category: Optional[Category] = None
    next_expected: Optional[date] = None


# Setup


class SetupProgress(BaseModel):
    bank: bool
    bonus: bool
    payments: bool


class SetupStatusResponse(BaseModel):
    is_setup_complete: bool
    has_bank_connection: bool
    has_bonus_date: bool
    has_automated_payments: bool
    setup_progress: SetupProgress


class SetupInitializeRequest(BaseModel):
    has_bonus: bool = False
    bonus_date: Optional[date] = None


class AnalysisSummarySchema(BaseModel):
    total_transactions: int
    automated_payments_found: int
    anomalies_found: int
    paychecks_found: int
    bonuses_found: int


class SetupInitializeResponse(BaseModel):
    message: str
    automated_payments: List[AutomatedPaymentSchema]
    analysis_summary: Optional[AnalysisSummarySchema] = None


class SetupPaymentInput(BaseModel):
    id: Optional[str] = None
    vendor: str = Field(..., min_length=1)
    amount: float
    frequency: Frequency
    category: Category

    @model_validator(mode="after")
    def check_amount(self) -> "SetupPaymentInput":
        if self.amount == 0:
            raise ValueError("amount must be non-zero")
        return self


class SetupCompleteRequest(BaseModel):
    automated_payments: List[SetupPaymentInput]


class SetupCompleteResponse(BaseModel):
    message: str
    automated_payments_count: int


# AI analysis


class AnalyzeRequest(BaseModel):
    """Request body for POST /v1/ai/analyze-transactions"""

    start_date: date
    end_date: date
    force: bool = False


class AnomalySchema(ORMModel):
    transaction_id: str
    reason: str


class PaycheckSchema(ORMModel):
    transaction_id: str
    amount: float
    date: Optional[dt.date] = None
    is_bonus: bool


class BonusSchema(ORMModel):
    transaction_id: str
    amount: float
    date: Optional[dt.date] = None


class CategoryMappingSchema(ORMModel):
    transaction_id: str
    category: str
    confidence: float


class AnalysisSchema(ORMModel):
    start_date: date
    end_date: date
    automated_payments: List[AutomatedPaymentSchema]
    anomalies: List[AnomalySchema]
    paychecks: List[PaycheckSchema]
    bonuses: List[BonusSchema]
    category_mappings: List[CategoryMappingSchema]
    analyzed_at: Optional[datetime] = None


class AnalysisResponse(BaseModel):
    analysis: AnalysisSchema
    cached: bool
