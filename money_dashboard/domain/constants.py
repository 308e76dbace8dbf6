"""Closed value sets and fixed policy constants"""

TRANSACTION_CATEGORIES = (
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
)

TRANSACTION_TYPES = (
    "paycheck",
    "bonus",
    "automated_payment",
    "manual_charge",
    "transfer",
    "deposit",
    "withdrawal",
)

PAYMENT_FREQUENCIES = ("monthly", "bi-weekly", "weekly", "quarterly", "annual")

# Outlook policy
PAYCHECK_FREQUENCY_DAYS = 14
BONUS_WINDOW_DAYS = 30
DEFAULT_PROJECTION_DAYS = 90
LOW_RISK_SURPLUS = 1000.0
DEFICIT_BASELINE = 10000.0
MEDIUM_RISK_DEFICIT_RATIO = 0.1
LARGE_MONTHLY_PAYMENT = 500.0

# Alert rules
LARGE_TRANSACTION_AMOUNT = 1000.0
ALERT_LOOKBACK_DAYS = 7
UPCOMING_BONUS_DAYS = 7
MISSING_PAYMENT_AFTER_DAY = 15
MISSING_PAYMENT_TOLERANCE = 10.0
ALERT_RETENTION_DAYS = 30

# Confidence assigned to automated payments by source
AI_PAYMENT_CONFIDENCE = 0.8
USER_PAYMENT_CONFIDENCE = 0.9

# Re-analysis treats payments with the same vendor within this amount as one
PAYMENT_MATCH_TOLERANCE = 0.01
