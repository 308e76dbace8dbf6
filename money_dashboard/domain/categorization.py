"""Keyword rules for suggesting a category and type when AI analysis has not run"""

from typing import List, Tuple

from money_dashboard.domain.models import CategorySuggestion, Transaction

# (vendor keywords, description keywords, category, type, confidence), first match wins
_RULES: List[Tuple[Tuple[str, ...], Tuple[str, ...], str, str, float]] = [
    (("electric", "power", "con ed", "national grid"), ("utility",), "utilities", "automated_payment", 0.9),
    (("rent", "apartment", "landlord"), ("rent",), "rent", "automated_payment", 0.9),
    (("whole foods", "trader joe", "stop & shop", "wegmans", "grocery"), ("grocery",), "groceries", "manual_charge", 0.8),
    (("restaurant", "cafe", "pizza", "mcdonald", "starbucks"), ("dining",), "dining", "manual_charge", 0.7),
    (("netflix", "spotify", "hulu", "amazon prime", "disney"), ("subscription",), "media", "automated_payment", 0.8),
    (("uber", "lyft", "mbta", "gas", "shell", "exxon"), (), "transportation", "manual_charge", 0.7),
]

FALLBACK = ("other", "manual_charge", 0.3)


def suggest_category(transaction: Transaction) -> CategorySuggestion:
    vendor = (transaction.vendor or "").lower()
    description = (transaction.description or "").lower()

    for vendor_keywords, description_keywords, category, type_, confidence in _RULES:
        if any(k in vendor for k in vendor_keywords) or any(k in description for k in description_keywords):
            return CategorySuggestion(transaction.id, category, type_, confidence)

    category, type_, confidence = FALLBACK
    return CategorySuggestion(transaction.id, category, type_, confidence)


def needs_categorization(transaction: Transaction) -> bool:
    return (
        not transaction.category
        or not transaction.type
        or transaction.category == "other"
        or transaction.type == "manual_charge"
    )
