"""Prompts and response schema for LLM transaction analysis"""

import json
from typing import Any, Dict, List, Optional

from money_dashboard.domain.constants import PAYMENT_FREQUENCIES, TRANSACTION_CATEGORIES
from money_dashboard.domain.models import BonusRange

MAX_PROMPT_TRANSACTIONS = 50

SYSTEM_PROMPT = (
    "You are a financial analyst specializing in transaction categorization and pattern recognition. "
    "Analyze bank transactions to identify recurring payments, one-time purchases, paychecks, and bonuses."
)

PAYMENT_CATEGORIES = ["rent", "utilities", "investments", "media", "other"]

_INDEX = {"type": "integer"}


def _array_of(properties: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "type": "array",
        "items": {
            "type": "object",
            "properties": properties,
            "required": list(properties),
            "additionalProperties": False,
        },
    }


ANALYSIS_JSON_SCHEMA: Dict[str, Any] = {
    "name": "transaction_analysis",
    "strict": True,
    "schema": {
        "type": "object",
        "properties": {
            "automated_payments": _array_of(
                {
                    "vendor": {"type": "string"},
                    "amount": {"type": "number"},
                    "frequency": {"type": "string", "enum": list(PAYMENT_FREQUENCIES)},
                    "last_occurrence": {"type": "string"},
                    "category": {"type": "string", "enum": PAYMENT_CATEGORIES},
                }
            ),
            "anomalies": _array_of({"transaction_index": _INDEX, "reason": {"type": "string"}}),
            "paychecks": _array_of(
                {
                    "transaction_index": _INDEX,
                    "amount": {"type": "number"},
                    "date": {"type": "string"},
                    "is_bonus": {"type": "boolean"},
                }
            ),
            "bonuses": _array_of(
                {"transaction_index": _INDEX, "amount": {"type": "number"}, "date": {"type": "string"}}
            ),
            "categories": _array_of(
                {
                    "transaction_index": _INDEX,
                    "category": {"type": "string", "enum": list(TRANSACTION_CATEGORIES)},
                    "confidence": {"type": "number"},
                }
            ),
        },
        "required": ["automated_payments", "anomalies", "paychecks", "bonuses", "categories"],
        "additionalProperties": False,
    },
}


def build_analysis_prompt(
    transactions: List[Dict[str, Any]],
    paycheck_amount: Optional[float] = None,
    bonus_range: Optional[BonusRange] = None,
) -> str:
    """User prompt for an analysis run; only the first 50 transactions are listed inline"""
    paycheck = f"~${paycheck_amount:g}" if paycheck_amount else "variable amounts"
    bonus = f"${bonus_range.min:g}-${bonus_range.max:g}" if bonus_range else "variable amounts"

    listed = json.dumps(transactions[:MAX_PROMPT_TRANSACTIONS], indent=2)
    if len(transactions) > MAX_PROMPT_TRANSACTIONS:
        listed += f"\n... and {len(transactions) - MAX_PROMPT_TRANSACTIONS} more transactions"

    return f"""
Analyze the following bank transactions and categorize them appropriately.

Context:
- Paycheck deposits: {paycheck} every 2 weeks
- Bonus deposits: {bonus} quarterly, on the last paycheck of the month after a quarter ends
- Account is used for automated payments (rent, utilities, etc.)

Transactions to analyze:
{listed}

Please identify:
1. Recurring automated payments (rent, utilities, subscriptions, etc.)
2. Paycheck deposits
3. Bonus deposits
4. One-time or anomalous transactions
5. Transaction categories

Rules:
1. Automated payments are recurring transactions with consistent amounts
2. Anomalies are one-off large purchases, transfers, or unusual transactions
3. Refer to transactions by their "index" field as transaction_index
4. Categories should match the predefined list
5. Be conservative with automated payment detection - only include truly recurring payments
"""
