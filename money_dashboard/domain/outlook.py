"""Financial outlook engine - cash-flow projection until the next bonus"""

import math
from datetime import date
from typing import List, Optional

from money_dashboard.domain.constants import (
    BONUS_WINDOW_DAYS,
    DEFAULT_PROJECTION_DAYS,
    DEFICIT_BASELINE,
    LARGE_MONTHLY_PAYMENT,
    LOW_RISK_SURPLUS,
    MEDIUM_RISK_DEFICIT_RATIO,
    PAYCHECK_FREQUENCY_DAYS,
)
from money_dashboard.domain.models import AutomatedPayment, FinancialOutlook
from money_dashboard.utils.date_utils import utcnow


def resolve_horizon(next_bonus_date: Optional[date], today: date) -> tuple[bool, int, int]:
    """
    Decide whether the projection runs to the bonus date or a fixed horizon.

    A bonus counts only when it falls within BONUS_WINDOW_DAYS of today. Bonuses
    further out (or in the past, or unknown) fall back to DEFAULT_PROJECTION_DAYS.

    Returns: (has_bonus, days_until_bonus, projection_days)
    """
    if next_bonus_date is not None:
        days_until = (next_bonus_date - today).days
        if 0 <= days_until <= BONUS_WINDOW_DAYS:
            return True, days_until, days_until
    return False, 0, DEFAULT_PROJECTION_DAYS


def count_paychecks(projection_days: int, today: date, last_paycheck_date: Optional[date] = None) -> int:
    """
    Number of paychecks landing within the projection window.

    With a known last paycheck the 14-day cycle phase decides when the next one
    lands (a future-dated paycheck counts as paid today); without it every
    started cycle counts.
    """
    if last_paycheck_date is not None:
        days_since = max(0, (today - last_paycheck_date).days)
        next_paycheck_in = PAYCHECK_FREQUENCY_DAYS - (days_since % PAYCHECK_FREQUENCY_DAYS)
        total_days = projection_days + next_paycheck_in
        return max(0, total_days // PAYCHECK_FREQUENCY_DAYS)

    return max(0, math.ceil(projection_days / PAYCHECK_FREQUENCY_DAYS))


def payment_occurrences(frequency: str, projection_days: int) -> int:
    """How many times a recurring payment of this frequency is charged in the window"""
    if frequency == "bi-weekly":
        periods = max(1, math.ceil(projection_days / 14))
        return math.ceil(periods / 2)
    if frequency == "weekly":
        return max(1, math.ceil(projection_days / 7))
    if frequency == "quarterly":
        return max(1, math.ceil(projection_days / 91))
    if frequency == "annual":
        # Kept as observed: annual bills count once whenever the window is at most a year.
        return 1 if projection_days <= 365 else 0
    # monthly, and anything unrecognised
    return max(1, math.ceil(projection_days / 30))


def calculate_expected_expenses(automated_payments: List[AutomatedPayment], projection_days: int) -> float:
    """Sum of automated payment charges expected within the window"""
    return sum(
        payment.amount * payment_occurrences(payment.frequency, projection_days)
        for payment in automated_payments
    )


def calculate_risk_level(over_under: float) -> str:
    """
    Map projected surplus/deficit to a risk tier.

    - >= $1000 surplus: low
    - >= $0: medium
    - deficit where |deficit| / (deficit + 10000) < 0.1: medium
    - otherwise: high
    """
    if over_under >= LOW_RISK_SURPLUS:
        return "low"
    if over_under >= 0:
        return "medium"

    denominator = over_under + DEFICIT_BASELINE
    deficit_ratio = abs(over_under) / denominator if denominator != 0 else math.inf
    if deficit_ratio < MEDIUM_RISK_DEFICIT_RATIO:
        return "medium"
    return "high"


def generate_recommendations(
    over_under: float,
    projection_days: int,
    automated_payments: List[AutomatedPayment],
    has_bonus: bool,
) -> List[str]:
    recommendations: List[str] = []

    if over_under < 0:
        deficit = abs(over_under)
        time_frame = "until your next bonus" if has_bonus else f"over the next {projection_days} days"
        recommendations.append(f"You have a projected shortfall of ${deficit:.2f} {time_frame}.")

        if projection_days > 30:
            recommendations.append("Consider reducing discretionary spending to bridge the gap.")

        if has_bonus and projection_days < 14:
            recommendations.append("Your bonus is coming soon - monitor your balance closely.")
    elif over_under < LOW_RISK_SURPLUS:
        time_frame = "until the next bonus" if has_bonus else f"over the next {projection_days} days"
        recommendations.append(f"Your finances are tight {time_frame}. Consider building an emergency fund.")
    else:
        time_frame = "until your next bonus" if has_bonus else f"for the next {projection_days} days"
        recommendations.append(f"You have a healthy buffer {time_frame}.")

    if any(p.frequency == "weekly" for p in automated_payments):
        recommendations.append("You have weekly automated payments - ensure sufficient funds are available.")

    if any(p.frequency == "monthly" and p.amount > LARGE_MONTHLY_PAYMENT for p in automated_payments):
        recommendations.append("You have large monthly payments coming up. Plan accordingly.")

    return recommendations


def calculate_financial_outlook(
    current_balance: float,
    automated_payments: List[AutomatedPayment],
    next_bonus_date: Optional[date] = None,
    paycheck_deposit_amount: Optional[float] = None,
    last_paycheck_date: Optional[date] = None,
    today: Optional[date] = None,
) -> FinancialOutlook:
    """
    Main entry point: project funds available against automated payments due.

    Example:
        balance $5000, paycheck $2000, bonus in 10 days, no payments
        → 1 paycheck, $2000 deposits, $0 expenses, +$7000, low risk
    """
    if today is None:
        today = date.today()

    has_bonus, days_until_bonus, projection_days = resolve_horizon(next_bonus_date, today)

    paychecks = count_paychecks(projection_days, today, last_paycheck_date)
    expected_deposits = paychecks * paycheck_deposit_amount if paycheck_deposit_amount else 0.0
    expected_expenses = calculate_expected_expenses(automated_payments, projection_days)

    available_funds = current_balance + expected_deposits
    required_funds = expected_expenses
    over_under = available_funds - required_funds

    return FinancialOutlook(
        current_balance=current_balance,
        next_bonus_date=next_bonus_date if has_bonus else None,
        days_until_bonus=days_until_bonus,
        projection_days=projection_days,
        paychecks_until_bonus=paychecks,
        expected_paycheck_deposits=expected_deposits,
        expected_expenses=expected_expenses,
        available_funds=available_funds,
        required_funds=required_funds,
        over_under=over_under,
        automated_payments=list(automated_payments),
        risk_level=calculate_risk_level(over_under),
        recommendations=generate_recommendations(over_under, projection_days, automated_payments, has_bonus),
        calculated_at=utcnow(),
    )
