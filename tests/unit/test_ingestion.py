"""Unit tests for bank record conversion and paycheck/bonus heuristics"""

from datetime import date
import pytest
from money_dashboard.domain.ingestion import (
    analysis_trigger,
    convert_plaid_transaction,
    detect_bonus_paycheck,
    detect_regular_paycheck,
    latest_paycheck_date,
)
from money_dashboard.domain.models import BonusRange
from conftest import make_transaction, plaid_record

BONUS_RANGE = BonusRange(min=5000.0, max=10000.0)


def test_debit_sign_is_flipped():
    txn = convert_plaid_transaction(
        plaid_record("p1", 42.5, date(2026, 3, 3), name="STARBUCKS 123", merchant_name="Starbucks"), "user_1"
    )

    assert txn.amount == -42.5
    assert txn.type == "manual_charge"
    assert txn.category == "other"
    assert txn.vendor == "Starbucks"
    assert txn.description == "STARBUCKS 123"
    assert txn.id == txn.plaid_transaction_id == "p1"
    assert txn.user_id == "user_1"
    assert txn.date == date(2026, 3, 3)


def test_credit_becomes_deposit():
    txn = convert_plaid_transaction(plaid_record("p2", -2000.0, date(2026, 3, 6), name="ACME PAYROLL"), "user_1")

    assert txn.amount == 2000.0
    assert txn.type == "deposit"
    assert txn.vendor == "ACME PAYROLL"


def test_credit_near_paycheck_amount_becomes_paycheck():
    record = plaid_record("p2", -2030.0, date(2026, 3, 6), name="ACME PAYROLL")

    assert convert_plaid_transaction(record, "user_1", paycheck_amount=2000.0).type == "paycheck"
    assert convert_plaid_transaction(record, "user_1", paycheck_amount=2500.0).type == "deposit"


def test_debit_matching_paycheck_amount_stays_a_charge():
    record = plaid_record("p5", 2000.0, date(2026, 3, 6), name="RENT")

    assert convert_plaid_transaction(record, "user_1", paycheck_amount=2000.0).type == "manual_charge"


def test_vendor_falls_back_to_unknown():
    record = plaid_record("p3", 10.0, date(2026, 3, 6), name="")

    assert convert_plaid_transaction(record, "user_1").vendor == "Unknown"


def test_missing_required_field_raises():
    record = plaid_record("p4", 10.0, date(2026, 3, 6))
    del record["amount"]

    with pytest.raises(KeyError):
        convert_plaid_transaction(record, "user_1")


@pytest.mark.parametrize(
    "amount,on,expected",
    [
        (8000.0, date(2026, 3, 25), True),  # late in a quarter-end month
        (8000.0, date(2026, 4, 20), True),  # month after a quarter end
        (8000.0, date(2026, 1, 28), True),  # January follows December
        (8000.0, date(2026, 3, 19), False),  # too early in the month
        (8000.0, date(2026, 5, 25), False),  # not near a quarter end
        (4999.0, date(2026, 3, 25), False),  # below the range
        (15000.0, date(2026, 3, 25), True),  # 1.5x headroom above max
        (15001.0, date(2026, 3, 25), False),
    ],
)
def test_detect_bonus_paycheck(amount, on, expected):
    assert detect_bonus_paycheck(amount, on, BONUS_RANGE) is expected


def test_no_bonus_without_range():
    assert detect_bonus_paycheck(8000.0, date(2026, 3, 25), None) is False


def test_detect_regular_paycheck():
    assert detect_regular_paycheck(2040.0, 2000.0) is True
    assert detect_regular_paycheck(1950.0, 2000.0) is True
    assert detect_regular_paycheck(2051.0, 2000.0) is False
    assert detect_regular_paycheck(2000.0, None) is False


def test_analysis_trigger_reasons():
    ordinary = [make_transaction("a", -20.0, date(2026, 5, 5))]
    bonus = [make_transaction("b", 8000.0, date(2026, 3, 25), type="deposit")]

    assert analysis_trigger(True, [], BONUS_RANGE) is None
    assert analysis_trigger(False, ordinary, BONUS_RANGE) == "no_automated_payments"
    assert analysis_trigger(True, bonus, BONUS_RANGE) == "potential_bonus"
    assert analysis_trigger(True, ordinary, BONUS_RANGE) == "new_transactions"


def test_latest_paycheck_date():
    txns = [
        make_transaction("a", 2000.0, date(2026, 3, 6), type="paycheck"),
        make_transaction("b", 2000.0, date(2026, 3, 20), type="paycheck"),
        make_transaction("c", 9000.0, date(2026, 3, 25), type="bonus"),
    ]

    assert latest_paycheck_date(txns) == date(2026, 3, 20)
    assert latest_paycheck_date([]) is None
