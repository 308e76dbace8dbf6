"""Unit tests for spending aggregation"""

from datetime import date, timedelta
from money_dashboard.domain.spending import calculate_spending_by_category
from conftest import SAMPLE_TODAY, make_transaction


def test_dining_debits_grouped_and_credit_ignored():
    transactions = [
        make_transaction("a", -50.0, SAMPLE_TODAY, category="dining"),
        make_transaction("b", -30.0, SAMPLE_TODAY, category="dining"),
        make_transaction("c", 200.0, SAMPLE_TODAY, category="other", type="deposit"),
    ]

    spending = calculate_spending_by_category(transactions, "monthly", today=SAMPLE_TODAY)

    assert len(spending) == 1
    assert spending[0].category == "dining"
    assert spending[0].amount == 80.0
    assert spending[0].transaction_count == 2
    assert spending[0].time_period == "monthly"


def test_sorted_descending_and_partitions_debit_total(sample_transactions):
    spending = calculate_spending_by_category(sample_transactions, "monthly", today=SAMPLE_TODAY)

    assert [s.category for s in spending] == ["rent", "dining"]
    assert [s.amount for s in spending] == sorted((s.amount for s in spending), reverse=True)

    debit_total = sum(-t.amount for t in sample_transactions if t.amount < 0)
    assert sum(s.amount for s in spending) == debit_total


def test_period_bounds():
    transactions = [
        make_transaction("jan", -10.0, date(2026, 1, 5), category="groceries"),
        make_transaction("feb", -20.0, date(2026, 2, 5), category="groceries"),
        make_transaction("mar", -40.0, date(2026, 3, 1), category="groceries"),
        make_transaction("future", -80.0, SAMPLE_TODAY + timedelta(days=1), category="groceries"),
        make_transaction("last_year", -160.0, date(2025, 12, 31), category="groceries"),
    ]

    monthly = calculate_spending_by_category(transactions, "monthly", today=SAMPLE_TODAY)
    quarterly = calculate_spending_by_category(transactions, "quarterly", today=SAMPLE_TODAY)
    yearly = calculate_spending_by_category(transactions, "yearly", today=SAMPLE_TODAY)

    assert monthly[0].amount == 40.0
    assert quarterly[0].amount == 70.0
    assert yearly[0].amount == 70.0
    assert yearly[0].time_period == "yearly"


def test_missing_category_counts_as_other():
    txn = make_transaction("x", -12.5, SAMPLE_TODAY, category="")
    spending = calculate_spending_by_category([txn], today=SAMPLE_TODAY)
    assert spending[0].category == "other"


def test_no_debits_returns_empty():
    assert calculate_spending_by_category([], today=SAMPLE_TODAY) == []
