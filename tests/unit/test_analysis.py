"""Unit tests for AI analysis validation and application"""

from datetime import date
from money_dashboard.domain.analysis import (
    analysis_summary,
    apply_analysis,
    merge_automated_payments,
    parse_iso_date,
    prepare_transactions_for_ai,
    process_ai_results,
)
from conftest import make_payment, make_transaction

START = date(2026, 1, 1)
END = date(2026, 3, 31)


def _transactions():
    return [
        make_transaction("t0", -15.99, date(2026, 3, 1), vendor="Netflix"),
        make_transaction("t1", 2000.0, date(2026, 3, 6), vendor="Acme Payroll", type="deposit"),
        make_transaction("t2", 9000.0, date(2026, 3, 25), vendor="Acme Payroll", type="deposit"),
    ]


def _process(raw):
    return process_ai_results(raw, _transactions(), "user_1", START, END)


def test_prepare_transactions_indexes_in_order():
    prepared = prepare_transactions_for_ai(_transactions())

    assert [p["index"] for p in prepared] == [0, 1, 2]
    assert prepared[0]["id"] == "t0"
    assert prepared[0]["date"] == "2026-03-01"


def test_valid_automated_payment_is_kept_with_defaults():
    result = _process(
        {
            "automated_payments": [
                {"vendor": "Netflix", "amount": 15.99, "frequency": "fortnightly", "category": "streaming"},
            ]
        }
    )

    [payment] = result.automated_payments
    assert payment.vendor == "Netflix"
    assert payment.frequency == "monthly"
    assert payment.category == "other"
    assert payment.confidence == 0.8
    assert payment.last_occurrence == END
    assert payment.user_id == "user_1"


def test_invalid_automated_payments_are_dropped():
    result = _process(
        {
            "automated_payments": [
                {"vendor": "", "amount": 10, "frequency": "monthly", "category": "media"},
                {"vendor": "Gym", "amount": 0, "frequency": "monthly", "category": "other"},
                {"vendor": "Gym", "amount": "20", "frequency": "monthly", "category": "other"},
                {"vendor": "Gym", "amount": 20, "category": "other"},
                "not a payment",
                {"vendor": "Spotify", "amount": 9.99, "frequency": "monthly", "category": "media",
                 "last_occurrence": "2026-03-02T00:00:00Z"},
            ]
        }
    )

    assert [p.vendor for p in result.automated_payments] == ["Spotify"]
    assert result.automated_payments[0].last_occurrence == date(2026, 3, 2)


def test_index_entries_out_of_range_are_dropped():
    result = _process(
        {
            "anomalies": [
                {"transaction_index": 2, "reason": "Much larger than usual"},
                {"transaction_index": 3, "reason": "Out of range"},
                {"transaction_index": -1, "reason": "Negative"},
            ],
            "paychecks": [
                {"transaction_index": 1, "amount": 2000, "date": "2026-03-06", "is_bonus": False},
                {"transaction_index": True, "amount": 1},
            ],
            "bonuses": [{"transaction_index": 2, "amount": 9000}],
        }
    )

    assert [(a.transaction_id, a.reason) for a in result.anomalies] == [("t2", "Much larger than usual")]
    assert [p.transaction_id for p in result.paychecks] == ["t1"]
    assert result.bonuses[0].transaction_id == "t2"
    assert result.bonuses[0].date == date(2026, 3, 25)


def test_category_confidence_clamped_and_defaulted():
    result = _process(
        {
            "categories": [
                {"transaction_index": 0, "category": "media", "confidence": 1.7},
                {"transaction_index": 1, "category": "salary"},
                {"transaction_index": 2, "category": "other", "confidence": -0.3},
            ]
        }
    )

    mappings = {m.transaction_id: m for m in result.category_mappings}
    assert mappings["t0"].confidence == 1.0
    assert mappings["t0"].category == "media"
    assert mappings["t1"].confidence == 0.5
    assert mappings["t1"].category == "other"
    assert mappings["t2"].confidence == 0.0


def test_missing_sections_give_empty_result():
    result = _process({"anomalies": "nope"})

    assert result.automated_payments == []
    assert result.anomalies == []
    assert result.category_mappings == []
    assert result.analyzed_at is not None


def test_apply_analysis_updates_category_and_type():
    transactions = _transactions()
    result = process_ai_results(
        {
            "categories": [{"transaction_index": 0, "category": "media", "confidence": 0.9}],
            "paychecks": [
                {"transaction_index": 1, "amount": 2000, "is_bonus": False},
                {"transaction_index": 2, "amount": 9000, "is_bonus": True},
            ],
        },
        transactions,
        "user_1",
        START,
        END,
    )

    changed = apply_analysis(result, transactions)

    assert sorted(t.id for t in changed) == ["t0", "t1", "t2"]
    assert transactions[0].category == "media"
    assert transactions[1].type == "paycheck"
    assert transactions[2].type == "bonus"


def test_apply_analysis_without_matches_changes_nothing():
    transactions = _transactions()
    result = process_ai_results({}, transactions, "user_1", START, END)

    assert apply_analysis(result, transactions) == []


def test_merge_updates_matching_vendor_and_amount():
    existing = [make_payment("p1", "Netflix", 15.99), make_payment("p2", "Gym", 40.0)]
    detected = [
        make_payment("new1", "Netflix", 15.99, frequency="monthly", category="media"),
        make_payment("new2", "Gym", 45.0),
        make_payment("new3", "Spotify", 9.99),
    ]

    merged = merge_automated_payments(existing, detected)

    assert [p.id for p in merged] == ["p1", "p2", "new2", "new3"]
    assert merged[0].category == "media"
    assert merged[0].updated_at is not None


def test_analysis_summary_counts():
    result = _process(
        {
            "automated_payments": [{"vendor": "Netflix", "amount": 15.99, "frequency": "monthly", "category": "media"}],
            "bonuses": [{"transaction_index": 2, "amount": 9000}],
        }
    )

    assert analysis_summary(result) == {
        "automated_payment_count": 1,
        "anomaly_count": 0,
        "paycheck_count": 0,
        "bonus_count": 1,
        "categorized_transactions": 0,
    }


def test_parse_iso_date():
    assert parse_iso_date("2026-03-01") == date(2026, 3, 1)
    assert parse_iso_date("2026-03-01T10:00:00") == date(2026, 3, 1)
    assert parse_iso_date("March 1") is None
    assert parse_iso_date(None) is None
