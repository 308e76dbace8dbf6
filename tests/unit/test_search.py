"""Unit tests for transaction search, facets, and suggestions"""

from datetime import date, timedelta
from money_dashboard.domain.models import SearchCriteria
from money_dashboard.domain.search import calculate_facets, search_suggestions, search_transactions
from conftest import SAMPLE_TODAY, make_transaction


def test_no_filters_returns_everything_newest_first(sample_transactions):
    result = search_transactions(sample_transactions, SearchCriteria())

    assert result.total_count == 5
    assert [t.date for t in result.transactions] == sorted((t.date for t in sample_transactions), reverse=True)
    assert sum(result.facets.categories.values()) == result.total_count
    assert result.facets.date_range.min == SAMPLE_TODAY - timedelta(days=2)
    assert result.facets.date_range.max == SAMPLE_TODAY


def test_query_matches_vendor_or_description_case_insensitively():
    transactions = [
        make_transaction("a", -5.0, SAMPLE_TODAY, vendor="STARBUCKS #12", description="coffee"),
        make_transaction("b", -9.0, SAMPLE_TODAY, vendor="Corner Shop", description="Starbucks beans"),
        make_transaction("c", -9.0, SAMPLE_TODAY, vendor="Corner Shop", description="milk"),
    ]

    result = search_transactions(transactions, SearchCriteria(query="starbucks"))

    assert {t.id for t in result.transactions} == {"a", "b"}


def test_amount_filters_use_magnitude(sample_transactions):
    result = search_transactions(sample_transactions, SearchCriteria(min_amount=100, max_amount=1500))

    assert {t.id for t in result.transactions} == {"t3", "t4"}


def test_combined_filters(sample_transactions):
    criteria = SearchCriteria(
        category="dining",
        type="manual_charge",
        start_date=SAMPLE_TODAY,
        end_date=SAMPLE_TODAY,
        vendor="pizza",
    )

    result = search_transactions(sample_transactions, criteria)

    assert [t.id for t in result.transactions] == ["t1"]
    assert result.facets.categories == {"dining": 1}
    assert result.facets.types == {"manual_charge": 1}


def test_sort_by_amount_ascending_uses_magnitude(sample_transactions):
    result = search_transactions(sample_transactions, SearchCriteria(sort_by="amount", sort_order="ASC"))

    assert [t.id for t in result.transactions] == ["t2", "t1", "t3", "t4", "t5"]


def test_sort_by_vendor_descending(sample_transactions):
    result = search_transactions(sample_transactions, SearchCriteria(sort_by="vendor", sort_order="DESC"))

    assert result.transactions[0].vendor == "Venmo"
    assert result.transactions[-1].vendor == "Acme Payroll"


def test_pagination_window_and_totals(sample_transactions):
    result = search_transactions(sample_transactions, SearchCriteria(limit=2, offset=2))

    assert len(result.transactions) == 2
    assert result.total_count == 5
    assert result.total_count >= len(result.transactions)
    assert sum(result.facets.categories.values()) == 5


def test_offset_past_end_returns_empty_page(sample_transactions):
    result = search_transactions(sample_transactions, SearchCriteria(offset=50))

    assert result.transactions == []
    assert result.total_count == 5


def test_no_matches_have_empty_facets():
    result = search_transactions([], SearchCriteria(query="nothing"))

    assert result.total_count == 0
    assert result.facets.categories == {}
    assert result.facets.date_range.min is None


def test_calculate_facets_counts_types():
    transactions = [
        make_transaction("a", 10.0, date(2026, 1, 1), type="deposit"),
        make_transaction("b", 10.0, date(2026, 2, 1), type="deposit"),
        make_transaction("c", -10.0, date(2026, 3, 1)),
    ]

    facets = calculate_facets(transactions)

    assert facets.types == {"deposit": 2, "manual_charge": 1}
    assert facets.date_range.min == date(2026, 1, 1)
    assert facets.date_range.max == date(2026, 3, 1)


def test_suggestions_are_distinct_prefix_matches_in_first_seen_order():
    transactions = [
        make_transaction("a", -1.0, SAMPLE_TODAY, vendor="Starbucks"),
        make_transaction("b", -1.0, SAMPLE_TODAY, vendor="Stop & Shop"),
        make_transaction("c", -1.0, SAMPLE_TODAY, vendor="Starbucks"),
        make_transaction("d", -1.0, SAMPLE_TODAY, vendor="Target"),
    ]

    assert search_suggestions(transactions, "st") == ["Starbucks", "Stop & Shop"]
    assert search_suggestions(transactions, "ST", limit=1) == ["Starbucks"]


def test_suggestions_capped_at_ten():
    transactions = [make_transaction(str(i), -1.0, SAMPLE_TODAY, vendor=f"Shop {i}") for i in range(15)]

    assert len(search_suggestions(transactions, "shop", limit=50)) == 10


def test_suggestions_by_description():
    transactions = [make_transaction("a", -1.0, SAMPLE_TODAY, vendor="X", description="Monthly rent")]

    assert search_suggestions(transactions, "mon", field="description") == ["Monthly rent"]
    assert search_suggestions(transactions, "mon", field="vendor") == []
