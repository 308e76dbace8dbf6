"""Transaction filtering, facets, and autocomplete over a user's full transaction set"""

from typing import Callable, Dict, Iterable, List

from money_dashboard.domain.models import (
    DateRange,
    SearchCriteria,
    SearchFacets,
    SearchResult,
    Transaction,
)

MAX_SUGGESTIONS = 10

_SORT_KEYS: Dict[str, Callable[[Transaction], object]] = {
    "date": lambda t: t.date,
    "amount": lambda t: abs(t.amount),
    "vendor": lambda t: t.vendor or "",
}


def _predicates(criteria: SearchCriteria) -> List[Callable[[Transaction], bool]]:
    """Build one predicate per filter that is set, in a fixed order"""
    predicates: List[Callable[[Transaction], bool]] = []

    if criteria.query:
        query = criteria.query.lower()
        predicates.append(
            lambda t: query in (t.vendor or "").lower() or query in (t.description or "").lower()
        )

    if criteria.vendor:
        vendor = criteria.vendor.lower()
        predicates.append(lambda t: vendor in (t.vendor or "").lower())

    if criteria.category:
        predicates.append(lambda t: t.category == criteria.category)

    if criteria.type:
        predicates.append(lambda t: t.type == criteria.type)

    if criteria.min_amount is not None:
        predicates.append(lambda t: abs(t.amount) >= criteria.min_amount)

    if criteria.max_amount is not None:
        predicates.append(lambda t: abs(t.amount) <= criteria.max_amount)

    if criteria.start_date is not None:
        predicates.append(lambda t: t.date >= criteria.start_date)

    if criteria.end_date is not None:
        predicates.append(lambda t: t.date <= criteria.end_date)

    return predicates


def calculate_facets(transactions: List[Transaction]) -> SearchFacets:
    categories: Dict[str, int] = {}
    types: Dict[str, int] = {}

    for txn in transactions:
        categories[txn.category] = categories.get(txn.category, 0) + 1
        types[txn.type] = types.get(txn.type, 0) + 1

    dates = [t.date for t in transactions if t.date is not None]
    date_range = DateRange(min=min(dates), max=max(dates)) if dates else DateRange()

    return SearchFacets(categories=categories, types=types, date_range=date_range)


def search_transactions(transactions: Iterable[Transaction], criteria: SearchCriteria) -> SearchResult:
    """
    Filter, facet, sort, and paginate a transaction set.

    Facets and total_count describe the whole filtered set, not the returned page.
    """
    filtered = list(transactions)
    for predicate in _predicates(criteria):
        filtered = [t for t in filtered if predicate(t)]

    facets = calculate_facets(filtered)

    sort_key = _SORT_KEYS.get(criteria.sort_by, _SORT_KEYS["date"])
    filtered.sort(key=sort_key, reverse=criteria.sort_order.upper() == "DESC")

    offset = max(0, criteria.offset)
    page = filtered[offset:offset + max(0, criteria.limit)]

    return SearchResult(transactions=page, total_count=len(filtered), facets=facets)


def search_suggestions(
    transactions: Iterable[Transaction],
    prefix: str,
    field: str = "vendor",
    limit: int = MAX_SUGGESTIONS,
) -> List[str]:
    """Distinct vendor or description values starting with prefix (case-insensitive)"""
    prefix = prefix.lower()
    seen: Dict[str, None] = {}

    for txn in transactions:
        value = txn.vendor if field == "vendor" else txn.description
        if value and value.lower().startswith(prefix) and value not in seen:
            seen[value] = None

    return list(seen)[: min(limit, MAX_SUGGESTIONS)]
