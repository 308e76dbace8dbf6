"""Transaction search, suggestions, categorisation, and account reset"""

import json
import logging
from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from money_dashboard.api.dependencies import get_cache, get_current_user, get_request_id
from money_dashboard.api.v1.schemas import (
    BulkCategorizeError,
    BulkCategorizeRequest,
    BulkCategorizeResponse,
    CategoriesResponse,
    Category,
    CategorizeRequest,
    CategorySuggestionSchema,
    FacetsSchema,
    PaginationSchema,
    ResetResponse,
    SearchFilters,
    SearchRequest,
    SearchResponse,
    SortField,
    SortOrder,
    SortOptions,
    SuggestionsResponse,
    TransactionSchema,
    TransactionType,
    UncategorizedItem,
    UncategorizedResponse,
    PageOptions,
)
from money_dashboard.config import settings
from money_dashboard.domain.categorization import needs_categorization, suggest_category
from money_dashboard.domain.constants import TRANSACTION_CATEGORIES, TRANSACTION_TYPES
from money_dashboard.domain.models import SearchCriteria
from money_dashboard.domain.search import search_suggestions, search_transactions
from money_dashboard.infrastructure.cache import TTLCache, search_key
from money_dashboard.infrastructure.database.models import User
from money_dashboard.infrastructure.database.repositories import TransactionRepository
from money_dashboard.infrastructure.database.session import get_db
from money_dashboard.utils.pagination import build_page_info, get_pagination_options

router = APIRouter(prefix="/transactions")

MIN_SUGGESTION_PREFIX = 2


def _search(
    db: Session,
    cache: TTLCache,
    user_id: str,
    query: Optional[str],
    filters: SearchFilters,
    sort: SortOptions,
    pagination: PageOptions,
) -> SearchResponse:
    """Run a search over the user's full transaction set, served from cache when fresh"""
    params = json.dumps(
        {
            "query": query,
            "filters": filters.model_dump(mode="json"),
            "sort": sort.model_dump(),
            "pagination": pagination.model_dump(),
        },
        sort_keys=True,
    )
    key = search_key(user_id, params)
    cached = cache.get(key)
    if cached is not None:
        return cached

    window = get_pagination_options(pagination.page, pagination.page_size)
    criteria = SearchCriteria(
        query=query or None,
        vendor=filters.vendor,
        category=filters.category,
        type=filters.type,
        min_amount=filters.min_amount,
        max_amount=filters.max_amount,
        start_date=filters.start_date,
        end_date=filters.end_date,
        sort_by=sort.by,
        sort_order=sort.order,
        limit=window.limit,
        offset=window.offset,
    )
    result = search_transactions(TransactionRepository(db).get_user_transactions(user_id), criteria)

    response = SearchResponse(
        transactions=[TransactionSchema.model_validate(t) for t in result.transactions],
        total_count=result.total_count,
        facets=FacetsSchema.model_validate(result.facets),
        pagination=PaginationSchema.model_validate(build_page_info(result.total_count, window.page, window.page_size)),
    )
    cache.set(key, response, settings.cache_ttl_search)
    return response


@router.get("/search", response_model=SearchResponse)
def search_get(
    q: Optional[str] = Query(None, max_length=200),
    vendor: Optional[str] = Query(None),
    category: Optional[Category] = Query(None),
    type: Optional[TransactionType] = Query(None),
    min_amount: Optional[float] = Query(None, ge=0),
    max_amount: Optional[float] = Query(None, ge=0),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    sort_by: SortField = Query("date"),
    sort_order: SortOrder = Query("DESC"),
    page: int = Query(1, ge=1),
    page_size: int = Query(25, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: TTLCache = Depends(get_cache),
):
    filters = SearchFilters(
        vendor=vendor,
        category=category,
        type=type,
        min_amount=min_amount,
        max_amount=max_amount,
        start_date=start_date,
        end_date=end_date,
    )
    return _search(
        db, cache, user.id, q, filters, SortOptions(by=sort_by, order=sort_order), PageOptions(page=page, page_size=page_size)
    )


@router.post("/search", response_model=SearchResponse)
def search_post(
    body: SearchRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: TTLCache = Depends(get_cache),
):
    return _search(db, cache, user.id, body.query, body.filters, body.sort, body.pagination)


@router.get("/search/suggestions", response_model=SuggestionsResponse)
def suggestions(
    q: str = Query("", max_length=100),
    field: Literal["vendor", "description"] = Query("vendor"),
    limit: int = Query(10, ge=1, le=10),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Autocomplete; prefixes shorter than two characters return nothing"""
    if len(q.strip()) < MIN_SUGGESTION_PREFIX:
        return SuggestionsResponse(suggestions=[])
    transactions = TransactionRepository(db).get_user_transactions(user.id)
    return SuggestionsResponse(suggestions=search_suggestions(transactions, q.strip(), field, limit))


@router.get("/categories", response_model=CategoriesResponse)
def categories(user: User = Depends(get_current_user)):
    return CategoriesResponse(categories=list(TRANSACTION_CATEGORIES), types=list(TRANSACTION_TYPES))


@router.get("/uncategorized", response_model=UncategorizedResponse)
def uncategorized(
    limit: int = Query(50, ge=1, le=200),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Transactions still at the default classification, with rule-based suggestions"""
    pending = [t for t in TransactionRepository(db).get_user_transactions(user.id) if needs_categorization(t)]
    items = [
        UncategorizedItem(
            transaction=TransactionSchema.model_validate(t),
            suggestion=CategorySuggestionSchema.model_validate(suggest_category(t)),
        )
        for t in pending[:limit]
    ]
    return UncategorizedResponse(items=items, total_count=len(pending))


@router.put("/{transaction_id}/categorize", response_model=TransactionSchema)
def categorize(
    transaction_id: str,
    body: CategorizeRequest,
    request: Request,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: TTLCache = Depends(get_cache),
):
    updated = TransactionRepository(db).update_classification(user.id, transaction_id, body.category, body.type)
    if updated is None:
        raise HTTPException(status_code=404, detail="Transaction not found")
    db.commit()
    cache.invalidate_user(user.id)

    logging.info(
        "Transaction categorized",
        extra={
            "request_id": get_request_id(request),
            "user_id": user.id,
            "transaction_id": transaction_id,
            "category": body.category,
            "transaction_type": body.type,
        },
    )
    return TransactionSchema.model_validate(updated)


@router.post("/bulk-categorize", response_model=BulkCategorizeResponse)
def bulk_categorize(
    body: BulkCategorizeRequest,
    request: Request,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: TTLCache = Depends(get_cache),
):
    """Apply corrections item by item; unknown ids are reported, not fatal"""
    repo = TransactionRepository(db)
    updated = 0
    errors = []

    for item in body.updates:
        if repo.update_classification(user.id, item.transaction_id, item.category, item.type) is None:
            errors.append(BulkCategorizeError(transaction_id=item.transaction_id, error="Transaction not found"))
            continue
        updated += 1

    db.commit()
    if updated:
        cache.invalidate_user(user.id)

    logging.info(
        "Bulk categorization",
        extra={"request_id": get_request_id(request), "user_id": user.id, "updated": updated, "failed": len(errors)},
    )
    return BulkCategorizeResponse(updated=updated, errors=errors)


@router.delete("", response_model=ResetResponse)
def reset_transactions(
    request: Request,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: TTLCache = Depends(get_cache),
):
    """Delete every stored transaction for the user"""
    deleted = TransactionRepository(db).delete_all(user.id)
    db.commit()
    cache.invalidate_user(user.id)

    logging.warning("Transactions reset", extra={"request_id": get_request_id(request), "user_id": user.id, "deleted": deleted})
    return ResetResponse(deleted=deleted)
