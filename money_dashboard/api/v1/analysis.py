"""POST/GET /v1/ai/analyze-transactions - run or read an AI analysis"""

import logging
import time
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from money_dashboard.api.dependencies import get_cache, get_current_user, get_llm_client, get_request_id
from money_dashboard.api.v1.schemas import AnalysisResponse, AnalysisSchema, AnalyzeRequest
from money_dashboard.domain.analysis import analysis_summary
from money_dashboard.domain.exceptions import InvalidAnalysisRangeError, LLMAPIError, NotFoundError
from money_dashboard.infrastructure.cache import TTLCache
from money_dashboard.infrastructure.clients.llm import LLMClient
from money_dashboard.infrastructure.database.models import User
from money_dashboard.infrastructure.database.repositories import AnalysisRepository
from money_dashboard.infrastructure.database.session import get_db
from money_dashboard.infrastructure.observability.logging import log_analysis
from money_dashboard.infrastructure.observability.metrics import analysis_counter
from money_dashboard.services.analysis import analyze_range, validate_range

router = APIRouter(prefix="/ai")


@router.post("/analyze-transactions", response_model=AnalysisResponse)
async def analyze_transactions(
    body: AnalyzeRequest,
    request: Request,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    llm_client: LLMClient = Depends(get_llm_client),
    cache: TTLCache = Depends(get_cache),
):
    """
    Analyse transactions in a date range (at most 93 days).

    A stored analysis for the same range is returned unless force is set.
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        validate_range(body.start_date, body.end_date)

        if not body.force:
            stored = AnalysisRepository(db).get_analysis(user.id, body.start_date, body.end_date)
            if stored is not None:
                return AnalysisResponse(analysis=AnalysisSchema.model_validate(stored), cached=True)

        analysis, transactions = await analyze_range(db, llm_client, user.id, body.start_date, body.end_date)
        db.commit()
        cache.invalidate_user(user.id)

        analysis_counter.labels(outcome="success").inc()
        duration_ms = (time.time() - start_time) * 1000
        log_analysis(user.id, len(transactions), analysis_summary(analysis), duration_ms, "manual")
        return AnalysisResponse(analysis=AnalysisSchema.model_validate(analysis), cached=False)

    except InvalidAnalysisRangeError as e:
        raise HTTPException(status_code=400, detail=str(e))

    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    except LLMAPIError as e:
        db.rollback()
        analysis_counter.labels(outcome="failure").inc()
        logging.error(f"LLM API error: {e}", extra={"request_id": request_id, "user_id": user.id})
        raise HTTPException(status_code=502, detail="Transaction analysis unavailable")


@router.get("/analyze-transactions", response_model=AnalysisResponse)
def get_analysis(
    start_date: date = Query(...),
    end_date: date = Query(...),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    stored = AnalysisRepository(db).get_analysis(user.id, start_date, end_date)
    if stored is None:
        raise HTTPException(status_code=404, detail="No analysis found for the specified date range")
    return AnalysisResponse(analysis=AnalysisSchema.model_validate(stored), cached=True)
