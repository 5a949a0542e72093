"""
backend/routers/matching.py
───────────────────────────
FastAPI router for consignee matching and match feedback.

Endpoints
─────────
POST /api/search/company-match   Best company behind an (HS code, country)
                                 shipment, with confidence and evidence
POST /api/feedback/company       Correct / incorrect / corrected-name verdict
"""

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.db import get_session
from backend.routers.deps import error_response, get_company_matcher
from backend.schemas import (
    CompanyFeedbackRequest,
    CompanyFeedbackResponse,
    CompanyMatchOut,
    CompanyMatchRequest,
    CompanyMatchResponse,
)
from backend.stores import FeedbackStore, SearchLogStore
from models.company_match import CompanyMatcher, ShipmentFactors
from models.exceptions import InvalidContext, MissingInput
from utils.logger import logger

router = APIRouter(prefix="/api", tags=["matching"])


@router.post("/search/company-match", response_model=CompanyMatchResponse)
def company_match(
    request: CompanyMatchRequest,
    matcher: CompanyMatcher = Depends(get_company_matcher),
    session: Session = Depends(get_session),
):
    """
    Direct consignee first, then the learned HS mapping, then inference.
    The search is recorded in `search_log`.
    """
    filters = request.model_dump(exclude={"user_id"}, exclude_none=True)
    try:
        match = matcher.best_match(ShipmentFactors(**filters))
    except MissingInput as exc:
        return error_response(400, exc.message)
    except SQLAlchemyError as exc:
        logger.exception(f"Company match failed for {request.hs_code}/{request.country}")
        return error_response(500, "Failed to match company", str(exc))

    try:
        SearchLogStore(session).record(
            search_term=request.consignee_name or request.hs_code,
            filters=filters,
            result_count=1 if match.company_name else 0,
            avg_confidence=float(match.confidence_score),
            user_id=request.user_id,
        )
    except SQLAlchemyError as exc:
        # analytics only; the match is still returned
        logger.warning(f"Search log write failed: {exc}")

    logger.info(
        f"Company match {request.hs_code}/{request.country}: "
        f"'{match.company_name}' score={match.confidence_score}"
    )
    return CompanyMatchResponse(match=CompanyMatchOut(**match.to_dict()))


@router.post("/feedback/company", response_model=CompanyFeedbackResponse, status_code=201)
def company_feedback(request: CompanyFeedbackRequest, session: Session = Depends(get_session)):
    try:
        row = FeedbackStore(session).submit(request.model_dump())
    except InvalidContext as exc:
        return error_response(400, exc.message, exc.suggestion)
    except SQLAlchemyError as exc:
        logger.exception("Feedback submission failed")
        return error_response(500, "Failed to submit feedback", str(exc))
    return CompanyFeedbackResponse(id=row.id, message="Feedback recorded")
