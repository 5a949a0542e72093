"""
backend/routers/intelligence.py
───────────────────────────────
FastAPI router for the air-shipper confidence lookup.

Endpoints
─────────
GET  /api/search/air-intelligence   Confidence that a company ships by air,
                                    with supporting carrier lanes
"""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query

from backend.routers.deps import error_response, get_confidence_engine
from backend.schemas import AirIntelligenceResponse, ConfidenceResultOut
from models.confidence import AirShipperConfidenceEngine
from models.exceptions import MissingInput
from utils.logger import logger

router = APIRouter(prefix="/api/search", tags=["intelligence"])


@router.get(
    "/air-intelligence",
    response_model=AirIntelligenceResponse,
    summary="Air-shipper confidence for a company",
)
def air_intelligence(
    company: Optional[str] = Query(None, description="Company name to evaluate"),
    mode: Literal["all", "air", "ocean"] = Query("all", description="Trade mode filter"),
    air_shipper_only: bool = Query(False, description="Flag companies below the air-shipper threshold"),
    country: Optional[str] = Query(None),
    hs_code: Optional[str] = Query(None),
    engine: AirShipperConfidenceEngine = Depends(get_confidence_engine),
):
    """
    Scores the company against BTS carrier data, industry keywords, prior
    ocean shipments and any stored profile.

    - `mode=ocean` omits the air lanes from the payload
    - `air_shipper_only=true` sets `matches_filter` to the air-shipper verdict
    """
    if company is None or not company.strip():
        return error_response(400, "Company name is required")

    try:
        result = engine.evaluate(company, country=country, hs_code=hs_code)
    except MissingInput as exc:
        return error_response(400, exc.message)
    except Exception as exc:
        logger.exception(f"Air intelligence failed for '{company}'")
        return error_response(500, "Failed to get air intelligence", str(exc))

    payload = result.to_dict()
    if mode == "ocean":
        payload["route_matches"] = []

    logger.info(
        f"Air intelligence for '{company}': score={result.confidence_score} "
        f"likely_air={result.is_likely_air_shipper} source={result.source}"
    )
    return AirIntelligenceResponse(
        company=company.strip(),
        intelligence=ConfidenceResultOut.model_validate(payload),
        matches_filter=result.is_likely_air_shipper if air_shipper_only else True,
    )
