"""
backend/routers/deps.py
───────────────────────
Shared FastAPI dependencies and the JSON error envelope used by every router.
"""

from datetime import timedelta
from typing import Optional

from fastapi import Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from backend.db import get_session
from backend.reference import SqlHsMappingSource, SqlReferenceSource
from config.settings import Settings, get_settings
from models.company_match import CompanyMatcher
from models.confidence import AirShipperConfidenceEngine
from utils.apollo_client import ApolloClient, ContactVerifier
from utils.enrichment_cache import EnrichmentCache


def error_response(status_code: int, error: str, details: Optional[str] = None) -> JSONResponse:
    body = {"success": False, "error": error}
    if details is not None:
        body["details"] = details
    return JSONResponse(status_code=status_code, content=body)


def get_confidence_engine(
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> AirShipperConfidenceEngine:
    return AirShipperConfidenceEngine(
        reference=SqlReferenceSource(session),
        route_limit=settings.route_match_limit,
        prior_shipment_limit=settings.prior_shipment_limit,
    )


def get_apollo_client() -> ApolloClient:
    return ApolloClient()


def get_enrichment_cache(
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> EnrichmentCache:
    return EnrichmentCache(session, max_age=timedelta(days=settings.enrichment_ttl_days))


def get_company_matcher(
    session: Session = Depends(get_session),
    client: ApolloClient = Depends(get_apollo_client),
    cache: EnrichmentCache = Depends(get_enrichment_cache),
) -> CompanyMatcher:
    return CompanyMatcher(
        mappings=SqlHsMappingSource(session),
        verify_contact=ContactVerifier(client, cache),
    )
