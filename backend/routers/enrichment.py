"""
backend/routers/enrichment.py
─────────────────────────────
FastAPI router for contact enrichment.

Endpoints
─────────
POST /api/enrichment/apollo   Fresh cache hit, else Apollo search + cache + CRM upsert
GET  /api/enrichment/apollo   Cached entry only (stale entries included, flagged)
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.db import get_session
from backend.routers.deps import error_response, get_apollo_client, get_enrichment_cache
from backend.schemas import EnrichmentRequest, EnrichmentResponse
from backend.stores import upsert_crm_contacts
from utils.apollo_client import ApolloClient
from utils.enrichment_cache import EnrichmentCache, build_cache_key
from utils.logger import logger

router = APIRouter(prefix="/api/enrichment", tags=["enrichment"])


@router.post("/apollo", response_model=EnrichmentResponse, response_model_exclude_none=True)
def enrich_company(
    request: EnrichmentRequest,
    cache: EnrichmentCache = Depends(get_enrichment_cache),
    client: ApolloClient = Depends(get_apollo_client),
    session: Session = Depends(get_session),
):
    company = request.company_name.strip()
    if not company:
        return error_response(400, "Company name is required")

    key = build_cache_key(company, request.location, request.zip_code)
    try:
        cached = cache.get(key)
        if cached is not None:
            logger.info(f"Enrichment cache hit for '{company}'")
            return EnrichmentResponse(
                success=True,
                source="cache",
                company_name=company,
                contacts=cached.contacts,
                organization=cached.organization,
                cached_at=cached.enriched_at,
            )

        result = client.search_people(
            company,
            company_domain=request.company_website or request.company_domain,
            location=request.location,
            industry=request.industry,
            max_contacts=request.max_contacts,
        )
        if not result.success:
            return EnrichmentResponse(
                success=False,
                source="apollo_unavailable",
                company_name=company,
                enriched_at=cache.clock(),
                error=result.error or "No contacts found for this company",
            )

        entry = cache.put(key, result.contacts, result.organization)
        upsert_crm_contacts(session, company, result.contacts, now=entry.enriched_at)
    except SQLAlchemyError as exc:
        logger.exception(f"Enrichment storage failed for '{company}'")
        return error_response(500, "Enrichment failed", str(exc))

    return EnrichmentResponse(
        success=True,
        source="apollo",
        company_name=company,
        contacts=entry.contacts,
        organization=entry.organization,
        enriched_at=entry.enriched_at,
    )


@router.get("/apollo", response_model=EnrichmentResponse, response_model_exclude_none=True)
def cached_enrichment(
    company: Optional[str] = Query(None, description="Company name"),
    location: Optional[str] = Query(None),
    zip_code: Optional[str] = Query(None),
    cache: EnrichmentCache = Depends(get_enrichment_cache),
):
    if company is None or not company.strip():
        return error_response(400, "Company name is required")
    company = company.strip()

    try:
        entry = cache.peek(build_cache_key(company, location, zip_code))
    except SQLAlchemyError as exc:
        return error_response(500, "Failed to retrieve cached data", str(exc))

    if entry is None:
        return EnrichmentResponse(
            success=False,
            company_name=company,
            message="No cached data found. Use POST to enrich company data.",
        )
    return EnrichmentResponse(
        success=True,
        source="cache",
        company_name=company,
        contacts=entry.contacts,
        organization=entry.organization,
        cached_at=entry.enriched_at,
        is_stale=entry.is_stale(cache.clock(), cache.max_age),
    )
