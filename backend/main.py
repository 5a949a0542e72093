"""
backend/main.py
═══════════════
FastAPI application for the TradeIntel air-freight intelligence platform.

Endpoints
─────────
  GET  /health                          Liveness / database readiness probe
  GET  /api/search/air-intelligence     Air-shipper confidence for a company
  POST /api/search/company-match        Best company behind a shipment
  POST /api/feedback/company            Match feedback (corrections are learned)
  POST /api/enrichment/apollo           Contact enrichment (7-day cache)
  GET  /api/enrichment/apollo           Cached enrichment lookup
  *    /api/campaigns                   Campaign management
  *    /api/outreach-logs               Outreach history
  POST /api/ingest/bts-t100             Refresh BTS carrier segments
  POST /api/ingest/census-trade         Refresh Census trade records

  Run with:
      uvicorn backend.main:app --reload --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.db import get_session, init_db
from backend.routers import (
    campaigns,
    enrichment,
    ingest,
    intelligence,
    matching,
    outreach_logs,
)
from backend.routers.deps import error_response
from backend.schemas import HealthResponse
from models.exceptions import MissingInput, RecordNotFound, TradeIntelError
from utils.logger import logger

# ─────────────────────────────────────────────────────────────────────────────
#  App initialisation
# ─────────────────────────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(_app: FastAPI):
    logger.info("[startup] Creating missing tables")
    init_db()
    logger.info("[startup] TradeIntel API ready")
    yield


app = FastAPI(
    title="TradeIntel | Air Freight Intelligence API",
    description=(
        "Air-shipper confidence scoring from BTS carrier data and trade records, "
        "contact enrichment, and outreach campaign tracking."
    ),
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(intelligence.router)
app.include_router(matching.router)
app.include_router(enrichment.router)
app.include_router(campaigns.router)
app.include_router(outreach_logs.router)
app.include_router(ingest.router)


# ─────────────────────────────────────────────────────────────────────────────
#  Error envelope
# ─────────────────────────────────────────────────────────────────────────────

@app.exception_handler(RequestValidationError)
async def _validation_error(_request: Request, exc: RequestValidationError):
    first = exc.errors()[0] if exc.errors() else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query"))
    return error_response(400, f"Invalid request: {field or 'body'}", first.get("msg"))


@app.exception_handler(TradeIntelError)
async def _trade_intel_error(_request: Request, exc: TradeIntelError):
    if isinstance(exc, MissingInput):
        status = 400
    elif isinstance(exc, RecordNotFound):
        status = 404
    else:
        status = 500
    logger.warning(f"{type(exc).__name__}: {exc}")
    return error_response(status, exc.message, exc.detail)


# ─────────────────────────────────────────────────────────────────────────────
#  Health check
# ─────────────────────────────────────────────────────────────────────────────

@app.get("/health", response_model=HealthResponse, tags=["Meta"])
def health_check(session: Session = Depends(get_session)) -> HealthResponse:
    """Liveness & readiness probe. Reports whether the database answers."""
    try:
        session.execute(text("SELECT 1"))
        return HealthResponse(status="ok", database_ready=True)
    except SQLAlchemyError as exc:
        logger.error(f"Health check: database unreachable: {exc}")
        return HealthResponse(status=f"degraded: {exc.__class__.__name__}", database_ready=False)


if __name__ == "__main__":
    import uvicorn

    from config.settings import get_settings

    settings = get_settings()
    uvicorn.run(
        "backend.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.app_env == "development",
    )
