"""
backend/routers/ingest.py
─────────────────────────
FastAPI router that refreshes the reference tables behind the confidence engine.

Endpoints
─────────
POST /api/ingest/bts-t100       Download + load BTS T-100 carrier segments
POST /api/ingest/census-trade   Download + load Census air / vessel export rows
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from backend.db import get_session
from backend.routers.deps import error_response
from backend.schemas import (
    BtsIngestRequest,
    CensusIngestRequest,
    IngestionResponse,
    IngestionResult,
)
from models.exceptions import IngestionError
from models.trade import TransportMode
from utils.data_loader import ingest_bts_t100, ingest_census_trade
from utils.logger import logger

router = APIRouter(prefix="/api/ingest", tags=["ingestion"])

_MODES = {
    "air":   (TransportMode.AIR,),
    "ocean": (TransportMode.OCEAN,),
    "both":  (TransportMode.AIR, TransportMode.OCEAN),
}


def _period(year, month) -> tuple[int, int]:
    now = datetime.now(timezone.utc)
    return year or now.year, month or now.month


@router.post("/bts-t100", response_model=IngestionResponse)
def ingest_bts(body: BtsIngestRequest, session: Session = Depends(get_session)):
    year, month = _period(body.year, body.month)
    try:
        report = ingest_bts_t100(session, year, month)
    except IngestionError as exc:
        logger.error(f"BTS T-100 ingestion failed: {exc}")
        return error_response(502, exc.message, exc.detail)

    return IngestionResponse(
        success=True,
        message=f"Processed {report.records_inserted} BTS T-100 records",
        results=[IngestionResult.model_validate(report)],
    )


@router.post("/census-trade", response_model=IngestionResponse)
def ingest_census(body: CensusIngestRequest, session: Session = Depends(get_session)):
    year, month = _period(body.year, body.month)
    results: list[IngestionResult] = []
    for mode in _MODES[body.transport_mode]:
        try:
            report = ingest_census_trade(session, year, month, mode)
        except IngestionError as exc:
            logger.error(f"Census {mode.value} ingestion failed: {exc}")
            return error_response(502, exc.message, exc.detail)
        results.append(IngestionResult.model_validate(report))

    inserted = sum(r.records_inserted for r in results)
    return IngestionResponse(
        success=True,
        message=f"Processed {inserted} Census trade records for {year}-{month:02d}",
        results=results,
    )
