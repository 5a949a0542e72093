"""
backend/routers/campaigns.py
────────────────────────────
FastAPI router for outreach campaign management.

Endpoints
─────────
GET    /api/campaigns          List (status / type / trade-lane filters) + summary
GET    /api/campaigns/{id}     One campaign
POST   /api/campaigns          Create a draft campaign
PUT    /api/campaigns/{id}     Partial update
DELETE /api/campaigns/{id}     Remove
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.db import get_session
from backend.routers.deps import error_response
from backend.schemas import (
    Campaign,
    CampaignCreate,
    CampaignListResponse,
    CampaignResponse,
    CampaignSummary,
    CampaignUpdate,
)
from backend.stores import CampaignStore
from models.exceptions import RecordNotFound
from utils.logger import logger

router = APIRouter(prefix="/api/campaigns", tags=["campaigns"])


def _store(session: Session = Depends(get_session)) -> CampaignStore:
    return CampaignStore(session)


def _to_campaign(row) -> Campaign:
    return Campaign(
        id=row.id,
        name=row.name,
        trade_lane=row.trade_lane,
        industry=row.industry,
        type=row.type,
        status=row.status,
        created=row.created,
        last_modified=row.last_modified,
        stats=row.stats,
        sequence=row.sequence,
        target_filters=row.target_filters,
    )


@router.get("", response_model=CampaignListResponse)
def list_campaigns(
    status: Optional[str] = Query(None, description="draft | active | paused | completed | all"),
    type: Optional[str] = Query(None, description="Campaign type or 'all'"),
    trade_lane: Optional[str] = Query(None, description="'Origin → Destination' or 'all'"),
    store: CampaignStore = Depends(_store),
):
    rows = store.list(status=status, campaign_type=type, trade_lane=trade_lane)
    return CampaignListResponse(
        campaigns=[_to_campaign(r) for r in rows],
        summary=CampaignSummary(**CampaignStore.summary(rows)),
    )


@router.get("/{campaign_id}", response_model=CampaignResponse)
def get_campaign(campaign_id: str, store: CampaignStore = Depends(_store)):
    try:
        row = store.get(campaign_id)
    except RecordNotFound as exc:
        return error_response(404, exc.message)
    return CampaignResponse(campaign=_to_campaign(row))


@router.post("", response_model=CampaignResponse, status_code=201)
def create_campaign(body: CampaignCreate, store: CampaignStore = Depends(_store)):
    try:
        row = store.create(body.model_dump(by_alias=True))
    except SQLAlchemyError as exc:
        logger.exception("Campaign create failed")
        return error_response(500, "Failed to create campaign", str(exc))
    return CampaignResponse(campaign=_to_campaign(row), message="Campaign created successfully")


@router.put("/{campaign_id}", response_model=CampaignResponse)
def update_campaign(
    campaign_id: str,
    body: CampaignUpdate,
    store: CampaignStore = Depends(_store),
):
    changes = body.model_dump(by_alias=True, exclude_unset=True, exclude_none=True)
    try:
        row = store.update(campaign_id, changes)
    except RecordNotFound as exc:
        return error_response(404, exc.message)
    except SQLAlchemyError as exc:
        logger.exception(f"Campaign update failed for {campaign_id}")
        return error_response(500, "Failed to update campaign", str(exc))
    return CampaignResponse(campaign=_to_campaign(row), message="Campaign updated successfully")


@router.delete("/{campaign_id}")
def delete_campaign(campaign_id: str, store: CampaignStore = Depends(_store)):
    try:
        store.delete(campaign_id)
    except RecordNotFound as exc:
        return error_response(404, exc.message)
    except SQLAlchemyError as exc:
        logger.exception(f"Campaign delete failed for {campaign_id}")
        return error_response(500, "Failed to delete campaign", str(exc))
    return {"success": True, "message": "Campaign deleted successfully"}
