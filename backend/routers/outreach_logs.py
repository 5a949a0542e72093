"""
backend/routers/outreach_logs.py
────────────────────────────────
FastAPI router for the outreach history.

Endpoints
─────────
GET    /api/outreach-logs          Filtered, paginated, newest first, with summary
POST   /api/outreach-logs          Record an outreach event
PUT    /api/outreach-logs/{id}     Update status / content (refreshes timestamp)
DELETE /api/outreach-logs/{id}     Remove
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.db import get_session
from backend.routers.deps import error_response
from backend.schemas import (
    OutreachChannel,
    OutreachLog,
    OutreachLogCreate,
    OutreachLogListResponse,
    OutreachLogResponse,
    OutreachLogUpdate,
    OutreachStatus,
    OutreachSummary,
    Pagination,
)
from backend.stores import OutreachLogStore
from models.exceptions import RecordNotFound
from utils.logger import logger

router = APIRouter(prefix="/api/outreach-logs", tags=["outreach"])


def _store(session: Session = Depends(get_session)) -> OutreachLogStore:
    return OutreachLogStore(session)


def _to_log(row) -> OutreachLog:
    return OutreachLog(
        id=row.id,
        campaign_id=row.campaign_id,
        campaign_name=row.campaign_name,
        contact_email=row.contact_email,
        contact_name=row.contact_name,
        channel=row.channel,
        status=row.status,
        timestamp=row.timestamp,
        subject=row.subject,
        message_preview=row.message_preview,
        user_id=row.user_id,
        lead_id=row.lead_id,
        template_id=row.template_id,
    )


@router.get("", response_model=OutreachLogListResponse)
def list_outreach_logs(
    campaign_id: Optional[str] = Query(None),
    channel: Optional[OutreachChannel] = Query(None),
    status: Optional[OutreachStatus] = Query(None),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    store: OutreachLogStore = Depends(_store),
):
    rows, total = store.list(campaign_id, channel, status, limit=limit, offset=offset)
    return OutreachLogListResponse(
        data=[_to_log(r) for r in rows],
        pagination=Pagination(
            total=total,
            limit=limit,
            offset=offset,
            has_more=offset + limit < total,
        ),
        summary=OutreachSummary(**store.summary(campaign_id, channel, status)),
    )


@router.post("", response_model=OutreachLogResponse, status_code=201)
def create_outreach_log(body: OutreachLogCreate, store: OutreachLogStore = Depends(_store)):
    if not body.campaign_id.strip() or not body.contact_email.strip():
        return error_response(400, "Missing required fields: campaign_id, contact_email, channel")
    try:
        row = store.create(body.model_dump())
    except SQLAlchemyError as exc:
        logger.exception("Outreach log create failed")
        return error_response(500, "Failed to create outreach log", str(exc))
    return OutreachLogResponse(data=_to_log(row), message="Outreach log created successfully")


@router.put("/{log_id}", response_model=OutreachLogResponse)
def update_outreach_log(
    log_id: str,
    body: OutreachLogUpdate,
    store: OutreachLogStore = Depends(_store),
):
    try:
        row = store.update(log_id, body.model_dump(exclude_unset=True))
    except RecordNotFound as exc:
        return error_response(404, exc.message)
    except SQLAlchemyError as exc:
        logger.exception(f"Outreach log update failed for {log_id}")
        return error_response(500, "Failed to update outreach log", str(exc))
    return OutreachLogResponse(data=_to_log(row), message="Outreach log updated successfully")


@router.delete("/{log_id}")
def delete_outreach_log(log_id: str, store: OutreachLogStore = Depends(_store)):
    try:
        store.delete(log_id)
    except RecordNotFound as exc:
        return error_response(404, exc.message)
    except SQLAlchemyError as exc:
        logger.exception(f"Outreach log delete failed for {log_id}")
        return error_response(500, "Failed to delete outreach log", str(exc))
    return {"success": True, "message": "Outreach log deleted successfully"}
