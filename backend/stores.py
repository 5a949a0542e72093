"""
backend/stores.py
─────────────────
Persistence for campaigns, outreach logs, contacts and match feedback.

  CampaignStore      list / get / create / update / delete campaigns, plus the
                     portfolio summary shown above the campaign list
  OutreachLogStore   filtered, paginated outreach history plus per-channel and
                     per-status breakdowns
  upsert_crm_contacts  enriched contacts into crm_contacts, keyed by email
  SearchLogStore     company-match search analytics
  FeedbackStore      match verdicts; corrections feed company_hs_map

Unknown ids raise RecordNotFound; routers turn that into a 404.
"""

from __future__ import annotations

import secrets
from collections import Counter
from datetime import datetime, timezone
from typing import Any, Callable

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.tables import (
    CampaignRow,
    CompanyFeedbackRow,
    CompanyHsMapRow,
    CrmContact,
    OutreachLogRow,
    SearchLogRow,
)
from models.exceptions import InvalidContext, RecordNotFound
from utils.logger import logger

EMPTY_STATS: dict[str, int] = {
    "total_leads": 0,
    "sent": 0,
    "opened": 0,
    "replied": 0,
    "clicked": 0,
    "bounced": 0,
    "linkedin_connections": 0,
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id(prefix: str, now: datetime) -> str:
    return f"{prefix}_{int(now.timestamp() * 1000)}_{secrets.token_hex(4)}"


def _pct(part: int, whole: int) -> int:
    return round(part / whole * 100) if whole else 0


def _commit(session: Session) -> None:
    try:
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        raise


def lane_label(trade_lane: dict[str, Any] | None) -> str:
    """{'from': 'China', 'to': 'USA'} → 'China → USA'."""
    lane = trade_lane or {}
    return f"{lane.get('from', '')} → {lane.get('to', '')}"


# ─────────────────────────────────────────────────────────────────────────────
#  Campaigns
# ─────────────────────────────────────────────────────────────────────────────

class CampaignStore:
    def __init__(self, session: Session, clock: Callable[[], datetime] = _utcnow) -> None:
        self.session = session
        self.clock = clock

    def list(
        self,
        status: str | None = None,
        campaign_type: str | None = None,
        trade_lane: str | None = None,
    ) -> list[CampaignRow]:
        stmt = select(CampaignRow)
        if status and status != "all":
            stmt = stmt.where(CampaignRow.status == status)
        if campaign_type and campaign_type != "all":
            stmt = stmt.where(CampaignRow.type == campaign_type)
        rows = list(self.session.scalars(stmt.order_by(CampaignRow.last_modified.desc())))
        # trade_lane lives in a JSON column; match on the rendered label
        if trade_lane and trade_lane != "all":
            rows = [r for r in rows if lane_label(r.trade_lane) == trade_lane]
        return rows

    def get(self, campaign_id: str) -> CampaignRow:
        row = self.session.get(CampaignRow, campaign_id)
        if row is None:
            raise RecordNotFound("Campaign not found", detail=f"id={campaign_id}")
        return row

    def create(self, data: dict[str, Any]) -> CampaignRow:
        now = self.clock()
        row = CampaignRow(
            id=_new_id("camp", now),
            name=data.get("name") or "New Campaign",
            trade_lane=data.get("trade_lane") or {"from": "", "to": ""},
            industry=list(data.get("industry") or []),
            type=data.get("type") or "email",
            status="draft",
            stats=dict(EMPTY_STATS),
            sequence=list(data.get("sequence") or []),
            target_filters=data.get("target_filters") or {
                "countries": [], "industries": [], "company_sizes": [], "titles": [],
            },
            created=now,
            last_modified=now,
        )
        self.session.add(row)
        _commit(self.session)
        logger.info(f"Created campaign {row.id} '{row.name}'")
        return row

    def update(self, campaign_id: str, changes: dict[str, Any]) -> CampaignRow:
        row = self.get(campaign_id)
        for key, value in changes.items():
            # every campaign column is NOT NULL; an explicit null leaves it unchanged
            if key in ("id", "created", "last_modified") or value is None:
                continue
            setattr(row, key, value)
        row.last_modified = self.clock()
        _commit(self.session)
        logger.info(f"Updated campaign {campaign_id}: {sorted(changes)}")
        return row

    def delete(self, campaign_id: str) -> None:
        row = self.get(campaign_id)
        self.session.delete(row)
        _commit(self.session)
        logger.info(f"Deleted campaign {campaign_id}")

    @staticmethod
    def summary(rows: list[CampaignRow]) -> dict[str, int]:
        totals = Counter()
        for r in rows:
            stats = r.stats or {}
            for key in ("total_leads", "sent", "opened", "replied"):
                totals[key] += int(stats.get(key, 0) or 0)
        return {
            "total_campaigns":    len(rows),
            "active_campaigns":   sum(1 for r in rows if r.status == "active"),
            "total_leads":        totals["total_leads"],
            "total_sent":         totals["sent"],
            "total_opened":       totals["opened"],
            "total_replies":      totals["replied"],
            "overall_open_rate":  _pct(totals["opened"], totals["sent"]),
            "overall_reply_rate": _pct(totals["replied"], totals["sent"]),
        }


# ─────────────────────────────────────────────────────────────────────────────
#  Outreach logs
# ─────────────────────────────────────────────────────────────────────────────

_NULLABLE_LOG_FIELDS = frozenset(
    {"subject", "message_preview", "user_id", "lead_id", "template_id"}
)


class OutreachLogStore:
    def __init__(self, session: Session, clock: Callable[[], datetime] = _utcnow) -> None:
        self.session = session
        self.clock = clock

    @staticmethod
    def _filtered(campaign_id: str | None, channel: str | None, status: str | None):
        stmt = select(OutreachLogRow)
        if campaign_id:
            stmt = stmt.where(OutreachLogRow.campaign_id == campaign_id)
        if channel:
            stmt = stmt.where(OutreachLogRow.channel == channel)
        if status:
            stmt = stmt.where(OutreachLogRow.status == status)
        return stmt

    def list(
        self,
        campaign_id: str | None = None,
        channel: str | None = None,
        status: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[OutreachLogRow], int]:
        """Newest first. Returns (page, total matching rows)."""
        stmt = self._filtered(campaign_id, channel, status)
        total = self.session.scalar(select(func.count()).select_from(stmt.subquery())) or 0
        page = self.session.scalars(
            stmt.order_by(OutreachLogRow.timestamp.desc()).limit(limit).offset(offset)
        )
        return list(page), total

    def summary(
        self,
        campaign_id: str | None = None,
        channel: str | None = None,
        status: str | None = None,
    ) -> dict[str, Any]:
        rows = list(self.session.scalars(self._filtered(campaign_id, channel, status)))
        return {
            "total_logs":        len(rows),
            "channel_breakdown": dict(Counter(r.channel for r in rows)),
            "status_breakdown":  dict(Counter(r.status for r in rows)),
            "unique_contacts":   len({r.contact_email for r in rows}),
        }

    def get(self, log_id: str) -> OutreachLogRow:
        row = self.session.get(OutreachLogRow, log_id)
        if row is None:
            raise RecordNotFound("Outreach log not found", detail=f"id={log_id}")
        return row

    def create(self, data: dict[str, Any]) -> OutreachLogRow:
        now = self.clock()
        row = OutreachLogRow(
            id=_new_id("log", now),
            campaign_id=data["campaign_id"],
            campaign_name=data.get("campaign_name") or "Unknown Campaign",
            contact_email=data["contact_email"],
            contact_name=data.get("contact_name") or "Unknown Contact",
            channel=data["channel"],
            status=data.get("status") or "Sent",
            timestamp=now,
            subject=data.get("subject"),
            message_preview=data.get("message_preview"),
            user_id=data.get("user_id"),
            lead_id=data.get("lead_id"),
            template_id=data.get("template_id"),
        )
        self.session.add(row)
        _commit(self.session)
        logger.info(f"Logged {row.channel} outreach to {row.contact_email} ({row.status})")
        return row

    def update(self, log_id: str, changes: dict[str, Any]) -> OutreachLogRow:
        row = self.get(log_id)
        for key, value in changes.items():
            if key in ("id", "timestamp"):
                continue
            if value is None and key not in _NULLABLE_LOG_FIELDS:
                continue
            setattr(row, key, value)
        row.timestamp = self.clock()
        _commit(self.session)
        return row

    def delete(self, log_id: str) -> None:
        row = self.get(log_id)
        self.session.delete(row)
        _commit(self.session)
        logger.info(f"Deleted outreach log {log_id}")


# ─────────────────────────────────────────────────────────────────────────────
#  CRM contacts
# ─────────────────────────────────────────────────────────────────────────────

def upsert_crm_contacts(
    session: Session,
    company_name: str,
    contacts: list[dict[str, Any]],
    now: datetime | None = None,
) -> int:
    """Insert or refresh enriched contacts keyed by email. Contacts without an email are skipped."""
    now = now or _utcnow()
    stored = 0
    for c in contacts:
        email = (c.get("email") or "").strip().lower()
        if not email:
            continue
        row = session.scalars(select(CrmContact).where(CrmContact.email == email)).first()
        if row is None:
            row = CrmContact(email=email)
            session.add(row)
        phones = c.get("phone_numbers") or []
        row.company_name = company_name
        row.contact_name = c.get("name") or f"{c.get('first_name', '')} {c.get('last_name', '')}".strip()
        row.title = c.get("title")
        row.linkedin_url = c.get("linkedin_url")
        row.phone = _phone(phones[0]) if phones else None
        row.source = "Apollo"
        row.apollo_id = c.get("id")
        row.enriched_at = now
        stored += 1
    _commit(session)
    logger.info(f"Upserted {stored} CRM contacts for '{company_name}'")
    return stored


def _phone(entry: Any) -> str | None:
    # Apollo returns either bare strings or {"raw_number": ...} objects
    if isinstance(entry, dict):
        return entry.get("sanitized_number") or entry.get("raw_number")
    return str(entry) if entry else None


# ─────────────────────────────────────────────────────────────────────────────
#  Company-match analytics & feedback
# ─────────────────────────────────────────────────────────────────────────────

class SearchLogStore:
    def __init__(self, session: Session, clock: Callable[[], datetime] = _utcnow) -> None:
        self.session = session
        self.clock = clock

    def record(
        self,
        search_term: str,
        filters: dict[str, Any],
        result_count: int,
        avg_confidence: float,
        user_id: str | None = None,
    ) -> SearchLogRow:
        row = SearchLogRow(
            search_term=search_term,
            filter_applied=filters,
            result_count=result_count,
            avg_confidence_score=avg_confidence,
            user_id=user_id,
            created_at=self.clock(),
        )
        self.session.add(row)
        _commit(self.session)
        return row


class FeedbackStore:
    """
    User verdicts on company matches.

    A "correction" also teaches company_hs_map: the corrected name becomes a
    mapping for the (hs_code, country) pair, so the next match finds it.
    """

    def __init__(self, session: Session, clock: Callable[[], datetime] = _utcnow) -> None:
        self.session = session
        self.clock = clock

    def submit(self, data: dict[str, Any]) -> CompanyFeedbackRow:
        now = self.clock()
        corrected = (data.get("corrected_company_name") or "").strip() or None
        if data["feedback_type"] == "correction" and corrected is None:
            raise InvalidContext(
                "Correction feedback needs corrected_company_name",
                suggestion="Send feedback_type 'incorrect' when no replacement is known",
            )

        row = CompanyFeedbackRow(
            original_company_name=data["original_company_name"],
            corrected_company_name=corrected,
            hs_code=data["hs_code"],
            country=data["country"],
            confidence_at_time=data["confidence_at_time"],
            feedback_type=data["feedback_type"],
            user_id=data.get("user_id"),
            created_at=now,
        )
        self.session.add(row)
        if row.feedback_type == "correction":
            self._learn(row.hs_code, row.country, corrected, now)
        _commit(self.session)
        logger.info(
            f"Feedback '{row.feedback_type}' on '{row.original_company_name}' "
            f"({row.hs_code}/{row.country})"
        )
        return row

    def _learn(self, hs_code: str, country: str, company_name: str, now: datetime) -> None:
        stmt = select(CompanyHsMapRow).where(
            CompanyHsMapRow.hs_code == hs_code,
            CompanyHsMapRow.country == country,
            func.lower(CompanyHsMapRow.company_name) == company_name.lower(),
        )
        if self.session.scalars(stmt).first() is None:
            self.session.add(CompanyHsMapRow(
                hs_code=hs_code, country=country, company_name=company_name, created_at=now,
            ))
