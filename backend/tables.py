"""
backend/tables.py
─────────────────
ORM tables.

  t100_air_segments         BTS T-100 carrier / lane reference facts
  company_profiles          curated air-shipper profiles
  trade_records             Census / Comtrade shipment observations
  contact_enrichment_cache  memoised Apollo lookups (7-day horizon)
  crm_contacts              contacts harvested by enrichment
  campaigns                 outreach campaigns
  outreach_logs             per-contact outreach events
  company_hs_map            learned (hs_code, country) → company mappings
  search_log                company-match searches, for analytics
  company_feedback          user verdicts on company matches
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, Boolean, DateTime, Float, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from backend.db import Base


class T100AirSegment(Base):
    __tablename__ = "t100_air_segments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    origin_airport: Mapped[str] = mapped_column(String(8), nullable=False)
    dest_airport: Mapped[str] = mapped_column(String(8), nullable=False)
    carrier: Mapped[str] = mapped_column(String(16), nullable=False)
    carrier_name: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    freight_kg: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    mail_kg: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    departures_performed: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    aircraft_type: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (Index("ix_t100_period", "year", "month"),)


class CompanyProfileRow(Base):
    __tablename__ = "company_profiles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    company_name: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    likely_air_shipper: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    air_confidence_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)


class TradeRecordRow(Base):
    __tablename__ = "trade_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    source: Mapped[str] = mapped_column(String(16), default="census", nullable=False)
    company_name: Mapped[str] = mapped_column(String, nullable=False)
    hs_code: Mapped[str] = mapped_column(String(16), nullable=False)
    commodity_name: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    country: Mapped[str] = mapped_column(String, nullable=False)
    transport_mode: Mapped[str] = mapped_column(String(8), nullable=False)
    value_usd: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    weight_kg: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    customs_district: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    state: Mapped[Optional[str]] = mapped_column(String(8), nullable=True)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        Index("ix_trade_records_company", "company_name"),
        Index("ix_trade_records_period", "year", "month", "transport_mode"),
    )


class EnrichmentCacheRow(Base):
    __tablename__ = "contact_enrichment_cache"

    cache_key: Mapped[str] = mapped_column(String, primary_key=True)
    contacts: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    organization: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    enriched_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class CrmContact(Base):
    __tablename__ = "crm_contacts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    company_name: Mapped[str] = mapped_column(String, nullable=False)
    contact_name: Mapped[str] = mapped_column(String, nullable=False)
    title: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    linkedin_url: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    source: Mapped[str] = mapped_column(String, default="Apollo", nullable=False)
    apollo_id: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    enriched_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class CampaignRow(Base):
    __tablename__ = "campaigns"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    trade_lane: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    industry: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    type: Mapped[str] = mapped_column(String(16), nullable=False)
    status: Mapped[str] = mapped_column(String(16), default="draft", nullable=False)
    stats: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    sequence: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    target_filters: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    created: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    last_modified: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class OutreachLogRow(Base):
    __tablename__ = "outreach_logs"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    campaign_id: Mapped[str] = mapped_column(String, nullable=False)
    campaign_name: Mapped[str] = mapped_column(String, nullable=False)
    contact_email: Mapped[str] = mapped_column(String, nullable=False)
    contact_name: Mapped[str] = mapped_column(String, nullable=False)
    channel: Mapped[str] = mapped_column(String(16), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    subject: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    message_preview: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    user_id: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    lead_id: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    template_id: Mapped[Optional[str]] = mapped_column(String, nullable=True)

    __table_args__ = (Index("ix_outreach_logs_campaign", "campaign_id"),)


class CompanyHsMapRow(Base):
    __tablename__ = "company_hs_map"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    hs_code: Mapped[str] = mapped_column(String(16), nullable=False)
    country: Mapped[str] = mapped_column(String, nullable=False)
    company_name: Mapped[str] = mapped_column(String, nullable=False)
    confidence_override: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (Index("ix_company_hs_map_lookup", "hs_code", "country"),)


class SearchLogRow(Base):
    __tablename__ = "search_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    search_term: Mapped[str] = mapped_column(String, nullable=False)
    filter_applied: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    result_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    avg_confidence_score: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    user_id: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class CompanyFeedbackRow(Base):
    __tablename__ = "company_feedback"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    original_company_name: Mapped[str] = mapped_column(String, nullable=False)
    corrected_company_name: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    hs_code: Mapped[str] = mapped_column(String(16), nullable=False)
    country: Mapped[str] = mapped_column(String, nullable=False)
    confidence_at_time: Mapped[int] = mapped_column(Integer, nullable=False)
    feedback_type: Mapped[str] = mapped_column(String(16), nullable=False)
    user_id: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
