"""
backend/schemas.py
──────────────────
Pydantic v2 request / response models for all FastAPI endpoints.

Sections
────────
  1. Air-intelligence models   - RouteMatchOut, ConfidenceResultOut, AirIntelligenceResponse
  2. Enrichment models         - EnrichmentRequest, EnrichmentResponse
  3. Campaign models           - CampaignCreate, CampaignUpdate, Campaign, CampaignListResponse
  4. Outreach-log models       - OutreachLogCreate, OutreachLogUpdate, OutreachLog, OutreachLogListResponse
  5. Ingestion models          - BtsIngestRequest, CensusIngestRequest, IngestionResponse
  6. Company-match models      - CompanyMatchRequest, CompanyMatchResponse, CompanyFeedbackRequest
  7. Shared / util models      - ErrorResponse, HealthResponse
"""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


# ─────────────────────────────────────────────────────────────────────────────
#  1. Air-intelligence models
# ─────────────────────────────────────────────────────────────────────────────

class RouteMatchOut(BaseModel):
    """One carrier lane supporting an air-shipper judgement."""
    model_config = ConfigDict(from_attributes=True)

    origin_airport: str
    dest_airport:   str
    carrier_name:   str
    freight_kg:     float = Field(..., ge=0)
    dest_city:      str


class AnalysisFactorsOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    bts_carrier_match:    bool
    electronics_industry: bool
    multi_modal_shipper:  bool
    high_value_cargo:     bool


class ConfidenceResultOut(BaseModel):
    """Engine output attached to a company."""
    model_config = ConfigDict(from_attributes=True)

    is_likely_air_shipper: bool
    confidence_score:      int = Field(..., ge=0, le=100)
    route_matches:         list[RouteMatchOut] = Field(
        default_factory=list, description="Ordered by freight_kg, heaviest lane first"
    )
    evaluated_at:          datetime
    bts_direct_match:      bool
    ocean_shipments_count: int = Field(..., ge=0)
    analysis_factors:      AnalysisFactorsOut
    source:                Literal["reference", "fallback"]


class AirIntelligenceResponse(BaseModel):
    """Response for GET /api/search/air-intelligence."""
    success:        bool = True
    company:        str
    intelligence:   ConfidenceResultOut
    matches_filter: bool = Field(
        True, description="False when air_shipper_only was requested and the company does not qualify"
    )


# ─────────────────────────────────────────────────────────────────────────────
#  2. Enrichment models
# ─────────────────────────────────────────────────────────────────────────────

class EnrichmentRequest(BaseModel):
    """Body for POST /api/enrichment/apollo."""
    company_name:    str = Field(..., description="Company to enrich")
    company_website: Optional[str] = None
    company_domain:  Optional[str] = None
    location:        Optional[str] = None
    zip_code:        Optional[str] = None
    industry:        Optional[str] = None
    max_contacts:    int = Field(5, ge=1, le=25)


class EnrichmentResponse(BaseModel):
    success:      bool
    source:       Literal["cache", "apollo", "apollo_unavailable"] | None = None
    company_name: str
    contacts:     list[dict[str, Any]] = Field(default_factory=list)
    organization: Optional[dict[str, Any]] = None
    enriched_at:  Optional[datetime] = None
    cached_at:    Optional[datetime] = None
    is_stale:     Optional[bool] = None
    error:        Optional[str] = None
    message:      Optional[str] = None


# ─────────────────────────────────────────────────────────────────────────────
#  3. Campaign models
# ─────────────────────────────────────────────────────────────────────────────

CampaignType   = Literal["email", "email_linkedin", "email_phantom", "omnichannel"]
CampaignStatus = Literal["draft", "active", "paused", "completed"]


class TradeLane(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_: str = Field("", alias="from")
    to:    str = ""


class CampaignStats(BaseModel):
    total_leads:          int = 0
    sent:                 int = 0
    opened:               int = 0
    replied:              int = 0
    clicked:              int = 0
    bounced:              int = 0
    linkedin_connections: int = 0


class CampaignStep(BaseModel):
    id:          str
    type:        Literal["email", "linkedin", "wait", "condition"]
    delay:       int = Field(0, ge=0)
    delay_unit:  Literal["hours", "days"] = "days"
    subject:     Optional[str] = None
    content:     Optional[str] = None
    condition:   Optional[Literal["opened", "clicked", "replied", "none"]] = None
    template_id: Optional[str] = None


class TargetFilters(BaseModel):
    countries:     list[str] = Field(default_factory=list)
    industries:    list[str] = Field(default_factory=list)
    company_sizes: list[str] = Field(default_factory=list)
    titles:        list[str] = Field(default_factory=list)


class CampaignCreate(BaseModel):
    """Body for POST /api/campaigns."""
    name:           str = "New Campaign"
    trade_lane:     TradeLane = Field(default_factory=TradeLane)
    industry:       list[str] = Field(default_factory=list)
    type:           CampaignType = "email"
    sequence:       list[CampaignStep] = Field(default_factory=list)
    target_filters: TargetFilters = Field(default_factory=TargetFilters)


class CampaignUpdate(BaseModel):
    """Body for PUT /api/campaigns/{id}; only supplied fields change."""
    name:           Optional[str] = None
    trade_lane:     Optional[TradeLane] = None
    industry:       Optional[list[str]] = None
    type:           Optional[CampaignType] = None
    status:         Optional[CampaignStatus] = None
    stats:          Optional[CampaignStats] = None
    sequence:       Optional[list[CampaignStep]] = None
    target_filters: Optional[TargetFilters] = None


class Campaign(BaseModel):
    id:             str
    name:           str
    trade_lane:     TradeLane
    industry:       list[str]
    type:           CampaignType
    status:         CampaignStatus
    created:        datetime
    last_modified:  datetime
    stats:          CampaignStats
    sequence:       list[CampaignStep]
    target_filters: TargetFilters


class CampaignSummary(BaseModel):
    total_campaigns:    int
    active_campaigns:   int
    total_leads:        int
    total_sent:         int
    total_opened:       int
    total_replies:      int
    overall_open_rate:  int
    overall_reply_rate: int


class CampaignListResponse(BaseModel):
    success:   bool = True
    campaigns: list[Campaign]
    summary:   CampaignSummary


class CampaignResponse(BaseModel):
    success:  bool = True
    campaign: Campaign
    message:  Optional[str] = None


# ─────────────────────────────────────────────────────────────────────────────
#  4. Outreach-log models
# ─────────────────────────────────────────────────────────────────────────────

OutreachChannel = Literal["Email", "LinkedIn", "PhantomBuster"]
OutreachStatus  = Literal["Sent", "Opened", "Replied", "Clicked", "Failed", "Bounced"]


class OutreachLogCreate(BaseModel):
    """Body for POST /api/outreach-logs."""
    campaign_id:     str
    contact_email:   str
    channel:         OutreachChannel
    contact_name:    str = "Unknown Contact"
    status:          OutreachStatus = "Sent"
    campaign_name:   str = "Unknown Campaign"
    subject:         Optional[str] = None
    message_preview: Optional[str] = None
    user_id:         Optional[str] = None
    lead_id:         Optional[str] = None
    template_id:     Optional[str] = None


class OutreachLogUpdate(BaseModel):
    """Body for PUT /api/outreach-logs/{id}."""
    status:          Optional[OutreachStatus] = None
    channel:         Optional[OutreachChannel] = None
    contact_name:    Optional[str] = None
    subject:         Optional[str] = None
    message_preview: Optional[str] = None


class OutreachLog(OutreachLogCreate):
    id:        str
    timestamp: datetime


class Pagination(BaseModel):
    total:    int
    limit:    int
    offset:   int
    has_more: bool


class OutreachSummary(BaseModel):
    total_logs:        int
    channel_breakdown: dict[str, int]
    status_breakdown:  dict[str, int]
    unique_contacts:   int


class OutreachLogListResponse(BaseModel):
    success:    bool = True
    data:       list[OutreachLog]
    pagination: Pagination
    summary:    OutreachSummary


class OutreachLogResponse(BaseModel):
    success: bool = True
    data:    OutreachLog
    message: Optional[str] = None


# ─────────────────────────────────────────────────────────────────────────────
#  5. Ingestion models
# ─────────────────────────────────────────────────────────────────────────────

class BtsIngestRequest(BaseModel):
    """Body for POST /api/ingest/bts-t100. Defaults to the current month."""
    year:  Optional[int] = Field(None, ge=1990, le=2100)
    month: Optional[int] = Field(None, ge=1, le=12)


class CensusIngestRequest(BaseModel):
    """Body for POST /api/ingest/census-trade."""
    year:           Optional[int] = Field(None, ge=1990, le=2100)
    month:          Optional[int] = Field(None, ge=1, le=12)
    transport_mode: Literal["air", "ocean", "both"] = "both"


class IngestionResult(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    source:           str
    year:             int
    month:            int
    transport_mode:   Optional[str] = None
    records_parsed:   int
    records_inserted: int
    errors:           list[str] = Field(default_factory=list)


class IngestionResponse(BaseModel):
    success: bool
    message: str
    results: list[IngestionResult]


# ─────────────────────────────────────────────────────────────────────────────
#  6. Company-match models
# ─────────────────────────────────────────────────────────────────────────────

class CompanyMatchRequest(BaseModel):
    """Body for POST /api/search/company-match."""
    hs_code:          str = Field(..., min_length=1, examples=["8471600000"])
    country:          str = Field(..., min_length=1, examples=["South Korea"])
    commodity_name:   Optional[str] = None
    consignee_name:   Optional[str] = None
    consignee_zip:    Optional[str] = None
    port_of_origin:   Optional[str] = None
    port_of_arrival:  Optional[str] = None
    customs_district: Optional[str] = None
    user_id:          Optional[str] = None


class CompanyMatchOut(BaseModel):
    company_name:            str
    confidence_score:        int = Field(..., ge=0, le=100)
    confidence_sources:      list[str]
    apollo_verified:         bool
    bts_route_match:         bool
    port_zip_match:          bool
    hs_mapping_match:        bool
    commodity_keyword_match: bool


class CompanyMatchResponse(BaseModel):
    success: bool = True
    match:   CompanyMatchOut


FeedbackType = Literal["correct", "incorrect", "correction"]


class CompanyFeedbackRequest(BaseModel):
    """Body for POST /api/feedback/company."""
    original_company_name:  str = Field(..., min_length=1)
    corrected_company_name: Optional[str] = None
    hs_code:                str = Field(..., min_length=1)
    country:                str = Field(..., min_length=1)
    confidence_at_time:     int = Field(..., ge=0, le=100)
    feedback_type:          FeedbackType
    user_id:                Optional[str] = None


class CompanyFeedbackResponse(BaseModel):
    success: bool = True
    id:      int
    message: str


# ─────────────────────────────────────────────────────────────────────────────
#  7. Shared / utility models
# ─────────────────────────────────────────────────────────────────────────────

class ErrorResponse(BaseModel):
    success: bool = False
    error:   str
    details: Optional[str] = None


class HealthResponse(BaseModel):
    """Response for GET /health."""
    status:         str
    database_ready: bool
    version:        str = "1.0.0"
