"""
backend/reference.py
────────────────────
SqlReferenceSource: the engine's read-only view of the reference tables.
SqlHsMappingSource: the company matcher's view of company_hs_map.

Any SQLAlchemy failure is re-raised as ReferenceDataUnavailable so the engine
can switch to its static fallback table.
"""

from __future__ import annotations

from functools import wraps

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.tables import CompanyHsMapRow, CompanyProfileRow, T100AirSegment, TradeRecordRow
from models.company_match import MAPPING_DEFAULT_SCORE, HsMapping
from models.exceptions import InvalidContext, ReferenceDataUnavailable
from models.trade import CarrierRoute, CompanyProfile, TradeRecord, TransportMode
from utils.logger import logger


def _reference_lookup(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except SQLAlchemyError as exc:
            raise ReferenceDataUnavailable(detail=f"{fn.__name__}: {exc}") from exc
    return wrapper


class SqlReferenceSource:
    def __init__(self, session: Session) -> None:
        self.session = session

    @_reference_lookup
    def carrier_routes(self, company_name: str, limit: int) -> list[CarrierRoute]:
        carrier = func.coalesce(T100AirSegment.carrier_name, T100AirSegment.carrier)
        stmt = (
            select(T100AirSegment)
            .where(func.lower(carrier).contains(company_name.lower(), autoescape=True))
            .order_by(T100AirSegment.freight_kg.desc())
            .limit(limit)
        )
        return [
            CarrierRoute(
                origin_airport=row.origin_airport,
                dest_airport=row.dest_airport,
                carrier_name=row.carrier_name or row.carrier,
                freight_kg=row.freight_kg or 0.0,
                year=row.year,
                month=row.month,
            )
            for row in self.session.scalars(stmt)
        ]

    @_reference_lookup
    def company_profile(self, company_name: str) -> CompanyProfile | None:
        stmt = select(CompanyProfileRow).where(
            func.lower(CompanyProfileRow.company_name) == company_name.lower()
        )
        row = self.session.scalars(stmt).first()
        if row is None:
            return None
        return CompanyProfile(
            company_name=row.company_name,
            likely_air_shipper=bool(row.likely_air_shipper),
            air_confidence_score=row.air_confidence_score,
        )

    @_reference_lookup
    def ocean_shipments(
        self,
        company_name: str,
        country: str | None,
        hs_code: str | None,
        limit: int,
    ) -> list[TradeRecord]:
        stmt = select(TradeRecordRow).where(
            func.lower(TradeRecordRow.company_name) == company_name.lower(),
            TradeRecordRow.transport_mode == TransportMode.OCEAN.value,
        )
        if country:
            stmt = stmt.where(TradeRecordRow.country == country)
        if hs_code:
            stmt = stmt.where(TradeRecordRow.hs_code == hs_code)
        stmt = stmt.order_by(TradeRecordRow.year.desc(), TradeRecordRow.month.desc()).limit(limit)

        records: list[TradeRecord] = []
        for row in self.session.scalars(stmt):
            try:
                records.append(row_to_record(row))
            except (InvalidContext, ValueError) as exc:
                logger.debug(f"Skipping malformed trade record {row.id}: {exc}")
        return records



class SqlHsMappingSource:
    def __init__(self, session: Session) -> None:
        self.session = session

    @_reference_lookup
    def best_mapping(self, hs_code: str, country: str) -> HsMapping | None:
        stmt = (
            select(CompanyHsMapRow)
            .where(CompanyHsMapRow.hs_code == hs_code, CompanyHsMapRow.country == country)
            .order_by(
                func.coalesce(CompanyHsMapRow.confidence_override, MAPPING_DEFAULT_SCORE).desc(),
                CompanyHsMapRow.created_at.desc(),
            )
            .limit(1)
        )
        row = self.session.scalars(stmt).first()
        if row is None:
            return None
        return HsMapping(row.company_name, row.confidence_override)

    @_reference_lookup
    def has_mapping(self, hs_code: str, country: str) -> bool:
        stmt = select(CompanyHsMapRow.id).where(
            CompanyHsMapRow.hs_code == hs_code, CompanyHsMapRow.country == country
        )
        return self.session.scalars(stmt.limit(1)).first() is not None


def row_to_record(row: TradeRecordRow) -> TradeRecord:
    return TradeRecord(
        company_name=row.company_name,
        hs_code=row.hs_code,
        country=row.country,
        transport_mode=TransportMode(row.transport_mode),
        value_usd=row.value_usd or 0.0,
        weight_kg=row.weight_kg or 0.0,
        year=row.year,
        month=row.month,
        commodity_name=row.commodity_name,
        customs_district=row.customs_district,
        state=row.state,
    )
