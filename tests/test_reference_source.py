"""Tests for SqlReferenceSource and the engine running against the database."""

from datetime import datetime, timezone
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from backend.reference import SqlHsMappingSource, SqlReferenceSource
from backend.tables import CompanyHsMapRow, T100AirSegment, TradeRecordRow
from models.confidence import AirShipperConfidenceEngine
from models.exceptions import ReferenceDataUnavailable
from models.trade import TransportMode


@pytest.fixture
def source(seeded_reference):
    return SqlReferenceSource(seeded_reference)


class TestCarrierRoutes:
    def test_case_insensitive_substring_match(self, source):
        routes = source.carrier_routes("korean air", limit=10)
        assert {r.dest_airport for r in routes} == {"LAX", "ORD"}

    def test_ordered_by_freight_and_limited(self, source):
        routes = source.carrier_routes("Korean Air", limit=1)
        assert len(routes) == 1
        assert routes[0].dest_airport == "ORD"
        assert routes[0].freight_kg == 125_000.0

    def test_falls_back_to_carrier_code(self, db_session):
        db_session.add(T100AirSegment(
            origin_airport="ANC", dest_airport="ORD", carrier="5Y",
            carrier_name=None, freight_kg=1_000.0, mail_kg=0.0, year=2026, month=1,
        ))
        db_session.commit()
        routes = SqlReferenceSource(db_session).carrier_routes("5y", limit=10)
        assert [r.carrier_name for r in routes] == ["5Y"]

    def test_wildcards_in_name_are_literal(self, source):
        assert source.carrier_routes("%", limit=10) == []


class TestCompanyProfile:
    def test_lookup_is_case_insensitive(self, source):
        profile = source.company_profile("ACME COMPONENTS")
        assert profile.air_confidence_score == 88
        assert profile.likely_air_shipper is False

    def test_missing_profile(self, source):
        assert source.company_profile("Nobody Inc") is None


class TestOceanShipments:
    def test_only_ocean_records_newest_first(self, source):
        records = source.ocean_shipments("pacific freight co", None, None, limit=10)
        assert [r.transport_mode for r in records] == [TransportMode.OCEAN] * 2
        assert [(r.year, r.month) for r in records] == [(2026, 1), (2025, 12)]

    def test_country_filter(self, source):
        assert source.ocean_shipments("Pacific Freight Co", "Vietnam", None, limit=10) == []

    def test_malformed_rows_skipped(self, db_session, source):
        db_session.add(TradeRecordRow(
            source="census", company_name="Pacific Freight Co", hs_code="8471600000",
            country="Japan", transport_mode="OCEAN", value_usd=-5.0, weight_kg=0.0,
            year=2024, month=6,
        ))
        db_session.commit()
        records = source.ocean_shipments("Pacific Freight Co", None, None, limit=10)
        assert len(records) == 2


class TestOutage:
    def test_sqlalchemy_error_becomes_reference_unavailable(self, source):
        boom = OperationalError("SELECT 1", {}, Exception("database is locked"))
        with patch.object(source.session, "scalars", side_effect=boom):
            with pytest.raises(ReferenceDataUnavailable):
                source.carrier_routes("Korean Air", limit=5)

    def test_engine_falls_back_on_outage(self, source):
        boom = OperationalError("SELECT 1", {}, Exception("no such table"))
        engine = AirShipperConfidenceEngine(reference=source)
        with patch.object(source.session, "scalars", side_effect=boom):
            result = engine.evaluate("Samsung Electronics")
        assert result.source == "fallback"
        assert result.confidence_score == 85


class TestEngineAgainstDatabase:
    def test_direct_match_from_t100(self, source):
        result = AirShipperConfidenceEngine(reference=source).evaluate("Korean Air")
        assert result.confidence_score == 40
        assert [r.dest_city for r in result.route_matches] == ["Chicago", "Los Angeles"]

    def test_ocean_history_from_trade_records(self, source):
        result = AirShipperConfidenceEngine(reference=source).evaluate("Pacific Freight Co")
        assert result.ocean_shipments_count == 2
        assert result.confidence_score == 30

    def test_profile_score_lifts_result(self, source):
        result = AirShipperConfidenceEngine(reference=source).evaluate("Acme Components")
        assert result.confidence_score == 88
        assert result.is_likely_air_shipper is True


class TestHsMappingSource:
    @pytest.fixture
    def mappings(self, db_session):
        created = datetime(2026, 1, 1, tzinfo=timezone.utc)
        db_session.add_all([
            CompanyHsMapRow(hs_code="8471600000", country="Japan", company_name="Low Override",
                            confidence_override=60, created_at=created),
            CompanyHsMapRow(hs_code="8471600000", country="Japan", company_name="Learned Default",
                            confidence_override=None, created_at=created),
            CompanyHsMapRow(hs_code="8528720000", country="Japan", company_name="Panel Maker",
                            confidence_override=90, created_at=created),
        ])
        db_session.commit()
        return SqlHsMappingSource(db_session)

    def test_unset_override_ranks_as_seventy_five(self, mappings):
        best = mappings.best_mapping("8471600000", "Japan")
        assert best.company_name == "Learned Default"
        assert best.confidence_override is None

    def test_highest_override_wins(self, mappings):
        assert mappings.best_mapping("8528720000", "Japan").confidence_override == 90

    def test_has_mapping(self, mappings):
        assert mappings.has_mapping("8471600000", "Japan") is True
        assert mappings.has_mapping("8471600000", "China") is False
        assert mappings.best_mapping("8471600000", "China") is None

    def test_outage_becomes_reference_unavailable(self, mappings):
        boom = OperationalError("SELECT 1", {}, Exception("no such table"))
        with patch.object(mappings.session, "scalars", side_effect=boom):
            with pytest.raises(ReferenceDataUnavailable):
                mappings.has_mapping("8471600000", "Japan")
