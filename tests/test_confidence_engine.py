"""Tests for AirShipperConfidenceEngine scoring rules and fallback behaviour."""

from datetime import datetime, timezone

import pytest

from models.confidence import (
    AIR_SHIPPER_THRESHOLD,
    WEAK_DEFAULT_SCORE,
    AirShipperConfidenceEngine,
)
from models.exceptions import MissingInput, ReferenceDataUnavailable
from models.trade import CarrierRoute, CompanyProfile, TradeRecord, TransportMode


FIXED_NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


class StubReference:
    """In-memory reference source; optionally fails every lookup."""

    def __init__(self, routes=(), profiles=None, shipments=(), fail=False):
        self.routes = list(routes)
        self.profiles = profiles or {}
        self.shipments = list(shipments)
        self.fail = fail
        self.shipment_calls = []

    def carrier_routes(self, company_name, limit):
        if self.fail:
            raise ReferenceDataUnavailable(detail="connection refused")
        return self.routes[:limit]

    def company_profile(self, company_name):
        if self.fail:
            raise ReferenceDataUnavailable()
        return self.profiles.get(company_name.lower())

    def ocean_shipments(self, company_name, country, hs_code, limit):
        self.shipment_calls.append((company_name, country, hs_code, limit))
        return self.shipments[:limit]


def _engine(reference=None, **kwargs):
    return AirShipperConfidenceEngine(reference=reference, clock=lambda: FIXED_NOW, **kwargs)


def _ocean(value, company="Pacific Freight Co"):
    return TradeRecord(
        company_name=company,
        hs_code="8471600000",
        country="Japan",
        transport_mode=TransportMode.OCEAN,
        value_usd=value,
        weight_kg=1_000.0,
        year=2026,
        month=1,
    )


KOREAN_AIR_ROUTES = [
    CarrierRoute("ICN", "LAX", "Korean Air Lines", 98_000.0, 2026, 1),
    CarrierRoute("ICN", "ORD", "Korean Air Lines", 125_000.0, 2026, 1),
]


# =============================================================================
# Evidence rules
# =============================================================================


class TestEvidenceRules:
    def test_direct_carrier_match_scores_forty(self):
        result = _engine(StubReference(routes=KOREAN_AIR_ROUTES)).evaluate("Korean Air")
        assert result.confidence_score == 40
        assert result.bts_direct_match is True
        assert result.analysis_factors.bts_carrier_match is True
        assert result.is_likely_air_shipper is False

    def test_route_matches_ordered_by_freight_descending(self):
        result = _engine(StubReference(routes=KOREAN_AIR_ROUTES)).evaluate("Korean Air")
        assert [r.dest_airport for r in result.route_matches] == ["ORD", "LAX"]
        assert result.route_matches[0].dest_city == "Chicago"
        assert result.route_matches[1].dest_city == "Los Angeles"

    def test_routes_not_containing_name_are_ignored(self):
        routes = [CarrierRoute("PVG", "LAX", "China Cargo Airlines", 156_000.0)]
        result = _engine(StubReference(routes=routes)).evaluate("Korean Air")
        assert result.bts_direct_match is False
        assert result.confidence_score == WEAK_DEFAULT_SCORE

    def test_brand_adds_industry_points_and_lanes(self):
        result = _engine(StubReference()).evaluate("Samsung Electronics")
        assert result.confidence_score == 30
        assert result.analysis_factors.electronics_industry is True
        lanes = [(r.origin_airport, r.dest_airport, r.carrier_name) for r in result.route_matches]
        assert lanes == [
            ("ICN", "ORD", "Korean Air Cargo"),
            ("ICN", "LAX", "Korean Air Cargo"),
        ]

    def test_lanes_from_several_brands_merge_by_freight(self):
        result = _engine(StubReference()).evaluate("Samsung Sony Logistics", prior_ocean_shipments=[])
        kg = [r.freight_kg for r in result.route_matches]
        assert kg == [156_000.0, 142_000.0, 125_000.0, 98_000.0]
        assert result.route_matches[0].carrier_name == "All Nippon Airways"

    def test_shared_brand_lanes_appear_once(self):
        result = _engine(StubReference()).evaluate("LG Samsung Trading", prior_ocean_shipments=[])
        assert [(r.origin_airport, r.dest_airport) for r in result.route_matches] == [
            ("ICN", "ORD"), ("ICN", "LAX"),
        ]

    def test_industry_keyword_without_brand_has_no_lanes(self):
        result = _engine(StubReference()).evaluate("Northwind Tech")
        assert result.confidence_score == 30
        assert result.route_matches == ()

    def test_brand_lanes_skipped_when_direct_match_exists(self):
        routes = [CarrierRoute("NRT", "ORD", "Sony Air Cargo", 10_000.0)]
        result = _engine(StubReference(routes=routes)).evaluate("Sony Air")
        assert result.confidence_score == 70
        assert [r.carrier_name for r in result.route_matches] == ["Sony Air Cargo"]

    def test_ocean_history_adds_multi_modal_points(self):
        ref = StubReference(shipments=[_ocean(50_000.0), _ocean(30_000.0)])
        result = _engine(ref).evaluate("Pacific Freight Co")
        assert result.confidence_score == 20
        assert result.ocean_shipments_count == 2
        assert result.analysis_factors.multi_modal_shipper is True
        assert result.analysis_factors.high_value_cargo is False

    def test_high_mean_value_adds_ten(self):
        ref = StubReference(shipments=[_ocean(250_000.0), _ocean(150_000.0)])
        result = _engine(ref).evaluate("Pacific Freight Co")
        assert result.confidence_score == 30
        assert result.analysis_factors.high_value_cargo is True

    def test_explicit_prior_shipments_skip_lookup(self):
        ref = StubReference(shipments=[_ocean(1.0)])
        result = _engine(ref).evaluate(
            "Pacific Freight Co", prior_ocean_shipments=[_ocean(500_000.0)]
        )
        assert ref.shipment_calls == []
        assert result.confidence_score == 30

    def test_country_and_hs_code_narrow_lookup(self):
        ref = StubReference()
        _engine(ref, prior_shipment_limit=5).evaluate(
            "Pacific Freight Co", country="Japan", hs_code="8471600000"
        )
        assert ref.shipment_calls == [("Pacific Freight Co", "Japan", "8471600000", 5)]

    def test_air_shipments_do_not_count_as_ocean(self):
        air = TradeRecord(
            company_name="Pacific Freight Co", hs_code="8471600000", country="Japan",
            transport_mode=TransportMode.AIR, value_usd=500_000.0,
        )
        result = _engine(StubReference()).evaluate("Pacific Freight Co", prior_ocean_shipments=[air])
        assert result.ocean_shipments_count == 0
        assert result.confidence_score == WEAK_DEFAULT_SCORE

    def test_profile_flag_adds_twenty(self):
        profiles = {"samsung electronics": CompanyProfile("Samsung Electronics", likely_air_shipper=True)}
        ref = StubReference(profiles=profiles, shipments=[_ocean(200_000.0)])
        result = _engine(ref).evaluate("Samsung Electronics")
        # 30 industry + 20 ocean + 10 high value + 20 profile
        assert result.confidence_score == 80
        assert result.is_likely_air_shipper is True

    def test_score_is_clamped_to_one_hundred(self):
        routes = [CarrierRoute("NRT", "LAX", "Sony Tech Air Cargo", 5_000.0)]
        profiles = {"sony tech": CompanyProfile("Sony Tech", likely_air_shipper=True)}
        ref = StubReference(routes=routes, profiles=profiles, shipments=[_ocean(400_000.0)])
        result = _engine(ref).evaluate("Sony Tech")
        assert result.confidence_score == 100

    def test_negative_profile_score_is_ignored(self):
        profiles = {"plain widgets": CompanyProfile("Plain Widgets", air_confidence_score=-5)}
        result = _engine(StubReference(profiles=profiles)).evaluate("Plain Widgets")
        assert result.confidence_score == WEAK_DEFAULT_SCORE

    def test_blank_name_raises_missing_input(self):
        with pytest.raises(MissingInput):
            _engine(StubReference()).evaluate("   ")


# =============================================================================
# Properties
# =============================================================================


class TestProperties:
    NAMES = [
        "Korean Air", "Samsung Electronics", "LG Display", "Plain Widgets",
        "Pacific Freight Co", "Sony Tech", "", "x",
    ]

    def _reference(self):
        return StubReference(
            routes=KOREAN_AIR_ROUTES,
            profiles={"lg display": CompanyProfile("LG Display", True, 95)},
            shipments=[_ocean(120_000.0)],
        )

    def test_same_input_gives_equal_results(self):
        engine = _engine(self._reference())
        assert engine.evaluate("Samsung Electronics") == engine.evaluate("Samsung Electronics")

    def test_results_equal_even_when_clock_moves(self):
        ticks = iter([FIXED_NOW, datetime(2027, 1, 1, tzinfo=timezone.utc)])
        engine = AirShipperConfidenceEngine(self._reference(), clock=lambda: next(ticks))
        first = engine.evaluate("Korean Air")
        second = engine.evaluate("Korean Air")
        assert first.evaluated_at != second.evaluated_at
        assert first == second

    @pytest.mark.parametrize("name", [n for n in NAMES if n.strip()])
    def test_score_within_bounds_and_threshold_consistent(self, name):
        result = _engine(self._reference()).evaluate(name)
        assert 0 <= result.confidence_score <= 100
        assert result.is_likely_air_shipper == (result.confidence_score >= AIR_SHIPPER_THRESHOLD)

    @pytest.mark.parametrize("profile_score", [0, 10, 35, 50, 71, 90, 100])
    def test_profile_score_never_lowers_result(self, profile_score):
        base = _engine(StubReference()).evaluate("Northwind Tech")
        profiles = {"northwind tech": CompanyProfile("Northwind Tech", air_confidence_score=profile_score)}
        with_profile = _engine(StubReference(profiles=profiles)).evaluate("Northwind Tech")
        assert with_profile.confidence_score >= base.confidence_score
        assert with_profile.confidence_score >= profile_score

    @pytest.mark.parametrize("profile_score, expected", [(69, False), (70, True), (80, True)])
    def test_threshold_is_fixed_at_seventy(self, profile_score, expected):
        profiles = {"acme": CompanyProfile("Acme", False, profile_score)}
        result = _engine(StubReference(profiles=profiles)).evaluate("Acme", prior_ocean_shipments=[])
        assert result.confidence_score == profile_score
        assert result.is_likely_air_shipper is expected
        assert AIR_SHIPPER_THRESHOLD == 70

    def test_high_profile_score_makes_air_shipper(self):
        result = _engine(self._reference()).evaluate("LG Display")
        assert result.confidence_score >= 95
        assert result.is_likely_air_shipper is True

    def test_no_evidence_yields_weak_default(self):
        result = _engine(StubReference()).evaluate("Plain Widgets")
        assert result.confidence_score == WEAK_DEFAULT_SCORE
        assert result.is_likely_air_shipper is False
        assert result.route_matches == ()
        assert result.source == "reference"


# =============================================================================
# Fallback table
# =============================================================================


class TestFallback:
    def test_outage_uses_brand_tier(self):
        result = _engine(StubReference(fail=True)).evaluate("Samsung Electronics America")
        assert result.source == "fallback"
        assert result.confidence_score == 85
        assert result.is_likely_air_shipper is True
        assert [(r.origin_airport, r.dest_airport) for r in result.route_matches] == [
            ("ICN", "ORD"), ("ICN", "LAX"),
        ]
        assert all(r.carrier_name == "Korean Air Cargo" for r in result.route_matches)

    def test_outage_uses_sector_tier(self):
        result = _engine(StubReference(fail=True)).evaluate("Acme Supply Partners")
        assert result.confidence_score == 72
        assert result.is_likely_air_shipper is True
        assert [(r.origin_airport, r.dest_airport, r.carrier_name) for r in result.route_matches] == [
            ("PVG", "LAX", "China Cargo Airlines"),
        ]

    def test_outage_unknown_company_gets_default(self):
        result = _engine(StubReference(fail=True)).evaluate("Plain Widgets")
        assert result.confidence_score == 35
        assert result.is_likely_air_shipper is False
        assert result.route_matches == ()

    def test_no_reference_configured_uses_fallback(self):
        result = _engine(None).evaluate("China Cargo Airlines")
        assert result.source == "fallback"
        assert result.confidence_score == 85

    def test_fallback_is_case_insensitive(self):
        engine = _engine(None)
        assert engine.evaluate("SONY CORP").confidence_score == 85
        assert engine.evaluate("lg electronics usa").confidence_score == 85
