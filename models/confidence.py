"""
models/confidence.py
════════════════════
AirShipperConfidenceEngine: additive 0-100 confidence that a company ships by
air freight.

Evidence rules (each applied at most once)
──────────────────────────────────────────
  Rule 1: Direct carrier match        +40
      BTS T-100 carrier name contains the company name (case-insensitive)
  Rule 2: Industry keyword            +30
      "electronics", "tech", or a known electronics brand fragment.
      Brand fragments also contribute representative lanes from BRAND_LANES
      when Rule 1 found nothing.
  Rule 3: Multi-modal corroboration   +20 (+10 if mean value > 100,000 USD)
      Company has prior ocean shipments on record
  Rule 4: Reference profile           +20, then max(score, profile score)
      Profile data can only raise the estimate, never lower it

  No evidence at all yields the weak default of 35.
  Final score is clamped to [0, 100]; a likely air shipper scores >= 70.

Reference store outage
──────────────────────
  If the reference source raises ReferenceDataUnavailable (or no source is
  configured) the engine answers from FALLBACK_TIERS instead of failing.

Usage
─────
  from models.confidence import AirShipperConfidenceEngine

  engine = AirShipperConfidenceEngine(reference=SqlReferenceSource(session))
  result = engine.evaluate("Samsung Electronics", country="South Korea")
  result.confidence_score, result.is_likely_air_shipper
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Iterable, Protocol, Sequence

from models.exceptions import InvalidContext, MissingInput, ReferenceDataUnavailable
from models.trade import (
    AnalysisFactors,
    CarrierRoute,
    CompanyProfile,
    ConfidenceResult,
    RouteMatch,
    TradeRecord,
    TransportMode,
)
from utils.logger import logger


# ─────────────────────────────────────────────────────────────────────────────
#  Weights & thresholds
# ─────────────────────────────────────────────────────────────────────────────

CARRIER_MATCH_POINTS   = 40
INDUSTRY_POINTS        = 30
MULTI_MODAL_POINTS     = 20
HIGH_VALUE_POINTS      = 10
PROFILE_POINTS         = 20
HIGH_VALUE_USD         = 100_000
AIR_SHIPPER_THRESHOLD  = 70
WEAK_DEFAULT_SCORE     = 35

INDUSTRY_KEYWORDS = ("electronics", "tech")
BRAND_FRAGMENTS   = ("samsung", "lg", "sony")


# ─────────────────────────────────────────────────────────────────────────────
#  Static reference tables
# ─────────────────────────────────────────────────────────────────────────────

# brand fragment → representative lanes (origin, dest, carrier, freight_kg)
BRAND_LANES: dict[str, tuple[tuple[str, str, str, float], ...]] = {
    "samsung": (
        ("ICN", "ORD", "Korean Air Cargo", 125_000),
        ("ICN", "LAX", "Korean Air Cargo", 98_000),
    ),
    "lg": (
        ("ICN", "ORD", "Korean Air Cargo", 125_000),
        ("ICN", "LAX", "Korean Air Cargo", 98_000),
    ),
    "sony": (
        ("NRT", "LAX", "All Nippon Airways", 156_000),
        ("NRT", "ORD", "Japan Airlines", 142_000),
    ),
}

AIRPORT_CITIES: dict[str, str] = {
    "ORD": "Chicago", "LAX": "Los Angeles", "JFK": "New York",
    "MIA": "Miami", "ATL": "Atlanta", "DFW": "Dallas",
    "SEA": "Seattle", "SFO": "San Francisco",
}

# Used verbatim when the reference store is unreachable. First tier whose
# substrings hit the lower-cased company name wins.
FALLBACK_TIERS: tuple[dict, ...] = (
    {
        "score": 85,
        "substrings": ("lg electronics", "samsung", "sony", "korean air", "china cargo"),
        "lanes": (
            ("ICN", "ORD", "Korean Air Cargo", 125_000),
            ("ICN", "LAX", "Korean Air Cargo", 98_000),
        ),
        "bts_direct_match": True,
        "ocean_shipments_count": 5,
        "factors": AnalysisFactors(True, True, True, True),
    },
    {
        "score": 72,
        "substrings": ("tech", "electronics", "supply"),
        "lanes": (
            ("PVG", "LAX", "China Cargo Airlines", 156_000),
        ),
        "bts_direct_match": False,
        "ocean_shipments_count": 3,
        "factors": AnalysisFactors(False, True, True, True),
    },
)
FALLBACK_DEFAULT_SCORE = 35


def dest_city(airport_code: str) -> str:
    return AIRPORT_CITIES.get(airport_code, airport_code)


def _lane(origin: str, dest: str, carrier: str, freight_kg: float) -> RouteMatch:
    return RouteMatch(
        origin_airport=origin,
        dest_airport=dest,
        carrier_name=carrier,
        freight_kg=float(freight_kg),
        dest_city=dest_city(dest),
    )


# ─────────────────────────────────────────────────────────────────────────────
#  Reference source contract
# ─────────────────────────────────────────────────────────────────────────────

class ReferenceSource(Protocol):
    """Read-only lookups the engine needs. Raise ReferenceDataUnavailable on outage."""

    def carrier_routes(self, company_name: str, limit: int) -> Sequence[CarrierRoute]: ...

    def company_profile(self, company_name: str) -> CompanyProfile | None: ...

    def ocean_shipments(
        self,
        company_name: str,
        country: str | None,
        hs_code: str | None,
        limit: int,
    ) -> Sequence[TradeRecord]: ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ─────────────────────────────────────────────────────────────────────────────
#  Engine
# ─────────────────────────────────────────────────────────────────────────────

class AirShipperConfidenceEngine:
    """
    Parameters
    ----------
    reference            : ReferenceSource, or None to always use the fallback table
    route_limit          : max carrier rows fetched for Rule 1
    prior_shipment_limit : max ocean records fetched for Rule 3
    clock                : returns the evaluation timestamp
    """

    def __init__(
        self,
        reference: ReferenceSource | None = None,
        route_limit: int = 10,
        prior_shipment_limit: int = 10,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.reference = reference
        self.route_limit = route_limit
        self.prior_shipment_limit = prior_shipment_limit
        self.clock = clock

    # ── public API ────────────────────────────────────────────────────────────

    def evaluate(
        self,
        company_name: str,
        country: str | None = None,
        hs_code: str | None = None,
        prior_ocean_shipments: Iterable[TradeRecord] | None = None,
    ) -> ConfidenceResult:
        if company_name is None or not str(company_name).strip():
            raise MissingInput()
        company_name = str(company_name).strip()

        if self.reference is None:
            return self.fallback(company_name)

        try:
            routes = list(self.reference.carrier_routes(company_name, self.route_limit))
            profile = self.reference.company_profile(company_name)
            if prior_ocean_shipments is None:
                prior_ocean_shipments = self.reference.ocean_shipments(
                    company_name, country, hs_code, self.prior_shipment_limit
                )
        except ReferenceDataUnavailable as exc:
            logger.warning(f"Reference lookup failed for '{company_name}', using fallback: {exc}")
            return self.fallback(company_name)

        return self.score(company_name, routes, profile, prior_ocean_shipments)

    def score(
        self,
        company_name: str,
        routes: Sequence[CarrierRoute],
        profile: CompanyProfile | None,
        prior_ocean_shipments: Iterable[TradeRecord] | None,
    ) -> ConfidenceResult:
        """Apply the four evidence rules to already-fetched reference data."""
        name = company_name.lower()
        score = 0
        evidence = False
        route_matches: list[RouteMatch] = []

        # ── Rule 1: direct carrier match ─────────────────────────────────────
        direct = [r for r in routes if name in (r.carrier_name or "").lower()]
        if direct:
            score += CARRIER_MATCH_POINTS
            evidence = True
            for r in sorted(direct, key=lambda r: r.freight_kg or 0.0, reverse=True):
                route_matches.append(
                    _lane(r.origin_airport, r.dest_airport, r.carrier_name, r.freight_kg or 0.0)
                )

        # ── Rule 2: industry keyword / brand ─────────────────────────────────
        electronics = any(k in name for k in INDUSTRY_KEYWORDS)
        brands = [b for b in BRAND_FRAGMENTS if b in name]
        if electronics or brands:
            score += INDUSTRY_POINTS
            evidence = True
            if not direct:
                route_matches.extend(
                    sorted(self._brand_lanes(brands), key=lambda m: m.freight_kg, reverse=True)
                )

        # ── Rule 3: multi-modal corroboration ────────────────────────────────
        shipments = _valid_shipments(prior_ocean_shipments)
        high_value = False
        if shipments:
            score += MULTI_MODAL_POINTS
            evidence = True
            mean_value = sum(s.value_usd for s in shipments) / len(shipments)
            if mean_value > HIGH_VALUE_USD:
                score += HIGH_VALUE_POINTS
            high_value = any(s.value_usd > HIGH_VALUE_USD for s in shipments)

        # ── Rule 4: reference profile ────────────────────────────────────────
        if profile is not None and profile.likely_air_shipper:
            score += PROFILE_POINTS
            evidence = True

        if not evidence:
            score = WEAK_DEFAULT_SCORE

        if profile is not None:
            profile_score = _profile_score(profile)
            if profile_score is not None:
                score = max(score, profile_score)

        score = max(0, min(score, 100))
        return ConfidenceResult(
            is_likely_air_shipper=score >= AIR_SHIPPER_THRESHOLD,
            confidence_score=score,
            route_matches=tuple(route_matches),
            evaluated_at=self.clock(),
            bts_direct_match=bool(direct),
            ocean_shipments_count=len(shipments),
            analysis_factors=AnalysisFactors(
                bts_carrier_match=bool(direct),
                electronics_industry=electronics,
                multi_modal_shipper=bool(shipments),
                high_value_cargo=high_value,
            ),
            source="reference",
        )

    def fallback(self, company_name: str) -> ConfidenceResult:
        """Answer from the static FALLBACK_TIERS table."""
        name = company_name.lower()
        for tier in FALLBACK_TIERS:
            if any(s in name for s in tier["substrings"]):
                score = tier["score"]
                return ConfidenceResult(
                    is_likely_air_shipper=score >= AIR_SHIPPER_THRESHOLD,
                    confidence_score=score,
                    route_matches=tuple(_lane(*lane) for lane in tier["lanes"]),
                    evaluated_at=self.clock(),
                    bts_direct_match=tier["bts_direct_match"],
                    ocean_shipments_count=tier["ocean_shipments_count"],
                    analysis_factors=tier["factors"],
                    source="fallback",
                )
        return ConfidenceResult(
            is_likely_air_shipper=FALLBACK_DEFAULT_SCORE >= AIR_SHIPPER_THRESHOLD,
            confidence_score=FALLBACK_DEFAULT_SCORE,
            route_matches=(),
            evaluated_at=self.clock(),
            source="fallback",
        )

    # ── helpers ───────────────────────────────────────────────────────────────

    @staticmethod
    def _brand_lanes(brands: Sequence[str]) -> list[RouteMatch]:
        lanes: list[RouteMatch] = []
        seen: set[tuple[str, str, str]] = set()
        for brand in brands:
            for origin, dest, carrier, kg in BRAND_LANES.get(brand, ()):
                if (origin, dest, carrier) in seen:
                    continue
                seen.add((origin, dest, carrier))
                lanes.append(_lane(origin, dest, carrier, kg))
        return lanes


def _valid_shipments(shipments: Iterable[TradeRecord] | None) -> list[TradeRecord]:
    """Keep well-formed ocean records; malformed context is skipped, not fatal."""
    valid: list[TradeRecord] = []
    for s in shipments or ():
        try:
            if s.value_usd < 0 or s.weight_kg < 0:
                raise InvalidContext(
                    "Negative shipment value ignored",
                    detail=f"value_usd={s.value_usd}, weight_kg={s.weight_kg}",
                )
            if s.transport_mode != TransportMode.OCEAN:
                raise InvalidContext(
                    "Non-ocean shipment ignored for multi-modal evidence",
                    detail=f"transport_mode={s.transport_mode}",
                )
        except InvalidContext as exc:
            logger.debug(str(exc))
            continue
        valid.append(s)
    return valid


def _profile_score(profile: CompanyProfile) -> int | None:
    raw = profile.air_confidence_score
    if raw is None:
        return None
    if raw < 0:
        logger.debug(
            f"Ignoring negative air_confidence_score={raw} for '{profile.company_name}'"
        )
        return None
    return int(raw)
