"""
models/company_match.py
═══════════════════════
CompanyMatcher: resolves which company most likely stands behind a shipment
(HS code + country + optional consignee / port details) and how sure we are.

Resolution order
────────────────
  1. Direct consignee        60 base
       +15 Apollo logistics contact, +15 commodity keyword, +10 port/ZIP
       accepted at >= 75
  2. company_hs_map entry    confidence_override, else 75
       +15 Apollo logistics contact, +10 commodity keyword
       accepted at >= 75
  3. Inferred name           30 base (name from normalize_company_name)
       +25 HS mapping exists, +15 commodity keyword, +20 port/ZIP,
       +10 origin country airport, +15 Apollo contact / -25 without one

  Every score is clamped to [0, 100].

Outages of the mapping table are treated as "no mapping"; the matcher always
returns a CompanyMatch.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Callable, Protocol

from models.company_names import normalize_company_name
from models.exceptions import MissingInput, ReferenceDataUnavailable
from utils.logger import logger


# ─────────────────────────────────────────────────────────────────────────────
#  Weights
# ─────────────────────────────────────────────────────────────────────────────

ACCEPT_SCORE = 75

DIRECT_BASE           = 60
DIRECT_APOLLO_POINTS  = 15
DIRECT_KEYWORD_POINTS = 15
DIRECT_PORT_POINTS    = 10

MAPPING_DEFAULT_SCORE  = 75
MAPPING_APOLLO_POINTS  = 15
MAPPING_KEYWORD_POINTS = 10

INFERRED_BASE           = 30
INFERRED_MAPPING_POINTS = 25
INFERRED_KEYWORD_POINTS = 15
INFERRED_PORT_POINTS    = 20
INFERRED_COUNTRY_POINTS = 10
INFERRED_APOLLO_POINTS  = 15
NO_CONTACT_PENALTY      = 25


# ─────────────────────────────────────────────────────────────────────────────
#  Static tables
# ─────────────────────────────────────────────────────────────────────────────

COMMODITY_KEYWORDS = (
    "electronic", "computer", "display", "medical", "audio", "processing", "monitor",
)

MAJOR_PORTS = ("Los Angeles", "New York", "Houston", "Chicago", "Miami", "Seattle")
MAJOR_ZIPS  = ("90210", "10001", "77001", "60601", "33101", "98101")

COUNTRY_AIRPORTS: dict[str, tuple[str, ...]] = {
    "South Korea": ("ICN", "GMP"),
    "Japan":       ("NRT", "HND", "KIX"),
    "China":       ("PVG", "PEK", "CAN"),
    "Germany":     ("FRA", "MUC", "DUS"),
}


# ─────────────────────────────────────────────────────────────────────────────
#  Types
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ShipmentFactors:
    hs_code:          str
    country:          str
    commodity_name:   str | None = None
    consignee_name:   str | None = None
    consignee_zip:    str | None = None
    port_of_origin:   str | None = None
    port_of_arrival:  str | None = None
    customs_district: str | None = None


@dataclass(frozen=True)
class HsMapping:
    company_name:        str
    confidence_override: int | None = None


@dataclass(frozen=True)
class CompanyMatch:
    company_name:            str
    confidence_score:        int
    confidence_sources:      tuple[str, ...] = field(default_factory=tuple)
    apollo_verified:         bool = False
    bts_route_match:         bool = False
    port_zip_match:          bool = False
    hs_mapping_match:        bool = False
    commodity_keyword_match: bool = False

    def to_dict(self) -> dict:
        payload = asdict(self)
        payload["confidence_sources"] = list(self.confidence_sources)
        return payload


EMPTY_MATCH = CompanyMatch(company_name="", confidence_score=0)


class HsMappingSource(Protocol):
    """Learned (hs_code, country) → company rows. Raise ReferenceDataUnavailable on outage."""

    def best_mapping(self, hs_code: str, country: str) -> HsMapping | None: ...

    def has_mapping(self, hs_code: str, country: str) -> bool: ...


ContactVerifier = Callable[[str], bool]


# ─────────────────────────────────────────────────────────────────────────────
#  Evidence checks
# ─────────────────────────────────────────────────────────────────────────────

def commodity_keyword_match(commodity_name: str | None) -> bool:
    commodity = (commodity_name or "").lower()
    return any(k in commodity for k in COMMODITY_KEYWORDS)


def port_zip_match(factors: ShipmentFactors) -> bool:
    places = [
        (p or "").lower()
        for p in (factors.port_of_origin, factors.port_of_arrival, factors.customs_district)
    ]
    if any(port.lower() in place for port in MAJOR_PORTS for place in places):
        return True
    return (factors.consignee_zip or "").strip() in MAJOR_ZIPS


def country_port_match(factors: ShipmentFactors) -> bool:
    airports = COUNTRY_AIRPORTS.get(factors.country, ())
    ports = [(p or "").upper() for p in (factors.port_of_origin, factors.port_of_arrival)]
    return any(code in port for code in airports for port in ports)


def _clamp(score: int) -> int:
    return max(0, min(score, 100))


# ─────────────────────────────────────────────────────────────────────────────
#  Matcher
# ─────────────────────────────────────────────────────────────────────────────

class CompanyMatcher:
    """
    Parameters
    ----------
    mappings       : HsMappingSource, or None when no learning table is available
    verify_contact : company name → True if Apollo knows a logistics contact there
    """

    def __init__(
        self,
        mappings: HsMappingSource | None = None,
        verify_contact: ContactVerifier | None = None,
    ) -> None:
        self.mappings = mappings
        self.verify_contact = verify_contact

    def best_match(self, factors: ShipmentFactors) -> CompanyMatch:
        if not (factors.hs_code or "").strip() or not (factors.country or "").strip():
            raise MissingInput(
                "HS code and country are required",
                suggestion="Pass both hs_code and country",
            )

        if (factors.consignee_name or "").strip():
            direct = self.direct_consignee(factors)
            if direct.confidence_score >= ACCEPT_SCORE:
                return direct

        mapped = self.hs_mapping_match(factors)
        if mapped.confidence_score >= ACCEPT_SCORE:
            return mapped

        return self.inferred_match(factors)

    def direct_consignee(self, factors: ShipmentFactors) -> CompanyMatch:
        name = (factors.consignee_name or "").strip()
        score = DIRECT_BASE
        sources = ["Direct Consignee Name"]

        verified = self._verified(name)
        if verified:
            score += DIRECT_APOLLO_POINTS
            sources.append("Apollo Contact Verified")
        keyword = commodity_keyword_match(factors.commodity_name)
        if keyword:
            score += DIRECT_KEYWORD_POINTS
            sources.append("Commodity Keyword Match")
        geo = port_zip_match(factors)
        if geo:
            score += DIRECT_PORT_POINTS
            sources.append("Port/ZIP Match")

        return CompanyMatch(
            company_name=name,
            confidence_score=_clamp(score),
            confidence_sources=tuple(sources),
            apollo_verified=verified,
            port_zip_match=geo,
            commodity_keyword_match=keyword,
        )

    def hs_mapping_match(self, factors: ShipmentFactors) -> CompanyMatch:
        if self.mappings is None:
            return EMPTY_MATCH
        try:
            mapping = self.mappings.best_mapping(factors.hs_code, factors.country)
        except ReferenceDataUnavailable as exc:
            logger.warning(f"HS mapping lookup failed for {factors.hs_code}/{factors.country}: {exc}")
            return EMPTY_MATCH
        if mapping is None:
            return EMPTY_MATCH

        # an override of 0 counts as unset
        score = mapping.confidence_override or MAPPING_DEFAULT_SCORE
        sources = ["HS Code + Country Mapping"]

        verified = self._verified(mapping.company_name)
        if verified:
            score += MAPPING_APOLLO_POINTS
            sources.append("Apollo Contact Verified")
        keyword = commodity_keyword_match(factors.commodity_name)
        if keyword:
            score += MAPPING_KEYWORD_POINTS
            sources.append("Commodity Keyword Match")

        return CompanyMatch(
            company_name=mapping.company_name,
            confidence_score=_clamp(score),
            confidence_sources=tuple(sources),
            apollo_verified=verified,
            port_zip_match=port_zip_match(factors),
            hs_mapping_match=True,
            commodity_keyword_match=keyword,
        )

    def inferred_match(self, factors: ShipmentFactors) -> CompanyMatch:
        name = normalize_company_name(factors.hs_code, factors.country, factors.commodity_name)
        score = INFERRED_BASE
        sources = ["Pattern Inference"]

        has_mapping = self._has_mapping(factors)
        if has_mapping:
            score += INFERRED_MAPPING_POINTS
            sources.append("HS Code Pattern")
        keyword = commodity_keyword_match(factors.commodity_name)
        if keyword:
            score += INFERRED_KEYWORD_POINTS
            sources.append("Commodity Keywords")
        geo = port_zip_match(factors)
        if geo:
            score += INFERRED_PORT_POINTS
            sources.append("Geographic Match")
        if country_port_match(factors):
            score += INFERRED_COUNTRY_POINTS
            sources.append("Port Country Match")

        verified = self._verified(name)
        if verified:
            score += INFERRED_APOLLO_POINTS
            sources.append("Apollo Verified")
        else:
            score -= NO_CONTACT_PENALTY
            sources.append("No Apollo Contact")

        logger.debug(f"Inferred '{name}' for {factors.hs_code}/{factors.country}: {score}")
        return CompanyMatch(
            company_name=name,
            confidence_score=_clamp(score),
            confidence_sources=tuple(sources),
            apollo_verified=verified,
            port_zip_match=geo,
            hs_mapping_match=has_mapping,
            commodity_keyword_match=keyword,
        )

    # ── helpers ───────────────────────────────────────────────────────────────

    def _verified(self, company_name: str) -> bool:
        if self.verify_contact is None or not company_name:
            return False
        return bool(self.verify_contact(company_name))

    def _has_mapping(self, factors: ShipmentFactors) -> bool:
        if self.mappings is None:
            return False
        try:
            return bool(self.mappings.has_mapping(factors.hs_code, factors.country))
        except ReferenceDataUnavailable as exc:
            logger.warning(f"HS mapping check failed for {factors.hs_code}/{factors.country}: {exc}")
            return False
