"""
models/trade.py
═══════════════
Domain types shared by the confidence engine, the ingestion loaders and the
API layer.

  TransportMode      AIR | OCEAN, resolved from source-specific codes
  TradeRecord        one shipment observation (immutable)
  CarrierRoute       one BTS T-100 carrier / lane fact
  CompanyProfile     pre-existing air-shipper profile for a company
  RouteMatch         lane attached to a ConfidenceResult
  ConfidenceResult   engine output
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from models.exceptions import InvalidContext


class TransportMode(str, Enum):
    AIR = "AIR"
    OCEAN = "OCEAN"


# source → raw code → mode
_MODE_CODES: dict[str, dict[str, TransportMode]] = {
    "census":   {"40": TransportMode.AIR, "20": TransportMode.OCEAN},
    "comtrade": {"5": TransportMode.AIR, "1": TransportMode.OCEAN},
}

# mode → Census code, used when persisting records
CENSUS_MODE_CODES: dict[TransportMode, str] = {
    TransportMode.AIR: "40",
    TransportMode.OCEAN: "20",
}


def resolve_transport_mode(source: str, code: Any) -> TransportMode:
    """
    Map a source-specific transport code onto the two-value enum.

    Census uses "40" (air) / "20" (vessel); UN Comtrade uses motCode 5 / 1.
    Anything else is rejected so that unmapped modes never reach the engine.
    """
    table = _MODE_CODES.get(source.lower())
    if table is None:
        raise InvalidContext(
            "Unknown trade data source",
            detail=f"source={source!r}",
            suggestion=f"Use one of: {sorted(_MODE_CODES)}",
        )
    key = str(code).strip()
    if key not in table:
        raise InvalidContext(
            "Unmapped transport mode code",
            detail=f"{source} code {code!r}",
        )
    return table[key]


@dataclass(frozen=True)
class TradeRecord:
    company_name:     str
    hs_code:          str
    country:          str
    transport_mode:   TransportMode
    value_usd:        float = 0.0
    weight_kg:        float = 0.0
    year:             int = 0
    month:            int = 1
    commodity_name:   str | None = None
    customs_district: str | None = None
    state:            str | None = None

    def __post_init__(self) -> None:
        if self.value_usd < 0 or self.weight_kg < 0:
            raise InvalidContext(
                "Shipment value and weight must be non-negative",
                detail=f"value_usd={self.value_usd}, weight_kg={self.weight_kg}",
            )
        if not 1 <= self.month <= 12:
            raise InvalidContext("Month must be in 1..12", detail=f"month={self.month}")
        if not isinstance(self.transport_mode, TransportMode):
            raise InvalidContext(
                "transport_mode must be resolved before use",
                detail=f"transport_mode={self.transport_mode!r}",
            )


@dataclass(frozen=True)
class CarrierRoute:
    origin_airport: str
    dest_airport:   str
    carrier_name:   str
    freight_kg:     float = 0.0
    year:           int = 0
    month:          int = 0


@dataclass(frozen=True)
class CompanyProfile:
    company_name:         str
    likely_air_shipper:   bool = False
    air_confidence_score: int | None = None


@dataclass(frozen=True)
class RouteMatch:
    origin_airport: str
    dest_airport:   str
    carrier_name:   str
    freight_kg:     float
    dest_city:      str


@dataclass(frozen=True)
class AnalysisFactors:
    bts_carrier_match:    bool = False
    electronics_industry: bool = False
    multi_modal_shipper:  bool = False
    high_value_cargo:     bool = False


@dataclass(frozen=True)
class ConfidenceResult:
    is_likely_air_shipper: bool
    confidence_score:      int
    route_matches:         tuple[RouteMatch, ...]
    evaluated_at:          datetime = field(compare=False)
    bts_direct_match:      bool = False
    ocean_shipments_count: int = 0
    analysis_factors:      AnalysisFactors = field(default_factory=AnalysisFactors)
    source:                str = "reference"   # "reference" | "fallback"

    def to_dict(self) -> dict[str, Any]:
        out = asdict(self)
        out["route_matches"] = [asdict(r) for r in self.route_matches]
        return out
