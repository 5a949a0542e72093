"""
utils/data_loader.py
────────────────────
Downloads, parses and loads the reference datasets behind the confidence
engine.

  BTS T-100 segment CSV     → t100_air_segments  (carrier / lane facts)
  US Census intltrade JSON  → trade_records      (air "40" / vessel "20")
  UN Comtrade JSON rows     → TradeRecord list   (motCode 5 / 1)

Loaders replace the whole (year, month[, mode]) partition and insert in
batches, so re-running an ingestion for the same period is idempotent.
"""

from __future__ import annotations

import io
from dataclasses import dataclass, field
from typing import Any, Iterable

import pandas as pd
import requests
from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.tables import T100AirSegment, TradeRecordRow
from config.settings import get_settings
from models.company_names import normalize_company_name
from models.exceptions import IngestionError, InvalidContext
from models.trade import CENSUS_MODE_CODES, TradeRecord, TransportMode, resolve_transport_mode
from utils.logger import logger

USER_AGENT = "TradeIntel/1.0 Trade Intelligence Platform"
BATCH_SIZE = 100
POUNDS_TO_KG = 0.453592

# BTS column → t100_air_segments column
BTS_COLUMNS: dict[str, str] = {
    "ORIGIN":               "origin_airport",
    "DEST":                 "dest_airport",
    "UNIQUE_CARRIER":       "carrier",
    "UNIQUE_CARRIER_NAME":  "carrier_name",
    "FREIGHT":              "freight_kg",
    "MAIL":                 "mail_kg",
    "DEPARTURES_PERFORMED": "departures_performed",
    "AIRCRAFT_TYPE":        "aircraft_type",
}
_BTS_NUMERIC = ("freight_kg", "mail_kg", "departures_performed")

# Census field → trade_records column
CENSUS_FIELDS: dict[str, str] = {
    "ALL_VAL_MO":     "value_usd",
    "ALL_WGT_MO":     "weight_kg",
    "COMMODITY":      "hs_code",
    "COMMODITY_NAME": "commodity_name",
    "CTYNAME":        "country",
    "DISTRICT":       "customs_district",
}

DISTRICT_STATES: dict[str, str] = {
    "New York": "NY", "Los Angeles": "CA", "Chicago": "IL", "Houston": "TX",
    "Miami": "FL", "Seattle": "WA", "San Francisco": "CA", "Boston": "MA",
    "Detroit": "MI", "Norfolk": "VA", "Charleston": "SC", "Savannah": "GA",
    "Baltimore": "MD", "Philadelphia": "PA", "Portland": "OR",
    "Long Beach": "CA", "Oakland": "CA",
}


@dataclass
class IngestionReport:
    source:           str
    year:             int
    month:            int
    records_parsed:   int = 0
    records_inserted: int = 0
    transport_mode:   str | None = None
    errors:           list[str] = field(default_factory=list)


# ─────────────────────────────────────────────────────────────────────────────
#  Download
# ─────────────────────────────────────────────────────────────────────────────

def _fetch(url: str, params: dict | None = None, accept: str = "*/*") -> requests.Response:
    settings = get_settings()
    try:
        resp = requests.get(
            url,
            params=params,
            headers={"User-Agent": USER_AGENT, "Accept": accept},
            timeout=settings.source_timeout_s,
        )
        resp.raise_for_status()
    except requests.RequestException as exc:
        raise IngestionError(detail=f"GET {url}: {exc}") from exc
    return resp


def download_bts_t100(url: str | None = None) -> str:
    url = url or get_settings().bts_t100_url
    logger.info(f"Downloading BTS T-100 segment data from {url}")
    return _fetch(url).text


def download_census_trade(year: int, month: int, mode: TransportMode) -> list[list[Any]]:
    base = get_settings().census_api_base.rstrip("/")
    url = f"{base}/{year}/timeseries/intltrade/exports/hs"
    params = {
        "get": "ALL_VAL_MO,ALL_WGT_MO,COMMODITY,COMMODITY_NAME,CTYNAME,DISTRICT,GEN_CIF_MO",
        "for": "all:*",
        "MONTH": f"{month:02d}",
        "MODE_OF_TRANSPORT": CENSUS_MODE_CODES[mode],
    }
    logger.info(f"Downloading Census {mode.value} trade data for {year}-{month:02d}")
    resp = _fetch(url, params=params, accept="application/json")
    try:
        return resp.json()
    except ValueError as exc:
        raise IngestionError("Invalid Census API response", detail=str(exc)) from exc


# ─────────────────────────────────────────────────────────────────────────────
#  Parse
# ─────────────────────────────────────────────────────────────────────────────

def parse_bts_t100(csv_text: str, year: int, month: int) -> pd.DataFrame:
    """
    Parse a BTS T-100 segment CSV into t100_air_segments rows.
    Freight figures above 10,000 are reported in pounds and converted to kg.
    Rows without origin, destination or carrier are dropped.
    """
    if not csv_text or not csv_text.strip():
        raise IngestionError("No headers found in BTS data")
    try:
        raw = pd.read_csv(io.StringIO(csv_text), dtype=str, skipinitialspace=True)
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
        raise IngestionError("Failed to parse BTS data", detail=str(exc)) from exc

    raw.columns = [c.strip().strip('"').upper() for c in raw.columns]
    df = raw[[c for c in BTS_COLUMNS if c in raw.columns]].rename(columns=BTS_COLUMNS)
    for col in BTS_COLUMNS.values():
        if col not in df.columns:
            df[col] = None

    for col in ("origin_airport", "dest_airport", "carrier", "carrier_name", "aircraft_type"):
        df[col] = df[col].fillna("").astype(str).str.strip()
    for col in _BTS_NUMERIC:
        df[col] = pd.to_numeric(df[col], errors="coerce").fillna(0.0)

    df = df[(df["origin_airport"] != "") & (df["dest_airport"] != "") & (df["carrier"] != "")]
    df = df.copy()
    df.loc[df["freight_kg"] > 10_000, "freight_kg"] *= POUNDS_TO_KG
    df["year"] = year
    df["month"] = month
    return df.reset_index(drop=True)


def state_from_district(district: str | None) -> str:
    if not district:
        return "Unknown"
    lowered = district.lower()
    for name, state in DISTRICT_STATES.items():
        if name.lower() in lowered:
            return state
    return "Unknown"


def parse_census_trade(
    rows: list[list[Any]],
    mode: TransportMode,
    year: int,
    month: int,
) -> list[TradeRecord]:
    """
    Census responses are a header row followed by data rows. Weights in
    (0, 1000) are scaled by 1000. Rows lacking a commodity or a country, or
    with a non-positive value, are dropped.
    """
    if not isinstance(rows, list) or len(rows) < 2:
        raise IngestionError("Invalid Census API response format")

    df = pd.DataFrame(rows[1:], columns=[str(h) for h in rows[0]])
    df = df[[c for c in CENSUS_FIELDS if c in df.columns]].rename(columns=CENSUS_FIELDS)
    for col in CENSUS_FIELDS.values():
        if col not in df.columns:
            df[col] = None

    df["value_usd"] = pd.to_numeric(df["value_usd"], errors="coerce").fillna(0.0)
    df["weight_kg"] = pd.to_numeric(df["weight_kg"], errors="coerce").fillna(0.0)
    small = (df["weight_kg"] > 0) & (df["weight_kg"] < 1000)
    df.loc[small, "weight_kg"] *= 1000

    df = df[df["hs_code"].notna() & (df["hs_code"] != "")]
    df = df[df["country"].notna() & (df["country"] != "")]
    df = df[df["value_usd"] > 0]

    records: list[TradeRecord] = []
    for row in df.itertuples(index=False):
        hs_code = str(row.hs_code).strip()
        country = str(row.country).strip()
        commodity = row.commodity_name if isinstance(row.commodity_name, str) else None
        district = row.customs_district if isinstance(row.customs_district, str) else None
        try:
            records.append(TradeRecord(
                company_name=normalize_company_name(hs_code, country, commodity),
                hs_code=hs_code,
                country=country,
                transport_mode=mode,
                value_usd=float(row.value_usd),
                weight_kg=float(row.weight_kg),
                year=year,
                month=month,
                commodity_name=commodity,
                customs_district=district,
                state=state_from_district(district),
            ))
        except InvalidContext as exc:
            logger.debug(f"Dropping Census row {hs_code}/{country}: {exc}")
    return records


def parse_comtrade_records(rows: Iterable[dict[str, Any]]) -> list[TradeRecord]:
    """
    Convert UN Comtrade API `data` rows to TradeRecords. Rows whose motCode is
    neither air (5) nor ocean (1) are rejected here, before scoring.
    """
    records: list[TradeRecord] = []
    for row in rows:
        try:
            mode = resolve_transport_mode("comtrade", row.get("motCode"))
            records.append(TradeRecord(
                company_name=f"{row.get('partnerDesc', 'Unknown')} Trader",
                hs_code=str(row.get("cmdCode", "")),
                country=str(row.get("partnerDesc", "")),
                transport_mode=mode,
                value_usd=float(row.get("primaryValue") or 0.0),
                weight_kg=float(row.get("netWgt") or 0.0),
                year=int(row.get("period") or 0),
                month=1,
                commodity_name=row.get("cmdDesc"),
            ))
        except InvalidContext as exc:
            logger.debug(f"Rejecting Comtrade row: {exc}")
    return records


# ─────────────────────────────────────────────────────────────────────────────
#  Load
# ─────────────────────────────────────────────────────────────────────────────

def load_bts_t100(session: Session, df: pd.DataFrame, year: int, month: int) -> IngestionReport:
    report = IngestionReport(source="bts_t100", year=year, month=month, records_parsed=len(df))
    session.execute(
        delete(T100AirSegment).where(T100AirSegment.year == year, T100AirSegment.month == month)
    )
    rows = [
        {k: (None if v == "" else v) for k, v in r.items()}
        for r in df.to_dict(orient="records")
    ]
    for start in range(0, len(rows), BATCH_SIZE):
        batch = rows[start:start + BATCH_SIZE]
        try:
            with session.begin_nested():
                session.add_all(T100AirSegment(**r) for r in batch)
            report.records_inserted += len(batch)
        except SQLAlchemyError as exc:
            report.errors.append(f"Batch {start // BATCH_SIZE + 1}: {exc}")
    session.commit()
    logger.info(f"Inserted {report.records_inserted}/{report.records_parsed} BTS rows for {year}-{month:02d}")
    return report


def load_trade_records(
    session: Session,
    records: list[TradeRecord],
    mode: TransportMode,
    year: int,
    month: int,
    source: str = "census",
) -> IngestionReport:
    report = IngestionReport(
        source=source, year=year, month=month,
        records_parsed=len(records), transport_mode=mode.value,
    )
    session.execute(
        delete(TradeRecordRow).where(
            TradeRecordRow.year == year,
            TradeRecordRow.month == month,
            TradeRecordRow.transport_mode == mode.value,
            TradeRecordRow.source == source,
        )
    )
    for start in range(0, len(records), BATCH_SIZE):
        batch = records[start:start + BATCH_SIZE]
        try:
            with session.begin_nested():
                session.add_all(_trade_row(r, source) for r in batch)
            report.records_inserted += len(batch)
        except SQLAlchemyError as exc:
            report.errors.append(f"Batch {start // BATCH_SIZE + 1}: {exc}")
    session.commit()
    logger.info(
        f"Inserted {report.records_inserted}/{report.records_parsed} {mode.value} "
        f"trade records for {year}-{month:02d}"
    )
    return report


def ingest_bts_t100(session: Session, year: int, month: int, url: str | None = None) -> IngestionReport:
    df = parse_bts_t100(download_bts_t100(url), year, month)
    logger.info(f"Parsed {len(df)} BTS records")
    return load_bts_t100(session, df, year, month)


def ingest_census_trade(session: Session, year: int, month: int, mode: TransportMode) -> IngestionReport:
    rows = download_census_trade(year, month, mode)
    records = parse_census_trade(rows, mode, year, month)
    return load_trade_records(session, records, mode, year, month)


def _trade_row(r: TradeRecord, source: str) -> TradeRecordRow:
    return TradeRecordRow(
        source=source,
        company_name=r.company_name,
        hs_code=r.hs_code,
        commodity_name=r.commodity_name,
        country=r.country,
        transport_mode=r.transport_mode.value,
        value_usd=r.value_usd,
        weight_kg=r.weight_kg,
        customs_district=r.customs_district,
        state=r.state,
        year=r.year,
        month=r.month,
    )
