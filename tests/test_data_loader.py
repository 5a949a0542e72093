"""Tests for BTS / Census / Comtrade parsing and partition loading."""

from unittest.mock import MagicMock, patch

import pytest
import requests
from sqlalchemy import func, select

from backend.tables import T100AirSegment, TradeRecordRow
from models.exceptions import IngestionError
from models.trade import TransportMode
from utils.data_loader import (
    POUNDS_TO_KG,
    ingest_bts_t100,
    ingest_census_trade,
    load_bts_t100,
    load_trade_records,
    parse_bts_t100,
    parse_census_trade,
    parse_comtrade_records,
    state_from_district,
)


BTS_CSV = (
    '"DEPARTURES_PERFORMED","FREIGHT","MAIL","UNIQUE_CARRIER","UNIQUE_CARRIER_NAME",'
    '"ORIGIN","DEST","AIRCRAFT_TYPE"\n'
    '4,250000,0,"KE","Korean Air Lines Co. Ltd.","ICN","ORD","622"\n'
    '2,8000,120,"CK","China Cargo Airlines","PVG","LAX","627"\n'
    '1,500,0,"","Unknown","ICN","LAX","622"\n'
)

CENSUS_ROWS = [
    ["ALL_VAL_MO", "ALL_WGT_MO", "COMMODITY", "COMMODITY_NAME", "CTYNAME", "DISTRICT", "GEN_CIF_MO"],
    ["1500000", "12", "8471600000", "PROCESSING UNITS", "South Korea", "Los Angeles, CA", "0"],
    ["90000", "4500", "8518300000", "AUDIO EQUIPMENT", "Japan", "Savannah, GA", "0"],
    ["0", "10", "8471600000", "PROCESSING UNITS", "China", "Seattle, WA", "0"],
    ["50000", "10", "", "BLANK", "China", "Seattle, WA", "0"],
    ["70000", "10", "9018390000", "MEDICAL", "", "Seattle, WA", "0"],
]


def _count(session, table):
    return session.scalar(select(func.count()).select_from(table))


class TestParseBts:
    def test_columns_mapped_and_invalid_rows_dropped(self):
        df = parse_bts_t100(BTS_CSV, 2026, 1)
        assert list(df["carrier"]) == ["KE", "CK"]
        assert list(df["origin_airport"]) == ["ICN", "PVG"]
        assert set(df["year"]) == {2026}
        assert set(df["month"]) == {1}

    def test_large_freight_converted_from_pounds(self):
        df = parse_bts_t100(BTS_CSV, 2026, 1)
        assert df.loc[0, "freight_kg"] == pytest.approx(250_000 * POUNDS_TO_KG)
        assert df.loc[1, "freight_kg"] == pytest.approx(8_000)

    def test_empty_payload_rejected(self):
        with pytest.raises(IngestionError):
            parse_bts_t100("   ", 2026, 1)


class TestParseCensus:
    def test_rows_filtered_and_weights_scaled(self):
        records = parse_census_trade(CENSUS_ROWS, TransportMode.AIR, 2026, 2)
        assert len(records) == 2
        korea = records[0]
        assert korea.weight_kg == pytest.approx(12_000)
        assert korea.value_usd == pytest.approx(1_500_000)
        assert korea.transport_mode is TransportMode.AIR
        assert korea.company_name == "Samsung Electronics Co Ltd"
        assert korea.state == "CA"
        assert records[1].weight_kg == pytest.approx(4_500)
        assert records[1].state == "GA"

    def test_header_only_rejected(self):
        with pytest.raises(IngestionError):
            parse_census_trade(CENSUS_ROWS[:1], TransportMode.OCEAN, 2026, 2)

    def test_state_from_district(self):
        assert state_from_district("LONG BEACH, CA") == "CA"
        assert state_from_district("Anchorage, AK") == "Unknown"
        assert state_from_district(None) == "Unknown"


class TestParseComtrade:
    def test_modes_mapped_and_unknown_rejected(self):
        rows = [
            {"motCode": 5, "partnerDesc": "Germany", "cmdCode": "9018", "primaryValue": 1000, "period": 2025},
            {"motCode": 1, "partnerDesc": "Brazil", "cmdCode": "2601", "primaryValue": 2000, "period": 2025},
            {"motCode": 3, "partnerDesc": "Canada", "cmdCode": "8703", "primaryValue": 3000, "period": 2025},
        ]
        records = parse_comtrade_records(rows)
        assert [(r.company_name, r.transport_mode) for r in records] == [
            ("Germany Trader", TransportMode.AIR),
            ("Brazil Trader", TransportMode.OCEAN),
        ]


class TestLoaders:
    def test_bts_partition_replaced_on_rerun(self, db_session):
        df = parse_bts_t100(BTS_CSV, 2026, 1)
        load_bts_t100(db_session, df, 2026, 1)
        report = load_bts_t100(db_session, df, 2026, 1)
        assert report.records_inserted == 2
        assert report.errors == []
        assert _count(db_session, T100AirSegment) == 2

    def test_trade_records_partition_scoped_by_mode(self, db_session):
        air = parse_census_trade(CENSUS_ROWS, TransportMode.AIR, 2026, 2)
        ocean = parse_census_trade(CENSUS_ROWS, TransportMode.OCEAN, 2026, 2)
        load_trade_records(db_session, air, TransportMode.AIR, 2026, 2)
        load_trade_records(db_session, ocean, TransportMode.OCEAN, 2026, 2)
        report = load_trade_records(db_session, air, TransportMode.AIR, 2026, 2)
        assert report.transport_mode == "AIR"
        assert _count(db_session, TradeRecordRow) == 4


class TestIngest:
    def test_bts_download_and_load(self, db_session):
        response = MagicMock(text=BTS_CSV)
        with patch("utils.data_loader.requests.get", return_value=response) as get:
            report = ingest_bts_t100(db_session, 2026, 1, url="https://example.test/t100.csv")
        assert get.call_args.args[0] == "https://example.test/t100.csv"
        assert report.records_parsed == 2
        assert _count(db_session, T100AirSegment) == 2

    def test_census_request_carries_mode_code(self, db_session):
        response = MagicMock()
        response.json.return_value = CENSUS_ROWS
        with patch("utils.data_loader.requests.get", return_value=response) as get:
            ingest_census_trade(db_session, 2026, 2, TransportMode.OCEAN)
        params = get.call_args.kwargs["params"]
        assert params["MODE_OF_TRANSPORT"] == "20"
        assert params["MONTH"] == "02"

    def test_http_failure_becomes_ingestion_error(self, db_session):
        with patch("utils.data_loader.requests.get", side_effect=requests.ConnectionError("down")):
            with pytest.raises(IngestionError):
                ingest_bts_t100(db_session, 2026, 1)
