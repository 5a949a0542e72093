"""Shared fixtures: in-memory SQLite, per-test sessions and an app wired to them."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from backend.db import Base, get_session, init_db
from backend.tables import CompanyProfileRow, T100AirSegment, TradeRecordRow


@pytest.fixture
def engine():
    """Fresh in-memory database per test; StaticPool keeps one shared connection."""
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(eng)
    yield eng
    Base.metadata.drop_all(eng)
    eng.dispose()


@pytest.fixture
def db_session(engine):
    session = sessionmaker(bind=engine, expire_on_commit=False)()
    yield session
    session.close()


@pytest.fixture
def app(db_session):
    """The production app with its session dependency pointed at the test database."""
    from backend.main import app as fastapi_app

    def override_session():
        yield db_session

    fastapi_app.dependency_overrides[get_session] = override_session
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    # not used as a context manager, so the lifespan (file-backed init_db) never runs
    return TestClient(app)


@pytest.fixture
def seeded_reference(db_session):
    """A small reference set: one carrier with two lanes, one profile, ocean history."""
    db_session.add_all([
        T100AirSegment(
            origin_airport="ICN", dest_airport="LAX", carrier="KE",
            carrier_name="Korean Air Lines Co. Ltd.", freight_kg=98_000.0,
            mail_kg=0.0, year=2026, month=1,
        ),
        T100AirSegment(
            origin_airport="ICN", dest_airport="ORD", carrier="KE",
            carrier_name="Korean Air Lines Co. Ltd.", freight_kg=125_000.0,
            mail_kg=0.0, year=2026, month=1,
        ),
        T100AirSegment(
            origin_airport="PVG", dest_airport="LAX", carrier="CK",
            carrier_name="China Cargo Airlines", freight_kg=156_000.0,
            mail_kg=0.0, year=2026, month=1,
        ),
        CompanyProfileRow(
            company_name="Acme Components", likely_air_shipper=False,
            air_confidence_score=88,
        ),
        TradeRecordRow(
            source="census", company_name="Pacific Freight Co",
            hs_code="8471600000", country="Japan", transport_mode="OCEAN",
            value_usd=250_000.0, weight_kg=12_000.0, year=2026, month=1,
        ),
        TradeRecordRow(
            source="census", company_name="Pacific Freight Co",
            hs_code="8471600000", country="Japan", transport_mode="OCEAN",
            value_usd=150_000.0, weight_kg=8_000.0, year=2025, month=12,
        ),
        TradeRecordRow(
            source="census", company_name="Pacific Freight Co",
            hs_code="8471600000", country="Japan", transport_mode="AIR",
            value_usd=90_000.0, weight_kg=400.0, year=2026, month=1,
        ),
    ])
    db_session.commit()
    return db_session
