"""
backend/db.py
─────────────
SQLAlchemy 2.0 declarative base, engine factory and per-request sessions.

Run-time wiring
───────────────
  engine       = create_db_engine()          # from settings.database_url
  SessionLocal = sessionmaker(bind=engine)
  get_session  : FastAPI dependency yielding one session per request
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Generator

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from config.settings import get_settings
from utils.logger import logger


class Base(DeclarativeBase):
    """Declarative base for every trade-intelligence table."""


def create_db_engine(url: str | None = None) -> Engine:
    """
    Build an engine for `url` (defaults to settings.database_url).
    SQLite files get their parent directory created and cross-thread access
    enabled, since FastAPI runs sync endpoints in a thread pool.
    """
    url = url or get_settings().database_url
    connect_args: dict = {}
    if url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
        db_path = url.split("///", 1)[-1]
        if db_path and db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    logger.info(f"Creating database engine for {url.split('@')[-1]}")
    return create_engine(url, pool_pre_ping=True, connect_args=connect_args)


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return create_db_engine()


@lru_cache(maxsize=1)
def get_sessionmaker() -> sessionmaker:
    return sessionmaker(bind=get_engine(), expire_on_commit=False)


def init_db(engine: Engine | None = None) -> None:
    """Create any missing tables."""
    import backend.tables  # noqa: F401  -- register table classes

    Base.metadata.create_all(engine or get_engine())


def get_session() -> Generator[Session, None, None]:
    session = get_sessionmaker()()
    try:
        yield session
    finally:
        session.close()
