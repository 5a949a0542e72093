"""
config/settings.py
──────────────────
Centralised settings loaded from .env via pydantic-settings.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
    )

    # Server
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"

    # Database
    database_url: str = "sqlite:///./data/tradeintel.db"

    # Scoring
    route_match_limit: int = 10
    prior_shipment_limit: int = 10

    # Apollo contact enrichment (optional)
    apollo_api_key: str = Field(default="", alias="APOLLO_API_KEY")
    apollo_base_url: str = "https://api.apollo.io/v1"
    apollo_timeout_s: float = 10.0
    enrichment_ttl_days: int = 7

    # Reference-data sources
    bts_t100_url: str = (
        "https://transtats.bts.gov/DownLoad_Table.asp"
        "?Table_ID=293&Has_Group=3&Is_Zipped=0"
    )
    census_api_base: str = "https://api.census.gov/data"
    source_timeout_s: float = 60.0

    # Logging
    log_level: str = "INFO"
    log_file: Path = Path("./logs/app.log")
    audit_log_file: Path = Path("./logs/ingestion.log")


@lru_cache
def get_settings() -> Settings:
    return Settings()
