"""
utils/logger.py
───────────────
Loguru setup shared by the API, the engine and the loaders.

Sinks
─────
  stderr               human-readable, level from LOG_LEVEL
  LOG_FILE             every record as JSON lines
  AUDIT_LOG_FILE       JSON lines from the reference-data loaders and the
                       enrichment path only (BTS / Census pulls, Apollo calls)
"""

import sys
from pathlib import Path

from loguru import logger

from config.settings import get_settings

AUDIT_MODULES = (
    "utils.data_loader",
    "utils.apollo_client",
    "utils.enrichment_cache",
    "backend.routers.ingest",
    "backend.routers.enrichment",
)


def is_audit_record(record: dict) -> bool:
    return (record["name"] or "").startswith(AUDIT_MODULES)


def setup_logger() -> None:
    settings = get_settings()
    log_file: Path = settings.log_file
    audit_file: Path = settings.audit_log_file
    for path in (log_file, audit_file):
        path.parent.mkdir(parents=True, exist_ok=True)

    logger.remove()

    logger.add(
        sys.stderr,
        level=settings.log_level,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{line}</cyan> | "
            "<level>{message}</level>"
        ),
        colorize=True,
    )

    logger.add(
        str(log_file),
        level="DEBUG",
        rotation="10 MB",
        retention="14 days",
        serialize=True,
    )

    logger.add(
        str(audit_file),
        level="INFO",
        filter=is_audit_record,
        rotation="5 MB",
        retention="30 days",
        serialize=True,
    )


setup_logger()

__all__ = ["logger", "is_audit_record"]
