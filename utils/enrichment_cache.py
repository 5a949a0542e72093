"""
utils/enrichment_cache.py
─────────────────────────
EnrichmentCache: memoised contact-enrichment results keyed by a normalised
company + location string, stored in `contact_enrichment_cache`.

  get(key)   → entry, or None when absent or older than the staleness horizon
  peek(key)  → entry regardless of age (caller inspects entry.is_stale)
  put(key, contacts, organization) → upsert, last write wins
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

from sqlalchemy.orm import Session

from backend.tables import EnrichmentCacheRow
from utils.logger import logger

STALE_AFTER = timedelta(days=7)


def build_cache_key(company_name: str, *location_fields: str | None) -> str:
    """Lower-cased company name joined with the location fields."""
    parts = [str(company_name or "").strip().lower()]
    parts += [str(f or "").strip().lower() for f in location_fields]
    return "_".join(parts)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(ts: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is written in UTC
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class EnrichmentCacheEntry:
    cache_key:    str
    contacts:     list[dict[str, Any]]
    organization: dict[str, Any] | None
    enriched_at:  datetime

    def age(self, now: datetime) -> timedelta:
        return _as_utc(now) - _as_utc(self.enriched_at)

    def is_stale(self, now: datetime, max_age: timedelta = STALE_AFTER) -> bool:
        return self.age(now) > max_age


class EnrichmentCache:
    def __init__(
        self,
        session: Session,
        max_age: timedelta = STALE_AFTER,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.session = session
        self.max_age = max_age
        self.clock = clock

    def peek(self, key: str) -> EnrichmentCacheEntry | None:
        row = self.session.get(EnrichmentCacheRow, key)
        if row is None:
            return None
        return EnrichmentCacheEntry(
            cache_key=row.cache_key,
            contacts=list(row.contacts or []),
            organization=row.organization,
            enriched_at=_as_utc(row.enriched_at),
        )

    def get(self, key: str) -> EnrichmentCacheEntry | None:
        entry = self.peek(key)
        if entry is None:
            return None
        if entry.is_stale(self.clock(), self.max_age):
            logger.debug(f"Enrichment cache entry '{key}' is stale ({entry.age(self.clock())})")
            return None
        return entry

    def put(
        self,
        key: str,
        contacts: list[dict[str, Any]],
        organization: dict[str, Any] | None,
    ) -> EnrichmentCacheEntry:
        now = self.clock()
        row = self.session.get(EnrichmentCacheRow, key)
        if row is None:
            row = EnrichmentCacheRow(cache_key=key)
            self.session.add(row)
        row.contacts = list(contacts)
        row.organization = organization
        row.enriched_at = now
        self.session.commit()
        logger.info(f"Cached {len(contacts)} contacts under '{key}'")
        return EnrichmentCacheEntry(key, list(contacts), organization, _as_utc(now))
