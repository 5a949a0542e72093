"""Tests for the contact-enrichment cache and its 7-day staleness horizon."""

from datetime import datetime, timedelta, timezone

import pytest

from utils.enrichment_cache import (
    STALE_AFTER,
    EnrichmentCache,
    EnrichmentCacheEntry,
    build_cache_key,
)


WRITTEN_AT = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)
CONTACTS = [{"name": "Jin Park", "email": "jin.park@example.com", "title": "Logistics Manager"}]


class Clock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return Clock(WRITTEN_AT)


@pytest.fixture
def cache(db_session, clock):
    return EnrichmentCache(db_session, clock=clock)


class TestBuildCacheKey:
    def test_normalises_case_and_whitespace(self):
        assert build_cache_key(" Samsung ", "Seoul", None) == "samsung_seoul_"

    def test_company_only(self):
        assert build_cache_key("Acme") == "acme"


class TestEnrichmentCache:
    def test_miss_returns_none(self, cache):
        assert cache.get("nobody") is None
        assert cache.peek("nobody") is None

    def test_put_then_get(self, cache):
        cache.put("samsung__", CONTACTS, {"name": "Samsung"})
        entry = cache.get("samsung__")
        assert entry.contacts == CONTACTS
        assert entry.organization == {"name": "Samsung"}
        assert entry.enriched_at == WRITTEN_AT

    def test_six_day_old_entry_is_fresh(self, cache, clock):
        cache.put("samsung__", CONTACTS, None)
        clock.now = WRITTEN_AT + timedelta(days=6)
        entry = cache.get("samsung__")
        assert entry is not None
        assert entry.is_stale(clock.now) is False

    def test_eight_day_old_entry_is_stale(self, cache, clock):
        cache.put("samsung__", CONTACTS, None)
        clock.now = WRITTEN_AT + timedelta(days=8)
        assert cache.get("samsung__") is None
        stale = cache.peek("samsung__")
        assert stale is not None
        assert stale.is_stale(clock.now) is True

    def test_put_overwrites_existing_entry(self, cache, clock):
        cache.put("acme", CONTACTS, None)
        clock.now = WRITTEN_AT + timedelta(days=10)
        cache.put("acme", [], {"name": "Acme"})
        entry = cache.get("acme")
        assert entry.contacts == []
        assert entry.enriched_at == clock.now


class TestEntryAge:
    def test_naive_timestamps_treated_as_utc(self):
        entry = EnrichmentCacheEntry("k", [], None, datetime(2026, 3, 1, 9, 0))
        assert entry.age(WRITTEN_AT + timedelta(days=1)) == timedelta(days=1)

    def test_exactly_seven_days_is_not_stale(self):
        entry = EnrichmentCacheEntry("k", [], None, WRITTEN_AT)
        assert entry.is_stale(WRITTEN_AT + STALE_AFTER) is False
