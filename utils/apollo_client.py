"""
utils/apollo_client.py
──────────────────────
Thin Apollo.io people-search client used for contact enrichment.

Failures (missing key, timeouts, HTTP errors, empty result) never raise: they
come back as an ApolloResult with success=False and an error message, which
the API layer reports as "no contacts available".

ContactVerifier wraps the client as the yes/no contact check used by the
company matcher.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlparse

import requests

from config.settings import get_settings
from utils.enrichment_cache import EnrichmentCache, build_cache_key
from utils.logger import logger

LOGISTICS_TITLES = [
    "Logistics Manager", "Director of Supply Chain", "Procurement Manager",
    "Operations Manager", "Supply Chain Director", "Logistics Director",
    "Import Manager", "Export Manager", "Director", "Manager",
]


@dataclass
class ApolloResult:
    success:      bool
    contacts:     list[dict[str, Any]] = field(default_factory=list)
    organization: dict[str, Any] | None = None
    error:        str | None = None


def extract_domain(url: str) -> str:
    """'https://www.acme.com/about' → 'acme.com'."""
    raw = url.strip()
    if not raw.startswith("http"):
        raw = "https://" + raw
    host = urlparse(raw).hostname or url
    return host[4:] if host.startswith("www.") else host


def _contact(person: dict[str, Any]) -> dict[str, Any]:
    first = person.get("first_name") or ""
    last = person.get("last_name") or ""
    return {
        "id":            person.get("id"),
        "first_name":    first,
        "last_name":     last,
        "name":          person.get("name") or f"{first} {last}".strip(),
        "title":         person.get("title"),
        "email":         person.get("email"),
        "linkedin_url":  person.get("linkedin_url"),
        "phone_numbers": person.get("phone_numbers") or [],
        "organization":  person.get("organization"),
    }


class ApolloClient:
    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        session: requests.Session | None = None,
    ) -> None:
        settings = get_settings()
        self.api_key = settings.apollo_api_key if api_key is None else api_key
        self.base_url = (base_url or settings.apollo_base_url).rstrip("/")
        self.timeout = settings.apollo_timeout_s if timeout is None else timeout
        self.http = session or requests.Session()

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def search_people(
        self,
        company_name: str,
        company_domain: str | None = None,
        location: str | None = None,
        industry: str | None = None,
        max_contacts: int = 5,
    ) -> ApolloResult:
        if not self.configured:
            return ApolloResult(False, error="Apollo API key not configured")

        body: dict[str, Any] = {
            "page": 1,
            "per_page": max_contacts,
            "person_titles": LOGISTICS_TITLES,
        }
        if company_domain:
            body["q_organization_domains"] = [extract_domain(company_domain)]
        else:
            body["q_organization_names"] = [company_name]

        headers = {
            "Content-Type": "application/json",
            "Cache-Control": "no-cache",
            "x-api-key": self.api_key,
        }
        try:
            resp = self.http.post(
                f"{self.base_url}/mixed_people/search",
                json=body,
                headers=headers,
                timeout=self.timeout,
            )
            resp.raise_for_status()
            payload = resp.json()
        except requests.Timeout:
            logger.warning(f"Apollo search timed out for '{company_name}'")
            return ApolloResult(False, error="Apollo request timed out")
        except (requests.RequestException, ValueError) as exc:
            logger.warning(f"Apollo search failed for '{company_name}': {exc}")
            return ApolloResult(False, error=f"Apollo request failed: {exc}")

        people = (payload or {}).get("people") or []
        if not people:
            return ApolloResult(False, error="No contacts found")

        organization = people[0].get("organization") or {
            "name": company_name,
            "website_url": company_domain or "",
            "industry": industry or "",
            "headquarters_address": location or "",
        }
        contacts = [_contact(p) for p in people]
        logger.info(f"Apollo returned {len(contacts)} contacts for '{company_name}'")
        return ApolloResult(True, contacts=contacts, organization=organization)


class ContactVerifier:
    """
    Callable answering "does Apollo know a logistics contact at this company?"

    A fresh company-only enrichment cache entry answers without a network
    call; otherwise a one-contact people search decides. Answers are memoised
    for the lifetime of the verifier (one request).
    """

    def __init__(self, client: ApolloClient, cache: EnrichmentCache | None = None) -> None:
        self.client = client
        self.cache = cache
        self._seen: dict[str, bool] = {}

    def __call__(self, company_name: str) -> bool:
        key = build_cache_key(company_name)
        if key not in self._seen:
            self._seen[key] = self._lookup(company_name, key)
        return self._seen[key]

    def _lookup(self, company_name: str, key: str) -> bool:
        if self.cache is not None:
            entry = self.cache.get(key)
            if entry is not None:
                return bool(entry.contacts)
        result = self.client.search_people(company_name, max_contacts=1)
        return result.success and bool(result.contacts)
