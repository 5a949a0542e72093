"""
models/company_names.py
───────────────────────
Deterministic counterparty names for trade records whose source feed carries
no consignee / shipper identity (Census and Comtrade aggregates).

The same (hs_code, country) pair always yields the same name so ingestion
re-runs stay idempotent.
"""

from __future__ import annotations

# hs_code → country → candidate company names. "default" covers countries
# that have no row of their own under a known HS code.
COMPANY_NAME_TABLE: dict[str, dict[str, tuple[str, ...]]] = {
    "8471600000": {  # computer processing units
        "South Korea": ("Samsung Electronics Co Ltd", "LG Electronics Inc"),
        "China":       ("Lenovo Group Limited", "Huawei Technologies Co Ltd"),
        "Taiwan":      ("ASUS Computer Inc", "Acer Inc"),
        "Japan":       ("Sony Corporation", "Toshiba Corporation"),
        "default":     ("Tech Manufacturer Corp",),
    },
    "8528720000": {  # LCD monitors and displays
        "South Korea": ("Samsung Display Co Ltd", "LG Display Co Ltd"),
        "China":       ("TCL Technology Group", "BOE Technology Group"),
        "Taiwan":      ("AU Optronics Corp", "Innolux Corporation"),
        "Japan":       ("Sony Electronics Inc", "Sharp Corporation"),
        "default":     ("Display Technology Corp",),
    },
    "8518300000": {  # audio equipment
        "Japan":         ("Sony Corporation", "Audio-Technica Corporation"),
        "China":         ("Shenzhen Audio Co Ltd", "Guangzhou Electronics"),
        "Germany":       ("Sennheiser Electronic", "Beyerdynamic GmbH"),
        "Denmark":       ("Bang & Olufsen A/S",),
        "United States": ("Bose Corporation", "Beats Electronics"),
        "default":       ("Audio Equipment Manufacturer",),
    },
    "9018390000": {  # medical instruments
        "Germany":       ("Siemens Healthineers AG", "B. Braun Melsungen AG"),
        "Japan":         ("Olympus Corporation", "Terumo Corporation"),
        "Switzerland":   ("Roche Diagnostics Ltd",),
        "United States": ("Medtronic Inc", "Abbott Laboratories"),
        "default":       ("Medical Equipment Manufacturer",),
    },
}

# commodity keyword → name template, tried in order when the table has no entry
_COMMODITY_PATTERNS: tuple[tuple[str, str], ...] = (
    ("electronic", "{country} Electronics Co Ltd"),
    ("medical",    "{country} Medical Equipment Inc"),
    ("computer",   "{country} Technology Corp"),
)


def numeric_suffix(hs_code: str, digits: int = 2) -> int:
    """Integer value of the trailing digits of an HS code (0 if not numeric)."""
    tail = str(hs_code or "").strip()[-digits:]
    return int(tail) if tail.isdigit() else 0


def normalize_company_name(
    hs_code: str,
    country: str,
    commodity_name: str | None = None,
) -> str:
    """
    Display name for the counterparty of an (hs_code, country) trade record.

    Picks candidates[numeric_suffix(hs_code) % len(candidates)] from
    COMPANY_NAME_TABLE; without a table entry falls back to commodity keyword
    templates and finally to "{country} Trading Company".
    """
    hs_key = str(hs_code or "").strip()
    country = str(country or "").strip()

    by_country = COMPANY_NAME_TABLE.get(hs_key)
    if by_country and country:
        candidates = by_country.get(country) or by_country.get("default") or ()
        if candidates:
            return candidates[numeric_suffix(hs_key) % len(candidates)]

    commodity = (commodity_name or "").lower()
    for keyword, template in _COMMODITY_PATTERNS:
        if keyword in commodity:
            return template.format(country=country)

    return f"{country} Trading Company"
