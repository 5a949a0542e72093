"""
models/exceptions.py
────────────────────
Error taxonomy shared by the engine, the ingestion loaders and the routers.

Every error carries a message (what happened), an optional detail (technical
context) and an optional suggestion (what to do next).
"""

from __future__ import annotations


class TradeIntelError(Exception):
    """Base class for all trade-intelligence errors."""

    def __init__(
        self,
        message: str,
        detail: str | None = None,
        suggestion: str | None = None,
    ) -> None:
        self.message = message
        self.detail = detail
        self.suggestion = suggestion
        super().__init__(message)

    def __str__(self) -> str:
        parts = [self.message]
        if self.detail:
            parts.append(f"Detail: {self.detail}")
        if self.suggestion:
            parts.append(f"Suggestion: {self.suggestion}")
        return " | ".join(parts)


class MissingInput(TradeIntelError):
    """A required input (e.g. the company name) was empty."""

    def __init__(
        self,
        message: str = "Company name is required",
        detail: str | None = None,
        suggestion: str | None = "Pass a non-empty company name",
    ) -> None:
        super().__init__(message, detail, suggestion)


class ReferenceDataUnavailable(TradeIntelError):
    """The carrier-route / profile reference store could not be reached.

    The engine recovers from this locally with the static fallback table.
    """

    def __init__(
        self,
        message: str = "Reference data store unavailable",
        detail: str | None = None,
        suggestion: str | None = "Check database connectivity",
    ) -> None:
        super().__init__(message, detail, suggestion)


LookupUnavailable = ReferenceDataUnavailable


class InvalidContext(TradeIntelError):
    """Malformed optional context, e.g. a negative shipment value."""

    def __init__(
        self,
        message: str = "Invalid trade context",
        detail: str | None = None,
        suggestion: str | None = None,
    ) -> None:
        super().__init__(message, detail, suggestion)


class IngestionError(TradeIntelError):
    """A reference-data download or parse failed."""

    def __init__(
        self,
        message: str = "Reference data ingestion failed",
        detail: str | None = None,
        suggestion: str | None = "Check the source URL and try again later",
    ) -> None:
        super().__init__(message, detail, suggestion)


class RecordNotFound(TradeIntelError):
    """A campaign / outreach log id did not resolve."""

    def __init__(
        self,
        message: str = "Record not found",
        detail: str | None = None,
        suggestion: str | None = None,
    ) -> None:
        super().__init__(message, detail, suggestion)
