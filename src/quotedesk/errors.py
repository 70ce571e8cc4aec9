"""Exception hierarchy for QuoteDesk."""

from __future__ import annotations


class QuoteDeskError(Exception):
    """Base class for all QuoteDesk errors."""


class ConfigurationError(QuoteDeskError):
    """Raised when a required setting (API key, path) is missing or invalid."""


class RecordNotFoundError(QuoteDeskError):
    """Raised when a stored record does not exist."""

    def __init__(self, collection: str, record_id: str) -> None:
        super().__init__(f"{collection} record not found: {record_id}")
        self.collection = collection
        self.record_id = record_id


class EnrichmentError(QuoteDeskError):
    """Raised when an LLM or remote lookup fails."""
