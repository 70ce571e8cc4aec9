"""Keep author profiles (biography and photo) filled in."""

from __future__ import annotations

import logging
from typing import Any, Dict

import httpx

from quotedesk.enrichment.generators import generate_author_description
from quotedesk.enrichment.llm import LLMClient
from quotedesk.enrichment.photos import PhotoSourcer, WikipediaClient
from quotedesk.errors import QuoteDeskError
from quotedesk.models import Author
from quotedesk.store.storage import SQLiteQuoteStore

LOGGER = logging.getLogger(__name__)


def ensure_author_profile(
    store: SQLiteQuoteStore,
    name: str,
    *,
    wikipedia: WikipediaClient,
    photo_sourcer: PhotoSourcer | None = None,
) -> Author | None:
    """Create or complete the profile for ``name`` from Wikipedia.

    Only missing fields are written. Lookup failures are logged and leave the
    stored profile untouched.
    """
    name = name.strip()
    if not name:
        return None

    try:
        existing = store.find_author_by_name(name)
        if existing is not None and existing.is_complete:
            return existing

        summary = wikipedia.summary(name)
        description = summary.description if summary else None
        profile_url = existing.profile_url if existing else None
        if not profile_url and photo_sourcer is not None:
            profile_url = photo_sourcer.source(name)

        updates: Dict[str, Any] = {}
        if not (existing and existing.description) and description:
            updates["description"] = description
        if not (existing and existing.profile_url) and profile_url:
            updates["profile_url"] = profile_url

        if existing is None:
            author_id = store.create_author({"name": name, **updates})
        else:
            author_id = existing.id
            if updates:
                store.update_author(author_id, updates)
        return store.get_author(author_id)
    except (QuoteDeskError, httpx.HTTPError, OSError) as exc:
        LOGGER.error("Could not complete profile for %s: %s", name, exc)
        return None


def generate_missing_author_fields(
    store: SQLiteQuoteStore,
    author: Author,
    *,
    llm: LLMClient | None,
    photo_sourcer: PhotoSourcer,
) -> Author:
    """Fill an author's description (LLM) and photo (web) when they are empty."""
    LOGGER.info("Generating missing fields for %s", author.name)
    description = author.description or ""
    if not description and llm is not None:
        quotes = [quote.quote_text for quote in store.list_quotes_by_author(author.name)]
        description = generate_author_description(llm, author.name, quotes) or ""

    profile_url = author.profile_url or photo_sourcer.source(author.name) or ""

    store.update_author(author.id, {"profile_url": profile_url, "description": description})
    updated = store.get_author(author.id)
    return updated if updated is not None else author
