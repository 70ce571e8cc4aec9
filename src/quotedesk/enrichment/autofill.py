"""Duplicate-aware AI autofill for a newly entered quote."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List

from quotedesk.enrichment.generators import (
    generate_author,
    generate_author_link,
    generate_subjects,
    generate_video_link,
)
from quotedesk.enrichment.llm import LLMClient
from quotedesk.matching.duplicates import (
    DEFAULT_SIMILAR_THRESHOLD,
    IDENTICAL_THRESHOLD,
    DuplicateCheck,
    check_duplicate,
)
from quotedesk.store.storage import SQLiteQuoteStore

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class AutofillResult:
    duplicate: DuplicateCheck
    author: str = ""
    subjects: List[str] = field(default_factory=list)
    author_link: str = ""
    video_link: str = ""

    @property
    def skipped(self) -> bool:
        return self.duplicate.skip_enrichment


def autofill_quote(
    store: SQLiteQuoteStore,
    quote_text: str,
    *,
    llm: LLMClient,
    link_validator: Callable[[str], bool],
    threshold: float = DEFAULT_SIMILAR_THRESHOLD,
    identical_threshold: float = IDENTICAL_THRESHOLD,
) -> AutofillResult:
    """Suggest author, subjects and links for ``quote_text``.

    Nothing is generated when the quote already exists verbatim.
    """
    duplicate = check_duplicate(quote_text, store.candidates(), threshold, identical_threshold)
    if duplicate.skip_enrichment:
        LOGGER.info("Identical quote already stored, skipping autofill")
        return AutofillResult(duplicate=duplicate)

    author = generate_author(llm, quote_text)
    subjects = generate_subjects(llm, quote_text, store.all_subjects())
    return AutofillResult(
        duplicate=duplicate,
        author=author,
        subjects=subjects,
        author_link=generate_author_link(llm, author, link_validator),
        video_link=generate_video_link(author),
    )
