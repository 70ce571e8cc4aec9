"""Near-duplicate detection for newly entered quotes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Sequence

from quotedesk.matching.similarity import calculate_similarity

if TYPE_CHECKING:
    from quotedesk.models import Quote

DEFAULT_SIMILAR_THRESHOLD = 0.85
IDENTICAL_THRESHOLD = 0.95
_BOM = "\ufeff"


@dataclass(frozen=True, slots=True)
class CandidateRecord:
    """An existing quote that new text is compared against."""

    identifier: str
    text: str
    attribution: str

    @classmethod
    def from_quote(cls, quote: "Quote") -> "CandidateRecord":
        return cls(identifier=quote.id, text=quote.quote_text, attribution=quote.author)


@dataclass(frozen=True, slots=True)
class MatchResult:
    candidate: CandidateRecord
    similarity: float


class DuplicateStatus(str, Enum):
    UNIQUE = "unique"
    SIMILAR = "similar"
    IDENTICAL = "identical"


@dataclass(frozen=True, slots=True)
class DuplicateCheck:
    """Outcome of a duplicate check, with the policy callers act on."""

    status: DuplicateStatus
    match: MatchResult | None = None

    @property
    def blocks_submission(self) -> bool:
        return self.status is DuplicateStatus.IDENTICAL

    @property
    def skip_enrichment(self) -> bool:
        return self.status is DuplicateStatus.IDENTICAL

    @property
    def similarity(self) -> float | None:
        return self.match.similarity if self.match is not None else None


def normalize_for_matching(text: str) -> str:
    """Lower-case and strip surrounding whitespace and byte-order marks; inner whitespace is kept."""
    return text.lower().strip().strip(_BOM).strip()


def find_similar_quote(
    new_text: str,
    existing: Sequence[CandidateRecord],
    threshold: float = DEFAULT_SIMILAR_THRESHOLD,
) -> MatchResult | None:
    """Return the best candidate scoring at or above ``threshold``, if any.

    Candidates are scanned in order and only a strictly higher score replaces
    the running best, so the earliest candidate wins ties. A candidate below
    ``threshold`` never becomes the best, even when it scores highest.
    """
    query = normalize_for_matching(new_text)
    if not query or not existing:
        return None

    best_match: CandidateRecord | None = None
    best_similarity = 0.0

    for candidate in existing:
        similarity = calculate_similarity(query, normalize_for_matching(candidate.text))
        if similarity > best_similarity and similarity >= threshold:
            best_similarity = similarity
            best_match = candidate

    if best_match is None:
        return None
    return MatchResult(candidate=best_match, similarity=best_similarity)


def check_duplicate(
    new_text: str,
    existing: Sequence[CandidateRecord],
    threshold: float = DEFAULT_SIMILAR_THRESHOLD,
    identical_threshold: float = IDENTICAL_THRESHOLD,
) -> DuplicateCheck:
    """Classify new text as unique, similar to, or identical to a stored quote."""
    match = find_similar_quote(new_text, existing, threshold)
    if match is None:
        return DuplicateCheck(status=DuplicateStatus.UNIQUE)
    if match.similarity >= identical_threshold:
        return DuplicateCheck(status=DuplicateStatus.IDENTICAL, match=match)
    return DuplicateCheck(status=DuplicateStatus.SIMILAR, match=match)
