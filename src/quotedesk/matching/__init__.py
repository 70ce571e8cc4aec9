"""Quote similarity and duplicate detection."""

from quotedesk.matching.duplicates import (
    DEFAULT_SIMILAR_THRESHOLD,
    IDENTICAL_THRESHOLD,
    CandidateRecord,
    DuplicateCheck,
    DuplicateStatus,
    MatchResult,
    check_duplicate,
    find_similar_quote,
)
from quotedesk.matching.similarity import calculate_similarity, levenshtein_distance

__all__ = [
    "DEFAULT_SIMILAR_THRESHOLD",
    "IDENTICAL_THRESHOLD",
    "CandidateRecord",
    "DuplicateCheck",
    "DuplicateStatus",
    "MatchResult",
    "calculate_similarity",
    "check_duplicate",
    "find_similar_quote",
    "levenshtein_distance",
]
