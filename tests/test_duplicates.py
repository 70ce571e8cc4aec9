"""Tests for the duplicate quote matcher."""

from __future__ import annotations

import pytest

from quotedesk.matching.duplicates import (
    DEFAULT_SIMILAR_THRESHOLD,
    IDENTICAL_THRESHOLD,
    CandidateRecord,
    DuplicateStatus,
    MatchResult,
    check_duplicate,
    find_similar_quote,
    normalize_for_matching,
)
from quotedesk.models import Quote


@pytest.fixture
def fox_candidates() -> list[CandidateRecord]:
    return [
        CandidateRecord(identifier="1", text="The quick brown fox", attribution="A"),
        CandidateRecord(identifier="2", text="The quick brown fox.", attribution="B"),
    ]


class TestNormalizeForMatching:
    """Test normalize_for_matching helper."""

    def test_lowercases_and_trims(self) -> None:
        assert normalize_for_matching("  Hello World \n") == "hello world"

    def test_keeps_inner_whitespace(self) -> None:
        assert normalize_for_matching("a   b") == "a   b"

    def test_strips_byte_order_mark(self) -> None:
        assert normalize_for_matching("\ufeff Hello World ") == "hello world"


class TestCandidateRecord:
    """Test CandidateRecord construction."""

    def test_from_quote(self) -> None:
        quote = Quote(id="q1", author="Oscar Wilde", quote_text="Be yourself.")
        candidate = CandidateRecord.from_quote(quote)

        assert candidate == CandidateRecord(identifier="q1", text="Be yourself.", attribution="Oscar Wilde")


class TestFindSimilarQuote:
    """Test find_similar_quote function."""

    def test_empty_query_returns_none(self) -> None:
        candidates = [CandidateRecord(identifier="1", text="x", attribution="A")]
        assert find_similar_quote("", candidates, 0.5) is None

    def test_whitespace_query_returns_none(self) -> None:
        candidates = [CandidateRecord(identifier="1", text="   ", attribution="A")]
        assert find_similar_quote("   \t", candidates, 0.0) is None

    def test_no_candidates_returns_none(self) -> None:
        assert find_similar_quote("Hello World", [], 0.5) is None

    def test_exact_match_after_normalisation_wins(self, fox_candidates) -> None:
        result = find_similar_quote("the quick brown fox", fox_candidates, 0.9)

        assert result is not None
        assert result.candidate.identifier == "1"
        assert result.similarity == 1.0

    def test_all_below_threshold_returns_none(self, fox_candidates) -> None:
        assert find_similar_quote("completely unrelated text", fox_candidates, 0.9) is None

    def test_highest_below_threshold_is_not_returned(self) -> None:
        candidates = [CandidateRecord(identifier="1", text="abcd", attribution="A")]

        assert find_similar_quote("abce", candidates, 0.8) is None
        assert find_similar_quote("abce", candidates, 0.75) == MatchResult(
            candidate=candidates[0], similarity=0.75
        )

    def test_first_candidate_wins_ties(self) -> None:
        candidates = [
            CandidateRecord(identifier="first", text="Stay hungry, stay foolish.", attribution="A"),
            CandidateRecord(identifier="second", text="stay hungry, stay foolish.", attribution="B"),
        ]
        result = find_similar_quote("Stay Hungry, Stay Foolish.", candidates, 0.5)

        assert result is not None
        assert result.candidate.identifier == "first"

    def test_later_better_candidate_replaces_earlier(self) -> None:
        candidates = [
            CandidateRecord(identifier="near", text="the quick brown fox.", attribution="A"),
            CandidateRecord(identifier="exact", text="The Quick Brown Fox", attribution="B"),
        ]
        result = find_similar_quote("the quick brown fox", candidates, 0.9)

        assert result is not None
        assert result.candidate.identifier == "exact"

    def test_candidate_text_is_normalised(self) -> None:
        candidates = [CandidateRecord(identifier="1", text="  HELLO THERE  ", attribution="A")]
        result = find_similar_quote("hello there", candidates, 0.99)

        assert result is not None
        assert result.similarity == 1.0

    def test_does_not_mutate_inputs(self, fox_candidates) -> None:
        snapshot = list(fox_candidates)
        find_similar_quote("the quick brown fox", fox_candidates, 0.9)
        assert fox_candidates == snapshot

    def test_repeatable(self, fox_candidates) -> None:
        first = find_similar_quote("The quick brown fox!", fox_candidates, 0.85)
        second = find_similar_quote("The quick brown fox!", fox_candidates, 0.85)
        assert first == second

    def test_zero_score_never_matches(self) -> None:
        """The running best starts at 0, so a 0.0 score is never reported, even at threshold 0."""
        candidates = [CandidateRecord(identifier="1", text="xyz", attribution="A")]
        assert find_similar_quote("abc", candidates, 0.0) is None

    def test_score_equal_to_threshold_matches(self) -> None:
        candidates = [CandidateRecord(identifier="1", text="abcd", attribution="A")]
        result = find_similar_quote("abce", candidates, 0.75)

        assert result is not None
        assert result.similarity == 0.75

    def test_leading_byte_order_mark_still_matches(self) -> None:
        candidates = [CandidateRecord(identifier="1", text="hello world", attribution="A")]
        result = find_similar_quote("\ufeffhello world", candidates, 0.95)

        assert result is not None
        assert result.similarity == 1.0

    def test_byte_order_mark_only_query_returns_none(self) -> None:
        candidates = [CandidateRecord(identifier="1", text="hello", attribution="A")]
        assert find_similar_quote("\ufeff  ", candidates, 0.0) is None

    def test_default_threshold(self) -> None:
        assert DEFAULT_SIMILAR_THRESHOLD == 0.85
        assert IDENTICAL_THRESHOLD == 0.95


class TestCheckDuplicate:
    """Test check_duplicate classification."""

    def test_unique(self, fox_candidates) -> None:
        result = check_duplicate("Something else entirely", fox_candidates)

        assert result.status is DuplicateStatus.UNIQUE
        assert result.match is None
        assert result.similarity is None
        assert not result.blocks_submission
        assert not result.skip_enrichment

    def test_identical_blocks_submission(self, fox_candidates) -> None:
        result = check_duplicate("THE QUICK BROWN FOX", fox_candidates)

        assert result.status is DuplicateStatus.IDENTICAL
        assert result.blocks_submission
        assert result.skip_enrichment

    def test_exactly_identical_threshold_counts_as_identical(self) -> None:
        candidates = [CandidateRecord(identifier="1", text="the quick brown fox.", attribution="A")]
        result = check_duplicate("the quick brown fox", candidates)

        assert result.similarity == pytest.approx(0.95)
        assert result.status is DuplicateStatus.IDENTICAL

    def test_similar_warns_only(self) -> None:
        candidates = [CandidateRecord(identifier="1", text="the quick brown fox jumps", attribution="A")]
        result = check_duplicate("the quick brown fox jumped", candidates)

        assert result.status is DuplicateStatus.SIMILAR
        assert DEFAULT_SIMILAR_THRESHOLD <= result.similarity < IDENTICAL_THRESHOLD
        assert not result.blocks_submission
        assert not result.skip_enrichment
