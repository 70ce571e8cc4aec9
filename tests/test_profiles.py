"""Tests for author profile completion."""

from __future__ import annotations

from unittest.mock import MagicMock

from conftest import FakeLLM
from quotedesk.enrichment.photos import WikiSummary
from quotedesk.enrichment.profiles import ensure_author_profile, generate_missing_author_fields
from quotedesk.errors import QuoteDeskError


def _wikipedia(summary: WikiSummary | None) -> MagicMock:
    wikipedia = MagicMock()
    wikipedia.summary.return_value = summary
    return wikipedia


def _sourcer(location: str | None) -> MagicMock:
    sourcer = MagicMock()
    sourcer.source.return_value = location
    return sourcer


class TestEnsureAuthorProfile:
    """Test ensure_author_profile."""

    def test_blank_name(self, store) -> None:
        wikipedia = _wikipedia(None)
        assert ensure_author_profile(store, "   ", wikipedia=wikipedia) is None
        wikipedia.summary.assert_not_called()

    def test_creates_new_author(self, store) -> None:
        wikipedia = _wikipedia(WikiSummary(description="Roman Stoic philosopher.", image_url=None))
        author = ensure_author_profile(
            store, " Seneca ", wikipedia=wikipedia, photo_sourcer=_sourcer("/photos/seneca.jpg")
        )

        assert author is not None
        assert author.name == "Seneca"
        assert author.description == "Roman Stoic philosopher."
        assert author.profile_url == "/photos/seneca.jpg"
        assert len(store.list_authors()) == 1

    def test_complete_author_untouched(self, store) -> None:
        store.create_author({"name": "Seneca", "description": "Known.", "profile_url": "/p.jpg"})
        wikipedia = _wikipedia(None)

        author = ensure_author_profile(store, "Seneca", wikipedia=wikipedia)

        assert author.description == "Known."
        wikipedia.summary.assert_not_called()

    def test_only_missing_fields_written(self, store) -> None:
        author_id = store.create_author({"name": "Seneca", "description": "Hand written."})
        wikipedia = _wikipedia(WikiSummary(description="From Wikipedia.", image_url=None))

        author = ensure_author_profile(
            store, "Seneca", wikipedia=wikipedia, photo_sourcer=_sourcer("/photos/seneca.jpg")
        )

        assert author.id == author_id
        assert author.description == "Hand written."
        assert author.profile_url == "/photos/seneca.jpg"

    def test_lookup_failure_returns_none(self, store) -> None:
        wikipedia = MagicMock()
        wikipedia.summary.side_effect = QuoteDeskError("boom")

        assert ensure_author_profile(store, "Seneca", wikipedia=wikipedia) is None
        assert store.list_authors() == []


class TestGenerateMissingAuthorFields:
    """Test generate_missing_author_fields."""

    def test_fills_description_and_photo(self, store) -> None:
        store.create_quote({"quote_text": "Luck is what happens when preparation meets opportunity.", "author": "Seneca"})
        author_id = store.create_author({"name": "Seneca"})
        llm = FakeLLM("Seneca was a Stoic.\nHe advised Nero.")

        updated = generate_missing_author_fields(
            store, store.get_author(author_id), llm=llm, photo_sourcer=_sourcer("/photos/seneca.jpg")
        )

        assert updated.description == "Seneca was a Stoic. He advised Nero."
        assert updated.profile_url == "/photos/seneca.jpg"
        assert updated.is_complete
        assert "preparation meets opportunity" in llm.prompts[0]

    def test_keeps_existing_values(self, store) -> None:
        author_id = store.create_author({"name": "Seneca", "description": "Known.", "profile_url": "/p.jpg"})
        llm = FakeLLM()
        sourcer = _sourcer("/other.jpg")

        updated = generate_missing_author_fields(store, store.get_author(author_id), llm=llm, photo_sourcer=sourcer)

        assert updated.description == "Known."
        assert updated.profile_url == "/p.jpg"
        assert llm.prompts == []
        sourcer.source.assert_not_called()

    def test_failures_leave_empty_fields(self, store) -> None:
        author_id = store.create_author({"name": "Seneca"})
        updated = generate_missing_author_fields(
            store, store.get_author(author_id), llm=FakeLLM(), photo_sourcer=_sourcer(None)
        )

        assert not updated.description
        assert not updated.profile_url
        assert not updated.is_complete
