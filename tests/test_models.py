"""Tests for core data models."""

from __future__ import annotations

from quotedesk.models import Author, Quote, SubjectCount, SuperSubject


class TestQuote:
    """Test Quote dataclass."""

    def test_defaults(self) -> None:
        quote = Quote(id="1", author="Lao Tzu", quote_text="The journey of a thousand miles...")

        assert quote.subjects == []
        assert quote.author_link is None
        assert quote.created_at is None

    def test_subjects_not_shared(self) -> None:
        first = Quote(id="1", author="A", quote_text="a")
        second = Quote(id="2", author="B", quote_text="b")
        first.subjects.append("life")

        assert second.subjects == []

    def test_to_dict(self) -> None:
        quote = Quote(id="1", author="A", quote_text="a", subjects=["x"])
        data = quote.to_dict()

        assert data["quote_text"] == "a"
        assert data["subjects"] == ["x"]
        assert set(data) >= {"id", "author", "video_link", "contributed_by", "updated_at"}

    def test_equality(self) -> None:
        assert Quote(id="1", author="A", quote_text="a") == Quote(id="1", author="A", quote_text="a")


class TestAuthor:
    """Test Author dataclass."""

    def test_is_complete(self) -> None:
        assert not Author(id="1", name="A").is_complete
        assert not Author(id="1", name="A", description="bio").is_complete
        assert Author(id="1", name="A", description="bio", profile_url="/p.jpg").is_complete


class TestSuperSubject:
    """Test SuperSubject dataclass."""

    def test_to_dict(self) -> None:
        item = SuperSubject(id="Hope", name="Hope", subjects=["hope"], authors=["Emily Dickinson"])
        assert item.to_dict()["authors"] == ["Emily Dickinson"]


def test_subject_count() -> None:
    assert SubjectCount(subject="life", count=3).count == 3
