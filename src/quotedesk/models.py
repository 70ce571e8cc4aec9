"""Core QuoteDesk data models."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List


@dataclass(slots=True)
class Quote:
    """A stored quote and its attribution metadata."""

    id: str
    author: str
    quote_text: str
    subjects: List[str] = field(default_factory=list)
    author_link: str | None = None
    video_link: str | None = None
    contributed_by: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class Author:
    """Author profile attached to quotes by name."""

    id: str
    name: str
    profile_url: str | None = None
    description: str | None = None
    amazon_page: str | None = None
    amazon_affiliate: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @property
    def is_complete(self) -> bool:
        return bool(self.description) and bool(self.profile_url)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class SuperSubject:
    """A curated group of subjects and authors."""

    id: str
    name: str
    subjects: List[str] = field(default_factory=list)
    authors: List[str] = field(default_factory=list)
    image: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class SubjectCount:
    subject: str
    count: int
