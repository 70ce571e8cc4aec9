"""Shared fixtures for QuoteDesk tests."""

from __future__ import annotations

import io
from pathlib import Path
from typing import List

import pytest
from PIL import Image

from quotedesk.errors import EnrichmentError
from quotedesk.store.storage import SQLiteQuoteStore


class FakeLLM:
    """Scripted stand-in for the chat client; replies are consumed in order."""

    def __init__(self, *replies) -> None:
        self.replies = list(replies)
        self.prompts: List[str] = []

    def complete(self, prompt: str, *, temperature: float | None = None) -> str:
        self.prompts.append(prompt)
        if not self.replies:
            raise EnrichmentError("no scripted reply left")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


def make_image_bytes(width: int = 800, height: int = 400, fmt: str = "PNG") -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color=(200, 30, 30)).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "quotes.db"


@pytest.fixture
def store(db_path: Path):
    """Create a temporary quote store."""
    quote_store = SQLiteQuoteStore(db_path)
    yield quote_store
    quote_store.close()
