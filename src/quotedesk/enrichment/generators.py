"""LLM-assisted metadata autofill for quotes and authors.

Every generator degrades to a fixed fallback when the LLM call fails, so
callers can use the result directly in a form.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Callable, List, Sequence
from urllib.parse import quote as url_quote, urlparse

import httpx

from quotedesk.enrichment.llm import LLMClient
from quotedesk.errors import EnrichmentError

LOGGER = logging.getLogger(__name__)

UNKNOWN_AUTHOR = "Unknown Author"
INVALID_LINK = "INVALID_LINK"
MAX_SUBJECTS = 5
MIN_VALID_SUBJECTS = 3

_FENCE = re.compile(r"```(?:json)?\s*")
_URL = re.compile(r"https?://[^\s\"'<>]+", re.IGNORECASE)

AUTHOR_PROMPT = """You identify the authors of well-known quotes. Reply with the author's name only.

Rules:
- Reply with nothing but the author's name (e.g. "Maya Angelou", "Albert Einstein")
- No extra words, punctuation or formatting
- If you are not confident, reply "Unknown Author"
- Use the name the author is most commonly known by

Quote: "Be yourself; everyone else is already taken."
Author: Oscar Wilde

Quote: "The journey of a thousand miles begins with one step."
Author: Lao Tzu

Quote: {quote}
Author:"""

SUBJECTS_PROMPT = """You tag quotes with subjects chosen from an existing list.

Existing subjects: {subjects}

Pick exactly {count} subjects from that list that best fit the quote, most relevant first.
Reply with a JSON array of strings and nothing else. Never invent new subjects and
keep the exact spelling used in the list. If the list has fewer than {count}
entries, pick all of them.

Quote: "Life is what happens when you're busy making other plans."
Existing subjects: life, mindfulness, planning, present, spontaneity, wisdom
Selected: ["life", "planning", "mindfulness", "present", "spontaneity"]

Quote: {quote}
Existing subjects: {subjects}
Selected:"""

AUTHOR_LINK_PROMPT = """You find the best web page for an author. Reply with one URL or "no link".

Rules:
- Prefer the author's official website
- Otherwise use their Wikipedia page
- If neither exists reply "no link"
- No extra words or formatting

Author: Albert Einstein
Link: https://en.wikipedia.org/wiki/Albert_Einstein

Author: John Doe
Link: no link

Author: {name}
Link:"""

DESCRIPTION_PROMPT = "Write exactly 5 sentences describing the author {name}. {quotes}"


def _clean_response(text: str) -> str:
    return _FENCE.sub("", text).strip()


def _is_unknown(author_name: str) -> bool:
    return not author_name or not author_name.strip() or "unknown" in author_name.lower()


def is_valid_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def parse_author_response(text: str) -> str:
    """Extract an author name from a free-form LLM reply."""
    clean = _clean_response(text).replace('"', "").strip()
    if clean and len(clean) < 100 and "\n" not in clean:
        return clean

    for pattern in (r"Author:\s*(.+?)(?:\n|$)", r"^(.+?)(?:\n|$)"):
        match = re.search(pattern, clean, re.IGNORECASE)
        if match:
            author = match.group(1).strip()
            if 0 < len(author) < 100:
                return author

    return UNKNOWN_AUTHOR


def parse_subjects_response(text: str) -> List[str]:
    """Read a subject list from a JSON array reply, else a comma/newline list."""
    clean = _clean_response(text)
    start, end = clean.find("["), clean.rfind("]")
    if start != -1 and end != -1:
        try:
            parsed = json.loads(clean[start : end + 1])
        except json.JSONDecodeError as exc:
            LOGGER.warning("Subject reply is not valid JSON, splitting on commas: %s", exc)
        else:
            if isinstance(parsed, list):
                return [str(item).strip().lower() for item in parsed if str(item).strip()]

    tokens = (re.sub(r"[\"\[\]]", "", token).strip().lower() for token in re.split(r"[,\n]", clean))
    return [token for token in tokens if token][:MAX_SUBJECTS]


def parse_link_response(text: str) -> str:
    """Return the first well-formed URL in the reply, or ``""``."""
    clean = _clean_response(text)
    if "no link" in clean.lower():
        return ""
    for match in _URL.finditer(clean):
        url = match.group(0).rstrip(".,;)")
        if is_valid_url(url):
            return url
    return ""


def generate_author(client: LLMClient, quote: str) -> str:
    """Ask the LLM who said ``quote``; ``Unknown Author`` on failure."""
    try:
        reply = client.complete(AUTHOR_PROMPT.format(quote=quote))
    except EnrichmentError as exc:
        LOGGER.error("Author generation failed: %s", exc)
        return UNKNOWN_AUTHOR
    return parse_author_response(reply)


def generate_subjects(client: LLMClient, quote: str, existing_subjects: Sequence[str]) -> List[str]:
    """Select up to five subjects for ``quote`` from ``existing_subjects``.

    Suggestions outside the existing list are discarded. When fewer than three
    usable suggestions remain the list is padded from ``existing_subjects``.
    """
    existing = list(existing_subjects)
    prompt = SUBJECTS_PROMPT.format(quote=quote, subjects=", ".join(existing), count=MAX_SUBJECTS)
    try:
        reply = client.complete(prompt)
    except EnrichmentError as exc:
        LOGGER.error("Subject generation failed: %s", exc)
        return existing[:MAX_SUBJECTS]

    selected = parse_subjects_response(reply)
    allowed = set(existing)
    valid = [subject for subject in selected if subject in allowed]
    if len(valid) >= MIN_VALID_SUBJECTS:
        final = valid[:MAX_SUBJECTS]
    else:
        padding = [subject for subject in existing if subject not in valid]
        final = valid + padding[: MAX_SUBJECTS - len(valid)]
    LOGGER.debug("Subject selection: selected=%s valid=%s final=%s", selected, valid, final)
    return final


def validate_url(http: httpx.Client, url: str) -> bool:
    """True when the URL answers at all; only transport failures count as invalid."""
    try:
        http.head(url, follow_redirects=True)
    except httpx.HTTPError as exc:
        LOGGER.info("URL validation failed for %s: %s", url, exc)
        return False
    return True


def generate_author_link(
    client: LLMClient,
    author_name: str,
    validator: Callable[[str], bool],
) -> str:
    """Find a home page for the author.

    Returns ``""`` when there is nothing to look up or no link was found, and
    :data:`INVALID_LINK` when the suggested URL does not respond.
    """
    if _is_unknown(author_name):
        return ""
    try:
        reply = client.complete(AUTHOR_LINK_PROMPT.format(name=author_name))
    except EnrichmentError as exc:
        LOGGER.error("Author link generation failed: %s", exc)
        return ""

    link = parse_link_response(reply)
    if not link:
        return ""
    if not validator(link):
        LOGGER.info("Suggested link for %s did not validate: %s", author_name, link)
        return INVALID_LINK
    return link


def generate_video_link(author_name: str) -> str:
    """YouTube search URL for the author, or ``""`` for unknown authors."""
    if _is_unknown(author_name):
        return ""
    return f"https://www.youtube.com/results?search_query={url_quote(author_name.strip(), safe='')}"


def generate_author_description(
    client: LLMClient, author_name: str, quotes: Sequence[str] = ()
) -> str | None:
    quotes_text = "Here are some of their quotes:\n" + "\n".join(quotes) if quotes else ""
    prompt = DESCRIPTION_PROMPT.format(name=author_name, quotes=quotes_text).strip()
    try:
        reply = client.complete(prompt, temperature=0.4)
    except EnrichmentError as exc:
        LOGGER.error("Description generation failed for %s: %s", author_name, exc)
        return None
    return " ".join(reply.split("\n")).strip() or None
