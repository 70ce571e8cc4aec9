"""Author photo and biography sourcing.

Photos are looked up on Wikipedia first, then on pages suggested by the LLM.
Whatever is found is centre-cropped to a 512x512 JPEG and written to the
local photo directory.
"""

from __future__ import annotations

import io
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict
from urllib.parse import quote as url_quote, urljoin

import httpx
from bs4 import BeautifulSoup
from PIL import Image, ImageOps

from quotedesk.enrichment.fallback import first_success
from quotedesk.enrichment.generators import parse_link_response
from quotedesk.enrichment.llm import LLMClient
from quotedesk.errors import EnrichmentError

LOGGER = logging.getLogger(__name__)

WIKIPEDIA_SUMMARY_URL = "https://en.wikipedia.org/api/rest_v1/page/summary/{title}"
MAX_PAGE_CHARS = 500_000
PHOTO_SIZE = 512

BROWSER_HEADERS: Dict[str, str] = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/115.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}

PORTRAIT_PROMPT = (
    "Provide ONLY one new URL (no markdown) to a web page that contains a clear portrait "
    "or headshot of {name}. Prefer official bio pages or reputable news outlets. "
    "Do not repeat a previous URL. If none found reply NONE."
)


@dataclass(slots=True)
class WikiSummary:
    description: str | None
    image_url: str | None


@dataclass(slots=True)
class PageFetch:
    html: str
    status: int


def photo_slug(name: str) -> str:
    """File-system safe, lower-case version of an author name."""
    return re.sub(r"[^a-z0-9]", "_", name, flags=re.IGNORECASE).lower()


def fetch_page(http: httpx.Client, url: str) -> PageFetch:
    """Fetch a page like a regular browser would; the body is truncated.

    Transport errors propagate as :class:`httpx.HTTPError`.
    """
    response = http.get(url, headers=BROWSER_HEADERS, follow_redirects=True)
    if response.status_code >= 400:
        LOGGER.warning("Upstream returned %s for %s", response.status_code, url)
    return PageFetch(html=response.text[:MAX_PAGE_CHARS], status=response.status_code)


def fetch_image(http: httpx.Client, url: str) -> bytes | None:
    """Download ``url`` if it serves an image."""
    try:
        response = http.get(url, follow_redirects=True)
    except httpx.HTTPError as exc:
        LOGGER.info("Image download failed for %s: %s", url, exc)
        return None
    if response.is_error:
        return None
    if not response.headers.get("content-type", "").startswith("image"):
        return None
    return response.content


def find_page_image(html: str, person_name: str, base_url: str | None = None) -> str | None:
    """Pick the most likely portrait on a page.

    Looks at ``og:image``, then ``twitter:image``, then the first ``<img>``
    whose alt text or source mentions the person.
    """
    soup = BeautifulSoup(html[:MAX_PAGE_CHARS], "html.parser")

    def meta_content(attr: str, value: str) -> str | None:
        tag = soup.find("meta", attrs={attr: re.compile(f"^{re.escape(value)}$", re.IGNORECASE)})
        content = tag.get("content") if tag else None
        return content or None

    source = meta_content("property", "og:image") or meta_content("name", "twitter:image")
    if source is None:
        lower = person_name.lower()
        for img in soup.find_all("img"):
            alt = (img.get("alt") or "").lower()
            src = img.get("src") or ""
            if src and (lower in alt or lower in src.lower()):
                source = src
                break

    if source and base_url:
        return urljoin(base_url, source)
    return source


def square_image(data: bytes, size: int = PHOTO_SIZE) -> bytes:
    """Centre-crop to a square and resize to ``size`` x ``size`` JPEG."""
    with Image.open(io.BytesIO(data)) as image:
        squared = ImageOps.fit(image.convert("RGB"), (size, size), centering=(0.5, 0.5))
        buffer = io.BytesIO()
        squared.save(buffer, format="JPEG", quality=90)
    return buffer.getvalue()


class WikipediaClient:
    """Reads page summaries from the Wikipedia REST API."""

    def __init__(self, http: httpx.Client) -> None:
        self.http = http

    def summary(self, name: str) -> WikiSummary | None:
        title = url_quote(name.strip().replace(" ", "_"), safe="")
        try:
            response = self.http.get(WIKIPEDIA_SUMMARY_URL.format(title=title), follow_redirects=True)
        except httpx.HTTPError as exc:
            LOGGER.info("Wikipedia lookup failed for %s: %s", name, exc)
            return None
        if response.is_error:
            return None

        try:
            data = response.json()
        except ValueError:
            LOGGER.info("Wikipedia returned a non-JSON summary for %s", name)
            return None
        extract = data.get("extract")
        description = extract.replace("\n", " ").strip() if extract else None
        image = data.get("originalimage") or data.get("thumbnail") or {}
        return WikiSummary(description=description or None, image_url=image.get("source"))


class PhotoStore:
    """Writes author photos below a local directory."""

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def save(self, author_name: str, data: bytes) -> str:
        self.directory.mkdir(parents=True, exist_ok=True)
        target = self.directory / f"{photo_slug(author_name)}.jpg"
        target.write_bytes(data)
        LOGGER.info("Saved photo for %s to %s", author_name, target)
        return str(target)


class PhotoSourcer:
    """Finds, squares and stores a portrait for an author."""

    def __init__(
        self,
        http: httpx.Client,
        photo_store: PhotoStore,
        *,
        llm: LLMClient | None = None,
        wikipedia: WikipediaClient | None = None,
        max_llm_attempts: int = 3,
    ) -> None:
        self.http = http
        self.photo_store = photo_store
        self.llm = llm
        self.wikipedia = wikipedia or WikipediaClient(http)
        self.max_llm_attempts = max_llm_attempts

    def source(self, name: str) -> str | None:
        """Return the stored photo location, or ``None`` if nothing was found."""
        url = first_success([self.from_wikipedia, self.from_suggested_page], name)
        if url is None:
            LOGGER.warning("Unable to find a photo for %s", name)
        return url

    def _store(self, name: str, data: bytes) -> str:
        return self.photo_store.save(name, square_image(data))

    def from_wikipedia(self, name: str) -> str | None:
        summary = self.wikipedia.summary(name)
        if summary is None or not summary.image_url:
            return None
        data = fetch_image(self.http, summary.image_url)
        return self._store(name, data) if data else None

    def from_suggested_page(self, name: str) -> str | None:
        if self.llm is None:
            return None

        for attempt in range(1, self.max_llm_attempts + 1):
            LOGGER.debug("Portrait page attempt %d for %s", attempt, name)
            try:
                reply = self.llm.complete(PORTRAIT_PROMPT.format(name=name), temperature=0.2)
            except EnrichmentError as exc:
                LOGGER.warning("Portrait page suggestion failed: %s", exc)
                continue
            page_url = parse_link_response(reply)
            if not page_url:
                continue
            try:
                page = fetch_page(self.http, page_url)
            except httpx.HTTPError as exc:
                LOGGER.info("Could not fetch %s: %s", page_url, exc)
                continue
            if page.status >= 400:
                continue
            image_url = find_page_image(page.html, name, base_url=page_url)
            if not image_url:
                continue
            data = fetch_image(self.http, image_url)
            if data is None:
                continue
            try:
                return self._store(name, data)
            except OSError as exc:
                LOGGER.warning("Could not process image %s: %s", image_url, exc)
        return None
