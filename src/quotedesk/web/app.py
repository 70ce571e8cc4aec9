"""FastAPI application backing the QuoteDesk admin UI."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, Iterator, List

import httpx
from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel, Field

from quotedesk import __version__
from quotedesk.config import AppConfig
from quotedesk.enrichment.autofill import autofill_quote
from quotedesk.enrichment.generators import validate_url
from quotedesk.enrichment.llm import LLMClient, build_llm_client
from quotedesk.enrichment.photos import PhotoSourcer, PhotoStore, WikipediaClient, fetch_page
from quotedesk.enrichment.profiles import ensure_author_profile, generate_missing_author_fields
from quotedesk.errors import ConfigurationError, RecordNotFoundError
from quotedesk.export import export_filename, quotes_to_csv
from quotedesk.matching.duplicates import DuplicateCheck, DuplicateStatus, check_duplicate
from quotedesk.store.storage import SQLiteQuoteStore

LOGGER = logging.getLogger(__name__)

app = FastAPI(title="QuoteDesk", version=__version__)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


class QuotePayload(BaseModel):
    quote_text: str
    author: str = ""
    subjects: List[str] = Field(default_factory=list)
    author_link: str | None = None
    video_link: str | None = None
    contributed_by: str | None = None


class QuoteUpdatePayload(BaseModel):
    quote_text: str | None = None
    author: str | None = None
    subjects: List[str] | None = None
    author_link: str | None = None
    video_link: str | None = None
    contributed_by: str | None = None


class DuplicateCheckPayload(BaseModel):
    text: str
    threshold: float | None = Field(default=None, ge=0.0, le=1.0)


class AutofillPayload(BaseModel):
    quote_text: str


class SuperSubjectPayload(BaseModel):
    name: str
    subjects: List[str] = Field(default_factory=list)
    authors: List[str] = Field(default_factory=list)
    image: str | None = None
    id: str | None = None


def _config(db: Path | None = None) -> AppConfig:
    return AppConfig.from_env(db_path=db)


def _resolve_db_path(db: Path | None) -> Path:
    return _config(db).resolve_db_path(Path.cwd())


def _ensure_db_parent(db_path: Path) -> None:
    db_path.parent.mkdir(parents=True, exist_ok=True)


def _open_store(db: Path | None) -> SQLiteQuoteStore:
    resolved_db = _resolve_db_path(db)
    _ensure_db_parent(resolved_db)
    return SQLiteQuoteStore(resolved_db)


def get_llm_client() -> LLMClient:
    try:
        return build_llm_client(_config())
    except ConfigurationError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc


def get_http_client() -> Iterator[httpx.Client]:
    with httpx.Client(timeout=_config().http_timeout) as client:
        yield client


def _duplicate_payload(check: DuplicateCheck) -> Dict[str, Any]:
    match = check.match
    return {
        "status": check.status.value,
        "similarity": check.similarity,
        "match": (
            {
                "id": match.candidate.identifier,
                "quote_text": match.candidate.text,
                "author": match.candidate.attribution,
            }
            if match is not None
            else None
        ),
    }


@app.on_event("startup")
async def startup_event() -> None:
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")


# ----------------------------------------------------------------------
# Quotes
# ----------------------------------------------------------------------


@app.get("/quotes")
async def list_quotes(db: Path | None = None) -> dict[str, Any]:
    resolved_db = _resolve_db_path(db)
    if not resolved_db.exists():
        return {"quotes": []}

    store = SQLiteQuoteStore(resolved_db)
    try:
        quotes = store.list_quotes()
    finally:
        store.close()
    return {"quotes": [quote.to_dict() for quote in quotes]}


@app.post("/quotes/check-duplicate")
async def check_duplicate_quote(payload: DuplicateCheckPayload, db: Path | None = None) -> dict[str, Any]:
    if not payload.text.strip():
        raise HTTPException(status_code=400, detail="Empty quote text")

    config = _config(db)
    resolved_db = config.resolve_db_path(Path.cwd())
    if not resolved_db.exists():
        return _duplicate_payload(DuplicateCheck(status=DuplicateStatus.UNIQUE))

    store = SQLiteQuoteStore(resolved_db)
    try:
        candidates = store.candidates()
    finally:
        store.close()

    threshold = payload.threshold if payload.threshold is not None else config.similar_threshold
    result = await asyncio.to_thread(
        check_duplicate, payload.text, candidates, threshold, config.identical_threshold
    )
    return _duplicate_payload(result)


@app.get("/quotes/export")
async def export_quotes(db: Path | None = None) -> Response:
    resolved_db = _resolve_db_path(db)
    quotes = []
    if resolved_db.exists():
        store = SQLiteQuoteStore(resolved_db)
        try:
            quotes = store.list_quotes()
        finally:
            store.close()

    return Response(
        content=quotes_to_csv(quotes),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'},
    )


@app.post("/quotes", status_code=201)
async def create_quote(
    payload: QuotePayload,
    db: Path | None = None,
    http: httpx.Client = Depends(get_http_client),
) -> dict[str, Any]:
    if not payload.quote_text.strip():
        raise HTTPException(status_code=400, detail="Empty quote text")

    config = _config(db)
    store = _open_store(db)
    try:
        check = await asyncio.to_thread(
            check_duplicate,
            payload.quote_text,
            store.candidates(),
            config.similar_threshold,
            config.identical_threshold,
        )
        if check.blocks_submission:
            raise HTTPException(
                status_code=409,
                detail={"message": "Identical quote already exists", **_duplicate_payload(check)},
            )
        quote_id = store.create_quote(payload.model_dump())
        quote = store.get_quote(quote_id)
        if payload.author.strip():
            await asyncio.to_thread(
                ensure_author_profile,
                store,
                payload.author,
                wikipedia=WikipediaClient(http),
                photo_sourcer=PhotoSourcer(http, PhotoStore(config.photos_dir)),
            )
    finally:
        store.close()

    response: dict[str, Any] = {"status": "ok", "quote": quote.to_dict() if quote else None}
    if check.status is DuplicateStatus.SIMILAR:
        response["warning"] = _duplicate_payload(check)
    return response


@app.get("/quotes/{quote_id}")
async def get_quote(quote_id: str, db: Path | None = None) -> dict[str, Any]:
    resolved_db = _resolve_db_path(db)
    if not resolved_db.exists():
        raise HTTPException(status_code=404, detail="Database not found")

    store = SQLiteQuoteStore(resolved_db)
    try:
        quote = store.get_quote(quote_id)
    finally:
        store.close()
    if quote is None:
        raise HTTPException(status_code=404, detail=f"Quote {quote_id} not found")
    return {"quote": quote.to_dict()}


@app.patch("/quotes/{quote_id}")
async def update_quote(quote_id: str, payload: QuoteUpdatePayload, db: Path | None = None) -> dict[str, Any]:
    resolved_db = _resolve_db_path(db)
    if not resolved_db.exists():
        raise HTTPException(status_code=404, detail="Database not found")

    store = SQLiteQuoteStore(resolved_db)
    try:
        store.update_quote(quote_id, payload.model_dump(exclude_none=True))
        quote = store.get_quote(quote_id)
    except RecordNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    finally:
        store.close()
    return {"status": "ok", "quote": quote.to_dict() if quote else None}


@app.delete("/quotes/{quote_id}")
async def delete_quote(quote_id: str, db: Path | None = None) -> dict[str, Any]:
    resolved_db = _resolve_db_path(db)
    if not resolved_db.exists():
        raise HTTPException(status_code=404, detail="Database not found")

    store = SQLiteQuoteStore(resolved_db)
    try:
        deleted = store.delete_quote(quote_id)
    finally:
        store.close()
    if not deleted:
        raise HTTPException(status_code=404, detail=f"Quote {quote_id} not found")
    return {"status": "ok", "deleted_id": quote_id}


@app.post("/autofill")
async def autofill(
    payload: AutofillPayload,
    db: Path | None = None,
    llm: LLMClient = Depends(get_llm_client),
    http: httpx.Client = Depends(get_http_client),
) -> dict[str, Any]:
    if not payload.quote_text.strip():
        raise HTTPException(status_code=400, detail="Empty quote text")

    config = _config(db)
    store = _open_store(db)
    try:
        result = await asyncio.to_thread(
            autofill_quote,
            store,
            payload.quote_text,
            llm=llm,
            link_validator=lambda url: validate_url(http, url),
            threshold=config.similar_threshold,
            identical_threshold=config.identical_threshold,
        )
    finally:
        store.close()

    return {
        "duplicate": _duplicate_payload(result.duplicate),
        "skipped": result.skipped,
        "author": result.author,
        "subjects": result.subjects,
        "author_link": result.author_link,
        "video_link": result.video_link,
    }


# ----------------------------------------------------------------------
# Authors
# ----------------------------------------------------------------------


@app.get("/authors")
async def list_authors(db: Path | None = None) -> dict[str, Any]:
    resolved_db = _resolve_db_path(db)
    if not resolved_db.exists():
        return {"authors": []}

    store = SQLiteQuoteStore(resolved_db)
    try:
        authors = store.list_authors()
    finally:
        store.close()
    return {"authors": [author.to_dict() for author in authors]}


@app.post("/authors/{author_id}/generate")
async def generate_author_fields(
    author_id: str,
    db: Path | None = None,
    llm: LLMClient = Depends(get_llm_client),
    http: httpx.Client = Depends(get_http_client),
) -> dict[str, Any]:
    config = _config(db)
    resolved_db = config.resolve_db_path(Path.cwd())
    if not resolved_db.exists():
        raise HTTPException(status_code=404, detail="Database not found")

    store = SQLiteQuoteStore(resolved_db)
    try:
        author = store.get_author(author_id)
        if author is None:
            raise HTTPException(status_code=404, detail=f"Author {author_id} not found")
        sourcer = PhotoSourcer(http, PhotoStore(config.photos_dir), llm=llm)
        updated = await asyncio.to_thread(
            generate_missing_author_fields, store, author, llm=llm, photo_sourcer=sourcer
        )
    finally:
        store.close()
    return {"status": "ok", "author": updated.to_dict()}


@app.delete("/authors/{author_id}")
async def delete_author(author_id: str, db: Path | None = None) -> dict[str, Any]:
    resolved_db = _resolve_db_path(db)
    if not resolved_db.exists():
        raise HTTPException(status_code=404, detail="Database not found")

    store = SQLiteQuoteStore(resolved_db)
    try:
        deleted = store.delete_author(author_id)
    finally:
        store.close()
    if not deleted:
        raise HTTPException(status_code=404, detail=f"Author {author_id} not found")
    return {"status": "ok", "deleted_id": author_id}


# ----------------------------------------------------------------------
# Subjects and super-subjects
# ----------------------------------------------------------------------


@app.get("/subjects")
async def list_subjects(db: Path | None = None) -> dict[str, Any]:
    resolved_db = _resolve_db_path(db)
    if not resolved_db.exists():
        return {"subjects": []}

    store = SQLiteQuoteStore(resolved_db)
    try:
        counts = store.subject_counts()
    finally:
        store.close()
    return {"subjects": [{"subject": item.subject, "count": item.count} for item in counts]}


@app.post("/subjects/repair")
async def repair_subjects(db: Path | None = None) -> dict[str, Any]:
    resolved_db = _resolve_db_path(db)
    if not resolved_db.exists():
        raise HTTPException(status_code=404, detail="Database not found")

    store = SQLiteQuoteStore(resolved_db)
    try:
        repaired = store.repair_subject_lists()
    finally:
        store.close()
    return {"status": "ok", "repaired_count": repaired}


@app.get("/super-subjects")
async def list_super_subjects(db: Path | None = None) -> dict[str, Any]:
    resolved_db = _resolve_db_path(db)
    if not resolved_db.exists():
        return {"super_subjects": []}

    store = SQLiteQuoteStore(resolved_db)
    try:
        items = store.list_super_subjects()
    finally:
        store.close()
    return {"super_subjects": [item.to_dict() for item in items]}


@app.post("/super-subjects")
async def save_super_subject(payload: SuperSubjectPayload, db: Path | None = None) -> dict[str, Any]:
    if not payload.name.strip():
        raise HTTPException(status_code=400, detail="Name is required")

    store = _open_store(db)
    try:
        record_id = store.upsert_super_subject(payload.model_dump(exclude={"id"}), payload.id)
        item = store.get_super_subject(record_id)
    finally:
        store.close()
    return {"status": "ok", "super_subject": item.to_dict() if item else None}


@app.delete("/super-subjects/{super_subject_id}")
async def delete_super_subject(super_subject_id: str, db: Path | None = None) -> dict[str, Any]:
    resolved_db = _resolve_db_path(db)
    if not resolved_db.exists():
        raise HTTPException(status_code=404, detail="Database not found")

    store = SQLiteQuoteStore(resolved_db)
    try:
        deleted = store.delete_super_subject(super_subject_id)
    finally:
        store.close()
    if not deleted:
        raise HTTPException(status_code=404, detail=f"Super-subject {super_subject_id} not found")
    return {"status": "ok", "deleted_id": super_subject_id}


# ----------------------------------------------------------------------
# Misc
# ----------------------------------------------------------------------


@app.get("/fetch-page")
async def fetch_page_proxy(
    url: str | None = None,
    http: httpx.Client = Depends(get_http_client),
) -> dict[str, Any]:
    if not url:
        raise HTTPException(status_code=400, detail="Missing url param")

    LOGGER.info("Fetching %s", url)
    try:
        page = await asyncio.to_thread(fetch_page, http, url)
    except httpx.HTTPError as exc:
        LOGGER.error("Error fetching %s: %s", url, exc)
        raise HTTPException(status_code=502, detail="Fetch error") from exc
    return {"html": page.html, "status": page.status}


@app.get("/stats")
async def stats(db: Path | None = None) -> dict[str, Any]:
    resolved_db = _resolve_db_path(db)
    if not resolved_db.exists():
        return {"quote_count": 0, "author_count": 0, "subject_count": 0}

    store = SQLiteQuoteStore(resolved_db)
    try:
        return store.get_stats()
    finally:
        store.close()
