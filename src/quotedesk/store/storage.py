"""SQLite document store for quotes, authors and super-subjects."""

from __future__ import annotations

import json
import logging
import re
import sqlite3
import threading
import uuid
from collections import Counter
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Sequence

from quotedesk.errors import RecordNotFoundError
from quotedesk.matching.duplicates import CandidateRecord
from quotedesk.models import Author, Quote, SubjectCount, SuperSubject

LOGGER = logging.getLogger(__name__)

QUOTE_FIELDS = (
    "author",
    "quote_text",
    "subjects",
    "author_link",
    "video_link",
    "contributed_by",
)
AUTHOR_FIELDS = (
    "name",
    "profile_url",
    "description",
    "amazon_page",
    "amazon_affiliate",
)
SUPER_SUBJECT_FIELDS = ("name", "subjects", "authors", "image")
LIST_FIELDS = {"subjects", "authors"}

_NUMERIC_TOKEN = re.compile(r"^\d+$")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _new_id() -> str:
    return uuid.uuid4().hex


def _sanitize(data: Mapping[str, Any], allowed: Sequence[str]) -> Dict[str, Any]:
    """Drop unknown keys and ``None`` values, serialising list fields."""
    clean: Dict[str, Any] = {}
    for key, value in data.items():
        if key not in allowed or value is None:
            continue
        clean[key] = json.dumps(list(value), ensure_ascii=False) if key in LIST_FIELDS else value
    return clean


def _row_to_quote(row: sqlite3.Row) -> Quote:
    return Quote(
        id=row["id"],
        author=row["author"],
        quote_text=row["quote_text"],
        subjects=json.loads(row["subjects"]) if row["subjects"] else [],
        author_link=row["author_link"],
        video_link=row["video_link"],
        contributed_by=row["contributed_by"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _row_to_author(row: sqlite3.Row) -> Author:
    return Author(
        id=row["id"],
        name=row["name"],
        profile_url=row["profile_url"],
        description=row["description"],
        amazon_page=row["amazon_page"],
        amazon_affiliate=row["amazon_affiliate"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _row_to_super_subject(row: sqlite3.Row) -> SuperSubject:
    return SuperSubject(
        id=row["id"],
        name=row["name"],
        subjects=json.loads(row["subjects"]) if row["subjects"] else [],
        authors=json.loads(row["authors"]) if row["authors"] else [],
        image=row["image"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def split_subject_entry(entry: str) -> List[str]:
    """Split a comma/newline-joined subject string into clean lower-case subjects."""
    tokens = (token.strip().lower() for token in re.split(r"[,\n]", entry))
    return [token for token in tokens if token and not _NUMERIC_TOKEN.match(token)]


class SQLiteQuoteStore:
    """Persistence layer for the quote collection."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.RLock()
        self._conn.execute("PRAGMA journal_mode=WAL;")
        self._conn.execute("PRAGMA synchronous=NORMAL;")
        self._ensure_schema()

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn

    def close(self) -> None:
        self._conn.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        # Serialises writers when the store is shared with bulk worker threads.
        with self._lock:
            try:
                yield self._conn
                self._conn.commit()
            except Exception:
                self._conn.rollback()
                raise

    def _ensure_schema(self) -> None:
        with self.transaction() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS quotes (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    id TEXT NOT NULL UNIQUE,
                    author TEXT NOT NULL DEFAULT '',
                    quote_text TEXT NOT NULL,
                    subjects TEXT,
                    author_link TEXT,
                    video_link TEXT,
                    contributed_by TEXT,
                    created_at TEXT,
                    updated_at TEXT
                )
                """
            )
            conn.execute(
                """CREATE INDEX IF NOT EXISTS idx_quotes_author
                    ON quotes(author)
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS authors (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    id TEXT NOT NULL UNIQUE,
                    name TEXT NOT NULL,
                    profile_url TEXT,
                    description TEXT,
                    amazon_page TEXT,
                    amazon_affiliate TEXT,
                    created_at TEXT,
                    updated_at TEXT
                )
                """
            )
            conn.execute(
                """CREATE INDEX IF NOT EXISTS idx_authors_name
                    ON authors(name)
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS super_subjects (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    id TEXT NOT NULL UNIQUE,
                    name TEXT NOT NULL,
                    subjects TEXT,
                    authors TEXT,
                    image TEXT,
                    created_at TEXT,
                    updated_at TEXT
                )
                """
            )

    # ------------------------------------------------------------------
    # Generic helpers
    # ------------------------------------------------------------------

    def _insert(self, table: str, fields: Dict[str, Any], record_id: str | None = None) -> str:
        record_id = record_id or _new_id()
        timestamp = _now()
        payload = {**fields, "id": record_id, "created_at": timestamp, "updated_at": timestamp}
        columns = ", ".join(payload)
        placeholders = ", ".join("?" for _ in payload)
        self._conn.execute(
            f"INSERT INTO {table}({columns}) VALUES ({placeholders})",
            tuple(payload.values()),
        )
        return record_id

    def _update(self, table: str, record_id: str, fields: Dict[str, Any]) -> None:
        payload = {**fields, "updated_at": _now()}
        assignments = ", ".join(f"{column} = ?" for column in payload)
        with self.transaction() as conn:
            cursor = conn.execute(
                f"UPDATE {table} SET {assignments} WHERE id = ?",
                (*payload.values(), record_id),
            )
        if cursor.rowcount == 0:
            raise RecordNotFoundError(table, record_id)

    def _delete(self, table: str, record_id: str) -> bool:
        with self.transaction() as conn:
            cursor = conn.execute(f"DELETE FROM {table} WHERE id = ?", (record_id,))
        return cursor.rowcount > 0

    # ------------------------------------------------------------------
    # Quotes
    # ------------------------------------------------------------------

    def create_quote(self, data: Mapping[str, Any]) -> str:
        """Insert a quote and return its generated id."""
        fields = _sanitize(data, QUOTE_FIELDS)
        if "quote_text" not in fields:
            raise ValueError("quote_text is required")
        with self.transaction():
            return self._insert("quotes", fields)

    def batch_create_quotes(self, items: Sequence[Mapping[str, Any]]) -> List[str]:
        """Insert many quotes in one transaction; ids follow input order."""
        ids: List[str] = []
        with self.transaction():
            for data in items:
                fields = _sanitize(data, QUOTE_FIELDS)
                if "quote_text" not in fields:
                    raise ValueError("quote_text is required")
                ids.append(self._insert("quotes", fields))
        LOGGER.info("Created %d quotes", len(ids))
        return ids

    def get_quote(self, quote_id: str) -> Quote | None:
        row = self._conn.execute("SELECT * FROM quotes WHERE id = ?", (quote_id,)).fetchone()
        return _row_to_quote(row) if row else None

    def list_quotes(self) -> List[Quote]:
        rows = self._conn.execute("SELECT * FROM quotes ORDER BY seq").fetchall()
        return [_row_to_quote(row) for row in rows]

    def list_quotes_by_author(self, author: str) -> List[Quote]:
        rows = self._conn.execute(
            "SELECT * FROM quotes WHERE author = ? ORDER BY seq", (author,)
        ).fetchall()
        return [_row_to_quote(row) for row in rows]

    def update_quote(self, quote_id: str, data: Mapping[str, Any]) -> None:
        """Shallow-merge ``data`` into the stored quote."""
        self._update("quotes", quote_id, _sanitize(data, QUOTE_FIELDS))

    def delete_quote(self, quote_id: str) -> bool:
        return self._delete("quotes", quote_id)

    def candidates(self) -> List[CandidateRecord]:
        """Stored quotes as duplicate-check candidates, in insertion order."""
        return [CandidateRecord.from_quote(quote) for quote in self.list_quotes()]

    # ------------------------------------------------------------------
    # Authors
    # ------------------------------------------------------------------

    def create_author(self, data: Mapping[str, Any]) -> str:
        fields = _sanitize(data, AUTHOR_FIELDS)
        if not fields.get("name"):
            raise ValueError("name is required")
        fields["name"] = fields["name"].strip()
        with self.transaction():
            return self._insert("authors", fields)

    def get_author(self, author_id: str) -> Author | None:
        row = self._conn.execute("SELECT * FROM authors WHERE id = ?", (author_id,)).fetchone()
        return _row_to_author(row) if row else None

    def find_author_by_name(self, name: str) -> Author | None:
        row = self._conn.execute(
            "SELECT * FROM authors WHERE name = ? ORDER BY seq LIMIT 1", (name.strip(),)
        ).fetchone()
        return _row_to_author(row) if row else None

    def list_authors(self) -> List[Author]:
        rows = self._conn.execute("SELECT * FROM authors ORDER BY name COLLATE NOCASE").fetchall()
        return [_row_to_author(row) for row in rows]

    def update_author(self, author_id: str, data: Mapping[str, Any]) -> None:
        self._update("authors", author_id, _sanitize(data, AUTHOR_FIELDS))

    def delete_author(self, author_id: str) -> bool:
        return self._delete("authors", author_id)

    # ------------------------------------------------------------------
    # Super-subjects
    # ------------------------------------------------------------------

    def upsert_super_subject(self, data: Mapping[str, Any], super_subject_id: str | None = None) -> str:
        """Create or replace a super-subject; the id defaults to its name."""
        fields = _sanitize(data, SUPER_SUBJECT_FIELDS)
        if not fields.get("name"):
            raise ValueError("name is required")
        record_id = super_subject_id or fields["name"]
        with self.transaction() as conn:
            existing = conn.execute(
                "SELECT id FROM super_subjects WHERE id = ?", (record_id,)
            ).fetchone()
            if existing is None:
                return self._insert("super_subjects", fields, record_id=record_id)
            payload = {**fields, "updated_at": _now()}
            assignments = ", ".join(f"{column} = ?" for column in payload)
            conn.execute(
                f"UPDATE super_subjects SET {assignments} WHERE id = ?",
                (*payload.values(), record_id),
            )
        return record_id

    def get_super_subject(self, super_subject_id: str) -> SuperSubject | None:
        row = self._conn.execute(
            "SELECT * FROM super_subjects WHERE id = ?", (super_subject_id,)
        ).fetchone()
        return _row_to_super_subject(row) if row else None

    def list_super_subjects(self) -> List[SuperSubject]:
        rows = self._conn.execute("SELECT * FROM super_subjects ORDER BY seq").fetchall()
        return [_row_to_super_subject(row) for row in rows]

    def delete_super_subject(self, super_subject_id: str) -> bool:
        return self._delete("super_subjects", super_subject_id)

    # ------------------------------------------------------------------
    # Subjects
    # ------------------------------------------------------------------

    def subject_counts(self) -> List[SubjectCount]:
        """Number of quotes tagged with each subject, sorted by subject."""
        counter: Counter[str] = Counter()
        for row in self._conn.execute("SELECT subjects FROM quotes"):
            if not row["subjects"]:
                continue
            for subject in json.loads(row["subjects"]):
                if isinstance(subject, str) and subject.strip():
                    counter[subject.strip()] += 1
        return [SubjectCount(subject=s, count=c) for s, c in sorted(counter.items())]

    def all_subjects(self) -> List[str]:
        return [item.subject for item in self.subject_counts()]

    def repair_subject_lists(self) -> int:
        """Split single comma-joined subject entries into proper lists.

        Returns the number of quotes rewritten.
        """
        repaired = 0
        with self.transaction() as conn:
            rows = conn.execute("SELECT id, subjects FROM quotes").fetchall()
            for row in rows:
                subjects = json.loads(row["subjects"]) if row["subjects"] else []
                if len(subjects) != 1 or not isinstance(subjects[0], str) or "," not in subjects[0]:
                    continue
                fixed = split_subject_entry(subjects[0])
                if len(fixed) > 1:
                    conn.execute(
                        "UPDATE quotes SET subjects = ?, updated_at = ? WHERE id = ?",
                        (json.dumps(fixed, ensure_ascii=False), _now(), row["id"]),
                    )
                    repaired += 1
        if repaired:
            LOGGER.info("Repaired subject lists on %d quotes", repaired)
        return repaired

    def get_stats(self) -> Dict[str, int]:
        quote_count = self._conn.execute("SELECT COUNT(*) FROM quotes").fetchone()[0]
        author_count = self._conn.execute("SELECT COUNT(*) FROM authors").fetchone()[0]
        return {
            "quote_count": quote_count,
            "author_count": author_count,
            "subject_count": len(self.subject_counts()),
        }
