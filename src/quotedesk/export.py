"""CSV export of the quote collection."""

from __future__ import annotations

import csv
import io
from datetime import date
from typing import Iterable

from quotedesk.models import Quote

CSV_HEADERS = (
    "ID",
    "Author",
    "Quote Text",
    "Subjects",
    "Author Link",
    "Video Link",
    "Contributed By",
    "Created At",
    "Updated At",
)


def quotes_to_csv(quotes: Iterable[Quote]) -> str:
    """Render quotes as CSV text; subjects are joined with ``"; "``."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for quote in quotes:
        writer.writerow(
            (
                quote.id,
                quote.author,
                quote.quote_text,
                "; ".join(quote.subjects),
                quote.author_link or "",
                quote.video_link or "",
                quote.contributed_by or "",
                quote.created_at or "",
                quote.updated_at or "",
            )
        )
    return buffer.getvalue().rstrip("\n")


def export_filename(today: date | None = None) -> str:
    today = today or date.today()
    return f"quotes_export_{today.isoformat()}.csv"
