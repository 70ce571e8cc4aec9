"""Command line interface for QuoteDesk."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional

import httpx
import typer
from rich.console import Console
from rich.table import Table

from quotedesk.config import AppConfig
from quotedesk.enrichment.autofill import autofill_quote
from quotedesk.enrichment.bulk import run_bounded
from quotedesk.enrichment.generators import validate_url
from quotedesk.enrichment.llm import build_llm_client
from quotedesk.enrichment.photos import PhotoSourcer, PhotoStore, WikipediaClient
from quotedesk.enrichment.profiles import ensure_author_profile, generate_missing_author_fields
from quotedesk.errors import ConfigurationError
from quotedesk.export import export_filename, quotes_to_csv
from quotedesk.matching.duplicates import DuplicateCheck, DuplicateStatus, check_duplicate
from quotedesk.store.storage import SQLiteQuoteStore
from quotedesk.web.app import app as web_app


console = Console()
app = typer.Typer(help="QuoteDesk - manage a quote collection")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _ensure_db_parent(db_path: Path) -> None:
    db_path.parent.mkdir(parents=True, exist_ok=True)


def _load_config(db: Optional[Path]) -> AppConfig:
    return AppConfig.from_env(db_path=db)


def _open_existing_store(config: AppConfig) -> SQLiteQuoteStore:
    resolved_db = config.resolve_db_path(Path.cwd())
    if not resolved_db.exists():
        raise typer.BadParameter(f"Database not found: {resolved_db}")
    return SQLiteQuoteStore(resolved_db)


def _print_duplicate(check: DuplicateCheck) -> None:
    if check.match is None:
        console.print("[green]No similar quote found.[/green]")
        return
    candidate = check.match.candidate
    colour = "red" if check.status is DuplicateStatus.IDENTICAL else "yellow"
    label = "Identical quote already exists" if check.status is DuplicateStatus.IDENTICAL else "Possible duplicate"
    console.print(
        f"[{colour}]{label}[/{colour}] ({check.match.similarity:.0%} similar): "
        f"\"{candidate.text}\" - {candidate.attribution or 'unknown'} [dim]({candidate.identifier})[/dim]"
    )


@app.command()
def add(
    text: str = typer.Argument(..., help="Quote text"),
    author: str = typer.Option("", "--author", "-a", help="Quote author"),
    subject: List[str] = typer.Option([], "--subject", "-s", help="Subject tag (repeatable)"),
    contributed_by: Optional[str] = typer.Option(None, help="Contributor name"),
    force: bool = typer.Option(False, "--force", help="Store the quote even if a similar one exists"),
    profile: bool = typer.Option(True, "--profile/--no-profile", help="Look up the author's biography and photo"),
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Add a quote after checking for duplicates."""
    _setup_logging(verbose)
    if not text.strip():
        raise typer.BadParameter("Quote text is empty")

    config = _load_config(db)
    resolved_db = config.resolve_db_path(Path.cwd())
    _ensure_db_parent(resolved_db)

    store = SQLiteQuoteStore(resolved_db)
    try:
        check = check_duplicate(text, store.candidates(), config.similar_threshold, config.identical_threshold)
        if check.status is not DuplicateStatus.UNIQUE:
            _print_duplicate(check)
        if check.blocks_submission:
            raise typer.Exit(code=1)
        if check.status is DuplicateStatus.SIMILAR and not force:
            console.print("Use --force to add it anyway.")
            raise typer.Exit(code=1)

        quote_id = store.create_quote(
            {
                "quote_text": text.strip(),
                "author": author.strip(),
                "subjects": [s.strip().lower() for s in subject if s.strip()],
                "contributed_by": contributed_by,
            }
        )
        if profile and author.strip():
            with httpx.Client(timeout=config.http_timeout) as http:
                ensure_author_profile(
                    store,
                    author,
                    wikipedia=WikipediaClient(http),
                    photo_sourcer=PhotoSourcer(http, PhotoStore(config.photos_dir)),
                )
    finally:
        store.close()
    console.print(f"Added quote [bold]{quote_id}[/bold]")


@app.command()
def check(
    text: str = typer.Argument(..., help="Quote text to check"),
    threshold: Optional[float] = typer.Option(None, min=0.0, max=1.0, help="Similarity threshold"),
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
) -> None:
    """Check whether a quote is already in the collection."""
    config = _load_config(db)
    store = _open_existing_store(config)
    try:
        candidates = store.candidates()
    finally:
        store.close()

    cutoff = threshold if threshold is not None else config.similar_threshold
    _print_duplicate(check_duplicate(text, candidates, cutoff, config.identical_threshold))


@app.command("list")
def list_quotes(
    author: Optional[str] = typer.Option(None, "--author", "-a", help="Only quotes by this author"),
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
) -> None:
    """List stored quotes."""
    config = _load_config(db)
    store = _open_existing_store(config)
    try:
        quotes = store.list_quotes_by_author(author) if author else store.list_quotes()
    finally:
        store.close()

    if not quotes:
        console.print("[yellow]No quotes found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("ID")
    table.add_column("Author")
    table.add_column("Quote")
    table.add_column("Subjects")
    for quote in quotes:
        table.add_row(quote.id[:8], quote.author, quote.quote_text[:120], ", ".join(quote.subjects))
    console.print(table)


@app.command()
def export(
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="CSV file to write"),
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
) -> None:
    """Export all quotes as CSV."""
    config = _load_config(db)
    store = _open_existing_store(config)
    try:
        quotes = store.list_quotes()
    finally:
        store.close()

    target = output or Path(export_filename())
    target.write_text(quotes_to_csv(quotes) + "\n", encoding="utf-8")
    console.print(f"Exported {len(quotes)} quotes to [bold]{target}[/bold]")


@app.command()
def subjects(
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
) -> None:
    """Show every subject with the number of quotes using it."""
    config = _load_config(db)
    store = _open_existing_store(config)
    try:
        counts = store.subject_counts()
    finally:
        store.close()

    if not counts:
        console.print("[yellow]No subjects found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Subject")
    table.add_column("Quotes", justify="right")
    for item in counts:
        table.add_row(item.subject, str(item.count))
    console.print(table)


@app.command("repair-subjects")
def repair_subjects(
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
) -> None:
    """Split subject entries that were stored as one comma-separated string."""
    config = _load_config(db)
    store = _open_existing_store(config)
    try:
        repaired = store.repair_subject_lists()
    finally:
        store.close()
    console.print(f"Repaired {repaired} quotes.")


@app.command()
def autofill(
    text: str = typer.Argument(..., help="Quote text"),
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Suggest author, subjects and links for a quote using the LLM."""
    _setup_logging(verbose)
    config = _load_config(db)
    try:
        llm = build_llm_client(config)
    except ConfigurationError as exc:
        raise typer.BadParameter(str(exc)) from exc

    store = _open_existing_store(config)
    try:
        with httpx.Client(timeout=config.http_timeout) as http:
            result = autofill_quote(
                store,
                text,
                llm=llm,
                link_validator=lambda url: validate_url(http, url),
                threshold=config.similar_threshold,
                identical_threshold=config.identical_threshold,
            )
    finally:
        store.close()

    if result.skipped:
        _print_duplicate(result.duplicate)
        return
    if result.duplicate.status is DuplicateStatus.SIMILAR:
        _print_duplicate(result.duplicate)

    table = Table(show_header=False)
    table.add_row("Author", result.author)
    table.add_row("Subjects", ", ".join(result.subjects))
    table.add_row("Author link", result.author_link)
    table.add_row("Video link", result.video_link)
    console.print(table)


@app.command("enrich-authors")
def enrich_authors(
    concurrency: int = typer.Option(AppConfig().bulk_concurrency, min=1, help="Number of concurrent workers"),
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Generate missing descriptions and photos for every incomplete author."""
    _setup_logging(verbose)
    config = _load_config(db)
    try:
        llm = build_llm_client(config)
    except ConfigurationError as exc:
        raise typer.BadParameter(str(exc)) from exc

    store = _open_existing_store(config)
    try:
        pending = [author for author in store.list_authors() if not author.is_complete]
        if not pending:
            console.print("[green]All authors are complete.[/green]")
            return

        console.print(f"Enriching {len(pending)} authors with {concurrency} workers...")
        with httpx.Client(timeout=config.http_timeout) as http:
            sourcer = PhotoSourcer(http, PhotoStore(config.photos_dir), llm=llm)
            stats = run_bounded(
                pending,
                lambda author: generate_missing_author_fields(store, author, llm=llm, photo_sourcer=sourcer),
                concurrency=concurrency,
            )
    finally:
        store.close()

    console.print(f"Succeeded: {stats.succeeded}, failed: {stats.failed}")
    for index, error in sorted(stats.errors.items()):
        console.print(f"[red]{pending[index].name}[/red]: {error}")


@app.command()
def web(
    host: str = typer.Option("127.0.0.1", help="Host interface"),
    port: int = typer.Option(8000, help="Server port"),
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
) -> None:
    """Start the web interface."""
    try:
        import uvicorn
    except ImportError as exc:  # pragma: no cover
        raise typer.BadParameter(
            "uvicorn is not installed. Install the web extras with \"python -m pip install '.[web]'\""
        ) from exc

    resolved_db = _load_config(db).resolve_db_path(Path.cwd())
    if db is not None:
        os.environ["QUOTEDESK_DB"] = str(resolved_db)
    if not resolved_db.exists():
        console.print("[yellow]Warning: database not found, it will be created on first write.[/yellow]")

    console.print(f"Starting web interface on http://{host}:{port} (database: {resolved_db})")
    uvicorn.run(
        web_app,
        host=host,
        port=port,
        reload=False,
        log_level="info",
    )


def main() -> None:
    app()


if __name__ == "__main__":
    main()
