"""Application configuration defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from quotedesk.matching.duplicates import DEFAULT_SIMILAR_THRESHOLD, IDENTICAL_THRESHOLD

DEFAULT_LLM_MODEL = "gpt-4o-mini"


def _get_default_db_path() -> Path:
    """Get the default database path, preferring a local data/ directory."""
    local_db = Path("data/quotedesk.db")
    if local_db.exists():
        return local_db
    return Path.home() / "Documents" / "QuoteDesk" / "quotedesk.db"


@dataclass(slots=True)
class AppConfig:
    db_path: Path | None = None
    photos_dir: Path | None = None
    similar_threshold: float = DEFAULT_SIMILAR_THRESHOLD
    identical_threshold: float = IDENTICAL_THRESHOLD
    llm_model: str = DEFAULT_LLM_MODEL
    llm_temperature: float = 0.3
    llm_api_key: str | None = None
    llm_base_url: str | None = None
    http_timeout: float = 10.0
    bulk_concurrency: int = 4

    def __post_init__(self) -> None:
        if self.db_path is None:
            self.db_path = _get_default_db_path()
        if self.photos_dir is None:
            self.photos_dir = Path(self.db_path).parent / "author_photos"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides) -> "AppConfig":
        """Build a config from environment variables; explicit overrides win."""
        env = os.environ if environ is None else environ
        values: dict = {}
        if env.get("QUOTEDESK_DB"):
            values["db_path"] = Path(env["QUOTEDESK_DB"])
        if env.get("QUOTEDESK_PHOTOS_DIR"):
            values["photos_dir"] = Path(env["QUOTEDESK_PHOTOS_DIR"])
        if env.get("QUOTEDESK_LLM_MODEL"):
            values["llm_model"] = env["QUOTEDESK_LLM_MODEL"]
        values["llm_api_key"] = env.get("OPENAI_API_KEY") or None
        values["llm_base_url"] = env.get("OPENAI_BASE_URL") or None
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)

    def resolve_db_path(self, base_dir: Path | None = None) -> Path:
        if self.db_path is None:
            self.db_path = _get_default_db_path()
        if Path(self.db_path).is_absolute() or base_dir is None:
            return Path(self.db_path)
        return base_dir / self.db_path
