"""Centralised settings for the search-index builder.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).

``Settings`` is frozen: components receive it explicitly and CLI overrides
produce a new instance through :func:`dataclasses.replace`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (one level up from this package)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


def _optional_int(name: str) -> int | None:
    raw = os.environ.get(name, "").strip()
    return int(raw) if raw else None


@dataclass(frozen=True)
class Settings:
    # ------------------------------------------------------------------
    # Site / sitemap
    # ------------------------------------------------------------------
    site_root: str = field(
        default_factory=lambda: os.environ.get(
            "SITE_ROOT", "https://www.raphaelleonardlevy.com"
        )
    )
    # Empty means "<site_root>/sitemap.xml", filled in by __post_init__.
    sitemap_url: str = field(
        default_factory=lambda: os.environ.get("SITEMAP_URL", "")
    )
    path_prefix: str = field(
        default_factory=lambda: os.environ.get("PATH_PREFIX", "/jeansellem/")
    )
    site_tag: str = field(
        default_factory=lambda: os.environ.get("SITE_TAG", "jeansellem")
    )
    page_limit: int | None = field(
        default_factory=lambda: _optional_int("PAGE_LIMIT")
    )

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------
    max_chars_per_record: int = field(
        default_factory=lambda: int(os.environ.get("MAX_CHARS_PER_RECORD", "18000"))
    )

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------
    concurrency: int = field(
        default_factory=lambda: int(os.environ.get("CONCURRENCY", "8"))
    )
    fetch_timeout: float = field(
        default_factory=lambda: float(os.environ.get("FETCH_TIMEOUT", "25.0"))
    )
    user_agent: str = field(
        default_factory=lambda: os.environ.get(
            "USER_AGENT", "rll-search-index-bot/1.0 (+github actions)"
        )
    )

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------
    output_dir: Path = field(
        default_factory=lambda: Path(os.environ.get("OUTPUT_DIR", "docs"))
    )
    index_filename: str = field(
        default_factory=lambda: os.environ.get("INDEX_FILENAME", "index-jeansellem.js")
    )
    meta_filename: str = field(
        default_factory=lambda: os.environ.get("META_FILENAME", "index-meta.json")
    )
    index_global: str = field(
        default_factory=lambda: os.environ.get("INDEX_GLOBAL", "window.__RLL_INDEX__")
    )

    # ------------------------------------------------------------------
    # Logging / progress
    # ------------------------------------------------------------------
    progress_every: int = field(
        default_factory=lambda: int(os.environ.get("PROGRESS_EVERY", "20"))
    )
    log_level: str = field(
        default_factory=lambda: os.environ.get("LOG_LEVEL", "INFO")
    )

    def __post_init__(self) -> None:
        if not self.sitemap_url:
            object.__setattr__(
                self, "sitemap_url", f"{self.site_root.rstrip('/')}/sitemap.xml"
            )

    @property
    def index_path(self) -> Path:
        """Absolute path of the generated JS payload."""
        return self.output_dir.resolve() / self.index_filename

    @property
    def meta_path(self) -> Path:
        """Absolute path of the generated metadata document."""
        return self.output_dir.resolve() / self.meta_filename


# Module-level default; the CLI starts from this and overrides per flag:
#   from search_index.config import settings
settings = Settings()
