"""Shared fixtures: a deterministic ``Settings`` and small HTML builders."""

from __future__ import annotations

from pathlib import Path

import pytest

from search_index.config import Settings

SITE_ROOT = "https://gallery.test"
SITEMAP_URL = f"{SITE_ROOT}/sitemap.xml"


def make_settings(tmp_path: Path | None = None, **overrides) -> Settings:
    values = dict(
        site_root=SITE_ROOT,
        sitemap_url=SITEMAP_URL,
        path_prefix="/jeansellem/",
        site_tag="jeansellem",
        page_limit=None,
        max_chars_per_record=18000,
        concurrency=3,
        fetch_timeout=5.0,
        user_agent="test-bot/1.0",
        output_dir=tmp_path or Path("docs"),
        progress_every=20,
        log_level="INFO",
    )
    values.update(overrides)
    return Settings(**values)


def sitemap_xml(*locs: str) -> str:
    entries = "".join(f"<url><loc>{loc}</loc></url>" for loc in locs)
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">'
        f"{entries}</urlset>"
    )


def page_html(body: str, title: str = "Page", head: str = "") -> str:
    return f"<html><head><title>{title}</title>{head}</head><body>{body}</body></html>"


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return make_settings(tmp_path)
