"""Search-index CLI: entry-point for building the gallery search index.

Usage:
    python cli/main.py --help

Commands:
    build    → crawl the sitemap section and write the index files
    sitemap  → list the URLs the build would crawl
    extract  → fetch one page and show what would be indexed
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from search_index.xxx import
# ...` works when the CLI is invoked as `python cli/main.py` from any working
# directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import asyncio
import dataclasses
import logging
from typing import Optional

import typer

from search_index.config import Settings, settings
from search_index.errors import FetchError, SitemapError
from search_index.index.assembler import build_index
from search_index.index.sink import FileIndexSink
from search_index.logging_config import setup_logging

app = typer.Typer(
    name="search-index",
    help="Build the static search index for a gallery site section.",
    no_args_is_help=True,
)

logger = logging.getLogger("search_index.cli")


def _with_overrides(base: Settings, **overrides) -> Settings:
    """Return *base* with every non-``None`` override applied."""
    changes = {k: v for k, v in overrides.items() if v is not None}
    return dataclasses.replace(base, **changes) if changes else base


# ---------------------------------------------------------------------------
# build
# ---------------------------------------------------------------------------
@app.command("build")
def build(
    out_dir: Optional[Path] = typer.Option(None, "--out-dir", help="Output directory."),
    limit: Optional[int] = typer.Option(None, "--limit", help="Index at most N pages."),
    concurrency: Optional[int] = typer.Option(None, "--concurrency", help="Parallel fetches."),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Per-page timeout (s)."),
    sitemap_url: Optional[str] = typer.Option(None, "--sitemap-url", help="Sitemap URL."),
    prefix: Optional[str] = typer.Option(None, "--prefix", help="Path prefix to index."),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level."),
) -> None:
    """Crawl the sitemap section and write the JS index and metadata files."""
    cfg = _with_overrides(
        settings,
        output_dir=out_dir,
        page_limit=limit,
        concurrency=concurrency,
        fetch_timeout=timeout,
        sitemap_url=sitemap_url,
        path_prefix=prefix,
        log_level=log_level,
    )
    setup_logging(cfg.log_level)

    sink = FileIndexSink(
        cfg.output_dir,
        index_filename=cfg.index_filename,
        meta_filename=cfg.meta_filename,
        global_name=cfg.index_global,
    )
    typer.echo(f"[build] Sitemap: {cfg.sitemap_url}  prefix={cfg.path_prefix!r}")
    try:
        bundle = asyncio.run(build_index(cfg, sink))
    except SitemapError:
        logger.exception("Build aborted")
        raise typer.Exit(1)

    typer.echo(f"[build] Wrote: {sink.index_path} ({bundle.meta.count} records)")
    for section, count in bundle.meta.sections.items():
        typer.echo(f"  {section:<8} {count}")


# ---------------------------------------------------------------------------
# sitemap
# ---------------------------------------------------------------------------
@app.command("sitemap")
def sitemap(
    limit: Optional[int] = typer.Option(None, "--limit", help="List at most N URLs."),
    sitemap_url: Optional[str] = typer.Option(None, "--sitemap-url", help="Sitemap URL."),
    prefix: Optional[str] = typer.Option(None, "--prefix", help="Path prefix to keep."),
) -> None:
    """List the sitemap URLs a build would crawl, in build order."""
    from search_index.scraper import make_client, resolve_sitemap_urls

    cfg = _with_overrides(settings, page_limit=limit, sitemap_url=sitemap_url, path_prefix=prefix)
    setup_logging(cfg.log_level)

    async def _run() -> list[str]:
        async with make_client(cfg.user_agent, cfg.fetch_timeout) as client:
            return await resolve_sitemap_urls(client, cfg)

    try:
        urls = asyncio.run(_run())
    except SitemapError as exc:
        typer.echo(f"[sitemap] {exc}", err=True)
        raise typer.Exit(1)

    for url in urls:
        typer.echo(url)
    typer.echo(f"[sitemap] {len(urls)} URL(s)", err=True)


# ---------------------------------------------------------------------------
# extract
# ---------------------------------------------------------------------------
@app.command("extract")
def extract(
    url: str = typer.Option(..., help="Page URL to extract."),
) -> None:
    """Fetch one page and print the title, section and indexable text."""
    from search_index.scraper import (
        extract_content,
        fetch_page,
        make_client,
        parse_html,
        resolve_title,
    )

    setup_logging(settings.log_level)

    async def _run():
        async with make_client(settings.user_agent, settings.fetch_timeout) as client:
            return await fetch_page(client, url, settings.fetch_timeout, settings.user_agent)

    typer.echo(f"[extract] Fetching {url!r} …")
    try:
        raw = asyncio.run(_run())
    except FetchError as exc:
        typer.echo(f"[extract] {exc}", err=True)
        raise typer.Exit(1)

    soup = parse_html(raw.html)
    title = resolve_title(soup, url)
    result = extract_content(soup)

    typer.echo(f"[extract] HTTP {raw.status_code}")
    typer.echo(f"[extract] Title   : {title}")
    typer.echo(f"[extract] Section : {result.section.value}")
    typer.echo(f"[extract] Chars   : {len(result.content)}")
    typer.echo("")
    typer.echo(result.content or "(no indexable content)")


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
