"""Index build pipeline.

``build_index`` orchestrates one full build:

    sitemap → limiter(fetch → parse → title → extract → record) → sort → sink

Per-URL failures are caught at the task boundary, logged as a skip and never
reach sibling tasks.  Only a sitemap failure aborts the build.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable

import httpx

from search_index.config import Settings
from search_index.index.records import (
    BuildStats,
    IndexBundle,
    IndexMeta,
    IndexRecord,
    build_record,
    format_timestamp,
    section_counts,
    sort_records,
)
from search_index.index.sink import IndexSink
from search_index.limiter import ConcurrencyLimiter
from search_index.scraper.extractor import extract_content, parse_html, resolve_title
from search_index.scraper.fetcher import fetch_text, make_client
from search_index.scraper.sitemap import resolve_sitemap_urls

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


async def process_url(
    client: httpx.AsyncClient,
    url: str,
    settings: Settings,
) -> IndexRecord | None:
    """Fetch and index a single page.

    Returns ``None`` when the page has no indexable content.  Fetch and parse
    failures propagate to the caller.
    """
    html = await fetch_text(client, url, settings.fetch_timeout, settings.user_agent)
    soup = parse_html(html)

    title = resolve_title(soup, url)
    extraction = extract_content(soup)
    if not extraction.content:
        return None

    return build_record(
        url,
        title,
        extraction,
        path_prefix=settings.path_prefix,
        site_tag=settings.site_tag,
        max_chars=settings.max_chars_per_record,
    )


async def collect_records(
    client: httpx.AsyncClient,
    urls: list[str],
    settings: Settings,
) -> tuple[list[IndexRecord], BuildStats]:
    """Run :func:`process_url` for every URL through a concurrency limiter.

    Records are returned in completion order; the caller sorts them.
    """
    limiter = ConcurrencyLimiter(settings.concurrency)
    stats = BuildStats(total=len(urls))
    records: list[IndexRecord] = []

    def _report_progress() -> None:
        every = settings.progress_every
        if (every and stats.done % every == 0) or stats.done == stats.total:
            logger.info(
                "Progress: %d/%d pages (%d records, %d skipped)",
                stats.done, stats.total, stats.records, stats.skipped,
            )

    async def _task(url: str) -> None:
        try:
            record = await limiter.run(process_url, client, url, settings)
        except Exception as exc:
            stats.skipped += 1
            logger.warning("Skip %s: %s", url, exc)
            logger.debug("Skip traceback for %s", url, exc_info=True)
        else:
            if record is None:
                stats.empty += 1
                logger.debug("No indexable content at %s", url)
            else:
                stats.records += 1
                records.append(record)
        finally:
            stats.done += 1
            _report_progress()

    await asyncio.gather(*(_task(url) for url in urls))
    if not urls:
        _report_progress()
    return records, stats


def _warn_on_duplicate_ids(records: list[IndexRecord]) -> None:
    seen: set[str] = set()
    for record in records:
        if record.id in seen:
            logger.warning("Duplicate record id %s (%s)", record.id, record.url)
        seen.add(record.id)


def assemble_bundle(
    records: list[IndexRecord],
    settings: Settings,
    built_at: datetime,
) -> IndexBundle:
    """Sort *records* by URL and attach the build metadata."""
    ordered = sort_records(records)
    _warn_on_duplicate_ids(ordered)
    meta = IndexMeta(
        built_at=format_timestamp(built_at),
        site_root=settings.site_root,
        sitemap=settings.sitemap_url,
        count=len(ordered),
        sections=section_counts(ordered),
    )
    return IndexBundle(records=ordered, meta=meta)


async def build_index(
    settings: Settings,
    sink: IndexSink,
    client: httpx.AsyncClient | None = None,
    clock: Clock = _utcnow,
) -> IndexBundle:
    """Run a full build and hand the result to *sink*.

    Args:
        settings: Build configuration.
        sink: Receives the sorted bundle once every task has settled.
        client: Optional shared HTTP client; one is created (and closed) when
            omitted.
        clock: Source of the ``built_at`` timestamp.

    Raises:
        SitemapError: The sitemap could not be fetched or parsed.
    """
    owns_client = client is None
    if client is None:
        client = make_client(settings.user_agent, settings.fetch_timeout)

    try:
        urls = await resolve_sitemap_urls(client, settings)
        records, stats = await collect_records(client, urls, settings)
    finally:
        if owns_client:
            await client.aclose()

    bundle = assemble_bundle(records, settings, clock())
    logger.info(
        "Build complete: %d records from %d pages (%d skipped, %d without content)",
        stats.records, stats.total, stats.skipped, stats.empty,
    )
    sink.write(bundle)
    return bundle
