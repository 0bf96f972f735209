"""Sitemap discovery: fetch, parse, filter to one section, sort."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from typing import Iterable
from urllib.parse import urlsplit

import httpx

from search_index.config import Settings
from search_index.errors import FetchError, SitemapError
from search_index.scraper.fetcher import fetch_text

logger = logging.getLogger(__name__)


def _local_name(tag: str) -> str:
    """Strip the ``{namespace}`` part of an ElementTree tag."""
    return tag.rsplit("}", 1)[-1]


def parse_sitemap(xml: str) -> list[str]:
    """Return every ``<loc>`` of a ``<urlset>`` document, in document order.

    A ``<url>`` with no ``<loc>`` child contributes its own text instead.
    Namespaced and bare sitemaps are both accepted.  A root other than
    ``urlset`` (e.g. a sitemap index) yields an empty list.

    Raises:
        ET.ParseError: *xml* is not well-formed.
    """
    root = ET.fromstring(xml.strip())
    if _local_name(root.tag) != "urlset":
        logger.warning("Sitemap root is <%s>, expected <urlset>", _local_name(root.tag))
        return []

    locs: list[str] = []
    for entry in root:
        if _local_name(entry.tag) != "url":
            continue
        loc = next((child for child in entry if _local_name(child.tag) == "loc"), None)
        # A <url> without <loc> may carry the address as its own text.
        text = (loc if loc is not None else entry).text
        if text and text.strip():
            locs.append(text.strip())
    return locs


def _path_of(url: str) -> str | None:
    """Return the path of an absolute http(s) URL, or ``None`` if it is not one."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return None
    if parts.scheme not in ("http", "https") or not parts.netloc:
        return None
    return parts.path


def filter_urls(urls: Iterable[str], path_prefix: str, limit: int | None = None) -> list[str]:
    """Keep URLs whose path starts with *path_prefix*, sorted, optionally truncated.

    Malformed or relative URLs are dropped.  Duplicates are preserved.
    """
    kept = []
    for url in urls:
        path = _path_of(url)
        if path is not None and path.startswith(path_prefix):
            kept.append(url)
    kept.sort()
    if limit:
        kept = kept[:limit]
    return kept


async def resolve_sitemap_urls(client: httpx.AsyncClient, settings: Settings) -> list[str]:
    """Fetch ``settings.sitemap_url`` and return the section's page URLs.

    Raises:
        SitemapError: The sitemap could not be fetched or parsed.
    """
    url = settings.sitemap_url
    try:
        xml = await fetch_text(client, url, settings.fetch_timeout, settings.user_agent)
    except FetchError as exc:
        raise SitemapError(url, str(exc)) from exc

    try:
        locs = parse_sitemap(xml)
    except ET.ParseError as exc:
        raise SitemapError(url, f"invalid XML: {exc}") from exc

    urls = filter_urls(locs, settings.path_prefix, settings.page_limit)
    logger.info(
        "Sitemap URLs (%s): %d of %d entries", settings.path_prefix, len(urls), len(locs)
    )
    return urls
