"""Scraper package: sitemap discovery, page fetch & content extraction."""

from search_index.scraper.extractor import extract_content, parse_html, resolve_title
from search_index.scraper.fetcher import fetch_page, fetch_text, make_client
from search_index.scraper.models import ExtractionResult, RawPage, Section
from search_index.scraper.sitemap import resolve_sitemap_urls

__all__ = [
    "extract_content",
    "parse_html",
    "resolve_title",
    "fetch_page",
    "fetch_text",
    "make_client",
    "resolve_sitemap_urls",
    "ExtractionResult",
    "RawPage",
    "Section",
]
