"""Exception hierarchy for the index builder.

``SitemapError`` is the only fatal error: without a sitemap no URL can be
discovered.  ``FetchError`` and its subclasses describe per-URL failures that
the assembler catches and skips.
"""

from __future__ import annotations


class SearchIndexError(Exception):
    """Base class for all errors raised by ``search_index``."""


class SitemapError(SearchIndexError):
    """The sitemap could not be fetched or parsed."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to load sitemap {url}: {reason}")


class FetchError(SearchIndexError):
    """A single page fetch failed."""

    def __init__(self, url: str, message: str) -> None:
        self.url = url
        super().__init__(message)


class FetchTimeout(FetchError):
    def __init__(self, url: str, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(url, f"Timeout after {timeout:g}s for {url}")


class HttpStatusError(FetchError):
    def __init__(self, url: str, status_code: int) -> None:
        self.status_code = status_code
        super().__init__(url, f"HTTP {status_code} for {url}")


class NetworkError(FetchError):
    def __init__(self, url: str, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(url, f"Network error for {url}: {cause}")
