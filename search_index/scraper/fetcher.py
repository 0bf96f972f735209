"""Async HTTP fetcher with a hard per-request timeout."""

from __future__ import annotations

import asyncio

import httpx

from search_index.errors import FetchTimeout, HttpStatusError, NetworkError
from search_index.scraper.models import RawPage

_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"


def default_headers(user_agent: str) -> dict[str, str]:
    """Request headers sent with every page and sitemap fetch."""
    return {"User-Agent": user_agent, "Accept": _ACCEPT}


def make_client(user_agent: str, timeout: float) -> httpx.AsyncClient:
    """Return the shared ``AsyncClient`` used for one build."""
    return httpx.AsyncClient(
        headers=default_headers(user_agent),
        timeout=timeout,
        follow_redirects=True,
    )


async def _get(client: httpx.AsyncClient, url: str, user_agent: str) -> httpx.Response:
    try:
        return await client.get(url, headers=default_headers(user_agent))
    except httpx.TimeoutException:
        raise
    except httpx.HTTPError as exc:
        raise NetworkError(url, exc) from exc


async def fetch_response(
    client: httpx.AsyncClient,
    url: str,
    timeout: float,
    user_agent: str,
) -> httpx.Response:
    """GET *url* and return the response when its status is 2xx.

    The whole request (connect, send, read) is bounded by *timeout* seconds;
    the in-flight request is cancelled when it expires.

    Raises:
        FetchTimeout: The timeout elapsed first.
        HttpStatusError: The server answered with a non-2xx status.
        NetworkError: Any other transport failure.
    """
    try:
        response = await asyncio.wait_for(_get(client, url, user_agent), timeout)
    except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
        raise FetchTimeout(url, timeout) from exc

    if not response.is_success:
        raise HttpStatusError(url, response.status_code)
    return response


async def fetch_text(
    client: httpx.AsyncClient,
    url: str,
    timeout: float,
    user_agent: str,
) -> str:
    """Fetch *url* and return its body as text (see :func:`fetch_response`)."""
    response = await fetch_response(client, url, timeout, user_agent)
    return response.text


async def fetch_page(
    client: httpx.AsyncClient,
    url: str,
    timeout: float,
    user_agent: str,
) -> RawPage:
    """Fetch *url* and wrap the result in a :class:`RawPage`."""
    response = await fetch_response(client, url, timeout, user_agent)
    return RawPage(url=url, html=response.text, status_code=response.status_code)
