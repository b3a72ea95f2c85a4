"""
Page fetcher — one GET per product page.

Sends browser-like headers, enforces the request timeout, follows a bounded
number of redirects and translates httpx errors into a small taxonomy the
callers can turn into user messages.
"""

from __future__ import annotations

import logging

import httpx
from bs4.dammit import UnicodeDammit

from core.config import settings

logger = logging.getLogger(__name__)


class FetchError(Exception):
    """Base class for page download failures."""

    def __init__(self, url: str, message: str) -> None:
        super().__init__(message)
        self.url = url
        self.message = message


class FetchTimeout(FetchError):
    """The page did not answer within the request timeout."""

    def __init__(self, url: str) -> None:
        super().__init__(url, f"Request to {url} timed out. The site may be slow or blocking us.")


class FetchBlocked(FetchError):
    """The site answered with a non-2xx status (often bot blocking)."""

    def __init__(self, url: str, status_code: int) -> None:
        super().__init__(url, f"{url} answered with HTTP {status_code}. The site may be blocking us.")
        self.status_code = status_code


class FetchNetworkError(FetchError):
    """DNS, connection, TLS, redirect loop or invalid URL problems."""


def decode_html(response: httpx.Response) -> str:
    """
    Response body as text.

    httpx assumes UTF-8 without a charset in Content-Type; Czech and Slovak
    shops often declare windows-1250 only in <meta charset>, so the markup
    itself is consulted in that case.
    """
    if response.charset_encoding:
        return response.text
    return UnicodeDammit(response.content, is_html=True).unicode_markup or response.text


def default_headers() -> dict[str, str]:
    return {
        "User-Agent": settings.user_agent,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
        "Accept-Language": settings.accept_language,
    }


async def fetch_page_html(
    url: str,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> str:
    """
    Fetch a URL and return its HTML.

    Raises:
        FetchTimeout: the request exceeded settings.request_timeout.
        FetchBlocked: non-2xx response.
        FetchNetworkError: any other transport problem.
    """
    try:
        async with httpx.AsyncClient(
            headers=default_headers(),
            timeout=settings.request_timeout,
            follow_redirects=True,
            max_redirects=settings.max_redirects,
            transport=transport,
        ) as client:
            response = await client.get(url)
            response.raise_for_status()
            return decode_html(response)
    except httpx.TimeoutException as exc:
        logger.warning("Timeout fetching %s: %s", url, exc)
        raise FetchTimeout(url) from exc
    except httpx.HTTPStatusError as exc:
        logger.warning("Blocked fetching %s: HTTP %d", url, exc.response.status_code)
        raise FetchBlocked(url, exc.response.status_code) from exc
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        logger.warning("Failed to fetch %s: %s", url, exc)
        raise FetchNetworkError(url, f"Could not load {url}: {exc}") from exc
