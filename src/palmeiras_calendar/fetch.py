"""Retrieve raw fixture pages from the source site."""
from __future__ import annotations

import logging
import time
from typing import Dict, Optional, Union

import requests

from .errors import FetchError

LOGGER = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30
DEFAULT_RETRIES = 3
DEFAULT_BACKOFF_SECONDS = 1.0
NOT_PUBLISHED_STATUSES = frozenset({404, 410})

REQUEST_HEADERS: Dict[str, str] = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "pt-BR,pt;q=0.9,en-US;q=0.8,en;q=0.7",
    "Referer": "https://ptd.verdao.net/",
    "Cache-Control": "no-cache",
}


class _NotPublished:
    """Sentinel for pages the source has not published yet."""

    _instance: Optional["_NotPublished"] = None

    def __new__(cls) -> "_NotPublished":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NOT_PUBLISHED"

    def __bool__(self) -> bool:
        return False


NOT_PUBLISHED = _NotPublished()

FetchResult = Union[str, _NotPublished]


def fetch_html(
    url: str,
    *,
    retries: int = DEFAULT_RETRIES,
    backoff_seconds: float = DEFAULT_BACKOFF_SECONDS,
    session: Optional[requests.Session] = None,
    headers: Optional[Dict[str, str]] = None,
) -> FetchResult:
    """Return the page text, or ``NOT_PUBLISHED`` for a 404/410 response.

    Any other non-2xx status or transport error is retried with a linear
    backoff of ``attempt * backoff_seconds``; once all attempts are used up a
    :class:`FetchError` is raised.
    """

    http = session or requests
    merged_headers = dict(REQUEST_HEADERS)
    if headers:
        merged_headers.update(headers)
    attempts = max(1, retries)

    for attempt in range(1, attempts + 1):
        LOGGER.debug("Fetching %s (attempt %d/%d)", url, attempt, attempts)
        try:
            response = http.get(url, headers=merged_headers, timeout=REQUEST_TIMEOUT)
        except requests.RequestException as exc:
            LOGGER.warning("Attempt %d for %s failed: %s", attempt, url, exc)
        else:
            if response.status_code in NOT_PUBLISHED_STATUSES:
                LOGGER.info("%s returned HTTP %s; page not published yet", url, response.status_code)
                return NOT_PUBLISHED
            if 200 <= response.status_code < 300:
                LOGGER.debug("Got %d bytes from %s", len(response.text), url)
                return response.text
            LOGGER.warning("HTTP %s from %s", response.status_code, url)

        if attempt < attempts:
            delay = attempt * backoff_seconds
            LOGGER.debug("Waiting %.1fs before retrying %s", delay, url)
            time.sleep(delay)

    raise FetchError(url, attempts)
