"""Fetch the raw news listing page."""

from __future__ import annotations

import logging

import requests

from newswatch.errors import FetchError

logger = logging.getLogger(__name__)

USER_AGENT = "newswatch/1.0"


def fetch_page(url: str, *, timeout: float = 30) -> str:
    """Return the page body as text.

    Raises FetchError on transport failures, non-2xx responses and empty bodies.
    """
    try:
        resp = requests.get(url, headers={"User-Agent": USER_AGENT}, timeout=timeout)
    except requests.exceptions.RequestException as e:
        raise FetchError(f"Failed to fetch page: {url} ({e})") from e

    if not 200 <= resp.status_code < 300:
        raise FetchError(f"Failed to fetch page: {url} (http_{resp.status_code})")

    if not resp.encoding:
        resp.encoding = resp.apparent_encoding or "utf-8"
    try:
        text = resp.text
    except (UnicodeDecodeError, LookupError) as e:
        raise FetchError(f"Undecodable page body: {url} ({e})") from e

    if not text.strip():
        raise FetchError(f"Empty page body: {url}")
    logger.debug(f"Fetched {len(text)} chars from {url}")
    return text
