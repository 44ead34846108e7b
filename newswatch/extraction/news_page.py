"""News listing page extraction.

Each element whose id starts with ``node-`` is one candidate item. Fields are
read from inside that element only:

- date:   ``span.submitted``
- body:   ``div.content``
- header: ``h2 > a``

A candidate without a date or a body is skipped for this cycle and reported in
``PageExtraction.skipped_ids`` so its previous bookmark can be carried forward.
"""

from __future__ import annotations

import html
import logging
import re
from dataclasses import dataclass, field
from typing import List

from bs4 import BeautifulSoup

from newswatch.errors import ParseError
from newswatch.ingestion.news_types import NewsItem

logger = logging.getLogger(__name__)

NODE_ID_PREFIX = "node-"
ID_SEPARATOR = "-"
ITEM_PATH_PREFIX = "?q=ru/"

_CANDIDATE_SELECTOR = f'[id^="{NODE_ID_PREFIX}"]'
_DATE_SELECTOR = "span.submitted"
_BODY_SELECTOR = "div.content"
_HEADER_SELECTOR = "h2 > a"

_WHITESPACE_RE = re.compile(r"\s+")
_LINE_BREAK_RE = re.compile(r"</p\s*>|<br\s*/?>", re.IGNORECASE)
_MARKUP_RE = re.compile(r"<style[^>]*>.*?</style\s*>|<[^>]*>", re.IGNORECASE | re.DOTALL)
_SPACES_AROUND_NEWLINE_RE = re.compile(r" *\n *")


@dataclass
class PageExtraction:
    items: List[NewsItem] = field(default_factory=list)
    skipped_ids: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def clean_body(raw_html: str) -> str:
    """Turn body markup into plain text.

    Whitespace is collapsed first, then paragraph ends and line breaks become
    newlines, then every remaining tag (and any style block) is removed.
    """
    text = _WHITESPACE_RE.sub(" ", raw_html or "")
    text = _LINE_BREAK_RE.sub("\n", text)
    text = _MARKUP_RE.sub("", text)
    text = html.unescape(text).replace("\xa0", " ")
    text = _SPACES_AROUND_NEWLINE_RE.sub("\n", text)
    return text.strip()


def item_url(item_id: str, base_url: str) -> str:
    """``node-123`` -> ``<base_url>?q=ru/node/123``."""
    return f"{base_url}{ITEM_PATH_PREFIX}{item_id.replace(ID_SEPARATOR, '/')}"


def _normalize_text(text: str) -> str:
    return " ".join((text or "").split())


def _extract_item(node, item_id: str, base_url: str, warnings: List[str]) -> NewsItem:
    if any(c.isspace() for c in item_id):
        raise ParseError(f"{item_id!r}: id contains whitespace")

    date_el = node.select_one(_DATE_SELECTOR)
    body_el = node.select_one(_BODY_SELECTOR)
    header_el = node.select_one(_HEADER_SELECTOR)

    published_at = _normalize_text(date_el.get_text(" ")) if date_el is not None else ""
    raw_body = body_el.decode_contents().strip() if body_el is not None else ""
    header = _normalize_text(header_el.get_text(" ")) if header_el is not None else ""

    if not header:
        msg = f"{item_id}: header is empty"
        logger.warning(msg)
        warnings.append(msg)

    if not published_at and not raw_body:
        raise ParseError(f"{item_id}: submitted date and body are empty")
    if not published_at:
        raise ParseError(f"{item_id}: submitted date is empty")
    if not raw_body:
        raise ParseError(f"{item_id}: body is empty")

    return NewsItem(
        id=item_id,
        published_at=published_at,
        header=header,
        body=clean_body(raw_body),
        url=item_url(item_id, base_url),
    )


def extract_news(html_text: str, *, base_url: str) -> PageExtraction:
    """Parse the listing page into news items, tolerating broken entries."""
    result = PageExtraction()
    soup = BeautifulSoup(html_text or "", "html.parser")

    seen = set()
    for node in soup.select(_CANDIDATE_SELECTOR):
        item_id = (node.get("id") or "").strip()
        if not item_id or item_id in seen:
            continue
        seen.add(item_id)
        try:
            result.items.append(_extract_item(node, item_id, base_url, result.warnings))
        except ParseError as e:
            logger.warning(f"Skipping item: {e}")
            result.warnings.append(str(e))
            result.skipped_ids.append(item_id)

    logger.info(f"Extracted {len(result.items)} items ({len(result.skipped_ids)} skipped)")
    return result
