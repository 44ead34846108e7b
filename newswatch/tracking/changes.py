"""Change detection between the extracted page and the stored bookmarks."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Mapping, Optional

from newswatch.errors import ParseError
from newswatch.ingestion.fingerprint import fingerprint
from newswatch.ingestion.news_types import NewsItem

logger = logging.getLogger(__name__)

# "Ср, 03/10/2021 - 15:36": month/day/year, then time after a dash.
SUBMITTED_DATE_FORMAT = "%m/%d/%Y - %H:%M"
_SUBMITTED_DATE_RE = re.compile(r"\d{1,2}/\d{1,2}/\d{4}\s+-\s+\d{1,2}:\d{2}")


@dataclass
class ChangeSet:
    new_items: List[NewsItem] = field(default_factory=list)
    updated: Dict[str, str] = field(default_factory=dict)
    stale_ids: List[str] = field(default_factory=list)


def parse_submitted_date(published_at: str) -> datetime:
    """Parse the submitted marker into a naive datetime.

    Raises ParseError when no date in the expected format is present.
    """
    m = _SUBMITTED_DATE_RE.search(published_at or "")
    if not m:
        raise ParseError(f"date not parsed: {published_at!r}")
    stamp = " ".join(m.group(0).split())
    try:
        return datetime.strptime(stamp, SUBMITTED_DATE_FORMAT)
    except ValueError as e:
        raise ParseError(f"date not parsed: {published_at!r} ({e})") from e


def is_stale(item: NewsItem, *, retention: timedelta, now: datetime) -> bool:
    """True when the item was published before ``now - retention``.

    Items whose date cannot be parsed are never stale.
    """
    try:
        published = parse_submitted_date(item.published_at)
    except ParseError as e:
        logger.warning(f"{item.id}: retention filter skipped, {e}")
        return False
    return published < now - retention


def detect_changes(
    items: Iterable[NewsItem],
    bookmarks: Mapping[str, str],
    *,
    carry_forward: Iterable[str] = (),
    retention: Optional[timedelta] = None,
    now: Optional[datetime] = None,
) -> ChangeSet:
    """Split extracted items into new ones and build the next bookmark map.

    Every extracted item's fingerprint is staged into ``updated``, new or not,
    because the bookmark file is rewritten wholesale. Ids in ``carry_forward``
    (items that failed to parse this cycle) keep their previous fingerprint.
    New items older than ``retention`` are staged but not reported as new.
    ``new_items`` is sorted by id.
    """
    if now is None:
        now = datetime.now(timezone.utc).replace(tzinfo=None)

    changes = ChangeSet()
    for item_id in carry_forward:
        if item_id in bookmarks:
            changes.updated[item_id] = bookmarks[item_id]

    for item in items:
        fp = fingerprint(item.published_at, item.body)
        changes.updated[item.id] = fp
        if bookmarks.get(item.id) == fp:
            continue
        if retention is not None and is_stale(item, retention=retention, now=now):
            logger.info(f"{item.id}: older than {retention.days} days, not notifying")
            changes.stale_ids.append(item.id)
            continue
        changes.new_items.append(item)

    changes.new_items.sort(key=lambda it: it.id)
    return changes
