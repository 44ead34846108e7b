"""Shared news item types."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class NewsItem:
    """One news entry extracted from the listing page.

    Lives only within a single poll cycle.
    """

    id: str
    published_at: str
    header: str
    body: str
    url: str
