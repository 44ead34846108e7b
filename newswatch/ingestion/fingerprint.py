"""Fingerprints used to decide whether a news item changed since last seen."""

from __future__ import annotations

import hashlib


FINGERPRINT_SEPARATOR = " "


def body_hash(body: str) -> str:
    """Stable 64-bit hash of a cleaned body, as 16 hex chars."""
    return hashlib.blake2b((body or "").encode("utf-8"), digest_size=8).hexdigest()


def fingerprint(published_at: str, body: str) -> str:
    """Identity of one version of an item.

    Changes when the publish date changes or when the body is silently edited.
    """
    return f"{published_at}{FINGERPRINT_SEPARATOR}{body_hash(body)}"
