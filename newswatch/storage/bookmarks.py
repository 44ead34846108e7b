"""Plain-text bookmark store.

One record per line: ``<id> <fingerprint>``. The id is the first token, the
fingerprint is everything after the first space and may contain spaces itself.
Writes are atomic: the new content goes to ``<path>.tmp`` in the same directory
and is renamed over the destination only after it is synced to disk.

Only one process may use a given bookmark file at a time.
"""

from __future__ import annotations

import logging
import os
from typing import Dict, Mapping

from newswatch.errors import StorageError

logger = logging.getLogger(__name__)

TMP_SUFFIX = ".tmp"


def tmp_path_for(path: str) -> str:
    return path + TMP_SUFFIX


def load_bookmarks(path: str) -> Dict[str, str]:
    """Load the id -> fingerprint map. A missing file is an empty map."""
    bookmarks: Dict[str, str] = {}
    if not os.path.exists(path):
        return bookmarks
    try:
        with open(path, "r", encoding="utf-8") as f:
            for line in f:
                line = line.rstrip("\r\n")
                if not line.strip():
                    continue
                item_id, _, fp = line.partition(" ")
                bookmarks[item_id] = fp
    except (OSError, UnicodeDecodeError) as e:
        raise StorageError(f"Failed to load bookmarks from {path}: {e}") from e
    return bookmarks


def _write_synced(path: str, data: str) -> None:
    with open(path, "w", encoding="utf-8") as f:
        f.write(data)
        f.flush()
        os.fsync(f.fileno())


def save_bookmarks(path: str, bookmarks: Mapping[str, str]) -> None:
    """Atomically replace the bookmark file with ``bookmarks``."""
    for item_id, fp in bookmarks.items():
        if not item_id or any(c in item_id for c in " \r\n") or any(c in fp for c in "\r\n"):
            raise StorageError(f"Bookmark record cannot be stored on one line: {item_id!r}")

    tmp = tmp_path_for(path)
    data = "".join(f"{item_id} {bookmarks[item_id]}\n" for item_id in sorted(bookmarks))
    try:
        if os.path.exists(tmp):
            logger.warning(f"Removing stale temp file {tmp}")
            os.remove(tmp)
        _write_synced(tmp, data)
        os.replace(tmp, path)
    except OSError as e:
        raise StorageError(f"Failed to save bookmarks to {path}: {e}") from e
    logger.debug(f"Saved {len(bookmarks)} bookmarks to {path}")
