"""Poll loop: fetch -> extract -> diff -> notify -> persist -> sleep."""

from __future__ import annotations

import logging
import signal
import sys
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Sequence

import schedule

from newswatch.config import Config
from newswatch.errors import ConfigError, FetchError, StorageError
from newswatch.extraction.news_page import extract_news
from newswatch.ingestion.page_fetch import fetch_page
from newswatch.notify.telegram import Notifier, TelegramNotifier
from newswatch.storage.bookmarks import load_bookmarks, save_bookmarks
from newswatch.tracking.changes import detect_changes

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def build_handlers(log_file: Optional[str] = None) -> List[logging.Handler]:
    """Records below WARNING go to stdout, WARNING and above to stderr."""
    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.addFilter(lambda record: record.levelno < logging.WARNING)
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(logging.WARNING)
    handlers: List[logging.Handler] = [stdout_handler, stderr_handler]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    return handlers


def configure_logging(log_file: Optional[str] = None, level: int = logging.INFO) -> None:
    handlers = build_handlers(log_file)
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


@dataclass
class CycleReport:
    fetched: bool = False
    extracted: int = 0
    skipped: int = 0
    new: int = 0
    stale: int = 0
    notified: int = 0
    failed_ids: List[str] = field(default_factory=list)
    saved: bool = False


class NewsBot:
    """Runs poll cycles against one page, one bookmark file and one notifier.

    Holds only configuration; the bookmark file is re-read every cycle.
    """

    def __init__(
        self,
        config: Config,
        notifier: Optional[Notifier] = None,
        fetcher: Optional[Callable[[str], str]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.config = config
        self.notifier = notifier or TelegramNotifier(
            token=config.notify_token,
            chat_id=config.notify_target,
            timeout=config.request_timeout,
        )
        self.fetcher = fetcher or self._fetch
        self.clock = clock or _utcnow
        self.retention = timedelta(days=config.retention_days) if config.retention_days > 0 else None
        self.shutdown_requested = False

    def _fetch(self, url: str) -> str:
        return fetch_page(url, timeout=self.config.request_timeout)

    def _setup_signal_handlers(self):
        def signal_handler(signum, frame):
            logger.info(f"Received signal {signum}, initiating graceful shutdown...")
            self.shutdown_requested = True

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

    def _load_bookmarks(self):
        try:
            return load_bookmarks(self.config.bookmark_path)
        except StorageError as e:
            logger.error(f"{e}; continuing with empty bookmarks")
            return {}

    def _notify(self, item) -> bool:
        try:
            return self.notifier.notify(item)
        except Exception as e:
            logger.error(f"{item.id}: notifier {self.notifier.name} crashed: {e}", exc_info=True)
            return False

    def _run_cycle(self, report: CycleReport) -> None:
        try:
            html_text = self.fetcher(self.config.page_url)
        except FetchError as e:
            logger.error(f"Fetch failed, skipping cycle: {e}")
            return
        report.fetched = True

        bookmarks = self._load_bookmarks()

        extraction = extract_news(html_text, base_url=self.config.page_url)
        report.extracted = len(extraction.items)
        report.skipped = len(extraction.skipped_ids)

        changes = detect_changes(
            extraction.items,
            bookmarks,
            carry_forward=extraction.skipped_ids,
            retention=self.retention,
            now=self.clock(),
        )
        report.new = len(changes.new_items)
        report.stale = len(changes.stale_ids)

        for item in changes.new_items:
            if self._notify(item):
                report.notified += 1
            else:
                # leave it out so the next cycle sees it as new again
                changes.updated.pop(item.id, None)
                report.failed_ids.append(item.id)

        try:
            save_bookmarks(self.config.bookmark_path, changes.updated)
            report.saved = True
        except StorageError as e:
            logger.error(f"{e}; bookmark updates from this cycle are lost")

    def run_once(self) -> CycleReport:
        """Run one cycle. Never raises."""
        report = CycleReport()
        try:
            self._run_cycle(report)
        except Exception as e:
            logger.error(f"Unexpected error in cycle: {e}", exc_info=True)
        logger.info(
            f"Cycle done: extracted={report.extracted} skipped={report.skipped} new={report.new} "
            f"stale={report.stale} notified={report.notified} failed={len(report.failed_ids)} saved={report.saved}"
        )
        return report

    def run_forever(self) -> None:
        self._setup_signal_handlers()
        scheduler = schedule.Scheduler()
        scheduler.every(self.config.interval_seconds).seconds.do(self.run_once)

        logger.info(f"Polling {self.config.page_url} every {self.config.interval_seconds}s")
        self.run_once()
        while not self.shutdown_requested:
            scheduler.run_pending()
            time.sleep(1)
        logger.info("Graceful shutdown completed")


def main(argv: Optional[Sequence[str]] = None) -> int:
    try:
        config = Config.from_args(argv)
    except ConfigError as e:
        print(e, file=sys.stderr)
        return 1

    configure_logging(config.log_file)
    bot = NewsBot(config)
    if config.once:
        bot.run_once()
        return 0
    try:
        bot.run_forever()
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user")
    return 0
