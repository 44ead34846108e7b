"""Command line configuration."""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from typing import List, Optional, Sequence

from newswatch.errors import ConfigError

DEFAULT_PAGE_URL = "http://master.cmc.msu.ru/"
DEFAULT_INTERVAL_SECONDS = 60
DEFAULT_REQUEST_TIMEOUT = 30
DEFAULT_RETENTION_DAYS = 7

USAGE = "wrong number of arguments: please specify <bookmarkfile> <token> <chat_id>"


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message):
        self.print_usage(sys.stderr)
        raise ConfigError(f"{USAGE} ({message})")


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="newswatch",
        description="Poll a news page and forward new items to a Telegram chat",
    )
    parser.add_argument("bookmark_path", help="Path to the bookmark file")
    parser.add_argument("notify_token", help="Telegram bot token")
    parser.add_argument("notify_target", help="Telegram chat id")
    parser.add_argument("--page-url", default=DEFAULT_PAGE_URL, help="News page to poll")
    parser.add_argument("--interval", type=int, default=DEFAULT_INTERVAL_SECONDS, help="Seconds between cycles")
    parser.add_argument("--timeout", type=float, default=DEFAULT_REQUEST_TIMEOUT, help="HTTP timeout in seconds")
    parser.add_argument(
        "--retention-days",
        type=int,
        default=DEFAULT_RETENTION_DAYS,
        help="Do not notify items published more than N days ago (0 disables)",
    )
    parser.add_argument("--log-file", default=None, help="Also write logs to this file")
    parser.add_argument("--once", action="store_true", help="Run a single cycle and exit")
    return parser


@dataclass
class Config:
    """Process-lifetime configuration, read once at startup."""

    bookmark_path: str
    notify_token: str
    notify_target: str

    page_url: str = DEFAULT_PAGE_URL
    interval_seconds: int = DEFAULT_INTERVAL_SECONDS
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    retention_days: int = DEFAULT_RETENTION_DAYS
    log_file: Optional[str] = None
    once: bool = False

    @classmethod
    def from_args(cls, argv: Optional[Sequence[str]] = None) -> "Config":
        """Build and validate configuration from command line arguments."""
        args = build_parser().parse_args(argv)
        config = cls(
            bookmark_path=args.bookmark_path,
            notify_token=args.notify_token,
            notify_target=args.notify_target,
            page_url=args.page_url,
            interval_seconds=args.interval,
            request_timeout=args.timeout,
            retention_days=args.retention_days,
            log_file=args.log_file,
            once=args.once,
        )
        config._validate()
        return config

    def _validate(self):
        errors: List[str] = []

        if not self.bookmark_path.strip():
            errors.append("bookmark file path is empty")
        if not self.notify_token.strip():
            errors.append("token is empty")
        if not self.notify_target.strip():
            errors.append("chat_id is empty")
        if not self.page_url.startswith(("http://", "https://")):
            errors.append(f"page URL must be http(s): {self.page_url}")
        if self.interval_seconds <= 0:
            errors.append("interval must be positive")
        if self.request_timeout <= 0:
            errors.append("timeout must be positive")
        if self.retention_days < 0:
            errors.append("retention days cannot be negative")

        if errors:
            raise ConfigError("Configuration validation failed:\n" + "\n".join(f"- {e}" for e in errors))
