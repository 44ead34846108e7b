"""Deliver news items to a chat.

Notifiers return a success flag instead of raising so the bot can leave a
failed item out of the saved bookmarks and retry it on the next cycle.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import requests

from newswatch.errors import FetchError
from newswatch.ingestion.news_types import NewsItem

logger = logging.getLogger(__name__)

# Telegram API limits
# Official limit: 4,096 characters per message
TELEGRAM_MAX_MESSAGE_LENGTH = 4096
TRUNCATION_MARK = "..."


def format_message(item: NewsItem, *, max_length: int = TELEGRAM_MAX_MESSAGE_LENGTH) -> str:
    """Header, blank line, body, date, blank line, URL.

    When the message does not fit, only the body is shortened.
    """
    head = f"{item.header}\n\n"
    tail = f"\n{item.published_at}\n\n{item.url}"
    body = item.body
    if len(head) + len(body) + len(tail) > max_length:
        room = max(max_length - len(head) - len(tail) - len(TRUNCATION_MARK), 0)
        logger.warning(f"{item.id}: message too long ({len(head) + len(body) + len(tail)} chars), truncating body")
        body = body[:room].rstrip() + TRUNCATION_MARK
    return head + body + tail


class Notifier:
    """Base for notification sinks. Subclasses must override `notify`."""

    name: str = "base"

    def notify(self, item: NewsItem) -> bool:
        raise NotImplementedError


class NullNotifier(Notifier):
    """Accepts every item without sending anything."""

    name = "null"

    def notify(self, item: NewsItem) -> bool:
        logger.info(f"[null] {item.id}: {item.header}")
        return True


@dataclass(frozen=True)
class TelegramNotifier(Notifier):
    token: str
    chat_id: str
    timeout: float = 30
    api_base: str = "https://api.telegram.org"

    name: str = "telegram"

    @property
    def endpoint(self) -> str:
        return f"{self.api_base}/bot{self.token}/sendMessage"

    def _send(self, text: str) -> bool:
        """POST one message. Raises FetchError when the sink cannot be reached."""
        data = {"chat_id": self.chat_id, "text": text}
        try:
            resp = requests.post(self.endpoint, data=data, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            # the exception text can contain the endpoint, and with it the token
            raise FetchError(f"sending error: {type(e).__name__}") from e

        status_ok = 200 <= resp.status_code < 300
        try:
            body = resp.text
            result = resp.json()
        except ValueError as e:
            raise FetchError(f"unreadable response (http_{resp.status_code}): {e}") from e

        logger.info(f"{body}, status is success: {status_ok}")
        if isinstance(result, dict) and result.get("ok") is False:
            logger.error(f"Telegram API error: {result.get('description', 'Unknown error')}")
            return False
        return status_ok

    def notify(self, item: NewsItem) -> bool:
        try:
            sent = self._send(format_message(item))
        except FetchError as e:
            logger.error(f"{item.id}: {e}")
            return False
        if sent:
            logger.info(f"{item.id}: sent to chat {self.chat_id}")
        else:
            logger.error(f"{item.id}: notification failed")
        return sent
