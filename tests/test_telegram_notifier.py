import unittest
from unittest import mock

import requests

from newswatch.ingestion.news_types import NewsItem
from newswatch.notify.telegram import (
    TELEGRAM_MAX_MESSAGE_LENGTH,
    Notifier,
    NullNotifier,
    TelegramNotifier,
    format_message,
)

ITEM = NewsItem(
    id="node-7",
    published_at="Ср, 03/10/2021 - 15:36",
    header="Экзамен",
    body="Расписание & аудитории",
    url="http://master.cmc.msu.ru/?q=ru/node/7",
)


def fake_response(status_code=200, payload=None, text=None):
    resp = mock.Mock()
    resp.status_code = status_code
    resp.text = text if text is not None else '{"ok": true}'
    if isinstance(payload, Exception):
        resp.json.side_effect = payload
    else:
        resp.json.return_value = payload if payload is not None else {"ok": True}
    return resp


class TestFormatMessage(unittest.TestCase):
    def test_layout(self):
        self.assertEqual(
            format_message(ITEM),
            "Экзамен\n\nРасписание & аудитории\nСр, 03/10/2021 - 15:36\n\nhttp://master.cmc.msu.ru/?q=ru/node/7",
        )

    def test_long_body_is_truncated(self):
        item = NewsItem(id="node-8", published_at="d", header="h", body="x" * 10000, url="http://u/")
        msg = format_message(item)
        self.assertLessEqual(len(msg), TELEGRAM_MAX_MESSAGE_LENGTH)
        self.assertTrue(msg.startswith("h\n\n"))
        self.assertTrue(msg.endswith("...\nd\n\nhttp://u/"))


class TestTelegramNotifier(unittest.TestCase):
    def setUp(self):
        self.notifier = TelegramNotifier(token="123:abc", chat_id="-100", timeout=5)

    @mock.patch("newswatch.notify.telegram.requests.post")
    def test_success(self, post):
        post.return_value = fake_response()
        self.assertTrue(self.notifier.notify(ITEM))
        args, kwargs = post.call_args
        self.assertEqual(args[0], "https://api.telegram.org/bot123:abc/sendMessage")
        self.assertEqual(kwargs["data"], {"chat_id": "-100", "text": format_message(ITEM)})
        self.assertEqual(kwargs["timeout"], 5)

    @mock.patch("newswatch.notify.telegram.requests.post")
    def test_http_error_status(self, post):
        post.return_value = fake_response(400, {"ok": False, "description": "Bad Request: chat not found"})
        self.assertFalse(self.notifier.notify(ITEM))

    @mock.patch("newswatch.notify.telegram.requests.post")
    def test_ok_false_body(self, post):
        post.return_value = fake_response(200, {"ok": False})
        self.assertFalse(self.notifier.notify(ITEM))

    @mock.patch("newswatch.notify.telegram.requests.post")
    def test_unreadable_body(self, post):
        post.return_value = fake_response(200, ValueError("not json"), text="<html>")
        self.assertFalse(self.notifier.notify(ITEM))

    @mock.patch("newswatch.notify.telegram.requests.post")
    def test_transport_error(self, post):
        post.side_effect = requests.exceptions.ConnectionError("https://api.telegram.org/bot123:abc")
        with self.assertLogs("newswatch.notify.telegram", level="ERROR") as logs:
            self.assertFalse(self.notifier.notify(ITEM))
        self.assertFalse(any("123:abc" in line for line in logs.output))


class TestNotifierBase(unittest.TestCase):
    def test_base_requires_override(self):
        with self.assertRaises(NotImplementedError):
            Notifier().notify(ITEM)


class TestNullNotifier(unittest.TestCase):
    def test_always_succeeds(self):
        self.assertTrue(NullNotifier().notify(ITEM))


if __name__ == "__main__":
    unittest.main()
