import unittest
from unittest import mock

import requests

from newswatch.errors import FetchError
from newswatch.ingestion.page_fetch import fetch_page


def fake_response(status_code=200, text="<html>ok</html>", encoding="utf-8"):
    resp = mock.Mock()
    resp.status_code = status_code
    resp.text = text
    resp.encoding = encoding
    resp.apparent_encoding = "utf-8"
    return resp


class TestFetchPage(unittest.TestCase):
    @mock.patch("newswatch.ingestion.page_fetch.requests.get")
    def test_returns_body(self, get):
        get.return_value = fake_response()
        self.assertEqual(fetch_page("http://example.com/", timeout=3), "<html>ok</html>")
        self.assertEqual(get.call_args.kwargs["timeout"], 3)

    @mock.patch("newswatch.ingestion.page_fetch.requests.get")
    def test_missing_encoding_uses_apparent(self, get):
        resp = fake_response(encoding=None)
        get.return_value = resp
        fetch_page("http://example.com/")
        self.assertEqual(resp.encoding, "utf-8")

    @mock.patch("newswatch.ingestion.page_fetch.requests.get")
    def test_http_error(self, get):
        get.return_value = fake_response(status_code=503)
        with self.assertRaises(FetchError):
            fetch_page("http://example.com/")

    @mock.patch("newswatch.ingestion.page_fetch.requests.get")
    def test_transport_error(self, get):
        get.side_effect = requests.exceptions.Timeout("timed out")
        with self.assertRaises(FetchError):
            fetch_page("http://example.com/")

    @mock.patch("newswatch.ingestion.page_fetch.requests.get")
    def test_empty_body(self, get):
        get.return_value = fake_response(text="  \n")
        with self.assertRaises(FetchError):
            fetch_page("http://example.com/")


if __name__ == "__main__":
    unittest.main()
