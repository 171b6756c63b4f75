"""Tests for fetching capabilities documents and routing them through a proxy."""
from __future__ import annotations

import unittest

from ogc_wms.errors import TransportFailureError
from ogc_wms.fetch import CorsProxy, clean_url, fetch_document, get_document, proxy_url


class _FakeResponse:
    def __init__(self, *, content=None, text=None, status_code=200) -> None:
        self.content = content
        self.text = text
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise RuntimeError(f"HTTP {self.status_code}")


class GetDocumentTests(unittest.TestCase):
    def test_returns_response_body(self) -> None:
        requested: list[str] = []

        def http_get(url: str):
            requested.append(url)
            return _FakeResponse(content=b"<WMS_Capabilities/>")

        body = get_document("https://example.com/wms?request=GetCapabilities", http_get=http_get)

        self.assertEqual(body, b"<WMS_Capabilities/>")
        self.assertEqual(requested, ["https://example.com/wms?request=GetCapabilities"])

    def test_falls_back_to_text(self) -> None:
        body = get_document(
            "https://example.com/wms",
            http_get=lambda url: _FakeResponse(text="<Capabilities>ø</Capabilities>"),
        )
        self.assertEqual(body, "<Capabilities>ø</Capabilities>".encode("utf-8"))

    def test_http_error_status(self) -> None:
        with self.assertRaises(TransportFailureError) as context:
            get_document("https://example.com/wms", http_get=lambda url: _FakeResponse(status_code=404))
        self.assertIn("404", str(context.exception))

    def test_request_exception_is_wrapped(self) -> None:
        def http_get(url: str):
            raise ConnectionError("connection refused")

        with self.assertRaises(TransportFailureError) as context:
            get_document("https://example.com/wms", http_get=http_get)
        self.assertIsInstance(context.exception.__cause__, ConnectionError)

    def test_response_without_body(self) -> None:
        with self.assertRaises(TransportFailureError):
            get_document("https://example.com/wms", http_get=lambda url: _FakeResponse())


class FetchDocumentTests(unittest.IsolatedAsyncioTestCase):
    async def test_fetches_without_blocking(self) -> None:
        body = await fetch_document(
            "https://example.com/wms",
            http_get=lambda url: _FakeResponse(content=url.encode("ascii")),
        )
        self.assertEqual(body, b"https://example.com/wms")

    async def test_errors_propagate(self) -> None:
        with self.assertRaises(TransportFailureError):
            await fetch_document(
                "https://example.com/wms",
                http_get=lambda url: _FakeResponse(status_code=500),
            )


class UrlTests(unittest.TestCase):
    def test_clean_url_strips_query_and_fragment(self) -> None:
        self.assertEqual(
            clean_url("https://example.com/geoserver/wms?map=a&layers=b#top"),
            "https://example.com/geoserver/wms",
        )
        self.assertEqual(clean_url("https://example.com/wms"), "https://example.com/wms")

    def test_proxy_matches_domains_and_subdomains(self) -> None:
        proxy = CorsProxy("https://catalog.example/proxy/", proxy_domains=("example.com",))

        self.assertTrue(proxy.should_use_proxy("https://example.com/wms"))
        self.assertTrue(proxy.should_use_proxy("https://maps.EXAMPLE.com/wms"))
        self.assertFalse(proxy.should_use_proxy("https://notexample.com/wms"))
        self.assertFalse(proxy.should_use_proxy("relative/path"))

    def test_proxy_url_only_rewrites_matching_hosts(self) -> None:
        proxy = CorsProxy("/proxy/", proxy_domains=("example.com",))

        self.assertEqual(
            proxy_url(proxy, "https://example.com/wms?a=b"),
            "/proxy/https://example.com/wms?a=b",
        )
        self.assertEqual(proxy_url(proxy, "https://other.org/wms"), "https://other.org/wms")
        self.assertEqual(proxy_url(None, "https://example.com/wms"), "https://example.com/wms")

    def test_always_use_proxy(self) -> None:
        proxy = CorsProxy("/proxy/", always_use_proxy=True)
        self.assertEqual(proxy_url(proxy, "https://other.org/wms"), "/proxy/https://other.org/wms")


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
