"""End-to-end tests of the HTTP transport."""

from __future__ import annotations

import http.client
import threading
import unittest

from sitepack.assets.csp import SecurityPolicy
from sitepack.assets.entry import AssetEntry
from sitepack.serve.http import SiteServer
from sitepack.serve.table import ServingTable


class TestSiteServer(unittest.TestCase):
    def setUp(self) -> None:
        entry = AssetEntry.from_variants(
            path="/index.html",
            media_type="text/html; charset=utf-8",
            cache_control="no-cache",
            body=b"<p>home</p>",
            br=b"BR-HOME",
        )
        table = ServingTable({"/index.html": entry}, SecurityPolicy(csp="default-src 'self'"))
        self.server = SiteServer(("127.0.0.1", 0), table)
        self.thread = threading.Thread(target=self.server.serve_forever, daemon=True)
        self.thread.start()
        self.port = self.server.server_address[1]

    def tearDown(self) -> None:
        self.server.shutdown()
        self.server.server_close()
        self.thread.join(timeout=5)

    def _request(self, method: str, path: str, headers: dict[str, str] | None = None):
        conn = http.client.HTTPConnection("127.0.0.1", self.port, timeout=5)
        try:
            conn.request(method, path, headers=headers or {})
            response = conn.getresponse()
            return response.status, dict(response.getheaders()), response.read()
        finally:
            conn.close()

    def test_get_root_with_brotli(self) -> None:
        status, headers, body = self._request("GET", "/", {"Accept-Encoding": "br"})
        self.assertEqual(status, 200)
        self.assertEqual(body, b"BR-HOME")
        self.assertEqual(headers["Content-Encoding"], "br")
        self.assertEqual(headers["Content-Security-Policy"], "default-src 'self'")

    def test_conditional_get(self) -> None:
        _, headers, _ = self._request("GET", "/index.html")
        status, _, body = self._request("GET", "/index.html", {"If-None-Match": headers["ETag"]})
        self.assertEqual(status, 304)
        self.assertEqual(body, b"")

    def test_not_found(self) -> None:
        status, headers, body = self._request("GET", "/nope")
        self.assertEqual(status, 404)
        self.assertEqual(body, b"404 Not Found")
        self.assertEqual(headers["X-Frame-Options"], "DENY")

    def test_post_rejected(self) -> None:
        status, headers, body = self._request("POST", "/index.html")
        self.assertEqual(status, 405)
        self.assertEqual(headers["Allow"], "GET, HEAD")
        self.assertEqual(body, b"405 Method Not Allowed")

    def test_request_body_not_read_as_next_request(self) -> None:
        conn = http.client.HTTPConnection("127.0.0.1", self.port, timeout=5)
        try:
            conn.request("POST", "/index.html", body=b"GET /nope HTTP/1.1\r\nHost: x\r\n\r\n")
            post = conn.getresponse()
            self.assertEqual(post.status, 405)
            self.assertEqual(post.read(), b"405 Method Not Allowed")

            conn.request("GET", "/index.html")
            get = conn.getresponse()
            self.assertEqual(get.status, 200)
            self.assertEqual(get.read(), b"<p>home</p>")
        finally:
            conn.close()

    def test_head_then_get_on_one_connection(self) -> None:
        conn = http.client.HTTPConnection("127.0.0.1", self.port, timeout=5)
        try:
            conn.request("HEAD", "/index.html")
            head = conn.getresponse()
            self.assertEqual(head.read(), b"")
            self.assertEqual(head.getheader("Content-Length"), str(len(b"<p>home</p>")))

            conn.request("GET", "/index.html")
            get = conn.getresponse()
            self.assertEqual(get.status, 200)
            self.assertEqual(get.read(), b"<p>home</p>")
        finally:
            conn.close()


if __name__ == "__main__":
    unittest.main()
