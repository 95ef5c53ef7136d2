"""HTTP transport for the serving table.

The site is a handful of in-memory lookups per request, so the standard
library's threading server is all the transport it needs.
"""

from __future__ import annotations

import logging
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

from .. import __version__
from .table import Response, ServingTable

logger = logging.getLogger(__name__)

# Larger request bodies are not drained; the connection is closed instead
MAX_DISCARDED_BODY = 64 * 1024


class SiteRequestHandler(BaseHTTPRequestHandler):
    """Hands every request to the server's ServingTable."""

    server: "SiteServer"
    server_version = f"SitePack/{__version__}"
    protocol_version = "HTTP/1.1"

    def do_GET(self) -> None:
        self._dispatch()

    do_HEAD = do_GET
    do_POST = do_GET
    do_PUT = do_GET
    do_PATCH = do_GET
    do_DELETE = do_GET
    do_OPTIONS = do_GET

    def _dispatch(self) -> None:
        response = self.server.table.respond(self.command, self.path, self.headers)
        if not self._discard_body():
            self.close_connection = True
            response = Response(
                status=response.status,
                headers=[*response.headers, ("Connection", "close")],
                body=response.body,
            )
        self._write(response)

    def _discard_body(self) -> bool:
        """Read and drop the request body so the connection can be reused.

        Returns False when the body cannot be skipped safely (chunked, invalid
        or oversized); the connection must then be closed.
        """
        if self.headers.get("Transfer-Encoding"):
            return False
        try:
            length = int(self.headers.get("Content-Length") or 0)
        except ValueError:
            return False
        if length < 0 or length > MAX_DISCARDED_BODY:
            return False
        if length:
            self.rfile.read(length)
        return True

    def _write(self, response: Response) -> None:
        self.send_response(response.status)
        for name, value in response.headers:
            self.send_header(name, value)
        self.end_headers()
        if response.body:
            self.wfile.write(response.body)

    def log_message(self, format: str, *args: object) -> None:
        logger.info("%s - %s", self.address_string(), format % args)


class SiteServer(ThreadingHTTPServer):
    """Threading HTTP server bound to one immutable ServingTable."""

    daemon_threads = True

    def __init__(self, address: tuple[str, int], table: ServingTable):
        super().__init__(address, SiteRequestHandler)
        self.table = table


def run_server(table: ServingTable, host: str, port: int) -> None:
    """Serve ``table`` until interrupted.

    Raises:
        OSError: if the address cannot be bound
    """
    with SiteServer((host, port), table) as server:
        bound_host, bound_port = server.server_address[:2]
        logger.info("Server running on http://%s:%d", bound_host, bound_port)
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            logger.info("Shutting down")
