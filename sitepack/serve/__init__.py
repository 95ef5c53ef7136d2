"""Request handling: serving table, negotiation and HTTP transport."""

from .http import SiteServer, run_server
from .table import Response, ServingTable, etag_matches, negotiate_encoding

__all__ = [
    "Response",
    "ServingTable",
    "SiteServer",
    "etag_matches",
    "negotiate_encoding",
    "run_server",
]
