"""In-memory serving table with encoding negotiation and conditional requests.

Request flow:
    lookup -> (hit | fallback read | not found) -> encoding negotiation
    -> If-None-Match check -> response

The table is built once and never mutated, so any number of request threads
can read it without locking.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from types import MappingProxyType
from typing import Mapping
from urllib.parse import unquote, urlsplit

from ..assets.build import BuildResult
from ..assets.csp import SecurityPolicy
from ..assets.entry import AssetEntry
from ..assets.manifest import cache_control_for, content_type_for, public_path
from ..config import ENTRY_HTML

logger = logging.getLogger(__name__)

ALLOWED_METHODS = ("GET", "HEAD")
NOT_FOUND_BODY = b"404 Not Found"
METHOD_NOT_ALLOWED_BODY = b"405 Method Not Allowed"
PLAIN_TEXT = "text/plain; charset=utf-8"


@dataclass(frozen=True)
class Response:
    """A fully determined HTTP response."""

    status: int
    headers: list[tuple[str, str]] = field(default_factory=list)
    body: bytes = b""

    def header(self, name: str) -> str | None:
        """First value of header ``name`` (case-insensitive), or None."""
        name_l = name.lower()
        for key, value in self.headers:
            if key.lower() == name_l:
                return value
        return None


def parse_accept_encoding(value: str) -> dict[str, float]:
    """Parse an Accept-Encoding header into ``{coding: qvalue}``."""
    prefs: dict[str, float] = {}
    for item in value.split(","):
        coding, _, params = item.partition(";")
        coding = coding.strip().lower()
        if not coding:
            continue
        q = 1.0
        for param in params.split(";"):
            key, _, raw = param.partition("=")
            if key.strip().lower() != "q":
                continue
            try:
                q = float(raw.strip())
            except ValueError:
                q = 0.0
        prefs[coding] = q
    return prefs


def negotiate_encoding(accept_encoding: str | None, available: tuple[str, ...]) -> str | None:
    """Pick the content-coding to send: ``br`` over ``gzip`` over identity.

    Only codings in ``available`` are considered; a coding with ``q=0`` is
    refused and ``*`` stands in for codings not listed by name.
    """
    prefs = parse_accept_encoding(accept_encoding or "")
    for coding in ("br", "gzip"):
        if coding not in available:
            continue
        if prefs.get(coding, prefs.get("*", 0.0)) > 0:
            return coding
    return None


def etag_matches(if_none_match: str | None, etag: str) -> bool:
    """True when If-None-Match names ``etag`` exactly (or is ``*``)."""
    if not if_none_match:
        return False
    candidates = [c.strip() for c in if_none_match.split(",")]
    return "*" in candidates or etag in candidates


class ServingTable:
    """Read-only map of request paths to precomputed asset entries."""

    def __init__(
        self,
        entries: Mapping[str, AssetEntry],
        policy: SecurityPolicy,
        root: Path | None = None,
        index_path: str = public_path(ENTRY_HTML),
    ):
        self._entries = MappingProxyType(dict(entries))
        self._security_headers = tuple(policy.headers())
        self.policy = policy
        self.index_path = index_path
        self.root = root.resolve() if root is not None else None

    @classmethod
    def from_build(cls, result: BuildResult, root: Path | None = None) -> "ServingTable":
        return cls(result.entries, result.policy, root=root)

    @property
    def entries(self) -> Mapping[str, AssetEntry]:
        return self._entries

    def lookup(self, path: str) -> AssetEntry | None:
        """Resolve a decoded request path to an entry, reading from disk if needed."""
        if path in {"", "/"}:
            path = self.index_path
        entry = self._entries.get(path)
        if entry is not None:
            return entry
        return self._read_fallback(path)

    def respond(self, method: str, target: str, headers: Mapping[str, str]) -> Response:
        """Answer one request.

        Args:
            method: HTTP method
            target: Request target (path plus optional query)
            headers: Request headers; only Accept-Encoding and If-None-Match are read

        Returns:
            Response with security headers on every status
        """
        method = method.upper()
        if method not in ALLOWED_METHODS:
            return self._plain(405, METHOD_NOT_ALLOWED_BODY, method, [("Allow", ", ".join(ALLOWED_METHODS))])

        path = unquote(urlsplit(target).path)
        entry = self.lookup(path)
        if entry is None:
            return self._plain(404, NOT_FOUND_BODY, method)

        encoding = negotiate_encoding(headers.get("Accept-Encoding"), entry.encodings)
        body, etag = entry.variant(encoding)

        response_headers = [
            *self._security_headers,
            ("Content-Type", entry.media_type),
            ("Cache-Control", entry.cache_control),
            ("Vary", "Accept-Encoding"),
        ]
        if encoding is not None:
            response_headers.append(("Content-Encoding", encoding))
        response_headers.append(("ETag", etag))

        if etag_matches(headers.get("If-None-Match"), etag):
            return Response(status=304, headers=response_headers)

        response_headers.append(("Content-Length", str(len(body))))
        return Response(
            status=200,
            headers=response_headers,
            body=b"" if method == "HEAD" else body,
        )

    def _plain(
        self,
        status: int,
        body: bytes,
        method: str,
        extra: list[tuple[str, str]] | None = None,
    ) -> Response:
        headers = [
            *self._security_headers,
            ("Content-Type", PLAIN_TEXT),
            *(extra or []),
            ("Content-Length", str(len(body))),
        ]
        return Response(status=status, headers=headers, body=b"" if method == "HEAD" else body)

    def _read_fallback(self, path: str) -> AssetEntry | None:
        """Serve a file outside the manifest straight from the site root.

        Hidden segments (``.git``, ``.env``, ``..``) are never served, and the
        resolved file must stay inside the root.
        """
        if self.root is None:
            return None
        parts = PurePosixPath(path.lstrip("/")).parts
        if not parts or any(part.startswith(".") for part in parts):
            return None
        try:
            candidate = self.root.joinpath(*parts).resolve()
            candidate.relative_to(self.root)
        except (OSError, ValueError):
            return None
        if not candidate.is_file():
            return None

        try:
            data = candidate.read_bytes()
            mtime = candidate.stat().st_mtime
        except OSError:
            logger.warning("Failed to read fallback file %s", candidate, exc_info=True)
            return None

        rel_path = "/".join(parts)
        return AssetEntry.from_variants(
            path=public_path(rel_path),
            media_type=content_type_for(rel_path),
            cache_control=cache_control_for(rel_path),
            body=data,
            mtime=mtime,
        )
