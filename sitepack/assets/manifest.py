"""Site manifest, media types and cache policy."""

import mimetypes
from pathlib import PurePosixPath

from pydantic import BaseModel

from ..config import (
    CACHE_IMMUTABLE,
    CACHE_NO_CACHE,
    CACHE_SHORT,
    ENTRY_HTML,
    SCRIPT,
    STATIC_ASSETS,
    STYLESHEET,
)

CONTENT_TYPES = {
    ".html": "text/html; charset=utf-8",
    ".css": "text/css; charset=utf-8",
    ".js": "application/javascript; charset=utf-8",
    ".webp": "image/webp",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".svg": "image/svg+xml",
    ".ico": "image/x-icon",
    ".xml": "application/xml; charset=utf-8",
    ".txt": "text/plain; charset=utf-8",
    ".json": "application/json; charset=utf-8",
    ".woff2": "font/woff2",
}

# Long-lived, immutable caching
IMMUTABLE_SUFFIXES = {".css", ".js", ".webp", ".png", ".jpg", ".jpeg", ".svg", ".ico"}


class SiteManifest(BaseModel):
    """The fixed set of files the build pipeline reads from the site root."""

    model_config = {"frozen": True}

    entry: str = ENTRY_HTML
    stylesheet: str = STYLESHEET
    script: str = SCRIPT
    static_assets: tuple[str, ...] = STATIC_ASSETS

    def files(self) -> list[str]:
        """All manifest paths, HTML entry first."""
        return [self.entry, self.stylesheet, self.script, *self.static_assets]


def public_path(rel_path: str) -> str:
    """Serving-table key for a manifest-relative path."""
    return "/" + rel_path.replace("\\", "/").lstrip("/")


def content_type_for(path: str) -> str:
    """Media type for a file path (``application/octet-stream`` when unknown)."""
    suffix = PurePosixPath(path).suffix.lower()
    if suffix in CONTENT_TYPES:
        return CONTENT_TYPES[suffix]
    guessed, _ = mimetypes.guess_type(path)
    return guessed or "application/octet-stream"


def cache_control_for(path: str) -> str:
    """Cache-Control value for a file path."""
    suffix = PurePosixPath(path).suffix.lower()
    if suffix == ".html":
        return CACHE_NO_CACHE
    if suffix in IMMUTABLE_SUFFIXES:
        return CACHE_IMMUTABLE
    return CACHE_SHORT
