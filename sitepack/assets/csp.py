"""Content-Security-Policy synthesis from inline script/style hashes."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from ..minify.html import tag_attributes
from .hashing import csp_digest

logger = logging.getLogger(__name__)

_ATTRS = r"""(?:"[^"]*"|'[^']*'|[^'">])*"""
_SCRIPT_RE = re.compile(r"(<script\b" + _ATTRS + r">)(.*?)</script\s*>", re.IGNORECASE | re.DOTALL)
_STYLE_RE = re.compile(r"<style\b" + _ATTRS + r">(.*?)</style\s*>", re.IGNORECASE | re.DOTALL)

# Directives that do not depend on page content
STATIC_DIRECTIVES = (
    "img-src 'self' data: https:",
    "font-src 'self'",
    "connect-src 'self'",
    "media-src 'self'",
    "object-src 'none'",
    "child-src 'none'",
    "worker-src 'none'",
    "frame-ancestors 'none'",
    "form-action 'self'",
    "base-uri 'self'",
    "manifest-src 'self'",
)

STATIC_SECURITY_HEADERS = (
    ("X-Content-Type-Options", "nosniff"),
    ("X-Frame-Options", "DENY"),
    ("X-XSS-Protection", "1; mode=block"),
    ("Referrer-Policy", "strict-origin-when-cross-origin"),
    ("Strict-Transport-Security", "max-age=31536000; includeSubDomains; preload"),
    (
        "Permissions-Policy",
        "geolocation=(), microphone=(), camera=(), payment=(), usb=(), "
        "magnetometer=(), gyroscope=(), speaker=()",
    ),
)


@dataclass(frozen=True)
class InlineContentSet:
    """Distinct inline script and style bodies of one HTML document."""

    scripts: tuple[str, ...] = ()
    styles: tuple[str, ...] = ()

    @property
    def script_hashes(self) -> tuple[str, ...]:
        return tuple(csp_digest(body) for body in self.scripts)

    @property
    def style_hashes(self) -> tuple[str, ...]:
        return tuple(csp_digest(body) for body in self.styles)


@dataclass(frozen=True)
class SecurityPolicy:
    """The synthesized CSP plus the fixed security headers sent with it."""

    csp: str

    def headers(self) -> list[tuple[str, str]]:
        return [*STATIC_SECURITY_HEADERS, ("Content-Security-Policy", self.csp)]


def extract_inline_content(html: str) -> InlineContentSet:
    """Collect inline ``<script>`` (without ``src``) and ``<style>`` bodies.

    Bodies are kept exactly as they appear in ``html``: browsers hash the
    element text verbatim, so this must run on the final served document.
    Whitespace-only bodies are skipped.
    """
    scripts: dict[str, None] = {}
    for open_tag, body in _SCRIPT_RE.findall(html):
        if "src" in tag_attributes(open_tag):
            continue
        if body.strip():
            scripts.setdefault(body, None)

    styles: dict[str, None] = {}
    for body in _STYLE_RE.findall(html):
        if body.strip():
            styles.setdefault(body, None)

    return InlineContentSet(scripts=tuple(scripts), styles=tuple(styles))


def build_policy(inline: InlineContentSet) -> SecurityPolicy:
    """Build the Content-Security-Policy for a document's inline content.

    Scripts are allowed from ``'self'`` plus the exact inline hashes. Styles
    fall back to ``'unsafe-inline'`` only when the document has no inline
    style to hash; scripts never do.
    """
    script_sources = _source_list(inline.script_hashes)
    style_sources = _source_list(inline.style_hashes)
    if not inline.styles:
        style_sources += " 'unsafe-inline'"

    for digest in inline.script_hashes:
        logger.debug("Inline script hash: sha256-%s", digest)
    for digest in inline.style_hashes:
        logger.debug("Inline style hash: sha256-%s", digest)

    directives = [
        "default-src 'self'",
        f"script-src {script_sources}",
        f"script-src-elem {script_sources}",
        f"style-src {style_sources}",
        f"style-src-elem {style_sources}",
        *STATIC_DIRECTIVES,
    ]
    csp = "; ".join(directives)
    logger.info(
        "Generated CSP with %d inline content hashes",
        len(inline.scripts) + len(inline.styles),
    )
    return SecurityPolicy(csp=csp)


def _source_list(digests: tuple[str, ...]) -> str:
    return " ".join(["'self'", *(f"'sha256-{d}'" for d in digests)])
