"""Build pipeline turning the site manifest into precomputed asset entries."""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from pydantic import BaseModel

from ..minify.css import minify_css
from ..minify.html import minify_html, tag_attributes
from ..minify.js import minify_js
from .compress import precompress
from .csp import InlineContentSet, SecurityPolicy, build_policy, extract_inline_content
from .entry import AssetEntry
from .manifest import SiteManifest, cache_control_for, content_type_for, public_path

logger = logging.getLogger(__name__)

_ATTRS = r"""(?:"[^"]*"|'[^']*'|[^'">])*"""
_LINK_RE = re.compile(r"<link\b" + _ATTRS + r">", re.IGNORECASE)
_EXTERNAL_SCRIPT_RE = re.compile(r"(<script\b" + _ATTRS + r">)\s*</script\s*>", re.IGNORECASE)
_BODY_CLOSE_RE = re.compile(r"</body\s*>", re.IGNORECASE)

_MINIFIERS: dict[str, Callable[[str], str]] = {
    ".css": minify_css,
    ".js": minify_js,
}


class BuildError(Exception):
    """Raised when the build cannot run at all."""


@dataclass(frozen=True)
class SourceFile:
    path: str
    data: bytes
    mtime: float


class EntryStats(BaseModel):
    """Size report for one built entry."""

    path: str
    source_bytes: int
    body_bytes: int
    br_bytes: int | None = None
    gz_bytes: int | None = None

    @property
    def minified(self) -> bool:
        return self.body_bytes != self.source_bytes


class BuildReport(BaseModel):
    """Per-entry sizes and the warnings collected during a build."""

    entries: list[EntryStats]
    warnings: list[str]


class BuildResult(BaseModel):
    """Result of building the site."""

    model_config = {"arbitrary_types_allowed": True}

    entries: dict[str, AssetEntry]
    policy: SecurityPolicy
    inline: InlineContentSet
    report: BuildReport


def read_source(root: Path, rel_path: str) -> SourceFile | None:
    """Read a manifest file, returning None when it does not exist."""
    path = root / rel_path
    if not path.is_file():
        return None
    data = path.read_bytes()
    return SourceFile(path=rel_path, data=data, mtime=path.stat().st_mtime)


def decode_text(data: bytes) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return data.decode("latin-1")


def inline_assets(
    html: str,
    manifest: SiteManifest,
    css: str | None = None,
    js: str | None = None,
) -> str:
    """Replace external stylesheet/script references with inline blocks.

    The first ``<link>`` to the stylesheet becomes a ``<style>`` element and
    any further links to it are dropped. The script reference becomes an
    inline ``<script>``; a ``defer`` script is moved to the end of ``<body>``
    so that it still runs after the document is parsed.
    """
    if css is not None:
        html = _inline_stylesheet(html, manifest.stylesheet, css)
    if js is not None:
        html = _inline_script(html, manifest.script, js)
    return html


def _inline_stylesheet(html: str, name: str, css: str) -> str:
    css = re.sub(r"</(style)", r"<\\/\1", css, flags=re.IGNORECASE)
    inlined = False

    def replace(match: re.Match[str]) -> str:
        nonlocal inlined
        attrs = tag_attributes(match.group(0))
        if _normalize_ref(attrs.get("href")) != name or not _is_stylesheet_link(attrs):
            return match.group(0)
        if inlined:
            return ""
        inlined = True
        return f"<style>{css}</style>"

    return _LINK_RE.sub(replace, html)


def _inline_script(html: str, name: str, js: str) -> str:
    js = re.sub(r"</(script)", r"<\\/\1", js, flags=re.IGNORECASE)
    deferred: list[str] = []
    inlined = False

    def replace(match: re.Match[str]) -> str:
        nonlocal inlined
        attrs = tag_attributes(match.group(1))
        if _normalize_ref(attrs.get("src")) != name:
            return match.group(0)
        if inlined:
            return ""
        inlined = True
        is_module = (attrs.get("type") or "").strip().lower() == "module"
        element = f"<script{' type=module' if is_module else ''}>{js}</script>"
        if "defer" in attrs and not is_module:
            deferred.append(element)
            return ""
        return element

    html = _EXTERNAL_SCRIPT_RE.sub(replace, html)
    if deferred:
        closes = list(_BODY_CLOSE_RE.finditer(html))
        if closes:
            at = closes[-1].start()
            html = html[:at] + deferred[0] + html[at:]
        else:
            html += deferred[0]
    return html


def _normalize_ref(ref: str | None) -> str | None:
    if not ref:
        return None
    ref = ref.strip().split("#", 1)[0].split("?", 1)[0]
    while ref.startswith(("./", "/")):
        ref = ref[2:] if ref.startswith("./") else ref[1:]
    return ref


def _is_stylesheet_link(attrs: dict[str, str | None]) -> bool:
    rel = (attrs.get("rel") or "").lower().split()
    if "stylesheet" in rel:
        return True
    return "preload" in rel and (attrs.get("as") or "").lower() == "style"


def render_entry_html(
    html_source: SourceFile,
    manifest: SiteManifest,
    stylesheet: SourceFile | None = None,
    script: SourceFile | None = None,
) -> str:
    """Produce the final served HTML: inline minified CSS/JS, then minify.

    Pipeline: minify stylesheet/script -> inline into HTML -> minify HTML
    """
    css = minify_css(decode_text(stylesheet.data)) if stylesheet else None
    js = minify_js(decode_text(script.data)) if script else None
    html = inline_assets(decode_text(html_source.data), manifest, css=css, js=js)
    return minify_html(html)


def transform_source(source: SourceFile) -> bytes:
    """Apply the type-specific minifier, or pass binary/text assets through."""
    minify = _MINIFIERS.get(Path(source.path).suffix.lower())
    if minify is None:
        return source.data
    return minify(decode_text(source.data)).encode("utf-8")


async def build_entry(source: SourceFile, body: bytes) -> AssetEntry:
    """Compress ``body`` and wrap it with type, cache policy and tags."""
    media_type = content_type_for(source.path)
    compressed = await precompress(body, media_type)
    return AssetEntry.from_variants(
        path=public_path(source.path),
        media_type=media_type,
        cache_control=cache_control_for(source.path),
        body=body,
        br=compressed.br,
        gz=compressed.gz,
        mtime=source.mtime,
    )


async def build_assets(root: Path, manifest: SiteManifest | None = None) -> BuildResult:
    """Build every manifest entry into an in-memory asset table.

    Args:
        root: Site directory holding the manifest files
        manifest: File names to build (defaults from config)

    Returns:
        BuildResult with entries keyed by public path, the security policy
        derived from the served HTML, and a size/warning report

    Missing files are skipped. A failure on one entry is recorded as a warning
    and does not stop the others.
    """
    manifest = manifest or SiteManifest()
    root = Path(root)
    if not root.is_dir():
        raise BuildError(f"Site root not found: {root}")

    warnings: list[str] = []
    logger.info("Building and compressing files from %s", root)

    # Step 1: Read sources
    sources: dict[str, SourceFile] = {}
    for rel_path in manifest.files():
        try:
            source = read_source(root, rel_path)
        except OSError as e:
            logger.warning("Failed to read %s", rel_path, exc_info=True)
            warnings.append(f"Failed to read {rel_path}: {e}")
            continue
        if source is None:
            logger.info("Skipping %s (not found)", rel_path)
            continue
        sources[rel_path] = source

    # Step 2: Transform (the HTML entry gets CSS/JS inlined before minifying)
    payloads: dict[str, bytes] = {}
    inline = InlineContentSet()
    for rel_path, source in sources.items():
        try:
            if rel_path == manifest.entry:
                html = render_entry_html(
                    source,
                    manifest,
                    stylesheet=sources.get(manifest.stylesheet),
                    script=sources.get(manifest.script),
                )
                payloads[rel_path] = html.encode("utf-8")
                # Hash exactly what will be served
                inline = extract_inline_content(html)
            else:
                payloads[rel_path] = transform_source(source)
        except Exception as e:
            logger.warning("Failed to transform %s", rel_path, exc_info=True)
            warnings.append(f"Failed to transform {rel_path}: {e}")

    # Step 3: Derive the security policy from the final HTML
    policy = build_policy(inline)

    # Step 4: Precompress and tag every entry concurrently
    names = list(payloads)
    results = await asyncio.gather(
        *(build_entry(sources[name], payloads[name]) for name in names),
        return_exceptions=True,
    )

    entries: dict[str, AssetEntry] = {}
    stats: list[EntryStats] = []
    for name, result in zip(names, results):
        if isinstance(result, BaseException):
            logger.warning("Failed to build %s", name, exc_info=result)
            warnings.append(f"Failed to build {name}: {result}")
            continue
        entries[result.path] = result
        entry_stats = EntryStats(
            path=result.path,
            source_bytes=len(sources[name].data),
            body_bytes=len(result.body),
            br_bytes=len(result.br) if result.br is not None else None,
            gz_bytes=len(result.gz) if result.gz is not None else None,
        )
        stats.append(entry_stats)
        _log_stats(entry_stats)

    return BuildResult(
        entries=entries,
        policy=policy,
        inline=inline,
        report=BuildReport(entries=stats, warnings=warnings),
    )


def _log_stats(stats: EntryStats) -> None:
    logger.info(
        "%s: original=%d bytes, body=%d bytes, brotli=%s, gzip=%s",
        stats.path,
        stats.source_bytes,
        stats.body_bytes,
        stats.br_bytes if stats.br_bytes is not None else "-",
        stats.gz_bytes if stats.gz_bytes is not None else "-",
    )
