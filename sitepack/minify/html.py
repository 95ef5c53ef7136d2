"""HTML minification.

The document is split into comments, raw-text elements (``script``,
``style``, ``pre``, ``textarea``), tags and text runs with a single scanning
regex. Each piece is minified on its own terms so that attribute rewriting
never touches text content and whitespace collapsing never reaches into
script, style or preformatted bodies.
"""

from __future__ import annotations

import re

from .css import minify_css
from .js import minify_js

_ATTRS = r"""(?:"[^"]*"|'[^']*'|[^'">])*"""

_TOKEN_RE = re.compile(
    r"(?P<comment><!--.*?-->)"
    r"|(?P<raw>(?P<open><(?P<raw_name>script|style|pre|textarea)\b" + _ATTRS + r">)"
    r"(?P<body>.*?)</(?P=raw_name)\s*>)"
    r"|(?P<tag></?[A-Za-z!?]" + _ATTRS + r">)",
    re.IGNORECASE | re.DOTALL,
)

_ATTR_RE = re.compile(r"""([^\s"'>/=]+)(?:\s*=\s*("[^"]*"|'[^']*'|[^\s"'=<>`]+))?""")
_TAG_NAME_RE = re.compile(r"[^\s/>]+")

# Attribute values made only of these characters can go unquoted
_SAFE_VALUE_RE = re.compile(r"[A-Za-z0-9._:/-]+")

_DEFAULT_TYPES = {
    "script": "text/javascript",
    "style": "text/css",
    "link": "text/css",
}

_JS_TYPES = {"", "text/javascript", "application/javascript", "module"}


def minify_html(html: str) -> str:
    """Minify an HTML document.

    - Drops comments, keeping conditional comments (``<!--[if ...``)
    - Removes whitespace-only runs between tags, collapses other runs to one space
    - Minifies inline ``<style>`` and ``<script>`` bodies
    - Unquotes safe attribute values and drops default ``type`` attributes
    """
    parts: list[str] = []
    pending_text: list[str] = []
    pos = 0

    def flush_text() -> None:
        text = re.sub(r"\s+", " ", "".join(pending_text))
        pending_text.clear()
        if text.strip():
            parts.append(text)

    for match in _TOKEN_RE.finditer(html):
        pending_text.append(html[pos : match.start()])
        pos = match.end()

        comment = match.group("comment")
        if comment is not None:
            if comment.startswith(("<!--[if", "<!--<![endif]")):
                flush_text()
                parts.append(comment)
            continue

        flush_text()
        if match.group("raw") is not None:
            parts.append(_minify_raw_element(match))
        else:
            parts.append(minify_tag(match.group("tag")))

    pending_text.append(html[pos:])
    flush_text()
    return "".join(parts).strip()


def tag_attributes(tag: str) -> dict[str, str | None]:
    """Parse the attributes of a start tag into a lowercase-keyed dict.

    Valueless (boolean) attributes map to None. Quotes are removed from values.
    """
    name = _TAG_NAME_RE.match(tag, 1)
    if name is None:
        return {}
    attrs: dict[str, str | None] = {}
    for m in _ATTR_RE.finditer(tag, name.end(), len(tag) - 1):
        value = m.group(2)
        if value is not None and value[:1] in {'"', "'"}:
            value = value[1:-1]
        attrs.setdefault(m.group(1).lower(), value)
    return attrs


def minify_tag(tag: str) -> str:
    """Normalize whitespace and attribute quoting inside a single tag."""
    if tag.startswith(("</", "<!", "<?")):
        return re.sub(r"\s+", " ", tag[:-1]).rstrip() + ">"

    inner = tag[1:-1].rstrip()
    self_closing = _is_self_closing(inner)
    if self_closing:
        inner = inner[:-1].rstrip()

    name_match = _TAG_NAME_RE.match(inner)
    if name_match is None:
        return tag
    name = name_match.group(0)

    rendered = [name]
    last_unquoted = False
    for m in _ATTR_RE.finditer(inner, name_match.end()):
        attr = _render_attribute(name, m.group(1), m.group(2))
        if attr:
            rendered.append(attr)
            last_unquoted = "=" in attr and attr[-1] not in {'"', "'"}

    out = " ".join(rendered)
    if self_closing:
        # "<img src=a.png/>" would put the slash inside the value
        out += " /" if last_unquoted else "/"
    return f"<{out}>"


def _is_self_closing(inner: str) -> bool:
    if not inner.endswith("/"):
        return False
    if len(inner) < 2 or inner[-2] in " \t\r\n\"'":
        return True
    return "=" not in inner.rsplit(None, 1)[-1]


def _render_attribute(tag_name: str, name: str, value: str | None) -> str:
    if value is None:
        return name

    quoted = value[:1] in {'"', "'"}
    raw = value[1:-1] if quoted else value

    default_type = _DEFAULT_TYPES.get(tag_name.lower())
    if name.lower() == "type" and default_type and raw.strip().lower() == default_type:
        return ""

    if _SAFE_VALUE_RE.fullmatch(raw):
        return f"{name}={raw}"
    return f"{name}={value}"


def _minify_raw_element(match: re.Match[str]) -> str:
    name = match.group("raw_name")
    open_tag = match.group("open")
    body = match.group("body")

    kind = name.lower()
    if kind == "style":
        body = minify_css(body)
    elif kind == "script" and _is_inline_javascript(open_tag):
        body = minify_js(body)

    return f"{minify_tag(open_tag)}{body}</{name}>"


def _is_inline_javascript(open_tag: str) -> bool:
    attrs = tag_attributes(open_tag)
    if "src" in attrs:
        return False
    return (attrs.get("type") or "").strip().lower() in _JS_TYPES
