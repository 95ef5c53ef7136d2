"""Text minifiers for HTML, CSS and JavaScript."""

from .css import minify_css
from .html import minify_html, minify_tag, tag_attributes
from .js import minify_js

__all__ = [
    "minify_css",
    "minify_html",
    "minify_js",
    "minify_tag",
    "tag_attributes",
]
