"""Configuration constants and paths for SitePack."""

import os
from pathlib import Path

# Listening socket; PORT matches the variable most process managers export
PORT = int(os.getenv("PORT", "3000"))
HOST = os.getenv("SITEPACK_HOST", "0.0.0.0")

# Directory holding index.html, style.css, script.js and the static assets
SITE_ROOT = Path(os.getenv("SITEPACK_ROOT", "."))

LOG_LEVEL = os.getenv("SITEPACK_LOG_LEVEL", "INFO")

# Manifest file names (relative to SITE_ROOT)
ENTRY_HTML = "index.html"
STYLESHEET = "style.css"
SCRIPT = "script.js"
STATIC_ASSETS = ("favicon.webp", "profile.webp", "robots.txt", "sitemap.xml")

# Compression settings
BROTLI_QUALITY = 11
BROTLI_MIN_WINDOW = 10
BROTLI_MAX_WINDOW = 24
GZIP_LEVEL = 9

# Cache-Control policies
CACHE_NO_CACHE = "no-cache"
CACHE_IMMUTABLE = "public, max-age=31536000, immutable"
CACHE_SHORT = "public, max-age=3600"
