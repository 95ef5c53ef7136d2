"""Asset build pipeline: hashing, CSP, compression and the build itself."""

from .build import BuildError, BuildReport, BuildResult, EntryStats, build_assets
from .compress import Precompressed, precompress
from .csp import InlineContentSet, SecurityPolicy, build_policy, extract_inline_content
from .entry import AssetEntry
from .hashing import csp_digest, fnv1a_32, weak_etag
from .manifest import SiteManifest, cache_control_for, content_type_for

__all__ = [
    "AssetEntry",
    "BuildError",
    "BuildReport",
    "BuildResult",
    "EntryStats",
    "InlineContentSet",
    "Precompressed",
    "SecurityPolicy",
    "SiteManifest",
    "build_assets",
    "build_policy",
    "cache_control_for",
    "content_type_for",
    "csp_digest",
    "extract_inline_content",
    "fnv1a_32",
    "precompress",
    "weak_etag",
]
