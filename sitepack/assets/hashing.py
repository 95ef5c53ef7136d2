"""Content hashes: CSP source digests and ETag checksums."""

import base64
import hashlib

FNV_OFFSET_BASIS = 0x811C9DC5
FNV_PRIME = 0x01000193


def csp_digest(content: bytes | str) -> str:
    """Compute the base64 SHA-256 digest used in CSP ``'sha256-...'`` sources.

    Args:
        content: Bytes or string to hash (strings are UTF-8 encoded)

    Returns:
        Base64-encoded SHA-256 digest
    """
    if isinstance(content, str):
        content = content.encode("utf-8")
    return base64.b64encode(hashlib.sha256(content).digest()).decode("ascii")


def fnv1a_32(data: bytes) -> int:
    """32-bit FNV-1a checksum of ``data``."""
    h = FNV_OFFSET_BASIS
    for byte in data:
        h ^= byte
        h = (h * FNV_PRIME) & 0xFFFFFFFF
    return h


def weak_etag(data: bytes) -> str:
    """Weak validator for ``data``: ``W/"<8 hex digits>-<length>"``."""
    return f'W/"{fnv1a_32(data):08x}-{len(data)}"'
