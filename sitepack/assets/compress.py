"""Brotli/Gzip precompression of asset bodies."""

from __future__ import annotations

import asyncio
import gzip
import logging
from dataclasses import dataclass
from typing import Callable

import brotli

from ..config import BROTLI_MAX_WINDOW, BROTLI_MIN_WINDOW, BROTLI_QUALITY, GZIP_LEVEL

logger = logging.getLogger(__name__)

_TEXT_MEDIA_PREFIXES = ("text/", "application/javascript", "application/json", "application/xml", "image/svg")


@dataclass(frozen=True)
class Precompressed:
    """Compressed variants of one payload. Absent variants are None."""

    br: bytes | None = None
    gz: bytes | None = None


def brotli_compress(data: bytes, text: bool = True) -> bytes:
    """Compress with Brotli, sizing the window from the payload length."""
    return brotli.compress(
        data,
        mode=brotli.MODE_TEXT if text else brotli.MODE_GENERIC,
        quality=BROTLI_QUALITY,
        lgwin=window_bits_for(len(data)),
    )


def gzip_compress(data: bytes) -> bytes:
    """Compress with Gzip at maximum level.

    The header timestamp is zeroed so equal input yields equal bytes (and
    therefore an equal ETag) across restarts.
    """
    return gzip.compress(data, compresslevel=GZIP_LEVEL, mtime=0)


def window_bits_for(size: int) -> int:
    """Smallest Brotli window (log2) that covers ``size`` bytes."""
    bits = BROTLI_MIN_WINDOW
    while bits < BROTLI_MAX_WINDOW and (1 << bits) - 16 < size:
        bits += 1
    return bits


def is_text_media(media_type: str) -> bool:
    return media_type.lower().startswith(_TEXT_MEDIA_PREFIXES)


async def precompress(data: bytes, media_type: str = "") -> Precompressed:
    """Produce Brotli and Gzip variants of ``data`` concurrently.

    Args:
        data: Canonical (uncompressed) body
        media_type: Content type, used to pick the Brotli mode

    Returns:
        Precompressed with each variant set when compression succeeded and
        made the payload smaller
    """
    br, gz = await asyncio.gather(
        _attempt("brotli", brotli_compress, data, is_text_media(media_type)),
        _attempt("gzip", gzip_compress, data),
    )
    return Precompressed(br=br, gz=gz)


async def _attempt(name: str, compress: Callable[..., bytes], data: bytes, *args: object) -> bytes | None:
    try:
        result = await asyncio.to_thread(compress, data, *args)
    except Exception:
        logger.warning("%s compression failed, serving without it", name, exc_info=True)
        return None
    if len(result) >= len(data):
        return None
    return result
