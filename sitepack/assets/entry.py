"""Precomputed asset entries held by the serving table."""

from __future__ import annotations

from pydantic import BaseModel, model_validator

from .hashing import weak_etag

ENCODINGS = ("br", "gzip")


class AssetEntry(BaseModel):
    """One served path with its canonical body and compressed variants.

    Each ETag belongs to the bytes it sits next to; the validator rejects an
    entry whose tag was not computed from its own variant. Build entries with
    ``from_variants`` rather than by hand.
    """

    model_config = {"frozen": True}

    path: str
    media_type: str
    cache_control: str
    body: bytes
    etag: str
    br: bytes | None = None
    br_etag: str | None = None
    gz: bytes | None = None
    gz_etag: str | None = None
    mtime: float | None = None

    @model_validator(mode="after")
    def _check_etags(self) -> "AssetEntry":
        for name, data, tag in (
            ("body", self.body, self.etag),
            ("br", self.br, self.br_etag),
            ("gz", self.gz, self.gz_etag),
        ):
            if data is None:
                if tag is not None:
                    raise ValueError(f"{name} tag set without {name} bytes")
                continue
            if tag != weak_etag(data):
                raise ValueError(f"{name} tag does not match {name} bytes")
        return self

    @classmethod
    def from_variants(
        cls,
        path: str,
        media_type: str,
        cache_control: str,
        body: bytes,
        br: bytes | None = None,
        gz: bytes | None = None,
        mtime: float | None = None,
    ) -> "AssetEntry":
        """Create an entry, computing every tag from its own variant.

        Each variant is hashed once here; the tag validator is not re-run.
        """
        return cls.model_construct(
            path=path,
            media_type=media_type,
            cache_control=cache_control,
            body=body,
            etag=weak_etag(body),
            br=br,
            br_etag=weak_etag(br) if br is not None else None,
            gz=gz,
            gz_etag=weak_etag(gz) if gz is not None else None,
            mtime=mtime,
        )

    @property
    def encodings(self) -> tuple[str, ...]:
        """Content-codings this entry can be served with, best first."""
        available = {"br": self.br is not None, "gzip": self.gz is not None}
        return tuple(e for e in ENCODINGS if available[e])

    def variant(self, encoding: str | None) -> tuple[bytes, str]:
        """Body and ETag for ``encoding`` (None or unavailable: canonical)."""
        if encoding == "br" and self.br is not None:
            return self.br, self.br_etag or weak_etag(self.br)
        if encoding == "gzip" and self.gz is not None:
            return self.gz, self.gz_etag or weak_etag(self.gz)
        return self.body, self.etag
