"""Tests for asset entries and their per-variant tags."""

import unittest
from unittest.mock import patch

from sitepack.assets.entry import AssetEntry
from sitepack.assets.hashing import weak_etag


def _entry(**overrides: object) -> AssetEntry:
    fields = {
        "path": "/style.css",
        "media_type": "text/css; charset=utf-8",
        "cache_control": "no-cache",
        "body": b"body{margin:0}",
        "br": b"BR-BYTES",
        "gz": b"GZ-BYTES",
    }
    fields.update(overrides)
    return AssetEntry.from_variants(**fields)  # type: ignore[arg-type]


class TestAssetEntry(unittest.TestCase):
    def test_tags_computed_per_variant(self) -> None:
        entry = _entry()
        self.assertEqual(entry.etag, weak_etag(b"body{margin:0}"))
        self.assertEqual(entry.br_etag, weak_etag(b"BR-BYTES"))
        self.assertEqual(entry.gz_etag, weak_etag(b"GZ-BYTES"))
        self.assertEqual(len({entry.etag, entry.br_etag, entry.gz_etag}), 3)

    def test_changing_brotli_bytes_changes_only_brotli_tag(self) -> None:
        a = _entry()
        b = _entry(br=b"OTHER-BR-BYTES")
        self.assertNotEqual(a.br_etag, b.br_etag)
        self.assertEqual(a.etag, b.etag)
        self.assertEqual(a.gz_etag, b.gz_etag)

    def test_mismatched_tag_rejected(self) -> None:
        with self.assertRaises(ValueError):
            AssetEntry(
                path="/a",
                media_type="text/plain",
                cache_control="no-cache",
                body=b"a",
                etag=weak_etag(b"a"),
                br=b"b",
                br_etag=weak_etag(b"a"),
            )

    def test_tag_without_bytes_rejected(self) -> None:
        with self.assertRaises(ValueError):
            AssetEntry(
                path="/a",
                media_type="text/plain",
                cache_control="no-cache",
                body=b"a",
                etag=weak_etag(b"a"),
                gz_etag=weak_etag(b"a"),
            )

    def test_encodings_and_variants(self) -> None:
        entry = _entry(br=None)
        self.assertEqual(entry.encodings, ("gzip",))
        self.assertEqual(entry.variant("gzip"), (b"GZ-BYTES", weak_etag(b"GZ-BYTES")))
        self.assertEqual(entry.variant("br"), (entry.body, entry.etag))
        self.assertEqual(entry.variant(None), (entry.body, entry.etag))
        self.assertEqual(_entry().encodings, ("br", "gzip"))

    def test_each_variant_hashed_once(self) -> None:
        with patch("sitepack.assets.entry.weak_etag", wraps=weak_etag) as hashed:
            entry = _entry()
        self.assertEqual(hashed.call_count, 3)
        # Tags built by from_variants satisfy the validator
        self.assertEqual(AssetEntry.model_validate(entry.model_dump()), entry)


if __name__ == "__main__":
    unittest.main()
