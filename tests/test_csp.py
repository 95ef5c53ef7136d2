"""Tests for Content-Security-Policy synthesis."""

import unittest

from sitepack.assets.csp import build_policy, extract_inline_content
from sitepack.assets.hashing import csp_digest


def _directives(csp: str) -> dict[str, list[str]]:
    out: dict[str, list[str]] = {}
    for directive in csp.split("; "):
        name, *sources = directive.split(" ")
        out[name] = sources
    return out


class TestCSP(unittest.TestCase):
    def test_hashes_match_served_bodies(self) -> None:
        html = "<html><head><style>body{margin:0}</style></head><body><script>go()</script></body></html>"
        inline = extract_inline_content(html)
        directives = _directives(build_policy(inline).csp)

        script_src = directives["script-src"]
        style_src = directives["style-src"]
        self.assertEqual(script_src, ["'self'", f"'sha256-{csp_digest('go()')}'"])
        self.assertEqual(style_src, ["'self'", f"'sha256-{csp_digest('body{margin:0}')}'"])
        self.assertEqual(directives["script-src-elem"], script_src)
        self.assertEqual(directives["style-src-elem"], style_src)

    def test_no_unsafe_inline_for_scripts(self) -> None:
        csp = build_policy(extract_inline_content("<p>static</p>")).csp
        directives = _directives(csp)
        self.assertEqual(directives["script-src"], ["'self'"])
        self.assertEqual(directives["style-src"], ["'self'", "'unsafe-inline'"])

    def test_external_and_blank_scripts_ignored(self) -> None:
        html = '<script src="a.js"></script><script>  </script><script>run()</script>'
        inline = extract_inline_content(html)
        self.assertEqual(inline.scripts, ("run()",))

    def test_bodies_hashed_exactly(self) -> None:
        inline = extract_inline_content("<script>\n run()\n</script>")
        self.assertEqual(inline.script_hashes, (csp_digest("\n run()\n"),))

    def test_duplicates_collapsed_in_order(self) -> None:
        html = "<style>a{}</style><style>b{}</style><style>a{}</style>"
        self.assertEqual(extract_inline_content(html).styles, ("a{}", "b{}"))

    def test_static_directives_and_headers(self) -> None:
        policy = build_policy(extract_inline_content(""))
        directives = _directives(policy.csp)
        self.assertEqual(list(directives)[0], "default-src")
        self.assertEqual(directives["object-src"], ["'none'"])
        self.assertEqual(directives["frame-ancestors"], ["'none'"])
        self.assertEqual(directives["base-uri"], ["'self'"])

        headers = dict(policy.headers())
        self.assertEqual(headers["Content-Security-Policy"], policy.csp)
        self.assertEqual(headers["X-Content-Type-Options"], "nosniff")
        self.assertEqual(headers["X-Frame-Options"], "DENY")
        self.assertIn("max-age=31536000", headers["Strict-Transport-Security"])
        self.assertIn("Referrer-Policy", headers)
        self.assertIn("Permissions-Policy", headers)


if __name__ == "__main__":
    unittest.main()
