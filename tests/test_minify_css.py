"""Tests for CSS minification."""

import random
import unittest

from sitepack.minify.css import minify_css

SAMPLE = """
/* Layout */
:root { --gap: 0px; }
body {
  margin: 0px 0px 0px 0px;
  padding: 1rem 2rem 1rem 2rem;
  color: rgb(255, 255, 255);
  background: url( img/0.5x.png ) no-repeat;
  font-family: "SF  Mono", monospace;
}
.nav :hover, .nav > a + a { color: #AABBCC !important; }
.box { width: calc(100% - 2 * 0px); border-radius: 4px 4px 4px 4px; opacity: 0.50; }
@media screen and (max-width: 700px) {
  .empty { }
  .box { transition: opacity 0s; }
}
"""


TOKENS = [
    "a",
    ".nav",
    "#aabbcc",
    "{",
    "}",
    ";",
    ":",
    ",",
    ">",
    "+",
    "(",
    ")",
    " ",
    "\n",
    "margin",
    "padding:",
    "0px",
    "0.5",
    "1em",
    "auto",
    "rgb(255, 0, 0)",
    "!important",
    "calc(",
    "--gap:",
    "/* c */",
    '"s  t"',
    "url( x.png )",
    "@media",
]

class TestMinifyCSS(unittest.TestCase):
    def test_strips_comments_and_whitespace(self) -> None:
        css = "a {\n  color: #AABBCC;\n  margin: 0px;\n}\n"
        self.assertEqual(minify_css(css), "a{color:#ABC;margin:0}")

    def test_rgb_to_short_hex(self) -> None:
        self.assertEqual(minify_css("p { color: rgb(255, 255, 255) }"), "p{color:#fff}")

    def test_rgb_out_of_range_kept(self) -> None:
        self.assertEqual(minify_css("p { color: rgb(300, 0, 0) }"), "p{color:rgb(300,0,0)}")

    def test_strings_and_comment_markers_in_strings_preserved(self) -> None:
        css = '/* c */ .a::before { content: "a  /* b */  c"; }'
        self.assertEqual(minify_css(css), '.a::before{content:"a  /* b */  c"}')

    def test_box_shorthand_collapse(self) -> None:
        css = ".a { width: calc(100% - 2 * 10px); margin: 0px auto 0px auto }"
        self.assertEqual(minify_css(css), ".a{width:calc(100% - 2 * 10px);margin:0 auto}")

    def test_calc_keeps_spaces_and_units(self) -> None:
        css = ".a { width: calc(1px + 0px); }"
        self.assertEqual(minify_css(css), ".a{width:calc(1px + 0px)}")

    def test_adjacent_sibling_combinator_tightened(self) -> None:
        self.assertEqual(minify_css("h1 + p { color: red }"), "h1+p{color:red}")

    def test_media_query_keeps_space_before_paren(self) -> None:
        css = "@media screen and (max-width: 700px) { .a { color: red; } }"
        self.assertEqual(minify_css(css), "@media screen and (max-width:700px){.a{color:red}}")

    def test_leading_zero_and_time_units(self) -> None:
        css = "a { opacity: 0.50; transition: opacity 0s }"
        self.assertEqual(minify_css(css), "a{opacity:.50;transition:opacity 0s}")

    def test_empty_rules_removed(self) -> None:
        self.assertEqual(minify_css("a {} b { color: red }"), "b{color:red}")
        self.assertEqual(minify_css("@media print { a { } } b { color: red }"), "b{color:red}")

    def test_url_argument_untouched(self) -> None:
        css = "a { background: url( img/0.5x.png ) }"
        self.assertEqual(minify_css(css), "a{background:url(img/0.5x.png)}")

    def test_descendant_pseudo_class_kept(self) -> None:
        self.assertEqual(minify_css(".nav :hover { color: red }"), ".nav :hover{color:red}")

    def test_id_selector_not_treated_as_color(self) -> None:
        self.assertEqual(minify_css("#aabbcc { color: #aabbcc }"), "#aabbcc{color:#abc}")

    def test_important(self) -> None:
        self.assertEqual(minify_css("a { color: red !important; }"), "a{color:red!important}")

    def test_custom_property_keeps_unit(self) -> None:
        self.assertEqual(minify_css(":root { --gap: 0px; }"), ":root{--gap:0px}")

    def test_idempotent(self) -> None:
        once = minify_css(SAMPLE)
        self.assertEqual(minify_css(once), once)

    def test_sample_output_shape(self) -> None:
        out = minify_css(SAMPLE)
        self.assertIn('"SF  Mono"', out)
        self.assertIn("url(img/0.5x.png)", out)
        self.assertIn("margin:0;", out)
        self.assertIn("padding:1rem 2rem;", out)
        self.assertIn("border-radius:4px;", out)
        self.assertIn("color:#fff;", out)
        self.assertIn(".nav :hover,.nav>a+a{color:#ABC!important}", out)
        self.assertNotIn(".empty", out)

    def test_shorthand_collapsed_before_trailing_whitespace(self) -> None:
        self.assertEqual(minify_css("p{margin:0}\nmargin:0 0 0 0 \n"), "p{margin:0}margin:0")
        self.assertEqual(minify_css("a{padding:1px 2px 1px 2px} /* end */"), "a{padding:1px 2px}")

    def test_semicolon_left_by_empty_rule_removed(self) -> None:
        self.assertEqual(minify_css("a { color: red; b { } }"), "a{color:red}")

    def test_string_spanning_lines_untouched(self) -> None:
        css = 'a { content: "x \\\n  :  y"; }'
        self.assertEqual(minify_css(css), 'a{content:"x \\\n  :  y"}')

    def test_idempotent_on_sampled_sources(self) -> None:
        rng = random.Random(4321)
        for _ in range(500):
            css = "".join(rng.choice(TOKENS) for _ in range(rng.randint(1, 40)))
            once = minify_css(css)
            self.assertEqual(minify_css(once), once, msg=repr(css))


if __name__ == "__main__":
    unittest.main()
