"""CSS minification.

The minifier is a chain of regex rewrites, not a parser. Comments are dropped
and quoted strings and ``url(...)`` arguments are held aside before any rule
runs, so their contents come back byte-for-byte. Every rule is written so
that running the chain on its own output is a no-op.
"""

from __future__ import annotations

import re

_PROTECTED_RE = re.compile(
    r"""(?P<comment>/\*.*?(?:\*/|\Z))
      |(?P<string>"(?:\\.|[^"\\])*"|'(?:\\.|[^'\\])*')
      |(?P<url>(?<![\w-])url\(\s*(?P<url_arg>[^)"'\s]*)\s*\))""",
    re.DOTALL | re.VERBOSE | re.IGNORECASE,
)
_PLACEHOLDER_RE = re.compile(r"\x00(\d+)\x00")

# Punctuation that never needs surrounding whitespace
_BOTH_SIDES_RE = re.compile(r" ?([{};,>~]) ?")
_IMPORTANT_RE = re.compile(r" ?! ?")
# "a :hover" and "a [href]" are descendant selectors, "and (" is required in
# media queries: only trim on the inner side of these.
_AFTER_ONLY_RE = re.compile(r"([(\[:]) ")
_BEFORE_ONLY_RE = re.compile(r" ([)\]])")

_EXTRA_SEMICOLONS_RE = re.compile(r";{2,}")
_TRAILING_SEMICOLON_RE = re.compile(r";+\}")
_EMPTY_RULE_RE = re.compile(r"(?:(?<=[{};])|^)[^{};]+\{\}")

_RGB_RE = re.compile(r"(?<![\w-])rgb\((\d{1,3}),(\d{1,3}),(\d{1,3})\)", re.IGNORECASE)
# The trailing lookahead keeps ID selectors such as "#aabbcc{" untouched.
_HEX_RE = re.compile(
    r"#([0-9a-fA-F])\1([0-9a-fA-F])\2([0-9a-fA-F])\3(?![\w-])(?![^;{}]*\{)"
)

_ZERO_LENGTH_RE = re.compile(
    r"(?<![\w.#-])0+(?:\.0+)?(?:px|em|rem|ex|ch|vh|vw|vmin|vmax|cm|mm|in|pt|pc)(?![\w%-])"
)
_LEADING_ZERO_RE = re.compile(r"(?<![\w.#-])0+\.(\d)")
_MATH_FUNCTION_RE = re.compile(r"(?<![\w-])(?:calc|min|max|clamp)$", re.IGNORECASE)

_BOX_SHORTHAND_RE = re.compile(
    r"(?<![\w-])(margin|padding|border-radius):([^;{}!()/]+)(?=[;}!]|\Z)"
)


def minify_css(css: str) -> str:
    """Minify a stylesheet.

    Args:
        css: Stylesheet source

    Returns:
        Minified stylesheet
    """
    held: list[str] = []
    text = _PROTECTED_RE.sub(lambda m: _hold(m, held), css)

    text = re.sub(r"\s+", " ", text).strip()
    text = _BOTH_SIDES_RE.sub(r"\1", text)
    text = _IMPORTANT_RE.sub("!", text)
    text = _AFTER_ONLY_RE.sub(r"\1", text)
    text = _BEFORE_ONLY_RE.sub(r"\1", text)
    text = _tighten_sibling_combinators(text)

    text = _drop_empty_rules(text)

    text = _RGB_RE.sub(_rgb_to_hex, text)
    text = _HEX_RE.sub(r"#\1\2\3", text)
    text = _ZERO_LENGTH_RE.sub(lambda m: _strip_zero_unit(m, text), text)
    text = _LEADING_ZERO_RE.sub(r".\1", text)
    text = _BOX_SHORTHAND_RE.sub(_collapse_box_shorthand, text)

    text = _PLACEHOLDER_RE.sub(lambda m: held[int(m.group(1))], text)
    return text.strip()


def _hold(match: re.Match[str], held: list[str]) -> str:
    if match.group("comment") is not None:
        return " "
    if match.group("url") is not None:
        value = f"url({match.group('url_arg')})"
    else:
        value = match.group("string")
    held.append(value)
    return f"\x00{len(held) - 1}\x00"


def _tighten_sibling_combinators(text: str) -> str:
    """Drop spaces around ``+`` outside parentheses; ``calc()`` needs them."""
    out: list[str] = []
    depth = 0
    skip_space = False
    for ch in text:
        if skip_space:
            skip_space = False
            if ch == " ":
                continue
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth = max(depth - 1, 0)
        elif ch == "+" and depth == 0:
            if out and out[-1] == " ":
                out.pop()
            skip_space = True
        out.append(ch)
    return "".join(out)


def _drop_empty_rules(text: str) -> str:
    # Removing an inner empty rule can leave its @media wrapper empty, or
    # leave a stray semicolon before "}".
    while True:
        reduced = _EXTRA_SEMICOLONS_RE.sub(";", text)
        reduced = _TRAILING_SEMICOLON_RE.sub("}", reduced)
        reduced = _EMPTY_RULE_RE.sub("", reduced)
        if reduced == text:
            return text
        text = reduced


def _rgb_to_hex(match: re.Match[str]) -> str:
    channels = [int(v) for v in match.groups()]
    if any(c > 255 for c in channels):
        return match.group(0)
    return "#" + "".join(f"{c:02x}" for c in channels)


def _strip_zero_unit(match: re.Match[str], text: str) -> str:
    if _unit_required(text, match.start()):
        return match.group(0)
    return "0"


def _unit_required(text: str, pos: int) -> bool:
    """Return True when a zero length at ``pos`` must keep its unit.

    Unitless zero is invalid inside math functions, and a custom property
    value may later be substituted into one.
    """
    depth = 0
    for i in range(pos - 1, -1, -1):
        ch = text[i]
        if ch == ")":
            depth += 1
        elif ch == "(":
            if depth:
                depth -= 1
            elif _MATH_FUNCTION_RE.search(text, 0, i):
                return True
        elif ch in "{};" and depth == 0:
            return text.startswith("--", i + 1)
    return text.startswith("--")


def _collapse_box_shorthand(match: re.Match[str]) -> str:
    prop, values = match.groups()
    parts = values.split(" ")
    if len(parts) == 1:
        top = right = bottom = left = parts[0]
    elif len(parts) == 2:
        top, right = parts
        bottom, left = top, right
    elif len(parts) == 3:
        top, right, bottom = parts
        left = right
    elif len(parts) == 4:
        top, right, bottom, left = parts
    else:
        return match.group(0)

    if right == left:
        if top == bottom:
            shortest = [top] if top == right else [top, right]
        else:
            shortest = [top, right, bottom]
    else:
        shortest = [top, right, bottom, left]
    return f"{prop}:{' '.join(shortest)}"
