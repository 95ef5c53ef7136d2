"""JavaScript minification.

A single-pass lexical scanner. It knows just enough of the language to tell
code apart from string, template and regex literals and from comments:
whitespace is only collapsed, and punctuation only tightened, in code. The
contents of every literal are copied through unchanged.
"""

from __future__ import annotations

import re
from enum import Enum


class _State(Enum):
    NORMAL = "normal"
    STRING = "string"
    TEMPLATE = "template"
    REGEX = "regex"
    BLOCK_COMMENT = "block-comment"
    LINE_COMMENT = "line-comment"


_LINE_BREAKS = "\n\r\u2028\u2029"

# After these a "/" starts a regex literal rather than a division
_REGEX_PRECEDERS = set("(,=:[!&|?{};+-*%<>~^")
_OPERATOR_KEYWORDS = {
    "await",
    "case",
    "delete",
    "do",
    "else",
    "in",
    "instanceof",
    "new",
    "of",
    "return",
    "throw",
    "typeof",
    "void",
    "yield",
}
# A line break after these always ends the statement
_RESTRICTED_KEYWORDS = {"break", "continue", "return", "throw", "yield"}

_STATEMENT_END_CHARS = set(")]}'\"`")
_STATEMENT_START_CHARS = set("'\"`{!~+-")

_BRACKET_KEY_RE = re.compile(r"""\[\s*(["'])([A-Za-z_$][A-Za-z0-9_$]*)\1\s*\]""")


def minify_js(source: str) -> str:
    """Minify JavaScript source.

    Args:
        source: Script source

    Returns:
        Minified script. String, template and regex literals are byte-identical
        to the input; comments are removed; whitespace survives only where two
        tokens would otherwise merge or where a line break may end a statement.
    """
    out: list[str] = []
    state = _State.NORMAL
    quote = ""
    escape = False
    in_class = False
    pending_space = False
    pending_newline = False
    brace_depth = 0
    # brace depth at each open "${" of an enclosing template literal
    template_stack: list[int] = []
    # len(out) right after the closing "/" of the last regex literal
    regex_end = -1

    def emit(text: str) -> None:
        nonlocal pending_space, pending_newline
        if pending_space and out:
            after_regex = regex_end == len(out)
            out.extend(_separator(out, text[0], pending_newline, after_regex))
        pending_space = pending_newline = False
        out.extend(text)

    i = 0
    n = len(source)
    while i < n:
        ch = source[i]
        nxt = source[i + 1] if i + 1 < n else ""

        if state is _State.STRING:
            out.append(ch)
            if escape:
                escape = False
                if ch == "\r" and nxt == "\n":
                    # CRLF line continuation
                    out.append(nxt)
                    i += 1
            elif ch == "\\":
                escape = True
            elif ch == quote:
                state = _State.NORMAL
            i += 1
            continue

        if state is _State.TEMPLATE:
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == "`":
                state = _State.NORMAL
            elif ch == "$" and nxt == "{":
                out.extend("${")
                template_stack.append(brace_depth)
                state = _State.NORMAL
                i += 2
                continue
            out.append(ch)
            i += 1
            continue

        if state is _State.REGEX:
            out.append(ch)
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == "[":
                in_class = True
            elif ch == "]":
                in_class = False
            elif ch == "/" and not in_class:
                state = _State.NORMAL
                regex_end = len(out)
            elif ch in _LINE_BREAKS:
                state = _State.NORMAL
            i += 1
            continue

        if state is _State.BLOCK_COMMENT:
            if ch == "*" and nxt == "/":
                state = _State.NORMAL
                i += 2
                continue
            if ch in _LINE_BREAKS:
                pending_newline = True
            i += 1
            continue

        if state is _State.LINE_COMMENT:
            if ch in _LINE_BREAKS:
                state = _State.NORMAL
                pending_newline = True
            i += 1
            continue

        # Normal state
        if ch.isspace():
            pending_space = True
            if ch in _LINE_BREAKS:
                pending_newline = True
            i += 1
            continue

        if ch == "/" and nxt == "*":
            state = _State.BLOCK_COMMENT
            pending_space = True
            i += 2
            continue

        if ch == "/" and nxt == "/":
            state = _State.LINE_COMMENT
            pending_space = True
            i += 2
            continue

        if ch == "/" and _regex_allowed(out):
            emit(ch)
            state = _State.REGEX
            in_class = False
            escape = False
            i += 1
            continue

        if ch in {'"', "'"}:
            emit(ch)
            state = _State.STRING
            quote = ch
            escape = False
            i += 1
            continue

        if ch == "`":
            emit(ch)
            state = _State.TEMPLATE
            escape = False
            i += 1
            continue

        if ch == "[":
            key = _BRACKET_KEY_RE.match(source, i)
            if key is not None and _is_member_access(out):
                emit("." + key.group(2))
                i = key.end()
                continue

        if ch == "{":
            brace_depth += 1
        elif ch == "}":
            if template_stack and brace_depth == template_stack[-1]:
                # closes a "${" and resumes the template literal
                template_stack.pop()
                pending_space = pending_newline = False
                out.append(ch)
                state = _State.TEMPLATE
                escape = False
                i += 1
                continue
            brace_depth = max(brace_depth - 1, 0)

        emit(ch)
        i += 1

    return "".join(out)


def _is_word(ch: str) -> bool:
    if len(ch) != 1:
        return False
    return ch.isalnum() or ch in {"_", "$"} or ord(ch) > 127


def _last_word(out: list[str]) -> str:
    chars: list[str] = []
    for ch in reversed(out):
        if not _is_word(ch):
            break
        chars.append(ch)
    return "".join(reversed(chars))


def _separator(out: list[str], ch: str, newline: bool, after_regex: bool = False) -> str:
    """Pick the whitespace that must stand between ``out`` and ``ch``.

    ``after_regex`` is set when ``out`` ends with a regex literal, whose flags
    would otherwise absorb a following word.
    """
    prev = out[-1]
    if newline:
        if _last_word(out) in _RESTRICTED_KEYWORDS:
            return "\n"
        ends_statement = (
            after_regex
            or _is_word(prev)
            or prev in _STATEMENT_END_CHARS
            or "".join(out[-2:]) in {"++", "--"}
        )
        if ends_statement and (_is_word(ch) or ch in _STATEMENT_START_CHARS):
            return "\n"
    if (after_regex or _is_word(prev)) and _is_word(ch):
        return " "
    if prev == ch and ch in {"+", "-", "/"}:
        return " "
    if prev == "/" and ch == "*":
        return " "
    if prev == "<" and ch == "!":
        return " "
    if prev.isdigit() and ch == ".":
        return " "
    return ""


def _regex_allowed(out: list[str]) -> bool:
    if not out:
        return True
    prev = out[-1]
    if prev in _REGEX_PRECEDERS or prev in {"}", "\n"}:
        return True
    if _is_word(prev):
        return _last_word(out) in _OPERATOR_KEYWORDS
    return False


def _is_member_access(out: list[str]) -> bool:
    if not out:
        return False
    prev = out[-1]
    if prev in {")", "]"}:
        return True
    if _is_word(prev):
        word = _last_word(out)
        return word not in _OPERATOR_KEYWORDS and not word[0].isdigit()
    return False
