# src/perf_enhancer/services/minify_service.py
"""
Regex based minifiers for inline <style> and <script> bodies.

Both are pure functions. They tokenize quoted strings (and JS template
literals) first so that nothing inside a string is ever touched, and only
strip comments and whitespace that carry no meaning.
"""
import re

# --- CSS ---

_CSS_STRING = r'"(?:[^"\\]|\\.)*"|\'(?:[^\'\\]|\\.)*\''

# Keeps strings, drops comments except /*! ... */ license blocks
_CSS_COMMENTS = re.compile(rf"({_CSS_STRING})|/\*(?!!).*?\*/", re.S)

# 1: string, 2: punctuation that never needs surrounding space,
# 3: colon (space after it only), 4: !important, else: whitespace run
_CSS_SPACES = re.compile(
    rf"({_CSS_STRING})|\s*([{{}};,>])\s*|(:)\s+|\s+(!important)|\s+",
    re.S,
)

_CSS_LAST_SEMICOLON = re.compile(rf"({_CSS_STRING})|;+(?=}})", re.S)


def _css_spaces(match: re.Match) -> str:
    if match.group(1) is not None:
        return match.group(1)
    if match.group(2) is not None:
        return match.group(2)
    if match.group(3) is not None:
        return ":"
    if match.group(4) is not None:
        return "!important"
    return " "


def minify_css(css: str) -> str:
    """
    Minifies CSS text.

    Removes comments, collapses whitespace, drops spaces around braces,
    semicolons, commas and child combinators, and drops the last semicolon
    of a block. Strings and descendant combinators are left intact.
    """
    if not css or not css.strip():
        return css

    out = _CSS_COMMENTS.sub(lambda m: m.group(1) or "", css)
    out = _CSS_SPACES.sub(_css_spaces, out)
    out = _CSS_LAST_SEMICOLON.sub(lambda m: m.group(1) or "", out)
    return out.strip()


# --- JS ---

_JS_STRING = (
    r'"(?:[^"\\\n]|\\.)*"'
    r"|'(?:[^'\\\n]|\\.)*'"
    r"|`(?:[^`\\]|\\.)*`"
)

# A regex literal can only start where an expression starts: at the start of
# a line or after one of ( , = : [ ! & | ? { ;
_JS_REGEX = (
    r"(?:^|[(,=:\[!&|?{};])[ \t]*"
    r"/(?![/*])(?:[^/\\\[\r\n]|\\.|\[(?:[^\]\\\r\n]|\\.)*\])+/[A-Za-z]*"
)

_JS_TOKEN = rf"{_JS_STRING}|{_JS_REGEX}"

# 1: string or regex literal, 2: block comment, 3: line comment (not after
# ':' so bare urls survive, not after '\' so escaped slashes survive)
_JS_COMMENTS = re.compile(
    rf"({_JS_TOKEN})|(/\*(?!!|@cc_on).*?\*/)|(?<![:\\])//[^\n\r]*",
    re.S | re.M,
)

# 1: string or regex literal, 2: trailing blanks before a line break, else:
# line break plus any blank lines and indentation after it
_JS_LINES = re.compile(rf"({_JS_TOKEN})|([ \t]+)(?=[\r\n])|[\r\n]\s*", re.S | re.M)


def _js_comment(match: re.Match) -> str:
    if match.group(1) is not None:
        return match.group(1)
    block = match.group(2)
    if block is not None:
        # A comment spanning lines still separates statements (ASI)
        return "\n" if "\n" in block or "\r" in block else " "
    return ""


def _js_lines(match: re.Match) -> str:
    if match.group(1) is not None:
        return match.group(1)
    if match.group(2) is not None:
        return ""
    return "\n"


def minify_js(js: str) -> str:
    """
    Minifies inline JavaScript conservatively.

    Strips comments (keeping /*! and conditional compilation blocks), trailing
    blanks, indentation and empty lines. Line breaks are preserved so
    automatic semicolon insertion keeps working.
    """
    if not js or not js.strip():
        return js

    out = _JS_COMMENTS.sub(_js_comment, js)
    out = _JS_LINES.sub(_js_lines, out)
    return out.strip()
