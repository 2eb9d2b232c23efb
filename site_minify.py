"""
Minification of generated pages and stylesheets.

CSS goes through csscompressor, inline JavaScript through jsmin and whole
pages through htmlmin (installed from the htmlmin2 distribution).
"""

from __future__ import annotations

import logging
import re
from typing import Dict, Union

import csscompressor
import htmlmin
import jsmin

logger = logging.getLogger(__name__)

# Options forwarded to htmlmin.minify: drop comments, collapse whitespace runs
# to one space, keep <pre>/<textarea> untouched.
HTMLMIN_OPTS: Dict[str, Union[bool, tuple, str]] = {
    "remove_comments": True,
    "remove_empty_space": False,
    "remove_all_empty_space": False,
    "reduce_empty_attributes": True,
    "reduce_boolean_attributes": False,
    "remove_optional_attribute_quotes": False,
    "convert_charrefs": False,
    "keep_pre": False,
    "pre_tags": ("pre", "textarea"),
    "pre_attr": "pre",
}

_JS_TYPES = {"", "text/javascript", "application/javascript", "module"}

_DOCTYPE_RE = re.compile(r"^\s*<!DOCTYPE[^>]*>", re.IGNORECASE)
_STYLE_RE = re.compile(r"(<style\b[^>]*>)(.*?)(</style>)", re.IGNORECASE | re.DOTALL)
_SCRIPT_RE = re.compile(r"(<script\b([^>]*)>)(.*?)(</script>)", re.IGNORECASE | re.DOTALL)
_TYPE_ATTR_RE = re.compile(r"""\btype\s*=\s*["']?([^"'\s>]*)""", re.IGNORECASE)
_SRC_ATTR_RE = re.compile(r"\bsrc\s*=", re.IGNORECASE)


def minify_css(content: str) -> str:
    return csscompressor.compress(content)


def minify_js(content: str) -> str:
    return jsmin.jsmin(content).strip()


def _is_inline_js(attrs: str) -> bool:
    if _SRC_ATTR_RE.search(attrs):
        return False
    match = _TYPE_ATTR_RE.search(attrs)
    script_type = match.group(1).lower() if match else ""
    return script_type in _JS_TYPES


def _minify_inline(content: str) -> str:
    def style_repl(match: "re.Match[str]") -> str:
        return f"{match.group(1)}{minify_css(match.group(2))}{match.group(3)}"

    def script_repl(match: "re.Match[str]") -> str:
        opening, attrs, body, closing = match.groups()
        if not body.strip() or not _is_inline_js(attrs):
            return match.group(0)
        return f"{opening}{minify_js(body)}{closing}"

    content = _STYLE_RE.sub(style_repl, content)
    return _SCRIPT_RE.sub(script_repl, content)


def minify_html(content: str) -> str:
    """Minify a full HTML page, including its inline <style> and <script> blocks."""
    content = _DOCTYPE_RE.sub("<!DOCTYPE html>", content, count=1)
    content = _minify_inline(content)
    return htmlmin.minify(content, **HTMLMIN_OPTS)
