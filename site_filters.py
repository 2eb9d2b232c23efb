"""
Template filters registered on the Jinja2 environment used for layouts.

- log_value: print a value while debugging a template
- extract_title / omit_title: split the first <h1> off rendered content
- toc: table of contents built from heading ids
- html_base_url: absolute site URLs under the configured path prefix
"""

from __future__ import annotations

import html
import logging
import re
from typing import Any, Dict, List, Sequence

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

# same line only: `.` does not cross newlines
_H1_RE = re.compile(r"<h1[^>]*>(.*?)</h1>", re.IGNORECASE)
_URL_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*:")


def log_value(value: Any) -> Any:
    logger.info("%r %s", value, type(value).__name__)
    return value


def extract_title(content: str) -> str:
    """Inner HTML of the first <h1>, or "" when the content has none."""
    match = _H1_RE.search(content)
    return match.group(1) if match else ""


def omit_title(content: str) -> str:
    """Content without its first <h1> element."""
    match = _H1_RE.search(content)
    if not match:
        return content
    return content[: match.start()] + content[match.end():]


# -- table of contents --
class _TocEntry:
    def __init__(self, level: int, anchor: str, text: str):
        self.level = level
        self.anchor = anchor
        self.text = text
        self.children: List["_TocEntry"] = []


def _collect_headings(content: str, tags: Sequence[str]) -> List[_TocEntry]:
    soup = BeautifulSoup(content, "html.parser")
    wanted = [t.lower() for t in tags]
    entries: List[_TocEntry] = []
    for node in soup.find_all(wanted):
        anchor = node.get("id")
        if not anchor:
            continue
        entries.append(_TocEntry(int(node.name[1]), anchor, node.get_text().strip()))
    return entries


def _nest(entries: List[_TocEntry]) -> List[_TocEntry]:
    root = _TocEntry(0, "", "")
    stack = [root]
    for entry in entries:
        while len(stack) > 1 and stack[-1].level >= entry.level:
            stack.pop()
        stack[-1].children.append(entry)
        stack.append(entry)
    return root.children


def _render_entries(entries: List[_TocEntry], list_tag: str) -> str:
    items: List[str] = []
    for entry in entries:
        inner = _render_entries(entry.children, list_tag) if entry.children else ""
        items.append(
            f'<li><a href="#{html.escape(entry.anchor)}">{html.escape(entry.text)}</a>{inner}</li>'
        )
    return f"<{list_tag}>{''.join(items)}</{list_tag}>"


def toc(
    content: str,
    tags: Sequence[str] = ("h2", "h3", "h4"),
    wrapper: str = "nav",
    wrapper_class: str = "toc",
    ul: bool = False,
    flat: bool = False,
) -> str:
    """Render a nested list linking to every heading in `tags` that has an id.

    Returns "" when no heading qualifies, so layouts can test `{% if toc_html %}`.
    """
    entries = _collect_headings(content or "", tags)
    if not entries:
        return ""
    list_tag = "ul" if ul else "ol"
    body = _render_entries(entries if flat else _nest(entries), list_tag)
    if not wrapper:
        return body
    class_attr = f' class="{html.escape(wrapper_class)}"' if wrapper_class else ""
    return f"<{wrapper}{class_attr}>{body}</{wrapper}>"


# -- urls --
def html_base_url(url: str, base_url: str = "", path_prefix: str = "/") -> str:
    """Prefix an absolute site path ("/a/b/") with path_prefix and base_url.

    Full URLs, protocol-relative URLs and relative paths come back unchanged.
    """
    if not url or not url.startswith("/") or url.startswith("//") or _URL_SCHEME_RE.match(url):
        return url
    if path_prefix and path_prefix != "/" and not url.startswith(path_prefix):
        url = path_prefix.rstrip("/") + url
    if base_url:
        return base_url.rstrip("/") + url
    return url


def all_filters(base_url: str, path_prefix: str) -> Dict[str, Any]:
    """Filters keyed by the names layouts use."""

    def _base(url: str, base: str = base_url) -> str:
        return html_base_url(url, base_url=base, path_prefix=path_prefix)

    return {
        "log_value": log_value,
        "extract_title": extract_title,
        "omit_title": omit_title,
        "toc": toc,
        "htmlBaseUrl": _base,
        "html_base_url": _base,
    }
