"""
Post-render transforms applied to every generated HTML page.

rewrite_md_links turns links between Markdown sources (`other.md`,
`./other.md#part`, `../dir/index.md`) and relative image paths into absolute
site URLs under the path prefix, so the same Markdown reads correctly both in
the repository browser and on the built site.

apply_path_prefix moves root-relative URLs ("/css/site.css") under the path
prefix the site is deployed at.
"""

from __future__ import annotations

import logging
import re
from pathlib import PurePath
from typing import Callable, Optional, Tuple, Union

logger = logging.getLogger(__name__)

PathLike = Union[str, PurePath]

IMAGE_EXTENSIONS = ("png", "jpg", "jpeg", "gif", "webp", "svg")

# attributes written before href/src are kept as-is (group 1)
_ATTRS = r"((?:\s+[\w\-:]+=\"[^\"]*\")*?)"
_NAME = r"(\w[\w\-/]+)"
_ANCHOR = r"(#[\w+\-]+)?"
_IMAGE_EXT = "(" + "|".join(IMAGE_EXTENSIONS) + ")"


def _link_re(lead: str) -> "re.Pattern[str]":
    return re.compile(rf"<a{_ATTRS}\s+href=\"{lead}{_NAME}\.md{_ANCHOR}\"", re.ASCII)


def _image_re(lead: str) -> "re.Pattern[str]":
    return re.compile(rf"<img{_ATTRS}\s+src=\"{lead}{_NAME}\.{_IMAGE_EXT}\"", re.ASCII)


# (pattern, uses parent base)
_LINK_RULES = (
    (_link_re(""), _image_re(""), False),
    (_link_re(r"\./"), _image_re(r"\./"), False),
    (_link_re(r"\.\./"), _image_re(r"\.\./"), True),
)

_URL_ATTR_RE = re.compile(r"(\s(?:href|src|poster|action)=)([\"'])(/(?!/)[^\"']*)\2")
_SRCSET_RE = re.compile(r"(\ssrcset=)([\"'])([^\"']*)\2")


def _last_slash(url: str, from_index: int) -> int:
    """Index of the last "/" at or before from_index; negative from_index counts as 0."""
    return url.rfind("/", 0, max(from_index, 0) + 1)


def link_bases(url: str, input_path: PathLike, path_prefix: str) -> Tuple[str, str]:
    """Return (start_url, start_url_parent) for a page.

    start_url is the site URL of the directory holding the source file;
    start_url_parent is the one above it, or start_url at the top level.
    """
    is_index = PurePath(str(input_path)).name == "index.md"
    first_last = len(url) if is_index else url.rfind("/")
    last_slash = _last_slash(url, first_last - 1)
    start_url = path_prefix + url[1 : last_slash + 1]
    last_last_slash = _last_slash(url, last_slash - 1)
    start_url_parent = (
        path_prefix + url[1 : last_last_slash + 1] if last_last_slash != -1 else start_url
    )
    return start_url, start_url_parent


def _link_repl(base: str) -> Callable[["re.Match[str]"], str]:
    def repl(match: "re.Match[str]") -> str:
        attrs, name, anchor = match.group(1), match.group(2), match.group(3) or ""
        target = f"{base}{name}/{anchor}".replace("/index/", "/")
        return f'<a{attrs} href="{target}"'

    return repl


def _image_repl(base: str) -> Callable[["re.Match[str]"], str]:
    def repl(match: "re.Match[str]") -> str:
        attrs, name, ext = match.group(1), match.group(2), match.group(3)
        return f'<img{attrs} src="{base}{name}.{ext}"'

    return repl


def rewrite_md_links(
    content: str,
    input_path: Optional[PathLike],
    output_path: Optional[PathLike],
    url: Optional[str],
    path_prefix: str = "/",
) -> str:
    """Rewrite relative .md links and image paths of a page rendered from Markdown.

    Only pages whose source ends in .md and whose output ends in .html are
    touched; anything not matching the link patterns passes through unchanged.
    """
    if not (
        input_path
        and str(input_path).endswith(".md")
        and output_path
        and str(output_path).endswith(".html")
        and url
    ):
        return content

    start_url, start_url_parent = link_bases(url, input_path, path_prefix)
    logger.debug("link bases for %s: %s %s", url, start_url, start_url_parent)

    for link_re, image_re, use_parent in _LINK_RULES:
        base = start_url_parent if use_parent else start_url
        content = link_re.sub(_link_repl(base), content)
        content = image_re.sub(_image_repl(base), content)
    return content


# -- path prefix --
def _prefixed(url: str, path_prefix: str) -> str:
    if url.startswith(path_prefix):
        return url
    return path_prefix.rstrip("/") + url


def apply_path_prefix(content: str, path_prefix: str) -> str:
    """Move root-relative URL attributes under path_prefix.

    Values already under the prefix, protocol-relative URLs ("//cdn...") and
    relative paths are left alone. No-op when the prefix is "/".
    """
    if not path_prefix or path_prefix == "/":
        return content

    def url_repl(match: "re.Match[str]") -> str:
        attr, quote, value = match.groups()
        return f"{attr}{quote}{_prefixed(value, path_prefix)}{quote}"

    def srcset_repl(match: "re.Match[str]") -> str:
        attr, quote, value = match.groups()
        candidates = []
        for candidate in value.split(","):
            parts = candidate.strip().split(None, 1)
            if not parts:
                continue
            src = parts[0]
            if src.startswith("/") and not src.startswith("//"):
                src = _prefixed(src, path_prefix)
            candidates.append(" ".join([src] + parts[1:]))
        return f"{attr}{quote}{', '.join(candidates)}{quote}"

    content = _URL_ATTR_RE.sub(url_repl, content)
    return _SRCSET_RE.sub(srcset_repl, content)
