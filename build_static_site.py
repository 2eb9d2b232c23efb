#!/usr/bin/env python3
"""
Static site builder for the OpenFL tutorials.

Features:
- Converts every .md file under the input directory to <url>/index.html
  (pretty URLs: docs/setup.md -> /docs/setup/)
- Wraps pages in a Jinja2 layout from _includes/ (default: article.html)
- Rewrites links between .md sources and relative image paths to absolute
  site URLs under the path prefix
- Minifies pages (htmlmin) and .css files (csscompressor)
- Copies .png/.jpg/.gif assets as-is, preserving directory structure
- Global data from _data/*.json|yaml; per-page YAML front matter

Usage:
  python build_static_site.py --input ./tutorials --output ./_site
  python build_static_site.py --input . --path-prefix /openfl-adc-tutorials/ --verbose

Notes:
- Requires markdown, Jinja2, PyYAML, beautifulsoup4, htmlmin2, csscompressor, jsmin
"""

from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path
import re
import shutil
import stat
from typing import Any, Dict, Iterator, List, Optional, Tuple

import markdown
import yaml
from jinja2 import Environment, FileSystemLoader, TemplateNotFound, TemplateSyntaxError

from site_filters import all_filters
from site_minify import minify_css, minify_html
from site_config import (
    BASE_URL,
    CONFIG_FILE,
    DEFAULT_LAYOUT,
    OUTPUT_DIR,
    PATH_PREFIX,
    SITE_TITLE,
    DataFileError,
    SiteConfig,
    load_config_file,
)
from site_transforms import apply_path_prefix, rewrite_md_links

logger = logging.getLogger(__name__)

MARKDOWN_EXTENSIONS = ["extra", "fenced_code", "tables", "toc"]

_FRONT_MATTER_RE = re.compile(r"\A---[ \t]*\r?\n(.*?)^---[ \t]*\r?(?:\n|\Z)", re.DOTALL | re.MULTILINE)


class FrontMatterError(ValueError):
    """Raised when a page's YAML front matter cannot be used."""


# -- data structures --
class Page:
    """A Markdown template and where it ends up in the site."""

    def __init__(self, source: Path, input_path: str, url: str, output_path: Path, data: Dict[str, Any], body: str):
        self.source = source
        self.input_path = input_path  # "./docs/setup.md"
        self.url = url  # "/docs/setup/", without the path prefix
        self.output_path = output_path
        self.data = data
        self.body = body
        self.content = ""

    def page_data(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "inputPath": self.input_path,
            "outputPath": str(self.output_path),
            "fileSlug": self.source.stem,
        }


class BuildReport:
    """Counts of what a build wrote."""

    def __init__(self, pages: int = 0, stylesheets: int = 0, assets: int = 0):
        self.pages = pages
        self.stylesheets = stylesheets
        self.assets = assets

    def __repr__(self) -> str:
        return f"BuildReport(pages={self.pages}, stylesheets={self.stylesheets}, assets={self.assets})"


# -- helpers: scanning --
def is_markdown_file(path: Path) -> bool:
    return path.suffix.lower() == ".md"


def is_css_file(path: Path) -> bool:
    return path.suffix.lower() == ".css"


def is_passthrough_file(path: Path, config: SiteConfig) -> bool:
    return path.suffix.lower() in config.passthrough_extensions


def iter_input_files(config: SiteConfig) -> Iterator[Path]:
    """Yield build inputs in a stable order.

    Skips hidden files/folders and the output, includes and data directories.
    """
    input_root = config.input_dir
    excluded = {p.resolve() for p in (config.output_dir, config.includes_dir, config.data_dir)}
    for dirpath, dirnames, filenames in os.walk(input_root):
        current_dir = Path(dirpath)
        dirnames[:] = sorted(
            d for d in dirnames
            if not d.startswith(".") and (current_dir / d).resolve() not in excluded
        )
        for fname in sorted(filenames):
            if fname.startswith("."):
                continue
            yield current_dir / fname


# -- helpers: urls --
def page_url(rel_path: Path) -> str:
    """Pretty URL of a Markdown page relative to the input root."""
    parts = list(rel_path.with_suffix("").parts)
    if parts and parts[-1].lower() == "index":
        parts = parts[:-1]
    return "/" + "".join(f"{part}/" for part in parts)


def permalink_url(permalink: str) -> str:
    return "/" + str(permalink).strip().lstrip("/")


def output_path_for_url(output_root: Path, url: str) -> Path:
    """/a/b/ -> a/b/index.html; /a/b.html -> a/b.html."""
    if url.endswith("/"):
        return output_root / url.strip("/") / "index.html"
    return output_root / url.lstrip("/")


# -- helpers: front matter --
def split_front_matter(text: str, source: Optional[Path] = None) -> Tuple[Dict[str, Any], str]:
    """Split a leading `---` YAML block from the Markdown body.

    Returns (data, body); data is {} when there is no front matter.
    """
    match = _FRONT_MATTER_RE.match(text)
    if not match:
        return {}, text
    try:
        data = yaml.safe_load(match.group(1)) or {}
    except yaml.YAMLError as exc:
        raise FrontMatterError(f"Invalid front matter in {source or 'page'}: {exc}") from exc
    if not isinstance(data, dict):
        raise FrontMatterError(f"Front matter must be a mapping in {source or 'page'}")
    return data, text[match.end():]


# -- helpers: HTML generation --
def convert_markdown(md_text: str) -> str:
    """Convert markdown to HTML; headings get ids for the ToC and anchors."""
    return markdown.markdown(md_text, extensions=MARKDOWN_EXTENSIONS)


def make_environment(config: SiteConfig) -> Environment:
    """Jinja2 environment over the includes folder with the site filters."""
    env = Environment(
        loader=FileSystemLoader(str(config.includes_dir)),
        autoescape=False,
        keep_trailing_newline=True,
    )
    env.filters.update(all_filters(config.base_url, config.path_prefix))
    return env


def render_layout(env: Environment, page: Page) -> str:
    """Wrap the rendered content in the page's layout; no layout -> bare content."""
    layout = page.data.get("layout")
    if not layout:
        return page.content
    template = env.get_template(str(layout))
    context = dict(page.data)
    context["content"] = page.content
    context["page"] = page.page_data()
    return template.render(**context)


def render_page(page: Page, env: Environment, config: SiteConfig) -> str:
    """Markdown -> layout -> link rewrite -> path prefix -> minify."""
    page.content = convert_markdown(page.body)
    output = render_layout(env, page)
    output = rewrite_md_links(output, page.input_path, page.output_path, page.url, config.path_prefix)
    output = apply_path_prefix(output, config.path_prefix)
    if config.minify and str(page.output_path).endswith(".html"):
        output = minify_html(output)
    return output


# -- load pages --
def load_page(md_path: Path, config: SiteConfig, global_data: Dict[str, Any]) -> Optional[Page]:
    """Read one Markdown file; None when its front matter sets `permalink: false`."""
    rel = md_path.relative_to(config.input_dir)
    front, body = split_front_matter(md_path.read_text(encoding="utf-8"), source=rel)

    permalink = front.get("permalink")
    if permalink is False:
        logger.debug("skipping %s (permalink: false)", rel.as_posix())
        return None
    url = permalink_url(permalink) if permalink else page_url(rel)

    data = dict(global_data)
    data.update(front)
    return Page(
        source=md_path,
        input_path=f"./{rel.as_posix()}",
        url=url,
        output_path=output_path_for_url(config.output_dir, url),
        data=data,
        body=body,
    )


# -- write outputs --
def write_pages(config: SiteConfig, md_files: List[Path]) -> int:
    """Render every Markdown page through its layout and write it."""
    env = make_environment(config)
    global_data = config.global_data()
    written: Dict[Path, str] = {}
    for md_path in md_files:
        page = load_page(md_path, config, global_data)
        if page is None:
            continue
        if page.output_path in written:
            logger.warning(
                "%s and %s both write %s; keeping the latter",
                written[page.output_path], page.input_path, page.url,
            )
        written[page.output_path] = page.input_path
        output = render_page(page, env, config)
        page.output_path.parent.mkdir(parents=True, exist_ok=True)
        page.output_path.write_text(output, encoding="utf-8")
        logger.debug("wrote %s -> %s", page.input_path, page.output_path)
    return len(written)


def write_stylesheets(config: SiteConfig, css_files: List[Path]) -> int:
    """Write each stylesheet at the same relative path, minified."""
    for src in css_files:
        dst = config.output_dir / src.relative_to(config.input_dir)
        text = src.read_text(encoding="utf-8")
        dst.parent.mkdir(parents=True, exist_ok=True)
        dst.write_text(minify_css(text) if config.minify else text, encoding="utf-8")
    return len(css_files)


def copy_passthrough(config: SiteConfig, assets: List[Path]) -> int:
    """Copy image assets unchanged, preserving structure."""
    for src in assets:
        dst = config.output_dir / src.relative_to(config.input_dir)
        dst.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(src, dst)
    return len(assets)


def build_site(config: SiteConfig) -> BuildReport:
    md_files: List[Path] = []
    css_files: List[Path] = []
    assets: List[Path] = []
    for path in iter_input_files(config):
        if is_markdown_file(path):
            md_files.append(path)
        elif is_css_file(path):
            css_files.append(path)
        elif is_passthrough_file(path, config):
            assets.append(path)

    config.output_dir.mkdir(parents=True, exist_ok=True)
    report = BuildReport()
    # copy assets first
    report.assets = copy_passthrough(config, assets)
    report.stylesheets = write_stylesheets(config, css_files)
    report.pages = write_pages(config, md_files)
    logger.info("built %d pages, %d stylesheets, %d assets", report.pages, report.stylesheets, report.assets)
    return report


def clean_output_dir(output_root: Path) -> None:
    """Remove and recreate the output folder."""
    if output_root.exists():
        def _handle_remove_readonly(func, path, exc_info):  # Windows: clear read-only then retry
            os.chmod(path, stat.S_IWRITE)
            func(path)
        shutil.rmtree(output_root, onerror=_handle_remove_readonly)
    output_root.mkdir(parents=True, exist_ok=True)


def holds_sources(output_root: Path, config: SiteConfig) -> bool:
    """True if cleaning output_root would delete build inputs."""
    if output_root.resolve() in {config.includes_dir.resolve(), config.data_dir.resolve()}:
        return True
    return output_root.is_dir() and any(p.is_file() for p in output_root.rglob("*.md"))


# -- CLI --
def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Build the tutorials site from a folder of Markdown files.")
    parser.add_argument("--input", type=Path, default=Path("."), help="Folder with the Markdown sources (default: .)")
    parser.add_argument("--output", type=Path, default=None, help=f"Output folder (default: <input>/{OUTPUT_DIR})")
    parser.add_argument("--config", type=Path, default=None, help=f"YAML config file (default: <input>/{CONFIG_FILE})")
    parser.add_argument("--title", type=str, default=None, help="Site title exposed to layouts as siteTitle")
    parser.add_argument("--layout", type=str, default=None, help="Default layout in _includes/")
    parser.add_argument("--path-prefix", type=str, default=None, help="URL folder the site is served under")
    parser.add_argument("--base-url", type=str, default=None, help="Absolute site origin for htmlBaseUrl")
    parser.add_argument("--no-minify", action="store_true", help="Write pages and stylesheets unminified")
    parser.add_argument("--no-clean", action="store_true", help="Keep existing files in the output folder")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def _pick(cli_value: Any, file_cfg: Dict[str, Any], key: str, default: Any) -> Any:
    if cli_value is not None:
        return cli_value
    return file_cfg.get(key, default)


def config_from_args(args: argparse.Namespace) -> SiteConfig:
    """CLI flags override site.yaml, which overrides the module defaults."""
    input_root: Path = args.input.expanduser().resolve()
    if not input_root.exists() or not input_root.is_dir():
        raise SystemExit(f"Input directory not found: {input_root}")

    config_path = args.config if args.config is not None else input_root / CONFIG_FILE
    try:
        file_cfg = load_config_file(config_path)
    except (ValueError, yaml.YAMLError) as exc:
        raise SystemExit(f"Invalid config file {config_path}: {exc}") from exc

    if args.output is not None:
        output_root = args.output.expanduser().resolve()
    elif file_cfg.get("output"):
        output_root = (input_root / str(file_cfg["output"])).resolve()
    else:
        output_root = input_root / OUTPUT_DIR
    if output_root == input_root or output_root in input_root.parents:
        raise SystemExit(f"Output directory must not contain the input directory: {output_root}")

    return SiteConfig(
        input_dir=input_root,
        output_dir=output_root,
        site_title=_pick(args.title, file_cfg, "site_title", SITE_TITLE),
        layout=_pick(args.layout, file_cfg, "layout", DEFAULT_LAYOUT),
        path_prefix=_pick(args.path_prefix, file_cfg, "path_prefix", PATH_PREFIX),
        base_url=_pick(args.base_url, file_cfg, "base_url", BASE_URL),
        minify=False if args.no_minify else bool(file_cfg.get("minify", True)),
    )


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    config = config_from_args(args)

    # prepare output directory (clean create)
    if args.no_clean:
        config.output_dir.mkdir(parents=True, exist_ok=True)
    elif holds_sources(config.output_dir, config):
        raise SystemExit(f"Output directory holds source files, refusing to clean it: {config.output_dir}")
    else:
        clean_output_dir(config.output_dir)

    try:
        report = build_site(config)
    except TemplateNotFound as exc:
        raise SystemExit(f"Layout not found in {config.includes_dir}: {exc.name}") from exc
    except TemplateSyntaxError as exc:
        raise SystemExit(f"Template error in {exc.filename or exc.name}:{exc.lineno}: {exc.message}") from exc
    except (FrontMatterError, DataFileError) as exc:
        raise SystemExit(str(exc)) from exc

    print(f"Site generated at: {config.output_dir} ({report.pages} pages, {report.stylesheets} stylesheets, {report.assets} assets)")


if __name__ == "__main__":
    main()
