"""
Site configuration for the tutorial site build.

Defaults live here as module constants; a YAML file (site.yaml) and the CLI
flags of build_static_site.py can override them.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Tuple

import yaml

logger = logging.getLogger(__name__)


# -- defaults --
SITE_TITLE = "OpenFL Tutorials"
DEFAULT_LAYOUT = "article.html"
PATH_PREFIX = "/openfl-adc-tutorials/"
BASE_URL = ""
OUTPUT_DIR = "_site"
INCLUDES_DIR = "_includes"
DATA_DIR = "_data"
CONFIG_FILE = "site.yaml"
PASSTHROUGH_EXTENSIONS: Tuple[str, ...] = (".png", ".jpg", ".gif")

# keys accepted in site.yaml
_FILE_KEYS = {"site_title", "layout", "path_prefix", "base_url", "output", "minify"}


class DataFileError(ValueError):
    """Raised when a _data file cannot be parsed."""


def normalize_path_prefix(prefix: Optional[str]) -> str:
    """Return the prefix with exactly one leading and one trailing slash."""
    prefix = (prefix or "").strip().strip("/")
    return f"/{prefix}/" if prefix else "/"


class SiteConfig:
    """Static configuration of one build."""

    def __init__(
        self,
        input_dir: Path,
        output_dir: Optional[Path] = None,
        site_title: str = SITE_TITLE,
        layout: Optional[str] = DEFAULT_LAYOUT,
        path_prefix: str = PATH_PREFIX,
        base_url: str = BASE_URL,
        includes_dir: str = INCLUDES_DIR,
        data_dir: str = DATA_DIR,
        passthrough_extensions: Iterable[str] = PASSTHROUGH_EXTENSIONS,
        minify: bool = True,
    ):
        self.input_dir = Path(input_dir)
        self.output_dir = Path(output_dir) if output_dir is not None else self.input_dir / OUTPUT_DIR
        self.site_title = site_title
        self.layout = layout
        self.path_prefix = normalize_path_prefix(path_prefix)
        self.base_url = (base_url or "").rstrip("/")
        self.includes_dir = self.input_dir / includes_dir
        self.data_dir = self.input_dir / data_dir
        self.passthrough_extensions = tuple(ext.lower() for ext in passthrough_extensions)
        self.minify = minify

    def global_data(self) -> Dict[str, Any]:
        """Data visible to every template: _data files first, then site values."""
        data = load_global_data(self.data_dir)
        data.update(
            {
                "siteTitle": self.site_title,
                "layout": self.layout,
                "pathPrefix": self.path_prefix,
                "baseUrl": self.base_url,
            }
        )
        return data

    def __repr__(self) -> str:
        return (
            f"SiteConfig(input_dir={self.input_dir!s}, output_dir={self.output_dir!s}, "
            f"path_prefix={self.path_prefix!r})"
        )


# -- loaders --
def load_global_data(data_dir: Path) -> Dict[str, Any]:
    """Read *.json / *.yaml / *.yml files from data_dir, keyed by file stem."""
    data: Dict[str, Any] = {}
    if not data_dir.is_dir():
        return data
    for path in sorted(data_dir.iterdir()):
        suffix = path.suffix.lower()
        if path.name.startswith(".") or not path.is_file():
            continue
        if suffix not in {".json", ".yaml", ".yml"}:
            continue
        text = path.read_text(encoding="utf-8")
        try:
            data[path.stem] = json.loads(text) if suffix == ".json" else yaml.safe_load(text)
        except (ValueError, yaml.YAMLError) as exc:
            raise DataFileError(f"Invalid data file {path}: {exc}") from exc
        logger.debug("loaded global data %s from %s", path.stem, path)
    return data


def load_config_file(path: Path) -> Dict[str, Any]:
    """Load overrides from a YAML config file; return {} if missing/empty."""
    if not path.is_file():
        return {}
    raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"Config file must contain a mapping: {path}")
    unknown = set(raw) - _FILE_KEYS
    for key in sorted(unknown):
        logger.warning("config option '%s' not recognized in %s", key, path)
    return {k: v for k, v in raw.items() if k in _FILE_KEYS}
