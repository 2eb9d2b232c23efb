from __future__ import annotations

import json
import logging

import pytest

from site_config import (
    DEFAULT_LAYOUT,
    DataFileError,
    PATH_PREFIX,
    SITE_TITLE,
    SiteConfig,
    load_config_file,
    load_global_data,
    normalize_path_prefix,
)


@pytest.mark.parametrize(
    "prefix, expected",
    [
        ("/openfl-adc-tutorials/", "/openfl-adc-tutorials/"),
        ("openfl-adc-tutorials", "/openfl-adc-tutorials/"),
        ("/a/b", "/a/b/"),
        ("/", "/"),
        ("", "/"),
        (None, "/"),
    ],
)
def test_normalize_path_prefix(prefix, expected):
    assert normalize_path_prefix(prefix) == expected


def test_defaults(tmp_path):
    config = SiteConfig(tmp_path)
    assert config.output_dir == tmp_path / "_site"
    assert config.includes_dir == tmp_path / "_includes"
    assert config.path_prefix == PATH_PREFIX
    assert config.minify is True
    assert config.global_data() == {
        "siteTitle": SITE_TITLE,
        "layout": DEFAULT_LAYOUT,
        "pathPrefix": PATH_PREFIX,
        "baseUrl": "",
    }


def test_global_data_reads_data_directory(tmp_path):
    data_dir = tmp_path / "_data"
    data_dir.mkdir()
    (data_dir / "release.json").write_text(json.dumps({"version": "1.2"}), encoding="utf-8")
    (data_dir / "navigation.yaml").write_text("links:\n  - url: /docs/\n", encoding="utf-8")
    (data_dir / "notes.txt").write_text("ignored", encoding="utf-8")

    assert load_global_data(data_dir) == {
        "navigation": {"links": [{"url": "/docs/"}]},
        "release": {"version": "1.2"},
    }
    data = SiteConfig(tmp_path, site_title="Docs", base_url="https://example.io/").global_data()
    assert data["release"] == {"version": "1.2"}
    assert data["siteTitle"] == "Docs"
    assert data["baseUrl"] == "https://example.io"


def test_global_data_missing_directory(tmp_path):
    assert load_global_data(tmp_path / "_data") == {}


def test_load_config_file(tmp_path, caplog):
    path = tmp_path / "site.yaml"
    path.write_text("site_title: Docs\npath_prefix: /docs/\ncolour: blue\n", encoding="utf-8")
    with caplog.at_level(logging.WARNING, logger="site_config"):
        assert load_config_file(path) == {"site_title": "Docs", "path_prefix": "/docs/"}
    assert "colour" in caplog.text


def test_load_config_file_missing_or_invalid(tmp_path):
    assert load_config_file(tmp_path / "site.yaml") == {}
    path = tmp_path / "site.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config_file(path)


@pytest.mark.parametrize(
    "name, text",
    [
        ("release.json", '{"version": '),
        ("navigation.yaml", "links: [unclosed\n"),
    ],
)
def test_global_data_errors_name_the_file(tmp_path, name, text):
    data_dir = tmp_path / "_data"
    data_dir.mkdir()
    (data_dir / name).write_text(text, encoding="utf-8")
    with pytest.raises(DataFileError, match=name):
        load_global_data(data_dir)
