from __future__ import annotations

import logging

from site_filters import all_filters, extract_title, html_base_url, log_value, omit_title, toc


def test_extract_title_returns_inner_html_of_first_h1():
    content = '<h1 id="setup">Setup <code>fx</code></h1><p>x</p><h1>Second</h1>'
    assert extract_title(content) == "Setup <code>fx</code>"


def test_extract_title_is_case_insensitive_and_empty_without_h1():
    assert extract_title("<H1 class='t'>Title</H1>") == "Title"
    assert extract_title("<p>no heading</p>") == ""
    # a heading split across lines is not a title
    assert extract_title("<h1>\nTitle\n</h1>") == ""


def test_omit_title_drops_only_the_first_h1():
    assert omit_title('<h1 id="a">A</h1>\n<p>body</p>') == "\n<p>body</p>"
    assert omit_title("<p>intro</p><h1>A</h1><p>body</p>") == "<p>intro</p><p>body</p>"
    assert omit_title("<p>body</p>") == "<p>body</p>"


CONTENT = (
    '<h1 id="title">Title</h1>'
    '<h2 id="install">Install</h2>'
    '<h3 id="pip">With pip</h3>'
    '<h2 id="run">Run &amp; check</h2>'
    "<h2>No id</h2>"
)


def test_toc_nests_headings_by_level():
    assert toc(CONTENT) == (
        '<nav class="toc"><ol>'
        '<li><a href="#install">Install</a><ol><li><a href="#pip">With pip</a></li></ol></li>'
        '<li><a href="#run">Run &amp; check</a></li>'
        "</ol></nav>"
    )


def test_toc_flat_unordered_without_wrapper():
    assert toc(CONTENT, ul=True, flat=True, wrapper="") == (
        '<ul><li><a href="#install">Install</a></li>'
        '<li><a href="#pip">With pip</a></li>'
        '<li><a href="#run">Run &amp; check</a></li></ul>'
    )


def test_toc_is_empty_without_headings():
    assert toc("<p>nothing here</p>") == ""
    assert toc('<h1 id="only">Only a title</h1>') == ""
    assert toc("") == ""


def test_html_base_url():
    assert html_base_url("/docs/", path_prefix="/p/") == "/p/docs/"
    assert html_base_url("/docs/", base_url="https://example.io/", path_prefix="/p/") == "https://example.io/p/docs/"
    assert html_base_url("/p/docs/", path_prefix="/p/") == "/p/docs/"
    assert html_base_url("/docs/") == "/docs/"
    assert html_base_url("docs/", path_prefix="/p/") == "docs/"
    assert html_base_url("https://openfl.io/", path_prefix="/p/") == "https://openfl.io/"
    assert html_base_url("//cdn.example.com/a.js", path_prefix="/p/") == "//cdn.example.com/a.js"


def test_log_value_returns_value_and_logs_type(caplog):
    caplog.set_level(logging.INFO, logger="site_filters")
    value = [1, 2]
    assert log_value(value) is value
    assert "[1, 2] list" in caplog.text


def test_all_filters_bind_site_urls():
    filters = all_filters("https://example.io", "/p/")
    assert set(filters) >= {"log_value", "extract_title", "omit_title", "toc", "htmlBaseUrl"}
    assert filters["htmlBaseUrl"]("/docs/") == "https://example.io/p/docs/"
    assert filters["htmlBaseUrl"]("/docs/", "") == "/p/docs/"
