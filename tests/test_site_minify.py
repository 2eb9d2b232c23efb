from __future__ import annotations

from build_static_site import convert_markdown
from site_minify import minify_css, minify_html, minify_js

PAGE = """<!DOCTYPE html PUBLIC "-//W3C//DTD XHTML 1.0 Transitional//EN" "http://www.w3.org/TR/xhtml1/DTD/xhtml1-transitional.dtd">
<html lang="en">
  <head>
    <style>
      /* layout */
      body { color: red; }
    </style>
    <script>
      // greet
      function greet(name) {
        return "hi " + name;
      }
    </script>
    <script type="application/json">{"a": 1}</script>
  </head>
  <body>
    <!-- note for editors -->
    <p>Hello   world</p>
    <pre>line 1
    line 2</pre>
  </body>
</html>
"""


def test_minify_css_removes_comments_and_whitespace():
    out = minify_css("/* header */\nbody {\n  margin: 0;\n  color: red;\n}\n")
    assert out == "body{margin:0;color:red}"


def test_minify_js_strips_comments():
    out = minify_js("function add(a, b) {\n  // sum\n  return a + b;\n}\n")
    assert "// sum" not in out
    assert "return a+b" in out


def test_minify_html_shortens_doctype_and_drops_comments():
    out = minify_html(PAGE)
    assert out.startswith("<!DOCTYPE html>")
    assert "note for editors" not in out
    assert len(out) < len(PAGE)


def test_minify_html_minifies_inline_style_and_script():
    out = minify_html(PAGE)
    assert "body{color:red}" in out
    assert "/* layout */" not in out
    assert "// greet" not in out
    assert "function greet(name){" in out
    assert '{"a": 1}' in out


def test_minify_html_keeps_preformatted_text():
    out = minify_html(PAGE)
    assert "<pre>line 1\n    line 2</pre>" in out
    assert "Hello world" in out


def test_minify_html_keeps_space_between_wrapped_inline_elements():
    html = convert_markdown("See [setup](setup.md)\n[training](training.md) and `fx`\n`--help` now.\n")
    out = minify_html(html)
    assert "</a> <a" in out
    assert "</code> <code>" in out
    assert "\n" not in out
