"""Unit tests for the markup sanitizer and its policies."""

import pytest

from quill.contexts.rendering.sanitizer import (
    HtmlSanitizer,
    SanitizerPolicy,
    available_policies,
    load_policies,
    load_policy,
    sanitize_markup,
)


@pytest.fixture
def standard():
    return HtmlSanitizer(load_policy("standard"))


@pytest.fixture
def strict():
    return HtmlSanitizer(load_policy("strict"))


@pytest.mark.unit
def test_policies_load():
    policies = load_policies()

    assert set(available_policies()) == {"standard", "strict"}
    assert isinstance(policies["standard"], SanitizerPolicy)
    assert "script" in policies["standard"].drop_elements
    assert "style" in policies["strict"].drop_elements


@pytest.mark.unit
def test_unknown_policy():
    with pytest.raises(ValueError, match="Policy 'lenient' not found"):
        load_policy("lenient")


@pytest.mark.unit
def test_script_removed_with_content(standard):
    assert standard.sanitize("<p>Hi</p><script>alert(1)</script>") == "<p>Hi</p>"


@pytest.mark.unit
@pytest.mark.parametrize("tag", ["iframe", "object", "noscript", "template", "applet"])
def test_dangerous_elements_removed(standard, tag):
    result = standard.sanitize(f"<p>keep</p><{tag}>gone</{tag}>")

    assert result == "<p>keep</p>"


@pytest.mark.unit
def test_style_inside_svg_is_dropped(standard):
    markup = "<p>keep</p><svg><style><img src=x onerror=alert(1)></style></svg>"

    result = standard.clean(markup)

    assert result.html == "<p>keep</p>"
    assert result.removed_elements == 1


@pytest.mark.unit
@pytest.mark.parametrize(
    "markup",
    [
        '<svg><a><animate attributeName="href" values="javascript:alert(1)"/><text>x</text></a></svg>',
        '<svg><set attributeName="href" to="javascript:alert(1)"/></svg>',
        '<animate attributeName="href" values="javascript:alert(1)"/>',
        "<math><mtext><style><img src=x onerror=alert(1)></style></mtext></math>",
    ],
)
def test_foreign_content_dropped(standard, strict, markup):
    assert standard.sanitize(f"<p>keep</p>{markup}") == "<p>keep</p>"
    assert strict.sanitize(f"<p>keep</p>{markup}") == "<p>keep</p>"


@pytest.mark.unit
def test_event_handlers_removed(standard):
    assert standard.sanitize('<p onclick="x()" class="a">Hi</p>') == '<p class="a">Hi</p>'
    assert standard.sanitize('<img src="a.png" OnError="x()"/>') == '<img src="a.png"/>'


@pytest.mark.unit
@pytest.mark.parametrize(
    "href",
    [
        "javascript:alert(1)",
        "JAVASCRIPT:alert(1)",
        "java\tscript:alert(1)",
        " javascript:alert(1)",
        "vbscript:msgbox(1)",
        "data:text/html;base64,PHNjcmlwdD4=",
    ],
)
def test_unsafe_uris_removed(standard, href):
    assert standard.sanitize(f'<a href="{href}">x</a>') == "<a>x</a>"


@pytest.mark.unit
@pytest.mark.parametrize(
    "href",
    ["https://example.com", "http://example.com", "mailto:a@b.com", "tel:+15551234567",
     "/relative/path", "#section", "johnsmith.dev"],
)
def test_safe_uris_kept(standard, href):
    assert standard.sanitize(f'<a href="{href}">x</a>') == f'<a href="{href}">x</a>'


@pytest.mark.unit
def test_image_data_uris(standard):
    png = '<img src="data:image/png;base64,iVBORw0KGgo="/>'
    svg = '<img src="data:image/svg+xml;base64,PHN2Zz4="/>'

    assert standard.sanitize(png) == png
    assert standard.sanitize(svg) == "<img/>"


@pytest.mark.unit
def test_srcdoc_and_unsafe_styles_removed(standard):
    assert standard.sanitize('<div srcdoc="<p>x</p>">y</div>') == "<div>y</div>"
    assert standard.sanitize('<p style="width: expression(alert(1))">x</p>') == "<p>x</p>"
    assert standard.sanitize('<p style="color: red">x</p>') == '<p style="color: red">x</p>'


@pytest.mark.unit
def test_srcset_checks_every_candidate(standard):
    safe = '<img srcset="a.png 1x, https://cdn.example.com/b.png 2x"/>'
    unsafe = '<img srcset="a.png 1x, javascript:alert(1) 2x"/>'

    assert standard.sanitize(safe) == safe
    assert standard.sanitize(unsafe) == "<img/>"


@pytest.mark.unit
def test_comments_kept_by_standard_dropped_by_strict(standard, strict):
    markup = "<p>a</p><!-- note -->"

    assert standard.sanitize(markup) == markup
    assert strict.sanitize(markup) == "<p>a</p>"


@pytest.mark.unit
def test_strict_policy(strict):
    assert strict.sanitize("<style>p{}</style><p>x</p>") == "<p>x</p>"
    assert strict.sanitize('<a href="http://example.com">x</a>') == "<a>x</a>"
    assert strict.sanitize('<a href="https://example.com">x</a>') == '<a href="https://example.com">x</a>'
    assert strict.sanitize("<form><input/></form><p>x</p>") == "<p>x</p>"


@pytest.mark.unit
def test_clean_reports_removals(standard):
    result = standard.clean('<script>x</script><p onclick="y()">z</p>')

    assert result.html == "<p>z</p>"
    assert result.removed == {"elements": 1, "attributes": 1, "comments": 0}


@pytest.mark.unit
def test_nested_dropped_elements_counted_once(standard):
    result = standard.clean("<object><script>x</script></object><p>a</p>")

    assert result.html == "<p>a</p>"
    assert result.removed_elements == 1


@pytest.mark.unit
def test_escaped_text_stays_inert(standard):
    markup = "<p>&lt;script&gt;alert(1)&lt;/script&gt;</p>"

    assert standard.sanitize(markup) == markup


@pytest.mark.unit
def test_empty_markup(standard):
    assert standard.sanitize("") == ""


@pytest.mark.unit
def test_sanitize_is_idempotent(standard):
    markup = '<div class="x"><a href="javascript:x" onclick="y">a</a><script>z</script></div>'
    once = standard.sanitize(markup)

    assert standard.sanitize(once) == once


@pytest.mark.unit
def test_sanitize_markup_by_policy_name():
    assert sanitize_markup("<style>p{}</style><p>x</p>", "standard") == "<style>p{}</style><p>x</p>"
    assert sanitize_markup("<style>p{}</style><p>x</p>", "strict") == "<p>x</p>"
