"""Unit tests for TemplateRenderer."""

import pytest
from bs4 import BeautifulSoup

from quill.contexts.rendering.renderer import (
    TemplateRenderer,
    render_preview_document,
    render_template,
    uses_template_language,
)
from quill.contexts.rendering.sanitizer import HtmlSanitizer, load_policy
from quill.contexts.templating.helpers import default_helpers
from quill.contexts.templating.resume_data_structure import Experience, ResumeData, Skill
from quill.contexts.templating.template_data_structure import Template


def make_template(html, **kwargs):
    kwargs.setdefault("id", "test-template")
    kwargs.setdefault("name", "Test")
    kwargs.setdefault("uses_template_language", True)
    return Template(html=html, **kwargs)


@pytest.fixture
def renderer():
    return TemplateRenderer()


@pytest.mark.unit
def test_render_summary(renderer):
    template = make_template("{{#if summary}}<p>{{summary}}</p>{{/if}}")

    result = renderer.render(template, ResumeData(summary="Built scalable systems"))

    assert result == "<p>Built scalable systems</p>"


@pytest.mark.unit
def test_render_skills_list(renderer):
    template = make_template("{{#each skills}}{{name}}{{#unless @last}}, {{/unless}}{{/each}}")
    data = ResumeData(skills=[Skill(name="Go"), Skill(name="Rust")])

    assert renderer.render(template, data) == "Go, Rust"


@pytest.mark.unit
def test_empty_first_job_title_selects_else_branch(renderer):
    template = make_template(
        "{{#if experiences.[0].jobTitle}}<h2>{{experiences.[0].jobTitle}}</h2>"
        "{{else}}<h2>Untitled</h2>{{/if}}"
    )

    with_title = ResumeData(experiences=[Experience(job_title="Engineer")])
    empty_title = ResumeData(experiences=[Experience(job_title="")])

    assert renderer.render(template, with_title) == "<h2>Engineer</h2>"
    assert renderer.render(template, empty_title) == "<h2>Untitled</h2>"
    assert renderer.render(template, ResumeData()) == "<h2>Untitled</h2>"


@pytest.mark.unit
def test_render_dates(renderer):
    template = make_template(
        "{{#each experiences}}{{formatDate startDate}} - "
        "{{#if current}}Present{{else}}{{formatDate endDate}}{{/if}};{{/each}}"
    )
    data = ResumeData(
        experiences=[
            Experience(start_date="2022-01", current=True, end_date="2023-05"),
            Experience(start_date="2019-06", end_date="2021-02"),
        ]
    )

    assert renderer.render(template, data) == "January 2022 - Present;June 2019 - February 2021;"


@pytest.mark.unit
def test_render_accepts_camel_case_record(renderer):
    template = make_template("<h1>{{fullName}}</h1>")

    assert renderer.render(template, {"fullName": "Ann Lee"}) == "<h1>Ann Lee</h1>"


@pytest.mark.unit
def test_render_is_idempotent_and_does_not_mutate_inputs(renderer):
    template = make_template("{{#each experiences}}<p>{{company}}</p>{{/each}}")
    data = ResumeData(experiences=[Experience(company="Acme")])
    before = data.to_dict()

    first = renderer.render(template, data)
    second = renderer.render(template, data)

    assert first == second
    assert data.to_dict() == before
    assert template.html == "{{#each experiences}}<p>{{company}}</p>{{/each}}"


@pytest.mark.unit
@pytest.mark.parametrize("tag", ["{{summary}}", "{{{summary}}}", "{{&summary}}"])
def test_script_in_data_never_survives(renderer, tag):
    template = make_template(f"<p>{tag}</p>")
    data = ResumeData(summary="<script>alert('x')</script><img src=x onerror=alert(1)>")

    result = renderer.render(template, data)

    soup = BeautifulSoup(result, "html.parser")
    assert "<script" not in result.lower()
    assert not soup.find_all("script")
    assert not [attr for element in soup.find_all(True) for attr in element.attrs if attr.startswith("on")]


@pytest.mark.unit
@pytest.mark.parametrize(
    "payload",
    [
        "<svg><style><img src=x onerror=alert(1)></style></svg>",
        '<svg><a><animate attributeName="href" values="javascript:alert(1)"/>'
        "<text y=\"20\">click</text></a></svg>",
        "<math><mtext><style><img src=x onerror=alert(1)></style></mtext></math>",
    ],
)
def test_foreign_content_in_raw_output_is_dropped(renderer, payload):
    template = make_template("<div>{{{summary}}}</div>")

    result = renderer.render(template, ResumeData(summary=payload))

    assert result == "<div></div>"


@pytest.mark.unit
def test_raw_output_is_sanitized(renderer):
    template = make_template("<div>{{{summary}}}</div>")
    data = ResumeData(summary='<b onclick="x()">bold</b><script>alert(1)</script>')

    assert renderer.render(template, data) == "<div><b>bold</b></div>"


@pytest.mark.unit
def test_syntax_error_renders_error_fragment(renderer):
    template = make_template("{{#if summary}}<p>{{summary}}</p>")

    result = renderer.render(template, ResumeData(summary="x"))

    assert result.startswith('<div class="error">Template Error: ')
    assert "Unclosed block" in result


@pytest.mark.unit
def test_missing_helper_renders_error_fragment(renderer):
    template = make_template("<p>{{shout fullName}}</p>")

    result = renderer.render(template, ResumeData(full_name="Ann"))

    assert result.startswith('<div class="error">Template Error: ')
    assert "Missing helper" in result


@pytest.mark.unit
def test_deep_subexpressions_render_error_fragment(renderer):
    expression = "1"
    for _ in range(600):
        expression = f"(eq {expression} 1)"
    template = make_template("<p>{{eq " + expression + " 1}}</p>")

    result = renderer.render(template, ResumeData())

    assert result.startswith('<div class="error">Template Error: ')
    assert "Subexpressions nested deeper" in result


@pytest.mark.unit
def test_non_ascii_index_renders_empty(renderer):
    template = make_template("<h2>{{experiences.[²].jobTitle}}</h2>")
    data = ResumeData(experiences=[Experience(job_title="Engineer")])

    assert renderer.render(template, data) == "<h2></h2>"


@pytest.mark.unit
def test_whitespace_control_in_template(renderer):
    template = make_template(
        "<p>\n  {{~#each skills~}}\n  {{name}}{{#unless @last}}, {{/unless}}\n  {{~/each~}}\n</p>"
    )
    data = ResumeData(skills=[Skill(name="Go"), Skill(name="Rust")])

    assert renderer.render(template, data) == "<p>Go, Rust</p>"


@pytest.mark.unit
def test_error_message_is_escaped(renderer):
    template = make_template("{{<img src=x onerror=alert(1)>}}")

    result = renderer.render(template, ResumeData())

    assert "<img" not in result


@pytest.mark.unit
def test_verbatim_markup_is_passed_through_and_sanitized(renderer):
    template = make_template(
        "<p>{{fullName}}</p><script>alert(1)</script>", uses_template_language=False
    )

    result = renderer.render(template, ResumeData(full_name="Ann"))

    assert result == "<p>{{fullName}}</p>"
    assert not uses_template_language(template)


@pytest.mark.unit
def test_markup_without_delimiters_is_not_compiled():
    assert not uses_template_language(make_template("<p>Static</p>"))
    assert uses_template_language(make_template("<p>{{fullName}}</p>"))


@pytest.mark.unit
def test_has_photo_comes_from_template(renderer):
    source = (
        "{{#if_has_photo hasPhoto}}{{#if profileImage}}"
        '<img src="{{profileImage}}" alt="Profile Photo"/>{{/if}}{{else}}no photo{{/if_has_photo}}'
    )
    data = ResumeData(profile_image="https://example.com/me.png")

    with_slot = renderer.render(make_template(source, has_photo=True), data)
    without_slot = renderer.render(make_template(source, has_photo=False), data)

    assert with_slot == '<img src="https://example.com/me.png" alt="Profile Photo"/>'
    assert without_slot == "no photo"


@pytest.mark.unit
def test_build_context_overrides_data(renderer):
    template = make_template("x", has_photo=True)

    context = renderer.build_context(template, ResumeData())

    assert context["hasPhoto"] is True
    assert context["experiences"] == []


@pytest.mark.unit
def test_unsafe_profile_image_uri_is_stripped(renderer):
    template = make_template('<img src="{{profileImage}}"/>')
    data = ResumeData(profile_image="javascript:alert(1)")

    assert renderer.render(template, data) == "<img/>"


@pytest.mark.unit
def test_injected_helpers_and_policy():
    helpers = default_helpers()
    helpers.register("shout", lambda text: str(text).upper())
    renderer = TemplateRenderer(helpers=helpers, sanitizer=HtmlSanitizer(load_policy("strict")))
    template = make_template("<style>p{}</style><p>{{shout fullName}}</p>")

    assert renderer.render(template, ResumeData(full_name="Ann")) == "<p>ANN</p>"
    assert "Missing helper" in TemplateRenderer().render(template, ResumeData(full_name="Ann"))


@pytest.mark.unit
def test_render_template_function():
    template = make_template("<h1>{{fullName}}</h1>")

    assert render_template(template, ResumeData(full_name="Ann")) == "<h1>Ann</h1>"


# Preview documents


@pytest.mark.unit
def test_preview_document_structure(renderer):
    template = make_template(
        "<h1>{{fullName}}</h1>", css=".name { color: red; }", name="Minimal & Clean"
    )

    document = renderer.render_preview_document(template, ResumeData(full_name="Ann"))

    assert document.startswith("<!DOCTYPE html>")
    assert "<title>Minimal &amp; Clean Template</title>" in document
    assert ".name { color: red; }" in document
    assert '<div class="template-container">' in document
    assert "<h1>Ann</h1>" in document


@pytest.mark.unit
def test_preview_document_sandboxed_by_default(renderer):
    template = make_template("<p>x</p>", js="console.log('hi');")

    sandboxed = renderer.render_preview_document(template, ResumeData())
    trusted = render_preview_document(template, ResumeData(), sandboxed=False)

    assert "<script>" not in sandboxed
    assert "console.log" not in sandboxed
    assert "<script>console.log('hi');</script>" in trusted


@pytest.mark.unit
def test_preview_document_neutralizes_closing_tags(renderer):
    template = make_template(
        "<p>x</p>",
        css="p { color: red; }</style><script>alert(1)</script>",
        js="var s = '</script><b>';",
    )

    document = renderer.render_preview_document(template, ResumeData(), sandboxed=False)

    assert "</style><script>alert(1)" not in document
    assert "<\\/style><script>alert(1)<\\/script>" in document
    assert "var s = '<\\/script><b>';" in document


@pytest.mark.unit
def test_preview_document_shows_error_fragment(renderer):
    template = make_template("{{#each skills}}")

    document = renderer.render_preview_document(template, ResumeData())

    assert '<div class="error">Template Error: ' in document
