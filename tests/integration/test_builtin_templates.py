"""
Integration tests for built-in templates - validates and renders every shipped
template against the sample resume.
"""

import pytest
from bs4 import BeautifulSoup

from quill.contexts.rendering.renderer import TemplateRenderer
from quill.contexts.rendering.sanitizer import HtmlSanitizer, load_policy
from quill.contexts.rendering.validator import validate_template
from quill.contexts.templating.defaults import get_sample_resume
from quill.contexts.templating.registries import TemplateRegistry
from quill.contexts.templating.resume_data_structure import ResumeData

BUILTIN_IDS = TemplateRegistry().builtin_ids()


@pytest.fixture
def registry(tmp_path):
    return TemplateRegistry(custom_path=tmp_path / "templates")


@pytest.mark.integration
def test_builtin_templates_present():
    assert "minimal-clean" in BUILTIN_IDS
    assert "elegant-serif" in BUILTIN_IDS


@pytest.mark.integration
@pytest.mark.parametrize("template_id", BUILTIN_IDS)
def test_builtin_template_is_valid(registry, template_id):
    result = validate_template(registry.get_template(template_id))

    assert result.is_valid, f"{template_id} failed validation: {result.errors}"


@pytest.mark.integration
@pytest.mark.parametrize("template_id", BUILTIN_IDS)
def test_builtin_template_renders_sample(registry, template_id):
    """Test that each template renders the sample resume without an error fragment."""
    html = TemplateRenderer().render(registry.get_template(template_id), get_sample_resume())

    assert 'class="error"' not in html
    assert "John Smith" in html
    assert "Senior Software Engineer" in html
    assert "March 2021" in html
    assert "Present" in html
    assert "June 2019 - February 2021" in html
    assert "Stanford University" in html
    assert "{{" not in html


@pytest.mark.integration
@pytest.mark.parametrize("template_id", BUILTIN_IDS)
def test_builtin_template_renders_empty_resume(registry, template_id):
    html = TemplateRenderer().render(registry.get_template(template_id), ResumeData())

    assert 'class="error"' not in html
    assert "Experience" not in html
    assert "Skills" not in html


@pytest.mark.integration
@pytest.mark.parametrize("template_id", BUILTIN_IDS)
def test_builtin_template_under_strict_policy(registry, template_id):
    renderer = TemplateRenderer(sanitizer=HtmlSanitizer(load_policy("strict")))

    html = renderer.render(registry.get_template(template_id), get_sample_resume())

    assert 'class="error"' not in html
    assert "John Smith" in html


@pytest.mark.integration
def test_minimal_clean_skills_line(registry):
    html = TemplateRenderer().render(registry.get_template("minimal-clean"), get_sample_resume())

    assert "JavaScript, React, Node.js, Python, AWS" in html
    assert "GPA: 3.8" in html
    assert "<img" not in html


@pytest.mark.integration
def test_elegant_serif_profile_photo(registry):
    template = registry.get_template("elegant-serif")
    data = get_sample_resume()

    soup = BeautifulSoup(TemplateRenderer().render(template, data), "html.parser")
    photo = soup.select_one(".profile-photo img")

    assert photo is not None
    assert photo["src"] == data.profile_image
    assert [span.get_text() for span in soup.select(".skill-expert")] == ["JavaScript", "React"]
    assert len(soup.select(".description li")) == 2


@pytest.mark.integration
def test_elegant_serif_without_profile_image(registry):
    template = registry.get_template("elegant-serif")
    data = get_sample_resume()
    data.profile_image = None

    html = TemplateRenderer().render(template, data)

    assert "profile-photo" not in html


@pytest.mark.integration
def test_data_uri_profile_photo_kept(registry):
    data = get_sample_resume()
    data.profile_image = "data:image/png;base64,iVBORw0KGgo="

    html = TemplateRenderer().render(registry.get_template("elegant-serif"), data)

    assert 'src="data:image/png;base64,iVBORw0KGgo="' in html


@pytest.mark.integration
@pytest.mark.parametrize("template_id", BUILTIN_IDS)
def test_builtin_preview_document(registry, template_id):
    template = registry.get_template(template_id)

    document = TemplateRenderer().render_preview_document(template, get_sample_resume())

    assert document.startswith("<!DOCTYPE html>")
    assert f"<title>{template.name} Template</title>" in document
    assert template.css.strip().splitlines()[0] in document
    assert "John Smith" in document


@pytest.mark.integration
@pytest.mark.parametrize("template_id", BUILTIN_IDS)
def test_export_import_remix_cycle(registry, tmp_path, template_id):
    """Test that a built-in template survives export, import and remix unchanged in content."""
    original = registry.get_template(template_id)

    exported = registry.export_template(template_id, tmp_path / "exports")
    imported = registry.import_template(exported)
    remix = registry.remix_template(imported.id)

    renderer = TemplateRenderer()
    data = get_sample_resume()
    expected = renderer.render(original, data)

    assert renderer.render(imported, data) == expected
    assert renderer.render(remix, data) == expected
    assert len(registry.custom_ids()) == 2
