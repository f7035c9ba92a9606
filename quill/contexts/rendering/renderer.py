"""
Template Rendering Module

Renders a Template against ResumeData into sanitized markup, and wraps the result
in a standalone preview document.

Pipeline per call:
    template.html --parse/evaluate--> markup --sanitize--> safe markup

Compilation failures never escape `render()`: they degrade to a visible error
fragment so a broken template shows a diagnostic instead of a blank preview.
"""

from pathlib import Path
from typing import Any, Dict, Optional, Union

from jinja2 import Environment, FileSystemLoader, StrictUndefined
from markupsafe import Markup, escape

from quill.contexts.rendering.logger import (
    log_render_failure,
    log_render_start,
    log_sanitization,
)
from quill.contexts.rendering.sanitizer import HtmlSanitizer
from quill.contexts.templating.exceptions import TemplateError
from quill.contexts.templating.helpers import HelperRegistry, default_helpers
from quill.contexts.templating.resume_data_structure import ResumeData
from quill.contexts.templating.template_data_structure import Template
from quill.contexts.templating.template_language import OPEN_DELIMITER, evaluate, parse

PREVIEW_TEMPLATE_DIR = Path(__file__).parent / "template"
PREVIEW_TEMPLATE_NAME = "preview.html.jinja"

ERROR_FRAGMENT = '<div class="error">Template Error: {message}</div>'


def error_fragment(error: Exception) -> str:
    """Visible, escaped diagnostic block shown in place of a broken template."""
    message = str(error) or type(error).__name__
    return ERROR_FRAGMENT.format(message=escape(message))


def _neutralize_closing_tags(text: str) -> str:
    """Stop inlined CSS/JS from closing its enclosing element."""
    return text.replace("</", "<\\/")


class TemplateRenderer:
    """
    Renders templates with an injected helper set and sanitizer.

    Construct one renderer per configuration, e.g. a strict sanitizer for
    AI-generated templates alongside the standard one:

        >>> strict = TemplateRenderer(sanitizer=HtmlSanitizer(load_policy("strict")))
        >>> html = strict.render(template, resume_data)
    """

    def __init__(
        self,
        helpers: Optional[HelperRegistry] = None,
        sanitizer: Optional[HtmlSanitizer] = None,
    ):
        self.helpers = helpers or default_helpers()
        self.sanitizer = sanitizer or HtmlSanitizer()

        # Preview shell is trusted markup; template content is inserted as Markup
        self.env = Environment(
            loader=FileSystemLoader(str(PREVIEW_TEMPLATE_DIR)),
            undefined=StrictUndefined,
            autoescape=True,
            keep_trailing_newline=True,
        )

    def build_context(self, template: Template, data: ResumeData) -> Dict[str, Any]:
        """
        Substitution context for a template.

        `hasPhoto` always comes from the template, never from resume data.
        """
        context = data.to_context()
        context["hasPhoto"] = template.has_photo
        return context

    def compile(self, template: Template, data: ResumeData) -> str:
        """
        Produce unsanitized markup for a template.

        Raises:
            TemplateSyntaxError: If the markup does not parse
            TemplateRenderError: If evaluation fails (missing helper, wrong arity, ...)
        """
        if not uses_template_language(template):
            return template.html
        program = parse(template.html)
        return evaluate(program, self.build_context(template, data), self.helpers)

    def render(self, template: Template, data: Union[ResumeData, Dict[str, Any]]) -> str:
        """
        Render a template against resume data.

        Args:
            template: Template to render (not modified)
            data: ResumeData, or a camelCase resume record

        Returns:
            Sanitized markup, or an error fragment if compilation failed

        Example:
            >>> template = Template(id="t", name="T", uses_template_language=True,
            ...                     html="{{#if summary}}<p>{{summary}}</p>{{/if}}")
            >>> renderer.render(template, ResumeData(summary="Built scalable systems"))
            '<p>Built scalable systems</p>'
        """
        if isinstance(data, dict):
            data = ResumeData.from_dict(data)

        log_render_start(template.id, uses_template_language(template))

        try:
            markup = self.compile(template, data)
        except TemplateError as e:
            log_render_failure(template.id, e)
            markup = error_fragment(e)

        result = self.sanitizer.clean(markup)
        log_sanitization(template.id, result.removed)
        return result.html

    def render_preview_document(
        self,
        template: Template,
        data: Union[ResumeData, Dict[str, Any]],
        sandboxed: bool = True,
    ) -> str:
        """
        Wrap rendered markup in a standalone HTML document.

        Args:
            template: Template to render
            data: Resume data
            sandboxed: When True (default) the template's script body is omitted

        Returns:
            Complete HTML document (doctype, inlined stylesheet, rendered body)
        """
        body = self.render(template, data)
        script = None
        if template.js and not sandboxed:
            script = Markup(_neutralize_closing_tags(template.js))

        document = self.env.get_template(PREVIEW_TEMPLATE_NAME)
        return document.render(
            title=template.name,
            css=Markup(_neutralize_closing_tags(template.css or "")),
            body=Markup(body),
            script=script,
        )


def uses_template_language(template: Template) -> bool:
    """Whether a template's markup should be compiled rather than passed through."""
    return template.uses_template_language and OPEN_DELIMITER in template.html


def render_template(template: Template, data: Union[ResumeData, Dict[str, Any]]) -> str:
    """Render with the default helpers and standard sanitizer policy."""
    return TemplateRenderer().render(template, data)


def render_preview_document(
    template: Template,
    data: Union[ResumeData, Dict[str, Any]],
    sandboxed: bool = True,
) -> str:
    """Preview document with the default helpers and standard sanitizer policy."""
    return TemplateRenderer().render_preview_document(template, data, sandboxed=sandboxed)
