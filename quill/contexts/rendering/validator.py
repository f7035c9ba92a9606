"""
Template validation with itemized feedback for template authors.

Statically inspects template markup before it is stored or rendered:
1. Template-language syntax (balanced blocks, well-formed tags and paths)
2. Script injection (`<script` tags, `javascript:` URIs)
3. Inline event-handler attributes (onclick, onerror, ...)

Every check runs on every call, so an author sees all problems at once. The
markup is never rendered here. The script and handler checks are literal text
matching (a best-effort filter); the sanitizer applied at render time is what
actually strips executable content.
"""

import re
from dataclasses import dataclass, field
from typing import List

from quill.contexts.rendering.logger import _log_warning
from quill.contexts.templating.exceptions import TemplateSyntaxError
from quill.contexts.templating.template_language import parse

SCRIPT_TAG_RE = re.compile(r"<\s*script", re.IGNORECASE)
SCRIPT_URI_RE = re.compile(r"javascript\s*:", re.IGNORECASE)

# Standard DOM event-handler attribute names
EVENT_HANDLER_NAMES = (
    "onabort", "onafterprint", "onanimationend", "onanimationiteration", "onanimationstart",
    "onbeforeprint", "onbeforeunload", "onblur", "oncanplay", "oncanplaythrough", "onchange",
    "onclick", "oncontextmenu", "oncopy", "oncut", "ondblclick", "ondrag", "ondragend",
    "ondragenter", "ondragleave", "ondragover", "ondragstart", "ondrop", "ondurationchange",
    "onended", "onerror", "onfocus", "onfocusin", "onfocusout", "onhashchange", "oninput",
    "oninvalid", "onkeydown", "onkeypress", "onkeyup", "onload", "onloadeddata",
    "onloadedmetadata", "onloadstart", "onmessage", "onmousedown", "onmouseenter",
    "onmouseleave", "onmousemove", "onmouseout", "onmouseover", "onmouseup", "onoffline",
    "ononline", "onpagehide", "onpageshow", "onpaste", "onpause", "onplay", "onplaying",
    "onpointerdown", "onpointerenter", "onpointerleave", "onpointermove", "onpointerout",
    "onpointerover", "onpointerup", "onpopstate", "onprogress", "onratechange", "onreset",
    "onresize", "onscroll", "onsearch", "onseeked", "onseeking", "onselect", "onshow",
    "onstalled", "onstorage", "onsubmit", "onsuspend", "ontimeupdate", "ontoggle",
    "ontouchcancel", "ontouchend", "ontouchmove", "ontouchstart", "ontransitionend",
    "onunload", "onvolumechange", "onwaiting", "onwheel",
)

EVENT_HANDLER_RE = re.compile(
    r"\b(" + "|".join(EVENT_HANDLER_NAMES) + r")\b", re.IGNORECASE
)

SCRIPT_ERROR = "JavaScript code is not allowed in templates for security reasons"
EVENT_HANDLER_ERROR = "Event handlers are not allowed in templates"


@dataclass
class ValidationResult:
    """
    Result of template validation.

    Attributes:
        is_valid: Whether the markup passed every check
        errors: Human-readable error messages, in check order (empty when valid)
    """

    is_valid: bool
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"valid": self.is_valid, "errors": list(self.errors)}


def check_syntax(markup: str) -> List[str]:
    """Syntax errors from parsing the template language (at most one per pass)."""
    try:
        parse(markup)
    except TemplateSyntaxError as e:
        return [f"Template syntax error: {e}"]
    return []


def check_script_content(markup: str) -> List[str]:
    """Flag script tags and javascript: URIs anywhere in the markup."""
    found = []
    if SCRIPT_TAG_RE.search(markup):
        found.append("<script>")
    if SCRIPT_URI_RE.search(markup):
        found.append("javascript:")
    if not found:
        return []
    return [f"{SCRIPT_ERROR} (found: {', '.join(found)})"]


def check_event_handlers(markup: str) -> List[str]:
    """Flag inline event-handler attribute names anywhere in the markup."""
    names = []
    for match in EVENT_HANDLER_RE.finditer(markup):
        name = match.group(1).lower()
        if name not in names:
            names.append(name)
    if not names:
        return []
    return [f"{EVENT_HANDLER_ERROR} (found: {', '.join(names)})"]


def validate_markup(markup: str) -> ValidationResult:
    """
    Validate template markup.

    Pure function of its input: runs the syntax, script and event-handler checks
    and collects all their errors.

    Args:
        markup: Raw template markup (untrusted)

    Returns:
        ValidationResult with is_valid and the ordered error list

    Example:
        >>> result = validate_markup("{{#if summary}}<p>{{summary}}</p>")
        >>> result.is_valid
        False
        >>> result.errors[0]
        "Template syntax error: Unclosed block '{{#if}}' opened on line 1"
    """
    errors = []
    errors.extend(check_syntax(markup))
    errors.extend(check_script_content(markup))
    errors.extend(check_event_handlers(markup))
    return ValidationResult(is_valid=not errors, errors=errors)


def validate_template(template) -> ValidationResult:
    """
    Validate a Template record's markup.

    The optional script body is not validated (it is only ever emitted into
    non-sandboxed previews); its presence is logged as a warning.

    Args:
        template: Template record

    Returns:
        ValidationResult for template.html
    """
    if template.js:
        _log_warning(
            f"{template.id}: template carries a script body; it only runs in non-sandboxed previews"
        )
    return validate_markup(template.html)
