"""Custom exceptions for templating context with template references."""

from typing import List, Optional


class TemplateError(Exception):
    """Base class for errors raised while compiling or evaluating a template."""


class TemplateSyntaxError(TemplateError):
    """
    Exception raised when template markup cannot be parsed.

    Attributes:
        message: Error description
        lineno: 1-indexed line of the offending tag (None if unknown)
        snippet: The tag source that failed to parse
    """

    def __init__(
        self,
        message: str,
        lineno: Optional[int] = None,
        snippet: Optional[str] = None,
    ):
        self.message = message
        self.lineno = lineno
        self.snippet = snippet

        parts = [message]

        if lineno is not None:
            parts.append(f"on line {lineno}")

        if snippet:
            # Truncate snippet if too long
            snippet = snippet[:80] + "..." if len(snippet) > 80 else snippet
            parts.append(f"near '{snippet}'")

        super().__init__(" ".join(parts))


class TemplateRenderError(TemplateError):
    """
    Exception raised when template evaluation fails.

    Attributes:
        message: Error description
        helper_name: Name of the helper being evaluated (if any)
        original_error: The exception raised by the helper
    """

    def __init__(
        self,
        message: str,
        helper_name: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        self.message = message
        self.helper_name = helper_name
        self.original_error = original_error

        parts = [message]

        if original_error:
            parts.append(f"(original error: {original_error})")

        super().__init__(" ".join(parts))


class InvalidTemplateError(ValueError):
    """
    Exception raised when a template fails validation before persistence.

    Attributes:
        template_id: Identifier of the rejected template
        errors: Validation error messages
    """

    def __init__(self, template_id: str, errors: List[str]):
        self.template_id = template_id
        self.errors = list(errors)

        lines = [f"Template '{template_id}' failed validation:"]
        lines.extend(f"  - {error}" for error in self.errors)
        super().__init__("\n".join(lines))


class InvalidRecordError(ValueError):
    """
    Exception raised when a template or resume record is malformed.

    Raised for JSON/YAML records missing required fields or carrying values
    outside their allowed range (e.g. an unknown skill level).
    """

    pass


class UnknownTemplateError(KeyError):
    """Exception raised when a template id is not present in the registry."""

    def __init__(self, template_id: str):
        self.template_id = template_id
        super().__init__(template_id)

    def __str__(self) -> str:
        return f"Template not found: {self.template_id}"
