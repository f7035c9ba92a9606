"""
Templating Context

Responsibilities:
- Defines the Template record and its JSON import/export form
- Defines the resume data model templates are rendered against
- Parses and evaluates the template language (explicit AST interpreter)
- Provides the injectable helper registry
- Stores built-in and custom templates

Owns: Template records, resume data structures, template language, template storage
Never: Sanitizes output or decides what is safe to display
"""

from quill.contexts.templating.helpers import HelperRegistry, default_helpers
from quill.contexts.templating.registries import TemplateRegistry
from quill.contexts.templating.resume_data_structure import (
    Education,
    Experience,
    ResumeData,
    Skill,
)
from quill.contexts.templating.template_data_structure import Template

__all__ = [
    # Data structure classes
    "Template",
    "ResumeData",
    "Experience",
    "Education",
    "Skill",
    # Helpers
    "HelperRegistry",
    "default_helpers",
    # Storage
    "TemplateRegistry",
]
