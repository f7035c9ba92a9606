"""
QUILL - Quick User-Injectable Layouts for Lettered resumes

A resume templating system: user-authored HTML templates written in a
Handlebars-style template language are validated, stored, rendered against
structured resume data and sanitized before preview or export.

Architecture:
- Templating Context: Template records, resume data, the template language and its helpers
- Rendering Context: Validation, rendering, sanitization and preview documents
"""

__version__ = "0.1.0"
