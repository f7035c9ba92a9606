"""
Rendering Context

Responsibilities:
- Validates template markup before persistence (syntax, scripts, event handlers)
- Renders templates against resume data
- Sanitizes every rendered result
- Wraps rendered markup in standalone preview documents

Owns: Validation, rendering, sanitization, preview documents
Never: Persists templates or modifies template records
"""
