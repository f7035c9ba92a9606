#!/usr/bin/env python3
"""
Validate template markup before saving or importing it.

Accepts a registered template id, a template JSON record, or a raw markup file.

Usage:
    python scripts/validate_template.py minimal-clean
    python scripts/validate_template.py my-template.html.hbs --verbose
    python scripts/validate_template.py exported-template.json --json
"""

import json
from pathlib import Path

import typer
from dotenv import load_dotenv

from quill.contexts.rendering.logger import log_validation_result
from quill.contexts.rendering.validator import validate_markup, validate_template
from quill.contexts.templating.exceptions import InvalidRecordError, UnknownTemplateError
from quill.contexts.templating.registries import TemplateRegistry
from quill.contexts.templating.template_data_structure import Template
from quill.utils.logger import setup_console_logger

load_dotenv()

app = typer.Typer(help="Validate template markup.")


@app.command()
def main(
    source: str = typer.Argument(
        ..., help="Template id (e.g., minimal-clean), template .json record, or markup file"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show every error (default: first 5)"),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
):
    """Validate a template and list every problem found."""
    path = Path(source)

    try:
        if path.suffix == ".json" and path.exists():
            template = Template.from_json(path.read_text(encoding="utf-8"))
            label, markup = template.name, template.html
            result = validate_template(template)
        elif path.exists():
            label, markup = path.name, path.read_text(encoding="utf-8")
            result = validate_markup(markup)
        else:
            template = TemplateRegistry().get_template(source)
            label, markup = template.id, template.html
            result = validate_template(template)
    except (UnknownTemplateError, InvalidRecordError, ValueError) as e:
        typer.echo(f"ERROR: {e}", err=True)
        raise typer.Exit(1)

    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2))
        raise typer.Exit(0 if result.is_valid else 1)

    setup_console_logger(verbose=verbose)
    lines = markup.count("\n") + 1
    typer.echo(f"Validating {label} ({lines} lines, {len(markup)} chars)")

    log_validation_result(result, verbose=verbose)
    if not result.is_valid:
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
