#!/usr/bin/env python3
"""
Command-line interface for managing the template store.

Built-in templates live in quill/contexts/templating/types/ and are read-only.
Custom templates are JSON records under CUSTOM_TEMPLATES_PATH (outs/templates/).

Commands:
    list   - List built-in and custom templates
    show   - Show a template's metadata
    remix  - Clone a template into a new custom template
    export - Write a template's export record
    import - Import an exported template as a new custom template
    delete - Delete a custom template
"""

import os
from pathlib import Path

import typer
from dotenv import load_dotenv

from quill.contexts.templating.exceptions import (
    InvalidRecordError,
    InvalidTemplateError,
    UnknownTemplateError,
)
from quill.contexts.templating.logger import setup_templating_logger
from quill.contexts.templating.registries import TemplateRegistry
from quill.utils.timestamp import now

load_dotenv()
LOGS_PATH = Path(os.getenv("LOGS_PATH", "outs/logs"))

app = typer.Typer(
    add_completion=False,
    help="Manage built-in and custom resume templates",
    invoke_without_command=True,
)


@app.callback()
def main(ctx: typer.Context):
    """Show help by default when no command is provided."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def _fail(message: str) -> None:
    typer.secho(f"Error: {message}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


def _start_logging(phase: str) -> None:
    setup_templating_logger(LOGS_PATH / f"templates_{now()}", phase=phase)


@app.command("list")
def list_command(
    custom_only: bool = typer.Option(False, "--custom", "-c", help="Only list custom templates"),
):
    """
    List templates.

    Examples:\n

        $ manage_templates.py list           # All templates

        $ manage_templates.py list --custom  # Custom templates only
    """
    registry = TemplateRegistry()
    try:
        templates = registry.list_templates()
    except InvalidRecordError as e:
        _fail(str(e))

    if custom_only:
        templates = [t for t in templates if t.is_custom]

    if not templates:
        typer.secho("No templates found", fg=typer.colors.YELLOW)
        return

    typer.secho(f"\n{len(templates)} template(s)", fg=typer.colors.BLUE, bold=True)
    for template in templates:
        kind = "custom" if template.is_custom else "built-in"
        photo = " [photo]" if template.has_photo else ""
        typer.echo(f"  {template.id:<28} {template.name} ({kind}){photo}")


@app.command("show")
def show_command(template_id: str = typer.Argument(..., help="Template id")):
    """Show a template's metadata and where it is stored."""
    registry = TemplateRegistry()
    try:
        template = registry.get_template(template_id)
    except (UnknownTemplateError, InvalidRecordError, ValueError) as e:
        _fail(str(e))

    typer.echo(f"  id:          {template.id}")
    typer.echo(f"  name:        {template.name}")
    typer.echo(f"  description: {template.description or '(none)'}")
    typer.echo(f"  photo slot:  {template.has_photo}")
    typer.echo(f"  compiled:    {template.uses_template_language}")
    typer.echo(f"  custom:      {template.is_custom}")
    typer.echo(f"  script:      {'yes' if template.js else 'no'}")
    typer.echo(f"  path:        {registry.get_template_path(template_id)}")


@app.command("remix")
def remix_command(template_id: str = typer.Argument(..., help="Template id to clone")):
    """
    Clone a template into a new custom template.

    Examples:\n

        $ manage_templates.py remix elegant-serif
    """
    _start_logging("remix")
    try:
        remix = TemplateRegistry().remix_template(template_id)
    except (UnknownTemplateError, InvalidRecordError, ValueError) as e:
        _fail(str(e))

    typer.secho(f"✓ {template_id} → {remix.id} ({remix.name})", fg=typer.colors.GREEN)


@app.command("export")
def export_command(
    template_id: str = typer.Argument(..., help="Template id to export"),
    output_dir: Path = typer.Option(Path("."), "--output-dir", "-o", help="Directory for the export"),
):
    """
    Write a template's export record (<name>-template.json).

    Examples:\n

        $ manage_templates.py export minimal-clean -o exports/
    """
    _start_logging("export")
    try:
        path = TemplateRegistry().export_template(template_id, output_dir)
    except (UnknownTemplateError, InvalidRecordError, ValueError) as e:
        _fail(str(e))

    typer.secho(f"✓ Exported {template_id} to {path}", fg=typer.colors.GREEN)


@app.command("import")
def import_command(path: Path = typer.Argument(..., help="Exported template JSON file")):
    """
    Import an exported template as a new custom template.

    The template is validated first and always receives a new id.
    """
    _start_logging("import")
    try:
        template = TemplateRegistry().import_template(path)
    except InvalidTemplateError as e:
        typer.secho(f"Error: template '{e.template_id}' failed validation", fg=typer.colors.RED, err=True)
        for err in e.errors:
            typer.echo(f"  ✗ {err}", err=True)
        raise typer.Exit(code=1)
    except (InvalidRecordError, ValueError) as e:
        _fail(str(e))

    typer.secho(f"✓ Imported {template.name} as {template.id}", fg=typer.colors.GREEN)


@app.command("delete")
def delete_command(
    template_id: str = typer.Argument(..., help="Custom template id"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Delete a custom template (built-in templates cannot be deleted)."""
    if not yes and not typer.confirm(f"Delete template '{template_id}'?"):
        raise typer.Exit()

    _start_logging("delete")
    try:
        TemplateRegistry().delete_template(template_id)
    except (UnknownTemplateError, ValueError) as e:
        _fail(str(e))

    typer.secho(f"✓ Deleted {template_id}", fg=typer.colors.GREEN)


if __name__ == "__main__":
    app()
