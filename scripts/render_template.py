#!/usr/bin/env python3
"""
Render a template against resume data.

Prints the sanitized markup, or writes a standalone preview document.

Usage:
    python scripts/render_template.py minimal-clean
    python scripts/render_template.py elegant-serif --resume data/resume.yaml --preview -o preview.html
    python scripts/render_template.py exported-template.json --policy strict
"""

import os
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv

from quill.contexts.rendering.logger import setup_rendering_logger
from quill.contexts.rendering.renderer import TemplateRenderer
from quill.contexts.rendering.sanitizer import DEFAULT_POLICY, HtmlSanitizer, load_policy
from quill.contexts.templating.defaults import get_sample_resume
from quill.contexts.templating.exceptions import InvalidRecordError, UnknownTemplateError
from quill.contexts.templating.registries import TemplateRegistry
from quill.contexts.templating.resume_data_structure import ResumeData
from quill.contexts.templating.template_data_structure import Template
from quill.utils.timestamp import now

load_dotenv()
LOGS_PATH = Path(os.getenv("LOGS_PATH", "outs/logs"))

app = typer.Typer(help="Render a template against resume data.")


@app.command()
def main(
    template_source: str = typer.Argument(
        ..., help="Template id (e.g., minimal-clean) or template .json record"
    ),
    resume: Optional[Path] = typer.Option(
        None, "--resume", "-r", help="Resume data file (YAML or JSON). Defaults to sample data"
    ),
    policy: str = typer.Option(DEFAULT_POLICY, "--policy", "-p", help="Sanitizer policy"),
    preview: bool = typer.Option(False, "--preview", help="Wrap the result in a preview document"),
    no_sandbox: bool = typer.Option(
        False, "--no-sandbox", help="Include the template's script in the preview document"
    ),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write to file instead of stdout"),
):
    """Render a template and print or save the sanitized result."""
    log_dir = LOGS_PATH / f"render_{now()}"
    setup_rendering_logger(log_dir, policy_name=policy)

    try:
        template = _load_template(template_source)
        data = ResumeData.from_file(resume) if resume else get_sample_resume()
        sanitizer = HtmlSanitizer(load_policy(policy))
    except (UnknownTemplateError, InvalidRecordError, ValueError, OSError) as e:
        typer.echo(f"ERROR: {e}", err=True)
        raise typer.Exit(1)

    renderer = TemplateRenderer(sanitizer=sanitizer)
    if preview:
        result = renderer.render_preview_document(template, data, sandboxed=not no_sandbox)
    else:
        result = renderer.render(template, data)

    if output is None:
        typer.echo(result)
        return

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(result, encoding="utf-8")
    typer.secho(f"✓ Wrote {output}", fg=typer.colors.GREEN, err=True)


def _load_template(source: str) -> Template:
    path = Path(source)
    if path.suffix == ".json" and path.exists():
        return Template.from_json(path.read_text(encoding="utf-8"))
    return TemplateRegistry().get_template(source)


if __name__ == "__main__":
    app()
