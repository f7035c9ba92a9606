"""
Templating Registries

Centralized registry for loading, caching and persisting resume templates.

Two sources are merged:
- Built-in templates: quill/contexts/templating/types/{template_id}/ with
  template.yaml (metadata), template.html.hbs (markup) and style.css
- Custom templates: one camelCase JSON record per template in CUSTOM_TEMPLATES_PATH

Built-in templates are read-only. Custom templates are validated before they
are written, so anything the registry returns has passed validate_template().
"""

import json
import os
import re
import shutil
import tempfile
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv
from omegaconf import OmegaConf

from quill.contexts.rendering.validator import validate_template
from quill.contexts.templating.exceptions import (
    InvalidRecordError,
    InvalidTemplateError,
    UnknownTemplateError,
)
from quill.contexts.templating.logger import (
    _log_debug,
    _log_warning,
    log_template_rejected,
    log_template_saved,
    log_template_transfer,
)
from quill.contexts.templating.resume_data_structure import parse_flag
from quill.contexts.templating.template_data_structure import Template, new_template_id

load_dotenv()
TYPES_PATH = Path(os.getenv("TEMPLATE_TYPES_PATH", Path(__file__).parent / "types"))
CUSTOM_PATH = Path(os.getenv("CUSTOM_TEMPLATES_PATH", "outs/templates"))

METADATA_FILE = "template.yaml"
MARKUP_FILE = "template.html.hbs"
STYLE_FILE = "style.css"

TEMPLATE_ID_RE = re.compile(r"^[A-Za-z0-9_-]+$")


class TemplateRegistry:
    """
    Registry of built-in and custom templates.

    Built-in templates are loaded lazily and cached. Custom templates are read
    from disk on every lookup so that edits made by other processes are seen.

        >>> registry = TemplateRegistry(custom_path=tmp_path)
        >>> remix = registry.remix_template("minimal-clean")
        >>> registry.get_template(remix.id).is_custom
        True
    """

    def __init__(self, types_base_path: Path = None, custom_path: Path = None):
        """
        Initialize the template registry.

        Args:
            types_base_path: Base path for built-in template directories.
                             Defaults to TEMPLATE_TYPES_PATH from environment
            custom_path: Directory holding custom template JSON records.
                         Defaults to CUSTOM_TEMPLATES_PATH from environment
        """
        if types_base_path is None:
            types_base_path = TYPES_PATH
        if custom_path is None:
            custom_path = CUSTOM_PATH

        self.types_base_path = Path(types_base_path)
        self.custom_path = Path(custom_path)
        self._cache: Dict[str, Template] = {}

    # Lookup

    def get_template(self, template_id: str) -> Template:
        """
        Get a template by id, built-in templates first.

        Args:
            template_id: Template identifier (e.g., 'minimal-clean')

        Returns:
            Template record

        Raises:
            UnknownTemplateError: If no built-in or custom template has this id
            InvalidRecordError: If the stored record is malformed
        """
        _check_template_id(template_id)

        if template_id in self._cache:
            return self._cache[template_id]

        if template_id in self.builtin_ids():
            template = self._load_builtin(template_id)
            self._cache[template_id] = template
            return template

        path = self.get_template_path(template_id)
        if not path.exists():
            raise UnknownTemplateError(template_id)
        return Template.from_json(path.read_text(encoding="utf-8"))

    def list_templates(self, include_custom: bool = True) -> List[Template]:
        """Built-in templates (sorted by id) followed by custom templates (sorted by id)."""
        templates = [self.get_template(template_id) for template_id in self.builtin_ids()]
        if include_custom:
            templates.extend(self.get_template(template_id) for template_id in self.custom_ids())
        return templates

    def builtin_ids(self) -> List[str]:
        if not self.types_base_path.exists():
            return []
        return sorted(
            path.name
            for path in self.types_base_path.iterdir()
            if path.is_dir() and (path / METADATA_FILE).exists()
        )

    def custom_ids(self) -> List[str]:
        if not self.custom_path.exists():
            return []
        return sorted(path.stem for path in self.custom_path.glob("*.json"))

    def is_builtin(self, template_id: str) -> bool:
        return template_id in self.builtin_ids()

    def get_template_path(self, template_id: str) -> Path:
        """
        Get the file path backing a template.

        Args:
            template_id: Template identifier

        Returns:
            Built-in template directory, or the custom template's JSON file
        """
        _check_template_id(template_id)
        if self.is_builtin(template_id):
            return self.types_base_path / template_id
        return self.custom_path / f"{template_id}.json"

    # Persistence

    def save_template(self, template: Template) -> Path:
        """
        Validate and persist a custom template.

        Args:
            template: Template to store (overwrites an existing custom template with the same id)

        Returns:
            Path to the written JSON record

        Raises:
            InvalidTemplateError: If the markup fails validation
            ValueError: If the id is malformed or belongs to a built-in template
        """
        _check_template_id(template.id)
        if self.is_builtin(template.id):
            raise ValueError(f"Cannot overwrite built-in template '{template.id}'")

        result = validate_template(template)
        if not result.is_valid:
            log_template_rejected(template.id, result.errors)
            raise InvalidTemplateError(template.id, result.errors)

        path = self.get_template_path(template.id)
        _write_atomic(path, template.to_json())
        log_template_saved(template.id, path)
        return path

    def delete_template(self, template_id: str) -> None:
        """
        Delete a custom template.

        Raises:
            ValueError: If the template is built-in
            UnknownTemplateError: If no custom template has this id
        """
        if self.is_builtin(template_id):
            raise ValueError(f"Cannot delete built-in template '{template_id}'")

        path = self.get_template_path(template_id)
        if not path.exists():
            raise UnknownTemplateError(template_id)
        path.unlink()
        _log_warning(f"Deleted template: {template_id}")

    def remix_template(self, template_id: str, save: bool = True) -> Template:
        """
        Clone an existing template into a new custom template.

        Args:
            template_id: Template to clone
            save: Persist the clone (default True)

        Returns:
            The new custom Template
        """
        remix = self.get_template(template_id).remix()
        _log_debug(f"Remixed {template_id} as {remix.id}")
        if save:
            self.save_template(remix)
        return remix

    def export_template(self, template_id: str, output_dir: Path) -> Path:
        """
        Write a template's self-describing export record.

        Args:
            template_id: Template to export
            output_dir: Directory for the exported file (created if missing)

        Returns:
            Path to '<name-slug>-template.json'
        """
        template = self.get_template(template_id)
        output_path = Path(output_dir) / template.export_filename
        _write_atomic(output_path, json.dumps(template.to_export_dict(), indent=2))
        log_template_transfer(template_id, output_path, "export")
        return output_path

    def import_template(self, path: Path) -> Template:
        """
        Import an exported template as a new custom template.

        The imported record always gets a fresh id and is marked custom, so an
        import never overwrites an existing template.

        Raises:
            InvalidRecordError: If the file is not a valid template record
            InvalidTemplateError: If the markup fails validation
        """
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise InvalidRecordError(f"Cannot read template file {path}: {e}") from e

        record = Template.from_json(text)
        template = Template(
            id=new_template_id(),
            name=record.name,
            html=record.html,
            description=record.description,
            preview=record.preview,
            has_photo=record.has_photo,
            uses_template_language=record.uses_template_language,
            css=record.css,
            js=record.js,
            is_custom=True,
            is_default=False,
        )
        self.save_template(template)
        log_template_transfer(template.id, path, "import")
        return template

    # Cache

    def clear_cache(self):
        """Clear the built-in template cache."""
        self._cache.clear()

    def is_cached(self, template_id: str) -> bool:
        """
        Check if a template is in the cache.

        Args:
            template_id: Template identifier

        Returns:
            True if cached, False otherwise
        """
        return template_id in self._cache

    def _load_builtin(self, template_id: str) -> Template:
        template_dir = self.types_base_path / template_id
        metadata = OmegaConf.to_container(OmegaConf.load(template_dir / METADATA_FILE), resolve=True)

        markup_path = template_dir / MARKUP_FILE
        if not markup_path.exists():
            raise InvalidRecordError(f"Built-in template '{template_id}' has no {MARKUP_FILE}")
        style_path = template_dir / STYLE_FILE

        return Template(
            id=template_id,
            name=metadata.get("name", template_id),
            html=markup_path.read_text(encoding="utf-8"),
            description=metadata.get("description", ""),
            preview=metadata.get("preview", ""),
            has_photo=parse_flag(metadata.get("has_photo"), "has_photo"),
            uses_template_language=parse_flag(
                metadata.get("uses_template_language", True), "uses_template_language"
            ),
            css=style_path.read_text(encoding="utf-8") if style_path.exists() else "",
            is_custom=False,
            is_default=True,
        )


def _check_template_id(template_id: str) -> None:
    # Ids become file names
    if not isinstance(template_id, str) or not TEMPLATE_ID_RE.match(template_id):
        raise ValueError(f"Invalid template id: {template_id!r}")


def _write_atomic(path: Path, text: str) -> None:
    """Write text to path via a temp file so readers never see a partial record."""
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_fd, temp_path = tempfile.mkstemp(suffix=".json", dir=path.parent, text=True)
    try:
        with os.fdopen(temp_fd, "w", encoding="utf-8") as f:
            f.write(text)
            f.write("\n")
        shutil.move(temp_path, path)
    except BaseException:
        if os.path.exists(temp_path):
            os.unlink(temp_path)
        raise
