"""
Template Data Structure

Defines the Template record: markup, stylesheet and optional script plus display
metadata. Templates are persisted, exported and imported as camelCase JSON.
Rendering treats a Template as read-only.
"""

import json
import re
import uuid
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Optional

from quill.contexts.templating.exceptions import InvalidRecordError
from quill.contexts.templating.resume_data_structure import parse_flag
from quill.utils.timestamp import now_exact

EXPORT_FORMAT_VERSION = "1.0"

# Python attribute -> JSON key
WIRE_KEYS = {
    "id": "id",
    "name": "name",
    "description": "description",
    "preview": "preview",
    "has_photo": "hasPhoto",
    "uses_template_language": "isHandlebars",
    "html": "html",
    "css": "css",
    "js": "js",
    "is_custom": "isCustom",
    "is_default": "isDefault",
}

REQUIRED_KEYS = ("name", "html")


def new_template_id(prefix: str = "custom") -> str:
    """Generate a fresh template identifier (e.g. 'remix-3f9c0a1b2d4e')."""
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


@dataclass(frozen=True)
class Template:
    """
    A resume template.

    Attributes:
        id: Unique identifier
        name: Display name
        html: Markup body (may use the template language)
        description: Short description shown in the template gallery
        preview: Optional preview image reference
        has_photo: Whether the layout has a profile-photo slot (drives `if_has_photo`)
        uses_template_language: Whether `html` should be compiled against resume data
        css: Stylesheet body
        js: Optional script body (only emitted in non-sandboxed previews)
        is_custom: User-created (or imported/remixed) template
        is_default: Ships with the application
    """

    id: str
    name: str
    html: str
    description: str = ""
    preview: str = ""
    has_photo: bool = False
    uses_template_language: bool = False
    css: str = ""
    js: Optional[str] = None
    is_custom: bool = False
    is_default: bool = False

    @classmethod
    def from_dict(cls, record: Dict[str, Any]) -> "Template":
        """
        Build a Template from its JSON record.

        Export-only keys (exportedAt, version) are ignored.

        Raises:
            InvalidRecordError: If required keys are missing or have the wrong type
        """
        if not isinstance(record, dict):
            raise InvalidRecordError(
                f"Template record must be a mapping, got {type(record).__name__}"
            )

        missing = [key for key in REQUIRED_KEYS if not record.get(key)]
        if missing:
            raise InvalidRecordError(f"Template record missing required fields: {missing}")

        values = {}
        for f in fields(cls):
            key = WIRE_KEYS[f.name]
            if key in record and record[key] is not None:
                values[f.name] = record[key]

        for name in ("has_photo", "uses_template_language", "is_custom", "is_default"):
            if name in values:
                values[name] = parse_flag(values[name], WIRE_KEYS[name])

        for name in ("id", "name", "html", "description", "preview", "css", "js"):
            if name in values and not isinstance(values[name], str):
                raise InvalidRecordError(
                    f"Template field '{WIRE_KEYS[name]}' must be a string, "
                    f"got {type(values[name]).__name__}"
                )

        values.setdefault("id", new_template_id())
        return cls(**values)

    @classmethod
    def from_json(cls, text: str) -> "Template":
        try:
            record = json.loads(text)
        except json.JSONDecodeError as e:
            raise InvalidRecordError(f"Template JSON is malformed: {e}") from e
        return cls.from_dict(record)

    def to_dict(self) -> Dict[str, Any]:
        return {WIRE_KEYS[f.name]: getattr(self, f.name) for f in fields(self)}

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    def to_export_dict(self) -> Dict[str, Any]:
        """Self-describing export record (adds exportedAt and version)."""
        return {
            **self.to_dict(),
            "exportedAt": now_exact(),
            "version": EXPORT_FORMAT_VERSION,
        }

    def remix(self, new_id: Optional[str] = None) -> "Template":
        """
        Clone this template as the starting point for a new custom template.

        The clone gets a fresh id, a "(Remix)" name suffix and is marked
        custom and non-default. The original is left untouched.
        """
        return replace(
            self,
            id=new_id or new_template_id("remix"),
            name=f"{self.name} (Remix)",
            is_custom=True,
            is_default=False,
        )

    @property
    def export_filename(self) -> str:
        """File name used when exporting (e.g. 'minimal-clean-template.json')."""
        slug = re.sub(r"[^a-z0-9]+", "-", self.name.lower()).strip("-") or self.id
        return f"{slug}-template.json"
