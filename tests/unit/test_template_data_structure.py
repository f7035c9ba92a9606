"""Unit tests for the Template record."""

import json
from dataclasses import FrozenInstanceError

import pytest

from quill.contexts.templating.exceptions import InvalidRecordError
from quill.contexts.templating.template_data_structure import (
    EXPORT_FORMAT_VERSION,
    Template,
    new_template_id,
)

RECORD = {
    "id": "minimal-clean",
    "name": "Minimal Clean",
    "description": "Simple and clean design focusing on content",
    "preview": "previews/minimal.png",
    "hasPhoto": False,
    "isHandlebars": True,
    "html": "<h1>{{fullName}}</h1>",
    "css": "h1 { color: #2c3e50; }",
    "isCustom": False,
    "isDefault": True,
}


@pytest.mark.unit
def test_from_dict_maps_camel_case_keys():
    template = Template.from_dict(RECORD)

    assert template.id == "minimal-clean"
    assert template.uses_template_language is True
    assert template.has_photo is False
    assert template.is_default is True
    assert template.js is None


@pytest.mark.unit
def test_to_dict_round_trips_record():
    assert Template.from_dict(RECORD).to_dict() == {**RECORD, "js": None}


@pytest.mark.unit
def test_missing_id_gets_generated():
    template = Template.from_dict({"name": "Mine", "html": "<p>x</p>"})

    assert template.id.startswith("custom-")
    assert template.uses_template_language is False


@pytest.mark.unit
@pytest.mark.parametrize("missing", ["name", "html"])
def test_missing_required_fields(missing):
    record = {k: v for k, v in RECORD.items() if k != missing}

    with pytest.raises(InvalidRecordError, match="missing required fields"):
        Template.from_dict(record)


@pytest.mark.unit
def test_wrong_field_type():
    with pytest.raises(InvalidRecordError, match="'css' must be a string"):
        Template.from_dict({**RECORD, "css": ["h1 {}"]})


@pytest.mark.unit
def test_record_must_be_mapping():
    with pytest.raises(InvalidRecordError, match="must be a mapping"):
        Template.from_dict(["not", "a", "record"])


@pytest.mark.unit
def test_from_json():
    template = Template.from_json(json.dumps(RECORD))

    assert template.name == "Minimal Clean"

    with pytest.raises(InvalidRecordError, match="malformed"):
        Template.from_json("{not json")


@pytest.mark.unit
def test_export_record():
    exported = Template.from_dict(RECORD).to_export_dict()

    assert exported["version"] == EXPORT_FORMAT_VERSION
    assert "exportedAt" in exported
    assert exported["html"] == RECORD["html"]

    # Export-only keys are ignored on the way back in
    assert Template.from_dict(exported) == Template.from_dict(RECORD)


@pytest.mark.unit
def test_remix():
    original = Template.from_dict(RECORD)

    remix = original.remix()

    assert remix.id.startswith("remix-")
    assert remix.id != original.id
    assert remix.name == "Minimal Clean (Remix)"
    assert remix.is_custom is True
    assert remix.is_default is False
    assert remix.html == original.html
    assert remix.css == original.css
    assert original.name == "Minimal Clean"
    assert original.remix(new_id="mine").id == "mine"


@pytest.mark.unit
def test_export_filename():
    assert Template.from_dict(RECORD).export_filename == "minimal-clean-template.json"
    assert Template(id="x1", name="Résumé!!", html="x").export_filename == "r-sum-template.json"
    assert Template(id="x1", name="!!!", html="x").export_filename == "x1-template.json"


@pytest.mark.unit
def test_template_is_immutable():
    template = Template.from_dict(RECORD)

    with pytest.raises(FrozenInstanceError):
        template.html = "<p>changed</p>"


@pytest.mark.unit
def test_new_template_id_is_unique():
    assert new_template_id() != new_template_id()
    assert new_template_id("remix").startswith("remix-")


@pytest.mark.unit
def test_flags_from_strings():
    template = Template.from_dict({**RECORD, "hasPhoto": "false", "isHandlebars": "true"})

    assert template.has_photo is False
    assert template.uses_template_language is True


@pytest.mark.unit
def test_flags_reject_other_values():
    with pytest.raises(InvalidRecordError, match="'isHandlebars' must be true or false"):
        Template.from_dict({**RECORD, "isHandlebars": 1})
