"""
Resume Data Structure

Defines the structured resume data that templates are rendered against.
Records arrive as camelCase JSON/YAML (the wire form shared with the editor UI)
and are exposed to templates through `ResumeData.to_context()`.

Sequence fields always default to empty lists so template conditionals such as
`{{#if experiences}}` behave predictably.
"""

from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Optional

from omegaconf import OmegaConf

from quill.contexts.templating.exceptions import InvalidRecordError

SKILL_LEVELS = ("beginner", "intermediate", "advanced", "expert")


def to_camel(name: str) -> str:
    """Convert a snake_case field name to its camelCase record key."""
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _field_values(cls, record: Dict[str, Any]) -> Dict[str, Any]:
    """
    Collect dataclass field values from a record keyed by camelCase (or snake_case).

    Unknown keys are ignored; missing keys fall back to the dataclass defaults.
    """
    if not isinstance(record, dict):
        raise InvalidRecordError(
            f"{cls.__name__} record must be a mapping, got {type(record).__name__}"
        )

    values = {}
    for f in fields(cls):
        if not f.init:
            continue
        camel = to_camel(f.name)
        if camel in record:
            values[f.name] = record[camel]
        elif f.name in record:
            values[f.name] = record[f.name]
    return values


def _as_text(value: Any) -> str:
    """Coerce a scalar record value to text (None becomes empty)."""
    return "" if value is None else str(value)


_FLAG_VALUES = {"true": True, "false": False}


def parse_flag(value: Any, key: str) -> bool:
    """
    Read a boolean record value.

    Accepts real booleans and the strings "true" / "false" (any case). A missing
    value (None) is false.

    Raises:
        InvalidRecordError: For any other value
    """
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, str) and value.strip().lower() in _FLAG_VALUES:
        return _FLAG_VALUES[value.strip().lower()]
    raise InvalidRecordError(f"'{key}' must be true or false, got {value!r}")


@dataclass
class Experience:
    """
    A single work experience entry.

    Attributes:
        id: Identifier, unique within the experience sequence
        job_title: Position title
        company: Employer name
        location: Work location
        start_date: Start date (YYYY-MM)
        end_date: End date (YYYY-MM), empty when current
        current: Whether this is the current position
        description: Free text, one bullet per line (optionally prefixed with a marker)
    """

    id: str = ""
    job_title: str = ""
    company: str = ""
    location: str = ""
    start_date: str = ""
    end_date: str = ""
    current: bool = False
    description: str = ""

    @classmethod
    def from_dict(cls, record: Dict[str, Any]) -> "Experience":
        values = _field_values(cls, record)
        current = parse_flag(values.pop("current", False), "current")
        return cls(current=current, **{k: _as_text(v) for k, v in values.items()})

    def to_dict(self) -> Dict[str, Any]:
        return {to_camel(f.name): getattr(self, f.name) for f in fields(self)}

    def to_context(self) -> Dict[str, Any]:
        """Template context for this entry; a current position never exposes an end date."""
        context = self.to_dict()
        if self.current:
            context["endDate"] = ""
        return context


@dataclass
class Education:
    """
    A single education entry.

    Attributes:
        id: Identifier, unique within the education sequence
        degree: Degree name
        school: Institution name
        location: Institution location
        graduation_date: Graduation date (YYYY-MM)
        gpa: Optional GPA as free text
    """

    id: str = ""
    degree: str = ""
    school: str = ""
    location: str = ""
    graduation_date: str = ""
    gpa: Optional[str] = None

    @classmethod
    def from_dict(cls, record: Dict[str, Any]) -> "Education":
        values = _field_values(cls, record)
        gpa = values.pop("gpa", None)
        return cls(
            gpa=None if gpa in (None, "") else str(gpa),
            **{k: _as_text(v) for k, v in values.items()},
        )

    def to_dict(self) -> Dict[str, Any]:
        return {to_camel(f.name): getattr(self, f.name) for f in fields(self)}


@dataclass
class Skill:
    """A named skill with a proficiency level from SKILL_LEVELS."""

    id: str = ""
    name: str = ""
    level: str = "intermediate"

    def __post_init__(self):
        if self.level not in SKILL_LEVELS:
            raise InvalidRecordError(
                f"Invalid skill level '{self.level}' for skill '{self.name}'. "
                f"Valid levels: {list(SKILL_LEVELS)}"
            )

    @classmethod
    def from_dict(cls, record: Dict[str, Any]) -> "Skill":
        values = _field_values(cls, record)
        level = _as_text(values.pop("level", None)).strip().lower()
        if level:
            values["level"] = level
        return cls(**{k: _as_text(v) for k, v in values.items()})

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "level": self.level}


def _with_ids(entries: list, kind: str) -> list:
    """
    Return the entries with missing ids filled positionally.

    Entries lacking an id are replaced by copies, so the caller's objects are
    never modified.

    Raises:
        InvalidRecordError: On duplicate ids
    """
    result = []
    seen = set()
    for index, entry in enumerate(entries, 1):
        if not entry.id:
            entry = replace(entry, id=str(index))
        if entry.id in seen:
            raise InvalidRecordError(f"Duplicate {kind} id: {entry.id}")
        seen.add(entry.id)
        result.append(entry)
    return result


@dataclass
class ResumeData:
    """
    Substitution context for template rendering.

    Attributes:
        full_name: Candidate name
        email: Contact email
        phone: Contact phone
        location: City/region
        linked_in: LinkedIn profile URL
        website: Portfolio or personal site URL
        summary: Free-text professional summary
        profile_image: Optional data URI or URL of a profile photo
        experiences: Ordered work experience entries
        education: Ordered education entries
        skills: Ordered skills
    """

    full_name: str = ""
    email: str = ""
    phone: str = ""
    location: str = ""
    linked_in: str = ""
    website: str = ""
    summary: str = ""
    profile_image: Optional[str] = None
    experiences: List[Experience] = field(default_factory=list)
    education: List[Education] = field(default_factory=list)
    skills: List[Skill] = field(default_factory=list)

    def __post_init__(self):
        self.experiences = _with_ids(self.experiences, "experience")
        self.education = _with_ids(self.education, "education")
        self.skills = _with_ids(self.skills, "skill")

    @classmethod
    def from_dict(cls, record: Dict[str, Any]) -> "ResumeData":
        """
        Build ResumeData from a camelCase record (as stored by the editor).

        Raises:
            InvalidRecordError: If the record or one of its entries is malformed
        """
        values = _field_values(cls, record)

        sequences = {}
        for name, entry_cls in (
            ("experiences", Experience),
            ("education", Education),
            ("skills", Skill),
        ):
            entries = values.pop(name, None) or []
            if not isinstance(entries, list):
                raise InvalidRecordError(f"'{to_camel(name)}' must be a list")
            sequences[name] = [entry_cls.from_dict(entry) for entry in entries]

        profile_image = values.pop("profile_image", None) or None

        return cls(
            profile_image=profile_image,
            **{k: _as_text(v) for k, v in values.items()},
            **sequences,
        )

    @classmethod
    def from_file(cls, path: Path) -> "ResumeData":
        """Load ResumeData from a YAML or JSON file."""
        data = OmegaConf.to_container(OmegaConf.load(path), resolve=True)
        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        """Serializable camelCase record."""
        return {
            "fullName": self.full_name,
            "email": self.email,
            "phone": self.phone,
            "location": self.location,
            "linkedIn": self.linked_in,
            "website": self.website,
            "summary": self.summary,
            "profileImage": self.profile_image,
            "experiences": [entry.to_dict() for entry in self.experiences],
            "education": [entry.to_dict() for entry in self.education],
            "skills": [entry.to_dict() for entry in self.skills],
        }

    def to_context(self) -> Dict[str, Any]:
        """
        Build a fresh template context.

        Every call returns new containers, so evaluation can never reach back
        into this instance.
        """
        context = self.to_dict()
        context["experiences"] = [entry.to_context() for entry in self.experiences]
        return context
