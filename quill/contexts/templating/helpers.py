"""
Template Helpers

Named functions callable from template markup. A HelperRegistry is built per
renderer and handed to the interpreter, so different renderer configurations can
carry different helper sets without sharing global state.

Simple helpers receive their evaluated parameters:
    {{formatDate startDate}}          -> format_date("2022-01")

Block helpers additionally receive a HelperOptions as their last argument:
    {{#if_has_photo hasPhoto}}...{{else}}...{{/if_has_photo}}
"""

import inspect
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from quill.contexts.templating.template_language import (
    IDENTIFIER_RE,
    HelperOptions,
    helper_signature,
    is_truthy,
)

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

# YYYY-MM, optionally followed by -DD and a time component
YEAR_MONTH_RE = re.compile(r"^\s*(\d{4})-(\d{1,2})(?:-\d{1,2})?(?:[T ].*)?\s*$")

BULLET_MARKERS = ("•", "-", "*", "–")


@dataclass(frozen=True)
class Helper:
    name: str
    fn: Callable[..., Any]
    block: bool
    signature: inspect.Signature


class HelperRegistry:
    """
    Registry of named template helpers.

    Example:
        >>> helpers = HelperRegistry()
        >>> helpers.register("shout", lambda text: str(text).upper())
        >>> "shout" in helpers
        True
    """

    def __init__(self):
        self._helpers: Dict[str, Helper] = {}

    def register(self, name: str, fn: Callable[..., Any], block: bool = False) -> None:
        """
        Register a helper under `name`, replacing any previous one.

        Args:
            name: Name used in markup (must be a valid identifier)
            fn: Callable; block helpers receive HelperOptions as the last argument
            block: Whether the helper is used as `{{#name}}...{{/name}}`

        Raises:
            ValueError: If the name is not a valid template identifier
        """
        if not IDENTIFIER_RE.match(name):
            raise ValueError(f"Invalid helper name: '{name}'")
        self._helpers[name] = Helper(name, fn, block, helper_signature(fn))

    def unregister(self, name: str) -> None:
        self._helpers.pop(name, None)

    def get(self, name: str) -> Optional[Helper]:
        return self._helpers.get(name)

    def names(self) -> List[str]:
        return sorted(self._helpers)

    def copy(self) -> "HelperRegistry":
        """Independent registry with the same helpers."""
        clone = HelperRegistry()
        clone._helpers = dict(self._helpers)
        return clone

    def __contains__(self, name: str) -> bool:
        return name in self._helpers

    def __len__(self) -> int:
        return len(self._helpers)


# Simple helpers


def format_date(date_string: Any) -> str:
    """
    Format a year-month date as "Month YYYY".

    Empty input yields empty output; a value that is not a recognisable date is
    returned unchanged.

    Examples:
        >>> format_date("2022-01")
        'January 2022'
        >>> format_date("2021-03-01")
        'March 2021'
        >>> format_date("")
        ''
    """
    if not date_string:
        return ""
    text = str(date_string)
    match = YEAR_MONTH_RE.match(text)
    if not match:
        return text
    year, month = match.group(1), int(match.group(2))
    if not 1 <= month <= 12:
        return text
    return f"{MONTH_NAMES[month - 1]} {year}"


def bullet_lines(description: Any) -> List[str]:
    """
    Split a description into bullet items.

    Blank lines are dropped and a leading bullet marker (•, -, *) is stripped.

    Example:
        >>> bullet_lines("• Led team\\n- Shipped v2\\n\\nMentored")
        ['Led team', 'Shipped v2', 'Mentored']
    """
    if not description:
        return []
    items = []
    for line in str(description).splitlines():
        line = line.strip()
        if line.startswith(BULLET_MARKERS):
            line = line[1:].strip()
        if line:
            items.append(line)
    return items


def eq(a: Any, b: Any) -> bool:
    return a == b


# Block helpers


def if_helper(condition: Any, options: HelperOptions) -> str:
    return options.fn() if is_truthy(condition) else options.inverse()


def unless_helper(condition: Any, options: HelperOptions) -> str:
    return options.inverse() if is_truthy(condition) else options.fn()


def each_helper(items: Any, options: HelperOptions) -> str:
    """
    Render the block once per element of a sequence.

    Only lists are iterated; mappings and scalars render the `{{else}}` branch.
    Each element becomes the context, with @index, @first and @last set.
    """
    if not isinstance(items, (list, tuple)) or not items:
        return options.inverse()
    last = len(items) - 1
    return "".join(
        options.fn(item, {"index": i, "first": i == 0, "last": i == last})
        for i, item in enumerate(items)
    )


def with_helper(value: Any, options: HelperOptions) -> str:
    return options.fn(value) if is_truthy(value) else options.inverse()


def if_has_photo(has_photo: Any, options: HelperOptions) -> str:
    """Render the primary branch only when the template has a photo slot."""
    return options.fn() if is_truthy(has_photo) else options.inverse()


def default_helpers() -> HelperRegistry:
    """
    Build the standard helper set.

    Block helpers: if, unless, each, with, if_has_photo
    Simple helpers: formatDate, bulletLines, eq
    """
    helpers = HelperRegistry()
    helpers.register("if", if_helper, block=True)
    helpers.register("unless", unless_helper, block=True)
    helpers.register("each", each_helper, block=True)
    helpers.register("with", with_helper, block=True)
    helpers.register("if_has_photo", if_has_photo, block=True)
    helpers.register("formatDate", format_date)
    helpers.register("bulletLines", bullet_lines)
    helpers.register("eq", eq)
    return helpers
