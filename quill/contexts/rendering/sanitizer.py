"""
Markup Sanitizer

Last-resort safety net applied to every rendered template. Removes executable
elements, inline event-handler attributes and dangerous URI schemes. Sanitization
is silent: nothing is reported to the author, stripped content simply disappears.

Policies are named sets of rules loaded from render_policies.yaml:

    >>> sanitizer = HtmlSanitizer(load_policy("strict"))
    >>> sanitizer.sanitize('<p onclick="x()">Hi</p><script>alert(1)</script>')
    '<p>Hi</p>'
"""

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Tuple

from bs4 import BeautifulSoup, Comment
from dotenv import load_dotenv
from omegaconf import OmegaConf

load_dotenv()
RENDER_POLICIES_PATH = Path(
    os.getenv("RENDER_POLICIES_PATH", Path(__file__).parent / "render_policies.yaml")
)

DEFAULT_POLICY = "standard"

# Browsers ignore whitespace and control characters inside a URI scheme ("java\tscript:")
_URI_IGNORED_CHARS_RE = re.compile(r"[\x00-\x20]+")
_SCHEME_RE = re.compile(r"^([a-z][a-z0-9+.\-]*):")
_DANGEROUS_STYLE_MARKERS = ("expression(", "javascript:", "vbscript:", "-moz-binding")

# Attributes removed regardless of policy (besides on* handlers)
_ALWAYS_DROPPED_ATTRIBUTES = {"srcdoc"}


@dataclass(frozen=True)
class SanitizerPolicy:
    """
    Rules applied by HtmlSanitizer.

    Attributes:
        name: Policy name (key in render_policies.yaml)
        drop_elements: Elements removed together with their content
        uri_attributes: Attributes whose value is checked as a URI
        allowed_schemes: URI schemes kept (relative URIs are always kept)
        allowed_data_media: Media types allowed in data: URIs
        keep_comments: Whether HTML comments survive
    """

    name: str
    drop_elements: Tuple[str, ...]
    uri_attributes: Tuple[str, ...]
    allowed_schemes: Tuple[str, ...]
    allowed_data_media: Tuple[str, ...] = ()
    keep_comments: bool = True

    @classmethod
    def from_config(cls, name: str, config: Dict) -> "SanitizerPolicy":
        return cls(
            name=name,
            drop_elements=tuple(e.lower() for e in config["drop_elements"]),
            uri_attributes=tuple(a.lower() for a in config["uri_attributes"]),
            allowed_schemes=tuple(s.lower() for s in config["allowed_schemes"]),
            allowed_data_media=tuple(m.lower() for m in config.get("allowed_data_media", [])),
            keep_comments=bool(config.get("keep_comments", True)),
        )


def load_policies(config_path: Path = None) -> Dict[str, SanitizerPolicy]:
    """
    Load all sanitizer policies from render_policies.yaml.

    Args:
        config_path: Optional path to policy file (defaults to RENDER_POLICIES_PATH)

    Returns:
        Dict mapping policy name to SanitizerPolicy
    """
    if config_path is None:
        config_path = RENDER_POLICIES_PATH

    config = OmegaConf.to_container(OmegaConf.load(config_path), resolve=True)
    return {name: SanitizerPolicy.from_config(name, rules) for name, rules in config.items()}


def load_policy(name: str = DEFAULT_POLICY, config_path: Path = None) -> SanitizerPolicy:
    """
    Load a single named policy.

    Raises:
        ValueError: If the policy is not defined
    """
    policies = load_policies(config_path)
    if name not in policies:
        raise ValueError(f"Policy '{name}' not found. Available policies: {list(policies)}")
    return policies[name]


@dataclass
class SanitizationResult:
    """
    Sanitized markup plus counts of what was removed.

    Attributes:
        html: Sanitized markup
        removed_elements: Elements dropped (with content)
        removed_attributes: Attributes dropped (handlers, unsafe URIs, unsafe styles)
        removed_comments: HTML comments dropped
    """

    html: str
    removed_elements: int = 0
    removed_attributes: int = 0
    removed_comments: int = 0

    @property
    def removed(self) -> Dict[str, int]:
        return {
            "elements": self.removed_elements,
            "attributes": self.removed_attributes,
            "comments": self.removed_comments,
        }


class HtmlSanitizer:
    """Strips executable content from markup according to a SanitizerPolicy."""

    def __init__(self, policy: SanitizerPolicy = None):
        self.policy = policy or load_policy(DEFAULT_POLICY)

    def sanitize(self, markup: str) -> str:
        return self.clean(markup).html

    def clean(self, markup: str) -> SanitizationResult:
        """
        Sanitize markup and report what was removed.

        Args:
            markup: HTML fragment

        Returns:
            SanitizationResult
        """
        if not markup:
            return SanitizationResult(html="")

        soup = BeautifulSoup(markup, "html.parser")
        result = SanitizationResult(html="")

        for element in soup.find_all(list(self.policy.drop_elements)):
            if element.decomposed:
                continue
            element.decompose()
            result.removed_elements += 1

        if not self.policy.keep_comments:
            for comment in soup.find_all(string=lambda text: isinstance(text, Comment)):
                comment.extract()
                result.removed_comments += 1

        for tag in soup.find_all(True):
            for attr in list(tag.attrs):
                if not self._attribute_is_safe(attr.lower(), tag.attrs[attr]):
                    del tag.attrs[attr]
                    result.removed_attributes += 1

        result.html = str(soup)
        return result

    def _attribute_is_safe(self, name: str, value) -> bool:
        if name.startswith("on") or name in _ALWAYS_DROPPED_ATTRIBUTES:
            return False

        if isinstance(value, list):
            value = " ".join(value)

        if name in self.policy.uri_attributes:
            if name == "srcset":
                candidates = [part.strip().split(" ")[0] for part in value.split(",")]
                return all(self.uri_is_safe(candidate) for candidate in candidates)
            return self.uri_is_safe(value)

        if name == "style":
            normalized = _URI_IGNORED_CHARS_RE.sub("", value).lower()
            return not any(marker in normalized for marker in _DANGEROUS_STYLE_MARKERS)

        return True

    def uri_is_safe(self, uri: str) -> bool:
        """
        Check a URI against the policy.

        Relative URIs (no scheme) are safe. data: URIs are safe only for the
        policy's allowed media types.
        """
        normalized = _URI_IGNORED_CHARS_RE.sub("", uri).lower()
        match = _SCHEME_RE.match(normalized)
        if match is None:
            return True

        scheme = match.group(1)
        if scheme == "data":
            media_type = re.split(r"[;,]", normalized[len("data:") :], maxsplit=1)[0]
            return media_type in self.policy.allowed_data_media
        return scheme in self.policy.allowed_schemes


def sanitize_markup(markup: str, policy_name: str = DEFAULT_POLICY) -> str:
    """Sanitize markup with a named policy."""
    return HtmlSanitizer(load_policy(policy_name)).sanitize(markup)


def available_policies(config_path: Path = None) -> List[str]:
    return list(load_policies(config_path))
