"""Content records for Folio.

This module defines the typed records that flow between build stages and the
front-matter parser they are built from.

Key classes:
- FrontMatter: Typed front-matter record with an ``extra`` side channel.
- Post: A rendered, validated post.

Key functions:
- extract_frontmatter: Split a leading YAML block from a Markdown document.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

import yaml
from markupsafe import Markup

from .errors import FrontMatterError, NotSerializableError

FRONTMATTER_RE = re.compile(r"\A---[ \t]*\r?\n(?:(.*?)\r?\n)?---[ \t]*(?:\r?\n|\Z)", re.DOTALL)

RESERVED_KEYS = ("title", "date", "description", "template")

_TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"


class _FrontMatterLoader(yaml.SafeLoader):
    """SafeLoader that leaves ``2024-01-15`` as a string instead of a date."""


_FrontMatterLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != _TIMESTAMP_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def extract_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    """Extract YAML frontmatter from content.

    Args:
        text: Raw file content.

    Returns:
        Tuple of (frontmatter dict, remaining content). Documents without a
        leading ``---`` block yield an empty dict and the text unchanged.

    Raises:
        FrontMatterError: If the block is not valid YAML or not a mapping.
    """
    match = FRONTMATTER_RE.match(text)
    if not match:
        return {}, text
    try:
        data = yaml.load(match.group(1) or "", Loader=_FrontMatterLoader)
    except yaml.YAMLError as exc:
        raise FrontMatterError(f"invalid front matter: {exc}") from exc
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise FrontMatterError("front matter must be a mapping of keys to values")
    return data, text[match.end() :]


@dataclass(frozen=True)
class FrontMatter:
    """Front-matter metadata of one Markdown file.

    Attributes:
        title: Optional ``title`` value.
        date: Optional ``date`` value, unparsed.
        description: Optional ``description`` value.
        template: Optional template override, relative to the templates root.
        extra: Every other key, passed through to templates untouched.
    """

    title: str | None = None
    date: str | None = None
    description: str | None = None
    template: str | None = None
    extra: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Mapping[Any, Any]) -> FrontMatter:
        """Build a FrontMatter from parsed YAML.

        Raises:
            NotSerializableError: If a value is not a plain string.
        """
        values: dict[str, str] = {}
        for key, value in data.items():
            if not isinstance(value, str):
                raise NotSerializableError(str(key))
            values[str(key)] = value
        reserved = {k: values.pop(k) for k in RESERVED_KEYS if k in values}
        return cls(extra=values, **reserved)

    def get(self, key: str, default: str | None = None) -> str | None:
        if key in RESERVED_KEYS:
            value = getattr(self, key)
            return default if value is None else value
        return self.extra.get(key, default)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None


@dataclass(frozen=True)
class Post:
    """A rendered post.

    Attributes:
        title: Post title from front matter.
        description: Front-matter description or the site default.
        date: Publication date parsed from front matter.
        content: Rendered HTML body.
        path: Root-relative URL path, e.g. ``/posts/hello.html``.
        url: Absolute URL (site URL + path).
        source_path: Markdown source file.
        output_path: File the post is written to.
        front_matter: Parsed front matter.
    """

    title: str
    description: str
    date: datetime
    content: str
    path: str
    url: str
    source_path: Path
    output_path: Path
    front_matter: FrontMatter = field(default_factory=FrontMatter)

    @property
    def extra(self) -> dict[str, str]:
        return self.front_matter.extra

    @property
    def html(self) -> Markup:
        """Rendered content marked safe for templates."""
        return Markup(self.content)
