"""Minify-on-write output sink for Folio.

Everything the builder renders is written through a ``MinifierRegistry``. The
registry picks a minifier from the output file's extension; files with an
unrecognized extension are written unmodified.

A build only renders HTML pages and posts plus the XML feed. The CSS, JS, SVG
and JSON minifiers cover the rest of the write contract for callers that send
other rendered files through the same sink.

Key classes:
- BaseMinifier: Abstract minifier for one family of file types.
- HTMLMinifier: Collapses inter-tag whitespace and drops comments.
- CSSMinifier: Minifies stylesheets with csscompressor.
- JSMinifier: Minifies scripts with rjsmin.
- SVGMinifier / XMLMinifier: Markup minification for SVG and XML documents.
- JSONMinifier: Re-serializes JSON without insignificant whitespace.
- MinifierRegistry: Extension-based lookup plus the write operation.
"""

from __future__ import annotations

import json
import re
from abc import ABC, abstractmethod
from pathlib import Path

import csscompressor
import rjsmin

# Whitespace-sensitive blocks that must survive HTML minification verbatim.
_PRESERVE_RE = re.compile(r"(?is)<(pre|code|textarea|script|style)\b.*?>.*?</\1>")
# Comments, except IE conditional comments.
_COMMENT_RE = re.compile(r"(?s)<!--(?!\[if).*?-->")
_BETWEEN_TAGS_RE = re.compile(r">\s*\n\s*<")
_WHITESPACE_RE = re.compile(r"\s{2,}")


class BaseMinifier(ABC):
    """Base class for minifiers.

    Each subclass handles a set of file extensions.
    """

    extensions: tuple[str, ...] = ()

    def can_minify(self, path: Path) -> bool:
        """Check if this minifier handles the given output file."""
        return path.suffix.lower() in self.extensions

    @abstractmethod
    def minify(self, text: str) -> str:
        """Return the minified form of ``text``."""
        ...


class HTMLMinifier(BaseMinifier):
    """Minifies HTML while keeping document and end tags.

    Contents of ``pre``, ``code``, ``textarea``, ``script`` and ``style``
    elements are left untouched.
    """

    extensions = (".html",)

    def minify(self, text: str) -> str:
        keep: list[str] = []

        def stash(match: re.Match) -> str:
            keep.append(match.group(0))
            return f"\x00{len(keep) - 1}\x00"

        text = _PRESERVE_RE.sub(stash, text)
        text = _COMMENT_RE.sub("", text)
        text = _BETWEEN_TAGS_RE.sub("><", text)
        text = _WHITESPACE_RE.sub(" ", text).strip()
        for i, block in enumerate(keep):
            text = text.replace(f"\x00{i}\x00", block)
        return text


class SVGMinifier(HTMLMinifier):
    """Minifies SVG documents."""

    extensions = (".svg",)


class XMLMinifier(HTMLMinifier):
    """Minifies XML documents, including RSS feeds.

    Matches any extension ending in ``xml``.
    """

    extensions = (".xml",)

    def can_minify(self, path: Path) -> bool:
        return path.suffix.lower().endswith("xml")


class CSSMinifier(BaseMinifier):
    """Minifies CSS with csscompressor."""

    extensions = (".css",)

    def minify(self, text: str) -> str:
        return csscompressor.compress(text)


class JSMinifier(BaseMinifier):
    """Minifies JavaScript (and JSX) with rjsmin."""

    extensions = (".js", ".jsx")

    def minify(self, text: str) -> str:
        return rjsmin.jsmin(text)


class JSONMinifier(BaseMinifier):
    """Re-serializes JSON with compact separators.

    Matches any extension ending in ``json``.
    """

    extensions = (".json",)

    def can_minify(self, path: Path) -> bool:
        return path.suffix.lower().endswith("json")

    def minify(self, text: str) -> str:
        return json.dumps(json.loads(text), separators=(",", ":"), ensure_ascii=False)


class MinifierRegistry:
    """Registry of minifiers and the write operation that uses them."""

    def __init__(self):
        """Initialize an empty registry."""
        self._minifiers: list[BaseMinifier] = []

    def register(self, minifier: BaseMinifier) -> None:
        """Register a minifier. Earlier registrations win on overlap."""
        self._minifiers.append(minifier)

    def get_minifier(self, path: Path) -> BaseMinifier | None:
        """Return the minifier for ``path``, or None for pass-through files."""
        for minifier in self._minifiers:
            if minifier.can_minify(path):
                return minifier
        return None

    def write(self, path: Path, text: str) -> None:
        """Write ``text`` to ``path``, minified when the extension is known.

        Raises:
            OSError: If the file cannot be written.
            ValueError: If a JSON document fails to parse.
        """
        minifier = self.get_minifier(path)
        if minifier is not None:
            text = minifier.minify(text)
        with open(path, "w", encoding="utf-8") as f:
            f.write(text)


def create_default_registry() -> MinifierRegistry:
    """Create a registry with the default minifiers.

    Returns:
        Configured MinifierRegistry.
    """
    registry = MinifierRegistry()
    registry.register(HTMLMinifier())
    registry.register(CSSMinifier())
    registry.register(JSMinifier())
    registry.register(SVGMinifier())
    registry.register(JSONMinifier())
    registry.register(XMLMinifier())
    return registry
