"""Markdown rendering for Folio.

A Markdown file is rendered in two passes:

1. Front matter is split off and the body is converted to HTML with mistune.
   Fenced code blocks are highlighted with Pygments.
2. The resulting HTML is rendered once more as a Jinja2 template with the
   asset map bound as ``assets``, so Markdown bodies can link fingerprinted
   files with ``{{ assets|key("css/site.css") }}``.

Template expressions are set aside before the Markdown pass so that mistune's
escaping cannot break them.

Key classes:
- MarkdownRenderer: Renders a Markdown file to HTML plus front matter.
- RenderedMarkdown: Result record of a render.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

import mistune
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from .content import FrontMatter, extract_frontmatter
from .errors import BuildError, ConfigError, FolioError
from .templates import TemplateEngine

TEMPLATE_EXPR_RE = re.compile(r"\{\{.*?\}\}|\{%.*?%\}|\{#.*?#\}", re.DOTALL)
_PLACEHOLDER = "folioexpr{}x"


@dataclass(frozen=True)
class RenderedMarkdown:
    """HTML and metadata produced from one Markdown file."""

    html: str
    front_matter: FrontMatter


class _HighlightRenderer(mistune.HTMLRenderer):
    """Markdown renderer with Pygments syntax highlighting.

    Raw HTML in the Markdown source passes through unescaped.
    """

    def __init__(self, formatter: HtmlFormatter):
        """Initialize the renderer.

        Args:
            formatter: Pygments formatter used for fenced code blocks.
        """
        super().__init__(escape=False)
        self.formatter = formatter

    def block_code(self, code: str, info: str | None = None) -> str:
        """Render a code block with Pygments syntax highlighting.

        Args:
            code: The code content.
            info: Language identifier (e.g., 'python', 'javascript').

        Returns:
            HTML string with highlighted code.
        """
        lang = info.split()[0] if info and info.strip() else ""
        if lang:
            try:
                lexer = get_lexer_by_name(lang, stripall=True)
            except ClassNotFound:
                lexer = None
            if lexer is not None:
                return highlight(code, lexer, self.formatter)
        escaped = code.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")
        lang_class = f' class="language-{lang}"' if lang else ""
        return f"<pre><code{lang_class}>{escaped}</code></pre>\n"


def shield_template_expressions(text: str) -> tuple[str, list[str]]:
    """Replace Jinja expressions with inert placeholders.

    Returns:
        Tuple of (text with placeholders, expressions in order).
    """
    stash: list[str] = []

    def repl(match: re.Match) -> str:
        stash.append(match.group(0))
        return _PLACEHOLDER.format(len(stash) - 1)

    return TEMPLATE_EXPR_RE.sub(repl, text), stash


def restore_template_expressions(text: str, stash: list[str]) -> str:
    """Put shielded expressions back in place of their placeholders."""
    for i, expr in enumerate(stash):
        text = text.replace(_PLACEHOLDER.format(i), expr)
    return text


class MarkdownRenderer:
    """Renders Markdown files to HTML.

    Attributes:
        engine: Template engine used for the second rendering pass.
        formatter: Pygments formatter for fenced code blocks.
    """

    def __init__(
        self,
        engine: TemplateEngine,
        highlight_theme: str = "default",
        line_numbers: bool = False,
        with_classes: bool = False,
    ):
        """Initialize the renderer.

        Args:
            engine: Template engine used to render Markdown HTML as a template.
            highlight_theme: Pygments style name.
            line_numbers: Whether highlighted blocks get line numbers.
            with_classes: Emit CSS classes instead of inline styles.

        Raises:
            ConfigError: If the highlight theme is unknown to Pygments.
        """
        self.engine = engine
        try:
            self.formatter = HtmlFormatter(
                style=highlight_theme,
                linenos="table" if line_numbers else False,
                noclasses=not with_classes,
                cssclass="highlight",
            )
        except ClassNotFound as exc:
            raise ConfigError("build.highlight_theme", f"unknown highlight theme {highlight_theme!r}") from exc

    def to_html(self, source: str) -> str:
        """Convert a Markdown body (without front matter) to HTML."""
        markdown = mistune.create_markdown(
            renderer=_HighlightRenderer(self.formatter),
            plugins=["strikethrough", "footnotes", "table", "url"],
        )
        shielded, stash = shield_template_expressions(source)
        return restore_template_expressions(markdown(shielded), stash)

    def render(self, path: Path, assets: Mapping[str, str]) -> RenderedMarkdown:
        """Render a Markdown file.

        Args:
            path: Markdown source file.
            assets: Asset map bound as ``assets`` in the second pass.

        Returns:
            RenderedMarkdown with final HTML and front matter.

        Raises:
            BuildError: If reading, parsing, or rendering fails.
        """
        try:
            raw = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise BuildError(path, f"could not read file: {exc}", exc) from exc

        try:
            data, body = extract_frontmatter(raw)
            front_matter = FrontMatter.from_mapping(data)
        except FolioError as exc:
            raise BuildError(path, f"could not process front matter: {exc}", exc) from exc

        html = self.to_html(body)
        try:
            html = self.engine.render_string(html, {"assets": assets})
        except FolioError as exc:
            raise BuildError(path, f"could not render intermediate template: {exc}", exc) from exc
        except Exception as exc:
            raise BuildError(
                path, f"could not render intermediate template: {type(exc).__name__}: {exc}", exc
            ) from exc
        return RenderedMarkdown(html=html, front_matter=front_matter)
