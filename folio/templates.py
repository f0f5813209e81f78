"""Template rendering engine for Folio.

This module uses Jinja2 to resolve, render and write templates. Page and post
templates are loaded from the configured templates directory; HTML pages and
rendered Markdown are compiled from strings against the same environment so
they can ``{% extends %}`` and ``{% include %}`` shared templates.

Key class:
- TemplateEngine: Template resolution, rendering, and writing through the minifying sink.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from jinja2 import (
    Environment,
    FileSystemLoader,
    Template,
    TemplateNotFound,
    TemplateSyntaxError,
    select_autoescape,
)

from .asset_resolver import key_filter
from .content import FrontMatter
from .errors import FolioError, TemplateError
from .minify import MinifierRegistry, create_default_registry


class TemplateEngine:
    """Template rendering engine using Jinja2.

    Attributes:
        templates_dir: Directory containing templates.
        site: Site metadata installed as the ``site`` global.
        env: Jinja2 environment.
        sink: Minifying writer used by ``write_template``.
    """

    def __init__(
        self,
        templates_dir: Path,
        site: Mapping[str, Any] | None = None,
        sink: MinifierRegistry | None = None,
    ):
        """Initialize the template engine.

        Args:
            templates_dir: Directory with templates.
            site: Site metadata (title, description, url).
            sink: Optional custom minifying sink.
        """
        self.templates_dir = templates_dir
        self.site = dict(site or {})
        self.sink = sink or create_default_registry()
        self.env = Environment(
            loader=FileSystemLoader(templates_dir),
            autoescape=select_autoescape(["html", "xml"], default_for_string=True),
        )
        self._install_globals()

    def _install_globals(self) -> None:
        """Install global variables and filters in the Jinja environment."""
        self.env.globals["site"] = self.site
        self.env.filters["key"] = key_filter

    def get_template(self, name: str) -> Template:
        """Load a template from the templates directory.

        Raises:
            TemplateError: If the template is missing or does not compile.
        """
        try:
            return self.env.get_template(name)
        except TemplateNotFound as exc:
            raise TemplateError(f"could not get template {name!r}: not found in {self.templates_dir}") from exc
        except TemplateSyntaxError as exc:
            raise TemplateError(
                f"could not get template {name!r}: syntax error on line {exc.lineno}: {exc.message}"
            ) from exc

    def resolve_template(self, default: str, front_matter: FrontMatter) -> Template:
        """Pick the template for a Markdown document.

        Args:
            default: Template used when front matter has no ``template`` key.
            front_matter: Parsed front matter of the document.

        Returns:
            The loaded Jinja2 template.
        """
        return self.get_template(front_matter.template or default)

    def from_string(self, source: str) -> Template:
        """Compile a template from a string.

        Raises:
            TemplateError: If the source does not compile.
        """
        try:
            return self.env.from_string(source)
        except TemplateSyntaxError as exc:
            raise TemplateError(
                f"could not compile template: syntax error on line {exc.lineno}: {exc.message}"
            ) from exc

    def from_file(self, path: Path) -> Template:
        """Compile a page file that lives outside the templates directory.

        Raises:
            TemplateError: If the file cannot be read as UTF-8 or does not compile.
        """
        try:
            source = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise TemplateError(f"could not read template {str(path)!r}: {exc}") from exc
        return self.from_string(source)

    def render_string(self, source: str, context: Mapping[str, Any]) -> str:
        """Render a template string.

        Args:
            source: Template string to render.
            context: Variables to make available in the template.

        Returns:
            Rendered string.
        """
        return self.from_string(source).render(**context)

    def write_template(
        self, template: Template, output_path: Path, context: Mapping[str, Any]
    ) -> None:
        """Render ``template`` and write it through the minifying sink.

        Args:
            template: Compiled template.
            output_path: File to create or overwrite.
            context: Named values bound during rendering.

        Raises:
            TemplateError: If rendering fails.
            OSError: If the output cannot be written.
        """
        name = template.name or "<string>"
        try:
            rendered = template.render(**context)
        except FolioError:
            raise
        except Exception as exc:
            raise TemplateError(
                f"could not render template {name!r} to {str(output_path)!r}: {_format_error_message(exc)}"
            ) from exc
        self.sink.write(output_path, rendered)


def _format_error_message(exc: Exception) -> str:
    """Format an exception into a user-friendly error message.

    Args:
        exc: The exception to format.

    Returns:
        A human-readable error message.
    """
    error_type = type(exc).__name__
    error_msg = str(exc)

    # Handle common Jinja2/template errors
    if error_type == "UndefinedError":
        return f"Undefined variable: {error_msg}"
    if error_type == "TypeError":
        return f"Type error: {error_msg}"
    if error_type == "AttributeError":
        return f"Attribute error: {error_msg}"

    return f"{error_type}: {error_msg}"
