"""Page walking and pagination for Folio.

Every file below the pages directory becomes one output file at the mirrored
location:

- ``.html`` files are Jinja templates rendered with site metadata and the
  asset map. The file named like the configured posts index is paginated.
- ``.md`` files are rendered as Markdown and wrapped in a page template.
- Any other extension fails the build.

Key classes:
- PageWalker: Walks the pages tree and writes every page.
- PaginatedPage: One slice of the posts index.

Key functions:
- paginate: Split posts into fixed-size pages.
- pagination_links: Compute the prev/next URLs of a page.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from markupsafe import Markup

from .config import Config
from .content import Post
from .errors import BuildError, FolioError, InvalidFormatError
from .renderers import MarkdownRenderer
from .templates import TemplateEngine
from .utils import is_html, is_markdown, url_path, walk_tree, with_suffix_html


@dataclass(frozen=True)
class PaginatedPage:
    """One output page of the posts index.

    Attributes:
        number: 1-based page number.
        posts: Posts shown on this page.
        prev: URL of the previous page, or ``""``.
        next: URL of the next page, or ``""``.
        output_path: File the page is written to.
    """

    number: int
    posts: Sequence[Post]
    prev: str
    next: str
    output_path: Path


def paginate(posts: Sequence[Post], size: int) -> list[list[Post]]:
    """Split posts into consecutive chunks of ``size`` (the last may be shorter).

    Examples:
        >>> [len(p) for p in paginate(list(range(7)), 3)]
        [3, 3, 1]
    """
    if size <= 0:
        raise ValueError("page size must be greater than 0")
    return [list(posts[i : i + size]) for i in range(0, len(posts), size)]


def pagination_links(index: int, page_count: int, index_url: str) -> tuple[str, str]:
    """Return ``(prev, next)`` URLs for the 0-based page ``index``.

    Page 0 lives at ``index_url``; page ``i > 0`` lives at ``/page{i+1}``.
    The back link of the second page therefore points at ``index_url``
    rather than ``/page1``.
    """
    next_url = f"/page{index + 2}" if index + 1 < page_count else ""
    if index == 0:
        prev_url = ""
    elif index == 1:
        prev_url = index_url
    else:
        prev_url = f"/page{index}"
    return prev_url, next_url


class PageWalker:
    """Renders every file in the pages directory.

    Attributes:
        config: Site configuration.
        engine: Template engine.
        renderer: Markdown renderer for ``.md`` pages.
        output_dir: Output root.
    """

    def __init__(
        self,
        config: Config,
        engine: TemplateEngine,
        renderer: MarkdownRenderer,
        output_dir: Path | None = None,
        on_file: Callable[[Path], None] | None = None,
        logger: logging.Logger | None = None,
    ):
        self.config = config
        self.engine = engine
        self.renderer = renderer
        self.output_dir = output_dir or config.output_dir
        self._on_file = on_file
        self._log = logger or logging.getLogger("folio.builder")

    def run(self, assets: Mapping[str, str], posts: Sequence[Post]) -> None:
        """Walk the pages directory and write every page.

        Raises:
            BuildError: On the first page that fails, or on an unsupported extension.
        """
        pages_dir = self.config.pages_dir
        for path in walk_tree(pages_dir):
            rel = path.relative_to(pages_dir)
            if path.is_dir():
                try:
                    (self.output_dir / rel).mkdir(parents=True, exist_ok=True)
                except OSError as exc:
                    raise BuildError(path, f"could not create directory: {exc}", exc) from exc
                continue

            if self._on_file:
                self._on_file(path)
            self._log.info("==> Processing %r", str(path))
            try:
                if is_html(path):
                    if self.is_posts_index(path):
                        self.write_posts_index(path, rel, posts, assets)
                    else:
                        self.write_html(path, rel, assets)
                elif is_markdown(path):
                    self.write_markdown(path, rel, assets)
                else:
                    raise InvalidFormatError(path)
            except BuildError:
                raise
            except (FolioError, OSError) as exc:
                raise BuildError(path, f"error processing file: {exc}", exc) from exc

    def is_posts_index(self, path: Path) -> bool:
        """Whether ``path`` is the configured posts index template."""
        return bool(self.config.posts_index) and path.name == Path(self.config.posts_index).name

    def site_context(self, assets: Mapping[str, str]) -> dict[str, Any]:
        return {
            "site": self.engine.site,
            "site_title": self.config.site_title,
            "site_description": self.config.site_description,
            "site_url": self.config.site_url,
            "assets": assets,
        }

    def write_html(self, path: Path, rel: Path, assets: Mapping[str, str]) -> None:
        """Render an HTML page template with site metadata and assets bound."""
        template = self.engine.from_file(path)
        self.engine.write_template(template, self.output_dir / rel, self.site_context(assets))

    def write_markdown(self, path: Path, rel: Path, assets: Mapping[str, str]) -> None:
        """Render a Markdown page into the resolved page template."""
        rendered = self.renderer.render(path, assets)
        fm = rendered.front_matter
        template = self.engine.resolve_template(self.config.default_page_template, fm)
        context = self.site_context(assets)
        context.update(
            {
                "title": f"{self.config.site_title} | {fm.title}" if fm.title else self.config.site_title,
                "page_title": fm.title or "",
                "description": fm.description if fm.description is not None else self.config.site_description,
                "content": Markup(rendered.html),
                "extra": fm.extra,
            }
        )
        out = self.output_dir / rel.with_name(with_suffix_html(rel.name))
        self.engine.write_template(template, out, context)

    def pages_for(self, rel: Path, posts: Sequence[Post]) -> list[PaginatedPage]:
        """Lay out the posts index pages for the template at ``rel``.

        With no posts a single empty page is produced at the template's own
        output path.
        """
        chunks = paginate(posts, self.config.posts_per_page) or [[]]
        index_url = url_path(rel)
        pages = []
        for i, chunk in enumerate(chunks):
            prev_url, next_url = pagination_links(i, len(chunks), index_url)
            if i == 0:
                output_path = self.output_dir / rel
            else:
                output_path = self.output_dir / f"page{i + 1}" / "index.html"
            pages.append(
                PaginatedPage(
                    number=i + 1,
                    posts=chunk,
                    prev=prev_url,
                    next=next_url,
                    output_path=output_path,
                )
            )
        return pages

    def write_posts_index(
        self, path: Path, rel: Path, posts: Sequence[Post], assets: Mapping[str, str]
    ) -> None:
        """Render the posts index once per page of posts."""
        template = self.engine.from_file(path)
        pages = self.pages_for(rel, posts)
        for page in pages:
            page.output_path.parent.mkdir(parents=True, exist_ok=True)
            context = self.site_context(assets)
            context.update(
                {
                    "posts": page.posts,
                    "next": page.next,
                    "prev": page.prev,
                    "page_number": page.number,
                    "page_count": len(pages),
                }
            )
            self.engine.write_template(template, page.output_path, context)
