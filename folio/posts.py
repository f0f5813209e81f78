"""Post collection for Folio.

Posts are Markdown files anywhere below the posts directory. Nesting is
flattened: every post is written to ``<output>/<posts dir name>/<stem>.html``.
Files that are not Markdown are skipped with a log notice.

Key classes:
- PostCollector: Renders, validates, sorts and writes posts.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path
from typing import Any

from markupsafe import Markup

from .config import Config
from .content import Post
from .errors import BuildError, FolioError, RequiredFieldError
from .renderers import MarkdownRenderer, RenderedMarkdown
from .templates import TemplateEngine
from .utils import is_markdown, parse_post_date, url_path, walk_tree, with_suffix_html

REQUIRED_FIELDS = ("title", "date")


class PostCollector:
    """Collects and writes the site's posts.

    Attributes:
        config: Site configuration.
        engine: Template engine for post templates.
        renderer: Markdown renderer.
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

    @property
    def posts_output_dir(self) -> Path:
        return self.output_dir / self.config.posts_output_name

    def run(self, assets: Mapping[str, str]) -> list[Post]:
        """Collect, sort and write every post.

        Args:
            assets: Published asset map.

        Returns:
            Posts sorted newest first.
        """
        posts = self.collect(assets)
        if posts:
            self.posts_output_dir.mkdir(parents=True, exist_ok=True)
        for index in range(len(posts)):
            self.write(posts, index, assets)
        return posts

    def collect(self, assets: Mapping[str, str]) -> list[Post]:
        """Render and validate every post without writing anything.

        Returns:
            Posts sorted by date, newest first; equal dates keep walk order.
        """
        posts_dir = self.config.posts_dir
        if posts_dir is None or not posts_dir.exists():
            return []

        posts: list[Post] = []
        seen: dict[Path, Path] = {}
        for path in walk_tree(posts_dir):
            if path.is_dir():
                continue
            if self._on_file:
                self._on_file(path)
            self._log.info("==> Processing %r", str(path))
            if not is_markdown(path):
                self._log.info("SKIPPED")
                continue
            post = self.build_post(path, self.renderer.render(path, assets))
            if post.output_path in seen:
                raise BuildError(
                    path,
                    f"output {str(post.output_path)!r} already produced by {str(seen[post.output_path])!r}",
                )
            seen[post.output_path] = path
            posts.append(post)

        # sorted() is stable, so posts sharing a date keep their walk order
        return sorted(posts, key=lambda p: p.date, reverse=True)

    def build_post(self, path: Path, rendered: RenderedMarkdown) -> Post:
        """Validate front matter and assemble a Post.

        Raises:
            BuildError: If a required field is missing or the date is malformed.
        """
        fm = rendered.front_matter
        for key in REQUIRED_FIELDS:
            if fm.get(key) is None:
                error = RequiredFieldError(key)
                raise BuildError(path, f"could not create post context: {error}", error)
        try:
            date = parse_post_date(fm.date)
        except ValueError as exc:
            raise BuildError(path, f"could not parse date {fm.date!r}: {exc}", exc) from exc

        filename = with_suffix_html(path.name)
        rel = Path(self.config.posts_output_name) / filename
        path_url = url_path(rel)
        return Post(
            title=fm.title,
            description=fm.description if fm.description is not None else self.config.site_description,
            date=date,
            content=rendered.html,
            path=path_url,
            url=f"{self.config.site_url}{path_url}",
            source_path=path,
            output_path=self.posts_output_dir / filename,
            front_matter=fm,
        )

    def write(self, posts: Sequence[Post], index: int, assets: Mapping[str, str]) -> None:
        """Render one post with links to its chronological neighbours.

        ``prev`` is the next-older post (one index later in the newest-first
        list) and ``next`` the next-newer one.
        """
        post = posts[index]
        context = self.context(post, posts, index, assets)
        try:
            template = self.engine.resolve_template(self.config.default_post_template, post.front_matter)
            self.engine.write_template(template, post.output_path, context)
        except (FolioError, OSError) as exc:
            raise BuildError(post.source_path, f"error generating post: {exc}", exc) from exc

    @staticmethod
    def context(
        post: Post, posts: Sequence[Post], index: int, assets: Mapping[str, str]
    ) -> dict[str, Any]:
        return {
            "title": post.title,
            "description": post.description,
            "date": post.date,
            "content": Markup(post.content),
            "post": post,
            "prev": posts[index + 1] if index + 1 < len(posts) else None,
            "next": posts[index - 1] if index > 0 else None,
            "assets": assets,
            "extra": post.extra,
        }
