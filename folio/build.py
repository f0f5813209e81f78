"""Site building functionality for Folio.

This module contains the core logic for building a static site from source files.
A build runs these stages in order, each depending on the complete output of
the one before:

1. Verify the configured source directories exist.
2. Clean and recreate the output directory.
3. Publish public assets (producing the asset map).
4. Collect and write posts (using the asset map).
5. Walk and write pages (using the asset map and the sorted posts).
6. Write the RSS feed (using the sorted posts).

Key classes:
- Builder: Owns the configuration and runs builds.
- BuildContext: State scoped to a single build (output dir, file counter).
- BuildResult: What a build produced.

Key functions:
- build_site: Load ``config.toml`` from a project root and build once.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path

from .asset_resolver import AssetMap
from .assets import AssetPublisher
from .config import CONFIG_FILENAME, Config, load_config
from .content import Post
from .errors import BuildError, DirectoryError, FolioError
from .feeds import RSSGenerator
from .minify import MinifierRegistry, create_default_registry
from .pages import PageWalker
from .posts import PostCollector
from .renderers import MarkdownRenderer
from .templates import TemplateEngine
from .utils import ensure_clean_dir

logger = logging.getLogger("folio.builder")

# BuildError is re-exported for callers of build_site
__all__ = ["BuildContext", "BuildError", "BuildResult", "Builder", "build_site"]


@dataclass
class BuildContext:
    """State scoped to one build.

    A fresh context is created at the start of every ``Builder.build`` call,
    so repeated builds (as in watch mode) never share counters.

    Attributes:
        output_dir: Directory the build writes to.
        files_processed: Number of source files handled so far.
        started_at: ``time.perf_counter()`` value at build start.
    """

    output_dir: Path
    files_processed: int = 0
    started_at: float = field(default_factory=time.perf_counter)

    def count(self, path: Path) -> None:
        self.files_processed += 1
        logger.debug("File %d: %s", self.files_processed, path)

    @property
    def elapsed(self) -> float:
        return time.perf_counter() - self.started_at


@dataclass
class BuildResult:
    """Result of a site build operation.

    Attributes:
        posts: Posts sorted newest first.
        assets: Published asset map.
        output_dir: Directory where the site was built.
        files_processed: Number of source files handled.
        feed_path: Path of the RSS feed, if one was written.
    """

    posts: list[Post]
    assets: AssetMap
    output_dir: Path
    files_processed: int
    feed_path: Path | None = None


class Builder:
    """Builds a site from a Config.

    One Builder can run any number of builds; each build gets its own
    BuildContext and template environment.

    Attributes:
        config: Site configuration.
        log: Logger for build progress.
        sink: Minifying writer shared by every stage.
    """

    def __init__(
        self,
        config: Config,
        logger: logging.Logger | None = None,
        sink: MinifierRegistry | None = None,
    ):
        """Initialize the builder.

        Args:
            config: Site configuration.
            logger: Optional logger; defaults to ``folio.builder``.
            sink: Optional custom minifying sink.
        """
        self.config = config
        self.log = logger or logging.getLogger("folio.builder")
        self.sink = sink or create_default_registry()

    def site_metadata(self) -> dict[str, str]:
        return {
            "title": self.config.site_title,
            "description": self.config.site_description,
            "url": self.config.site_url,
        }

    def build(self, output_dir: Path | None = None) -> BuildResult:
        """Run a full build.

        Args:
            output_dir: Optional directory to write to instead of the configured one.

        Returns:
            BuildResult describing the build.

        Raises:
            DirectoryError: If a configured source directory is missing.
            BuildError: On the first failure in any stage.
        """
        self.verify_directories()
        ctx = BuildContext(output_dir=output_dir or self.config.output_dir)
        try:
            ensure_clean_dir(ctx.output_dir)
        except OSError as exc:
            raise BuildError(ctx.output_dir, f"could not clean output dir: {exc}", exc) from exc

        self.log.info("Starting build...")
        engine = TemplateEngine(self.config.templates_dir, self.site_metadata(), sink=self.sink)
        renderer = MarkdownRenderer(
            engine,
            highlight_theme=self.config.highlight_theme,
            line_numbers=self.config.highlight_line_numbers,
            with_classes=self.config.highlight_with_classes,
        )

        assets = AssetPublisher(
            self.config.public_dir,
            ctx.output_dir,
            self.config.hash_exts,
            on_file=ctx.count,
            logger=self.log,
        ).run()
        posts = PostCollector(
            self.config, engine, renderer, ctx.output_dir, on_file=ctx.count, logger=self.log
        ).run(assets)
        PageWalker(
            self.config, engine, renderer, ctx.output_dir, on_file=ctx.count, logger=self.log
        ).run(assets, posts)
        feed_path = self._write_feed(engine, ctx, posts)

        self.log.info("Processed %d files in %.3fs", ctx.files_processed, ctx.elapsed)
        return BuildResult(
            posts=posts,
            assets=assets,
            output_dir=ctx.output_dir,
            files_processed=ctx.files_processed,
            feed_path=feed_path,
        )

    def verify_directories(self) -> None:
        """Check that every configured source directory exists.

        Raises:
            DirectoryError: For the first missing directory or non-directory.
        """
        for directory in self.config.source_dirs:
            if not directory.exists():
                raise DirectoryError(f"could not resolve directory {str(directory)!r}")
            if not directory.is_dir():
                raise DirectoryError(f"not a directory: {str(directory)!r}")

    def _write_feed(
        self, engine: TemplateEngine, ctx: BuildContext, posts: list[Post]
    ) -> Path | None:
        if not self.config.rss or not posts:
            return None
        ctx.count(ctx.output_dir / "rss.xml")
        self.log.info("==> Processing %r", "rss.xml")
        try:
            return RSSGenerator(self.config, engine).write(ctx.output_dir, posts)
        except (FolioError, OSError) as exc:
            raise BuildError(ctx.output_dir / "rss.xml", f"could not render rss: {exc}", exc) from exc


def build_site(project_root: Path, output_dir: Path | None = None) -> BuildResult:
    """Build the site described by ``<project_root>/config.toml``.

    Args:
        project_root: Root directory of the project.
        output_dir: Optional override for the configured output directory.

    Returns:
        BuildResult containing posts, assets and the output directory.
    """
    config = load_config(project_root / CONFIG_FILENAME)
    return Builder(config).build(output_dir=output_dir)
