"""Feed generation for Folio.

This module renders the RSS 2.0 feed for the newest posts. Feed items are
built from copies of the post data, so teaser truncation never touches the
Post records other stages hold.

Classes:
    FeedGenerator: Base class for feed generators.
    RSSGenerator: Generates ``rss.xml``.
    FeedItem: One entry of the feed.

Functions:
    teaser: Derive a plain-text teaser from rendered post HTML.
"""

from __future__ import annotations

import html
import re
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from .config import Config
from .content import Post
from .templates import TemplateEngine
from .utils import rfc822

TAG_RE = re.compile(r"<[^>]+>")
EMPTY_TEASER = "Nothing here."

RSS_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>{{ title }}</title>
    <link>{{ url }}</link>
    <language>en-us</language>
    <description>{{ description }}</description>
    <pubDate>{{ date }}</pubDate>
    <lastBuildDate>{{ date }}</lastBuildDate>
    {% for item in items %}
    <item>
      <title>{{ item.title }}</title>
      <link>{{ item.link }}</link>
      <guid>{{ item.link }}</guid>
      <pubDate>{{ item.pub_date }}</pubDate>
      <description>{{ item.description }}</description>
    </item>
    {% endfor %}
  </channel>
</rss>
"""


@dataclass(frozen=True)
class FeedItem:
    """A single feed entry."""

    title: str
    link: str
    pub_date: str
    description: str


def teaser(content: str) -> str:
    """Return the first line of text in rendered HTML.

    Tags are stripped, the text is cut at the first line break, and HTML
    entities are unescaped.

    Examples:
        >>> teaser("<p>Hello &amp; <em>welcome</em></p>\\n<p>More</p>")
        'Hello & welcome'
    """
    text = TAG_RE.sub("", content).strip()
    first_line = text.split("\n", 1)[0]
    return html.unescape(first_line).strip()


class FeedGenerator(ABC):
    """Base class for feed generators.

    Subclasses name their output file and produce its text; ``write`` sends
    it through the engine's minifying sink.
    """

    def __init__(self, config: Config, engine: TemplateEngine):
        self.config = config
        self.engine = engine

    @property
    @abstractmethod
    def filename(self) -> str:
        """Return the output filename for this feed."""
        ...

    @abstractmethod
    def generate(self, posts: Sequence[Post]) -> str | None:
        """Generate feed content, or None when the feed should be skipped."""
        ...

    def write(self, output_dir: Path, posts: Sequence[Post]) -> Path | None:
        """Generate and write the feed to the output directory.

        Returns:
            Path of the written feed, or None if skipped.
        """
        content = self.generate(posts)
        if content is None:
            return None
        output_path = output_dir / self.filename
        self.engine.sink.write(output_path, content)
        return output_path


class RSSGenerator(FeedGenerator):
    """Generates the RSS 2.0 feed.

    The feed lists the newest ``posts_per_page`` posts. Its ``pubDate`` and
    ``lastBuildDate`` are the newest post's date, so unchanged content always
    yields the same feed.
    """

    @property
    def filename(self) -> str:
        return "rss.xml"

    def items(self, posts: Sequence[Post]) -> list[FeedItem]:
        """Build feed items for the newest posts."""
        items = []
        for post in posts[: self.config.posts_per_page]:
            items.append(
                FeedItem(
                    title=post.title,
                    link=post.url,
                    pub_date=rfc822(post.date),
                    description=self.item_description(post),
                )
            )
        return items

    def item_description(self, post: Post) -> str:
        """Explicit description if set, else a teaser of the content."""
        if post.description != self.config.site_description:
            return post.description
        return teaser(post.content) or EMPTY_TEASER

    def generate(self, posts: Sequence[Post]) -> str | None:
        if not self.config.rss or not posts:
            return None
        return self.engine.render_string(
            RSS_TEMPLATE,
            {
                "title": self.config.site_title,
                "url": self.config.site_url,
                "description": self.config.site_description,
                "date": rfc822(posts[0].date),
                "items": self.items(posts),
            },
        )
