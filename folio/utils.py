"""Utility functions for Folio.

This module contains path and filesystem helpers shared by the build stages.

Key functions:
    walk_tree: Walk a source tree in lexical order, pruning self-nested directories.
    ensure_clean_dir: Ensure a directory exists and is empty.
    with_suffix_html: Swap the last extension of a filename for ``.html``.
    insert_fingerprint: Splice a hash fragment before a filename's last extension.
    file_digest: MD5 hex digest of a file's bytes.
    rfc822: Format a datetime for RSS.
    parse_post_date: Parse a ``YYYY-MM-DD`` front-matter date.
"""

from __future__ import annotations

import hashlib
import logging
import re
import shutil
from collections.abc import Iterator
from datetime import datetime
from pathlib import Path

logger = logging.getLogger("folio.builder")

POST_DATE_FORMAT = "%Y-%m-%d"
POST_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}\Z")
FINGERPRINT_LENGTH = 8


def walk_tree(root: Path) -> Iterator[Path]:
    """Yield every directory and file below ``root`` in lexical order.

    Directories are yielded before their contents. A nested directory with the
    same name as ``root`` (``public/public``) is skipped together with
    everything inside it.

    Args:
        root: Directory to walk. Not yielded itself.

    Yields:
        Absolute paths of directories and files.
    """
    yield from _walk(root, root.name)


def _walk(directory: Path, root_name: str) -> Iterator[Path]:
    for entry in sorted(directory.iterdir(), key=lambda p: p.name):
        if entry.is_dir():
            # public/public would otherwise be copied into the output root
            if entry.name == root_name:
                logger.debug("Skipping self-nested directory %s", entry)
                continue
            yield entry
            yield from _walk(entry, root_name)
        else:
            yield entry


def ensure_clean_dir(path: Path) -> None:
    """Ensure a directory exists and is empty.

    If the directory exists, removes all contents. Creates the
    directory if it doesn't exist.

    Args:
        path: Directory path to clean or create.
    """
    if path.exists():
        shutil.rmtree(path)
    path.mkdir(parents=True, exist_ok=True)


def with_suffix_html(name: str) -> str:
    """Replace the last extension segment of a filename with ``html``.

    Examples:
        >>> with_suffix_html("about.md")
        'about.html'

        >>> with_suffix_html("notes.v2.md")
        'notes.v2.html'
    """
    parts = name.split(".")
    parts[-1] = "html"
    return ".".join(parts)


def insert_fingerprint(name: str, digest: str) -> str:
    """Splice the first characters of a digest before the last extension.

    Examples:
        >>> insert_fingerprint("app.js", "a1b2c3d4e5f6")
        'app.a1b2c3d4.js'

        >>> insert_fingerprint("bundle.min.css", "0123456789")
        'bundle.min.01234567.css'
    """
    parts = name.split(".")
    parts.insert(len(parts) - 1, digest[:FINGERPRINT_LENGTH])
    return ".".join(parts)


def file_digest(path: Path) -> str:
    """Return the MD5 hex digest of a file's contents."""
    digest = hashlib.md5()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(65536), b""):
            digest.update(chunk)
    return digest.hexdigest()


def parse_post_date(value: str) -> datetime:
    """Parse a front-matter date in ``YYYY-MM-DD`` form.

    Month and day must be zero-padded: ``2024-1-5`` is rejected.

    Raises:
        ValueError: If the value does not match the format.
    """
    if not POST_DATE_RE.match(value):
        raise ValueError(f"date {value!r} does not match YYYY-MM-DD")
    return datetime.strptime(value, POST_DATE_FORMAT)


def rfc822(value: datetime) -> str:
    """Format a datetime as an RFC 822 date for RSS feeds."""
    return value.strftime("%a, %d %b %Y %H:%M:%S +0000")


def url_path(rel: Path) -> str:
    """Return a root-relative URL path (``/a/b.html``) for a relative path."""
    return "/" + rel.as_posix()


def is_markdown(path: Path) -> bool:
    """Check if a path is a Markdown file.

    Args:
        path: Path to check.

    Returns:
        True if the file has a .md extension.
    """
    return path.suffix == ".md"


def is_html(path: Path) -> bool:
    """Check if a path is an HTML page template."""
    return path.suffix == ".html"
