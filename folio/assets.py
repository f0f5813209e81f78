"""Public asset publishing for Folio.

This module copies the public directory into the output tree. Files whose
extension is listed in the ``build.hash`` config are renamed with a content
fingerprint (``app.js`` -> ``app.a1b2c3d4.js``) so they can be cached forever.
Bytes are copied unchanged.

Key components:
- AssetPublisher: Walks the public tree and returns the resulting AssetMap.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Callable
from pathlib import Path

from .asset_resolver import AssetMap
from .errors import BuildError
from .utils import file_digest, insert_fingerprint, url_path, walk_tree


class AssetPublisher:
    """Copies public assets into the output directory.

    Attributes:
        public_dir: Directory containing source assets.
        output_dir: Directory where assets are published (mirrored at its root).
        hash_exts: Extensions (with leading dot) that get a fingerprint.
    """

    def __init__(
        self,
        public_dir: Path,
        output_dir: Path,
        hash_exts: tuple[str, ...] = (),
        on_file: Callable[[Path], None] | None = None,
        logger: logging.Logger | None = None,
    ):
        """Initialize the publisher.

        Args:
            public_dir: Directory holding the public assets.
            output_dir: Output root; assets land directly beneath it.
            hash_exts: Extensions to fingerprint, e.g. ``(".css", ".js")``.
            on_file: Optional callback invoked once per processed file.
            logger: Logger for progress messages.
        """
        self.public_dir = public_dir
        self.output_dir = output_dir
        self.hash_exts = hash_exts
        self._on_file = on_file
        self._log = logger or logging.getLogger("folio.builder")

    def run(self) -> AssetMap:
        """Publish every public file.

        Returns:
            AssetMap of relative source path to published URL path.

        Raises:
            BuildError: If a file cannot be hashed or copied.
        """
        published: dict[str, str] = {}
        for path in walk_tree(self.public_dir):
            rel = path.relative_to(self.public_dir)
            if path.is_dir():
                self._mkdir(self.output_dir / rel, path)
                continue
            if self._on_file:
                self._on_file(path)
            self._log.info("==> Processing %r", str(path))
            published[rel.as_posix()] = self._publish(path, rel)
        return AssetMap(published)

    def published_name(self, path: Path) -> str:
        """Return the output filename for ``path``, fingerprinted if its extension is listed."""
        if path.suffix and path.suffix in self.hash_exts:
            try:
                digest = file_digest(path)
            except OSError as exc:
                raise BuildError(path, f"could not hash file: {exc}", exc) from exc
            return insert_fingerprint(path.name, digest)
        return path.name

    def _publish(self, path: Path, rel: Path) -> str:
        out_rel = rel.with_name(self.published_name(path))
        dest = self.output_dir / out_rel
        try:
            shutil.copyfile(path, dest)
        except OSError as exc:
            raise BuildError(path, f"could not write file {str(dest)!r}: {exc}", exc) from exc
        return url_path(out_rel)

    @staticmethod
    def _mkdir(target: Path, source: Path) -> None:
        try:
            target.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise BuildError(source, f"could not create directory {str(target)!r}: {exc}", exc) from exc
