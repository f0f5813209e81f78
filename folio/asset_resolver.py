"""Asset map for Folio.

The asset publisher records where every public file ended up in the output
tree. Templates look those locations up to link fingerprinted files, either by
subscription (``assets["css/site.css"]``) or with the ``key`` filter
(``assets|key("css/site.css")``).

Key classes:
- AssetMap: Read-only mapping from source-relative path to published URL path.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping

from .errors import AssetNotFoundError


class AssetMap(Mapping[str, str]):
    """Read-only mapping of original relative path to published path.

    Keys use forward slashes relative to the public directory
    (``css/site.css``); values always start with ``/``
    (``/css/site.1a2b3c4d.css``).
    """

    def __init__(self, mapping: Mapping[str, str] | None = None):
        self._mapping = dict(mapping or {})

    def __getitem__(self, key: str) -> str:
        try:
            return self._mapping[key]
        except KeyError:
            raise AssetNotFoundError(key) from None

    def __iter__(self) -> Iterator[str]:
        return iter(self._mapping)

    def __len__(self) -> int:
        return len(self._mapping)

    def __contains__(self, key: object) -> bool:
        return key in self._mapping

    def get(self, key: str, default=None):
        return self._mapping.get(key, default)

    def resolve(self, name: str) -> str:
        """Return the published path for ``name``.

        A leading slash on ``name`` is ignored so that ``/css/site.css`` and
        ``css/site.css`` resolve alike.

        Raises:
            AssetNotFoundError: If no public file was published under ``name``.
        """
        return self[name.lstrip("/")]

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"AssetMap({len(self._mapping)} assets)"


def key_filter(assets: Mapping[str, str], name: str) -> str:
    """Jinja filter: ``{{ assets|key("css/site.css") }}``."""
    if isinstance(assets, AssetMap):
        return assets.resolve(name)
    try:
        return assets[name]
    except KeyError:
        raise AssetNotFoundError(name) from None
