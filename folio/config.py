"""Configuration loading for Folio.

Site configuration lives in ``config.toml`` at the project root. It is read
once per process, validated, and turned into an immutable ``Config`` that the
builder and dev server share.

Key functions:
- load_config: Parse and validate a ``config.toml`` file.
- config_from_mapping: Validate an already-parsed mapping.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .errors import ConfigError

CONFIG_FILENAME = "config.toml"

# Dotted keys that must be non-empty strings.
_REQUIRED_STRINGS = (
    "site.title",
    "site.description",
    "site.url",
    "directories.templates",
    "directories.pages",
    "directories.public",
    "directories.output",
    "defaults.page_template",
)


@dataclass(frozen=True)
class Config:
    """Build parameters for one site.

    Directory attributes are absolute paths, resolved against the directory
    holding the config file.
    """

    site_title: str
    site_description: str
    site_url: str
    templates_dir: Path
    pages_dir: Path
    public_dir: Path
    output_dir: Path
    default_page_template: str
    posts_dir: Path | None = None
    default_post_template: str = ""
    posts_index: str = ""
    posts_per_page: int = 0
    highlight_theme: str = "default"
    highlight_line_numbers: bool = False
    highlight_with_classes: bool = False
    rss: bool = False
    hash_exts: tuple[str, ...] = ()

    @property
    def source_dirs(self) -> list[Path]:
        """Directories that must exist before a build, in check order."""
        dirs = [self.pages_dir, self.public_dir, self.templates_dir]
        if self.posts_dir is not None:
            dirs.insert(0, self.posts_dir)
        return dirs

    @property
    def posts_output_name(self) -> str:
        """Name of the output subdirectory that receives rendered posts."""
        return self.posts_dir.name if self.posts_dir is not None else ""


def load_config(path: Path) -> Config:
    """Load site configuration from a TOML file.

    Args:
        path: Path to ``config.toml``.

    Returns:
        Validated Config.

    Raises:
        ConfigError: If the file cannot be read or a value is missing/invalid.
    """
    try:
        with open(path, "rb") as f:
            raw = tomllib.load(f)
    except FileNotFoundError as exc:
        raise ConfigError(str(path), "config file not found") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(str(path), f"could not decode ({exc})") from exc
    return config_from_mapping(raw, path.resolve().parent)


def config_from_mapping(raw: dict[str, Any], root: Path) -> Config:
    """Validate a parsed config document and build a Config.

    Args:
        raw: Parsed TOML document.
        root: Directory that relative paths are resolved against.

    Returns:
        Validated Config.
    """
    for key in _REQUIRED_STRINGS:
        value = _lookup(raw, key)
        if not isinstance(value, str) or not value:
            raise ConfigError(key, "required field not found in config")

    posts = _optional_str(raw, "directories.posts")
    post_template = _optional_str(raw, "defaults.post_template")
    posts_index = _optional_str(raw, "build.posts_index")
    posts_per_page = _lookup(raw, "build.posts_per_page", 0)

    if posts:
        if not post_template:
            raise ConfigError("defaults.post_template", "required field not found in config")
        if not posts_index:
            raise ConfigError("build.posts_index", "required field not found in config")
        if isinstance(posts_per_page, bool) or not isinstance(posts_per_page, int) or posts_per_page <= 0:
            raise ConfigError("build.posts_per_page", "int value must be greater than 0")
    else:
        post_template, posts_index, posts_per_page = "", "", 0

    hash_exts = _lookup(raw, "build.hash", [])
    if not isinstance(hash_exts, list) or not all(isinstance(e, str) for e in hash_exts):
        raise ConfigError("build.hash", "expected a list of extensions")

    def resolve(key: str) -> Path:
        return (root / _lookup(raw, key)).resolve()

    return Config(
        site_title=_lookup(raw, "site.title"),
        site_description=_lookup(raw, "site.description"),
        site_url=_lookup(raw, "site.url").rstrip("/"),
        templates_dir=resolve("directories.templates"),
        pages_dir=resolve("directories.pages"),
        public_dir=resolve("directories.public"),
        output_dir=resolve("directories.output"),
        default_page_template=_lookup(raw, "defaults.page_template"),
        posts_dir=resolve("directories.posts") if posts else None,
        default_post_template=post_template,
        posts_index=posts_index,
        posts_per_page=posts_per_page,
        highlight_theme=_optional_str(raw, "build.highlight_theme") or "default",
        highlight_line_numbers=_optional_bool(raw, "build.highlight_line_numbers"),
        highlight_with_classes=_optional_bool(raw, "build.highlight_with_classes"),
        rss=_optional_bool(raw, "build.rss"),
        hash_exts=tuple(normalize_ext(e) for e in hash_exts),
    )


def normalize_ext(ext: str) -> str:
    """Return an extension with exactly one leading dot (``css`` -> ``.css``)."""
    return "." + ext.lstrip(".")


def _lookup(raw: dict[str, Any], key: str, default: Any = None) -> Any:
    node: Any = raw
    for part in key.split("."):
        if not isinstance(node, dict) or part not in node:
            return default
        node = node[part]
    return node


def _optional_str(raw: dict[str, Any], key: str) -> str:
    value = _lookup(raw, key, "")
    if not isinstance(value, str):
        raise ConfigError(key, "expected a string")
    return value


def _optional_bool(raw: dict[str, Any], key: str) -> bool:
    value = _lookup(raw, key, False)
    if not isinstance(value, bool):
        raise ConfigError(key, "expected true or false")
    return value
