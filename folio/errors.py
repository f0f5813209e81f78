"""Error types for Folio.

Every failure in the build pipeline is fatal: errors propagate to the caller
of ``Builder.build`` wrapped with the path and action that failed, chained to
the original exception with ``raise ... from``.

Key classes:
- FolioError: Base class for every Folio error.
- ConfigError: Missing or invalid configuration values.
- DirectoryError: A configured directory is missing or is not a directory.
- FrontMatterError / NotSerializableError: Malformed front matter.
- RequiredFieldError: A post lacks a required front-matter field.
- InvalidFormatError: A page has an unsupported file extension.
- TemplateError: A template is missing or fails to compile.
- AssetNotFoundError: A template asked for an unknown public asset.
- BuildError: A stage failure carrying file context.
"""

from __future__ import annotations

from pathlib import Path


class FolioError(Exception):
    """Base class for all Folio errors."""


class ConfigError(FolioError):
    """Error raised for a missing or invalid configuration value.

    Attributes:
        key: Dotted config key, e.g. ``build.posts_per_page``.
    """

    def __init__(self, key: str, message: str):
        self.key = key
        super().__init__(f"{message}: {key!r}")


class DirectoryError(FolioError):
    """A configured directory does not exist or is not a directory."""


class FrontMatterError(FolioError):
    """Front matter could not be parsed."""


class NotSerializableError(FrontMatterError):
    """A front-matter value is not a plain string.

    Attributes:
        key: The offending front-matter key.
    """

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"not serializable: key {key!r}")


class RequiredFieldError(FolioError):
    """A required front-matter field was not found."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"required field not found: {field!r}")


class InvalidFormatError(FolioError):
    """A file in the pages tree has an unsupported extension."""

    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"invalid file format: {str(path)!r}")


class TemplateError(FolioError):
    """A template could not be found, compiled or rendered."""


class AssetNotFoundError(FolioError):
    """Error raised when a template looks up an asset that was not published.

    Attributes:
        asset_name: The relative path that was requested.
    """

    def __init__(self, asset_name: str):
        self.asset_name = asset_name
        super().__init__(f"asset {asset_name!r} not found in public directory")


class BuildError(FolioError):
    """Error during site build with file context.

    Attributes:
        source_path: Path to the source file (or directory) that caused the error.
        message: Human-readable error message.
        original_error: The original exception that was caught.
    """

    def __init__(
        self,
        source_path: Path,
        message: str,
        original_error: Exception | None = None,
    ):
        self.source_path = source_path
        self.message = message
        self.original_error = original_error
        super().__init__(f"{source_path}: {message}")
