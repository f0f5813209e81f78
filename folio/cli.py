"""Command-line interface for Folio.

This module defines the CLI commands using Click framework.
It provides commands for creating new projects, building sites, and running the development server.

Commands:
- new: Scaffold a new Folio project.
- build: Build the site into the output directory.
- serve: Build, serve and rebuild on change.
- version: Print the installed version.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

import click

from . import __version__
from .config import CONFIG_FILENAME
from .errors import BuildError, FolioError

# Path to the bundled example project
_SKELETON_DIR = Path(__file__).parent / "skeleton"

LOG_FORMAT = "[%(name)s] %(message)s"

config_option = click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=CONFIG_FILENAME,
    show_default=True,
    help="Path to the site configuration file",
)


@click.group()
@click.version_option(version=__version__, prog_name="folio")
@click.option("--verbose", "-v", is_flag=True, help="Show debug output")
def cli(verbose: bool):
    """Folio static site generator."""
    _configure_logging(verbose)


@cli.command()
@click.argument("name")
def new(name: str):
    """Scaffold a new Folio project."""
    target = Path(name).resolve()
    if target.exists() and any(target.iterdir()):
        raise click.ClickException(
            f"Refusing to initialize into non-empty directory: {target}"
        )
    _scaffold(target)
    click.echo(f"New Folio site created at {target}")


@cli.command()
@config_option
def build(config_path: Path):
    """Build the site into the output directory."""
    from .build import Builder
    from .config import load_config

    try:
        result = Builder(load_config(config_path)).build()
    except FolioError as exc:
        _report_failure(exc, config_path.resolve().parent)
        raise SystemExit(1) from None
    click.echo(
        f"Built {result.files_processed} files ({len(result.posts)} posts) into {result.output_dir}"
    )


@cli.command()
@click.option("--port", type=int, default=3000, show_default=True, help="Port to serve on")
@config_option
def serve(port: int, config_path: Path):
    """Build the site, serve it, and rebuild on change."""
    from .config import load_config
    from .server import DevServer

    try:
        server = DevServer(load_config(config_path), port=port)
        server.start()
    except FolioError as exc:
        _report_failure(exc, config_path.resolve().parent)
        raise SystemExit(1) from None


@cli.command()
def version():
    """Print the Folio version."""
    click.echo(f"folio {__version__}")


def main():
    """Entry point for the CLI application."""
    cli()


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("folio").setLevel(level)


def _report_failure(exc: FolioError, project_root: Path) -> None:
    """Print a user-friendly summary of a fatal error."""
    click.echo(click.style("Build failed:", fg="red", bold=True), err=True)
    if isinstance(exc, BuildError):
        try:
            shown = exc.source_path.relative_to(project_root)
        except ValueError:
            shown = exc.source_path
        click.echo(click.style(f"  File: {shown}", fg="yellow"), err=True)
        click.echo(click.style(f"  Error: {exc.message}", fg="white"), err=True)
    else:
        click.echo(click.style(f"  Error: {exc}", fg="white"), err=True)


def _scaffold(root: Path) -> None:
    """Copy the bundled example project into ``root``.

    Args:
        root: Root directory for the new project.
    """
    for src_path in _SKELETON_DIR.rglob("*"):
        if src_path.is_dir():
            continue
        rel_path = src_path.relative_to(_SKELETON_DIR)
        dest_path = root / rel_path
        dest_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(src_path, dest_path)
