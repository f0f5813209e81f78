"""Folio static site generator.

This package builds a deployable site from Markdown posts and pages, Jinja2
page templates and public assets, driven by a ``config.toml`` file.

The main entry point is the CLI module, which provides commands for scaffolding
new projects, building sites, and running the development server.

Build stages, in order:
- Asset publishing: copy public files, fingerprinting the configured extensions.
- Post collection: render, validate and sort Markdown posts.
- Page walking: render HTML and Markdown pages, paginating the posts index.
- RSS emission: write a feed for the newest posts.
"""

__all__ = ["__version__"]
__version__ = "0.3.0"
