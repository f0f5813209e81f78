from pathlib import Path

import pytest

from folio.build import BuildContext, BuildError, Builder, build_site
from folio.config import load_config
from folio.errors import DirectoryError, RequiredFieldError
from folio.utils import file_digest

CONFIG = """
[site]
title = "Test"
description = "A test site"
url = "https://example.com"

[directories]
templates = "templates"
pages = "pages"
posts = "posts"
public = "public"
output = "build"

[defaults]
page_template = "page.html"
post_template = "post.html"

[build]
posts_index = "index.html"
posts_per_page = 2
rss = true
hash = [".css"]
"""


def create_project(tmp_path: Path) -> Path:
    project = tmp_path
    for name in ("templates", "pages", "posts", "public/css"):
        (project / name).mkdir(parents=True)
    (project / "config.toml").write_text(CONFIG, encoding="utf-8")
    (project / "templates" / "base.html").write_text(
        '<link rel="stylesheet" href="{{ assets|key("css/site.css") }}">'
        "{% block content %}{% endblock %}",
        encoding="utf-8",
    )
    (project / "templates" / "page.html").write_text(
        '{% extends "base.html" %}{% block content %}<h1>{{ title }}</h1>{{ content }}{% endblock %}',
        encoding="utf-8",
    )
    (project / "templates" / "post.html").write_text(
        '{% extends "base.html" %}{% block content %}<h1>{{ title }}</h1>{{ content }}{% endblock %}',
        encoding="utf-8",
    )
    (project / "pages" / "index.html").write_text(
        "{% for post in posts %}<a href=\"{{ post.path }}\">{{ post.title }}</a>{% endfor %}"
        "<nav>{{ prev }}|{{ next }}</nav>",
        encoding="utf-8",
    )
    (project / "pages" / "about.md").write_text(
        '---\ntitle: About\n---\nStyles live at {{ assets|key("css/site.css") }}.\n',
        encoding="utf-8",
    )
    (project / "public" / "css" / "site.css").write_text("body { color: red; }\n", encoding="utf-8")
    (project / "public" / "robots.txt").write_text("User-agent: *\n", encoding="utf-8")
    for name, date in (("first", "2024-01-01"), ("second", "2024-02-01"), ("third", "2024-03-01")):
        (project / "posts" / f"{name}.md").write_text(
            f"---\ntitle: {name.title()}\ndate: {date}\n---\nThe {name} post.\n",
            encoding="utf-8",
        )
    return project


def snapshot(root: Path) -> dict[str, bytes]:
    return {
        p.relative_to(root).as_posix(): p.read_bytes()
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }


def test_build_site_end_to_end(tmp_path):
    project = create_project(tmp_path)

    result = build_site(project)

    out = project / "build"
    assert result.output_dir == out.resolve()
    assert [p.title for p in result.posts] == ["Third", "Second", "First"]
    digest = file_digest(project / "public" / "css" / "site.css")[:8]
    hashed = f"/css/site.{digest}.css"
    assert result.assets["css/site.css"] == hashed
    assert (out / "css" / f"site.{digest}.css").read_bytes() == (
        project / "public" / "css" / "site.css"
    ).read_bytes()
    assert (out / "robots.txt").exists()

    index = (out / "index.html").read_text(encoding="utf-8")
    assert '<a href="/posts/third.html">Third</a>' in index
    assert "<nav>|/page2</nav>" in index
    page2 = (out / "page2" / "index.html").read_text(encoding="utf-8")
    assert '<a href="/posts/first.html">First</a>' in page2
    assert "<nav>/index.html|</nav>" in page2

    about = (out / "about.html").read_text(encoding="utf-8")
    assert f"Styles live at {hashed}." in about
    assert f'href="{hashed}"' in about

    post = (out / "posts" / "second.html").read_text(encoding="utf-8")
    assert "<h1>Second</h1>" in post
    assert "<p>The second post.</p>" in post

    rss = (out / "rss.xml").read_text(encoding="utf-8")
    assert rss.count("<item>") == 2
    assert "<link>https://example.com/posts/third.html</link>" in rss
    assert result.feed_path == out.resolve() / "rss.xml"


def test_files_processed_counts_every_source_file(tmp_path):
    project = create_project(tmp_path)
    result = build_site(project)
    # 2 public + 3 posts + 2 pages + rss
    assert result.files_processed == 8


def test_build_is_idempotent(tmp_path):
    project = create_project(tmp_path)
    builder = Builder(load_config(project / "config.toml"))

    builder.build()
    first = snapshot(project / "build")
    second_result = builder.build()
    second = snapshot(project / "build")

    assert first == second
    assert second_result.files_processed == 8


def test_stale_output_is_removed(tmp_path):
    project = create_project(tmp_path)
    (project / "build").mkdir()
    (project / "build" / "stale.html").write_text("old", encoding="utf-8")
    build_site(project)
    assert not (project / "build" / "stale.html").exists()


def test_missing_date_fails_build(tmp_path):
    project = create_project(tmp_path)
    (project / "posts" / "broken.md").write_text("---\ntitle: Broken\n---\nNo date.\n", encoding="utf-8")

    with pytest.raises(BuildError) as exc:
        build_site(project)

    assert exc.value.source_path.name == "broken.md"
    assert isinstance(exc.value.original_error, RequiredFieldError)
    assert "required field not found: 'date'" in str(exc.value)


def test_missing_source_directory(tmp_path):
    project = create_project(tmp_path)
    (project / "templates" / "base.html").unlink()
    (project / "templates" / "page.html").unlink()
    (project / "templates" / "post.html").unlink()
    (project / "templates").rmdir()

    with pytest.raises(DirectoryError, match="templates"):
        build_site(project)


def test_build_without_posts_dir(tmp_path):
    project = create_project(tmp_path)
    config = (project / "config.toml").read_text(encoding="utf-8")
    config = config.replace('posts = "posts"\n', "")
    (project / "config.toml").write_text(config, encoding="utf-8")

    result = build_site(project)

    out = project / "build"
    assert result.posts == []
    assert not (out / "posts").exists()
    assert not (out / "rss.xml").exists()
    assert (out / "index.html").exists()


def test_output_dir_override(tmp_path):
    project = create_project(tmp_path)
    staging = tmp_path / "staging"
    result = build_site(project, output_dir=staging)
    assert result.output_dir == staging
    assert (staging / "index.html").exists()
    assert not (project / "build").exists()


def test_build_context_counter():
    ctx = BuildContext(output_dir=Path("out"))
    ctx.count(Path("a"))
    ctx.count(Path("b"))
    assert ctx.files_processed == 2
    assert ctx.elapsed >= 0


def test_build_logs_progress(tmp_path, caplog):
    project = create_project(tmp_path)
    with caplog.at_level("INFO", logger="folio.builder"):
        build_site(project)
    assert "Starting build..." in caplog.text
    assert "==> Processing" in caplog.text
    assert "Processed 8 files in" in caplog.text


def test_non_utf8_post_fails_build(tmp_path):
    project = create_project(tmp_path)
    (project / "posts" / "latin1.md").write_bytes(b"---\ntitle: Caf\ndate: 2024-04-01\n---\ncaf\xe9\n")

    with pytest.raises(BuildError) as exc:
        build_site(project)

    assert exc.value.source_path.name == "latin1.md"
    assert "could not read file" in exc.value.message


def test_build_context_logs_each_file(caplog):
    ctx = BuildContext(output_dir=Path("out"))
    with caplog.at_level("DEBUG", logger="folio.builder"):
        ctx.count(Path("pages/about.md"))
    assert "File 1: pages/about.md" in caplog.text
