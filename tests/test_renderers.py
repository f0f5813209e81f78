import pytest

from folio.asset_resolver import AssetMap
from folio.errors import BuildError, ConfigError
from folio.renderers import (
    MarkdownRenderer,
    restore_template_expressions,
    shield_template_expressions,
)
from folio.templates import TemplateEngine


def make_renderer(tmp_path, **kwargs):
    templates = tmp_path / "templates"
    templates.mkdir(exist_ok=True)
    return MarkdownRenderer(TemplateEngine(templates), **kwargs)


def test_to_html_basic_markdown(tmp_path):
    renderer = make_renderer(tmp_path)
    html = renderer.to_html("# Title\n\nSome *emphasis* and ~~gone~~.\n")
    assert "<h1>Title</h1>" in html
    assert "<em>emphasis</em>" in html
    assert "<del>gone</del>" in html


def test_raw_html_passes_through(tmp_path):
    renderer = make_renderer(tmp_path)
    html = renderer.to_html('<div class="note">raw</div>\n\ntext\n')
    assert '<div class="note">raw</div>' in html


def test_code_blocks_are_highlighted(tmp_path):
    renderer = make_renderer(tmp_path, highlight_theme="monokai")
    html = renderer.to_html("```python\ndef f():\n    return 1\n```\n")
    assert 'class="highlight"' in html
    assert "style=" in html


def test_code_blocks_with_classes_and_line_numbers(tmp_path):
    renderer = make_renderer(tmp_path, with_classes=True, line_numbers=True)
    html = renderer.to_html("```python\nx = 1\n```\n")
    assert 'class="highlight' in html
    assert "linenos" in html


def test_unknown_language_is_escaped(tmp_path):
    renderer = make_renderer(tmp_path)
    html = renderer.to_html("```nosuchlang\n<b>&</b>\n```\n")
    assert '<code class="language-nosuchlang">' in html
    assert "&lt;b&gt;&amp;&lt;/b&gt;" in html


def test_unknown_theme_is_config_error(tmp_path):
    with pytest.raises(ConfigError) as exc:
        make_renderer(tmp_path, highlight_theme="no-such-theme")
    assert exc.value.key == "build.highlight_theme"


def test_shield_and_restore_template_expressions():
    text = 'a {{ assets|key("x.css") }} b {% if x %}c{% endif %} {# note #}'
    shielded, stash = shield_template_expressions(text)
    assert "{{" not in shielded
    assert "{%" not in shielded
    assert len(stash) == 4
    assert restore_template_expressions(shielded, stash) == text


def test_render_resolves_assets_in_markdown(tmp_path):
    renderer = make_renderer(tmp_path)
    source = tmp_path / "post.md"
    source.write_text(
        '---\ntitle: Hi\n---\n[style]({{ assets|key("css/site.css") }})\n',
        encoding="utf-8",
    )
    assets = AssetMap({"css/site.css": "/css/site.0a1b2c3d.css"})

    rendered = renderer.render(source, assets)

    assert rendered.front_matter.title == "Hi"
    assert 'href="/css/site.0a1b2c3d.css"' in rendered.html


def test_render_subscript_lookup(tmp_path):
    renderer = make_renderer(tmp_path)
    source = tmp_path / "page.md"
    source.write_text('Logo: {{ assets["img/logo.png"] }}\n', encoding="utf-8")
    rendered = renderer.render(source, AssetMap({"img/logo.png": "/img/logo.png"}))
    assert "Logo: /img/logo.png" in rendered.html


def test_render_unknown_asset_fails(tmp_path):
    renderer = make_renderer(tmp_path)
    source = tmp_path / "page.md"
    source.write_text('{{ assets|key("missing.css") }}\n', encoding="utf-8")
    with pytest.raises(BuildError) as exc:
        renderer.render(source, AssetMap())
    assert exc.value.source_path == source
    assert "missing.css" in exc.value.message


def test_render_bad_front_matter(tmp_path):
    renderer = make_renderer(tmp_path)
    source = tmp_path / "page.md"
    source.write_text("---\ncount: 3\n---\nbody\n", encoding="utf-8")
    with pytest.raises(BuildError) as exc:
        renderer.render(source, AssetMap())
    assert "could not process front matter" in exc.value.message
    assert "not serializable" in exc.value.message


def test_render_missing_file(tmp_path):
    renderer = make_renderer(tmp_path)
    with pytest.raises(BuildError, match="could not read file"):
        renderer.render(tmp_path / "nope.md", AssetMap())
