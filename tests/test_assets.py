import pytest

from folio.asset_resolver import AssetMap, key_filter
from folio.assets import AssetPublisher
from folio.errors import AssetNotFoundError
from folio.utils import file_digest


def make_public(tmp_path):
    public = tmp_path / "public"
    (public / "css").mkdir(parents=True)
    (public / "js").mkdir()
    (public / "empty").mkdir()
    (public / "css" / "site.css").write_text("body {  color: red;  }\n", encoding="utf-8")
    (public / "js" / "app.js").write_text("var  x = 1;\n", encoding="utf-8")
    (public / "robots.txt").write_text("User-agent: *\n", encoding="utf-8")
    return public


def test_publisher_hashes_listed_extensions(tmp_path):
    public = make_public(tmp_path)
    output = tmp_path / "out"
    output.mkdir()

    assets = AssetPublisher(public, output, hash_exts=(".css",)).run()

    digest = file_digest(public / "css" / "site.css")[:8]
    assert assets["css/site.css"] == f"/css/site.{digest}.css"
    assert assets["js/app.js"] == "/js/app.js"
    assert assets["robots.txt"] == "/robots.txt"
    assert (output / "css" / f"site.{digest}.css").exists()
    assert not (output / "css" / "site.css").exists()
    assert (output / "empty").is_dir()


def test_published_bytes_are_identical(tmp_path):
    public = make_public(tmp_path)
    output = tmp_path / "out"
    output.mkdir()

    assets = AssetPublisher(public, output, hash_exts=(".css", ".js")).run()

    for rel, published in assets.items():
        source = (public / rel).read_bytes()
        assert (output / published.lstrip("/")).read_bytes() == source


def test_publisher_counts_files_and_skips_nested_public(tmp_path):
    public = make_public(tmp_path)
    (public / "public").mkdir()
    (public / "public" / "hidden.txt").write_text("no", encoding="utf-8")
    output = tmp_path / "out"
    output.mkdir()
    seen = []

    assets = AssetPublisher(public, output, on_file=seen.append).run()

    assert len(seen) == 3
    assert "public/hidden.txt" not in assets
    assert not (output / "public").exists()


def test_asset_map_lookup():
    assets = AssetMap({"css/site.css": "/css/site.abcd1234.css"})
    assert assets["css/site.css"] == "/css/site.abcd1234.css"
    assert assets.resolve("/css/site.css") == "/css/site.abcd1234.css"
    assert "css/site.css" in assets
    assert "missing.css" not in assets
    assert assets.get("missing.css") is None
    assert len(assets) == 1
    with pytest.raises(AssetNotFoundError) as exc:
        assets["missing.css"]
    assert exc.value.asset_name == "missing.css"


def test_key_filter():
    assets = AssetMap({"app.js": "/app.12345678.js"})
    assert key_filter(assets, "app.js") == "/app.12345678.js"
    assert key_filter({"a.css": "/a.css"}, "a.css") == "/a.css"
    with pytest.raises(AssetNotFoundError):
        key_filter({}, "nope.css")
