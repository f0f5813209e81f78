from datetime import datetime

import pytest

from folio.utils import (
    ensure_clean_dir,
    file_digest,
    insert_fingerprint,
    is_html,
    is_markdown,
    parse_post_date,
    rfc822,
    url_path,
    walk_tree,
    with_suffix_html,
)


def test_walk_tree_is_lexical_and_dirs_first(tmp_path):
    root = tmp_path / "public"
    (root / "b").mkdir(parents=True)
    (root / "a.txt").write_text("a", encoding="utf-8")
    (root / "b" / "c.txt").write_text("c", encoding="utf-8")
    (root / "c.txt").write_text("c", encoding="utf-8")

    rel = [p.relative_to(root).as_posix() for p in walk_tree(root)]
    assert rel == ["a.txt", "b", "b/c.txt", "c.txt"]


def test_walk_tree_skips_self_nested_directory(tmp_path):
    root = tmp_path / "public"
    (root / "public" / "deep").mkdir(parents=True)
    (root / "public" / "x.css").write_text("x", encoding="utf-8")
    (root / "public" / "deep" / "y.css").write_text("y", encoding="utf-8")
    (root / "other" / "public").mkdir(parents=True)
    (root / "ok.css").write_text("ok", encoding="utf-8")

    rel = [p.relative_to(root).as_posix() for p in walk_tree(root)]
    assert rel == ["ok.css", "other"]


def test_ensure_clean_dir(tmp_path):
    target = tmp_path / "out"
    (target / "nested").mkdir(parents=True)
    (target / "nested" / "stale.html").write_text("old", encoding="utf-8")
    ensure_clean_dir(target)
    assert target.is_dir()
    assert list(target.iterdir()) == []

    fresh = tmp_path / "fresh" / "out"
    ensure_clean_dir(fresh)
    assert fresh.is_dir()


def test_filename_helpers():
    assert with_suffix_html("about.md") == "about.html"
    assert with_suffix_html("notes.v2.md") == "notes.v2.html"
    assert insert_fingerprint("app.js", "a1b2c3d4e5f6") == "app.a1b2c3d4.js"
    assert insert_fingerprint("bundle.min.css", "0123456789") == "bundle.min.01234567.css"


def test_file_digest_is_md5(tmp_path):
    path = tmp_path / "hello.txt"
    path.write_bytes(b"hello")
    assert file_digest(path) == "5d41402abc4b2a76b9719d911017c592"


def test_dates():
    parsed = parse_post_date("2024-01-15")
    assert parsed == datetime(2024, 1, 15)
    assert rfc822(parsed) == "Mon, 15 Jan 2024 00:00:00 +0000"
    with pytest.raises(ValueError):
        parse_post_date("15/01/2024")


def test_path_predicates(tmp_path):
    assert url_path(tmp_path.joinpath("a", "b.html").relative_to(tmp_path)) == "/a/b.html"
    assert is_markdown(tmp_path / "x.md")
    assert not is_markdown(tmp_path / "x.markdown")
    assert is_html(tmp_path / "x.html")
    assert not is_html(tmp_path / "x.htm")


@pytest.mark.parametrize("value", ["2024-1-5", "2024-01-5", "24-01-05", "2024-01-05 10:00"])
def test_parse_post_date_requires_padded_form(value):
    with pytest.raises(ValueError):
        parse_post_date(value)
