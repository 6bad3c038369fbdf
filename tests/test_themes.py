from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

import pytest

from shutterpress.models import Album
from shutterpress.themes import (
    AssetPreparationError,
    RenderError,
    Theme,
    ThemeNotFoundError,
    available_themes,
    resolve_theme_path,
)
from shutterpress.website import THEME_BASE_DIR


def _write_theme(root: Path, *, template: str = "<h1>{{ album.path }}</h1>") -> Path:
    root.mkdir(parents=True, exist_ok=True)
    (root / "album.html").write_text(template, encoding="utf-8")
    (root / "theme.css").write_text("body { color: red; }\n", encoding="utf-8")
    (root / "public").mkdir()
    (root / "public" / "theme.js").write_text("console.log('hi')\n", encoding="utf-8")
    return root


def test_resolve_bundled_theme() -> None:
    path = resolve_theme_path("classic")
    assert (path / "theme.json").is_file()
    assert "classic" in available_themes()


def test_resolve_unknown_theme_raises() -> None:
    with pytest.raises(ThemeNotFoundError, match="does-not-exist"):
        resolve_theme_path("does-not-exist")


def test_resolve_installed_theme_package(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    package = tmp_path / "shutterpress_theme_mosaic"
    _write_theme(package)
    (package / "__init__.py").write_text("", encoding="utf-8")
    monkeypatch.syspath_prepend(str(tmp_path))

    try:
        assert resolve_theme_path("mosaic") == package
    finally:
        sys.modules.pop("shutterpress_theme_mosaic", None)


def test_prepare_writes_stylesheet_and_public_files(tmp_path: Path) -> None:
    theme_dir = _write_theme(tmp_path / "theme")
    custom = tmp_path / "custom.css"
    custom.write_text("h1 { color: blue; }\n", encoding="utf-8")
    output = tmp_path / "site"

    theme = Theme(theme_dir, output, stylesheet_name="theme.css", custom_styles_path=custom)
    asyncio.run(theme.prepare())

    stylesheet = (output / "public" / "theme.css").read_text(encoding="utf-8")
    assert stylesheet == "body { color: red; }\nh1 { color: blue; }\n"
    assert (output / "public" / "theme.js").exists()


def test_base_layer_prepares_core_stylesheet(tmp_path: Path) -> None:
    output = tmp_path / "site"
    asyncio.run(Theme(THEME_BASE_DIR, output, stylesheet_name="core.css").prepare())

    assert "box-sizing" in (output / "public" / "core.css").read_text(encoding="utf-8")
    assert (output / "public" / "shutterpress.js").exists()


def test_prepare_fails_for_missing_custom_styles(tmp_path: Path) -> None:
    theme_dir = _write_theme(tmp_path / "theme")
    theme = Theme(
        theme_dir,
        tmp_path / "site",
        stylesheet_name="theme.css",
        custom_styles_path=tmp_path / "missing.css",
    )
    with pytest.raises(AssetPreparationError):
        asyncio.run(theme.prepare())


def test_prepare_fails_for_malformed_manifest(tmp_path: Path) -> None:
    theme_dir = _write_theme(tmp_path / "theme")
    (theme_dir / "theme.json").write_text("{broken", encoding="utf-8")
    theme = Theme(theme_dir, tmp_path / "site", stylesheet_name="theme.css")
    with pytest.raises(AssetPreparationError, match="manifest"):
        asyncio.run(theme.prepare())


def test_manifest_overrides_template_name(tmp_path: Path) -> None:
    theme_dir = _write_theme(tmp_path / "theme")
    (theme_dir / "page.html").write_text("page {{ album.path }}", encoding="utf-8")
    (theme_dir / "theme.json").write_text(json.dumps({"name": "Custom", "template": "page.html"}), encoding="utf-8")
    theme = Theme(theme_dir, tmp_path / "site", stylesheet_name="theme.css")

    written = asyncio.run(theme.render("index.html", {"album": {"path": "index.html"}}))
    assert written.read_text(encoding="utf-8") == "page index.html"
    assert theme.manifest.name == "Custom"


@pytest.mark.parametrize(
    ("page_path", "expected"),
    [
        ("index.html", "index.html"),
        ("/", "index.html"),
        ("", "index.html"),
        ("/trip", "trip/index.html"),
        ("trip/", "trip/index.html"),
        ("europe/paris.html", "europe/paris.html"),
    ],
)
def test_page_destination(tmp_path: Path, page_path: str, expected: str) -> None:
    theme = Theme(tmp_path, tmp_path / "site", stylesheet_name="theme.css")
    assert theme.page_destination(page_path) == tmp_path / "site" / Path(expected)


def test_page_destination_rejects_parent_segments(tmp_path: Path) -> None:
    theme = Theme(tmp_path, tmp_path / "site", stylesheet_name="theme.css")
    with pytest.raises(RenderError):
        theme.page_destination("../escape.html")


def test_render_uses_base_layout_and_relative_filter(tmp_path: Path) -> None:
    template = (
        '{% extends "base.html" %}'
        "{% block content %}<p>{{ album.path }}</p>{% endblock %}"
    )
    theme_dir = _write_theme(tmp_path / "theme", template=template)
    output = tmp_path / "site"
    theme = Theme(theme_dir, output, stylesheet_name="theme.css", fallback_dirs=[THEME_BASE_DIR])

    album = Album(path="europe/paris.html", title="Paris")
    written = asyncio.run(
        theme.render(
            album.path,
            {"album": album, "breadcrumbs": [], "gallery": {"title": "Trips"}, "settings": {}, "home": album},
        )
    )

    html = written.read_text(encoding="utf-8")
    assert written == output / "europe" / "paris.html"
    assert "<p>europe/paris.html</p>" in html
    assert 'href="../public/core.css"' in html
    assert 'href="../public/theme.css"' in html


def test_render_wraps_template_errors(tmp_path: Path) -> None:
    theme_dir = _write_theme(tmp_path / "theme", template="{% if %}")
    theme = Theme(theme_dir, tmp_path / "site", stylesheet_name="theme.css")
    with pytest.raises(RenderError, match="index.html"):
        asyncio.run(theme.render("index.html", {}))


def test_render_reports_missing_template(tmp_path: Path) -> None:
    theme_dir = tmp_path / "empty"
    theme_dir.mkdir()
    theme = Theme(theme_dir, tmp_path / "site", stylesheet_name="theme.css")
    with pytest.raises(RenderError):
        asyncio.run(theme.render("index.html", {}))


def test_render_wraps_errors_raised_while_rendering(tmp_path: Path) -> None:
    theme_dir = _write_theme(tmp_path / "theme", template="{{ 100 // album.count }}")
    theme = Theme(theme_dir, tmp_path / "site", stylesheet_name="theme.css")
    with pytest.raises(RenderError, match="index.html"):
        asyncio.run(theme.render("index.html", {"album": {"path": "index.html", "count": 0}}))


def test_prepare_wraps_undecodable_custom_styles(tmp_path: Path) -> None:
    theme_dir = _write_theme(tmp_path / "theme")
    custom = tmp_path / "custom.css"
    custom.write_bytes(b"\xff\xfe\x00body {}")
    theme = Theme(theme_dir, tmp_path / "site", stylesheet_name="theme.css", custom_styles_path=custom)
    with pytest.raises(AssetPreparationError, match="Failed to prepare assets"):
        asyncio.run(theme.prepare())
