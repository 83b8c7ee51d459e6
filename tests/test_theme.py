"""Tests for quill.theme — snapshot loading, rendering fallbacks, reload."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from quill._errors import TemplateLoadError
from quill.content.entry import Entry
from quill.reactive.hmr import HOT_RELOAD_PARTIAL
from quill.theme import (
    REQUIRED_TEMPLATES,
    ThemeRegistry,
    bundled_theme_path,
    fallback_html,
    load_theme,
)

BLOG_INFO = {"title": "My Blog", "description": ""}


class TestLoadTheme:
    def test_required_templates_aliased_by_stem(self, theme_dir: Path) -> None:
        snapshot = load_theme(theme_dir)
        for name in REQUIRED_TEMPLATES:
            assert name in snapshot.template_names
        assert "home.html" in snapshot.template_names

    def test_hot_reload_partial_registered(self, theme_dir: Path) -> None:
        assert HOT_RELOAD_PARTIAL in load_theme(theme_dir).template_names

    def test_alternative_suffix(self, theme_dir: Path) -> None:
        (theme_dir / "home.html").rename(theme_dir / "home.j2")
        snapshot = load_theme(theme_dir)
        assert "<h1>My Blog</h1>" in snapshot.render_home(BLOG_INFO, [])

    def test_partials_by_relative_path(self, theme_dir: Path) -> None:
        partials = theme_dir / "partials"
        partials.mkdir()
        (partials / "nav.html").write_text("<nav>NAV</nav>")
        (theme_dir / "home.html").write_text('{% include "partials/nav.html" %}')
        snapshot = load_theme(theme_dir)
        assert "<nav>NAV</nav>" in snapshot.render_home(BLOG_INFO, [])

    def test_nested_template_does_not_satisfy_required(self, theme_dir: Path) -> None:
        (theme_dir / "home.html").unlink()
        nested = theme_dir / "sub"
        nested.mkdir()
        (nested / "home.html").write_text("x")
        with pytest.raises(TemplateLoadError, match="'home'"):
            load_theme(theme_dir)

    def test_hidden_files_skipped(self, theme_dir: Path) -> None:
        (theme_dir / ".home.html.swp.html").write_text("{% broken")
        load_theme(theme_dir)

    @pytest.mark.parametrize("missing", ["home.html", "blog_entry.html", "entry_not_found.html"])
    def test_missing_required_template(self, theme_dir: Path, missing: str) -> None:
        (theme_dir / missing).unlink()
        with pytest.raises(TemplateLoadError, match=Path(missing).stem):
            load_theme(theme_dir)

    def test_missing_directory(self, tmp_path: Path) -> None:
        with pytest.raises(TemplateLoadError, match="does not exist"):
            load_theme(tmp_path / "nope")

    def test_syntax_error(self, theme_dir: Path) -> None:
        (theme_dir / "home.html").write_text("{% if %}")
        with pytest.raises(TemplateLoadError, match="compile"):
            load_theme(theme_dir)

    def test_bundled_theme_loads(self) -> None:
        snapshot = load_theme(bundled_theme_path())
        html = snapshot.render_home(BLOG_INFO, [])
        assert "My Blog" in html
        assert "data-quill-reload" in html


class TestSnapshot:
    def test_sources_read_only(self, theme_dir: Path) -> None:
        snapshot = load_theme(theme_dir)
        with pytest.raises(TypeError):
            snapshot.sources["home"] = "x"  # type: ignore[index]

    def test_snapshot_ignores_later_disk_changes(self, theme_dir: Path) -> None:
        snapshot = load_theme(theme_dir)
        (theme_dir / "home.html").write_text("changed")
        assert "<h1>My Blog</h1>" in snapshot.render_home(BLOG_INFO, [])

    def test_render_entry(self, theme_dir: Path, make_entry: Callable[..., Entry]) -> None:
        snapshot = load_theme(theme_dir)
        html = snapshot.render_entry(BLOG_INFO, make_entry("a.md", html="<h1>hi</h1>"))
        assert html == "<article><h1>hi</h1></article>"

    def test_render_not_found_escapes_name(self, theme_dir: Path) -> None:
        html = load_theme(theme_dir).render_not_found(BLOG_INFO, "<b>x</b>.md")
        assert "&lt;b&gt;" in html

    def test_render_home_lists_entries(self, theme_dir: Path, make_entry: Callable[..., Entry]) -> None:
        html = load_theme(theme_dir).render_home(BLOG_INFO, [make_entry("a.md"), make_entry("b.md")])
        assert "<li>a.md</li><li>b.md</li>" in html

    def test_render_error_falls_back(self, theme_dir: Path, caplog: pytest.LogCaptureFixture) -> None:
        (theme_dir / "home.html").write_text("{{ blog_info.missing.deeper }}")
        html = load_theme(theme_dir).render_home(BLOG_INFO, [])
        assert html == fallback_html()
        assert "UndefinedError" not in html
        assert "home" in caplog.text

    def test_fallback_escapes_title(self) -> None:
        assert "<script>" not in fallback_html("<script>")


class TestThemeRegistry:
    def test_initial_load_failure_raises(self, tmp_path: Path) -> None:
        with pytest.raises(TemplateLoadError):
            ThemeRegistry(tmp_path / "missing")

    def test_reload_swaps_snapshot(self, theme_dir: Path) -> None:
        registry = ThemeRegistry(theme_dir)
        old = registry.current()
        (theme_dir / "home.html").write_text("v2")
        new = registry.reload()
        assert registry.current() is new
        assert new is not old
        assert old.render_home(BLOG_INFO, []).startswith("<h1>")
        assert new.render_home(BLOG_INFO, []) == "v2"

    def test_failed_reload_keeps_previous(self, theme_dir: Path) -> None:
        registry = ThemeRegistry(theme_dir)
        old = registry.current()
        (theme_dir / "blog_entry.html").unlink()
        with pytest.raises(TemplateLoadError):
            registry.reload()
        assert registry.current() is old
