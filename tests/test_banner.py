"""Tests for quill.banner — startup status output."""

from __future__ import annotations

from pathlib import Path

import pytest

from quill.banner import format_banner, print_banner
from quill.config import QuillConfig


class TestBanner:
    def test_contents(self, tmp_path: Path) -> None:
        config = QuillConfig(root=tmp_path, port=4321)
        text = format_banner(config, 3, load_ms=12.0)
        assert "Quill" in text
        assert "3 entries loaded" in text
        assert str(config.content_path) in text
        assert "/events" in text
        assert "http://127.0.0.1:4321" in text

    def test_singular_entry(self, tmp_path: Path) -> None:
        assert "1 entry loaded" in format_banner(QuillConfig(root=tmp_path), 1)

    def test_style_line_only_when_pinned(self, tmp_path: Path) -> None:
        assert "style:" not in format_banner(QuillConfig(root=tmp_path), 0)
        config = QuillConfig(root=tmp_path, style_path=Path("site.css"))
        assert "site.css" in format_banner(config, 0)

    def test_warnings(self, tmp_path: Path) -> None:
        text = format_banner(QuillConfig(root=tmp_path), 0, warnings=["careful"])
        assert "careful" in text

    def test_prints_to_stderr(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        print_banner(QuillConfig(root=tmp_path), 2)
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "2 entries loaded" in captured.err
