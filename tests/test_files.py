"""Tests for quill.files — lexical path cleaning and MIME guessing."""

from __future__ import annotations

from pathlib import Path

import pytest

from quill.files import FileServer, clean_path, guess_mime


class TestCleanPath:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("img/cat.png", "img/cat.png"),
            ("/img/cat.png", "img/cat.png"),
            ("../../etc/passwd", "etc/passwd"),
            ("img/../../secret.txt", "secret.txt"),
            ("a/./b//c.txt", "a/b/c.txt"),
            ("..\\..\\windows.ini", "windows.ini"),
            ("//double.txt", "double.txt"),
            ("", ""),
            ("..", ""),
        ],
    )
    def test_clean(self, raw: str, expected: str) -> None:
        assert clean_path(raw) == expected


class TestGuessMime:
    def test_known_types(self) -> None:
        assert guess_mime(Path("a.css")) == "text/css"
        assert guess_mime(Path("a.png")) == "image/png"

    def test_unknown_falls_back_to_text(self) -> None:
        assert guess_mime(Path("README.zzzunknown")) == "text/plain"


class TestFileServer:
    def test_serve_file(self, tmp_path: Path) -> None:
        (tmp_path / "style.css").write_text("body {}")
        served = FileServer(tmp_path).serve("style.css")
        assert served is not None
        assert served.data == b"body {}"
        assert served.mime_type == "text/css"

    def test_traversal_stays_inside(self, tmp_path: Path) -> None:
        base = tmp_path / "files"
        base.mkdir()
        (tmp_path / "secret.txt").write_text("s3cret")
        server = FileServer(base)
        assert server.resolve("../secret.txt") == base / "secret.txt"
        assert server.serve("../secret.txt") is None

    def test_missing_file(self, tmp_path: Path) -> None:
        assert FileServer(tmp_path).serve("nope.txt") is None

    def test_directory_is_not_served(self, tmp_path: Path) -> None:
        (tmp_path / "sub").mkdir()
        assert FileServer(tmp_path).serve("sub") is None
        assert FileServer(tmp_path).serve("") is None
