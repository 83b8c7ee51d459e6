"""Shared test fixtures for quill."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

import pytest

from quill.content.entry import Entry, EntryMetadata


def entry_source(
    *,
    title: str = "Hello",
    author: str = "A",
    publish_date: str = "2024-01-01T00:00:00Z",
    body: str = "# hi\n",
) -> str:
    """Markdown source with a front-matter block."""
    return (
        "---\n"
        f"title: {title}\n"
        f"author: {author}\n"
        f"publish_date: {publish_date}\n"
        "---\n"
        f"{body}"
    )


MINIMAL_THEME = {
    "home.html": (
        "<h1>{{ blog_info.title }}</h1>"
        "{% for entry in entries %}<li>{{ entry.name }}</li>{% endfor %}"
    ),
    "blog_entry.html": "<article>{{ blog_entry.html | safe }}</article>",
    "entry_not_found.html": "<p>missing {{ entry_not_found }}</p>",
}


@pytest.fixture
def blog_root(tmp_path: Path) -> Path:
    """A blog root with empty ``blog/`` and ``files/`` directories."""
    (tmp_path / "blog").mkdir()
    (tmp_path / "files").mkdir()
    return tmp_path


@pytest.fixture
def write_entry(blog_root: Path) -> Callable[..., Path]:
    """Factory writing an entry file into ``blog/``; returns its path."""

    def _write(name: str = "hello.md", **fields: str) -> Path:
        path = blog_root / "blog" / name
        path.write_text(entry_source(**fields), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def theme_dir(tmp_path: Path) -> Path:
    """A minimal theme with the three required templates."""
    theme = tmp_path / "theme"
    theme.mkdir()
    for name, source in MINIMAL_THEME.items():
        (theme / name).write_text(source, encoding="utf-8")
    return theme


@pytest.fixture
def make_entry() -> Callable[..., Entry]:
    """Factory building an Entry directly, without touching the disk."""

    def _make(
        name: str,
        published: datetime | str = "2024-01-01",
        *,
        title: str | None = None,
        html: str = "<p>x</p>",
    ) -> Entry:
        if isinstance(published, str):
            published = datetime.fromisoformat(published)
        if published.tzinfo is None:
            published = published.replace(tzinfo=UTC)
        metadata = EntryMetadata(
            title=title if title is not None else name,
            author="A",
            publish_date=published,
        )
        return Entry(name=name, metadata=metadata, html=html, creation_date=0.0)

    return _make
