"""Entries — one Markdown source file rendered to HTML.

A source file is a YAML front-matter block delimited by ``---`` lines
followed by a CommonMark body::

    ---
    title: Hello
    author: A
    publish_date: 2024-01-01T00:00:00Z
    ---
    # hi

Parsing never mutates anything shared: each call returns a fresh, frozen
``Entry`` which the store swaps in wholesale.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import UTC, date, datetime, time
from pathlib import Path
from typing import Any

import yaml
from markdown_it import MarkdownIt

from quill._errors import EntryIOError, FrontMatterError, SchemaError

MARKDOWN_SUFFIX = ".md"
_DRAFT_PREFIX = "_"
_FENCE = "---"


def is_eligible(name: str) -> bool:
    """Return True if *name* is an entry filename the server publishes.

    Eligible names end with ``.md`` and do not start with ``_`` (drafts,
    partial notes).

    """
    return name.endswith(MARKDOWN_SUFFIX) and not name.startswith(_DRAFT_PREFIX)


@dataclass(frozen=True, slots=True)
class EntryMetadata:
    """Front-matter fields every entry must carry.

    Attributes:
        title: Display title.
        author: Author name.
        publish_date: Timezone-aware publication instant.

    """

    title: str
    author: str
    publish_date: datetime


@dataclass(frozen=True, slots=True)
class Entry:
    """The rendered form of one post.

    Attributes:
        name: Source filename including extension (unique key).
        metadata: Parsed front-matter.
        html: Rendered body.
        creation_date: Filesystem creation time (POSIX seconds); falls back
            to mtime where the platform has no birth time.

    """

    name: str
    metadata: EntryMetadata
    html: str
    creation_date: float

    @property
    def title(self) -> str:
        return self.metadata.title

    @property
    def author(self) -> str:
        return self.metadata.author

    @property
    def publish_date(self) -> datetime:
        return self.metadata.publish_date


def split_front_matter(source: str) -> tuple[str, str]:
    """Split *source* into ``(front_matter, body)``.

    The opening fence must be the first line; the closing fence is the next
    line consisting only of ``---``.

    Raises:
        FrontMatterError: If either fence is missing.

    """
    text = source.removeprefix("\ufeff").replace("\r\n", "\n")
    lines = text.split("\n")
    if not lines or lines[0].rstrip() != _FENCE:
        msg = "source does not start with a '---' front-matter fence"
        raise FrontMatterError(msg)
    for i in range(1, len(lines)):
        if lines[i].rstrip() == _FENCE:
            front = "\n".join(lines[1:i])
            body = "\n".join(lines[i + 1:])
            return front, body.lstrip("\n")
    msg = "front-matter block is not closed by a '---' line"
    raise FrontMatterError(msg)


def _coerce_publish_date(value: Any) -> datetime:
    """Turn the YAML ``publish_date`` value into an aware datetime.

    PyYAML already yields ``datetime``/``date`` for ISO timestamps; strings
    are parsed with ``datetime.fromisoformat``.  Naive values are taken as
    UTC and bare dates as midnight UTC.

    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError as exc:
            msg = f"publish_date {value!r} is not an ISO-8601 timestamp"
            raise SchemaError(msg) from exc
    else:
        msg = f"publish_date must be a timestamp, got {type(value).__name__}"
        raise SchemaError(msg)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def parse_metadata(front_matter: str) -> EntryMetadata:
    """Deserialize a front-matter block into ``EntryMetadata``.

    Raises:
        FrontMatterError: If the block is not valid YAML or not a mapping.
        SchemaError: If a required field is missing or mistyped.

    """
    try:
        data = yaml.safe_load(front_matter)
    except yaml.YAMLError as exc:
        msg = f"invalid YAML front-matter: {exc}"
        raise FrontMatterError(msg) from exc
    if not isinstance(data, dict):
        msg = "front-matter must be a YAML mapping"
        raise FrontMatterError(msg)

    for key in ("title", "author", "publish_date"):
        if data.get(key) is None:
            msg = f"front-matter is missing required field {key!r}"
            raise SchemaError(msg)
    for key in ("title", "author"):
        if not isinstance(data[key], str):
            msg = f"{key} must be a string, got {type(data[key]).__name__}"
            raise SchemaError(msg)

    return EntryMetadata(
        title=data["title"],
        author=data["author"],
        publish_date=_coerce_publish_date(data["publish_date"]),
    )


def _creation_time(stat: os.stat_result) -> float:
    return getattr(stat, "st_birthtime", stat.st_mtime)


class EntryParser:
    """Reads a source file and renders it into an ``Entry``.

    Args:
        unsafe_html: Pass raw HTML in the Markdown body through unescaped.

    Thread Safety:
        ``parse`` keeps no state between calls; safe to call from worker
        threads.

    """

    __slots__ = ("_markdown",)

    def __init__(self, *, unsafe_html: bool = False) -> None:
        self._markdown = MarkdownIt("commonmark", {"html": unsafe_html})

    def render(self, body: str) -> str:
        """Render a Markdown body to HTML."""
        return self._markdown.render(body)

    def parse(self, path: Path) -> Entry:
        """Parse the file at *path*.

        Raises:
            EntryIOError: If the file cannot be read or decoded.
            FrontMatterError: If the front-matter block is missing or invalid.
            SchemaError: If required fields are absent or mistyped.

        """
        try:
            stat = path.stat()
            source = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            msg = f"cannot read {path}: {exc}"
            raise EntryIOError(msg) from exc

        front, body = split_front_matter(source)
        return Entry(
            name=path.name,
            metadata=parse_metadata(front),
            html=self.render(body),
            creation_date=_creation_time(stat),
        )
