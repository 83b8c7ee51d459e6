"""Quill themes — immutable template snapshots with live reload.

A theme is a directory of Jinja2 templates.  Three are required, located by
file stem: ``home.*``, ``blog_entry.*`` and ``entry_not_found.*``.  Every
other template file in the directory (recursively) is a partial, addressed
by its relative path (``{% include "partials/nav.html" %}``).  The hot
reload client is always available as the ``hot_reload_script`` partial.

Loading reads and compiles every template up front into a ``ThemeSnapshot``.
A snapshot never touches the disk again; reloading builds a fresh one off to
the side and swaps it in, so a render in progress keeps the snapshot it
started with.

Thread Safety:
    Snapshots are immutable.  ``ThemeRegistry`` serialises reloads with a
    lock; ``current()`` is a single attribute read.

"""

from __future__ import annotations

import html
import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from jinja2 import DictLoader, Environment, TemplateError

from quill._errors import TemplateLoadError
from quill.reactive.hmr import HOT_RELOAD_PARTIAL, HOT_RELOAD_SCRIPT

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from quill._types import TemplateName
    from quill.content.entry import Entry

logger = logging.getLogger(__name__)

BLOG_ENTRY = "blog_entry"
ENTRY_NOT_FOUND = "entry_not_found"
HOME = "home"
REQUIRED_TEMPLATES = (BLOG_ENTRY, ENTRY_NOT_FOUND, HOME)

TEMPLATE_SUFFIXES = frozenset({".html", ".jinja", ".jinja2", ".j2"})

_FALLBACK_PAGE = """\
<!DOCTYPE html>
<html lang="en">
<head><meta charset="utf-8"><title>{title}</title></head>
<body><h1>{title}</h1><p>This page could not be rendered.</p></body>
</html>
"""


def bundled_theme_path() -> Path:
    """Return the absolute path to the bundled default theme."""
    return Path(__file__).parent / "default"


def fallback_html(title: str = "Error") -> str:
    """Minimal page served when a template fails; never exposes the error."""
    return _FALLBACK_PAGE.format(title=html.escape(title))


@dataclass(frozen=True, slots=True)
class ThemeSnapshot:
    """An immutable, fully compiled set of theme templates.

    Attributes:
        path: Directory the snapshot was loaded from.
        sources: Template name -> source text (read-only).
        environment: Jinja2 environment compiled over ``sources``.

    """

    path: Path
    sources: Mapping[str, str]
    environment: Environment = field(compare=False, repr=False)

    @property
    def template_names(self) -> frozenset[str]:
        return frozenset(self.sources)

    def render(self, name: TemplateName, **context: Any) -> str:
        """Render template *name*; on any failure log it and return a fallback page."""
        try:
            return self.environment.get_template(name).render(**context)
        except Exception:
            logger.exception("Rendering template %r from %s failed", name, self.path)
            return fallback_html()

    def render_home(self, blog_info: Mapping[str, str], entries: Iterable[Entry]) -> str:
        return self.render(HOME, blog_info=blog_info, entries=list(entries))

    def render_entry(self, blog_info: Mapping[str, str], entry: Entry) -> str:
        return self.render(BLOG_ENTRY, blog_info=blog_info, blog_entry=entry)

    def render_not_found(self, blog_info: Mapping[str, str], name: str) -> str:
        return self.render(ENTRY_NOT_FOUND, blog_info=blog_info, entry_not_found=name)


def _template_files(theme_dir: Path) -> list[Path]:
    return sorted(
        p for p in theme_dir.rglob("*")
        if p.is_file()
        and p.suffix in TEMPLATE_SUFFIXES
        and not any(part.startswith(".") for part in p.relative_to(theme_dir).parts)
    )


def load_theme(theme_dir: Path) -> ThemeSnapshot:
    """Read and compile every template in *theme_dir*.

    Raises:
        TemplateLoadError: If the directory is unreadable, a required
            template is missing, or any template fails to compile.

    """
    if not theme_dir.is_dir():
        msg = f"Theme directory {theme_dir} does not exist"
        raise TemplateLoadError(msg)

    sources: dict[str, str] = {}
    try:
        for path in _template_files(theme_dir):
            sources[path.relative_to(theme_dir).as_posix()] = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        msg = f"Failed to read theme {theme_dir}: {exc}"
        raise TemplateLoadError(msg) from exc

    for required in REQUIRED_TEMPLATES:
        candidates = [name for name in sources if "/" not in name and Path(name).stem == required]
        if not candidates:
            msg = f"Theme {theme_dir} has no {required!r} template"
            raise TemplateLoadError(msg)
        sources[required] = sources[candidates[0]]
    sources[HOT_RELOAD_PARTIAL] = HOT_RELOAD_SCRIPT

    frozen = MappingProxyType(sources)
    env = Environment(loader=DictLoader(sources), autoescape=True, auto_reload=False)
    try:
        for name in frozen:
            env.get_template(name)
    except TemplateError as exc:
        msg = f"Failed to compile theme {theme_dir}: {exc}"
        raise TemplateLoadError(msg) from exc

    return ThemeSnapshot(path=theme_dir, sources=frozen, environment=env)


class ThemeRegistry:
    """Holds the active ``ThemeSnapshot`` and swaps in new ones on reload.

    Args:
        theme_dir: Directory to (re)load the theme from.

    Raises:
        TemplateLoadError: If the initial load fails.

    """

    def __init__(self, theme_dir: Path) -> None:
        self._theme_dir = theme_dir
        self._lock = threading.Lock()
        self._snapshot = load_theme(theme_dir)

    @property
    def theme_dir(self) -> Path:
        return self._theme_dir

    def current(self) -> ThemeSnapshot:
        """The active snapshot.  Hold on to it for the duration of a render."""
        return self._snapshot

    def reload(self) -> ThemeSnapshot:
        """Load a fresh snapshot and make it current.

        Raises:
            TemplateLoadError: If loading fails; the previous snapshot stays
                active.

        """
        with self._lock:
            snapshot = load_theme(self._theme_dir)
            self._snapshot = snapshot
        logger.info("Theme reloaded from %s", self._theme_dir)
        return snapshot
