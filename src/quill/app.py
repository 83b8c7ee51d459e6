"""Quill application — wires the content cache, theme and live reload.

``create_app`` builds a Starlette app whose lifespan runs two watchers (the
content directory and the theme directory) each drained by one dispatcher
task.  ``serve`` is the primary entry point.
"""

import asyncio
import contextlib
import logging
import time
from collections.abc import AsyncIterator
from pathlib import Path

from starlette.applications import Starlette

from quill._errors import ConfigError, TemplateLoadError
from quill.config import QuillConfig
from quill.config_loader import load_config
from quill.content.entry import EntryParser
from quill.content.router import BlogRouter
from quill.content.store import EntryStore
from quill.content.watcher import DirectoryWatcher
from quill.files import FileServer
from quill.observability import EventCollector, EventLog
from quill.reactive.bus import EventBus
from quill.reactive.dispatcher import ChangeDispatcher, ThemeDispatcher, drain
from quill.theme import ThemeRegistry

logger = logging.getLogger(__name__)


def _load_theme(config: QuillConfig) -> ThemeRegistry:
    """Load the configured theme.

    Raises:
        ConfigError: If the theme cannot be loaded (fatal at startup).

    """
    try:
        return ThemeRegistry(config.theme_dir)
    except TemplateLoadError as exc:
        msg = f"Failed to load theme from {config.theme_dir}: {exc}"
        raise ConfigError(msg) from exc


def _check_content_dir(config: QuillConfig) -> Path:
    content = config.content_path
    if not content.is_dir():
        msg = f"Content directory {content} does not exist"
        raise ConfigError(msg)
    return content


def _make_watchers(config: QuillConfig) -> tuple[DirectoryWatcher, DirectoryWatcher]:
    content_watcher = DirectoryWatcher(
        config.content_path,
        label="content",
        queue_size=config.ingest_queue_size,
        debounce_ms=config.debounce_ms,
        step_ms=config.step_ms,
    )
    style = config.style_file
    theme_watcher = DirectoryWatcher(
        config.theme_dir,
        label="theme",
        extra_files=(style,) if style is not None else (),
        recursive=True,
        queue_size=config.ingest_queue_size,
        debounce_ms=config.debounce_ms,
        step_ms=config.step_ms,
    )
    return content_watcher, theme_watcher


def create_app(config: QuillConfig, *, watch: bool = True) -> Starlette:
    """Build the blog application.

    Parses every eligible entry up front so the first request is served from
    a warm cache.  When *watch* is True the app's lifespan starts the
    content and theme watchers and stops them on shutdown.

    Raises:
        ConfigError: If the content directory or the theme cannot be loaded.

    """
    content = _check_content_dir(config)
    theme = _load_theme(config)

    collector = EventCollector(EventLog())
    store = EntryStore(config.max_recent, write_timeout=config.write_timeout)
    bus = EventBus(config.bus_capacity)
    parser = EntryParser(unsafe_html=config.unsafe_html)

    content_dispatcher = ChangeDispatcher(
        store, bus, parser,
        collector=collector,
        reload_on_remove=config.reload_on_remove,
    )
    theme_dispatcher = ThemeDispatcher(
        theme, bus, style_file=config.style_file, collector=collector,
    )
    loaded = content_dispatcher.scan(content)
    logger.info("Loaded %d entries from %s", loaded, content)

    router = BlogRouter(
        config, store, theme, bus, FileServer(config.files_path), collector,
    )

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        if not watch:
            yield
            return

        content_watcher, theme_watcher = _make_watchers(config)
        content_watcher.start()
        theme_watcher.start()
        tasks = [
            asyncio.create_task(drain(content_watcher, content_dispatcher)),
            asyncio.create_task(drain(theme_watcher, theme_dispatcher)),
        ]
        try:
            yield
        finally:
            for task in tasks:
                task.cancel()
            content_watcher.stop()
            theme_watcher.stop()
            await asyncio.gather(*tasks, return_exceptions=True)

    app = Starlette(routes=router.routes(), lifespan=lifespan)
    app.state.config = config
    app.state.store = store
    app.state.theme = theme
    app.state.bus = bus
    app.state.collector = collector
    app.state.dispatcher = content_dispatcher
    app.state.theme_dispatcher = theme_dispatcher
    app.state.router = router
    return app


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------


def serve(root: str | Path = ".", **kwargs: object) -> None:
    """Run the blog server until interrupted.

    Args:
        root: Directory relative config paths are resolved against.
        **kwargs: Override QuillConfig fields.

    Raises:
        ConfigError: If initialisation fails.

    """
    import uvicorn

    from quill.banner import print_banner

    config = load_config(Path(root), **kwargs)
    t0 = time.perf_counter()
    app = create_app(config)
    load_ms = (time.perf_counter() - t0) * 1000

    print_banner(config, len(app.state.store), load_ms=load_ms)

    uvicorn.run(app, host=config.host, port=config.port, log_level="warning")
