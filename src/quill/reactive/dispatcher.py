"""Change dispatchers — turn watcher events into store mutations and reloads.

Orchestrates the live-reload flow:
    1. DirectoryWatcher detects and classifies a change (ChangeEvent)
    2. ChangeDispatcher filters by filename policy and re-parses the entry
       off the event loop (EntryParser in a worker thread)
    3. The entry is upserted into (or removed from) the EntryStore
    4. A Reload hint goes out on the EventBus for SSE clients

Theme changes take the parallel ThemeDispatcher path: reload the
ThemeRegistry snapshot, then broadcast.

Each watcher is drained by ONE dispatcher task, so events for the same file
are applied in the order they were observed and a save storm queues up
instead of fanning out into unbounded concurrent parses.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING

from quill._errors import ContentError, TemplateLoadError
from quill.content.entry import MARKDOWN_SUFFIX, is_eligible
from quill.reactive.bus import Reload

if TYPE_CHECKING:
    from pathlib import Path

    from quill.content.entry import EntryParser
    from quill.content.store import EntryStore
    from quill.content.watcher import ChangeEvent, DirectoryWatcher
    from quill.observability.collector import EventCollector
    from quill.reactive.bus import EventBus
    from quill.theme import ThemeRegistry

logger = logging.getLogger(__name__)


async def drain(watcher: DirectoryWatcher, dispatcher: ChangeDispatcher | ThemeDispatcher) -> None:
    """Feed every event from *watcher* to *dispatcher*, one at a time."""
    async for event in watcher.changes():
        try:
            await dispatcher.handle(event)
        except Exception:
            logger.exception("Failed to handle %s of %s", event.kind, event.name)


class ChangeDispatcher:
    """Applies content-directory changes to the entry store.

    =========  ==========================  ==================================
    Event      Filename                    Action
    =========  ==========================  ==================================
    created    eligible                    parse, upsert, broadcast Reload
    modified   eligible                    parse, upsert, broadcast Reload
    removed    ends with ``.md``           remove (Reload if configured)
    anything   otherwise                   ignored
    =========  ==========================  ==================================

    A ``modified`` event for an eligible name the store does not know is
    ingested like ``created``, so a file whose creation was missed (or
    failed to parse) is picked up by its next save.

    Args:
        store: Entry store to mutate.
        bus: Event bus for reload hints.
        parser: Parser used for every ingest.
        collector: Optional observability sink.
        reload_on_remove: Also broadcast a Reload when an entry is removed.

    """

    def __init__(
        self,
        store: EntryStore,
        bus: EventBus,
        parser: EntryParser,
        *,
        collector: EventCollector | None = None,
        reload_on_remove: bool = False,
    ) -> None:
        self._store = store
        self._bus = bus
        self._parser = parser
        self._collector = collector
        self._reload_on_remove = reload_on_remove

    async def handle(self, event: ChangeEvent) -> None:
        """Process a single classified change."""
        name = event.name
        if event.kind == "removed":
            if name.endswith(MARKDOWN_SUFFIX):
                self._remove(name)
            return
        if not is_eligible(name):
            return
        if await self.ingest(event.path, kind=event.kind):
            self._broadcast(name)

    async def ingest(self, path: Path, *, kind: str = "created") -> bool:
        """Parse *path* in a worker thread and upsert it.

        Returns True if the store was updated.  Read and parse errors are
        logged and dropped: the stale entry (if any) stays until the next
        change of the file.  A write the store drops after its write timeout
        also returns False, with nothing recorded or broadcast.

        """
        t0 = time.perf_counter()
        try:
            entry = await asyncio.to_thread(self._parser.parse, path)
        except ContentError as exc:
            self._log_failure(path.name, exc)
            return False
        parse_ms = (time.perf_counter() - t0) * 1000

        replaced = self._store.upsert(entry)
        if replaced is None:
            return False
        logger.info("%s %s (%.1fms)", "Updated" if replaced else "Added", entry.name, parse_ms)
        if self._collector is not None:
            self._collector.record_ingest(
                entry.name, kind=kind, replaced=replaced, parse_ms=parse_ms,
            )
        return True

    def scan(self, directory: Path) -> int:
        """Synchronously ingest every eligible file in *directory*.

        Used once at startup, before the watcher runs.  Returns the number
        of entries loaded; files that fail to parse are logged and skipped.

        """
        loaded = 0
        for path in sorted(directory.iterdir()):
            if not is_eligible(path.name) or not path.is_file() or path.is_symlink():
                continue
            t0 = time.perf_counter()
            try:
                entry = self._parser.parse(path)
            except ContentError as exc:
                self._log_failure(path.name, exc)
                continue
            if self._store.upsert(entry) is None:
                continue
            loaded += 1
            if self._collector is not None:
                self._collector.record_ingest(
                    entry.name, kind="scan",
                    parse_ms=(time.perf_counter() - t0) * 1000,
                )
        return loaded

    def _remove(self, name: str) -> None:
        removed = self._store.remove(name)
        if removed is None:
            return
        if removed:
            logger.info("Removed %s", name)
        if self._collector is not None:
            self._collector.record_removal(name, removed=removed)
        if removed and self._reload_on_remove:
            self._broadcast(name)

    def _broadcast(self, trigger: str) -> None:
        receivers = self._bus.publish(Reload())
        if self._collector is not None:
            self._collector.record_broadcast(trigger, receivers=receivers)

    def _log_failure(self, name: str, exc: ContentError) -> None:
        logger.warning("Skipping %s: %s", name, exc)
        if self._collector is not None:
            self._collector.record_failure(name, exc)


class ThemeDispatcher:
    """Reloads the theme on any change in the theme directory.

    A change to the pinned stylesheet only broadcasts a Reload: the file is
    served straight from disk, the browser just has to fetch it again.

    Args:
        registry: Theme registry to reload.
        bus: Event bus for reload hints.
        style_file: Pinned stylesheet outside the template set, if any.
        collector: Optional observability sink.

    """

    def __init__(
        self,
        registry: ThemeRegistry,
        bus: EventBus,
        *,
        style_file: Path | None = None,
        collector: EventCollector | None = None,
    ) -> None:
        self._registry = registry
        self._bus = bus
        self._style_file = style_file.resolve() if style_file is not None else None
        self._collector = collector

    async def handle(self, event: ChangeEvent) -> None:
        if self._style_file is not None and event.path == self._style_file:
            logger.info("Stylesheet %s changed", event.name)
            self._broadcast(event.name)
            return

        try:
            # Reading and compiling templates is blocking work.
            await asyncio.to_thread(self._registry.reload)
        except TemplateLoadError as exc:
            logger.error("Theme reload failed, keeping previous theme: %s", exc)
            if self._collector is not None:
                self._collector.record_theme_reload(
                    str(self._registry.theme_dir), ok=False, message=str(exc),
                )
            return

        if self._collector is not None:
            self._collector.record_theme_reload(str(self._registry.theme_dir), ok=True)
        self._broadcast(event.name)

    def _broadcast(self, trigger: str) -> None:
        receivers = self._bus.publish(Reload())
        if self._collector is not None:
            self._collector.record_broadcast(trigger, receivers=receivers)
