"""Directory watcher — classified filesystem events for one directory.

Watches a directory with watchfiles, flat by default or as a whole tree, and
turns each debounced batch of raw notifications into ``ChangeEvent`` objects:

- a regular file that appeared -> ``created``
- a known regular file whose content, metadata or name changed -> ``modified``
- a known regular file that is gone -> ``removed``

Directories and symlinks are ignored.  A rename inside the directory shows
up as ``removed`` for the old name plus exactly one ``created`` or
``modified`` for the new name, depending on whether the destination name
already existed.

The watcher runs watchfiles in a background thread and bridges events to a
bounded asyncio queue owned by the event loop that started it.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from watchfiles import Change

from quill._errors import WatcherError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterable

    from quill._types import ChangeKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ChangeEvent:
    """A classified change of one file in a watched directory.

    Attributes:
        path: Absolute path to the changed file.
        kind: What happened to it.

    """

    path: Path
    kind: ChangeKind

    @property
    def name(self) -> str:
        return self.path.name


def _is_regular_file(path: Path) -> bool:
    return path.is_file() and not path.is_symlink()


def _tracking_key(
    path: Path,
    directory: Path,
    extra_files: frozenset[Path],
    *,
    recursive: bool,
) -> str | None:
    """Key under which *path* is tracked in ``known``, or None to ignore it.

    Files in the watched tree are keyed by their POSIX path relative to
    *directory* (just the name for a direct child); pinned files by their
    absolute path.
    """
    if path in extra_files:
        return str(path)
    if path.parent == directory:
        return path.name
    if not recursive or not path.is_relative_to(directory):
        return None
    relative = path.relative_to(directory)
    if any(part.startswith(".") for part in relative.parts[:-1]):
        return None
    return relative.as_posix()


def classify_changes(
    raw_changes: Iterable[tuple[Change, str]],
    directory: Path,
    known: set[str],
    *,
    extra_files: frozenset[Path] = frozenset(),
    recursive: bool = False,
) -> list[ChangeEvent]:
    """Collapse one batch of raw watchfiles changes into classified events.

    Every path yields at most one event per batch, decided from its final
    on-disk state rather than the raw change kinds, so a burst of writes or
    a delete-then-recreate reads as a single change.

    Args:
        raw_changes: ``(Change, path)`` pairs from one watchfiles batch.
        directory: The watched directory; paths elsewhere are ignored unless
            listed in *extra_files*.
        known: Keys of regular files currently known to exist.  Updated in
            place.
        extra_files: Individually pinned files outside *directory*.
        recursive: Also classify files in subdirectories of *directory*.

    """
    seen: dict[Path, None] = {}
    for _change, path_str in raw_changes:
        seen.setdefault(Path(path_str), None)

    events: list[ChangeEvent] = []
    for path in seen:
        key = _tracking_key(path, directory, extra_files, recursive=recursive)
        if key is None:
            continue
        if path.is_symlink() or path.is_dir():
            continue
        if _is_regular_file(path):
            kind: ChangeKind = "modified" if key in known else "created"
            known.add(key)
        elif key in known:
            known.discard(key)
            kind = "removed"
        else:
            continue  # appeared and vanished inside one batch
        events.append(ChangeEvent(path=path, kind=kind))
    return events


class DirectoryWatcher:
    """Watches one directory (plus optional pinned files) for changes.

    Uses watchfiles for efficient filesystem monitoring.  The blocking
    ``watch`` loop runs on a daemon thread; classified events are handed to
    the event loop with ``call_soon_threadsafe`` and queued for a single
    consumer (see ``ChangeDispatcher``), which gets per-file ordering for
    free.

    Args:
        directory: Directory to watch.
        label: Short name used in the thread name and log messages.
        extra_files: Files outside *directory* to watch as well.
        recursive: Watch subdirectories too.  Nested files are tracked by
            their path relative to *directory*.
        queue_size: Bound of the pending-event queue.  When full, new events
            are dropped with a warning; the next change retriggers.
        debounce_ms: watchfiles debounce window.
        step_ms: watchfiles polling step.

    """

    def __init__(
        self,
        directory: Path,
        *,
        label: str = "content",
        extra_files: Iterable[Path] = (),
        recursive: bool = False,
        queue_size: int = 1024,
        debounce_ms: int = 300,
        step_ms: int = 50,
    ) -> None:
        self._directory = directory.resolve()
        self._label = label
        self._extra_files = frozenset(p.resolve() for p in extra_files)
        self._recursive = recursive
        self._queue: asyncio.Queue[ChangeEvent] = asyncio.Queue(maxsize=queue_size)
        self._debounce_ms = debounce_ms
        self._step_ms = step_ms
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._known: set[str] = set()

    @property
    def directory(self) -> Path:
        return self._directory

    @property
    def is_running(self) -> bool:
        """Whether the watcher background thread is active."""
        return self._thread is not None and self._thread.is_alive()

    def start(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        """Start watching in a background thread.

        Must be called from the event loop that will consume ``changes()``
        unless *loop* is given.

        Raises:
            WatcherError: If the watched directory does not exist.

        """
        if self.is_running:
            return
        if not self._directory.is_dir():
            msg = f"Cannot watch {self._directory}: not a directory"
            raise WatcherError(msg)

        self._loop = loop if loop is not None else asyncio.get_running_loop()
        self._known = self._scan()
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._watch_loop,
            name=f"quill-watcher-{self._label}",
            daemon=True,
        )
        self._thread.start()

    def stop(self) -> None:
        """Signal the watcher to stop and wait for the thread to finish."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=5.0)
            self._thread = None

    async def changes(self) -> AsyncIterator[ChangeEvent]:
        """Async iterator that yields ChangeEvent objects as they occur.

        Ends once the watcher is stopped and the queue is drained.

        """
        while self.is_running or not self._queue.empty():
            try:
                event = await asyncio.wait_for(self._queue.get(), timeout=0.5)
                yield event
            except TimeoutError:
                if not self.is_running:
                    break

    def _scan(self) -> set[str]:
        directory = self._directory
        candidates = directory.rglob("*") if self._recursive else directory.iterdir()
        known: set[str] = set()
        for path in candidates:
            if not _is_regular_file(path):
                continue
            key = _tracking_key(
                path, self._directory, self._extra_files, recursive=self._recursive,
            )
            if key is not None:
                known.add(key)
        known.update(str(p) for p in self._extra_files if _is_regular_file(p))
        return known

    def _covers(self, path: Path) -> bool:
        if self._recursive:
            return path.is_relative_to(self._directory)
        return path.parent == self._directory

    def _watch_paths(self) -> list[Path]:
        # Pinned files inside the watched tree are already covered.
        extra = [p for p in self._extra_files if not self._covers(p)]
        return [self._directory, *extra]

    def _watch_loop(self) -> None:
        """Background thread: run watchfiles and push events to the queue."""
        from watchfiles import watch

        while not self._stop_event.is_set():
            try:
                for raw_changes in watch(
                    *self._watch_paths(),
                    stop_event=self._stop_event,
                    debounce=self._debounce_ms,
                    step=self._step_ms,
                    recursive=self._recursive,
                    raise_interrupt=False,
                ):
                    for event in classify_changes(
                        raw_changes,
                        self._directory,
                        self._known,
                        extra_files=self._extra_files,
                        recursive=self._recursive,
                    ):
                        self._post(event)
            except Exception:
                logger.exception("%s watcher backend failed, restarting", self._label)
                # Back off so a persistent failure does not spin.
                self._stop_event.wait(1.0)
                self._known = self._scan() if self._directory.is_dir() else set()
            else:
                break

    def _post(self, event: ChangeEvent) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        try:
            loop.call_soon_threadsafe(self._enqueue, event)
        except RuntimeError:
            pass  # loop closed between the check and the call

    def _enqueue(self, event: ChangeEvent) -> None:
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning(
                "%s watcher queue full, dropped %s event for %s",
                self._label, event.kind, event.name,
            )
