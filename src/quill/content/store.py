"""Entry store — the in-memory index the HTTP layer reads from.

Two coupled indices over ``Entry`` objects:

- ``by_name``: entry name -> entry.
- ``recent``: at most ``max_recent`` entries, newest ``publish_date`` first,
  ties broken by name ascending.

Both indices sit behind ONE reader-writer lock.  The recent view is a
function of the whole name index (it must always hold the top
``max_recent`` entries), so it cannot be kept correct with a lock per index.

Thread Safety:
    Writers (the ingest actors) take the exclusive side for a short critical
    section; request handlers take the shared side.  Readers never observe
    an entry in ``recent`` that is missing from ``by_name``.

"""

from __future__ import annotations

import bisect
import heapq
import logging
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from quill.content._rwlock import RWLock

if TYPE_CHECKING:
    from collections.abc import Callable

    from quill._types import EntryName
    from quill.content.entry import Entry

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
_MICROSECOND = timedelta(microseconds=1)


def recency_key(entry: Entry) -> tuple[int, str]:
    """Sort key of the recent view: newest first, then name ascending."""
    return (-((entry.publish_date - _EPOCH) // _MICROSECOND), entry.name)


class EntryStore:
    """Thread-safe name index plus an ordered, bounded "recent" view.

    Args:
        max_recent: Length bound of the recent view.
        write_timeout: Seconds a write waits for exclusive access before it
            gives up (logged, indices unchanged).  ``None`` waits forever.

    """

    def __init__(self, max_recent: int = 10, *, write_timeout: float | None = 1.0) -> None:
        self._max_recent = max_recent
        self._write_timeout = write_timeout
        self._by_name: dict[EntryName, Entry] = {}
        self._recent: list[Entry] = []
        self._lock = RWLock()

    @property
    def max_recent(self) -> int:
        return self._max_recent

    # ----- writes -----

    def upsert(self, entry: Entry) -> bool | None:
        """Insert or replace *entry* by name.

        Returns True if an entry with the same name was replaced, False if
        *entry* is new.  If the exclusive guard cannot be taken within
        ``write_timeout`` the write is logged and dropped and None is
        returned; the store is left unchanged.

        """
        if not self._lock.acquire_write(self._write_timeout):
            logger.warning("Store busy, dropped upsert of %s", entry.name)
            return None
        try:
            prev = self._by_name.get(entry.name)
            self._by_name[entry.name] = entry
            if prev is not None and self._discard_recent(entry.name):
                # The replacement may now rank below an entry outside the view.
                self._rebuild_recent()
            else:
                self._insert_recent(entry)
            return prev is not None
        finally:
            self._lock.release_write()

    def remove(self, name: EntryName) -> bool | None:
        """Remove the entry called *name* from both indices.

        Returns True if an entry was removed, False if there was none, or
        None if the write was dropped because the store stayed busy.

        """
        if not self._lock.acquire_write(self._write_timeout):
            logger.warning("Store busy, dropped removal of %s", name)
            return None
        try:
            if self._by_name.pop(name, None) is None:
                return False
            if self._discard_recent(name):
                self._rebuild_recent()
            return True
        finally:
            self._lock.release_write()

    def clear(self) -> None:
        """Drop every entry."""
        if not self._lock.acquire_write(self._write_timeout):
            logger.warning("Store busy, dropped clear")
            return
        try:
            self._by_name.clear()
            self._recent.clear()
        finally:
            self._lock.release_write()

    # ----- reads -----

    def get(self, name: EntryName) -> Entry | None:
        """Point lookup by name."""
        with self._lock.read():
            return self._by_name.get(name)

    def contains(self, name: EntryName) -> bool:
        with self._lock.read():
            return name in self._by_name

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.contains(name)

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._by_name)

    def names(self) -> frozenset[EntryName]:
        """All entry names (snapshot)."""
        with self._lock.read():
            return frozenset(self._by_name)

    def iterate_recent(self, visitor: Callable[[Entry], object]) -> None:
        """Call *visitor* on each recent entry, newest first.

        The shared guard is held for the whole walk, so *visitor* must not
        call back into ``upsert``/``remove``/``clear``.

        """
        with self._lock.read():
            for entry in self._recent:
                visitor(entry)

    def recent(self) -> tuple[Entry, ...]:
        """Snapshot of the recent view, newest first."""
        with self._lock.read():
            return tuple(self._recent)

    # ----- recent-view maintenance (exclusive guard held) -----

    def _discard_recent(self, name: str) -> bool:
        for i, existing in enumerate(self._recent):
            if existing.name == name:
                del self._recent[i]
                return True
        return False

    def _insert_recent(self, entry: Entry) -> None:
        pos = bisect.bisect_left(self._recent, recency_key(entry), key=recency_key)
        if pos >= self._max_recent:
            return  # strictly past the tail
        self._recent.insert(pos, entry)
        del self._recent[self._max_recent:]

    def _rebuild_recent(self) -> None:
        self._recent = heapq.nsmallest(self._max_recent, self._by_name.values(), key=recency_key)

