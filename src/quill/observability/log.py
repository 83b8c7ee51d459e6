"""Event log — bounded pipeline history, queryable per entry and per kind.

Keeps the most recent ``PipelineEvent`` objects in a ring buffer and answers
what the stats endpoint asks of it: what happened to one entry, which
entries are currently failing to parse, and how many events of each kind
the pipeline has produced since startup.

Event kinds are the short names used on the wire (``?kind=failed``):

    =========  ==================
    kind       event
    =========  ==================
    ingested   ``EntryIngested``
    failed     ``IngestFailed``
    removed    ``EntryRemoved``
    theme      ``ThemeReloaded``
    broadcast  ``ReloadBroadcast``
    =========  ==================

Thread Safety:
    All methods take one ``threading.Lock``.  The dispatchers, the watcher
    drain tasks and request handlers may call them concurrently.

"""

import threading
from collections import Counter, deque
from dataclasses import asdict
from typing import Any

from quill.observability.events import (
    EntryIngested,
    EntryRemoved,
    IngestFailed,
    PipelineEvent,
    ReloadBroadcast,
    ThemeReloaded,
)

EVENT_KINDS: dict[str, type] = {
    "ingested": EntryIngested,
    "failed": IngestFailed,
    "removed": EntryRemoved,
    "theme": ThemeReloaded,
    "broadcast": ReloadBroadcast,
}
_KIND_BY_TYPE: dict[type, str] = {cls: kind for kind, cls in EVENT_KINDS.items()}


def kind_of(event: PipelineEvent) -> str:
    """Return the short kind name of *event*."""
    return _KIND_BY_TYPE[type(event)]


def subject_of(event: PipelineEvent) -> str:
    """Return what *event* is about: an entry name, theme path or trigger file."""
    if isinstance(event, ThemeReloaded):
        return event.path
    if isinstance(event, ReloadBroadcast):
        return event.trigger
    return event.name


def event_to_dict(event: PipelineEvent) -> dict[str, Any]:
    """JSON-ready form of *event*, tagged with its kind."""
    return {"kind": kind_of(event), **asdict(event)}


class EventLog:
    """Ring buffer of pipeline events with per-kind lifetime counters.

    When the buffer is full the oldest events are discarded; the counters
    keep counting, so ``stats()`` reports totals since startup alongside
    what is still retained.

    Args:
        max_events: Maximum number of events to retain.

    """

    __slots__ = ("_counts", "_events", "_lock", "_max_events")

    def __init__(self, max_events: int = 10_000) -> None:
        self._max_events = max_events
        self._events: deque[PipelineEvent] = deque(maxlen=max_events)
        self._counts: Counter[str] = Counter()
        self._lock = threading.Lock()

    def append(self, event: PipelineEvent) -> None:
        """Record an event in the log."""
        with self._lock:
            self._events.append(event)
            self._counts[kind_of(event)] += 1

    def query(
        self,
        *,
        kind: str | None = None,
        name: str | None = None,
        limit: int = 100,
    ) -> list[PipelineEvent]:
        """Retained events matching every given filter, most recent first.

        Args:
            kind: Only events of this kind (see the module table).
            name: Only events about this entry name, theme path or trigger.
            limit: Maximum number of events to return.

        Raises:
            ValueError: If *kind* is not a known event kind.

        """
        event_type = None
        if kind is not None:
            event_type = EVENT_KINDS.get(kind)
            if event_type is None:
                msg = f"Unknown event kind {kind!r}; expected one of {', '.join(EVENT_KINDS)}"
                raise ValueError(msg)

        with self._lock:
            results: list[PipelineEvent] = []
            for event in reversed(self._events):
                if len(results) >= limit:
                    break
                if event_type is not None and not isinstance(event, event_type):
                    continue
                if name is not None and subject_of(event) != name:
                    continue
                results.append(event)
            return results

    def failing(self) -> dict[str, IngestFailed]:
        """Entries whose latest retained ingest attempt failed.

        A later successful ingest or a removal of the same name clears the
        failure.  Returns the failure per entry name, sorted by name.

        """
        with self._lock:
            events = list(self._events)
        failures: dict[str, IngestFailed] = {}
        for event in events:
            if isinstance(event, IngestFailed):
                failures[event.name] = event
            elif isinstance(event, (EntryIngested, EntryRemoved)):
                failures.pop(event.name, None)
        return dict(sorted(failures.items()))

    def clear(self) -> int:
        """Drop every retained event and reset the counters.

        Returns the number of events that were retained.

        """
        with self._lock:
            count = len(self._events)
            self._events.clear()
            self._counts.clear()
            return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    def stats(self) -> dict[str, Any]:
        """Summary for the stats endpoint."""
        failing = list(self.failing())
        with self._lock:
            return {
                "retained": len(self._events),
                "max_events": self._max_events,
                "seen": {kind: self._counts[kind] for kind in EVENT_KINDS},
                "failing": failing,
            }
