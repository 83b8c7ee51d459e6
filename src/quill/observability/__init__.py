"""Pipeline observability — structured events for the ingest/reload path.

Every entry ingest, failure, removal, theme reload and reload broadcast is
recorded as a frozen dataclass with a nanosecond timestamp into a bounded
``EventLog``.  The log backs the ``/__quill/stats`` endpoint.

Quick Start:
    >>> from quill.observability import EventCollector, EventLog
    >>> collector = EventCollector(EventLog(max_events=1000))
    >>> collector.record_removal("hello.md", removed=True)
    >>> len(collector.log)
    1

"""

from quill.observability.collector import EventCollector
from quill.observability.events import (
    EntryIngested,
    EntryRemoved,
    IngestFailed,
    PipelineEvent,
    ReloadBroadcast,
    ThemeReloaded,
    now_ns,
)
from quill.observability.log import EVENT_KINDS, EventLog, event_to_dict

__all__ = [
    "EVENT_KINDS",
    "EntryIngested",
    "EntryRemoved",
    "EventCollector",
    "EventLog",
    "IngestFailed",
    "PipelineEvent",
    "ReloadBroadcast",
    "ThemeReloaded",
    "event_to_dict",
    "now_ns",
]
