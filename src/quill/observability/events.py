"""Pipeline event model for observability.

Every stage of the live-reload pipeline records a frozen event:

- ingest: an entry was parsed and stored, or parsing failed
- removal: an entry left the store
- theme: a theme reload was attempted
- broadcast: a reload hint went out on the bus

Thread Safety:
    All events are frozen (immutable) and safe to share across threads.

"""

import time
from dataclasses import dataclass
from typing import Literal


# ---------------------------------------------------------------------------
# Content events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class EntryIngested:
    """An entry was parsed and upserted into the store.

    Attributes:
        name: Entry name (source filename).
        kind: Watcher classification that triggered the ingest, or
            ``"scan"`` for the startup pass.
        replaced: True if an older version of the entry was replaced.
        parse_ms: Time spent reading and rendering in milliseconds.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    name: str
    kind: Literal["created", "modified", "scan"]
    replaced: bool
    parse_ms: float
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class IngestFailed:
    """A source file could not be turned into an entry.

    Attributes:
        name: Entry name (source filename).
        error: Error class name (``EntryIOError``, ``SchemaError``, ...).
        message: Human-readable reason.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    name: str
    error: str
    message: str
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class EntryRemoved:
    """A remove event was applied to the store.

    Attributes:
        name: Entry name.
        removed: False if the store did not hold the entry.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    name: str
    removed: bool
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Theme and broadcast events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ThemeReloaded:
    """A theme reload was attempted.

    Attributes:
        path: Theme directory.
        ok: True if the new snapshot was swapped in.
        message: Failure reason (empty on success).
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    path: str
    ok: bool
    message: str
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class ReloadBroadcast:
    """A reload hint was published on the event bus.

    Attributes:
        trigger: File name that caused the broadcast.
        receivers: Number of subscribers it was offered to.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    trigger: str
    receivers: int
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Union type
# ---------------------------------------------------------------------------

type PipelineEvent = (
    EntryIngested
    | IngestFailed
    | EntryRemoved
    | ThemeReloaded
    | ReloadBroadcast
)


def now_ns() -> int:
    """Return the current monotonic clock value in nanoseconds."""
    return time.monotonic_ns()
