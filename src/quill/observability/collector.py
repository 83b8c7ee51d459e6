"""Event collector — the recording API the pipeline talks to.

Keeps call sites short (``collector.record_ingest(...)``) and stamps every
event with the monotonic clock.

Thread Safety:
    Delegates to ``EventLog`` which is internally locked.

"""

from __future__ import annotations

from quill.observability.events import (
    EntryIngested,
    EntryRemoved,
    IngestFailed,
    ReloadBroadcast,
    ThemeReloaded,
    now_ns,
)
from quill.observability.log import EventLog


class EventCollector:
    """Records pipeline events into an ``EventLog``.

    Args:
        log: The EventLog to store events in.

    """

    __slots__ = ("_log",)

    def __init__(self, log: EventLog | None = None) -> None:
        self._log = log if log is not None else EventLog()

    @property
    def log(self) -> EventLog:
        """The underlying event log."""
        return self._log

    def record_ingest(
        self,
        name: str,
        *,
        kind: str,
        replaced: bool = False,
        parse_ms: float = 0.0,
    ) -> None:
        self._log.append(
            EntryIngested(
                name=name,
                kind=kind,  # type: ignore[arg-type]
                replaced=replaced,
                parse_ms=parse_ms,
                timestamp_ns=now_ns(),
            )
        )

    def record_failure(self, name: str, exc: BaseException) -> None:
        self._log.append(
            IngestFailed(
                name=name,
                error=type(exc).__name__,
                message=str(exc),
                timestamp_ns=now_ns(),
            )
        )

    def record_removal(self, name: str, *, removed: bool) -> None:
        self._log.append(EntryRemoved(name=name, removed=removed, timestamp_ns=now_ns()))

    def record_theme_reload(self, path: str, *, ok: bool, message: str = "") -> None:
        self._log.append(
            ThemeReloaded(path=path, ok=ok, message=message, timestamp_ns=now_ns())
        )

    def record_broadcast(self, trigger: str, *, receivers: int) -> None:
        self._log.append(
            ReloadBroadcast(trigger=trigger, receivers=receivers, timestamp_ns=now_ns())
        )
