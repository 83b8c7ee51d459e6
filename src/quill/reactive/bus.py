"""Event bus — broadcasts update events to every connected subscriber.

Each subscriber owns a bounded backlog.  Publishing appends to every backlog
and returns immediately; a subscriber that falls behind loses its oldest
events and is told so (``BusLagged``) on its next receive, so it can resync
by treating the gap as a reload.

Thread Safety:
    ``publish`` may be called from any thread.  Each ``Subscription`` is
    bound to the event loop it was created on and must be received from
    there.

"""

from __future__ import annotations

import asyncio
import threading
from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING

from quill._errors import BusLagged

if TYPE_CHECKING:
    from types import TracebackType


@dataclass(frozen=True, slots=True)
class Reload:
    """Subscribers should re-fetch whatever they display."""


# One variant today; new kinds (theme-only reloads, removals) join the union.
type UpdateEvent = Reload

DEFAULT_CAPACITY = 500


class Subscription:
    """One subscriber's view of the bus.

    Created by ``EventBus.subscribe``; only sees events published after it
    was created.  Use as an async context manager to unsubscribe on exit.

    """

    __slots__ = ("_backlog", "_bus", "_closed", "_lock", "_loop", "_skipped", "_wakeup")

    def __init__(self, bus: EventBus, capacity: int, loop: asyncio.AbstractEventLoop) -> None:
        self._bus = bus
        self._backlog: deque[UpdateEvent] = deque(maxlen=capacity)
        self._lock = threading.Lock()
        self._loop = loop
        self._wakeup = asyncio.Event()
        self._skipped = 0
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def pending(self) -> int:
        """Number of events waiting to be received."""
        with self._lock:
            return len(self._backlog)

    def _offer(self, event: UpdateEvent) -> None:
        with self._lock:
            if self._closed:
                return
            if len(self._backlog) == self._backlog.maxlen:
                self._skipped += 1  # deque drops the oldest on append
            self._backlog.append(event)
        self._notify()

    def _notify(self) -> None:
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is self._loop:
            self._wakeup.set()
        elif not self._loop.is_closed():
            try:
                self._loop.call_soon_threadsafe(self._wakeup.set)
            except RuntimeError:
                pass  # loop shut down; nobody is left to wake

    def try_recv(self) -> UpdateEvent | None:
        """Return the next event without waiting, or None if there is none.

        Raises:
            BusLagged: If events were dropped since the last receive.

        """
        with self._lock:
            if self._skipped:
                skipped, self._skipped = self._skipped, 0
                raise BusLagged(skipped)
            if self._backlog:
                return self._backlog.popleft()
            return None

    async def recv(self) -> UpdateEvent:
        """Wait for the next event.

        Raises:
            BusLagged: If events were dropped since the last receive.  The
                remaining backlog is still delivered by later calls.

        """
        while True:
            self._wakeup.clear()
            event = self.try_recv()
            if event is not None:
                return event
            await self._wakeup.wait()

    def close(self) -> None:
        """Stop receiving events.  Idempotent."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._backlog.clear()
        self._bus._unsubscribe(self)

    async def __aenter__(self) -> Subscription:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


class EventBus:
    """Process-wide broadcast channel for ``UpdateEvent``.

    Args:
        capacity: Backlog bound of each subscriber.

    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            msg = f"capacity must be >= 1, got {capacity}"
            raise ValueError(msg)
        self._capacity = capacity
        self._subscribers: set[Subscription] = set()
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def subscriber_count(self) -> int:
        """Number of live subscriptions."""
        with self._lock:
            return len(self._subscribers)

    def subscribe(self) -> Subscription:
        """Register a new subscriber on the running event loop."""
        sub = Subscription(self, self._capacity, asyncio.get_running_loop())
        with self._lock:
            self._subscribers.add(sub)
        return sub

    def _unsubscribe(self, sub: Subscription) -> None:
        with self._lock:
            self._subscribers.discard(sub)

    def publish(self, event: UpdateEvent) -> int:
        """Deliver *event* to every current subscriber without blocking.

        Returns:
            Number of subscribers the event was offered to (0 is not an
            error).

        """
        with self._lock:
            subscribers = tuple(self._subscribers)
        for sub in subscribers:
            sub._offer(event)
        return len(subscribers)
