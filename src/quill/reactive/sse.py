"""SSE bridge — turns a bus subscription into a server-sent-event stream.

Every ``Reload`` becomes a ``data: reload`` frame.  A lag notice becomes
the same frame: reloading is idempotent on the client, so a subscriber that
missed events just reloads once.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from quill._errors import BusLagged
from quill.reactive.bus import Reload

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from quill.reactive.bus import Subscription, UpdateEvent

RELOAD_FRAME = "data: reload\n\n"
HEARTBEAT_FRAME = ": keep-alive\n\n"


def format_sse(data: str, *, event: str | None = None) -> str:
    """Encode one SSE frame.  Multi-line data is split per the SSE grammar."""
    lines = [f"event: {event}"] if event else []
    lines.extend(f"data: {line}" for line in data.split("\n"))
    return "\n".join(lines) + "\n\n"


def frame_for(event: UpdateEvent) -> str:
    """Map an update event to its wire frame."""
    match event:
        case Reload():
            return RELOAD_FRAME
    msg = f"unsupported update event {event!r}"
    raise TypeError(msg)


async def sse_stream(
    subscription: Subscription,
    *,
    heartbeat: float | None = 15.0,
) -> AsyncIterator[str]:
    """Yield SSE frames for *subscription* until the consumer goes away.

    Args:
        subscription: Bus subscription to drain; closed when the stream ends.
        heartbeat: Seconds of silence after which a comment frame is sent
            to keep proxies from closing the connection.  ``None`` or ``0``
            disables it.

    The stream ends when the client disconnects (the HTTP server cancels or
    closes the generator).

    """
    try:
        while True:
            try:
                if heartbeat:
                    event = await asyncio.wait_for(subscription.recv(), timeout=heartbeat)
                else:
                    event = await subscription.recv()
            except TimeoutError:
                yield HEARTBEAT_FRAME
                continue
            except BusLagged:
                yield RELOAD_FRAME
                continue
            yield frame_for(event)
    finally:
        subscription.close()
