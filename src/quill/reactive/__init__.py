"""Reactive layer — change propagation to connected browsers.

Connects watcher events to store mutations and theme reloads, then fans a
``Reload`` hint out over the event bus to every SSE client.
"""

from quill.reactive.bus import EventBus, Reload, Subscription
from quill.reactive.dispatcher import ChangeDispatcher, ThemeDispatcher, drain
from quill.reactive.sse import sse_stream

__all__ = [
    "ChangeDispatcher",
    "EventBus",
    "Reload",
    "Subscription",
    "ThemeDispatcher",
    "drain",
    "sse_stream",
]
