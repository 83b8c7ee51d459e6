"""Blog router — the HTTP surface over the store, theme and event bus.

Routes:
    ``GET /``                redirect to ``/blog``
    ``GET /blog``            home page with the recent view
    ``GET /blog/{name}``     one entry, or the themed "not found" page
    ``GET /files/{path}``    raw asset with a guessed MIME type
    ``GET /events``          server-sent reload events
    ``GET /__quill/stats``   pipeline event summary and recent events (JSON)

Handlers only read shared state: the store under its shared guard and the
theme through a snapshot taken once per request.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from starlette.responses import (
    HTMLResponse,
    JSONResponse,
    PlainTextResponse,
    RedirectResponse,
    Response,
    StreamingResponse,
)
from starlette.routing import Route

from quill.observability.log import event_to_dict
from quill.reactive.hmr import EVENTS_ENDPOINT
from quill.reactive.sse import sse_stream

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from starlette.requests import Request

    from quill.config import QuillConfig
    from quill.content.store import EntryStore
    from quill.files import FileServer
    from quill.observability.collector import EventCollector
    from quill.reactive.bus import EventBus
    from quill.theme import ThemeRegistry


BLOG_PREFIX = "/blog"
FILES_PREFIX = "/files"
SSE_ENDPOINT = EVENTS_ENDPOINT
STATS_ENDPOINT = "/__quill/stats"
DEFAULT_STATS_LIMIT = 20


class BlogRouter:
    """Builds the Starlette routes for a blog.

    Args:
        config: Server configuration (blog info, statuses, heartbeat).
        store: Entry store read by the page handlers.
        theme: Theme registry used to render pages.
        bus: Event bus the SSE endpoint subscribes to.
        files: Asset server behind ``/files``.
        collector: Observability sink exposed on the stats endpoint.

    """

    def __init__(
        self,
        config: QuillConfig,
        store: EntryStore,
        theme: ThemeRegistry,
        bus: EventBus,
        files: FileServer,
        collector: EventCollector | None = None,
    ) -> None:
        self._config = config
        self._store = store
        self._theme = theme
        self._bus = bus
        self._files = files
        self._collector = collector

    def routes(self) -> list[Route]:
        routes = [
            Route("/", self.root, methods=["GET"], name="blog:root"),
            Route(BLOG_PREFIX, self.home, methods=["GET"], name="blog:home"),
            Route(f"{BLOG_PREFIX}/{{name}}", self.entry, methods=["GET"], name="blog:entry"),
            Route(f"{FILES_PREFIX}/{{path:path}}", self.file, methods=["GET"], name="blog:files"),
            Route(SSE_ENDPOINT, self.events, methods=["GET"], name="blog:events"),
        ]
        if self._collector is not None:
            routes.append(
                Route(
                    STATS_ENDPOINT,
                    self._stats_endpoint(self._collector),
                    methods=["GET"],
                    name="blog:stats",
                )
            )
        return routes

    async def root(self, request: Request) -> Response:
        return RedirectResponse(BLOG_PREFIX)

    async def home(self, request: Request) -> Response:
        snapshot = self._theme.current()
        body = snapshot.render_home(self._config.blog_info, self._store.recent())
        return HTMLResponse(body)

    async def entry(self, request: Request) -> Response:
        name = request.path_params["name"]
        snapshot = self._theme.current()
        entry = self._store.get(name)
        if entry is None:
            body = snapshot.render_not_found(self._config.blog_info, name)
            return HTMLResponse(body, status_code=self._config.not_found_status)
        return HTMLResponse(snapshot.render_entry(self._config.blog_info, entry))

    async def file(self, request: Request) -> Response:
        served = await asyncio.to_thread(self._files.serve, request.path_params["path"])
        if served is None:
            return PlainTextResponse("Not found", status_code=404)
        return Response(served.data, media_type=served.mime_type)

    async def events(self, request: Request) -> Response:
        subscription = self._bus.subscribe()
        heartbeat = self._config.heartbeat_interval or None
        return StreamingResponse(
            sse_stream(subscription, heartbeat=heartbeat),
            media_type="text/event-stream",
            headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
        )

    def _stats_endpoint(self, collector: EventCollector) -> Callable[[Request], Awaitable[Response]]:
        """Build the stats handler bound to *collector*.

        Query parameters ``kind``, ``name`` and ``limit`` select which
        recent pipeline events are listed under ``"events"``.

        """
        log = collector.log

        async def stats(request: Request) -> Response:
            params = request.query_params
            try:
                limit = int(params.get("limit", DEFAULT_STATS_LIMIT))
                events = log.query(kind=params.get("kind"), name=params.get("name"), limit=limit)
            except ValueError as exc:
                return PlainTextResponse(str(exc), status_code=400)
            return JSONResponse(
                {
                    "event_log": log.stats(),
                    "events": [event_to_dict(event) for event in events],
                    "entries": len(self._store),
                    "recent": [entry.name for entry in self._store.recent()],
                    "subscribers": self._bus.subscriber_count,
                    "theme": str(self._theme.theme_dir),
                }
            )

        return stats
