"""Quill configuration.

QuillConfig is the central configuration object, frozen after creation.
"""

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True, slots=True)
class QuillConfig:
    """Configuration for a Quill blog server.

    Attributes:
        root: Directory relative paths are resolved against.
              Always resolved to an absolute path on construction.
        base_path: Directory containing the Markdown entries.
        file_server_path: Directory served under ``/files``.
        theme_path: Directory containing the Jinja2 theme.  ``None`` selects
            the bundled default theme.
        style_path: Extra stylesheet watched alongside the theme.  A change
            only triggers a browser reload.
        host: Bind address.
        port: Bind port.
        max_recent: Length bound of the "recent" view on the home page.
        bus_capacity: Per-subscriber backlog of the reload event bus.
        ingest_queue_size: Bound of each watcher's pending-event queue.
        debounce_ms: Watcher debounce window in milliseconds.
        step_ms: Watcher polling step in milliseconds.
        write_timeout: Seconds a store write waits for the exclusive guard.
        heartbeat_interval: Seconds between SSE keep-alive comments
            (0 disables them).
        not_found_status: Status code of the themed "entry not found" page.
        reload_on_remove: Broadcast a reload when an entry is deleted.
        unsafe_html: Let raw HTML in Markdown pass through to the output.
        blog_title: Title exposed to templates as ``blog_info.title``.
        blog_description: Exposed to templates as ``blog_info.description``.

    """

    root: Path = field(default_factory=Path.cwd)
    base_path: Path = field(default_factory=lambda: Path("blog"))
    file_server_path: Path = field(default_factory=lambda: Path("files"))
    theme_path: Path | None = None
    style_path: Path | None = None
    host: str = "127.0.0.1"
    port: int = 3000
    max_recent: int = 10
    bus_capacity: int = 500
    ingest_queue_size: int = 1024
    debounce_ms: int = 300
    step_ms: int = 50
    write_timeout: float = 1.0
    heartbeat_interval: float = 15.0
    not_found_status: int = 404
    reload_on_remove: bool = False
    unsafe_html: bool = False
    blog_title: str = "Blog"
    blog_description: str = ""

    def __post_init__(self) -> None:
        # watchfiles reports absolute paths; keep everything comparable.
        if not self.root.is_absolute():
            object.__setattr__(self, "root", self.root.resolve())
        if self.max_recent < 0:
            msg = f"max_recent must be >= 0, got {self.max_recent}"
            raise ValueError(msg)
        if self.bus_capacity < 1:
            msg = f"bus_capacity must be >= 1, got {self.bus_capacity}"
            raise ValueError(msg)

    def _resolve(self, path: Path) -> Path:
        if path.is_absolute():
            return path
        return self.root / path

    @property
    def content_path(self) -> Path:
        """Absolute path to the content directory."""
        return self._resolve(self.base_path)

    @property
    def files_path(self) -> Path:
        """Absolute path to the asset directory."""
        return self._resolve(self.file_server_path)

    @property
    def theme_dir(self) -> Path:
        """Absolute path to the active theme directory."""
        if self.theme_path is None:
            from quill.theme import bundled_theme_path

            return bundled_theme_path()
        return self._resolve(self.theme_path)

    @property
    def style_file(self) -> Path | None:
        """Absolute path to the pinned stylesheet, if any."""
        if self.style_path is None:
            return None
        return self._resolve(self.style_path)

    @property
    def blog_info(self) -> dict[str, str]:
        """Site-wide values every template receives as ``blog_info``."""
        return {"title": self.blog_title, "description": self.blog_description}
