"""Startup banner — status output printed once the blog is loaded.

Detects ``NO_COLOR`` / ``TERM`` for safe fallback.
"""

from __future__ import annotations

import os
import sys
from typing import TYPE_CHECKING

from quill.reactive.hmr import EVENTS_ENDPOINT

if TYPE_CHECKING:
    from quill.config import QuillConfig


# ---------------------------------------------------------------------------
# ANSI helpers, respecting NO_COLOR (https://no-color.org)
# ---------------------------------------------------------------------------

def _supports_color() -> bool:
    """Return True if the terminal supports ANSI colors."""
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("TERM") == "dumb":
        return False
    return hasattr(sys.stderr, "isatty") and sys.stderr.isatty()


_COLOR = _supports_color()

_RESET = "\033[0m" if _COLOR else ""
_BOLD = "\033[1m" if _COLOR else ""
_DIM = "\033[2m" if _COLOR else ""
_CYAN = "\033[36m" if _COLOR else ""
_GREEN = "\033[32m" if _COLOR else ""
_YELLOW = "\033[33m" if _COLOR else ""


def _clickable_url(url: str) -> str:
    """Wrap *url* in an OSC 8 hyperlink escape if the terminal supports it."""
    if not _COLOR:
        return url
    return f"\033]8;;{url}\033\\{_BOLD}{_CYAN}{url}{_RESET}\033]8;;\033\\"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def format_banner(
    config: QuillConfig,
    entry_count: int,
    *,
    load_ms: float = 0.0,
    warnings: list[str] | None = None,
) -> str:
    """Build the banner text shown at startup.

    Args:
        config: Resolved QuillConfig.
        entry_count: Number of entries loaded by the initial scan.
        load_ms: Time spent on the initial scan in milliseconds.
        warnings: Optional list of warning messages to display.

    """
    from quill import __version__

    lines: list[str] = [
        "",
        f"  {_BOLD}Quill{_RESET} {_DIM}v{__version__}{_RESET}",
        f"  {_DIM}{'─' * 43}{_RESET}",
    ]

    label = "entry" if entry_count == 1 else "entries"
    timing = f" {_DIM}in {load_ms:.0f}ms{_RESET}" if load_ms > 0 else ""
    lines.append(f"  {_DIM}├─{_RESET} {entry_count} {label} loaded{timing}")
    lines.append(f"  {_DIM}├─{_RESET} content: {_DIM}{config.content_path}{_RESET}")
    lines.append(f"  {_DIM}├─{_RESET} theme: {_DIM}{config.theme_dir}{_RESET}")
    if config.style_file is not None:
        lines.append(f"  {_DIM}├─{_RESET} style: {_DIM}{config.style_file}{_RESET}")
    lines.append(
        f"  {_DIM}└─{_RESET} {_GREEN}live{_RESET} reload on {_DIM}{EVENTS_ENDPOINT}{_RESET}"
    )

    url = f"http://{config.host}:{config.port}"
    lines.append("")
    lines.append(f"  {_clickable_url(url)}")

    if warnings:
        lines.append("")
        lines.extend(f"  {_YELLOW}!{_RESET} {w}" for w in warnings)

    lines.append("")
    return "\n".join(lines)


def print_banner(
    config: QuillConfig,
    entry_count: int,
    *,
    load_ms: float = 0.0,
    warnings: list[str] | None = None,
) -> None:
    """Print the Quill startup banner to stderr."""
    print(
        format_banner(config, entry_count, load_ms=load_ms, warnings=warnings),
        file=sys.stderr,
    )
