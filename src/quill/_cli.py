"""Quill CLI — quill serve.

Entry point for the ``quill`` command-line interface.
"""

from __future__ import annotations

import argparse
import logging
import sys

from quill._errors import QuillError


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the quill CLI."""
    parser = argparse.ArgumentParser(
        prog="quill",
        description="Live-reloading Markdown blog server.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # quill serve
    serve_parser = subparsers.add_parser(
        "serve",
        help="Serve a directory of Markdown entries",
    )
    serve_parser.add_argument("root", nargs="?", default=".", help="Blog root directory")
    serve_parser.add_argument(
        "--base-path", default=None, help="Directory holding the Markdown entries",
    )
    serve_parser.add_argument(
        "--file-server-path", default=None, help="Directory served under /files",
    )
    serve_parser.add_argument(
        "--theme", "--handlebars-theme",
        dest="theme_path", default=None,
        help="Theme directory (default: bundled theme)",
    )
    serve_parser.add_argument(
        "--style", dest="style_path", default=None,
        help="Stylesheet that triggers a reload when it changes",
    )
    serve_parser.add_argument("--address", dest="host", default=None, help="Bind address")
    serve_parser.add_argument("--port", type=int, default=None, help="Bind port")
    serve_parser.add_argument(
        "--max-recent", type=int, default=None, help="Entries shown on the home page",
    )
    serve_parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity",
    )

    return parser


def _get_version() -> str:
    """Get the package version."""
    from quill import __version__

    return __version__


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    from quill.app import serve

    if args.command == "serve":
        try:
            serve(
                root=args.root,
                base_path=args.base_path,
                file_server_path=args.file_server_path,
                theme_path=args.theme_path,
                style_path=args.style_path,
                host=args.host,
                port=args.port,
                max_recent=args.max_recent,
            )
        except QuillError as exc:
            print(f"quill: error: {exc}", file=sys.stderr)
            sys.exit(1)


if __name__ == "__main__":
    main()
