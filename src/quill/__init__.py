"""Quill — a live-reloading Markdown blog server.

Serves a directory of Markdown entries through a Jinja2 theme.  Entries are
parsed once into an in-memory store; saving a file (or a template) re-parses
only what changed and tells every open browser tab to reload.

Quick start::

    import quill

    quill.serve("my-blog/")          # serves my-blog/blog/*.md on :3000

Building the ASGI app yourself::

    from quill import QuillConfig, create_app

    app = create_app(QuillConfig(root=Path("my-blog")))

"""

__version__ = "0.1.0"
__all__ = [
    "QuillConfig",
    "__version__",
    "create_app",
    "serve",
]


def __getattr__(name: str) -> object:
    """Lazy imports for the public API.

    Keeps ``import quill`` fast; the web stack loads on first use.
    """
    if name == "QuillConfig":
        from quill.config import QuillConfig

        return QuillConfig

    if name == "create_app":
        from quill.app import create_app

        return create_app

    if name == "serve":
        from quill.app import serve

        return serve

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
