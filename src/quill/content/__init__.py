"""Content layer — markdown entries as cached, ordered data.

Parses entries (front matter + CommonMark body), keeps them in a
reader/writer guarded store with a bounded recency view, watches the
content directory, and routes HTTP requests to themed pages.
"""

from quill.content.entry import Entry, EntryMetadata, EntryParser, is_eligible
from quill.content.router import BlogRouter
from quill.content.store import EntryStore
from quill.content.watcher import ChangeEvent, DirectoryWatcher, classify_changes

__all__ = [
    "BlogRouter",
    "ChangeEvent",
    "DirectoryWatcher",
    "Entry",
    "EntryMetadata",
    "EntryParser",
    "EntryStore",
    "classify_changes",
    "is_eligible",
]
