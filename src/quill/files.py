"""Asset server — raw files from a directory with a guessed MIME type.

Request paths are cleaned lexically before they are joined to the base
directory, so ``..`` segments can never climb out of it.
"""

from __future__ import annotations

import logging
import mimetypes
import posixpath
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

_DEFAULT_MIME = "text/plain"


def clean_path(request_path: str) -> str:
    """Normalise *request_path* into a relative path with no ``..`` left.

    Backslashes count as separators; leading ``..`` segments that would
    escape the root are dropped, like resolving against ``/``.

    """
    normalized = posixpath.normpath("/" + request_path.replace("\\", "/"))
    # normpath keeps a leading "//"; strip every root marker.
    return normalized.lstrip("/")


def guess_mime(path: Path) -> str:
    mime, _encoding = mimetypes.guess_type(path.name)
    return mime or _DEFAULT_MIME


@dataclass(frozen=True, slots=True)
class ServedFile:
    """A file ready to send.

    Attributes:
        path: Absolute path of the file on disk.
        data: File contents.
        mime_type: Guessed content type.

    """

    path: Path
    data: bytes
    mime_type: str


class FileServer:
    """Serves files below *base_path*.

    Args:
        base_path: Directory assets are served from.

    """

    def __init__(self, base_path: Path) -> None:
        self._base_path = base_path

    @property
    def base_path(self) -> Path:
        return self._base_path

    def resolve(self, request_path: str) -> Path:
        """Map a request path to a filesystem path inside the base directory."""
        relative = clean_path(request_path)
        return self._base_path / relative if relative else self._base_path

    def serve(self, request_path: str) -> ServedFile | None:
        """Read the file for *request_path*; None if it is missing or not a file."""
        path = self.resolve(request_path)
        if not path.is_file():
            return None
        try:
            data = path.read_bytes()
        except OSError as exc:
            logger.warning("Cannot serve %s: %s", path, exc)
            return None
        return ServedFile(path=path, data=data, mime_type=guess_mime(path))
