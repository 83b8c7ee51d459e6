"""Quill error hierarchy.

All quill-specific errors inherit from QuillError for easy catching.
"""


class QuillError(Exception):
    """Base error for all quill operations."""


class ConfigError(QuillError):
    """Invalid or missing configuration, or a fatal startup failure."""


class ContentError(QuillError):
    """Error while turning a source file into an entry."""


class EntryIOError(ContentError):
    """The source file could not be read."""


class ParseError(ContentError):
    """The source file was read but could not be parsed."""


class FrontMatterError(ParseError):
    """Missing or invalid YAML front-matter block."""


class SchemaError(ParseError):
    """Front-matter fields are absent or have the wrong type."""


class ThemeError(QuillError):
    """Error in the template layer."""


class TemplateLoadError(ThemeError):
    """A theme directory could not be loaded into a snapshot."""


class TemplateRenderError(ThemeError):
    """A template failed while rendering."""


class WatcherError(QuillError):
    """The filesystem watcher backend reported an error."""


class BusLagged(QuillError):
    """A subscriber fell behind and events were dropped for it.

    Attributes:
        skipped: Number of events dropped since the last receive.

    """

    def __init__(self, skipped: int) -> None:
        super().__init__(f"subscriber lagged, {skipped} event(s) skipped")
        self.skipped = skipped
