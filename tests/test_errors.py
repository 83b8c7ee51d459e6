"""Tests for quill._errors."""

import pytest

from quill._errors import (
    BusLagged,
    ConfigError,
    ContentError,
    EntryIOError,
    FrontMatterError,
    ParseError,
    QuillError,
    SchemaError,
    TemplateLoadError,
    TemplateRenderError,
    ThemeError,
    WatcherError,
)


class TestErrorHierarchy:
    """All quill errors inherit from QuillError."""

    def test_quill_error_is_exception(self) -> None:
        assert issubclass(QuillError, Exception)

    @pytest.mark.parametrize(
        "error_cls",
        [ConfigError, ContentError, ThemeError, WatcherError, BusLagged],
    )
    def test_top_level_errors_inherit(self, error_cls: type[QuillError]) -> None:
        assert issubclass(error_cls, QuillError)

    def test_ingest_errors_are_content_errors(self) -> None:
        for error_cls in (EntryIOError, ParseError, FrontMatterError, SchemaError):
            assert issubclass(error_cls, ContentError)

    def test_front_matter_and_schema_are_parse_errors(self) -> None:
        assert issubclass(FrontMatterError, ParseError)
        assert issubclass(SchemaError, ParseError)

    def test_template_errors_are_theme_errors(self) -> None:
        assert issubclass(TemplateLoadError, ThemeError)
        assert issubclass(TemplateRenderError, ThemeError)

    def test_catch_all_quill_errors(self) -> None:
        """All specific errors are catchable via QuillError."""
        for error_cls in (ConfigError, SchemaError, TemplateLoadError, WatcherError):
            with pytest.raises(QuillError):
                raise error_cls("test")


class TestBusLagged:
    def test_carries_skipped_count(self) -> None:
        err = BusLagged(7)
        assert err.skipped == 7
        assert "7" in str(err)
