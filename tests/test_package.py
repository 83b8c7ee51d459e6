"""Tests for quill package exports and metadata."""

import pytest

import quill
from quill.reactive.hmr import EVENTS_ENDPOINT, HOT_RELOAD_SCRIPT


class TestPackageMetadata:
    """Package-level exports and metadata."""

    def test_version_string(self) -> None:
        assert isinstance(quill.__version__, str)
        assert quill.__version__ == "0.1.0"

    def test_all_exports_resolvable(self) -> None:
        for name in quill.__all__:
            getattr(quill, name)

    def test_invalid_attribute_raises(self) -> None:
        with pytest.raises(AttributeError, match="no attribute"):
            quill.nonexistent_thing  # type: ignore[attr-defined]  # noqa: B018


class TestHotReloadScript:
    def test_points_at_events_endpoint(self) -> None:
        assert f"EventSource('{EVENTS_ENDPOINT}')" in HOT_RELOAD_SCRIPT

    def test_reloads_on_message(self) -> None:
        assert "location.reload()" in HOT_RELOAD_SCRIPT

    def test_free_of_template_delimiters(self) -> None:
        for delimiter in ("{{", "{%", "{#"):
            assert delimiter not in HOT_RELOAD_SCRIPT
