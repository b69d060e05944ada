"""Tests for iwgui package exports and metadata."""

import iwgui


class TestPackageMetadata:
    """Package-level exports and metadata."""

    def test_version_string(self) -> None:
        assert isinstance(iwgui.__version__, str)
        assert "0.1.0" in iwgui.__version__

    def test_all_exports_resolvable(self) -> None:
        for name in iwgui.__all__:
            getattr(iwgui, name)

    def test_lazy_exports_are_the_real_objects(self) -> None:
        from iwgui.gui.builder import Frame
        from iwgui.gui.refs import Ref

        assert iwgui.Frame is Frame
        assert iwgui.Ref is Ref

    def test_invalid_attribute_raises(self) -> None:
        import pytest

        with pytest.raises(AttributeError, match="no attribute"):
            iwgui.nonexistent_thing  # type: ignore[attr-defined]  # noqa: B018
