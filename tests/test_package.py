"""Tests for seedbox package exports and metadata."""

import seedbox


class TestPackageMetadata:
    """Package-level exports and metadata."""

    def test_version_string(self) -> None:
        assert isinstance(seedbox.__version__, str)
        assert "0.1.0" in seedbox.__version__

    def test_all_exports_resolvable(self) -> None:
        for name in seedbox.__all__:
            getattr(seedbox, name)

    def test_lazy_seed_export(self) -> None:
        from seedbox.seed import Seed

        assert seedbox.Seed is Seed

    def test_invalid_attribute_raises(self) -> None:
        import pytest

        with pytest.raises(AttributeError, match="no attribute"):
            seedbox.nonexistent_thing  # type: ignore[attr-defined]  # noqa: B018
