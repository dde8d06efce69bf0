"""Tests for seedbox.config."""

import pytest

from seedbox._errors import ConfigError
from seedbox.config import SeedConfig


class TestSeedConfig:
    """SeedConfig — frozen dataclass with sensible defaults."""

    def test_defaults(self) -> None:
        config = SeedConfig()
        assert config.name == "app"
        assert config.on_duplicate == "reject"
        assert config.observe is True
        assert config.max_events == 10_000
        assert config.base_url == ""
        assert config.timeout == 30.0
        assert config.headers == {}

    def test_frozen(self) -> None:
        config = SeedConfig()
        with pytest.raises(AttributeError):
            config.name = "other"  # type: ignore[misc]

    def test_replace_policy(self) -> None:
        assert SeedConfig(on_duplicate="replace").on_duplicate == "replace"

    def test_invalid_policy(self) -> None:
        with pytest.raises(ConfigError, match="on_duplicate"):
            SeedConfig(on_duplicate="merge")  # type: ignore[arg-type]

    def test_invalid_max_events(self) -> None:
        with pytest.raises(ConfigError, match="max_events"):
            SeedConfig(max_events=0)

    def test_invalid_timeout(self) -> None:
        with pytest.raises(ConfigError, match="timeout"):
            SeedConfig(timeout=-1)
