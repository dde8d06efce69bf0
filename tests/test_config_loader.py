"""Tests for seedbox.config_loader."""

from pathlib import Path

from seedbox.config_loader import load_config


class TestLoadConfig:
    """load_config — file discovery and override precedence."""

    def test_no_file_gives_defaults(self, tmp_path: Path) -> None:
        config = load_config(tmp_path)
        assert config.name == "app"

    def test_yaml_section(self, tmp_path: Path) -> None:
        (tmp_path / "seedbox.yaml").write_text(
            "seedbox:\n  name: shop\n  on_duplicate: replace\n  headers:\n    X-Version: 2\n"
        )
        config = load_config(tmp_path)
        assert config.name == "shop"
        assert config.on_duplicate == "replace"
        assert config.headers == {"X-Version": "2"}

    def test_yml_top_level_keys(self, tmp_path: Path) -> None:
        (tmp_path / "seedbox.yml").write_text("base_url: https://api.example.com\nunknown: 1\n")
        config = load_config(tmp_path)
        assert config.base_url == "https://api.example.com"

    def test_toml(self, tmp_path: Path) -> None:
        (tmp_path / "seedbox.toml").write_text('[seedbox]\ntimeout = 5.0\nobserve = false\n')
        config = load_config(tmp_path)
        assert config.timeout == 5.0
        assert config.observe is False

    def test_overrides_win(self, tmp_path: Path) -> None:
        (tmp_path / "seedbox.yaml").write_text("seedbox:\n  name: shop\n")
        config = load_config(tmp_path, name="override")
        assert config.name == "override"

    def test_invalid_yaml_gives_defaults(self, tmp_path: Path) -> None:
        (tmp_path / "seedbox.yaml").write_text("seedbox: [unclosed\n")
        assert load_config(tmp_path).name == "app"

    def test_non_mapping_yaml_ignored(self, tmp_path: Path) -> None:
        (tmp_path / "seedbox.yaml").write_text("- a\n- b\n")
        assert load_config(tmp_path).name == "app"

    def test_yaml_preferred_over_toml(self, tmp_path: Path) -> None:
        (tmp_path / "seedbox.yaml").write_text("name: from-yaml\n")
        (tmp_path / "seedbox.toml").write_text('name = "from-toml"\n')
        assert load_config(tmp_path).name == "from-yaml"
