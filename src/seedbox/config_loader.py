"""Load SeedConfig from seedbox.yaml if present.

Merges file config with keyword overrides. Overrides take precedence.
"""

from __future__ import annotations

import tomllib
from dataclasses import fields
from pathlib import Path

import yaml

from seedbox.config import SeedConfig

_CONFIG_KEYS = frozenset(f.name for f in fields(SeedConfig))


def load_config(root: Path, **overrides: object) -> SeedConfig:
    """Load SeedConfig from root, optionally merging seedbox.yaml.

    Looks for seedbox.yaml, seedbox.yml, or seedbox.toml in root. If found,
    loads and merges with overrides. Overrides take precedence.
    """
    file_config = _read_seedbox_config(Path(root))
    merged = {**file_config, **overrides}
    if "headers" in merged and isinstance(merged["headers"], dict):
        merged["headers"] = {str(k): str(v) for k, v in merged["headers"].items()}
    return SeedConfig(**merged)  # type: ignore[arg-type]


def _read_seedbox_config(root: Path) -> dict[str, object]:
    """Read seedbox config from yaml/toml if present. Returns empty dict otherwise."""
    for name in ("seedbox.yaml", "seedbox.yml"):
        path = root / name
        if path.is_file():
            return _parse_yaml(path)
    toml_path = root / "seedbox.toml"
    if toml_path.is_file():
        return _parse_toml(toml_path)
    return {}


def _parse_yaml(path: Path) -> dict[str, object]:
    """Parse YAML config. Returns empty dict on error."""
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except (OSError, yaml.YAMLError):
        return {}
    if not isinstance(data, dict):
        return {}
    return _flatten_seedbox_section(data)


def _parse_toml(path: Path) -> dict[str, object]:
    """Parse TOML config. Returns empty dict on error."""
    try:
        data = tomllib.loads(path.read_text())
    except (OSError, tomllib.TOMLDecodeError):
        return {}
    return _flatten_seedbox_section(data)


def _flatten_seedbox_section(data: dict[str, object]) -> dict[str, object]:
    """Extract seedbox.* keys into top-level config."""
    result: dict[str, object] = {}
    section = data.get("seedbox")
    if isinstance(section, dict):
        for k, v in section.items():
            if k in _CONFIG_KEYS:
                result[k] = v
    for k, v in data.items():
        if k != "seedbox" and k in _CONFIG_KEYS:
            result[k] = v
    return result
