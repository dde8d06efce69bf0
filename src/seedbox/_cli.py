"""Seedbox CLI — seedbox inspect.

Entry point for the ``seedbox`` command-line interface.
"""

from __future__ import annotations

import argparse
import importlib
import logging
import sys
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from seedbox.model import Model


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the seedbox CLI."""
    parser = argparse.ArgumentParser(
        prog="seedbox",
        description="Model-driven action engine.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # seedbox inspect
    inspect_parser = subparsers.add_parser(
        "inspect",
        help="Register models and print their derived actions and reducers",
    )
    inspect_parser.add_argument(
        "target", help="module:attribute holding a model declaration or a list of them",
    )
    inspect_parser.add_argument(
        "--config", default=None, help="Directory containing seedbox.yaml / seedbox.toml",
    )

    return parser


def _get_version() -> str:
    """Get the package version."""
    from seedbox import __version__

    return __version__


def _load_target(target: str) -> Any:
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        msg = f"Expected 'module:attribute', got {target!r}"
        raise ValueError(msg)
    value: Any = importlib.import_module(module_name)
    for part in attr.split("."):
        value = getattr(value, part)
    return value


def _describe(model: Model) -> list[str]:
    lines = [f"{model.name}  (revision {model.revision})"]
    plain = sorted(name for name in model.actions if name not in model.effects)
    lines.append(f"  actions:   {', '.join(plain) or '-'}")
    lines.append(f"  effects:   {', '.join(sorted(model.effects)) or '-'}")
    lines.append("  reducers:")
    lines.extend(f"    {action_type}" for action_type in model.reducers)
    return lines


def inspect_target(target: str, config_root: str | None = None) -> list[str]:
    """Register the models found at ``target`` and describe each one."""
    from seedbox.config import SeedConfig
    from seedbox.config_loader import load_config
    from seedbox.seed import Seed

    config = load_config(config_root) if config_root else SeedConfig()
    declared = _load_target(target)
    if not isinstance(declared, (list, tuple)):
        declared = [declared]

    seed = Seed(config)
    lines: list[str] = []
    for spec in declared:
        model = seed.model(spec)
        if model is not None:
            lines.extend(_describe(model))
    return lines


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    if args.command == "inspect":
        try:
            lines = inspect_target(args.target, args.config)
        except (ImportError, AttributeError, ValueError) as exc:
            print(f"seedbox: {exc}", file=sys.stderr)
            sys.exit(1)
        for line in lines:
            print(line)


if __name__ == "__main__":
    main()
