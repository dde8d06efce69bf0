"""Seedbox — a model-driven action engine.

Declare models (a state slice, reducers, and actions); the engine derives
namespaced action types, builds processors for each action, runs them
through an interceptor pipeline into a single store, and resolves binding
descriptors into props for consumers.

Quick start::

    from seedbox import Seed

    async with Seed() as seed:
        seed.model({"name": "counter", "state": {"n": 0},
                    "reducers": {"inc": lambda s, p: {"n": s["n"] + 1}}})
        seed.dispatch({"type": "counter/inc"})

"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from seedbox.config import SeedConfig
    from seedbox.model import BaseModel, action
    from seedbox.seed import Seed

__version__ = "0.1.0"
__all__ = [
    "BaseModel",
    "Seed",
    "SeedConfig",
    "__version__",
    "action",
    "load_config",
]


def __getattr__(name: str) -> object:
    """Lazy imports for the public API."""
    if name == "Seed":
        from seedbox.seed import Seed

        return Seed

    if name == "SeedConfig":
        from seedbox.config import SeedConfig

        return SeedConfig

    if name == "load_config":
        from seedbox.config_loader import load_config

        return load_config

    if name == "BaseModel":
        from seedbox.model import BaseModel

        return BaseModel

    if name == "action":
        from seedbox.model import action

        return action

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
