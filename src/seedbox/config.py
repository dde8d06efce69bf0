"""Seedbox configuration.

SeedConfig is the central configuration object, frozen after creation.
"""

from dataclasses import dataclass, field
from typing import Literal

from seedbox._errors import ConfigError

DUPLICATE_POLICIES = ("reject", "replace")


@dataclass(frozen=True, slots=True)
class SeedConfig:
    """Configuration for a Seed engine context.

    Attributes:
        name: Engine name, used in log messages.
        on_duplicate: What to do when a model name is registered twice:
            ``"reject"`` logs and keeps the first model, ``"replace"``
            unregisters the old model and registers the new one.
        observe: Record engine events in an ``EventLog``.
        max_events: Capacity of the event log ring buffer.
        base_url: Base URL for request descriptors.
        timeout: Request timeout in seconds.
        headers: Default headers sent with every request descriptor.

    """

    name: str = "app"
    on_duplicate: Literal["reject", "replace"] = "reject"
    observe: bool = True
    max_events: int = 10_000
    base_url: str = ""
    timeout: float = 30.0
    headers: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.on_duplicate not in DUPLICATE_POLICIES:
            msg = (
                f"on_duplicate must be one of {DUPLICATE_POLICIES}, "
                f"got {self.on_duplicate!r}"
            )
            raise ConfigError(msg)
        if self.max_events <= 0:
            msg = f"max_events must be positive, got {self.max_events}"
            raise ConfigError(msg)
        if self.timeout <= 0:
            msg = f"timeout must be positive, got {self.timeout}"
            raise ConfigError(msg)
