"""Engine observability — a unified event model for the dispatch engine.

Records events from:
- **Registry**: model registration
- **Dispatch**: actions reaching the store, error lifecycle actions, revision bumps
- **Effects**: generator completion and duration

All events are frozen dataclasses with nanosecond timestamps.

Quick Start:
    >>> from seedbox.observability import EngineCollector, EventLog
    >>> log = EventLog()
    >>> collector = EngineCollector(log)
    >>> collector.record_dispatch("user/load/start")

"""

from seedbox.observability.collector import EngineCollector
from seedbox.observability.events import (
    ActionDispatched,
    ActionFailed,
    EffectCompleted,
    EngineEvent,
    ModelRegistered,
    StateChanged,
    now_ns,
)
from seedbox.observability.log import EventLog

__all__ = [
    "ActionDispatched",
    "ActionFailed",
    "EffectCompleted",
    "EngineCollector",
    "EngineEvent",
    "EventLog",
    "ModelRegistered",
    "StateChanged",
    "now_ns",
]
