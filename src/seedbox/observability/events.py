"""Engine event model.

Defines the events recorded while models are registered, actions are
dispatched and effects complete.

All events are frozen dataclasses with:
- ``timestamp_ns``: Monotonic nanosecond timestamp
- Descriptive fields for the specific event type

Thread Safety:
    All events are frozen (immutable) and safe to share across threads.

"""

import time
from dataclasses import dataclass
from typing import TypeAlias


# ---------------------------------------------------------------------------
# Registry events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ModelRegistered:
    """A model was registered.

    Attributes:
        name: Model name.
        actions: Number of derived action creators.
        reducers: Number of reducer types installed for the model.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    name: str
    actions: int
    reducers: int
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Dispatch events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ActionDispatched:
    """An action reached the base dispatch.

    Attributes:
        type: Canonical action type (or effect intent name).
        model: Model segment of the type.
        status: Lifecycle status segment, empty for plain actions.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    type: str
    model: str
    status: str
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class ActionFailed:
    """An ``error`` lifecycle action was dispatched.

    Attributes:
        type: Canonical ``.../error`` action type.
        message: Error message carried in the payload.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    type: str
    message: str
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class StateChanged:
    """A model's state slice changed and its revision was bumped."""

    model: str
    revision: int
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Effect events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class EffectCompleted:
    """An effect generator finished.

    Attributes:
        type: Canonical action type of the effect.
        ok: False if the generator raised.
        duration_ms: Time from intent to completion in milliseconds.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    type: str
    ok: bool
    duration_ms: float
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Union type
# ---------------------------------------------------------------------------

EngineEvent: TypeAlias = (
    ModelRegistered
    | ActionDispatched
    | ActionFailed
    | StateChanged
    | EffectCompleted
)


def now_ns() -> int:
    """Return the current monotonic clock value in nanoseconds."""
    return time.monotonic_ns()
