"""Engine collector — records registry, dispatch and effect events.

The ``Seed`` owns one collector when observation is enabled and feeds it
from the base dispatch, the registry and the effect runner.

Thread Safety:
    The collector delegates to ``EventLog`` which is internally locked.

"""

from __future__ import annotations

from seedbox.action_type import SEP
from seedbox.observability.events import (
    ActionDispatched,
    ActionFailed,
    EffectCompleted,
    ModelRegistered,
    StateChanged,
    now_ns,
)
from seedbox.observability.log import EventLog


class EngineCollector:
    """Event collector for one engine context.

    Args:
        log: The EventLog to store events in.

    """

    __slots__ = ("_log",)

    def __init__(self, log: EventLog | None = None) -> None:
        self._log = log if log is not None else EventLog()

    @property
    def log(self) -> EventLog:
        """The underlying event log."""
        return self._log

    # ----- Registry events -----

    def record_registration(self, name: str, *, actions: int = 0, reducers: int = 0) -> None:
        """Record a model registration."""
        self._log.append(
            ModelRegistered(
                name=name,
                actions=actions,
                reducers=reducers,
                timestamp_ns=now_ns(),
            )
        )

    # ----- Dispatch events -----

    def record_dispatch(self, action_type: str) -> None:
        """Record an action reaching the base dispatch."""
        parts = action_type.split(SEP)
        self._log.append(
            ActionDispatched(
                type=action_type,
                model=parts[0],
                status=parts[2] if len(parts) > 2 else "",
                timestamp_ns=now_ns(),
            )
        )

    def record_failure(self, action_type: str, message: str) -> None:
        """Record an error lifecycle dispatch."""
        self._log.append(
            ActionFailed(
                type=action_type,
                message=message,
                timestamp_ns=now_ns(),
            )
        )

    def record_state_change(self, model: str, revision: int) -> None:
        """Record a revision bump."""
        self._log.append(
            StateChanged(model=model, revision=revision, timestamp_ns=now_ns())
        )

    # ----- Effect events -----

    def record_effect(self, action_type: str, *, ok: bool, duration_ms: float = 0.0) -> None:
        """Record an effect completion."""
        self._log.append(
            EffectCompleted(
                type=action_type,
                ok=ok,
                duration_ms=duration_ms,
                timestamp_ns=now_ns(),
            )
        )
