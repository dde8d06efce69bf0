"""Event log — bounded record of what the engine did.

Keeps the most recent ``EngineEvent`` objects and answers the questions a
developer asks while debugging a store: what happened to this model, which
actions failed, and how far each model's revision has moved.

Thread Safety:
    All methods are protected by a ``threading.Lock``.

"""

import threading
from collections import Counter, deque

from seedbox.action_type import SEP
from seedbox.observability.events import (
    ActionDispatched,
    ActionFailed,
    EffectCompleted,
    EngineEvent,
    ModelRegistered,
    StateChanged,
)


def event_model(event: EngineEvent) -> str:
    """Name of the model an event concerns."""
    if isinstance(event, ModelRegistered):
        return event.name
    if isinstance(event, (ActionDispatched, StateChanged)):
        return event.model
    # intent names ("user.sync") and canonical types ("user/sync") both lead with the model
    return event.type.split(SEP, 1)[0].split(".", 1)[0]


class EventLog:
    """Ring buffer of engine events.

    Args:
        max_events: Events kept before the oldest are dropped.

    """

    __slots__ = ("_events", "_lock")

    def __init__(self, max_events: int = 10_000) -> None:
        self._events: deque[EngineEvent] = deque(maxlen=max_events)
        self._lock = threading.Lock()

    @property
    def max_events(self) -> int:
        return self._events.maxlen or 0

    def append(self, event: EngineEvent) -> None:
        with self._lock:
            self._events.append(event)

    def _snapshot(self) -> list[EngineEvent]:
        with self._lock:
            return list(self._events)

    def query(
        self,
        *,
        kind: type | None = None,
        model: str | None = None,
        status: str | None = None,
        limit: int = 100,
    ) -> list[EngineEvent]:
        """Matching events, most recent first.

        Args:
            kind: Only events of this class.
            model: Only events concerning this model.
            status: Only dispatches with this lifecycle status (``""`` for
                plain actions).
            limit: Maximum number of events returned.

        """
        results: list[EngineEvent] = []
        for event in reversed(self._snapshot()):
            if len(results) >= limit:
                break
            if kind is not None and not isinstance(event, kind):
                continue
            if model is not None and event_model(event) != model:
                continue
            if status is not None and getattr(event, "status", None) != status:
                continue
            results.append(event)
        return results

    def failures(self, model: str | None = None) -> list[ActionFailed | EffectCompleted]:
        """Failed actions and failed effects, most recent first."""
        failed: list[ActionFailed | EffectCompleted] = []
        for event in reversed(self._snapshot()):
            if isinstance(event, ActionFailed) or (
                isinstance(event, EffectCompleted) and not event.ok
            ):
                if model is None or event_model(event) == model:
                    failed.append(event)
        return failed

    def revisions(self) -> dict[str, int]:
        """Latest recorded revision per model."""
        latest: dict[str, int] = {}
        for event in self._snapshot():
            if isinstance(event, StateChanged):
                latest[event.model] = event.revision
        return latest

    def recent(self, n: int = 20) -> list[EngineEvent]:
        """The ``n`` most recent events, oldest first."""
        return self._snapshot()[-n:]

    def counts(self) -> dict[str, int]:
        """Number of retained events per event class name."""
        return dict(Counter(type(event).__name__ for event in self._snapshot()))

    def clear(self) -> int:
        """Drop every event; returns how many were dropped."""
        with self._lock:
            count = len(self._events)
            self._events.clear()
            return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)
