"""Base store — owns the live state slices and applies reducer tables.

The store does not know about models beyond their slices.  For each
dispatched action it asks a reducer source (the registry) which models react
to the action type, runs each of those reducers against a copy of that
model's slice only, and reports changed slices back so the registry can bump
revisions.

Reducer contract::

    def on_loaded(state, payload):
        state["profile"] = payload["data"]      # mutate the copy in place
        # or: return {"profile": payload["data"]}

A non-``None`` return value is merged into a dict slice (shallow), or
replaces any other kind of slice.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Iterable, Mapping
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from seedbox._types import Action, Listener, Reducer

logger = logging.getLogger(__name__)


class ReducerSource(Protocol):
    """What the store needs from the registry."""

    def reducers_for(self, action_type: str) -> Iterable[tuple[str, Reducer]]: ...

    def bump(self, name: str) -> int: ...


def get_path(value: Any, path: str | None) -> Any:
    """Walk a dotted path through mappings (or attributes); ``None`` if missing."""
    if not path:
        return value
    for key in path.split("."):
        if value is None:
            return None
        if isinstance(value, Mapping):
            value = value.get(key)
        else:
            value = getattr(value, key, None)
    return value


def apply_patch(current: Any, patch: Any) -> Any:
    """Merge ``patch`` into ``current``; dicts merge shallowly, else replace."""
    if isinstance(current, dict) and isinstance(patch, dict):
        merged = dict(current)
        merged.update(patch)
        return merged
    return patch


def reduce_immediate(state: Any, payload: Any) -> Any:
    """Reducer for the immediate-update action: merge the payload as a patch."""
    if payload is None:
        return state
    return apply_patch(state, payload)


class Store:
    """State container keyed by model name.

    Args:
        source: Registry providing reducers per action type and revision bumps.
        initial_state: Optional slices that override declared model state.

    """

    __slots__ = ("_initial", "_listeners", "_source", "_state")

    def __init__(
        self,
        source: ReducerSource,
        initial_state: dict[str, Any] | None = None,
    ) -> None:
        self._source = source
        self._initial: dict[str, Any] = dict(initial_state or {})
        self._state: dict[str, Any] = {}
        self._listeners: list[Listener] = []

    def attach(self, name: str, state: Any) -> Any:
        """Create the slice for a newly registered model.

        An ``initial_state`` entry for ``name`` takes precedence over the
        declared state.  Returns the slice actually installed.
        """
        if name in self._initial:
            state = self._initial[name]
        self._state[name] = copy.deepcopy(state)
        return self._state[name]

    def detach(self, name: str) -> None:
        """Drop a model's slice."""
        self._state.pop(name, None)

    def get_state(self) -> dict[str, Any]:
        """Snapshot mapping of every slice (the slices themselves are shared)."""
        return dict(self._state)

    def get_slice(self, name: str, default: Any = None) -> Any:
        """Current slice for one model."""
        return self._state.get(name, default)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener called after every dispatch.

        Returns:
            A function that removes the listener.

        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def dispatch(self, action: Action) -> Action:
        """Apply every reducer registered for ``action["type"]``.

        Each reducer only sees its own model's slice.  Reducer exceptions
        propagate to the caller; slices already updated by earlier reducers
        in the same dispatch are kept.
        """
        action_type = action.get("type")
        if not action_type:
            return action
        payload = action.get("payload")

        for name, reducer in self._source.reducers_for(action_type):
            if name not in self._state:
                continue
            current = self._state[name]
            draft = copy.deepcopy(current)
            result = reducer(draft, payload)
            next_state = draft if result is None else apply_patch(draft, result)
            if next_state != current:
                self._state[name] = next_state
                revision = self._source.bump(name)
                logger.debug("%s changed by %s (revision %d)", name, action_type, revision)

        for listener in tuple(self._listeners):
            listener()
        return action
