"""Binding resolver — turns binding descriptors into consumer props.

Descriptors and what they resolve to (``flattern=False``)::

    "user"                          {"user": {...state, ...actions}}
    "user.state"                    {"user": {...state}}
    "user.state.profile"            {"user": <profile>}
    "user.actions"                  {"user": {...actions}}
    "user.put"                      {"put": put bound to "user"}   (always flat)
    {"profile": "user.state.profile"}   {"profile": <profile>}
    {"paging": {"size": 20}}        {"paging": {"size": 20}}

With ``flattern=True`` a string descriptor's resolved keys are merged
straight into the output instead of being nested under the model name.

Resolution runs as two passes over the same descriptors: a state pass whose
wrapper copies state, and an action pass whose wrapper binds action creators
to a dispatch function.  Each pass uses a fresh sign map so a model (or a
mapping prop) already merged in that pass is not merged again.
"""

from __future__ import annotations

import copy
import functools
import inspect
import logging
from collections.abc import Callable, Mapping, Sequence
from typing import TYPE_CHECKING, Any, TypeAlias

from seedbox._errors import BindingError
from seedbox.store import get_path

if TYPE_CHECKING:
    from seedbox._types import Binding, Dispatch, Processor
    from seedbox.registry import ModelRegistry

logger = logging.getLogger(__name__)

Wrapper: TypeAlias = Callable[[Any], Any]


def bind_actions(processors: Mapping[str, Processor], dispatch: Dispatch) -> dict[str, Callable[..., Any]]:
    """Wrap raw processors so calling them dispatches through ``dispatch``.

    A processor may return an awaitable (returned as is), a thunk (called
    with ``dispatch``), or an action object (dispatched).
    """
    creators: dict[str, Callable[..., Any]] = {}
    for name, processor in processors.items():
        creators[name] = _bound(processor, dispatch)
    return creators


def _bound(processor: Processor, dispatch: Dispatch) -> Callable[..., Any]:
    @functools.wraps(processor)
    def creator(*args: Any) -> Any:
        result = processor(*args)
        if inspect.isawaitable(result):
            return result
        if callable(result):
            return result(dispatch)
        if result is not None:
            return dispatch(result)
        return None

    return creator


def merge_props(state_props: Mapping[str, Any], action_props: Mapping[str, Any]) -> dict[str, Any]:
    """Merge the two passes, combining per-model dicts one level deep."""
    merged = dict(state_props)
    for key, value in action_props.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = {**current, **value}
        else:
            merged[key] = value
    return merged


class BindingResolver:
    """Resolves binding descriptors against a state snapshot and action table.

    Args:
        get_state: Returns the mapping of model name -> slice.
        get_actions: Returns the mapping of model name -> raw processors.
        helpers: Global helpers (``put``, ``select``) taking the model name
            as their first argument.

    """

    def __init__(
        self,
        get_state: Callable[[], Mapping[str, Any]],
        get_actions: Callable[[], Mapping[str, Mapping[str, Processor]]],
        helpers: Mapping[str, Callable[..., Any]] | None = None,
    ) -> None:
        self._get_state = get_state
        self._get_actions = get_actions
        self._helpers = dict(helpers or {})

    def state_props(self, bindings: Sequence[Binding], flattern: bool = False) -> dict[str, Any]:
        """Props derived from state."""
        return self.resolve_pass(bindings, flattern, {"state": copy.deepcopy}, {})

    def action_props(
        self,
        bindings: Sequence[Binding],
        flattern: bool,
        dispatch: Dispatch,
    ) -> dict[str, Any]:
        """Props derived from actions, wrapped to dispatch through ``dispatch``."""
        wrappers = {"actions": lambda processors: bind_actions(processors, dispatch)}
        return self.resolve_pass(bindings, flattern, wrappers, {})

    def props(self, bindings: Sequence[Binding], flattern: bool, dispatch: Dispatch) -> dict[str, Any]:
        """Both passes merged."""
        return merge_props(
            self.state_props(bindings, flattern),
            self.action_props(bindings, flattern, dispatch),
        )

    def resolve_pass(
        self,
        bindings: Sequence[Binding],
        flattern: bool,
        wrappers: Mapping[str, Wrapper],
        sign: dict[str, bool],
    ) -> dict[str, Any]:
        """Resolve every descriptor with one set of wrappers.

        Errors are logged and the props resolved so far are returned.
        """
        props: dict[str, Any] = {}
        state = self._get_state()
        actions = self._get_actions()
        try:
            for binding in bindings:
                if isinstance(binding, str):
                    model_name = binding.split(".", 1)[0]
                    if sign.get(model_name):
                        continue
                    resolved = self._resolve_path(state, actions, binding, flattern, wrappers)
                    if resolved:
                        props.update(resolved)
                        sign[model_name] = True
                elif isinstance(binding, Mapping):
                    for prop, value in binding.items():
                        if sign.get(prop):
                            continue
                        if isinstance(value, str):
                            resolved = self._resolve_path(
                                state, actions, value, False, wrappers, attr_key=prop
                            )
                        else:
                            resolved = {prop: value}
                        if resolved.get(prop) is not None:
                            props[prop] = resolved[prop]
                            sign[prop] = True
                else:
                    logger.warning("Ignoring binding of type %s", type(binding).__name__)
        except Exception:
            logger.exception("Failed to resolve bindings %r", bindings)
        return props

    def _resolve_path(
        self,
        state: Mapping[str, Any],
        actions: Mapping[str, Mapping[str, Processor]],
        binding: str,
        flattern: bool,
        wrappers: Mapping[str, Wrapper],
        *,
        attr_key: str | None = None,
    ) -> dict[str, Any]:
        keys = binding.split(".")
        model_name = keys[0]
        if not model_name:
            msg = f"Binding {binding!r} does not name a model"
            raise BindingError(msg)
        attr_key = attr_key or model_name
        view: dict[str, Any] = {
            "state": state.get(model_name) if state.get(model_name) is not None else {},
            "actions": actions.get(model_name) or {},
        }

        value: Any = None
        if len(keys) > 1:
            category = keys[1]
            wrapper = wrappers.get(category)
            if wrapper is not None:
                value = get_path(wrapper(view[category]), ".".join(keys[2:]))
            elif category not in view and category in self._helpers:
                flattern = True
                value = {category: functools.partial(self._helpers[category], model_name)}
            else:
                return {}
        else:
            value = {}
            for category, wrapper in wrappers.items():
                wrapped = wrapper(view[category])
                if isinstance(wrapped, Mapping):
                    value.update(wrapped)

        if value is None:
            return {}
        if flattern:
            return dict(value) if isinstance(value, Mapping) else {}
        return {attr_key: value}


class Selector:
    """Memoized resolution of one binding list.

    State props are recomputed only when the revision of a referenced model
    changed since the last resolution.  Action props are rebuilt per call of
    :meth:`action_props` since they close over the caller's dispatch.

    Args:
        resolver: The binding resolver.
        registry: Registry providing model revisions.
        bindings: Binding descriptors.
        flattern: Merge per-model keys into the output.

    """

    def __init__(
        self,
        resolver: BindingResolver,
        registry: ModelRegistry,
        bindings: Sequence[Binding],
        flattern: bool = False,
    ) -> None:
        self._resolver = resolver
        self._registry = registry
        self.bindings: tuple[Binding, ...] = tuple(bindings)
        self.flattern = flattern
        self._models = _referenced_models(self.bindings)
        self._revisions: tuple[int, ...] | None = None
        self._state_props: dict[str, Any] = {}

    @property
    def models(self) -> tuple[str, ...]:
        """Names of the models the bindings reference."""
        return self._models

    def state_props(self) -> dict[str, Any]:
        """State props, recomputed only after a referenced model changed."""
        revisions = self._registry.revisions(self._models)
        if revisions != self._revisions:
            self._state_props = self._resolver.state_props(self.bindings, self.flattern)
            self._revisions = revisions
        return dict(self._state_props)

    def action_props(self, dispatch: Dispatch) -> dict[str, Any]:
        """Action props bound to ``dispatch``."""
        return self._resolver.action_props(self.bindings, self.flattern, dispatch)

    def props(self, dispatch: Dispatch) -> dict[str, Any]:
        """State and action props merged."""
        return merge_props(self.state_props(), self.action_props(dispatch))


def _referenced_models(bindings: Sequence[Binding]) -> tuple[str, ...]:
    names: list[str] = []
    for binding in bindings:
        if isinstance(binding, str):
            paths = [binding]
        elif isinstance(binding, Mapping):
            paths = [v for v in binding.values() if isinstance(v, str)]
        else:
            continue
        for path in paths:
            name = path.split(".", 1)[0]
            if name not in names:
                names.append(name)
    return tuple(names)
