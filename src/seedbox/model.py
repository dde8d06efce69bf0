"""Model abstraction — declared capabilities resolved once at registration.

A model can be declared as a plain mapping::

    user = {
        "name": "user",
        "state": {"profile": None},
        "actions": {
            "load": {"exec": fetch_user, "callback": {"success": on_loaded}},
            "rename": rename,          # plain function
            "sync": sync_effect,       # generator function -> effect
        },
        "subscriptions": {"auth.logout": clear_profile},
    }

or as a ``BaseModel`` subclass whose actions are declared with ``@action``::

    class User(BaseModel):
        name = "user"
        state = {"profile": None}

        @action(exec=True, callback="loaded")
        async def load(self, uid): ...

        def loaded(self, state, payload):
            state["profile"] = payload["data"]

Both are normalized into a frozen ``ModelSpec``.  Only what is declared is
picked up: class-based models never have arbitrary methods promoted to
actions.
"""

from __future__ import annotations

import copy
import inspect
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from seedbox._errors import RegistrationError
from seedbox.action_type import immediate_type

_ACTION_MARKER = "__seedbox_action__"


def action(
    fn: Callable[..., Any] | None = None,
    *,
    exec: bool = False,  # noqa: A002
    callback: Any = None,
) -> Any:
    """Declare a ``BaseModel`` method as an action.

    Bare ``@action`` marks a plain action (or an effect, for generator
    methods).  ``@action(exec=True, callback=...)`` makes the method the
    ``exec`` of an async action; ``callback`` is a reducer, a mapping of
    status to reducer, or the name of a reducer method on the model.
    """

    def mark(func: Callable[..., Any]) -> Callable[..., Any]:
        setattr(func, _ACTION_MARKER, {"exec": exec, "callback": callback})
        return func

    if fn is not None:
        return mark(fn)
    return mark


class BaseModel:
    """Base class for class-declared models.

    Class attributes ``name``, ``state``, ``reducers``, ``subscriptions`` and
    ``actions`` mirror the mapping form.  Methods decorated with ``@action``
    are added to ``actions`` bound to the instance.
    """

    name: str | None = None
    state: Any = None
    reducers: Mapping[str, Any] = {}
    subscriptions: Mapping[str, Any] = {}
    actions: Mapping[str, Any] = {}


@dataclass(frozen=True, slots=True)
class ModelSpec:
    """Normalized model declaration.

    Attributes:
        name: Unique model name.
        state: Initial state of the model's slice.
        reducers: Action name -> reducer (or status -> reducer mapping).
        actions: Action name -> action config.
        subscriptions: ``"model.action[.status]"`` -> reducer (or status map).
        source: The ``BaseModel`` instance the spec was built from, if any.

    """

    name: str
    state: Any = None
    reducers: Mapping[str, Any] = field(default_factory=dict)
    actions: Mapping[str, Any] = field(default_factory=dict)
    subscriptions: Mapping[str, Any] = field(default_factory=dict)
    source: Any = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ModelSpec:
        """Build a spec from the mapping form.

        ``external_reducers`` is accepted as an alias for ``subscriptions``.

        Raises:
            RegistrationError: If ``name`` is missing or empty.

        """
        name = data.get("name")
        if not name:
            msg = "Model specification has no 'name'"
            raise RegistrationError(msg)
        subscriptions = data.get("subscriptions") or data.get("external_reducers") or {}
        return cls(
            name=str(name),
            state=copy.deepcopy(data.get("state")) if data.get("state") is not None else {},
            reducers=dict(data.get("reducers") or {}),
            actions=dict(data.get("actions") or {}),
            subscriptions=dict(subscriptions),
        )

    @classmethod
    def from_model(cls, model: BaseModel | type[BaseModel]) -> ModelSpec:
        """Build a spec from a ``BaseModel`` subclass or instance.

        Raises:
            RegistrationError: If the model declares no ``name``, cannot be
                instantiated, or names a reducer method it does not have.

        """
        if isinstance(model, type):
            try:
                instance = model()
            except Exception as exc:
                msg = f"Model {model.__name__} could not be instantiated: {exc}"
                raise RegistrationError(msg) from exc
        else:
            instance = model
        if not instance.name:
            msg = f"Model {type(instance).__name__} has no 'name'"
            raise RegistrationError(msg)

        actions: dict[str, Any] = dict(instance.actions)
        for attr in dir(type(instance)):
            member = inspect.getattr_static(type(instance), attr)
            marker = getattr(member, _ACTION_MARKER, None)
            if marker is None:
                continue
            bound = getattr(instance, attr)
            callback = _resolve_callback(instance, marker["callback"])
            if marker["exec"]:
                config: dict[str, Any] = {"exec": bound}
                if callback is not None:
                    config["callback"] = callback
                actions[attr] = config
            else:
                actions[attr] = bound

        state = instance.state
        return cls(
            name=str(instance.name),
            state=copy.deepcopy(state) if state is not None else {},
            reducers={k: _resolve_callback(instance, v) for k, v in instance.reducers.items()},
            actions=actions,
            subscriptions={
                k: _resolve_callback(instance, v) for k, v in instance.subscriptions.items()
            },
            source=instance,
        )

    @classmethod
    def coerce(cls, spec: Any) -> ModelSpec:
        """Normalize any accepted declaration form into a ``ModelSpec``.

        Raises:
            RegistrationError: If the declaration is of an unsupported type
                or has no name.

        """
        if isinstance(spec, ModelSpec):
            return spec
        if isinstance(spec, BaseModel) or (
            isinstance(spec, type) and issubclass(spec, BaseModel)
        ):
            return cls.from_model(spec)
        if isinstance(spec, Mapping):
            return cls.from_mapping(spec)
        msg = f"Unsupported model specification of type {type(spec).__name__}"
        raise RegistrationError(msg)


def _resolve_callback(instance: BaseModel, value: Any) -> Any:
    """Turn method names into bound methods, recursing into status maps."""
    if isinstance(value, str):
        resolved = getattr(instance, value, None)
        if not callable(resolved):
            msg = f"Model {type(instance).__name__} has no reducer method {value!r}"
            raise RegistrationError(msg)
        return resolved
    if isinstance(value, Mapping):
        return {k: _resolve_callback(instance, v) for k, v in value.items()}
    return value


@dataclass(slots=True, eq=False)
class Model:
    """A registered model.

    Built by the registry from a ``ModelSpec``.  ``reducers``, ``processors``
    and ``effects`` are fixed at registration; ``revision`` is bumped by the
    registry whenever the model's slice changes.

    Attributes:
        name: Unique model name.
        state: Initial state (the reference passed as ``store`` in payloads).
        reducers: Canonical action type -> reducer, for this model's slice.
        subscriptions: Original subscription declarations.
        processors: Action name -> raw processor (returns a thunk).
        actions: Action name -> action creator that dispatches on call.
        effects: Action name -> generator function.
        revision: Monotonic change counter.
        source: ``BaseModel`` instance for class-declared models.

    """

    name: str
    state: Any
    reducers: dict[str, Callable[..., Any]] = field(default_factory=dict)
    subscriptions: dict[str, Any] = field(default_factory=dict)
    processors: dict[str, Callable[..., Any]] = field(default_factory=dict)
    actions: dict[str, Callable[..., Any]] = field(default_factory=dict)
    effects: dict[str, Callable[..., Any]] = field(default_factory=dict)
    revision: int = 0
    source: Any = None

    @property
    def immediate_type(self) -> str:
        """Action type merging an arbitrary patch into this model's state."""
        return immediate_type(self.name)
