"""Model registry — registers models and wires their reducers and actions.

Registration turns a declaration into a ``Model``:

1. seed the reducer table with the model's immediate-update type;
2. install ``reducers`` under the model's own canonical types;
3. install ``subscriptions`` under *other* models' types, still reducing
   this model's slice;
4. merge resource entries in as ``exec`` for actions that lack one;
5. build one processor per action and expose auto-dispatching creators;
6. register effects with the effect runner and attach the slice to the store.

Registration problems are logged and the offending model or action is
skipped; one bad declaration never stops the rest of the registry loading.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable, Iterable, Mapping
from typing import TYPE_CHECKING, Any, Literal

from seedbox._errors import RegistrationError
from seedbox.action_type import encode_action_type, parse_subscription_key
from seedbox.model import Model, ModelSpec
from seedbox.processors import action_kind
from seedbox.store import reduce_immediate

if TYPE_CHECKING:
    from seedbox._types import Dispatch, Processor, Reducer
    from seedbox.effects import EffectRunner
    from seedbox.observability.collector import EngineCollector
    from seedbox.processors import ActionProcessorFactory
    from seedbox.store import Store

logger = logging.getLogger(__name__)


def _status_reducers(
    model: str,
    action: str,
    callback: Any,
    *,
    default_status: str | None,
) -> dict[str, Reducer]:
    """Reducers declared for one action, keyed by canonical type.

    A single function goes under ``default_status`` (``None`` for the plain
    type); a mapping installs one reducer per status key.
    """
    if callable(callback):
        return {encode_action_type(model, action, default_status): callback}
    if isinstance(callback, Mapping):
        return {
            encode_action_type(model, action, status): fn
            for status, fn in callback.items()
            if callable(fn)
        }
    return {}


class ModelRegistry:
    """Registers models and owns their reducer tables and processors.

    Args:
        factory: Builds processors from action configs.
        effects: Effect runner that receives each model's effect bodies.
        dispatch: Top-level dispatch used by auto-dispatching action creators.
        on_duplicate: ``"reject"`` or ``"replace"`` for a re-used model name.
        collector: Optional collector for registration and revision events.

    """

    def __init__(
        self,
        factory: ActionProcessorFactory,
        effects: EffectRunner,
        dispatch: Dispatch,
        *,
        on_duplicate: Literal["reject", "replace"] = "reject",
        collector: EngineCollector | None = None,
    ) -> None:
        self._factory = factory
        self._effects = effects
        self._dispatch = dispatch
        self._on_duplicate = on_duplicate
        self._collector = collector
        self._store: Store | None = None
        self._models: dict[str, Model] = {}
        # action type -> names of models with a reducer for it, in registration order
        self._index: dict[str, list[str]] = defaultdict(list)
        # last revision of unregistered names; a re-registered model continues from it
        self._retired: dict[str, int] = {}

    def bind_store(self, store: Store) -> None:
        """Attach the store that holds the registered models' slices."""
        self._store = store

    # ----- registration -----

    def register(self, spec: Any, resource: Mapping[str, Any] | None = None) -> Model | None:
        """Register a model declaration.

        Returns:
            The registered ``Model``, or ``None`` if the declaration was
            skipped (missing name, unsupported form, rejected duplicate).

        """
        try:
            model_spec = ModelSpec.coerce(spec)
        except RegistrationError as exc:
            logger.error("Skipping model: %s", exc)
            return None

        name = model_spec.name
        if name in self._models:
            if self._on_duplicate == "reject":
                logger.error("Model %r is already registered; ignoring the new definition", name)
                return None
            logger.warning("Model %r is already registered; replacing it", name)
            self.unregister(name)

        model = Model(
            name=name,
            state=model_spec.state,
            subscriptions=dict(model_spec.subscriptions),
            revision=self._retired.pop(name, -1) + 1,
            source=model_spec.source,
        )
        model.reducers[model.immediate_type] = reduce_immediate
        for action_name, reducer in model_spec.reducers.items():
            model.reducers.update(
                _status_reducers(name, action_name, reducer, default_status=None)
            )
        self._install_subscriptions(model)
        self._build_actions(model, model_spec.actions, resource or {})

        self._models[name] = model
        for action_type in model.reducers:
            self._index[action_type].append(name)
        if model.effects:
            self._effects.register(model)
        if self._store is not None:
            self._store.attach(name, model.state)
        if self._collector is not None:
            self._collector.record_registration(
                name, actions=len(model.actions), reducers=len(model.reducers)
            )
        logger.debug("Registered model %r (%d actions)", name, len(model.actions))
        return model

    def _install_subscriptions(self, model: Model) -> None:
        for key, reducer in model.subscriptions.items():
            try:
                other, action_name, status = parse_subscription_key(key)
            except RegistrationError as exc:
                logger.error("Model %r: %s", model.name, exc)
                continue
            installed = _status_reducers(other, action_name, reducer, default_status=status)
            if not installed:
                logger.error(
                    "Model %r: subscription %r is neither a function nor a status map",
                    model.name,
                    key,
                )
            model.reducers.update(installed)

    def _build_actions(
        self,
        model: Model,
        actions: Mapping[str, Any],
        resource: Mapping[str, Any],
    ) -> None:
        for action_name, declared in actions.items():
            config = declared
            if action_name in resource and not (
                isinstance(declared, Mapping) and declared.get("exec") is not None
            ):
                if isinstance(declared, Mapping):
                    base = dict(declared)
                elif callable(declared):
                    # a bare function next to a resource is the success reducer
                    base = {"callback": declared}
                else:
                    base = {}
                base["exec"] = resource[action_name]
                config = base
            try:
                kind = action_kind(config)
            except RegistrationError as exc:
                logger.error("Model %r: skipping action %r: %s", model.name, action_name, exc)
                continue

            if kind == "exec":
                callback = config.get("callback") or config.get("reducer")
                model.reducers.update(
                    _status_reducers(model.name, action_name, callback, default_status="success")
                )
            elif kind == "reducer":
                callback = config.get("callback") or config.get("reducer")
                model.reducers.update(
                    _status_reducers(model.name, action_name, callback, default_status=None)
                )
            elif kind == "effect":
                model.effects[action_name] = config

            processor = self._factory.create(model, action_name, config)
            model.processors[action_name] = processor
            model.actions[action_name] = self._auto_dispatch(processor)

    def _auto_dispatch(self, processor: Processor) -> Callable[..., Any]:
        dispatch = self._dispatch

        def action_creator(*args: Any) -> Any:
            return processor(*args)(dispatch)

        action_creator.__wrapped__ = processor  # type: ignore[attr-defined]
        return action_creator

    def unregister(self, name: str) -> Model | None:
        """Remove a model, its reducers, effects and slice."""
        model = self._models.pop(name, None)
        if model is None:
            return None
        self._retired[name] = model.revision
        for action_type in model.reducers:
            names = self._index.get(action_type)
            if names and name in names:
                names.remove(name)
                if not names:
                    del self._index[action_type]
        self._effects.unregister(name)
        if self._store is not None:
            self._store.detach(name)
        return model

    # ----- read surface -----

    def get_model(self, name: str) -> Model | None:
        """The registered model called ``name``, if any."""
        return self._models.get(name)

    def get_actions(self, name: str) -> dict[str, Callable[..., Any]]:
        """Action creators of a model that dispatch through the pipeline on call."""
        model = self._models.get(name)
        return dict(model.actions) if model is not None else {}

    def action_table(self) -> dict[str, dict[str, Processor]]:
        """Raw processors of every model, keyed by model then action name."""
        return {name: dict(model.processors) for name, model in self._models.items()}

    @property
    def models(self) -> tuple[Model, ...]:
        """Registered models in registration order."""
        return tuple(self._models.values())

    def __contains__(self, name: object) -> bool:
        return name in self._models

    def __len__(self) -> int:
        return len(self._models)

    def models_for(self, action_type: str) -> tuple[str, ...]:
        """Names of models with a reducer for ``action_type``."""
        return tuple(self._index.get(action_type, ()))

    def reducers_for(self, action_type: str) -> Iterable[tuple[str, Reducer]]:
        """``(model name, reducer)`` pairs reacting to ``action_type``."""
        for name in self.models_for(action_type):
            yield name, self._models[name].reducers[action_type]

    def bump(self, name: str) -> int:
        """Increment and return a model's revision."""
        model = self._models[name]
        model.revision += 1
        if self._collector is not None:
            self._collector.record_state_change(name, model.revision)
        return model.revision

    def revisions(self, names: Iterable[str]) -> tuple[int, ...]:
        """Current revisions of ``names`` (``-1`` for unknown models)."""
        return tuple(
            self._models[n].revision if n in self._models else -1 for n in names
        )
