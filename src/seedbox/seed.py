"""Seed — the engine context.

A Seed composes the store, dispatch pipeline, registry, effect runner,
request layer and binding resolver into one object with explicit setup and
teardown.  There is no module-level state: every model and processor is
wired to the Seed that registered it.

Quick start::

    async with Seed() as seed:
        seed.model({
            "name": "user",
            "state": {"profile": None},
            "actions": {
                "load": {
                    "exec": fetch_user,
                    "callback": lambda state, payload: {"profile": payload["data"]},
                },
            },
        })
        await seed.get_actions("user")["load"](42)
        seed.get_state()["user"]["profile"]

"""

from __future__ import annotations

import copy
import logging
from typing import TYPE_CHECKING, Any

from seedbox._errors import DispatchError
from seedbox.action_type import immediate_type
from seedbox.binding import BindingResolver, Selector
from seedbox.config import SeedConfig
from seedbox.effects import EffectRunner, is_intent
from seedbox.observability.collector import EngineCollector
from seedbox.observability.log import EventLog
from seedbox.pipeline import DispatchPipeline
from seedbox.processors import ActionProcessorFactory
from seedbox.registry import ModelRegistry
from seedbox.request import Requester
from seedbox.store import Store, get_path

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping, Sequence

    from seedbox._types import Binding, Interceptor, Listener
    from seedbox.model import Model

logger = logging.getLogger(__name__)


class Seed:
    """Engine context owning one store and everything wired to it.

    Args:
        config: Engine configuration (defaults to ``SeedConfig()``).
        initial_state: Slices overriding the declared state of models
            registered later, keyed by model name.
        interceptors: Initial dispatch interceptors, in order.
        models: Model declarations to register immediately.
        requester: Request layer for descriptor execs.  Created from the
            config when omitted (and closed by :meth:`aclose`).

    """

    def __init__(
        self,
        config: SeedConfig | None = None,
        *,
        initial_state: Mapping[str, Any] | None = None,
        interceptors: Iterable[Interceptor] = (),
        models: Iterable[Any] = (),
        requester: Requester | None = None,
    ) -> None:
        self.config = config or SeedConfig()
        self.collector: EngineCollector | None = (
            EngineCollector(EventLog(self.config.max_events)) if self.config.observe else None
        )
        self._owns_requester = requester is None
        self.requester = requester or Requester.from_config(self.config)

        self.pipeline = DispatchPipeline(self._base_dispatch, tuple(interceptors))
        self.effects = EffectRunner(self.dispatch, self._get_slice, self.collector)
        self.factory = ActionProcessorFactory(self._get_slice, self.effects, self.requester)
        self.registry = ModelRegistry(
            self.factory,
            self.effects,
            self.dispatch,
            on_duplicate=self.config.on_duplicate,
            collector=self.collector,
        )
        self.store = Store(self.registry, dict(initial_state or {}))
        self.registry.bind_store(self.store)
        self.resolver = BindingResolver(
            self.store.get_state,
            self.registry.action_table,
            helpers={"put": self.put, "select": self.select},
        )
        self._closed = False

        for spec in models:
            self.model(spec)

    # ----- models -----

    def model(self, spec: Any, resource: Mapping[str, Any] | None = None) -> Model | None:
        """Register a model declaration, or look one up by name.

        ``seed.model("user")`` returns the registered model (or ``None``);
        any other argument is registered, with ``resource`` merged in as
        ``exec`` for actions lacking one.
        """
        if isinstance(spec, str):
            return self.registry.get_model(spec)
        return self.registry.register(spec, resource)

    def get_actions(self, name: str) -> dict[str, Callable[..., Any]]:
        """Action creators of ``name`` that dispatch through this seed."""
        return self.registry.get_actions(name)

    # ----- dispatch -----

    def use(self, interceptor: Interceptor) -> None:
        """Append a dispatch interceptor."""
        self.pipeline.use(interceptor)

    def dispatch(self, action: Any) -> Any:
        """Dispatch an action, effect intent, or thunk.

        Thunks (callables) are invoked with this dispatch and bypass the
        interceptor chain; everything else goes through the pipeline.
        """
        if callable(action):
            return action(self.dispatch)
        return self.pipeline.dispatch(action)

    def _base_dispatch(self, action: Any) -> Any:
        if not isinstance(action, dict):
            msg = f"Cannot dispatch {type(action).__name__}; expected an action dict"
            raise DispatchError(msg)
        if is_intent(action):
            if self.collector is not None:
                self.collector.record_dispatch(str(action["action"]))
            self.effects.run(action)
            return action
        action_type = action.get("type")
        if self.collector is not None and action_type:
            self.collector.record_dispatch(action_type)
            if action.get("error"):
                payload = action.get("payload") or {}
                self.collector.record_failure(action_type, str(payload.get("message", "")))
        return self.store.dispatch(action)

    def put(self, model: str, patch: Any) -> Any:
        """Merge ``patch`` into ``model``'s state via an immediate update."""
        return self.dispatch({"type": immediate_type(model), "payload": patch})

    # ----- state -----

    def get_state(self) -> dict[str, Any]:
        """Mapping of model name to current slice."""
        return self.store.get_state()

    def _get_slice(self, name: str) -> Any:
        return self.store.get_slice(name)

    def select(self, model: str, path: str | None = None) -> Any:
        """Copy of the value at ``path`` in ``model``'s state."""
        return copy.deepcopy(get_path(self.store.get_slice(model), path))

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` after every store dispatch."""
        return self.store.subscribe(listener)

    # ----- bindings -----

    def to_bindings(self, bindings: Binding | Sequence[Binding], flattern: bool = False) -> Selector:
        """Memoized selector for a binding list."""
        return Selector(self.resolver, self.registry, _as_list(bindings), flattern)

    def props(self, bindings: Binding | Sequence[Binding], flattern: bool = False) -> dict[str, Any]:
        """Resolve state and action props in one go."""
        return self.resolver.props(_as_list(bindings), flattern, self.dispatch)

    # ----- observability -----

    @property
    def events(self) -> EventLog | None:
        """The event log, when observation is enabled."""
        return self.collector.log if self.collector is not None else None

    # ----- lifecycle -----

    async def aclose(self) -> None:
        """Cancel running effects and close the request layer."""
        if self._closed:
            return
        self._closed = True
        await self.effects.close()
        if self._owns_requester:
            await self.requester.aclose()
        logger.debug("Seed %r closed", self.config.name)

    async def __aenter__(self) -> Seed:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


def _as_list(bindings: Binding | Sequence[Binding]) -> list[Binding]:
    if isinstance(bindings, (str, dict)) or not isinstance(bindings, (list, tuple)):
        return [bindings]  # type: ignore[list-item]
    return list(bindings)
