"""Effect runner — interprets generator effects over a small effect protocol.

An effect is a generator function declared as a model action.  It yields
tagged effect messages and is resumed with each effect's result::

    def sync(uid):
        profile = yield select("profile")
        data = yield call(api.fetch_user, uid)       # awaited if awaitable
        yield put({"profile": data})                  # immediate update
        yield put({"type": "synced"})                 # -> "user/synced"
        return data

Messages:

- ``Put(action)`` normalizes the action against the effect's model and
  dispatches it through the full pipeline.
- ``Select(path, model)`` reads a deep copy of a state path.
- ``Call(fn, args, kwargs)`` calls ``fn`` and awaits the result if needed.
- Any bare awaitable is awaited.

Exceptions raised by an effect are thrown back into the generator, so
``try``/``except`` around a ``yield`` works as expected.

Calling an effect action dispatches an intent ``{"action": "user.sync",
...}``; the base dispatch hands intents to :meth:`EffectRunner.run`.  Callers
wait on :meth:`EffectRunner.watch` for the canonical type, which resolves when
the generator returns.  Effects of the same model run one at a time in
invocation order.
"""

from __future__ import annotations

import asyncio
import copy
import inspect
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from seedbox._errors import EffectError
from seedbox.action_type import (
    SEP,
    action_to_type,
    encode_action_type,
    immediate_type,
    type_to_action,
)
from seedbox.store import get_path

if TYPE_CHECKING:
    from seedbox.model import Model
    from seedbox.observability.collector import EngineCollector

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Effect protocol
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Put:
    """Dispatch an action-like value on behalf of the effect's model."""

    action: Any


@dataclass(frozen=True, slots=True)
class Select:
    """Read a dotted path from a model's state (the effect's own by default)."""

    path: str | None = None
    model: str | None = None


@dataclass(frozen=True, slots=True)
class Call:
    """Call a function, awaiting its result if it is awaitable."""

    fn: Callable[..., Any]
    args: tuple[Any, ...] = ()
    kwargs: dict[str, Any] = field(default_factory=dict)


def put(action: Any) -> Put:
    """Build a ``Put`` effect."""
    return Put(action)


def select(path: str | None = None, *, model: str | None = None) -> Select:
    """Build a ``Select`` effect."""
    return Select(path, model)


def call(fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Call:
    """Build a ``Call`` effect."""
    return Call(fn, args, kwargs)


def normalize_action(model_name: str, action_like: Any) -> dict[str, Any]:
    """Turn an action-like value into a canonically typed action.

    - ``{"type": "loaded", ...}`` without a separator is scoped to the model.
    - ``{"type": "other/loaded", ...}`` is kept as is.
    - Anything else becomes an immediate update carrying it as the patch.
    """
    if isinstance(action_like, dict) and isinstance(action_like.get("type"), str):
        action = dict(action_like)
        if SEP not in action["type"]:
            action["type"] = encode_action_type(model_name, action["type"])
        return action
    return {"type": immediate_type(model_name), "payload": action_like}


def is_intent(action: Any) -> bool:
    """True for effect intents ``{"action": "model.name", ...}``."""
    return isinstance(action, dict) and "action" in action and "type" not in action


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------


class EffectRunner:
    """Drives effect generators and exposes watch futures per action type.

    Args:
        dispatch: Top-level dispatch used for ``Put`` effects.
        get_slice: Returns the live slice of a model by name.
        collector: Optional collector for ``EffectCompleted`` events.

    """

    def __init__(
        self,
        dispatch: Callable[[Any], Any],
        get_slice: Callable[[str], Any],
        collector: EngineCollector | None = None,
    ) -> None:
        self._dispatch = dispatch
        self._get_slice = get_slice
        self._collector = collector
        self._bodies: dict[str, tuple[str, Callable[..., Any]]] = {}
        self._watches: dict[str, asyncio.Future[Any]] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._tasks: set[asyncio.Task[Any]] = set()

    def register(self, model: Model) -> None:
        """Record a model's effect bodies by intent name."""
        for name, body in model.effects.items():
            self._bodies[type_to_action(model.name, name)] = (model.name, body)

    def unregister(self, model_name: str) -> None:
        """Forget every effect body of a model."""
        prefix = type_to_action(model_name, "")
        for key in [k for k in self._bodies if k.startswith(prefix)]:
            del self._bodies[key]
        self._locks.pop(model_name, None)

    def handles(self, action: Any) -> bool:
        """True if ``action`` is an intent for a registered effect."""
        return is_intent(action) and action["action"] in self._bodies

    @property
    def pending(self) -> int:
        """Number of effect tasks not yet finished."""
        return len(self._tasks)

    def watch(self, action_type: str) -> asyncio.Future[Any]:
        """Future resolved when the next effect for ``action_type`` completes.

        Concurrent callers share the same outstanding future.
        """
        future = self._watches.get(action_type)
        if future is None or future.done():
            future = asyncio.get_running_loop().create_future()
            future.add_done_callback(mark_retrieved)
            self._watches[action_type] = future
        return future

    def run(self, intent: dict[str, Any]) -> asyncio.Task[Any] | None:
        """Schedule the effect named by ``intent``.

        Unknown effects are logged and fail their watch future.
        """
        name = intent["action"]
        action_type = action_to_type(name)
        entry = self._bodies.get(name)
        if entry is None:
            logger.error("No effect registered for intent %r", name)
            self._settle(action_type, error=EffectError(f"No effect registered for {name!r}"))
            return None

        model_name, body = entry
        payload = intent.get("payload") or {}
        args = tuple(payload.get("arguments") or ())
        task = asyncio.get_running_loop().create_task(
            self._execute(model_name, body, action_type, args)
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def drive_sync(self, model_name: str, body: Callable[..., Any], args: tuple[Any, ...]) -> Any:
        """Run an effect body to completion without dispatching.

        ``Put`` effects are normalized but not dispatched; awaitables cannot
        be resolved synchronously and raise ``EffectError``.
        """
        gen = body(*args)
        if not inspect.isgenerator(gen):
            return gen
        value: Any = None
        error: BaseException | None = None
        while True:
            try:
                effect = gen.throw(error) if error is not None else gen.send(value)
            except StopIteration as stop:
                return stop.value
            error = None
            value = None
            try:
                if isinstance(effect, Put):
                    value = normalize_action(model_name, effect.action).get("payload")
                elif isinstance(effect, Select):
                    value = self._select(model_name, effect)
                elif isinstance(effect, Call):
                    value = effect.fn(*effect.args, **effect.kwargs)
                    if inspect.isawaitable(value):
                        _discard(value)
                        raise EffectError("Cannot await inside a dispatch-suppressed effect")
                else:
                    _discard(effect)
                    raise EffectError(f"Unsupported effect {effect!r} in a suppressed call")
            except Exception as exc:  # noqa: BLE001
                error = exc

    async def close(self) -> None:
        """Cancel running effects and fail outstanding watch futures."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        for future in self._watches.values():
            if not future.done():
                future.cancel()
        self._watches.clear()

    # ----- internals -----

    async def _execute(
        self,
        model_name: str,
        body: Callable[..., Any],
        action_type: str,
        args: tuple[Any, ...],
    ) -> None:
        lock = self._locks.setdefault(model_name, asyncio.Lock())
        async with lock:
            started = time.perf_counter()
            try:
                result = await self._interpret(model_name, body(*args))
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                logger.warning("Effect %s failed: %s", action_type, exc)
                self._record(action_type, ok=False, started=started)
                self._settle(action_type, error=exc)
                return
            self._record(action_type, ok=True, started=started)
            self._settle(action_type, result=result)

    async def _interpret(self, model_name: str, gen: Any) -> Any:
        if not inspect.isgenerator(gen):
            return await gen if inspect.isawaitable(gen) else gen
        value: Any = None
        error: BaseException | None = None
        while True:
            try:
                effect = gen.throw(error) if error is not None else gen.send(value)
            except StopIteration as stop:
                return stop.value
            error = None
            value = None
            try:
                value = await self._perform(model_name, effect)
            except Exception as exc:  # noqa: BLE001
                error = exc

    async def _perform(self, model_name: str, effect: Any) -> Any:
        if isinstance(effect, Put):
            action = normalize_action(model_name, effect.action)
            self._dispatch(action)
            return action.get("payload")
        if isinstance(effect, Select):
            return self._select(model_name, effect)
        if isinstance(effect, Call):
            result = effect.fn(*effect.args, **effect.kwargs)
            if inspect.isawaitable(result):
                result = await result
            return result
        if inspect.isawaitable(effect):
            return await effect
        msg = f"Unsupported effect {effect!r}"
        raise EffectError(msg)

    def _select(self, model_name: str, effect: Select) -> Any:
        state = self._get_slice(effect.model or model_name)
        return copy.deepcopy(get_path(state, effect.path))

    def _settle(self, action_type: str, *, result: Any = None, error: BaseException | None = None) -> None:
        future = self._watches.pop(action_type, None)
        if future is None or future.done():
            return
        if error is not None:
            future.set_exception(error)
        else:
            future.set_result(result)

    def _record(self, action_type: str, *, ok: bool, started: float) -> None:
        if self._collector is not None:
            self._collector.record_effect(
                action_type, ok=ok, duration_ms=(time.perf_counter() - started) * 1000
            )


def mark_retrieved(future: asyncio.Future[Any]) -> None:
    """Done callback: consume an exception that was already logged or dispatched.

    Callers that drop the future must not trigger asyncio's
    "exception was never retrieved" warning; awaiting callers still see it.
    """
    if not future.cancelled():
        future.exception()


def _discard(value: Any) -> None:
    """Close an un-awaited coroutine so it does not warn on collection."""
    close = getattr(value, "close", None)
    if inspect.iscoroutine(value) and close is not None:
        close()
