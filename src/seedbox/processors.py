"""Action processor factory — turns action configs into processors.

A processor is bound to one (model, action) pair.  Calling it with the
action's arguments returns a *thunk*; calling the thunk with a dispatch
function performs the work::

    task = processor(1, 2)(dispatch)
    data = await task

Three variants, chosen by the shape of the action config:

exec
    ``{"exec": fn | descriptor | value}``.  Dispatches ``start``, runs the
    exec in a task, then dispatches ``success`` or ``error``.
effect
    A generator function.  Dispatches an intent handled by the
    ``EffectRunner`` and returns its watch future.
plain
    A function called as ``fn(*args, ctx)``; or a reducer config
    ``{"reducer"|"callback": ..., "data"?: ...}`` that only dispatches the
    action's own type.

A trailing literal ``False`` argument suppresses every dispatch for that
call.  Note that this is positional: an action whose last real argument is
the boolean ``False`` must be called with an extra trailing argument.
"""

from __future__ import annotations

import asyncio
import copy
import inspect
from collections.abc import Awaitable, Callable, Mapping
from typing import TYPE_CHECKING, Any, Literal, TypeAlias

from seedbox._errors import ConfigError, RegistrationError
from seedbox.action_type import (
    STATUSES,
    encode_action_type,
    immediate_type,
    type_to_action,
)
from seedbox.effects import mark_retrieved, normalize_action
from seedbox.store import get_path

if TYPE_CHECKING:
    from seedbox._types import Dispatch, Processor
    from seedbox.effects import EffectRunner
    from seedbox.model import Model
    from seedbox.request import Requester

ActionKind: TypeAlias = Literal["exec", "effect", "plain", "reducer"]


def action_kind(config: Any) -> ActionKind:
    """Classify an action config.

    Raises:
        RegistrationError: If the config matches none of the shapes.

    """
    if isinstance(config, Mapping) and config.get("exec") is not None:
        return "exec"
    if inspect.isgeneratorfunction(config):
        return "effect"
    if callable(config):
        return "plain"
    if isinstance(config, Mapping) and (
        "reducer" in config or "callback" in config or "data" in config
    ):
        return "reducer"
    msg = f"Unrecognized action config of type {type(config).__name__}"
    raise RegistrationError(msg)


def _pop_suppress(args: tuple[Any, ...]) -> tuple[tuple[Any, ...], bool]:
    """Strip a trailing literal ``False`` and report whether it was there."""
    if args and args[-1] is False:
        return args[:-1], True
    return args, False


def _resolved(value: Any) -> asyncio.Future[Any]:
    future = asyncio.get_running_loop().create_future()
    future.set_result(value)
    return future


class _Once:
    """Dispatch at most once; disabled outright for suppressed calls."""

    __slots__ = ("_dispatch", "_spent")

    def __init__(self, dispatch: Dispatch, *, enabled: bool) -> None:
        self._dispatch = dispatch
        self._spent = not enabled

    def __call__(self, action: Any) -> Any:
        if self._spent:
            return None
        self._spent = True
        return self._dispatch(action)


class ActionContext:
    """Passed as the last argument to plain action functions.

    ``put`` dispatches an action-like value for the model (at most one
    dispatch per call, shared with the function's return-value patch);
    ``select`` resolves to a copy of a path in the model's state.
    """

    __slots__ = ("_emit", "_get_slice", "_model", "touched")

    def __init__(
        self,
        model: str,
        emit: Callable[[Any], Any],
        get_slice: Callable[[str], Any],
    ) -> None:
        self._model = model
        self._emit = emit
        self._get_slice = get_slice
        self.touched = False

    def put(self, action_like: Any) -> Any:
        """Normalize and dispatch ``action_like``; returns its payload."""
        self.touched = True
        action = normalize_action(self._model, action_like)
        self._emit(action)
        return action.get("payload")

    def select(self, path: str | None = None) -> Awaitable[Any]:
        """Awaitable copy of the value at ``path`` in the model's state."""
        self.touched = True
        return self._read(path)

    async def _read(self, path: str | None) -> Any:
        return copy.deepcopy(get_path(self._get_slice(self._model), path))


class ActionProcessorFactory:
    """Builds processors for a model's actions.

    Args:
        get_slice: Returns the live slice of a model by name.
        effects: Effect runner used by effect processors.
        requester: Request layer for descriptor execs.

    """

    def __init__(
        self,
        get_slice: Callable[[str], Any],
        effects: EffectRunner,
        requester: Requester | None = None,
    ) -> None:
        self._get_slice = get_slice
        self._effects = effects
        self._requester = requester

    def create(self, model: Model, action_name: str, config: Any) -> Processor:
        """Select and build the one processor matching ``config``'s shape."""
        kind = action_kind(config)
        if kind == "exec":
            return self.exec_processor(model, action_name, config["exec"])
        if kind == "effect":
            return self.effect_processor(model, action_name, config)
        if kind == "plain":
            return self.plain_processor(model, action_name, config)
        return self.reducer_processor(model, action_name, config)

    # ----- exec -----

    def exec_processor(self, model: Model, action_name: str, exec_: Any) -> Processor:
        """Processor for async actions driven by ``exec``."""
        types = {status: encode_action_type(model.name, action_name, status) for status in STATUSES}
        always_quiet = isinstance(exec_, Mapping) and bool(exec_.get("no_dispatch"))
        initial = model.state

        def processor(*args: Any) -> Callable[[Dispatch], asyncio.Task[Any]]:
            call_args, quiet = _pop_suppress(args)
            quiet = quiet or always_quiet
            arguments = list(call_args)

            def thunk(dispatch: Dispatch) -> asyncio.Task[Any]:
                async def run() -> Any:
                    try:
                        result = self._invoke_exec(exec_, call_args)
                        if inspect.isawaitable(result):
                            result = await result
                        if isinstance(result, Exception):
                            raise result
                    except asyncio.CancelledError:
                        raise
                    except Exception as exc:
                        if not quiet:
                            dispatch({
                                "type": types["error"],
                                "error": True,
                                "payload": {
                                    "data": None,
                                    "store": initial,
                                    "arguments": arguments,
                                    "message": str(exc),
                                    "exec": exec_,
                                },
                            })
                        raise
                    if not quiet:
                        dispatch({
                            "type": types["success"],
                            "payload": {
                                "data": result,
                                "store": initial,
                                "arguments": arguments,
                                "exec": exec_,
                            },
                        })
                    return result

                task = asyncio.get_running_loop().create_task(run())
                if not quiet:
                    task.add_done_callback(mark_retrieved)
                    try:
                        dispatch({
                            "type": types["start"],
                            "payload": {
                                "data": None,
                                "store": initial,
                                "arguments": arguments,
                                "exec": exec_,
                                "task": task,
                                "promise": task,
                            },
                        })
                    except BaseException:
                        task.cancel()
                        raise
                return task

            return thunk

        return processor

    def _invoke_exec(self, exec_: Any, args: tuple[Any, ...]) -> Any:
        if callable(exec_):
            return exec_(*args)
        if isinstance(exec_, Mapping):
            return self._request(exec_, args)
        return exec_

    def _request(self, descriptor: Mapping[str, Any], args: tuple[Any, ...]) -> Awaitable[Any]:
        if self._requester is None:
            msg = "Request descriptor used as exec but no request layer is configured"
            raise ConfigError(msg)
        first = args[0] if args else None
        base_data = descriptor.get("data")
        if base_data and isinstance(first, Mapping):
            data: Any = {**base_data, **first}
        elif base_data and first is None:
            data = dict(base_data)
        else:
            data = first
        option: dict[str, Any] = {"data": data}
        if len(args) > 1 and isinstance(args[1], Mapping):
            option.update(args[1])
        option = {k: v for k, v in option.items() if v is not None}
        merged = {k: v for k, v in descriptor.items() if k not in ("data", "no_dispatch")}
        merged.update(option)
        return self._requester.request(merged)

    # ----- effect -----

    def effect_processor(self, model: Model, action_name: str, body: Callable[..., Any]) -> Processor:
        """Processor for generator effects."""
        action_type = encode_action_type(model.name, action_name)
        intent_name = type_to_action(model.name, action_name)
        initial = model.state

        def processor(*args: Any) -> Callable[[Dispatch], Any]:
            call_args, quiet = _pop_suppress(args)

            def thunk(dispatch: Dispatch) -> Any:
                if quiet:
                    return self._effects.drive_sync(model.name, body, call_args)
                future = self._effects.watch(action_type)
                dispatch({
                    "action": intent_name,
                    "payload": {"arguments": list(call_args), "store": initial},
                })
                return future

            return thunk

        return processor

    # ----- plain -----

    def plain_processor(self, model: Model, action_name: str, fn: Callable[..., Any]) -> Processor:
        """Processor for plain action functions."""
        own_type = encode_action_type(model.name, action_name)
        patch_type = immediate_type(model.name)
        initial = model.state

        def processor(*args: Any) -> Callable[[Dispatch], asyncio.Future[Any]]:
            call_args, quiet = _pop_suppress(args)

            def thunk(dispatch: Dispatch) -> asyncio.Future[Any]:
                emit = _Once(dispatch, enabled=not quiet)
                ctx = ActionContext(model.name, emit, self._get_slice)
                result = fn(*call_args) if quiet else fn(*call_args, ctx)

                if result is None and not ctx.touched:
                    emit({
                        "type": own_type,
                        "payload": {"data": None, "arguments": list(call_args), "store": initial},
                    })
                    return _resolved(None)

                if inspect.isawaitable(result):
                    async def settle() -> Any:
                        value = await result
                        if value is not None and not isinstance(value, Exception):
                            emit({"type": patch_type, "payload": value})
                        return value

                    return asyncio.get_running_loop().create_task(settle())

                if result is not None:
                    emit({"type": patch_type, "payload": result})
                return _resolved(result)

            return thunk

        return processor

    def reducer_processor(self, model: Model, action_name: str, config: Mapping[str, Any]) -> Processor:
        """Processor for reducer configs: dispatch the action's own type."""
        own_type = encode_action_type(model.name, action_name)
        data = config.get("data")
        initial = model.state

        def processor(*args: Any) -> Callable[[Dispatch], asyncio.Future[Any]]:
            call_args, quiet = _pop_suppress(args)

            def thunk(dispatch: Dispatch) -> asyncio.Future[Any]:
                if quiet:
                    return _resolved(data)
                dispatch({
                    "type": own_type,
                    "payload": {"data": data, "arguments": list(call_args), "store": initial},
                })
                return _resolved(None)

            return thunk

        return processor
