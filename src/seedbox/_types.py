"""Shared type definitions for seedbox."""

from collections.abc import Callable, Mapping
from typing import Any, Literal, TypeAlias

# Canonical action type, e.g. "user/load" or "user/load/success"
ActionType: TypeAlias = str

# Lifecycle status of an exec action
Status: TypeAlias = Literal["start", "success", "error"]

# Action object flowing through the pipeline and into reducers
Action: TypeAlias = dict[str, Any]

# Reducer: (slice, payload) -> new slice, or None after mutating in place
Reducer: TypeAlias = Callable[[Any, Any], Any]

# Dispatch function accepted by thunks and interceptors
Dispatch: TypeAlias = Callable[[Any], Any]

# Interceptor: (action, next, dispatch) -> Any
Interceptor: TypeAlias = Callable[[Any, Callable[[Any], Any], Dispatch], Any]

# Thunk returned by a processor; invoked with a dispatch function
Thunk: TypeAlias = Callable[[Dispatch], Any]

# Processor: (*args) -> Thunk
Processor: TypeAlias = Callable[..., Thunk]

# Binding descriptor: "model.state.field" or {"prop": "model.actions.load"}
Binding: TypeAlias = str | Mapping[str, Any]

# Store change listener
Listener: TypeAlias = Callable[[], None]
