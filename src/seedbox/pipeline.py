"""Dispatch pipeline — ordered interceptor chain around the base dispatch.

Each interceptor has the signature ``(action, next, dispatch)``:

- ``next(action)`` hands a (possibly transformed) action to the following
  interceptor, ending at the base dispatch.
- ``dispatch`` is the pipeline's own top-level dispatch, for issuing new
  actions through the full chain.

Example::

    def loading(action, next, dispatch):
        if action.get("type", "").endswith("/start"):
            spinner.show()
        return next(action)

    pipeline.use(loading)

The chain is composed per call in continuation-passing style over a snapshot
of the interceptor list.  No position counter is shared between calls, so
interleaved dispatches from concurrent tasks cannot disturb each other and a
failed dispatch leaves nothing behind.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

    from seedbox._types import Interceptor

logger = logging.getLogger(__name__)


class DispatchPipeline:
    """Ordered interceptor chain terminating at a base dispatch function.

    Args:
        base: The function that finally applies an action (the store).
        interceptors: Initial interceptors, in execution order.

    """

    __slots__ = ("_base", "_interceptors")

    def __init__(
        self,
        base: Callable[[Any], Any],
        interceptors: tuple[Interceptor, ...] | list[Interceptor] = (),
    ) -> None:
        self._base = base
        self._interceptors: list[Interceptor] = list(interceptors)

    @property
    def interceptors(self) -> tuple[Interceptor, ...]:
        """Registered interceptors in execution order."""
        return tuple(self._interceptors)

    def use(self, interceptor: Interceptor) -> None:
        """Append an interceptor to the end of the chain."""
        self._interceptors.append(interceptor)

    def remove(self, interceptor: Interceptor) -> None:
        """Remove a previously registered interceptor (no-op if absent)."""
        try:
            self._interceptors.remove(interceptor)
        except ValueError:
            pass

    def dispatch(self, action: Any) -> Any:
        """Run ``action`` through every interceptor, then the base dispatch.

        Raises:
            BaseException: Any exception instance passed to ``next`` by an
                interceptor is raised here, aborting the remaining chain.

        """
        chain = tuple(self._interceptors)
        return self._step(chain, 0, action)

    def _step(self, chain: tuple[Interceptor, ...], index: int, action: Any) -> Any:
        if isinstance(action, BaseException):
            raise action
        if index < len(chain):
            interceptor = chain[index]

            def next_(next_action: Any) -> Any:
                return self._step(chain, index + 1, next_action)

            return interceptor(action, next_, self.dispatch)
        logger.debug("dispatch %s", action.get("type") if isinstance(action, dict) else action)
        return self._base(action)
