"""Request layer for exec descriptors.

An exec action may be declared with a request descriptor instead of a
function::

    "load": {"exec": {"url": "/users", "method": "GET", "data": {"page": 1}}}

Calling ``load({"q": "ann"})`` merges the call's first argument into the
descriptor's ``data`` and hands the result to :meth:`Requester.request`.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

if TYPE_CHECKING:
    from collections.abc import Mapping

    from seedbox.config import SeedConfig

logger = logging.getLogger(__name__)

_QUERY_METHODS = frozenset({"GET", "DELETE", "HEAD", "OPTIONS"})


class Requester:
    """Executes request descriptors with an ``httpx.AsyncClient``.

    Args:
        client: Client to use.  When omitted one is created lazily from
            ``base_url``, ``timeout`` and ``headers`` and owned by the requester.
        base_url: Base URL for relative descriptor URLs.
        timeout: Request timeout in seconds.
        headers: Default headers.

    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        base_url: str = "",
        timeout: float = 30.0,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        self._client = client
        self._owns_client = client is None
        self._base_url = base_url
        self._timeout = timeout
        self._headers = dict(headers or {})

    @classmethod
    def from_config(cls, config: SeedConfig) -> Requester:
        """Create a requester using the request settings of a ``SeedConfig``."""
        return cls(base_url=config.base_url, timeout=config.timeout, headers=config.headers)

    @property
    def client(self) -> httpx.AsyncClient:
        """The underlying client, created on first use."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                headers=self._headers,
            )
        return self._client

    async def request(self, descriptor: Mapping[str, Any]) -> Any:
        """Perform the request described by ``descriptor``.

        Recognized keys: ``url`` (required), ``method`` (default ``GET``),
        ``data``, ``params``, ``headers`` and ``callback``.  ``data`` becomes
        query parameters for GET/DELETE/HEAD/OPTIONS and a JSON body
        otherwise.  ``callback``, if callable, post-processes the decoded
        response.

        Raises:
            ValueError: If the descriptor has no ``url``.
            httpx.HTTPError: On transport errors and non-2xx responses.

        """
        url = descriptor.get("url")
        if not url:
            msg = "Request descriptor has no 'url'"
            raise ValueError(msg)
        method = str(descriptor.get("method") or "GET").upper()
        data = descriptor.get("data")
        params = dict(descriptor.get("params") or {})
        kwargs: dict[str, Any] = {}
        if data is not None:
            if method in _QUERY_METHODS:
                params.update(data)
            else:
                kwargs["json"] = data
        if params:
            kwargs["params"] = params
        if descriptor.get("headers"):
            kwargs["headers"] = dict(descriptor["headers"])

        logger.debug("%s %s", method, url)
        response = await self.client.request(method, url, **kwargs)
        response.raise_for_status()
        result = _decode(response)

        callback = descriptor.get("callback")
        if callable(callback):
            result = callback(result)
        return result

    async def aclose(self) -> None:
        """Close the client if this requester created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None


def _decode(response: httpx.Response) -> Any:
    if not response.content:
        return None
    if "json" in response.headers.get("content-type", ""):
        return response.json()
    return response.text
