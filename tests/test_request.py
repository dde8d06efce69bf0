"""Tests for seedbox.request — request descriptors over httpx."""

from __future__ import annotations

import json
from typing import Any

import httpx
import pytest

from seedbox.config import SeedConfig
from seedbox.request import Requester


def _requester(handler: Any) -> Requester:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://api.test")
    return Requester(client)


class TestRequest:
    """Requester.request."""

    @pytest.mark.asyncio
    async def test_get_sends_data_as_params(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"ok": True})

        result = await _requester(handler).request({"url": "/items", "data": {"page": 2}})
        assert result == {"ok": True}
        assert seen[0].method == "GET"
        assert seen[0].url.params["page"] == "2"

    @pytest.mark.asyncio
    async def test_post_sends_json_body(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(201, text="created")

        result = await _requester(handler).request(
            {"url": "/items", "method": "post", "data": {"name": "milk"}, "headers": {"X-Trace": "1"}}
        )
        assert result == "created"
        assert seen[0].method == "POST"
        assert json.loads(seen[0].content) == {"name": "milk"}
        assert seen[0].headers["X-Trace"] == "1"

    @pytest.mark.asyncio
    async def test_callback_post_processes(self) -> None:
        requester = _requester(lambda request: httpx.Response(200, json={"items": [1, 2]}))
        result = await requester.request({"url": "/items", "callback": lambda body: body["items"]})
        assert result == [1, 2]

    @pytest.mark.asyncio
    async def test_empty_body_is_none(self) -> None:
        requester = _requester(lambda request: httpx.Response(204))
        assert await requester.request({"url": "/items", "method": "DELETE"}) is None

    @pytest.mark.asyncio
    async def test_error_status_raises(self) -> None:
        requester = _requester(lambda request: httpx.Response(500))
        with pytest.raises(httpx.HTTPStatusError):
            await requester.request({"url": "/items"})

    @pytest.mark.asyncio
    async def test_missing_url(self) -> None:
        with pytest.raises(ValueError, match="no 'url'"):
            await _requester(lambda request: httpx.Response(200)).request({})


class TestLifecycle:
    """Client ownership."""

    @pytest.mark.asyncio
    async def test_owned_client_created_from_config(self) -> None:
        requester = Requester.from_config(
            SeedConfig(base_url="http://api.test", timeout=5.0, headers={"X-App": "seed"})
        )
        client = requester.client
        assert client.base_url.host == "api.test"
        assert client.headers["X-App"] == "seed"
        await requester.aclose()
        assert client.is_closed

    @pytest.mark.asyncio
    async def test_borrowed_client_left_open(self) -> None:
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(200)))
        requester = Requester(client)
        await requester.aclose()
        assert not client.is_closed
        await client.aclose()
