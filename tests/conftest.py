"""Shared test fixtures for seedbox."""

from __future__ import annotations

from typing import Any

import pytest

from seedbox.config import SeedConfig
from seedbox.seed import Seed


class Recorder:
    """Interceptor that records every action passing through the pipeline."""

    def __init__(self) -> None:
        self.actions: list[Any] = []

    def __call__(self, action: Any, next_: Any, dispatch: Any) -> Any:
        self.actions.append(action)
        return next_(action)

    @property
    def types(self) -> list[str]:
        """Types (or intent names) in dispatch order."""
        return [a.get("type") or a.get("action") for a in self.actions]


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def seed(recorder: Recorder) -> Seed:
    """Seed with a recording interceptor and no models."""
    return Seed(SeedConfig(name="test"), interceptors=[recorder])


def make_user_model(**overrides: Any) -> dict[str, Any]:
    """A small ``user`` model declaration covering every action form."""

    async def fetch_user(uid: int) -> dict[str, Any]:
        return {"id": uid, "name": f"user-{uid}"}

    def on_loaded(state: dict[str, Any], payload: dict[str, Any]) -> dict[str, Any]:
        return {"profile": payload["data"], "loading": False}

    def rename(name: str, ctx: Any) -> dict[str, Any]:
        return {"nickname": name}

    spec: dict[str, Any] = {
        "name": "user",
        "state": {"profile": None, "nickname": "", "loading": False},
        "actions": {
            "load": {
                "exec": fetch_user,
                "callback": {
                    "start": lambda state, payload: {"loading": True},
                    "success": on_loaded,
                },
            },
            "rename": rename,
        },
    }
    spec.update(overrides)
    return spec


@pytest.fixture
def user_spec() -> dict[str, Any]:
    return make_user_model()
