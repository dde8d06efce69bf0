"""Tests for seedbox.seed — the engine context."""

from __future__ import annotations

from typing import Any

import pytest

from seedbox._errors import DispatchError
from seedbox.config import SeedConfig
from seedbox.effects import select
from seedbox.model import BaseModel, action
from seedbox.observability import ActionDispatched, ActionFailed, EffectCompleted, ModelRegistered
from seedbox.seed import Seed


class Counter(BaseModel):
    name = "counter"
    state = {"n": 0}
    reducers = {"reset": "on_reset"}

    @action
    def inc(self, by: int, ctx: Any) -> dict[str, Any]:
        return {"n": by}

    def on_reset(self, state: Any, payload: Any) -> dict[str, Any]:
        return {"n": 0}


class TestConstruction:
    """Seed(...) arguments."""

    def test_models_argument(self) -> None:
        seed = Seed(models=[Counter, {"name": "todo"}])
        assert set(seed.get_state()) == {"counter", "todo"}

    def test_initial_state_overrides(self) -> None:
        seed = Seed(initial_state={"counter": {"n": 5}}, models=[Counter])
        assert seed.get_state()["counter"] == {"n": 5}

    def test_defaults(self) -> None:
        seed = Seed()
        assert seed.config == SeedConfig()
        assert seed.events is not None

    def test_observe_disabled(self) -> None:
        seed = Seed(SeedConfig(observe=False), models=[Counter])
        assert seed.collector is None
        assert seed.events is None


class TestDispatch:
    """Seed.dispatch routing."""

    def test_plain_action_reaches_store(self) -> None:
        seed = Seed(models=[Counter])
        seed.put("counter", {"n": 3})
        seed.dispatch({"type": "counter/reset"})
        assert seed.get_state()["counter"] == {"n": 0}

    def test_thunk(self) -> None:
        seed = Seed(models=[Counter])
        seed.dispatch(lambda dispatch: dispatch({"type": "counter/@@UPDATE_STATE", "payload": {"n": 9}}))
        assert seed.select("counter", "n") == 9

    def test_non_dict_rejected(self) -> None:
        with pytest.raises(DispatchError, match="expected an action dict"):
            Seed().dispatch(42)

    def test_use_appends_interceptor(self) -> None:
        seen: list[Any] = []
        seed = Seed(models=[Counter])
        seed.use(lambda a, next_, dispatch: seen.append(a["type"]) or next_(a))
        seed.dispatch({"type": "counter/reset"})
        assert seen == ["counter/reset"]

    @pytest.mark.asyncio
    async def test_class_model_action(self) -> None:
        seed = Seed(models=[Counter])
        await seed.get_actions("counter")["inc"](4)
        assert seed.get_state()["counter"] == {"n": 4}

    def test_subscribe(self) -> None:
        calls: list[int] = []
        seed = Seed(models=[Counter])
        unsubscribe = seed.subscribe(lambda: calls.append(1))
        seed.put("counter", {"n": 1})
        unsubscribe()
        seed.put("counter", {"n": 2})
        assert calls == [1]


class TestSelect:
    """Seed.select."""

    def test_returns_copy(self) -> None:
        seed = Seed(models=[{"name": "todo", "state": {"items": [1]}}])
        items = seed.select("todo", "items")
        items.append(2)
        assert seed.select("todo") == {"items": [1]}


class TestEvents:
    """Observability wiring."""

    @pytest.mark.asyncio
    async def test_events_recorded(self) -> None:
        def sync():  # type: ignore[no-untyped-def]
            yield select()

        async def fail() -> None:
            raise ValueError("bad")

        seed = Seed(models=[{
            "name": "m",
            "actions": {"sync": sync, "load": {"exec": fail}},
        }])
        await seed.get_actions("m")["sync"]()
        with pytest.raises(ValueError):
            await seed.get_actions("m")["load"]()

        log = seed.events
        assert log is not None
        assert log.query(kind=ModelRegistered)[0].name == "m"
        dispatched = [e.type for e in log.query(kind=ActionDispatched)]
        assert "m.sync" in dispatched
        assert "m/load/error" in dispatched
        failed = log.query(kind=ActionFailed)
        assert failed[0].message == "bad"
        effects = log.query(kind=EffectCompleted)
        assert effects[0].ok is True
        assert [e.message for e in log.failures(model="m")] == ["bad"]
        assert [e.type for e in log.query(model="m", status="error")] == ["m/load/error"]


class TestLifecycle:
    """aclose and the async context manager."""

    @pytest.mark.asyncio
    async def test_context_manager_closes_effects(self) -> None:
        import asyncio

        def slow():  # type: ignore[no-untyped-def]
            yield asyncio.sleep(10)

        async with Seed(models=[{"name": "m", "actions": {"slow": slow}}]) as seed:
            watch = seed.get_actions("m")["slow"]()
            await asyncio.sleep(0)
            assert seed.effects.pending == 1
        assert seed.effects.pending == 0
        assert watch.cancelled()

    @pytest.mark.asyncio
    async def test_aclose_idempotent(self) -> None:
        seed = Seed()
        await seed.aclose()
        await seed.aclose()
