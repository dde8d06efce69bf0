"""Tests for seedbox.model — declaration forms and ModelSpec."""

from __future__ import annotations

from typing import Any

import pytest

from seedbox._errors import RegistrationError
from seedbox.model import BaseModel, Model, ModelSpec, action


class TestFromMapping:
    """ModelSpec.from_mapping."""

    def test_minimal(self) -> None:
        spec = ModelSpec.from_mapping({"name": "todo"})
        assert spec.name == "todo"
        assert spec.state == {}
        assert spec.actions == {}
        assert spec.source is None

    def test_missing_name(self) -> None:
        with pytest.raises(RegistrationError, match="no 'name'"):
            ModelSpec.from_mapping({"state": {}})

    def test_state_is_copied(self) -> None:
        state = {"items": []}
        spec = ModelSpec.from_mapping({"name": "todo", "state": state})
        spec.state["items"].append(1)
        assert state == {"items": []}

    def test_external_reducers_alias(self) -> None:
        reducer = lambda state, payload: None  # noqa: E731
        spec = ModelSpec.from_mapping({"name": "cart", "external_reducers": {"auth.logout": reducer}})
        assert spec.subscriptions == {"auth.logout": reducer}


class TestFromModel:
    """ModelSpec.from_model — class-declared models."""

    def test_decorated_methods_become_actions(self) -> None:
        class Todo(BaseModel):
            name = "todo"
            state = {"items": []}

            @action
            def add(self, item: str, ctx: Any) -> dict[str, Any]:
                return {"last": item}

            @action(exec=True, callback="loaded")
            async def load(self) -> list[str]:
                return ["a"]

            def loaded(self, state: Any, payload: Any) -> None:
                state["items"] = payload["data"]

            def helper(self) -> None:
                """Not an action."""

        spec = ModelSpec.from_model(Todo)
        assert set(spec.actions) == {"add", "load"}
        assert callable(spec.actions["add"])
        load = spec.actions["load"]
        assert load["exec"].__func__ is Todo.load
        assert load["callback"].__func__ is Todo.loaded
        assert isinstance(spec.source, Todo)

    def test_instance_accepted(self) -> None:
        class Counter(BaseModel):
            name = "counter"
            state = 0

        instance = Counter()
        spec = ModelSpec.from_model(instance)
        assert spec.source is instance
        assert spec.state == 0

    def test_string_reducers_resolved(self) -> None:
        class Cart(BaseModel):
            name = "cart"
            subscriptions = {"auth.logout": "clear"}

            def clear(self, state: Any, payload: Any) -> dict[str, Any]:
                return {"items": []}

        spec = ModelSpec.from_model(Cart)
        assert spec.subscriptions["auth.logout"]({}, None) == {"items": []}

    def test_missing_name(self) -> None:
        class Nameless(BaseModel):
            pass

        with pytest.raises(RegistrationError, match="Nameless"):
            ModelSpec.from_model(Nameless)

    def test_unknown_callback_method(self) -> None:
        class Broken(BaseModel):
            name = "broken"

            @action(exec=True, callback="missing")
            async def load(self) -> None:
                return None

        with pytest.raises(RegistrationError, match="no reducer method 'missing'"):
            ModelSpec.from_model(Broken)

    def test_unknown_subscription_method(self) -> None:
        class Cart(BaseModel):
            name = "cart"
            subscriptions = {"auth.logout": "clear"}

        with pytest.raises(RegistrationError, match="Cart has no reducer method 'clear'"):
            ModelSpec.from_model(Cart)

    def test_constructor_error_wrapped(self) -> None:
        class Exploding(BaseModel):
            name = "exploding"

            def __init__(self) -> None:
                raise RuntimeError("no backend")

        with pytest.raises(RegistrationError, match="could not be instantiated") as exc_info:
            ModelSpec.from_model(Exploding)
        assert isinstance(exc_info.value.__cause__, RuntimeError)


class TestCoerce:
    """ModelSpec.coerce."""

    def test_passthrough(self) -> None:
        spec = ModelSpec(name="x")
        assert ModelSpec.coerce(spec) is spec

    def test_unsupported(self) -> None:
        with pytest.raises(RegistrationError, match="Unsupported"):
            ModelSpec.coerce(42)


class TestModel:
    """Model — registered model record."""

    def test_immediate_type(self) -> None:
        assert Model(name="user", state={}).immediate_type == "user/@@UPDATE_STATE"

    def test_defaults(self) -> None:
        model = Model(name="user", state={})
        assert model.revision == 0
        assert model.reducers == {}
