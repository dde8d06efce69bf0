"""Tests for seedbox.action_type — canonical action type codec."""

from __future__ import annotations

import pytest

from seedbox._errors import RegistrationError
from seedbox.action_type import (
    UPDATE_STATE,
    action_to_type,
    decode_action_type,
    encode_action_type,
    immediate_type,
    parse_subscription_key,
    type_to_action,
)


class TestEncodeDecode:
    """encode_action_type / decode_action_type."""

    def test_encode_plain(self) -> None:
        assert encode_action_type("user", "load") == "user/load"

    def test_encode_with_status(self) -> None:
        assert encode_action_type("user", "load", "success") == "user/load/success"

    def test_decode_drops_status(self) -> None:
        assert decode_action_type("user/load/success") == ("user", "load")

    def test_decode_model_only(self) -> None:
        assert decode_action_type("user") == ("user", "")

    def test_immediate_type(self) -> None:
        assert immediate_type("user") == f"user/{UPDATE_STATE}"


class TestIntentNames:
    """type_to_action / action_to_type."""

    def test_type_to_action(self) -> None:
        assert type_to_action("user", "sync") == "user.sync"

    def test_action_to_type(self) -> None:
        assert action_to_type("user.sync") == "user/sync"


class TestSubscriptionKeys:
    """parse_subscription_key."""

    def test_two_segments(self) -> None:
        assert parse_subscription_key("auth.logout") == ("auth", "logout", None)

    def test_three_segments(self) -> None:
        assert parse_subscription_key("auth.login.success") == ("auth", "login", "success")

    @pytest.mark.parametrize("key", ["auth", "auth.", ".logout", "a.b.c.d"])
    def test_malformed(self, key: str) -> None:
        with pytest.raises(RegistrationError, match="Malformed subscription key"):
            parse_subscription_key(key)
