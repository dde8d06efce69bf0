"""Action-type codec.

Every reducer and effect target is keyed by a canonical string::

    "<model>/<action>"            plain actions
    "<model>/<action>/<status>"   exec lifecycle, status in start/success/error

``decode_action_type`` only returns ``(model, action)``; the status segment is
not recoverable from it.  Names are not validated, so model and action names
must not contain the separator.
"""

from __future__ import annotations

from seedbox._errors import RegistrationError

SEP = "/"
INTENT_SEP = "."
STATUSES = ("start", "success", "error")
UPDATE_STATE = "@@UPDATE_STATE"


def encode_action_type(model: str, action: str, status: str | None = None) -> str:
    """Join model, action and optional status into a canonical type."""
    if status:
        return f"{model}{SEP}{action}{SEP}{status}"
    return f"{model}{SEP}{action}"


def decode_action_type(action_type: str) -> tuple[str, str]:
    """Split a canonical type into ``(model, action)``."""
    parts = action_type.split(SEP)
    model = parts[0]
    action = parts[1] if len(parts) > 1 else ""
    return model, action


def immediate_type(model: str) -> str:
    """Type of the synthetic action merging a patch into ``model``'s state."""
    return encode_action_type(model, UPDATE_STATE)


def type_to_action(model: str, action: str) -> str:
    """Name an effect intent: ``"model.action"``."""
    return f"{model}{INTENT_SEP}{action}"


def action_to_type(name: str) -> str:
    """Canonical type for an intent name produced by :func:`type_to_action`."""
    model, _, action = name.partition(INTENT_SEP)
    return encode_action_type(model, action)


def parse_subscription_key(key: str) -> tuple[str, str, str | None]:
    """Parse ``"model.action"`` or ``"model.action.status"``.

    Raises:
        RegistrationError: If the key does not have two or three segments.

    """
    parts = key.split(INTENT_SEP)
    if len(parts) == 2 and all(parts):
        return parts[0], parts[1], None
    if len(parts) == 3 and all(parts):
        return parts[0], parts[1], parts[2]
    msg = f"Malformed subscription key {key!r}; expected 'model.action[.status]'"
    raise RegistrationError(msg)
