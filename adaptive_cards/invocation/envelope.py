"""Extraction of a CardInvocation from the shapes hosts send.

Hosts wrap the invocation in several envelope layouts. Each layout is a pure
strategy ``dict -> Optional[CardInvocation]``; ``EXTRACTION_STRATEGIES`` is
tried in order and the first strategy that recognises its layout wins.
"""
from __future__ import annotations

import json
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from pydantic import ValidationError

from adaptive_cards.common.errors import InvalidInputError
from adaptive_cards.invocation.models import CardInteraction, CardInvocation, InvocationMode

CARD_KEYS = ("card_source", "card_spec", "cardSource", "cardSpec")

Strategy = Callable[[Dict[str, Any]], Optional[CardInvocation]]


def has_card_keys(value: Any) -> bool:
    return isinstance(value, dict) and any(key in value for key in CARD_KEYS)


def _parse(value: Any, where: str) -> CardInvocation:
    if not isinstance(value, dict):
        raise InvalidInputError(f"invalid invocation: {where} must be an object", details={"location": where})
    try:
        return CardInvocation.model_validate(value)
    except ValidationError as exc:
        raise InvalidInputError(
            f"invalid invocation at {where}: {exc.error_count()} error(s)",
            details={"location": where, "errors": exc.errors(include_url=False, include_context=False)},
        ) from exc


def _parse_field(model: Any, value: Any, where: str) -> Any:
    try:
        return model.model_validate(value)
    except ValidationError as exc:
        raise InvalidInputError(
            f"invalid invocation: {where} is malformed",
            details={"location": where, "errors": exc.errors(include_url=False, include_context=False)},
        ) from exc


def overlay_envelope(invocation: CardInvocation, envelope: Dict[str, Any]) -> CardInvocation:
    """Apply the envelope's top-level request fields over a configured invocation."""
    updates: Dict[str, Any] = {}
    for key in ("payload", "session"):
        if envelope.get(key) is not None:
            updates[key] = envelope[key]
    state = envelope.get("state")
    if state is not None:
        if not isinstance(state, dict):
            raise InvalidInputError("invalid invocation: state must be an object", details={"location": "state"})
        updates["state"] = state
    node_id = envelope.get("node_id", envelope.get("nodeId"))
    if isinstance(node_id, str):
        updates["node_id"] = node_id
    if invocation.interaction is None and envelope.get("interaction") is not None:
        updates["interaction"] = _parse_field(CardInteraction, envelope["interaction"], "interaction")
    if envelope.get("mode") is not None:
        updates["mode"] = _parse_field(CardInvocation, {"mode": envelope["mode"]}, "mode").mode
    if isinstance(envelope.get("envelope"), dict):
        updates["envelope"] = envelope["envelope"]
    return invocation.model_copy(update=updates)


def from_direct(value: Dict[str, Any]) -> Optional[CardInvocation]:
    if has_card_keys(value):
        return _parse(value, "$")
    return None


def from_invocation_key(value: Dict[str, Any]) -> Optional[CardInvocation]:
    if "invocation" in value:
        return _parse(value["invocation"], "invocation")
    return None


def from_card_key(value: Dict[str, Any]) -> Optional[CardInvocation]:
    if "card" in value:
        return _parse(value["card"], "card")
    return None


def from_payload(value: Dict[str, Any]) -> Optional[CardInvocation]:
    if has_card_keys(value.get("payload")):
        return _parse(value["payload"], "payload")
    return None


def from_config(value: Dict[str, Any]) -> Optional[CardInvocation]:
    config = value.get("config")
    if has_card_keys(config):
        return _parse(config, "config")
    if isinstance(config, dict) and "card" in config:
        return _parse(config["card"], "config.card")
    return None


def from_config_overlay(value: Dict[str, Any]) -> Optional[CardInvocation]:
    config = value.get("config")
    if not isinstance(config, dict):
        return None
    try:
        invocation = CardInvocation.model_validate(config)
    except ValidationError:
        return None
    return overlay_envelope(invocation, value)


def from_envelope_fields(value: Dict[str, Any]) -> Optional[CardInvocation]:
    return overlay_envelope(CardInvocation(), value)


EXTRACTION_STRATEGIES: List[Tuple[str, Strategy]] = [
    ("direct", from_direct),
    ("invocation", from_invocation_key),
    ("card", from_card_key),
    ("payload", from_payload),
    ("config", from_config),
    ("config_overlay", from_config_overlay),
    ("envelope_fields", from_envelope_fields),
]


def load_envelope(raw: Union[str, bytes, Dict[str, Any]]) -> Dict[str, Any]:
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except ValueError as exc:
            raise InvalidInputError(f"invalid invocation: {exc}") from exc
    if not isinstance(raw, dict):
        raise InvalidInputError("invalid invocation: expected a JSON object")
    return raw


def extract_invocation(raw: Union[str, bytes, Dict[str, Any]]) -> Tuple[str, CardInvocation]:
    """Return the name of the winning strategy and the parsed invocation."""
    value = load_envelope(raw)
    for name, strategy in EXTRACTION_STRATEGIES:
        invocation = strategy(value)
        if invocation is not None:
            return name, invocation
    raise InvalidInputError("invalid invocation: no recognised envelope layout")


def parse_invocation(raw: Union[str, bytes, Dict[str, Any]], operation: Optional[str] = None) -> CardInvocation:
    _, invocation = extract_invocation(raw)
    # The host operation name may steer mode selection.
    if operation and operation.lower() == "validate":
        invocation = invocation.model_copy(update={"mode": InvocationMode.validate})
    return invocation
