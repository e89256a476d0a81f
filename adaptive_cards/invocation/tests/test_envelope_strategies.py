import json

import pytest

from adaptive_cards.common.errors import InvalidInputError
from adaptive_cards.invocation.envelope import (
    EXTRACTION_STRATEGIES,
    extract_invocation,
    parse_invocation,
)
from adaptive_cards.invocation.models import CardSource, InvocationMode

CARD = {"type": "AdaptiveCard", "version": "1.5"}


def _inv(**extra):
    data = {"card_source": "inline", "card_spec": {"inline_json": CARD}}
    data.update(extra)
    return data


def test_strategy_order_is_fixed() -> None:
    assert [name for name, _ in EXTRACTION_STRATEGIES] == [
        "direct",
        "invocation",
        "card",
        "payload",
        "config",
        "config_overlay",
        "envelope_fields",
    ]


def test_direct_invocation() -> None:
    name, invocation = extract_invocation(_inv(payload={"a": 1}))
    assert name == "direct"
    assert invocation.payload == {"a": 1}
    assert invocation.card_spec.inline_json == CARD


def test_camel_case_keys_are_accepted() -> None:
    raw = {"cardSource": "catalog", "cardSpec": {"catalogName": "welcome"}, "validationMode": "Error"}
    name, invocation = extract_invocation(raw)
    assert name == "direct"
    assert invocation.card_source == CardSource.catalog
    assert invocation.card_spec.catalog_name == "welcome"


def test_invocation_key_beats_card_key() -> None:
    raw = {"invocation": _inv(payload="from-invocation"), "card": _inv(payload="from-card")}
    name, invocation = extract_invocation(raw)
    assert name == "invocation"
    assert invocation.payload == "from-invocation"


def test_card_key_beats_payload() -> None:
    raw = {"card": _inv(payload="from-card"), "payload": _inv(payload="from-payload")}
    assert extract_invocation(raw)[0] == "card"


def test_payload_with_card_keys() -> None:
    raw = {"payload": _inv(payload="inner"), "config": _inv(payload="config")}
    name, invocation = extract_invocation(raw)
    assert name == "payload"
    assert invocation.payload == "inner"


def test_config_and_config_card() -> None:
    assert extract_invocation({"config": _inv()})[0] == "config"
    name, invocation = extract_invocation({"config": {"card": _inv(node_id="n1")}})
    assert name == "config"
    assert invocation.node_id == "n1"


def test_config_overlay_applies_envelope_fields() -> None:
    raw = {
        "config": {"mode": "render", "validation_mode": "off"},
        "payload": {"name": "Ada"},
        "session": {"user": "u1"},
        "state": {"count": 1},
        "node_id": "n9",
        "interaction": {"interaction_type": "Submit", "action_id": "a", "card_instance_id": "c"},
        "envelope": {"trace_id": "t"},
    }
    name, invocation = extract_invocation(raw)
    assert name == "config_overlay"
    assert invocation.mode == InvocationMode.render
    assert invocation.payload == {"name": "Ada"}
    assert invocation.session == {"user": "u1"}
    assert invocation.state == {"count": 1}
    assert invocation.node_id == "n9"
    assert invocation.interaction.action_id == "a"
    assert invocation.envelope == {"trace_id": "t"}


def test_envelope_fields_fallback() -> None:
    name, invocation = extract_invocation({"payload": {"x": 1}, "nodeId": "n2", "mode": "validate"})
    assert name == "envelope_fields"
    assert invocation.card_source == CardSource.inline
    assert invocation.payload == {"x": 1}
    assert invocation.node_id == "n2"
    assert invocation.mode == InvocationMode.validate


def test_non_object_state_in_envelope_is_rejected() -> None:
    with pytest.raises(InvalidInputError):
        extract_invocation({"payload": {}, "state": [1, 2]})


def test_malformed_interaction_in_envelope_is_rejected() -> None:
    with pytest.raises(InvalidInputError) as excinfo:
        extract_invocation({"payload": {}, "interaction": {"interaction_type": "Dance"}})
    assert excinfo.value.details["location"] == "interaction"


def test_invalid_nested_invocation() -> None:
    with pytest.raises(InvalidInputError):
        extract_invocation({"invocation": "not-an-object"})
    with pytest.raises(InvalidInputError):
        extract_invocation(_inv(state="text"))


@pytest.mark.parametrize("raw", ["{not json", "[1, 2]", b"42"])
def test_unreadable_envelopes(raw) -> None:
    with pytest.raises(InvalidInputError):
        extract_invocation(raw)


def test_parse_invocation_accepts_text_and_operation() -> None:
    invocation = parse_invocation(json.dumps(_inv()), operation="Validate")
    assert invocation.mode == InvocationMode.validate
    assert parse_invocation(json.dumps(_inv()).encode("utf-8")).mode == InvocationMode.render_and_validate
