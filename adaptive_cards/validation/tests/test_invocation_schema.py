from adaptive_cards.validation.invocation_schema import (
    INVALID_ENUM,
    INVALID_TYPE,
    MISSING_FIELD,
    SCHEMA_ERROR,
    check_envelope,
    locate_invocation_candidate,
    validate_invocation_payload,
)


def test_well_formed_invocation_has_no_issues() -> None:
    value = {
        "cardSource": "inline",
        "cardSpec": {"inlineJson": {"type": "AdaptiveCard"}},
        "interaction": {"interactionType": "submit", "actionId": "a", "cardInstanceId": "c"},
    }
    assert validate_invocation_payload(value) == []


def test_non_object_is_invalid_type() -> None:
    issues = validate_invocation_payload(["x"])
    assert [(i.code, i.path) for i in issues] == [(INVALID_TYPE, "/")]


def test_unknown_enum_value() -> None:
    issues = validate_invocation_payload({"card_spec": {"inline_json": {}}, "mode": "explode"})
    assert [(i.code, i.path) for i in issues] == [(INVALID_ENUM, "/mode")]


def test_wrong_type_for_state() -> None:
    issues = validate_invocation_payload({"card_spec": {"inline_json": {}}, "state": "not-an-object"})
    assert [(i.code, i.path) for i in issues] == [(INVALID_TYPE, "/state")]


def test_source_specific_field_is_required() -> None:
    issues = validate_invocation_payload({"card_source": "asset", "card_spec": {}})
    assert [(i.code, i.path) for i in issues] == [(MISSING_FIELD, "/card_spec/asset_path")]
    issues = validate_invocation_payload({"card_source": "catalog", "card_spec": {"catalog_name": ""}})
    assert [(i.code, i.path) for i in issues] == [(MISSING_FIELD, "/card_spec/catalog_name")]


def test_interaction_identity_is_required_unless_disabled() -> None:
    base = {"card_spec": {"inline_json": {}}}
    issues = validate_invocation_payload({**base, "interaction": {"action_id": " "}})
    assert [i.path for i in issues] == ["/interaction/action_id", "/interaction/card_instance_id"]
    assert validate_invocation_payload({**base, "interaction": {"enabled": False}}) == []


def test_locate_candidate_in_envelopes() -> None:
    inner = {"card_spec": {"inline_json": {}}}
    assert locate_invocation_candidate(inner) is inner
    assert locate_invocation_candidate({"invocation": inner}) is inner
    assert locate_invocation_candidate({"payload": inner}) is inner
    assert locate_invocation_candidate({"config": {"card": inner}}) is inner
    assert locate_invocation_candidate("text") is None


def test_check_envelope() -> None:
    assert check_envelope({"invocation": {"card_spec": {"inline_json": {}}}}) == []
    issues = check_envelope({"unrelated": True})
    assert [i.code for i in issues] == [SCHEMA_ERROR]
