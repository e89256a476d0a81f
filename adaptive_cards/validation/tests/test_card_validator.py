import copy
from typing import Any, Dict, List

from adaptive_cards.invocation.models import ValidationIssue
from adaptive_cards.validation.rules import CardValidator, issue, validate_card


def _card(body: List[Dict[str, Any]] = None, actions: List[Dict[str, Any]] = None) -> Dict[str, Any]:
    card: Dict[str, Any] = {"type": "AdaptiveCard", "version": "1.5", "body": body or []}
    if actions is not None:
        card["actions"] = actions
    return card


def _codes(issues: List[ValidationIssue]) -> List[str]:
    return [i.code for i in issues]


def test_valid_card_has_no_issues() -> None:
    card = _card(
        body=[
            {"type": "TextBlock", "text": "hello"},
            {"type": "Input.Text", "id": "comment"},
            {"type": "Input.ChoiceSet", "id": "pick", "choices": [{"title": "A", "value": "a"}]},
            {"type": "Input.Toggle", "id": "agree", "title": "I agree"},
            {"type": "Input.Number", "id": "qty", "min": 1, "max": 10},
            {"type": "ColumnSet", "columns": [{"type": "Column", "items": []}]},
            {"type": "Media", "sources": [{"url": "https://example.com/v.mp4"}]},
        ],
        actions=[
            {"type": "Action.Submit", "id": "send"},
            {"type": "Action.OpenUrl", "id": "docs", "url": "https://example.com"},
            {"type": "Action.Execute", "id": "run", "verb": "doIt", "data": {"x": 1}},
            {"type": "Action.ShowCard", "id": "more", "card": {"type": "AdaptiveCard", "body": []}},
            {"type": "Action.ToggleVisibility", "id": "flip", "targetElements": ["comment"]},
        ],
    )
    assert validate_card(card) == []


def test_root_checks() -> None:
    assert validate_card(["nope"]) == [ValidationIssue(code="invalid-root", message="Card must be a JSON object", path="/")]
    issues = validate_card({"type": "Card", "body": {}, "actions": "x"})
    assert [(i.code, i.path) for i in issues] == [
        ("invalid-type", "/type"),
        ("missing-version", "/version"),
        ("invalid-body", "/body"),
        ("invalid-actions", "/actions"),
    ]


def test_choice_set_without_choices_is_reported_until_fixed() -> None:
    node: Dict[str, Any] = {"type": "Input.ChoiceSet", "id": "pick"}
    issues = validate_card(_card(body=[node]))
    assert _codes(issues) == ["missing-choices"]
    assert issues[0].path == "/body/0"

    node["choices"] = [{"title": "Yes", "value": "y"}]
    assert validate_card(_card(body=[node])) == []


def test_choice_set_variants() -> None:
    body = [
        {"type": "Input.ChoiceSet", "id": "a", "choices": {}},
        {"type": "Input.ChoiceSet", "id": "b", "choices": []},
        {"type": "Input.ChoiceSet", "id": "c", "choices": [{"title": "", "value": "x"}]},
    ]
    assert _codes(validate_card(_card(body=body))) == ["invalid-choices", "empty-choices", "invalid-choice"]


def test_input_ids_missing_and_duplicate() -> None:
    body = [
        {"type": "Input.Text"},
        {"type": "Input.Text", "id": "same"},
        {"type": "Container", "items": [{"type": "Input.Date", "id": "same"}]},
    ]
    issues = validate_card(_card(body=body))
    assert [(i.code, i.path) for i in issues] == [
        ("missing-id", "/body/0"),
        ("duplicate-id", "/body/2/items/0"),
    ]


def test_toggle_and_number_rules() -> None:
    body = [
        {"type": "Input.Toggle", "id": "t"},
        {"type": "Input.Number", "id": "n", "min": 5, "max": 1},
        {"type": "Input.Number", "id": "m", "min": 1},
    ]
    assert _codes(validate_card(_card(body=body))) == ["missing-title", "invalid-range"]


def test_column_set_and_media_rules() -> None:
    body = [
        {"type": "ColumnSet"},
        {"type": "ColumnSet", "columns": []},
        {"type": "ColumnSet", "columns": "x"},
        {"type": "Media"},
        {"type": "Media", "sources": []},
        {"type": "Media", "sources": [{"url": ""}]},
    ]
    assert _codes(validate_card(_card(body=body))) == [
        "empty-columns",
        "invalid-columns",
        "missing-sources",
        "missing-sources",
        "invalid-source",
    ]


def test_action_rules() -> None:
    actions = [
        {"type": "Action.Submit", "id": "dup"},
        {"type": "Action.Submit", "id": "dup"},
        {"type": "Action.OpenUrl"},
        {"type": "Action.Execute", "data": "text"},
        {"type": "Action.Execute", "verb": "ok", "data": None},
        {"type": "Action.ShowCard"},
        {"type": "Action.ShowCard", "card": []},
        {"type": "Action.ToggleVisibility"},
        {"type": "Action.ToggleVisibility", "targetElements": []},
    ]
    issues = validate_card(_card(actions=actions))
    assert _codes(issues) == [
        "duplicate-action-id",
        "missing-url",
        "missing-verb",
        "invalid-data",
        "missing-card",
        "invalid-card",
        "missing-target-elements",
        "empty-target-elements",
    ]
    assert issues[0].path == "/actions/1"


def test_nested_show_card_is_walked() -> None:
    actions = [{"type": "Action.ShowCard", "card": {"type": "AdaptiveCard", "body": [{"type": "Input.Toggle", "id": "x"}]}}]
    issues = validate_card(_card(actions=actions))
    assert [(i.code, i.path) for i in issues] == [("missing-title", "/actions/0/card/body/0")]


def test_validation_does_not_mutate_card() -> None:
    card = _card(body=[{"type": "Input.Text"}])
    original = copy.deepcopy(card)
    validate_card(card)
    assert card == original


def test_custom_rules_can_be_registered() -> None:
    def no_shouting(node, path, state):
        if str(node.get("text", "")).isupper():
            yield issue(path, "shouting", "TextBlock text should not be all caps")

    validator = CardValidator()
    validator.register("TextBlock", no_shouting)
    issues = validator.validate(_card(body=[{"type": "TextBlock", "text": "HELLO"}, {"type": "TextBlock", "text": "hi"}]))
    assert [(i.code, i.path) for i in issues] == [("shouting", "/body/0")]
    # The default validator is unaffected.
    assert validate_card(_card(body=[{"type": "TextBlock", "text": "HELLO"}])) == []


def test_media_sources_must_be_an_array() -> None:
    issues = validate_card(_card(body=[{"type": "Media", "sources": {"url": "https://example.com/v.mp4"}}]))
    assert [(i.code, i.path) for i in issues] == [("invalid-sources", "/body/0")]


def test_toggle_visibility_targets_must_be_an_array() -> None:
    actions = [{"type": "Action.ToggleVisibility", "id": "flip", "targetElements": "comment"}]
    issues = validate_card(_card(actions=actions))
    assert [(i.code, i.path) for i in issues] == [("invalid-target-elements", "/actions/0")]


def test_prefix_rules_can_be_registered() -> None:
    def needs_label(node, path, state):
        if "label" not in node:
            yield issue(path, "missing-label", "Inputs should include a label")

    validator = CardValidator()
    validator.register_prefix("Input.", needs_label)
    body = [
        {"type": "Input.Text", "id": "a"},
        {"type": "Input.Date", "id": "b", "label": "When"},
        {"type": "TextBlock", "text": "not an input"},
    ]
    issues = validator.validate(_card(body=body))
    assert [(i.code, i.path) for i in issues] == [("missing-label", "/body/0")]
    assert validator.rules_for("Input.Text")[-1] is needs_label
    assert validate_card(_card(body=body)) == []
