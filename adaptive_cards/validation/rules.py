"""Structural validation of adaptive card documents.

The validator walks the card depth-first and never mutates it. Rules are
registered per node ``type`` (exact name) or per type prefix (``Input.``,
``Action.``), so hosts can extend the rule set without touching the walk.
Issue paths are slash-joined key/index chains from the root (``/`` for the
root itself).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Set

from adaptive_cards.invocation.models import ValidationIssue

CARD_TYPE = "AdaptiveCard"


@dataclass
class WalkState:
    input_ids: Set[str] = field(default_factory=set)
    action_ids: Set[str] = field(default_factory=set)


Rule = Callable[[Dict[str, Any], str, WalkState], Iterable[ValidationIssue]]


def issue(path: str, code: str, message: str) -> ValidationIssue:
    return ValidationIssue(code=code, message=message, path=path)


def _non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and value != ""


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _child_path(path: str, key: Any) -> str:
    return f"{path.rstrip('/')}/{key}"


# Inputs


def check_input_id(node: Dict[str, Any], path: str, state: WalkState) -> Iterable[ValidationIssue]:
    if "id" not in node:
        yield issue(path, "missing-id", "Inputs must include an id")
        return
    input_id = node.get("id")
    if isinstance(input_id, str):
        if input_id in state.input_ids:
            yield issue(path, "duplicate-id", "Input ids should be unique within the card")
        state.input_ids.add(input_id)


def check_choice_set(node: Dict[str, Any], path: str, state: WalkState) -> Iterable[ValidationIssue]:
    if "choices" not in node:
        yield issue(path, "missing-choices", "Input.ChoiceSet must include choices")
        return
    choices = node["choices"]
    if not isinstance(choices, list):
        yield issue(path, "invalid-choices", "Input.ChoiceSet choices must be an array")
    elif not choices:
        yield issue(path, "empty-choices", "Input.ChoiceSet must include at least one choice")
    elif any(
        not isinstance(choice, dict)
        or not _non_empty_str(choice.get("title"))
        or not _non_empty_str(choice.get("value"))
        for choice in choices
    ):
        yield issue(path, "invalid-choice", "Choices must include non-empty title and value")


def check_toggle(node: Dict[str, Any], path: str, state: WalkState) -> Iterable[ValidationIssue]:
    if not _non_empty_str(node.get("title")):
        yield issue(path, "missing-title", "Input.Toggle should include a title")


def check_number_range(node: Dict[str, Any], path: str, state: WalkState) -> Iterable[ValidationIssue]:
    low, high = _number(node.get("min")), _number(node.get("max"))
    if low is not None and high is not None and low > high:
        yield issue(path, "invalid-range", "Input.Number min must be <= max")


# Layout and media


def check_column_set(node: Dict[str, Any], path: str, state: WalkState) -> Iterable[ValidationIssue]:
    if "columns" not in node:
        return
    columns = node["columns"]
    if not isinstance(columns, list):
        yield issue(path, "invalid-columns", "ColumnSet columns must be an array")
    elif not columns:
        yield issue(path, "empty-columns", "ColumnSet columns must not be empty")


def check_media(node: Dict[str, Any], path: str, state: WalkState) -> Iterable[ValidationIssue]:
    if "sources" not in node:
        yield issue(path, "missing-sources", "Media must include sources")
        return
    sources = node["sources"]
    if not isinstance(sources, list):
        yield issue(path, "invalid-sources", "Media sources must be an array")
    elif not sources:
        yield issue(path, "missing-sources", "Media must include at least one source")
    elif any(not isinstance(source, dict) or not _non_empty_str(source.get("url")) for source in sources):
        yield issue(path, "invalid-source", "Media sources must include non-empty url")


# Actions


def check_action_id(node: Dict[str, Any], path: str, state: WalkState) -> Iterable[ValidationIssue]:
    action_id = node.get("id")
    if isinstance(action_id, str):
        if action_id in state.action_ids:
            yield issue(path, "duplicate-action-id", "Action ids should be unique within the card")
        state.action_ids.add(action_id)


def check_open_url(node: Dict[str, Any], path: str, state: WalkState) -> Iterable[ValidationIssue]:
    if not _non_empty_str(node.get("url")):
        yield issue(path, "missing-url", "Action.OpenUrl must include a url")


def check_execute(node: Dict[str, Any], path: str, state: WalkState) -> Iterable[ValidationIssue]:
    if not isinstance(node.get("verb"), str):
        yield issue(path, "missing-verb", "Action.Execute should include a verb")
    if "data" in node and node["data"] is not None and not isinstance(node["data"], dict):
        yield issue(path, "invalid-data", "Action.Execute data should be an object when present")


def check_show_card(node: Dict[str, Any], path: str, state: WalkState) -> Iterable[ValidationIssue]:
    if "card" not in node:
        yield issue(path, "missing-card", "Action.ShowCard must include a card")
    elif not isinstance(node["card"], dict):
        yield issue(path, "invalid-card", "Action.ShowCard card must be an object")


def check_toggle_visibility(node: Dict[str, Any], path: str, state: WalkState) -> Iterable[ValidationIssue]:
    if "targetElements" not in node:
        yield issue(path, "missing-target-elements", "Action.ToggleVisibility must include targetElements")
        return
    targets = node["targetElements"]
    if not isinstance(targets, list):
        yield issue(path, "invalid-target-elements", "Action.ToggleVisibility targetElements must be an array")
    elif not targets:
        yield issue(path, "empty-target-elements", "Action.ToggleVisibility targetElements must not be empty")


DEFAULT_PREFIX_RULES: Dict[str, List[Rule]] = {
    "Input.": [check_input_id],
    "Action.": [check_action_id],
}

DEFAULT_TYPE_RULES: Dict[str, List[Rule]] = {
    "Input.ChoiceSet": [check_choice_set],
    "Input.Toggle": [check_toggle],
    "Input.Number": [check_number_range],
    "ColumnSet": [check_column_set],
    "Media": [check_media],
    "Action.OpenUrl": [check_open_url],
    "Action.Execute": [check_execute],
    "Action.ShowCard": [check_show_card],
    "Action.ToggleVisibility": [check_toggle_visibility],
}


class CardValidator:
    def __init__(
        self,
        type_rules: Optional[Dict[str, List[Rule]]] = None,
        prefix_rules: Optional[Dict[str, List[Rule]]] = None,
    ) -> None:
        source_types = DEFAULT_TYPE_RULES if type_rules is None else type_rules
        source_prefixes = DEFAULT_PREFIX_RULES if prefix_rules is None else prefix_rules
        self._type_rules = {k: list(v) for k, v in source_types.items()}
        self._prefix_rules = {k: list(v) for k, v in source_prefixes.items()}

    def register(self, type_name: str, rule: Rule) -> None:
        self._type_rules.setdefault(type_name, []).append(rule)

    def register_prefix(self, prefix: str, rule: Rule) -> None:
        self._prefix_rules.setdefault(prefix, []).append(rule)

    def rules_for(self, kind: str) -> List[Rule]:
        rules: List[Rule] = []
        for prefix, prefix_rules in self._prefix_rules.items():
            if kind.startswith(prefix):
                rules.extend(prefix_rules)
        rules.extend(self._type_rules.get(kind, []))
        return rules

    def validate(self, card: Any) -> List[ValidationIssue]:
        if not isinstance(card, dict):
            return [issue("/", "invalid-root", "Card must be a JSON object")]

        issues: List[ValidationIssue] = []
        if card.get("type") != CARD_TYPE:
            issues.append(issue("/type", "invalid-type", f"Root type must be {CARD_TYPE}"))
        if "version" not in card:
            issues.append(issue("/version", "missing-version", f"{CARD_TYPE} must include a version"))
        if "body" in card and not isinstance(card["body"], list):
            issues.append(issue("/body", "invalid-body", "body must be an array"))
        if "actions" in card and not isinstance(card["actions"], list):
            issues.append(issue("/actions", "invalid-actions", "actions must be an array"))

        self._visit(card, "/", WalkState(), issues)
        return issues

    def _visit(self, value: Any, path: str, state: WalkState, issues: List[ValidationIssue]) -> None:
        if isinstance(value, dict):
            kind = value.get("type")
            if isinstance(kind, str):
                for rule in self.rules_for(kind):
                    issues.extend(rule(value, path, state))
            for key, child in value.items():
                self._visit(child, _child_path(path, key), state, issues)
        elif isinstance(value, list):
            for index, child in enumerate(value):
                self._visit(child, _child_path(path, index), state, issues)


_default_validator: Optional[CardValidator] = None


def get_card_validator() -> CardValidator:
    global _default_validator
    if _default_validator is None:
        _default_validator = CardValidator()
    return _default_validator


def set_card_validator(validator: Optional[CardValidator]) -> None:
    global _default_validator
    _default_validator = validator


def validate_card(card: Any) -> List[ValidationIssue]:
    return get_card_validator().validate(card)
