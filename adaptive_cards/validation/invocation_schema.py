"""Shape checks for raw invocation payloads, reported as validation issues."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from adaptive_cards.invocation.envelope import has_card_keys
from adaptive_cards.invocation.models import CardInvocation, CardSource, ValidationIssue

MISSING_FIELD = "AC_INVOCATION_MISSING_FIELD"
INVALID_TYPE = "AC_INVOCATION_INVALID_TYPE"
INVALID_ENUM = "AC_INVOCATION_INVALID_ENUM"
SCHEMA_ERROR = "AC_INVOCATION_SCHEMA_ERROR"

_TYPE_ERRORS = {
    "string_type",
    "int_type",
    "float_type",
    "bool_type",
    "dict_type",
    "list_type",
    "model_type",
    "model_attributes_type",
}


def locate_invocation_candidate(value: Any) -> Optional[Dict[str, Any]]:
    """Find the sub-document that should be an invocation, without parsing it."""
    if not isinstance(value, dict):
        return None
    if has_card_keys(value):
        return value
    for key in ("invocation", "card"):
        if isinstance(value.get(key), dict):
            return value[key]
    payload = value.get("payload")
    if has_card_keys(payload):
        return payload
    config = value.get("config")
    if isinstance(config, dict):
        if has_card_keys(config) or not isinstance(config.get("card"), dict):
            return config
        return config["card"]
    if isinstance(payload, dict):
        return payload
    return None


def _pointer(loc: Any) -> str:
    parts = [str(part) for part in loc]
    return "/" + "/".join(parts) if parts else "/"


def _code_for(error_type: str) -> str:
    if error_type == "missing":
        return MISSING_FIELD
    if error_type in _TYPE_ERRORS:
        return INVALID_TYPE
    if error_type == "enum" or error_type == "literal_error":
        return INVALID_ENUM
    return SCHEMA_ERROR


def validate_invocation_payload(value: Any) -> List[ValidationIssue]:
    if not isinstance(value, dict):
        return [ValidationIssue(code=INVALID_TYPE, message="invocation must be a JSON object", path="/")]
    try:
        invocation = CardInvocation.model_validate(value)
    except ValidationError as exc:
        return [
            ValidationIssue(code=_code_for(err["type"]), message=err["msg"], path=_pointer(err["loc"]))
            for err in exc.errors(include_url=False)
        ]

    issues: List[ValidationIssue] = []
    spec = invocation.card_spec
    required = {
        CardSource.inline: ("inline_json", spec.inline_json),
        CardSource.asset: ("asset_path", spec.asset_path),
        CardSource.catalog: ("catalog_name", spec.catalog_name),
    }
    field_name, field_value = required[invocation.card_source]
    if field_value is None or field_value == "":
        issues.append(
            ValidationIssue(
                code=MISSING_FIELD,
                message=f"card_spec.{field_name} is required for card_source={invocation.card_source.value}",
                path=f"/card_spec/{field_name}",
            )
        )
    interaction = invocation.interaction
    if interaction is not None and interaction.enabled is not False:
        for name in ("action_id", "card_instance_id"):
            if not getattr(interaction, name).strip():
                issues.append(
                    ValidationIssue(code=MISSING_FIELD, message=f"interaction.{name} is required", path=f"/interaction/{name}")
                )
    return issues


def check_envelope(value: Any) -> List[ValidationIssue]:
    """Locate the invocation inside an envelope and check its shape."""
    candidate = locate_invocation_candidate(value)
    if candidate is None:
        return [ValidationIssue(code=SCHEMA_ERROR, message="no invocation found in envelope", path="/")]
    return validate_invocation_payload(candidate)
