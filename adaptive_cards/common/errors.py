"""Error hierarchy for the adaptive card engine.

Every failure raised by the engine is a ``CardError`` carrying a stable
machine-readable ``code`` plus structured ``details`` so the boundary layer
can build the canonical error envelope without parsing messages.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional


class CardError(Exception):
    """Base adaptive card engine error."""

    code = "card.error"
    http_status = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details or {}

    def __str__(self) -> str:
        return self.message


class InvalidInputError(CardError):
    code = "card.invalid_input"
    http_status = 400


class AssetError(CardError):
    """Generic asset failure (provider raised, mapping unusable)."""

    code = "card.asset_error"
    http_status = 502


class AssetNotFoundError(AssetError):
    code = "card.asset_not_found"
    http_status = 404

    def __init__(self, name: str, candidates: Optional[List[str]] = None) -> None:
        super().__init__(
            f"unable to resolve card for {name}",
            details={"name": name, "candidates": list(candidates or [])},
        )
        self.name = name


class AssetParseError(AssetError):
    code = "card.asset_parse_error"
    http_status = 422

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"card asset {path} is not valid JSON: {reason}", details={"path": path, "reason": reason})
        self.path = path


class BindingError(CardError):
    """Missing binding path or malformed expression; always fatal for a render."""

    code = "card.binding_error"
    http_status = 422

    def __init__(self, message: str, path: Optional[str] = None, expression: Optional[str] = None) -> None:
        details: Dict[str, Any] = {}
        if path is not None:
            details["path"] = path
        if expression is not None:
            details["expression"] = expression
        super().__init__(message, details=details)
        self.path = path
        self.expression = expression


class CardValidationError(CardError):
    code = "card.validation_failed"
    http_status = 422

    def __init__(self, issues: List[Any]) -> None:
        codes = [issue.code for issue in issues]
        super().__init__(
            f"card failed validation with {len(issues)} issue(s)",
            details={"issues": [issue.model_dump() for issue in issues], "codes": codes},
        )
        self.issues = list(issues)


class InteractionInvalidError(CardError):
    code = "card.interaction_invalid"
    http_status = 400

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message, details={"field": field} if field else {})
        self.field = field


class StateStoreError(CardError):
    code = "card.state_store_error"
    http_status = 503

    def __init__(self, message: str, key: Optional[str] = None) -> None:
        super().__init__(message, details={"key": key} if key else {})
        self.key = key


class SerializationError(CardError):
    code = "card.serialization_error"
    http_status = 500
