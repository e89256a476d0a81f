"""HTTP routes for the adaptive card engine."""
from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body

from adaptive_cards.common.error_envelope import raise_card_error
from adaptive_cards.common.errors import CardError
from adaptive_cards.config import runtime_config
from adaptive_cards.invocation.models import CardResult
from adaptive_cards.invocation.service import get_card_engine_service
from adaptive_cards.validation.invocation_schema import check_envelope

router = APIRouter()


@router.get("/health")
def health() -> dict:
    return {"status": "ok", "config": runtime_config.config_snapshot()}


def _run(payload: Dict[str, Any], operation: Optional[str]) -> CardResult:
    try:
        return get_card_engine_service().handle_raw(payload, operation=operation)
    except CardError as exc:
        raise_card_error(exc)


@router.post("/cards/invoke", response_model=CardResult)
def invoke_card(payload: Dict[str, Any] = Body(...), operation: Optional[str] = None) -> CardResult:
    return _run(payload, operation)


@router.post("/cards/validate", response_model=CardResult)
def validate_card(payload: Dict[str, Any] = Body(...)) -> CardResult:
    return _run(payload, "validate")


@router.post("/cards/invocation/check")
def check_invocation(payload: Dict[str, Any] = Body(...)) -> dict:
    issues = check_envelope(payload)
    return {"valid": not issues, "issues": [issue.model_dump() for issue in issues]}
