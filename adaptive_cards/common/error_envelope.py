"""Canonical error envelope for adaptive card engine responses.

Standardized structure:
{
  "error": {
    "code": "card.binding_error",
    "message": "string",
    "http_status": 422,
    "resource_kind": "adaptive_card",
    "details": {}
  }
}
"""
from __future__ import annotations

from typing import Any, Dict, NoReturn, Optional

from fastapi import HTTPException
from pydantic import BaseModel, Field

from adaptive_cards.common.errors import CardError

RESOURCE_KIND = "adaptive_card"


class ErrorDetail(BaseModel):
    """Canonical error detail structure."""
    code: str
    message: str
    http_status: int
    resource_kind: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)


class ErrorEnvelope(BaseModel):
    """Top-level error envelope returned by the engine boundary."""
    error: ErrorDetail


def build_error_envelope(
    code: str,
    message: str,
    status_code: int = 400,
    resource_kind: Optional[str] = RESOURCE_KIND,
    details: Optional[Dict[str, Any]] = None,
) -> ErrorEnvelope:
    """Construct an ErrorEnvelope (without raising).

    Args mirror error_response; http_status mirrors status_code.
    """
    error_detail = ErrorDetail(
        code=code,
        message=message,
        http_status=status_code,
        resource_kind=resource_kind,
        details=details or {},
    )
    return ErrorEnvelope(error=error_detail)


def envelope_for(exc: CardError) -> ErrorEnvelope:
    return build_error_envelope(
        code=exc.code,
        message=exc.message,
        status_code=exc.http_status,
        details=exc.details,
    )


def error_response(
    code: str,
    message: str,
    status_code: int = 400,
    resource_kind: Optional[str] = RESOURCE_KIND,
    details: Optional[Dict[str, Any]] = None,
) -> NoReturn:
    """Construct and raise a standardized error response.

    Args:
        code: Machine-readable error code (e.g., "card.asset_not_found")
        message: Human-readable error message
        status_code: HTTP status code (default 400)
        resource_kind: The resource type (adaptive_card)
        details: Additional context dict

    Raises:
        HTTPException with canonical error envelope body
    """
    envelope = build_error_envelope(
        code=code,
        message=message,
        status_code=status_code,
        resource_kind=resource_kind,
        details=details,
    )
    raise HTTPException(status_code=status_code, detail=envelope.model_dump())


def raise_card_error(exc: CardError) -> NoReturn:
    """Re-raise an engine error as an HTTPException carrying the envelope."""
    return error_response(
        code=exc.code,
        message=exc.message,
        status_code=exc.http_status,
        details=exc.details,
    )
