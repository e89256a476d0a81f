"""Runtime configuration helpers for the adaptive card engine."""
from __future__ import annotations

import os
from typing import Dict, Optional

DEFAULT_ASSET_BASE = "assets"
DEFAULT_STATE_DIR = os.path.join("var", "card_state")


def _get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(name, default)


def _truthy_env(var: str) -> bool:
    value = os.getenv(var)
    if not value:
        return False
    return value.strip().lower() in {"1", "true", "yes"}


def get_asset_base() -> str:
    return _get_env("ADAPTIVE_CARD_ASSET_BASE") or DEFAULT_ASSET_BASE


def get_asset_registry_file() -> Optional[str]:
    return _get_env("ADAPTIVE_CARD_ASSET_REGISTRY")


def get_catalog_file() -> Optional[str]:
    return _get_env("ADAPTIVE_CARD_CATALOG_FILE")


def get_state_backend() -> str:
    return (_get_env("ADAPTIVE_CARD_STATE_BACKEND") or "memory").lower()


def get_state_dir() -> str:
    return _get_env("ADAPTIVE_CARD_STATE_DIR") or DEFAULT_STATE_DIR


def get_firestore_project() -> Optional[str]:
    return _get_env("FIRESTORE_PROJECT") or _get_env("GCP_PROJECT")


def get_trace_out() -> Optional[str]:
    return _get_env("ADAPTIVE_CARD_TRACE_OUT")


def trace_enabled() -> bool:
    return bool(get_trace_out()) or _truthy_env("ADAPTIVE_CARD_TRACE")


def trace_capture_inputs() -> bool:
    return _truthy_env("ADAPTIVE_CARD_TRACE_CAPTURE_INPUTS")


def lenient_bindings() -> bool:
    """Opt-in for the silently-blank binding policy; strict otherwise."""
    return _truthy_env("ADAPTIVE_CARD_LENIENT_BINDINGS")


def config_snapshot() -> Dict[str, object]:
    return {
        "asset_base": get_asset_base(),
        "asset_registry_file": get_asset_registry_file(),
        "catalog_file": get_catalog_file(),
        "state_backend": get_state_backend(),
        "state_dir": get_state_dir(),
        "trace_enabled": trace_enabled(),
        "trace_capture_inputs": trace_capture_inputs(),
        "lenient_bindings": lenient_bindings(),
    }
