from __future__ import annotations

import hashlib
import json
from typing import Any, Optional


def hash_bytes(data: bytes) -> str:
    return f"sha256:{hashlib.sha256(data).hexdigest()}"


def canonical_json(value: Any) -> bytes:
    return json.dumps(value, sort_keys=True, separators=(",", ":")).encode("utf-8")


def hash_value(value: Any) -> Optional[str]:
    if value is None:
        return None
    try:
        return hash_bytes(canonical_json(value))
    except (TypeError, ValueError):
        return None
