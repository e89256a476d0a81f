"""Read-only layered view over payload/session/state/template params.

`lookup` understands `path||default`: the default is parsed as JSON, falling
back to the raw text. A path whose first segment names a root resolves
strictly inside that root; any other path probes payload → session → state →
template params and the first hit wins.
"""
from __future__ import annotations

import json
import re
from typing import Any, Dict, List, Optional, Tuple


class _Missing:
    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()

ROOT_ALIASES: Dict[str, str] = {
    "payload": "payload",
    "session": "session",
    "state": "state",
    "params": "template_params",
    "template": "template_params",
    "template_params": "template_params",
}
PROBE_ORDER = ("payload", "session", "state", "template_params")

_BRACKET_RE = re.compile(r"\[\s*(['\"]?)(.*?)\1\s*\]")


def normalize_path(path: str) -> str:
    """`items[0].name` / `a["b"]` → `items.0.name` / `a.b`."""
    normalized = _BRACKET_RE.sub(lambda m: "." + m.group(2), path)
    while ".." in normalized:
        normalized = normalized.replace("..", ".")
    return normalized.strip(".")


def split_path(path: str) -> List[str]:
    normalized = normalize_path(path.strip())
    return normalized.split(".") if normalized else []


def parse_binding_path(raw: str) -> Tuple[str, Any]:
    """Split `path||default`; returns MISSING when no default is given."""
    path, sep, default_text = raw.partition("||")
    if not sep:
        return path.strip(), MISSING
    default_text = default_text.strip()
    if not default_text:
        return path.strip(), MISSING
    try:
        default = json.loads(default_text)
    except ValueError:
        default = default_text
    return path.strip(), default


def lookup_in(value: Any, parts: List[str]) -> Any:
    current = value
    for part in parts:
        if isinstance(current, dict):
            if part not in current:
                return MISSING
            current = current[part]
        elif isinstance(current, list):
            try:
                index = int(part)
            except ValueError:
                return MISSING
            if index < 0 or index >= len(current):
                return MISSING
            current = current[index]
        else:
            return MISSING
    return current


class BindingContext:
    def __init__(
        self,
        payload: Any = None,
        session: Any = None,
        state: Any = None,
        template_params: Any = None,
    ) -> None:
        self._roots: Dict[str, Any] = {
            "payload": payload,
            "session": session,
            "state": state,
            "template_params": template_params if template_params is not None else {},
        }

    @classmethod
    def from_invocation(cls, invocation: Any) -> "BindingContext":
        return cls(
            payload=invocation.payload,
            session=invocation.session,
            state=invocation.state,
            template_params=invocation.card_spec.template_params,
        )

    def root(self, name: str) -> Any:
        return self._roots[ROOT_ALIASES.get(name, name)]

    def resolve(self, path: str) -> Any:
        """Resolve a bare path (no default); MISSING when nothing matches."""
        parts = split_path(path)
        if not parts:
            return MISSING
        root_name = ROOT_ALIASES.get(parts[0])
        if root_name is not None:
            return lookup_in(self._roots[root_name], parts[1:])
        for name in PROBE_ORDER:
            found = lookup_in(self._roots[name], parts)
            if found is not MISSING:
                return found
        return MISSING

    def lookup(self, raw: str) -> Any:
        """Resolve `path||default`; null or absent falls back to the default."""
        path, default = parse_binding_path(raw)
        found = self.resolve(path)
        if (found is MISSING or found is None) and default is not MISSING:
            return default
        return found
