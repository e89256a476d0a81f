"""Template resolution pipeline.

Every string leaf of the card goes through two ordered passes and each pass
builds a fresh tree:

* Pass A expands logic-less ``{{mustache}}`` templates against payload, state,
  the invocation's node sub-document and ``state.input`` keys.
* Pass B resolves ``${expr}`` expressions and ``@{path||default}`` bindings.
  Whole-string placeholders keep the resolved JSON type; embedded ones are
  stringified in place. A missing path is a ``BindingError`` unless the
  lenient policy was explicitly enabled.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

import pystache

from adaptive_cards.binding.context import MISSING, BindingContext
from adaptive_cards.binding.expression import (
    ExpressionEngine,
    SimpleExpressionEngine,
    is_simple_expression,
    stringify_value,
)
from adaptive_cards.common.errors import BindingError
from adaptive_cards.config import runtime_config
from adaptive_cards.invocation.models import BindingSummary, CardInvocation

logger = logging.getLogger(__name__)

RESERVED_TEMPLATE_KEYS = frozenset({"payload", "state", "node", "node_id", "node_payload"})
_MARKERS = ("@{", "${")


def map_strings(value: Any, fn: Callable[[str], Any]) -> Any:
    """Rebuild a JSON tree with `fn` applied to every string leaf."""
    if isinstance(value, str):
        return fn(value)
    if isinstance(value, list):
        return [map_strings(item, fn) for item in value]
    if isinstance(value, dict):
        return {key: map_strings(item, fn) for key, item in value.items()}
    return value


def build_template_context(invocation: CardInvocation) -> Dict[str, Any]:
    state = invocation.state or {}
    context: Dict[str, Any] = {
        "payload": invocation.payload,
        "state": invocation.state,
    }
    if invocation.node_id:
        context["node_id"] = invocation.node_id
        nodes = state.get("nodes")
        node = nodes.get(invocation.node_id) if isinstance(nodes, dict) else None
        if isinstance(node, dict):
            if "payload" in node:
                context["node_payload"] = node["payload"]
            context["node"] = node
    state_input = state.get("input")
    if isinstance(state_input, dict):
        for key, value in state_input.items():
            if key in RESERVED_TEMPLATE_KEYS or key in context:
                continue
            context[key] = value
    return context


def _whole_placeholder(text: str, marker: str) -> Optional[str]:
    trimmed = text.strip()
    if not (trimmed.startswith(marker) and trimmed.endswith("}")):
        return None
    inner = trimmed[2:-1]
    if "}" in inner or any(m in inner for m in _MARKERS):
        return None
    return inner.strip()


class TemplatePipeline:
    def __init__(
        self,
        ctx: BindingContext,
        template_context: Optional[Dict[str, Any]] = None,
        engine: Optional[ExpressionEngine] = None,
        lenient: Optional[bool] = None,
    ) -> None:
        self.ctx = ctx
        self.template_context = template_context or {}
        self.engine = engine or SimpleExpressionEngine()
        self.lenient = runtime_config.lenient_bindings() if lenient is None else lenient
        self.summary = BindingSummary()
        self._renderer = pystache.Renderer(escape=lambda u: u)

    @classmethod
    def for_invocation(cls, invocation: CardInvocation, **kwargs: Any) -> "TemplatePipeline":
        return cls(
            BindingContext.from_invocation(invocation),
            template_context=build_template_context(invocation),
            **kwargs,
        )

    def render(self, card: Any) -> Any:
        expanded = map_strings(card, self.expand_template)
        return map_strings(expanded, self.resolve_placeholders)

    # Pass A

    def expand_template(self, text: str) -> str:
        if "{{" not in text:
            return text
        try:
            rendered = self._renderer.render(text, self.template_context)
        except Exception as exc:
            raise BindingError(f"template expansion failed: {exc}", expression=text) from exc
        self.summary.template_expansions += 1
        return rendered

    # Pass B

    def resolve_placeholders(self, text: str) -> Any:
        expression = _whole_placeholder(text, "${")
        if expression is not None:
            return self._evaluate(expression)
        path = _whole_placeholder(text, "@{")
        if path is not None:
            return self._lookup(path)
        if not any(marker in text for marker in _MARKERS):
            return text
        return self._replace_embedded(text)

    def _replace_embedded(self, text: str) -> str:
        output = []
        cursor = 0
        while cursor < len(text):
            positions = [p for p in (text.find(m, cursor) for m in _MARKERS) if p != -1]
            if not positions:
                output.append(text[cursor:])
                break
            start = min(positions)
            output.append(text[cursor:start])
            end = text.find("}", start + 2)
            if end == -1:
                # Unterminated: emit the marker literally and keep scanning.
                output.append(text[start])
                cursor = start + 1
                continue
            inner = text[start + 2:end].strip()
            if text[start] == "$":
                value = self._evaluate(inner)
            else:
                value = self._lookup(inner)
            output.append(stringify_value(value))
            cursor = end + 1
        return "".join(output)

    def _lookup(self, raw: str) -> Any:
        value = self.ctx.lookup(raw)
        if value is MISSING:
            return self._missing(raw)
        self.summary.placeholder_replacements += 1
        return value

    def _evaluate(self, expression: str) -> Any:
        if is_simple_expression(expression):
            return self._lookup(expression)
        self.summary.expression_evaluations += 1
        return self.engine.evaluate(expression, self.ctx, on_missing=self._missing_in_formula)

    def _missing_in_formula(self, path: str) -> Any:
        return self._missing(path, blank=None)

    def _missing(self, raw: str, blank: Any = "") -> Any:
        self.summary.missing_paths += 1
        if self.lenient:
            logger.debug("binding %s is missing; lenient policy renders it blank", raw)
            return blank
        raise BindingError(f"binding path {raw!r} could not be resolved", path=raw)
