"""Minimal formula language for `${...}` regions.

Grammar::

    expr     := equality ( "?" expr ":" expr )?
    equality := primary ( ("==" | "!=") primary )*
    primary  := STRING | NUMBER | true | false | null | PATH | "(" expr ")"

Paths resolve through the binding context. An explicit null is a value; a
path that resolves to nothing is handed to `on_missing`, which either raises
or supplies a substitute. By default it raises `BindingError`. Malformed
input raises `ExpressionError`.
"""
from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Protocol

from adaptive_cards.binding.context import MISSING, BindingContext
from adaptive_cards.common.errors import BindingError


class ExpressionError(BindingError):
    """Raised when an expression cannot be tokenized, parsed or evaluated."""

    def __init__(self, message: str, expression: str) -> None:
        super().__init__(f"{message} in expression {expression!r}", expression=expression)


MissingHandler = Callable[[str], Any]


class ExpressionEngine(Protocol):
    def evaluate(
        self, expression: str, ctx: BindingContext, on_missing: Optional[MissingHandler] = None
    ) -> Any: ...


def is_simple_expression(expression: str) -> bool:
    """A bare path reference: no whitespace, `?`, `==` or `:`."""
    return not (
        any(ch.isspace() for ch in expression)
        or "?" in expression
        or "==" in expression
        or ":" in expression
    )


def stringify_value(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def is_truthy(value: Any) -> bool:
    if value is None or value is False:
        return False
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value != 0
    if isinstance(value, (str, list, dict)):
        return len(value) > 0
    return True


def values_equal(left: Any, right: Any) -> bool:
    # JSON booleans never equal numbers, unlike Python's bool/int relationship.
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    return left == right


@dataclass
class Token:
    kind: str
    value: Any
    pos: int


_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?(?:[eE][+-]?\d+)?")
_PATH_RE = re.compile(r"[A-Za-z_@$][\w\-]*(?:(?:\.[\w\-]+)|(?:\[\s*\d+\s*\])|(?:\[\s*[A-Za-z_][\w\-]*\s*\]))*")
_KEYWORDS = {"true": True, "false": False, "null": None}
_OPERATORS = ("==", "!=", "?", ":", "(", ")")


def tokenize(expression: str) -> List[Token]:
    tokens: List[Token] = []
    pos = 0
    length = len(expression)
    while pos < length:
        ch = expression[pos]
        if ch.isspace():
            pos += 1
            continue
        if ch in ("'", '"'):
            end = pos + 1
            escaped = False
            while end < length:
                if escaped:
                    escaped = False
                elif expression[end] == "\\":
                    escaped = True
                elif expression[end] == ch:
                    break
                end += 1
            if end >= length:
                raise ExpressionError(f"unterminated string at {pos}", expression)
            body = expression[pos + 1:end]
            if ch == "'":
                body = body.replace("\\'", "'").replace('"', '\\"')
            try:
                value = json.loads(f'"{body}"')
            except ValueError as exc:
                raise ExpressionError(f"invalid string literal at {pos}", expression) from exc
            tokens.append(Token("string", value, pos))
            pos = end + 1
            continue
        op = next((candidate for candidate in _OPERATORS if expression.startswith(candidate, pos)), None)
        if op is not None:
            tokens.append(Token("op", op, pos))
            pos += len(op)
            continue
        number = _NUMBER_RE.match(expression, pos)
        if number:
            text = number.group(0)
            value = float(text) if any(c in text for c in ".eE") else int(text)
            tokens.append(Token("number", value, pos))
            pos = number.end()
            continue
        path = _PATH_RE.match(expression, pos)
        if path:
            text = path.group(0)
            if text in _KEYWORDS:
                tokens.append(Token("literal", _KEYWORDS[text], pos))
            else:
                tokens.append(Token("path", text, pos))
            pos = path.end()
            continue
        raise ExpressionError(f"unexpected character {ch!r} at {pos}", expression)
    return tokens


@dataclass
class Literal:
    value: Any


@dataclass
class PathRef:
    path: str


@dataclass
class Compare:
    op: str
    left: Any
    right: Any


@dataclass
class Conditional:
    condition: Any
    when_true: Any
    when_false: Any


class _Parser:
    def __init__(self, expression: str) -> None:
        self.expression = expression
        self.tokens = tokenize(expression)
        self.index = 0

    def peek(self) -> Optional[Token]:
        return self.tokens[self.index] if self.index < len(self.tokens) else None

    def take(self) -> Token:
        token = self.peek()
        if token is None:
            raise ExpressionError("unexpected end of expression", self.expression)
        self.index += 1
        return token

    def expect_op(self, op: str) -> None:
        token = self.take()
        if token.kind != "op" or token.value != op:
            raise ExpressionError(f"expected {op!r} at {token.pos}", self.expression)

    def at_op(self, *ops: str) -> bool:
        token = self.peek()
        return token is not None and token.kind == "op" and token.value in ops

    def parse(self) -> Any:
        if not self.tokens:
            raise ExpressionError("empty expression", self.expression)
        node = self.parse_expr()
        leftover = self.peek()
        if leftover is not None:
            raise ExpressionError(f"unexpected token {leftover.value!r} at {leftover.pos}", self.expression)
        return node

    def parse_expr(self) -> Any:
        condition = self.parse_equality()
        if self.at_op("?"):
            self.take()
            when_true = self.parse_expr()
            self.expect_op(":")
            when_false = self.parse_expr()
            return Conditional(condition, when_true, when_false)
        return condition

    def parse_equality(self) -> Any:
        left = self.parse_primary()
        while self.at_op("==", "!="):
            op = self.take().value
            left = Compare(op, left, self.parse_primary())
        return left

    def parse_primary(self) -> Any:
        token = self.take()
        if token.kind in ("string", "number", "literal"):
            return Literal(token.value)
        if token.kind == "path":
            return PathRef(token.value)
        if token.value == "(":
            node = self.parse_expr()
            self.expect_op(")")
            return node
        raise ExpressionError(f"unexpected token {token.value!r} at {token.pos}", self.expression)


def parse_expression(expression: str) -> Any:
    return _Parser(expression).parse()


def raise_missing(path: str) -> Any:
    raise BindingError(f"binding path {path!r} could not be resolved", path=path)


def _evaluate(node: Any, ctx: BindingContext, on_missing: MissingHandler) -> Any:
    if isinstance(node, Literal):
        return node.value
    if isinstance(node, PathRef):
        value = ctx.resolve(node.path)
        return on_missing(node.path) if value is MISSING else value
    if isinstance(node, Compare):
        left = _evaluate(node.left, ctx, on_missing)
        equal = values_equal(left, _evaluate(node.right, ctx, on_missing))
        return equal if node.op == "==" else not equal
    # Only the taken branch is evaluated.
    if is_truthy(_evaluate(node.condition, ctx, on_missing)):
        return _evaluate(node.when_true, ctx, on_missing)
    return _evaluate(node.when_false, ctx, on_missing)


class SimpleExpressionEngine:
    """Equality and ternary conditionals over the binding context."""

    def evaluate(
        self, expression: str, ctx: BindingContext, on_missing: Optional[MissingHandler] = None
    ) -> Any:
        return _evaluate(parse_expression(expression), ctx, on_missing or raise_missing)
