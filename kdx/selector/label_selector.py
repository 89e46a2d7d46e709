"""Label selector parser and evaluator.

Supports the equality- and set-based subset of the Kubernetes selector
syntax, as comma-separated expressions:

    app=web              Equals
    tier!=cache          NotEquals
    env in (prod,stage)  In
    env notin (dev)      NotIn
    release              Exists
    !canary              NotExists

A parsed LabelSelector holds no mutable state, so one instance can be
evaluated from any number of threads.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum

from kdx.errors import SelectorParseError


class Operator(StrEnum):
    EQUALS = "="
    NOT_EQUALS = "!="
    IN = "in"
    NOT_IN = "notin"
    EXISTS = "exists"
    NOT_EXISTS = "!"


@dataclass(frozen=True)
class LabelExpression:
    """A single selector predicate."""

    operator: Operator
    key: str
    values: tuple[str, ...] = ()

    def matches(self, labels: Mapping[str, str]) -> bool:
        value = labels.get(self.key)
        match self.operator:
            case Operator.EQUALS:
                return value is not None and value == self.values[0]
            case Operator.NOT_EQUALS:
                return value is None or value != self.values[0]
            case Operator.IN:
                return value is not None and value in self.values
            case Operator.NOT_IN:
                return value is None or value not in self.values
            case Operator.EXISTS:
                return self.key in labels
            case Operator.NOT_EXISTS:
                return self.key not in labels
        return False  # pragma: no cover


class LabelSelector:
    """An ordered conjunction of label expressions."""

    def __init__(self, expressions: list[LabelExpression] | None = None) -> None:
        self._expressions: tuple[LabelExpression, ...] = tuple(expressions or ())

    @property
    def expressions(self) -> tuple[LabelExpression, ...]:
        return self._expressions

    def is_empty(self) -> bool:
        return not self._expressions

    @classmethod
    def parse(cls, selector: str) -> LabelSelector:
        """Parse *selector* into a LabelSelector.

        Raises SelectorParseError for unbalanced parentheses, in/notin
        clauses without a parenthesised non-empty value list, and equality
        clauses with an empty key or value.  An empty string parses to a
        selector that matches everything.
        """
        expressions = [_parse_expression(expr) for expr in _split_expressions(selector)]
        return cls(expressions)

    def matches(self, labels: Mapping[str, str]) -> bool:
        """Return True if *labels* satisfies every expression."""
        return all(expr.matches(labels) for expr in self._expressions)

    def __repr__(self) -> str:
        return f"LabelSelector({list(self._expressions)!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LabelSelector):
            return NotImplemented
        return self._expressions == other._expressions

    def __hash__(self) -> int:
        return hash(self._expressions)


def _split_expressions(selector: str) -> list[str]:
    """Split on commas outside parentheses, dropping empty pieces."""
    expressions: list[str] = []
    current: list[str] = []
    depth = 0

    for ch in selector:
        if ch == "(":
            depth += 1
            current.append(ch)
        elif ch == ")":
            depth -= 1
            if depth < 0:
                raise SelectorParseError("Unmatched closing parenthesis", selector)
            current.append(ch)
        elif ch == "," and depth == 0:
            piece = "".join(current).strip()
            if piece:
                expressions.append(piece)
            current = []
        else:
            current.append(ch)

    if depth != 0:
        raise SelectorParseError("Unmatched opening parenthesis", selector)

    piece = "".join(current).strip()
    if piece:
        expressions.append(piece)
    return expressions


def _parse_expression(expr: str) -> LabelExpression:
    if " in " in expr:
        return _parse_set_expression(expr, Operator.IN)
    if " notin " in expr:
        return _parse_set_expression(expr, Operator.NOT_IN)
    if "!=" in expr:
        key, value = _split_equality(expr, "!=")
        return LabelExpression(Operator.NOT_EQUALS, key, (value,))
    if "=" in expr:
        key, value = _split_equality(expr, "=")
        return LabelExpression(Operator.EQUALS, key, (value,))

    if expr.startswith("!"):
        key = expr[1:].strip()
        if not key:
            raise SelectorParseError(f"Invalid expression: {expr}", expr)
        return LabelExpression(Operator.NOT_EXISTS, key)
    return LabelExpression(Operator.EXISTS, expr)


def _split_equality(expr: str, operator: str) -> tuple[str, str]:
    key, _, value = expr.partition(operator)
    key = key.strip()
    value = value.strip()
    if not key or not value:
        raise SelectorParseError(f"Invalid expression: {expr}", expr)
    return key, value


def _parse_set_expression(expr: str, operator: Operator) -> LabelExpression:
    key, _, values_str = expr.partition(f" {operator.value} ")
    key = key.strip()
    values_str = values_str.strip()

    if not key:
        raise SelectorParseError(f"Invalid {operator.value} expression: {expr}", expr)
    if not (values_str.startswith("(") and values_str.endswith(")")):
        raise SelectorParseError(
            f"Values must be in parentheses: '{values_str}' (full expression: '{expr}')",
            expr,
        )

    values = tuple(v.strip() for v in values_str[1:-1].split(",") if v.strip())
    if not values:
        raise SelectorParseError(f"Empty values list in expression: {expr}", expr)
    return LabelExpression(operator, key, values)
