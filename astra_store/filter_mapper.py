"""Filter expression → Data API filter translation.

The Data API has no parenthesis primitive, so ``Group`` nodes are refused
wherever they appear.  Output nesting mirrors the input tree exactly.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any

from contracts.codec import encode_value
from contracts.errors import (
    UnsupportedFilterShape,
    UnsupportedOperandType,
    UnsupportedValueType,
)
from contracts.filter import Expression, ExpressionType, Group, Key, Value

GROUP_NOT_SUPPORTED = (
    "Filter Group (parenthesis) are not supported by AstraDB use AND/OR instead."
)

_RANGE_OPERATORS = {
    ExpressionType.GT: "$gt",
    ExpressionType.GTE: "$gte",
    ExpressionType.LT: "$lt",
    ExpressionType.LTE: "$lte",
}

_MEMBERSHIP_OPERATORS = {
    ExpressionType.IN: "$in",
    ExpressionType.NIN: "$nin",
}

_BOOLEAN_OPERATORS = {
    ExpressionType.AND: "$and",
    ExpressionType.OR: "$or",
}


def map_filter(expression: Expression | None) -> dict[str, Any] | None:
    """Translate *expression* into a Data API filter document.

    ``None`` means "match everything" and is returned unchanged.
    """
    if expression is None:
        return None
    return _map_expression(expression)


def _map_expression(expression: Expression) -> dict[str, Any]:
    if isinstance(expression.left, Group) or isinstance(expression.right, Group):
        raise UnsupportedFilterShape(GROUP_NOT_SUPPORTED)

    op = expression.type

    if op in (ExpressionType.EQ, ExpressionType.NE):
        key = _field(expression.left)
        value = _literal(expression.right)
        if _scalar_kind(value) is None:
            raise UnsupportedValueType(
                f"{op.value} expects a scalar value, got {type(value).__name__} for '{key}'",
                details={"key": key, "operator": op.value},
            )
        if op == ExpressionType.EQ:
            return {key: encode_value(value)}
        return {key: {"$ne": encode_value(value)}}

    if op in _RANGE_OPERATORS:
        key = _field(expression.left)
        value = _literal(expression.right)
        if _scalar_kind(value) not in _ORDERED_KINDS:
            raise UnsupportedValueType(
                f"{op.value} only supports number, date and datetime values, "
                f"got {type(value).__name__} for '{key}'",
                details={"key": key, "operator": op.value},
            )
        return {key: {_RANGE_OPERATORS[op]: encode_value(value)}}

    if op in _MEMBERSHIP_OPERATORS:
        key = _field(expression.left)
        values = _literal(expression.right)
        if not isinstance(values, (list, tuple)):
            raise UnsupportedValueType(
                f"{op.value} expects a list value, got {type(values).__name__} for '{key}'",
                details={"key": key, "operator": op.value},
            )
        kinds = {_scalar_kind(v) for v in values}
        if None in kinds or "null" in kinds or len(kinds) > 1:
            raise UnsupportedValueType(
                f"{op.value} expects a homogeneous list of scalars for '{key}'",
                details={"key": key, "operator": op.value},
            )
        return {key: {_MEMBERSHIP_OPERATORS[op]: [encode_value(v) for v in values]}}

    if op in _BOOLEAN_OPERATORS:
        left = _map_expression(_sub_expression(expression.left))
        right = _map_expression(_sub_expression(expression.right))
        return {_BOOLEAN_OPERATORS[op]: [left, right]}

    if op == ExpressionType.NOT:
        if expression.right is not None:
            raise UnsupportedOperandType("NOT takes a single operand")
        return {"$not": _map_expression(_sub_expression(expression.left))}

    raise UnsupportedOperandType(f"Unsupported filter type: {op}")


# ── Operand resolution ───────────────────────────────────────────────


def _field(operand: Any) -> str:
    if not isinstance(operand, Key):
        raise UnsupportedOperandType(
            f"Expected a Key operand, got {type(operand).__name__}"
        )
    return operand.name


def _literal(operand: Any) -> Any:
    if not isinstance(operand, Value):
        raise UnsupportedOperandType(
            f"Expected a Value operand, got {type(operand).__name__}"
        )
    return operand.value


def _sub_expression(operand: Any) -> Expression:
    if not isinstance(operand, Expression):
        raise UnsupportedOperandType(
            f"Expected an Expression operand, got {type(operand).__name__}"
        )
    return operand


# ── Literals ─────────────────────────────────────────────────────────


_ORDERED_KINDS = ("number", "date")


def _scalar_kind(value: Any) -> str | None:
    """Kind of a scalar literal, or None when *value* is not a scalar."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float, Decimal)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, date):
        return "date"
    return None
