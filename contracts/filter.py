"""Portable filter expression tree.

A filter is a binary tree of operand nodes.  Comparison expressions pair a
``Key`` with a ``Value``; ``AND``/``OR`` combine two expressions; ``NOT``
negates a single expression; ``Group`` marks parenthesised sub-expressions.

Nodes are frozen pydantic models discriminated by ``kind`` so a tree
arriving as JSON can be validated in one step::

    Expression.model_validate_json(raw)
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from contracts.codec import decode_value


class ExpressionType(str, Enum):
    EQ = "EQ"
    NE = "NE"
    GT = "GT"
    GTE = "GTE"
    LT = "LT"
    LTE = "LTE"
    IN = "IN"
    NIN = "NIN"
    AND = "AND"
    OR = "OR"
    NOT = "NOT"


# ── Operand nodes ────────────────────────────────────────────────────


class Key(BaseModel):
    """Reference to a metadata field."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["key"] = "key"
    name: str


class Value(BaseModel):
    """Literal: number, date/datetime, string, boolean, or a list of those.

    Dates arriving in wire form (``{"$date": epoch_millis}``) are decoded to
    UTC datetimes, element-wise for lists.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["value"] = "value"
    value: Any

    @field_validator("value", mode="before")
    @classmethod
    def decode_dates(cls, v: Any) -> Any:
        if isinstance(v, (list, tuple)):
            return [decode_value(item) for item in v]
        return decode_value(v)


class Expression(BaseModel):
    """Operator applied to a left and an optional right operand."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["expression"] = "expression"
    type: ExpressionType
    left: Operand
    right: Operand | None = None


class Group(BaseModel):
    """Parenthesised sub-expression."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["group"] = "group"
    content: Expression


Operand = Annotated[
    Union[Key, Value, Expression, Group],
    Field(discriminator="kind"),
]

Expression.model_rebuild()
Group.model_rebuild()


# ── Builder helpers ──────────────────────────────────────────────────


def _compare(op: ExpressionType, key: str, value: Any) -> Expression:
    return Expression(type=op, left=Key(name=key), right=Value(value=value))


def eq(key: str, value: Any) -> Expression:
    return _compare(ExpressionType.EQ, key, value)


def ne(key: str, value: Any) -> Expression:
    return _compare(ExpressionType.NE, key, value)


def gt(key: str, value: Any) -> Expression:
    return _compare(ExpressionType.GT, key, value)


def gte(key: str, value: Any) -> Expression:
    return _compare(ExpressionType.GTE, key, value)


def lt(key: str, value: Any) -> Expression:
    return _compare(ExpressionType.LT, key, value)


def lte(key: str, value: Any) -> Expression:
    return _compare(ExpressionType.LTE, key, value)


def in_(key: str, values: list[Any]) -> Expression:
    return _compare(ExpressionType.IN, key, list(values))


def nin(key: str, values: list[Any]) -> Expression:
    return _compare(ExpressionType.NIN, key, list(values))


def and_(left: Expression | Group, right: Expression | Group) -> Expression:
    return Expression(type=ExpressionType.AND, left=left, right=right)


def or_(left: Expression | Group, right: Expression | Group) -> Expression:
    return Expression(type=ExpressionType.OR, left=left, right=right)


def not_(content: Expression | Group) -> Expression:
    return Expression(type=ExpressionType.NOT, left=content)


def group(content: Expression) -> Group:
    return Group(content=content)
