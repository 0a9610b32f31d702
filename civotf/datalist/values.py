"""Attribute schemas and the matching and ordering of attribute values."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Optional


class ValueType(enum.Enum):
    """The type of an attribute value."""

    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    STRING = "string"
    LIST = "list"
    MAP = "map"
    SET = "set"


@dataclass
class Schema:
    """Describes one attribute of a resource or data source."""

    type: ValueType
    elem: Any = None
    required: bool = False
    optional: bool = False
    computed: bool = False
    force_new: bool = False
    default: Any = None
    description: str = ""
    validate: Optional[Callable[..., Any]] = None
    exactly_one_of: tuple[str, ...] = field(default_factory=tuple)


def float_approx_equals(a: float, b: float) -> bool:
    """Tell whether two floats differ by less than one millionth."""
    return abs(a - b) < 0.000001


def value_matches(schema: Schema, value: Any, filter_value: Any, match_by: str) -> bool:
    """Tell whether a record value satisfies one expanded filter value.

    Strings match case-insensitively (``exact``), by containment
    (``substring``) or by a compiled pattern (``re``). Lists and sets match
    when any of their elements does.
    """
    kind = schema.type
    if kind is ValueType.STRING:
        if match_by == "exact":
            return filter_value.casefold() == value.casefold()
        if match_by == "substring":
            return filter_value in value
        if match_by == "re":
            return filter_value.search(value) is not None
        return False
    if kind is ValueType.BOOL or kind is ValueType.INT:
        return filter_value == value
    if kind is ValueType.FLOAT:
        return float_approx_equals(filter_value, value)
    if kind is ValueType.LIST or kind is ValueType.SET:
        return any(
            value_matches(schema.elem, element, filter_value, match_by)
            for element in value
        )
    return False


def _sign(a: Any, b: Any) -> int:
    return (a > b) - (a < b)


def compare_values(schema: Schema, value1: Any, value2: Any) -> int:
    """Return -1, 0 or 1 as ``value1`` orders before, equal to or after ``value2``."""
    kind = schema.type
    if kind in (ValueType.STRING, ValueType.INT):
        return _sign(value1, value2)
    if kind is ValueType.BOOL:
        return _sign(bool(value1), bool(value2))
    if kind is ValueType.FLOAT:
        if float_approx_equals(value1, value2):
            return 0
        return _sign(value1, value2)
    raise ValueError("Illegal state: Unsupported value type for sort")


__all__ = [
    "Schema",
    "ValueType",
    "compare_values",
    "float_approx_equals",
    "value_matches",
]

# Kept for callers that pass compiled patterns around as filter values.
Pattern = re.Pattern