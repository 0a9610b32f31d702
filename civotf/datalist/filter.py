"""Filtering of data-list records by user supplied key/value filters."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping, Sequence

from civotf.datalist.values import Schema, ValueType, value_matches
from civotf.utils import get_comma_separated_allowed_keys

MATCH_MODES: tuple[str, ...] = ("exact", "re", "substring")

_PRIMITIVE_TYPES = frozenset(
    {ValueType.STRING, ValueType.BOOL, ValueType.INT, ValueType.FLOAT}
)

_BOOL_WORDS = {
    "1": True, "t": True, "T": True, "TRUE": True, "true": True, "True": True,
    "0": False, "f": False, "F": False, "FALSE": False, "false": False, "False": False,
}

_INTEGER = re.compile(r"[+-]?[0-9]+")
_INT_MIN = -(2**63)
_INT_MAX = 2**63 - 1


@dataclass
class Filter:
    """One expanded filter: the key, the typed values and how they must match."""

    key: str
    values: list[Any] = field(default_factory=list)
    match_all: bool = False
    match_by: str = "exact"


def _one_of(allowed: Iterable[str]) -> Callable[[Any, str], tuple[list[str], list[ValueError]]]:
    choices = list(allowed)

    def validate(value: Any, key: str) -> tuple[list[str], list[ValueError]]:
        if not isinstance(value, str):
            return [], [ValueError(f"expected type of {key} to be string")]
        if value in choices:
            return [], []
        return [], [ValueError(f"expected {key} to be one of {choices!r}, got {value}")]

    return validate


def filter_schema(result_attribute_name: str, allowed_keys: Sequence[str]) -> Schema:
    """Build the schema of the ``filter`` block of a data-list data source."""
    return Schema(
        type=ValueType.SET,
        elem={
            "key": Schema(
                type=ValueType.STRING,
                required=True,
                validate=_one_of(allowed_keys),
                description=(
                    f"Filter {result_attribute_name} by this key. This may be one of "
                    f"{get_comma_separated_allowed_keys(allowed_keys)}."
                ),
            ),
            "values": Schema(
                type=ValueType.LIST,
                required=True,
                elem=Schema(type=ValueType.STRING),
                description=(
                    f"Only retrieves `{result_attribute_name}` which keys has value that "
                    "matches one of the values provided here"
                ),
            ),
            "all": Schema(
                type=ValueType.BOOL,
                optional=True,
                default=False,
                description=(
                    "Set to `true` to require that a field match all of the `values` "
                    "instead of just one or more of them. This is useful when matching "
                    "against multi-valued fields such as lists or sets where you want to "
                    "ensure that all of the `values` are present in the list or set."
                ),
            ),
            "match_by": Schema(
                type=ValueType.STRING,
                optional=True,
                default="exact",
                validate=_one_of(MATCH_MODES),
                description=(
                    "One of `exact` (default), `re`, or `substring`. For string-typed "
                    "fields, specify `re` to match by using the `values` as regular "
                    "expressions, or specify `substring` to match by treating the "
                    "`values` as substrings to find within the string field."
                ),
            ),
        },
        optional=True,
        description="One or more key/value pairs on which to filter results",
    )


def expand_filters(
    record_schema: Mapping[str, Schema], raw_filters: Iterable[Mapping[str, Any]]
) -> list[Filter]:
    """Turn raw filter blocks into filters with values of the field's type."""
    filters = []
    for raw in raw_filters:
        key = raw["key"]
        field_schema = record_schema.get(key)
        if field_schema is None:
            raise ValueError(f"field '{key}' does not exist in record schema")

        match_by = raw.get("match_by")
        if not isinstance(match_by, str):
            match_by = "exact"

        values = expand_filter_values(raw["values"], field_schema, match_by)
        filters.append(
            Filter(
                key=key,
                values=values,
                match_all=bool(raw.get("all", False)),
                match_by=match_by,
            )
        )
    return filters


def is_primitive_type(field_type: ValueType) -> bool:
    """Tell whether values of this type can be filtered on directly."""
    return field_type in _PRIMITIVE_TYPES


def _parse_int(text: str) -> int:
    if not _INTEGER.fullmatch(text):
        raise ValueError(f'parsing "{text}": invalid syntax')
    number = int(text)
    if not _INT_MIN <= number <= _INT_MAX:
        raise ValueError(f'parsing "{text}": value out of range')
    return number


def _parse_float(text: str) -> float:
    if not text or text != text.strip() or "_" in text:
        raise ValueError(f'parsing "{text}": invalid syntax')
    try:
        return float(text)
    except ValueError:
        pass
    if text.lstrip("+-").lower().startswith("0x"):
        try:
            return float.fromhex(text)
        except ValueError:
            pass
    raise ValueError(f'parsing "{text}": invalid syntax')


def expand_primitive_filter_value(filter_value: str, field_type: ValueType, match_by: str) -> Any:
    """Convert one filter string into the value used for comparisons."""
    if field_type is ValueType.STRING:
        if match_by in ("exact", "substring"):
            return filter_value
        if match_by == "re":
            try:
                return re.compile(filter_value)
            except re.error as exc:
                raise ValueError(
                    f"unable to parse value as regular expression: {filter_value}: {exc}"
                ) from exc
        raise ValueError(f"unsupported match_by: {match_by!r}")

    if field_type is ValueType.BOOL:
        try:
            return _BOOL_WORDS[filter_value]
        except KeyError:
            raise ValueError(
                f'unable to parse value as bool: {filter_value}: parsing "{filter_value}": '
                "invalid syntax"
            ) from None

    if field_type is ValueType.INT:
        try:
            return _parse_int(filter_value)
        except ValueError as exc:
            raise ValueError(
                f"unable to parse value as integer: {filter_value}: {exc}"
            ) from exc

    if field_type is ValueType.FLOAT:
        try:
            return _parse_float(filter_value)
        except ValueError as exc:
            raise ValueError(
                f"unable to parse value as floating point: {filter_value}: {exc}"
            ) from exc

    raise ValueError(f"cannot expand a filter value for type {field_type.value}")


def _expand_one(filter_value: str, field_schema: Schema, match_by: str) -> Any:
    if is_primitive_type(field_schema.type):
        return expand_primitive_filter_value(filter_value, field_schema.type, match_by)
    element = field_schema.elem
    if not isinstance(element, Schema):
        raise ValueError("cannot filter on aggregate type with non-Schema element type")
    if not is_primitive_type(element.type):
        raise ValueError("cannot filter on a non-primitive type")
    return expand_primitive_filter_value(filter_value, element.type, match_by)


def expand_filter_values(
    raw_filter_values: Iterable[str], field_schema: Schema, match_by: str
) -> list[Any]:
    """Convert raw filter strings into values of the field's (element) type."""
    return [_expand_one(value, field_schema, match_by) for value in raw_filter_values]


def _record_matches(flt: Filter, field_schema: Schema, record: Mapping[str, Any]) -> bool:
    value = record[flt.key]
    results = [
        value_matches(field_schema, value, filter_value, flt.match_by)
        for filter_value in flt.values
    ]
    return all(results) if flt.match_all else any(results)


def apply_filters(
    record_schema: Mapping[str, Schema],
    records: Iterable[Mapping[str, Any]],
    filters: Iterable[Filter],
) -> list[Mapping[str, Any]]:
    """Keep the records that pass every filter, applied in order."""
    selected = list(records)
    for flt in filters:
        field_schema = record_schema[flt.key]
        selected = [r for r in selected if _record_matches(flt, field_schema, r)]
    return selected