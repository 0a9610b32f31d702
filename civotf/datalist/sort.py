"""Ordering of data-list records by user supplied sort keys."""

from __future__ import annotations

from dataclasses import dataclass
from functools import cmp_to_key
from typing import Any, Callable, Iterable, Mapping, MutableSequence, Sequence

from civotf.datalist.values import Schema, ValueType, compare_values
from civotf.utils import get_comma_separated_allowed_keys

SORT_DIRECTIONS: tuple[str, ...] = ("asc", "desc")


@dataclass
class Sort:
    """One sort criterion: the key and the direction."""

    key: str
    direction: str = "asc"


def _one_of(allowed: Iterable[str]) -> Callable[[Any, str], tuple[list[str], list[ValueError]]]:
    choices = list(allowed)

    def validate(value: Any, key: str) -> tuple[list[str], list[ValueError]]:
        if not isinstance(value, str):
            return [], [ValueError(f"expected type of {key} to be string")]
        if value in choices:
            return [], []
        return [], [ValueError(f"expected {key} to be one of {choices!r}, got {value}")]

    return validate


def sort_schema(result_attribute_name: str, allowed_keys: Sequence[str]) -> Schema:
    """Build the schema of the ``sort`` block of a data-list data source."""
    return Schema(
        type=ValueType.LIST,
        elem={
            "key": Schema(
                type=ValueType.STRING,
                required=True,
                validate=_one_of(allowed_keys),
                description=(
                    f"Sort {result_attribute_name} by this key. This may be one of "
                    f"{get_comma_separated_allowed_keys(allowed_keys)}."
                ),
            ),
            "direction": Schema(
                type=ValueType.STRING,
                optional=True,
                validate=_one_of(SORT_DIRECTIONS),
                description="The sort direction. This may be either `asc` or `desc`.",
            ),
        },
        optional=True,
        description="One or more key/direction pairs on which to sort results",
    )


def expand_sorts(raw_sorts: Iterable[Mapping[str, Any]]) -> list[Sort]:
    """Turn raw sort blocks into sort criteria."""
    return [Sort(key=raw["key"], direction=raw.get("direction") or "") for raw in raw_sorts]


def apply_sorts(
    record_schema: Mapping[str, Schema],
    records: MutableSequence[Mapping[str, Any]],
    sorts: Sequence[Sort],
) -> MutableSequence[Mapping[str, Any]]:
    """Sort the records in place by each criterion in turn and return them."""

    def compare(first: Mapping[str, Any], second: Mapping[str, Any]) -> int:
        for criterion in sorts:
            result = compare_values(
                record_schema[criterion.key], first[criterion.key], second[criterion.key]
            )
            if criterion.direction.lower() == "desc":
                result = -result
            if result:
                return result
        return 0

    records.sort(key=cmp_to_key(compare))
    return records