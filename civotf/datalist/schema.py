"""Data sources that expose a list of records with filtering and sorting."""

from __future__ import annotations

import dataclasses
import itertools
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional

from civotf.datalist.filter import apply_filters, expand_filters, filter_schema
from civotf.datalist.sort import apply_sorts, expand_sorts, sort_schema
from civotf.datalist.values import Schema, ValueType

UNIQUE_ID_PREFIX = "terraform-"

_SORTABLE_TYPES = frozenset(
    {ValueType.STRING, ValueType.BOOL, ValueType.INT, ValueType.FLOAT}
)

_ZERO_FACTORIES: dict[ValueType, Callable[[], Any]] = {
    ValueType.STRING: str,
    ValueType.INT: int,
    ValueType.FLOAT: float,
    ValueType.BOOL: bool,
    ValueType.LIST: list,
    ValueType.SET: set,
    ValueType.MAP: dict,
}

_id_lock = threading.Lock()
_id_counter = itertools.count(1)


class DiagnosticError(Exception):
    """An error that a resource operation reports back to the user."""


class ResourceData:
    """The attribute values and identifier of one resource instance.

    ``previous`` holds the values before the change being applied; by default
    it equals the current values, so nothing has changed.
    """

    def __init__(
        self,
        values: Optional[Mapping[str, Any]] = None,
        *,
        resource_id: str = "",
        previous: Optional[Mapping[str, Any]] = None,
        schema: Optional[Mapping[str, Schema]] = None,
    ) -> None:
        self.id = resource_id
        self.schema = dict(schema) if schema is not None else None
        self._values: dict[str, Any] = dict(values or {})
        self._previous: dict[str, Any] = (
            dict(previous) if previous is not None else dict(self._values)
        )

    def get(self, key: str) -> Any:
        """Return the value, or the schema's default or zero value when unset."""
        value = self._values.get(key)
        if value is not None:
            return value
        attribute = self.schema.get(key) if self.schema else None
        if attribute is None:
            return None
        if attribute.default is not None:
            return attribute.default
        return _ZERO_FACTORIES[attribute.type]()

    def get_ok(self, key: str) -> tuple[Any, bool]:
        """Return the value and whether it is set to something other than zero."""
        value = self.get(key)
        return value, value is not None and bool(value)

    def set(self, key: str, value: Any) -> None:
        """Store a value; raise KeyError for a key the schema does not know."""
        if self.schema is not None and key not in self.schema:
            raise KeyError(f"Invalid address to set: {key!r}")
        self._values[key] = value

    def has_change(self, key: str) -> bool:
        """Tell whether the value differs from the previous one."""
        return self._values.get(key) != self._previous.get(key)


@dataclass
class Resource:
    """A resource or data source: its schema and the operations on it."""

    schema: dict[str, Schema]
    description: str = ""
    read: Optional[Callable[[ResourceData, Any], None]] = None
    create: Optional[Callable[[ResourceData, Any], None]] = None
    update: Optional[Callable[[ResourceData, Any], None]] = None
    delete: Optional[Callable[[ResourceData, Any], None]] = None
    importer: Optional[Callable[[ResourceData, Any], list[ResourceData]]] = None


@dataclass
class ResourceConfig:
    """What a data-list data source needs: record schema and how to get records."""

    record_schema: dict[str, Schema]
    result_attribute_name: str
    flatten_record: Callable[[Any, Any, dict[str, Any]], dict[str, Any]]
    get_records: Callable[[Any, dict[str, Any]], list[Any]]
    extra_query_schema: dict[str, Schema] = field(default_factory=dict)
    description: str = ""


def prefixed_unique_id(prefix: str) -> str:
    """Return the prefix followed by a UTC timestamp and a growing counter."""
    now = datetime.now(timezone.utc)
    timestamp = now.strftime("%Y%m%d%H%M%S") + f"{now.microsecond // 100:04d}"
    with _id_lock:
        counter = next(_id_counter)
    return f"{prefix}{timestamp}{counter:08x}"


def unique_id() -> str:
    """Return a unique identifier with the default prefix."""
    return prefixed_unique_id(UNIQUE_ID_PREFIX)


def compute_filter_keys(record_schema: Mapping[str, Schema]) -> list[str]:
    """Return the attributes that can be filtered on: all but maps."""
    return [key for key, attr in record_schema.items() if attr.type is not ValueType.MAP]


def compute_sort_keys(record_schema: Mapping[str, Schema]) -> list[str]:
    """Return the attributes that can be sorted on: the primitive ones."""
    return [key for key, attr in record_schema.items() if attr.type in _SORTABLE_TYPES]


def validate_resource_config(config: ResourceConfig) -> None:
    """Raise ValueError if the configuration cannot drive a data source."""
    if not config.result_attribute_name:
        raise ValueError("ResultAttributeName must be specified")


def _data_list_read(config: ResourceConfig) -> Callable[[ResourceData, Any], None]:
    def read(data: ResourceData, meta: Any) -> None:
        extra = {key: data.get(key) for key in config.extra_query_schema}

        try:
            records = config.get_records(meta, extra)
        except Exception as exc:
            raise DiagnosticError(f"Unable to load records: {exc}") from exc

        try:
            flattened = [config.flatten_record(record, meta, extra) for record in records]
        except Exception as exc:
            raise DiagnosticError(str(exc)) from exc

        raw_filters, has_filters = data.get_ok("filter")
        if has_filters:
            try:
                filters = expand_filters(config.record_schema, list(raw_filters))
            except ValueError as exc:
                raise DiagnosticError(str(exc)) from exc
            flattened = apply_filters(config.record_schema, flattened, filters)

        raw_sorts, has_sorts = data.get_ok("sort")
        if has_sorts:
            flattened = apply_sorts(config.record_schema, list(flattened), expand_sorts(raw_sorts))

        data.id = unique_id()

        try:
            data.set(config.result_attribute_name, list(flattened))
        except (KeyError, ValueError) as exc:
            raise DiagnosticError(
                f"unable to set `{config.result_attribute_name}` attribute: {exc}"
            ) from exc

    return read


def new_resource(config: ResourceConfig) -> Resource:
    """Build a data source with ``filter`` and ``sort`` over the config's records."""
    try:
        validate_resource_config(config)
    except ValueError as exc:
        raise ValueError(f"datalist.new_resource: invalid resource configuration: {exc}") from exc

    record_schema = {
        name: dataclasses.replace(attr, computed=True, required=False, optional=False)
        for name, attr in config.record_schema.items()
    }

    name = config.result_attribute_name
    datasource_schema: dict[str, Schema] = {
        "filter": filter_schema(name, compute_filter_keys(record_schema)),
        "sort": sort_schema(name, compute_sort_keys(record_schema)),
        name: Schema(type=ValueType.LIST, computed=True, elem=record_schema),
    }
    datasource_schema.update(config.extra_query_schema)

    return Resource(
        schema=datasource_schema,
        description=config.description,
        read=_data_list_read(config),
    )