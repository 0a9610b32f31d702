"""The ``civo_size`` data source: instance sizes with filtering and sorting."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from civotf.datalist.schema import Resource, ResourceConfig, new_resource
from civotf.datalist.values import Schema, ValueType


@dataclass(frozen=True)
class Size:
    """An instance size that can be selected."""

    name: str
    description: str
    type: str
    cpu: int
    ram: int
    gpu: int
    gpu_type: str
    disk: int
    selectable: bool


def data_source_size() -> Resource:
    """Build the data source listing the sizes that can be selected."""
    return new_resource(
        ResourceConfig(
            description=(
                "Retrieves information about the sizes that Civo supports, "
                "with the ability to filter the results."
            ),
            record_schema=size_schema(),
            result_attribute_name="sizes",
            flatten_record=flatten_size,
            get_records=get_sizes,
        )
    )


def get_sizes(meta: Any, extra: dict[str, Any]) -> list[Size]:
    """Fetch the instance sizes from the API client, keeping the selectable ones."""
    try:
        instance_sizes = meta.list_instance_sizes()
    except Exception as exc:
        raise RuntimeError(f"[ERR] error retrieving sizes: {exc}") from exc

    return [
        Size(
            name=item.name,
            description=item.description,
            type=item.type.lower(),
            cpu=item.cpu_cores,
            ram=item.ram_megabytes,
            disk=item.disk_gigabytes,
            gpu=item.gpu_count,
            gpu_type=item.gpu_type,
            selectable=item.selectable,
        )
        for item in instance_sizes
        if item.selectable
    ]


def flatten_size(size: Size, meta: Any, extra: dict[str, Any]) -> dict[str, Any]:
    """Turn a size into the attribute map of one record."""
    return {
        "name": size.name,
        "type": size.type,
        "cpu": size.cpu,
        "ram": size.ram,
        "disk": size.disk,
        "gpu": size.gpu,
        "gpu_type": size.gpu_type,
        "description": size.description,
        "selectable": size.selectable,
    }


def size_schema() -> dict[str, Schema]:
    """Return the schema of one size record."""

    def computed(kind: ValueType, description: str) -> Schema:
        return Schema(type=kind, computed=True, description=description)

    return {
        "name": computed(ValueType.STRING, "The name of the size"),
        "type": computed(ValueType.STRING, "A human name of the size"),
        "cpu": computed(ValueType.INT, "Total of CPU"),
        "ram": computed(ValueType.INT, "Total of RAM"),
        "disk": computed(ValueType.INT, "The size of SSD"),
        "gpu": computed(ValueType.INT, "Total of GPU"),
        "gpu_type": computed(ValueType.STRING, "GPU type"),
        "description": computed(ValueType.STRING, "A description of the instance size"),
        "selectable": computed(ValueType.BOOL, "If can use the instance size"),
    }