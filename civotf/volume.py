"""The ``civo_volume`` data source and resource, and waiting for state changes."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Sequence

from civotf.datalist.schema import DiagnosticError, Resource, ResourceData
from civotf.datalist.values import Schema, ValueType
from civotf.utils import validate_name

logger = logging.getLogger(__name__)

_MAX_POLL_INTERVAL = 10.0


@dataclass
class Volume:
    """A block storage volume as reported by the API."""

    id: str
    name: str
    size_gigabytes: int = 0
    network_id: str = ""
    mount_point: str = ""
    instance_id: str = ""
    status: str = ""
    created_at: Optional[datetime] = None


@dataclass
class VolumeConfig:
    """The settings for a volume to be created."""

    name: str
    size_gigabytes: int
    network_id: str
    region: str


class WaitTimeoutError(Exception):
    """Raised when a resource does not reach its target state in time."""

    def __init__(self, target: Sequence[str], last_state: str, timeout: float) -> None:
        super().__init__(
            f"timeout while waiting for state to become '{', '.join(target)}' "
            f"(last state: '{last_state}', timeout: {timeout}s)"
        )
        self.target = tuple(target)
        self.last_state = last_state
        self.timeout = timeout


def wait_for_state(
    refresh: Callable[[], tuple[Any, str]],
    pending: Sequence[str],
    target: Sequence[str],
    timeout: float = 3600.0,
    delay: float = 0.0,
    min_timeout: float = 0.0,
    not_found_checks: int = 20,
) -> Any:
    """Poll ``refresh`` until it reports a target state and return its result.

    ``refresh`` returns ``(result, state)``; a ``None`` result means the
    object was not found. Raises LookupError after more than
    ``not_found_checks`` misses in a row, ValueError on a state that is
    neither pending nor a target, and WaitTimeoutError when time runs out.
    """
    deadline = time.monotonic() + timeout
    if delay > 0:
        time.sleep(delay)

    interval = min_timeout
    misses = 0
    last_state = ""
    while True:
        result, state = refresh()
        if result is None:
            misses += 1
            if misses > not_found_checks:
                raise LookupError(
                    f"couldn't find resource ({not_found_checks} retries)"
                )
        else:
            misses = 0
            last_state = state
            if state in target:
                return result
            if state not in pending:
                raise ValueError(
                    f"unexpected state '{state}', wanted target '{', '.join(target)}'"
                )

        if time.monotonic() >= deadline:
            raise WaitTimeoutError(target, last_state, timeout)
        time.sleep(interval)
        ceiling = max(_MAX_POLL_INTERVAL, min_timeout)
        interval = min(max(interval * 2, min_timeout), ceiling)


def _no_zero_values(value: Any, key: str) -> tuple[list[str], list[ValueError]]:
    if value is None or value == "" or value == 0 or value is False:
        return [], [ValueError(f"{key} must not be empty, got {value!r}")]
    return [], []


def _override_region(data: ResourceData, client: Any) -> None:
    region, has_region = data.get_ok("region")
    if has_region:
        client.region = region


def _format_created_at(moment: Optional[datetime]) -> str:
    if moment is None:
        moment = datetime(1, 1, 1, tzinfo=timezone.utc)
    elif moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    else:
        moment = moment.astimezone(timezone.utc)
    text = (
        f"{moment.year:04d}-{moment.month:02d}-{moment.day:02d} "
        f"{moment.hour:02d}:{moment.minute:02d}:{moment.second:02d}"
    )
    if moment.microsecond:
        text += "." + f"{moment.microsecond:06d}".rstrip("0")
    return text + " +0000 UTC"


def data_source_volume() -> Resource:
    """Build the data source that looks a volume up by id or name."""
    return Resource(
        description="\n\n".join(
            [
                "Get information on a volume for use in other resources. This data "
                "source provides all of the volumes properties as configured on your "
                "Civo account.",
                "An error will be raised if the provided volume name does not exist "
                "in your Civo account.",
            ]
        ),
        read=data_source_volume_read,
        schema={
            "id": Schema(
                type=ValueType.STRING,
                optional=True,
                validate=_no_zero_values,
                exactly_one_of=("id", "name"),
            ),
            "name": Schema(
                type=ValueType.STRING,
                optional=True,
                validate=_no_zero_values,
                exactly_one_of=("id", "name"),
                description="The name of the volume",
            ),
            "region": Schema(
                type=ValueType.STRING,
                optional=True,
                validate=_no_zero_values,
                description="The region where volume is running",
            ),
            "size_gb": Schema(
                type=ValueType.INT,
                computed=True,
                description="The size of the volume (in GB)",
            ),
            "mount_point": Schema(
                type=ValueType.STRING,
                computed=True,
                description="The mount point of the volume",
            ),
            "created_at": Schema(
                type=ValueType.STRING,
                computed=True,
                description="The date of the creation of the volume",
            ),
        },
    )


def data_source_volume_read(data: ResourceData, client: Any) -> None:
    """Fill in the data source from the volume found by id or name."""
    _override_region(data, client)

    found: Optional[Volume] = None
    volume_id, has_id = data.get_ok("id")
    name, has_name = data.get_ok("name")
    search_by = None
    if has_id:
        logger.info("Getting the volume by id")
        search_by = volume_id
    elif has_name:
        logger.info("Getting the volume by name")
        search_by = name

    if search_by is not None:
        try:
            found = client.find_volume(search_by)
        except Exception as exc:
            raise DiagnosticError(f"[ERR] failed to retrieve volume: {exc}") from exc

    if found is None:
        raise DiagnosticError("[ERR] failed to retrieve volume")

    data.id = found.id
    data.set("name", found.name)
    data.set("size_gb", found.size_gigabytes)
    data.set("mount_point", found.mount_point)
    data.set("created_at", _format_created_at(found.created_at))


def resource_volume() -> Resource:
    """Build the resource that manages a volume."""
    return Resource(
        description=(
            "Provides a Civo volume which can be attached to an instance in order to "
            "provide expanded storage."
        ),
        schema={
            "name": Schema(
                type=ValueType.STRING,
                required=True,
                description="A name that you wish to use to refer to this volume",
                validate=validate_name,
            ),
            "size_gb": Schema(
                type=ValueType.INT,
                required=True,
                description=(
                    "A minimum of 1 and a maximum of your available disk space from "
                    "your quota specifies the size of the volume in gigabytes "
                ),
            ),
            "region": Schema(
                type=ValueType.STRING,
                optional=True,
                description=(
                    "The region for the volume, if not declare we use the region in "
                    "declared in the provider."
                ),
            ),
            "network_id": Schema(
                type=ValueType.STRING,
                required=True,
                description="The network that the volume belongs to",
            ),
            "mount_point": Schema(
                type=ValueType.STRING,
                computed=True,
                description="The mount point of the volume (from instance's perspective)",
            ),
        },
        create=resource_volume_create,
        read=resource_volume_read,
        update=resource_volume_update,
        delete=resource_volume_delete,
        importer=resource_volume_import,
    )


def resource_volume_create(data: ResourceData, client: Any) -> None:
    """Create the volume, wait until it is available and read it back."""
    _override_region(data, client)

    logger.info("configuring the volume %s", data.get("name"))
    config = VolumeConfig(
        name=data.get("name"),
        size_gigabytes=data.get("size_gb"),
        network_id=data.get("network_id"),
        region=client.region,
    )

    try:
        client.find_network(config.network_id)
    except Exception as exc:
        raise DiagnosticError(
            f'[ERR] Unable to find network ID "{config.network_id}" in '
            f'"{config.region}" region'
        ) from exc

    try:
        volume = client.new_volume(config)
    except Exception as exc:
        raise DiagnosticError(f"[ERR] failed to create a new volume: {exc}") from exc

    data.id = volume.id

    def refresh() -> tuple[Any, str]:
        current = client.find_volume(data.id)
        return current, current.status

    try:
        wait_for_state(
            refresh,
            pending=("creating",),
            target=("available",),
            timeout=60 * 60,
            delay=3,
            min_timeout=3,
            not_found_checks=10,
        )
    except Exception as exc:
        raise DiagnosticError(
            f"error waiting for volume ({data.id}) to be created: {exc}"
        ) from exc

    resource_volume_read(data, client)


def resource_volume_read(data: ResourceData, client: Any) -> None:
    """Refresh the volume's attributes; forget it if it no longer exists."""
    _override_region(data, client)

    logger.info("retrieving the volume %s", data.id)
    try:
        volume = client.find_volume(data.id)
    except LookupError:
        data.id = ""
        return
    except Exception as exc:
        raise DiagnosticError(f"[ERR] failed retrieving the volume: {exc}") from exc

    data.set("name", volume.name)
    data.set("network_id", volume.network_id)
    data.set("size_gb", volume.size_gigabytes)
    data.set("mount_point", volume.mount_point)


def resource_volume_update(data: ResourceData, client: Any) -> None:
    """Refuse the changes a volume does not support, otherwise read it back."""
    if data.has_change("size_gb"):
        raise DiagnosticError(
            "[ERR] Resize operation is not available at this moment - we are working "
            "to re-enable it soon"
        )
    if data.has_change("network_id"):
        raise DiagnosticError(
            "[ERR] Network change for volume is not supported at this moment"
        )
    if data.has_change("name"):
        raise DiagnosticError("[ERR] Name change for volume is not supported at this moment")

    resource_volume_read(data, client)


def resource_volume_delete(data: ResourceData, client: Any) -> None:
    """Delete the volume."""
    _override_region(data, client)

    logger.info("deleting the volume %s", data.id)
    try:
        client.delete_volume(data.id)
    except Exception as exc:
        raise DiagnosticError(
            f"[ERR] an error occurred while trying to delete the volume {exc}"
        ) from exc


def resource_volume_import(data: ResourceData, client: Any) -> list[ResourceData]:
    """Find the volume with the data's id in any region and fill in its attributes."""
    regions = client.list_regions()

    found = False
    for region in regions:
        if found:
            break
        client.region = region.code
        for volume in client.list_volumes():
            if volume.id == data.id:
                found = True
                data.id = volume.id
                data.set("name", volume.name)
                data.set("network_id", volume.network_id)
                data.set("region", region.code)
                data.set("size_gb", volume.size_gigabytes)
                data.set("mount_point", volume.mount_point)

    if not found:
        raise DiagnosticError(f"[ERR] Volume {data.id} not found")

    return [data]