"""The ``civo_volume_attachment`` resource: attaching a volume to an instance."""

from __future__ import annotations

import logging
from typing import Any

from civotf.datalist.schema import (
    DiagnosticError,
    Resource,
    ResourceData,
    prefixed_unique_id,
)
from civotf.datalist.values import Schema, ValueType
from civotf.volume import wait_for_state

logger = logging.getLogger(__name__)


def _no_zero_values(value: Any, key: str) -> tuple[list[str], list[ValueError]]:
    if value is None or value == "" or value == 0 or value is False:
        return [], [ValueError(f"{key} must not be empty, got {value!r}")]
    return [], []


def _override_region(data: ResourceData, client: Any) -> None:
    region, has_region = data.get_ok("region")
    if has_region:
        client.region = region


def resource_volume_attachment() -> Resource:
    """Build the resource that attaches a volume to an instance."""
    return Resource(
        description="Manages volume attachment/detachment to an instance.",
        schema={
            "instance_id": Schema(
                type=ValueType.STRING,
                required=True,
                force_new=True,
                validate=_no_zero_values,
                description="The ID of target instance for attachment",
            ),
            "volume_id": Schema(
                type=ValueType.STRING,
                required=True,
                force_new=True,
                validate=_no_zero_values,
                description="The ID of target volume for attachment",
            ),
            "region": Schema(
                type=ValueType.STRING,
                optional=True,
                force_new=True,
                description="The region for the volume attachment",
            ),
        },
        create=resource_volume_attachment_create,
        read=resource_volume_attachment_read,
        delete=resource_volume_attachment_delete,
    )


def resource_volume_attachment_create(data: ResourceData, client: Any) -> None:
    """Attach the volume unless it already is, wait for it and read back."""
    _override_region(data, client)

    instance_id = data.get("instance_id")
    volume_id = data.get("volume_id")

    logger.info("retrieving the volume %s", volume_id)
    try:
        volume = client.find_volume(volume_id)
    except Exception as exc:
        raise DiagnosticError(f"[ERR] Error retrieving volume: {exc}") from exc

    if volume.instance_id != instance_id:
        logger.info("attaching the volume %s to instance %s", volume_id, instance_id)
        try:
            client.attach_volume(volume_id, instance_id)
        except Exception as exc:
            raise DiagnosticError(
                f"[ERR] error attaching volume to instance {exc}"
            ) from exc

    data.id = prefixed_unique_id(f"{instance_id}-{volume_id}-")

    def refresh() -> tuple[Any, str]:
        current = client.find_volume(volume_id)
        return current, current.status

    try:
        wait_for_state(
            refresh,
            pending=("attaching",),
            target=("attached",),
            timeout=60 * 60,
            delay=3,
            min_timeout=3,
            not_found_checks=10,
        )
    except Exception as exc:
        raise DiagnosticError(
            f"error waiting for volume ({data.id}) to be attached: {exc}"
        ) from exc

    resource_volume_attachment_read(data, client)


def resource_volume_attachment_read(data: ResourceData, client: Any) -> None:
    """Forget the attachment if the volume is gone or attached elsewhere."""
    _override_region(data, client)

    instance_id = data.get("instance_id")
    volume_id = data.get("volume_id")

    logger.info("retrieving the volume %s", volume_id)
    try:
        volume = client.find_volume(volume_id)
    except LookupError:
        data.id = ""
        return
    except Exception as exc:
        raise DiagnosticError(f"[ERR] failed retrieving the volume: {exc}") from exc

    if not volume.instance_id or volume.instance_id != instance_id:
        logger.debug("Volume Attachment (%s) not found, removing from state", data.id)
        data.id = ""


def resource_volume_attachment_delete(data: ResourceData, client: Any) -> None:
    """Detach the volume."""
    _override_region(data, client)

    volume_id = data.get("volume_id")
    logger.info("Detaching the volume %s", data.id)
    try:
        client.detach_volume(volume_id)
    except Exception as exc:
        raise DiagnosticError(
            f"[ERR] an error occurred while trying to detach the volume {exc}"
        ) from exc