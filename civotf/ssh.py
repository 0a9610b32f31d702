"""The ``civo_ssh_key`` data source and resource."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from civotf.datalist.schema import DiagnosticError, Resource, ResourceData
from civotf.datalist.values import Schema, ValueType
from civotf.utils import validate_name

logger = logging.getLogger(__name__)


@dataclass
class SSHKey:
    """An SSH key stored in the account."""

    id: str
    name: str
    fingerprint: str = ""


def _no_zero_values(value: Any, key: str) -> tuple[list[str], list[ValueError]]:
    if value is None or value == "" or value == 0 or value is False:
        return [], [ValueError(f"{key} must not be empty, got {value!r}")]
    return [], []


def data_source_ssh_key() -> Resource:
    """Build the data source that looks an SSH key up by id or name."""
    return Resource(
        description="\n\n".join(
            [
                "Get information on a SSH key. This data source provides the name, "
                "and fingerprint as configured on your Civo account.",
                "An error will be raised if the provided SSH key name does not exist "
                "in your Civo account.",
            ]
        ),
        read=data_source_ssh_key_read,
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
                description="The name of the SSH key",
            ),
            "fingerprint": Schema(
                type=ValueType.STRING,
                computed=True,
                description="The fingerprint of the public key of the SSH key",
            ),
        },
    )


def data_source_ssh_key_read(data: ResourceData, client: Any) -> None:
    """Fill in the data source from the key found by id or name."""
    search_by = ""
    key_id, has_id = data.get_ok("id")
    if has_id:
        logger.info("Getting the ssh key by id")
        search_by = key_id
    else:
        name, has_name = data.get_ok("name")
        if has_name:
            logger.info("Getting the ssh key by label")
            search_by = name

    try:
        ssh_key = client.find_ssh_key(search_by)
    except Exception as exc:
        raise DiagnosticError(f"[ERR] failed to retrive network: {exc}") from exc

    data.id = ssh_key.id
    data.set("name", ssh_key.name)
    data.set("fingerprint", ssh_key.fingerprint)


def _import_passthrough(data: ResourceData, client: Any) -> list[ResourceData]:
    return [data]


def resource_ssh_key() -> Resource:
    """Build the resource that manages an SSH key."""
    return Resource(
        description=(
            "Provides a Civo SSH key resource to allow you to manage SSH keys for "
            "instance access. Keys created with this resource can be referenced in "
            "your instance configuration via their ID."
        ),
        schema={
            "name": Schema(
                type=ValueType.STRING,
                required=True,
                description="a string that will be the reference for the SSH key.",
                validate=validate_name,
            ),
            "public_key": Schema(
                type=ValueType.STRING,
                required=True,
                description="a string containing the SSH public key.",
                force_new=True,
            ),
            "fingerprint": Schema(
                type=ValueType.STRING,
                computed=True,
                description="a string containing the SSH finger print.",
            ),
        },
        create=resource_ssh_key_create,
        read=resource_ssh_key_read,
        update=resource_ssh_key_update,
        delete=resource_ssh_key_delete,
        importer=_import_passthrough,
    )


def resource_ssh_key_create(data: ResourceData, client: Any) -> None:
    """Upload a new SSH key and read it back."""
    name = data.get("name")
    logger.info("creating the new ssh key %s", name)
    try:
        ssh_key = client.new_ssh_key(name, data.get("public_key"))
    except Exception as exc:
        raise DiagnosticError(f"[ERR] failed to create a new ssh key: {exc}") from exc

    data.id = ssh_key.id
    resource_ssh_key_read(data, client)


def resource_ssh_key_read(data: ResourceData, client: Any) -> None:
    """Refresh the key's attributes; forget the key if it no longer exists."""
    logger.info("retrieving the new ssh key %s", data.get("name"))
    try:
        ssh_key = client.find_ssh_key(data.id)
    except LookupError:
        data.id = ""
        return
    except Exception as exc:
        raise DiagnosticError(f"[ERR] error retrieving ssh key: {exc}") from exc

    data.set("name", ssh_key.name)
    data.set("fingerprint", ssh_key.fingerprint)


def resource_ssh_key_update(data: ResourceData, client: Any) -> None:
    """Rename the key when its name changed, then read it back."""
    if data.has_change("name"):
        name = data.get("name")
        if name != "":
            logger.info("updating the ssh key %s", name)
            try:
                client.update_ssh_key(name, data.id)
            except Exception as exc:
                raise DiagnosticError(
                    f"[ERR] an error occurred while trying to rename the ssh key {data.id}"
                ) from exc

    resource_ssh_key_read(data, client)


def resource_ssh_key_delete(data: ResourceData, client: Any) -> None:
    """Delete the key."""
    logger.info("deleting the ssh key %s", data.id)
    try:
        client.delete_ssh_key(data.id)
    except Exception as exc:
        raise DiagnosticError(
            f"[ERR] an error occurred while trying to delete the ssh key {data.id}"
        ) from exc