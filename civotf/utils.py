"""Validators, identifier parsing and API error helpers shared by the resources."""

from __future__ import annotations

import enum
import json
import logging
import re
import subprocess
import uuid
from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence

from packaging.version import InvalidVersion, Version

logger = logging.getLogger(__name__)

# Whitespace as understood by the provider: space, tab, newline, form feed, carriage return.
_WHITESPACE = re.compile(r"[\t\n\f\r ]+")
_ALPHANUMERIC_NAME = re.compile(r"[a-zA-Z0-9_.-]+")
_JSON_OBJECT = re.compile(r"\{.*\}")
_INTEGER = re.compile(r"[+-]?[0-9]+")

_PROVIDER_ADDRESS = "registry.terraform.io/civo/civo"
_THRESHOLD_PROVIDER_VERSION = "1.0.49"

ValidationResult = tuple[list[str], list[ValueError]]


class Severity(enum.Enum):
    """How serious a diagnostic is."""

    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class Diagnostic:
    """A single message reported back to the user about a configuration value."""

    severity: Severity
    summary: str
    detail: str = ""


class CustomError(Exception):
    """The code and reason carried by an API error response."""

    def __init__(self, code: str = "", reason: str = "") -> None:
        super().__init__(code, reason)
        self.code = code
        self.reason = reason

    def __str__(self) -> str:
        return f"{self.code} - {self.reason}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CustomError):
            return NotImplemented
        return (self.code, self.reason) == (other.code, other.reason)

    def __hash__(self) -> int:
        return hash((self.code, self.reason))


@dataclass
class VersionInfo:
    """The provider selections reported by ``terraform version -json``."""

    provider_selections: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_json(cls, raw: str | bytes) -> VersionInfo:
        """Build from the JSON document; raise ValueError if it is malformed."""
        document = json.loads(raw)
        if not isinstance(document, dict):
            raise ValueError("version information is not a JSON object")
        selections = document.get("provider_selections") or {}
        if not isinstance(selections, dict) or not all(
            isinstance(v, str) for v in selections.values()
        ):
            raise ValueError("provider_selections must map names to version strings")
        return cls(provider_selections=dict(selections))


def _whitespace_checked(value: Any, subject: str, label: str) -> ValidationResult:
    if not isinstance(value, str):
        return [], [ValueError(f"expected {label} to be string")]
    if _WHITESPACE.search(value):
        return [], [ValueError(f"{subject} cannot contain whitespace. Got {value}")]
    return [], []


def validate_name(value: Any, key: str) -> ValidationResult:
    """Check that a name is a string without whitespace."""
    return _whitespace_checked(value, "name", "name")


def validate_cni_name(value: Any, key: str) -> ValidationResult:
    """Check that a CNI plugin name is one of the supported plugins."""
    warnings, errors = _whitespace_checked(value, "CNI", "CNI")
    if errors:
        return warnings, errors
    if value not in ("flannel", "cilium"):
        return warnings, [ValueError("CNI plugin provided isn't valid/supported")]
    return warnings, errors


def validate_name_size(value: Any, key: str) -> ValidationResult:
    """Check that a name has no whitespace and is at most 63 bytes long."""
    warnings, errors = _whitespace_checked(value, "name", "name")
    if errors:
        return warnings, errors
    size = len(value.encode("utf-8"))
    if size > 63:
        return warnings, [
            ValueError(f"the len of the name has to be less than 63. Got {size}")
        ]
    return warnings, errors


def resource_common_parse_id(resource_id: str) -> tuple[str, str]:
    """Split an ``attribute1:attribute2`` identifier into its two parts."""
    parts = resource_id.split(":", 1)
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise ValueError(
            f"unexpected format of ID ({resource_id}), expected attribute1:attribute2"
        )
    return parts[0], parts[1]


def check_app_name(app_name: str, client: Any) -> bool:
    """Tell whether the name mentions any Kubernetes marketplace application."""
    try:
        applications = client.list_kubernetes_marketplace_applications()
    except Exception:
        return False
    return any(application.name in app_name for application in applications)


def get_comma_separated_allowed_keys(allowed_keys: Iterable[str]) -> str:
    """Render allowed keys as a sorted, comma separated list of code spans."""
    return ", ".join(sorted(f"`{key}`" for key in allowed_keys))


def validate_name_only_contains_alphanumeric_characters(
    value: Any, path: Sequence[Any]
) -> list[Diagnostic]:
    """Check that a name holds only letters, digits, hyphens, underscores and dots."""
    if not isinstance(value, str):
        return [Diagnostic(Severity.ERROR, "wrong value", "expected name to be string")]

    diagnostics: list[Diagnostic] = []
    if _WHITESPACE.search(value):
        diagnostics.append(
            Diagnostic(
                Severity.ERROR,
                "cannot contain whitespace",
                f"name cannot contain whitespace. Got {value}",
            )
        )
    if not _ALPHANUMERIC_NAME.fullmatch(value):
        diagnostics.append(
            Diagnostic(
                Severity.ERROR,
                "alphanumeric characters",
                "name can only contain alphanumeric characters, hyphens, "
                f"underscores and dots. Got {value}",
            )
        )
    return diagnostics


def string_to_int(s: str) -> int:
    """Parse a size such as ``"30G"`` into an integer."""
    cleaned = s.replace("G", "", 1)
    if not _INTEGER.fullmatch(cleaned):
        raise ValueError(f"invalid integer: {s!r}")
    return int(cleaned)


def in_pool(pool_id: str, pools: Iterable[Any]) -> bool:
    """Tell whether a node pool with this id is among the pools."""
    return any(pool.id == pool_id for pool in pools)


def validate_cluster_type(value: Any, path: Sequence[Any]) -> list[Diagnostic]:
    """Check that the cluster type is ``k3s`` or ``talos``."""
    if value in ("k3s", "talos"):
        return []
    return [
        Diagnostic(
            Severity.ERROR,
            "Invalid Cluster Type",
            "The specified cluster type is invalid. Please choose either 'k3s' or 'talos'.",
        )
    ]


def validate_provider_version(value: Any, path: Sequence[Any]) -> list[Diagnostic]:
    """Warn about changed defaults when the installed provider is 1.0.49 or older.

    The last element of ``path`` names the attribute being validated.
    """
    try:
        completed = subprocess.run(
            ["terraform", "version", "-json"], capture_output=True, check=True
        )
    except (OSError, subprocess.SubprocessError) as exc:
        logger.error("error running terraform show: %s", exc)
        return []

    try:
        info = VersionInfo.from_json(completed.stdout)
    except ValueError as exc:
        logger.error("error parsing JSON: %s", exc)
        return []

    current = info.provider_selections.get(_PROVIDER_ADDRESS, "")
    try:
        current_version = Version(current)
        threshold_version = Version(_THRESHOLD_PROVIDER_VERSION)
    except InvalidVersion:
        logger.error("error parsing the given version")
        return []

    field_name = path[-1] if path and isinstance(path[-1], str) else ""

    if current_version > threshold_version:
        return []
    if field_name == "write_password":
        return [
            Diagnostic(
                Severity.WARNING,
                "Default initial_password behavior changed",
                "Starting from version 1.0.50 the initial password is not written to "
                "state by default, if you wish to keep the initial password "
                "configuration in state, please add the input write_password and set "
                "it to true. Example configuration: `write_password = true`.",
            )
        ]
    if field_name == "write_kubeconfig":
        return [
            Diagnostic(
                Severity.WARNING,
                "Default kubeconfig behavior changed",
                "Starting from version 1.0.50, kubeconfig will no longer be written to "
                "the Terraform state by default for the civo_kubernetes resource. This "
                "change is made to enhance security by preventing sensitive information "
                "from being stored in state files. If you want to retain kubeconfig in "
                "your state file, please update your configuration by adding the "
                "`write_kubeconfig` parameter and setting it to `true`. Example "
                "configuration: `write_kubeconfig = true`.",
            )
        ]
    return []


def extract_json(s: str) -> str:
    """Return the outermost ``{...}`` span found on one line of the string."""
    match = _JSON_OBJECT.search(s)
    if match is None:
        raise ValueError("no JSON object found in the string")
    return match.group(0)


def _lookup_string(document: dict[str, Any], name: str) -> str:
    if name in document:
        candidate = document[name]
    else:
        candidate = next(
            (v for k, v in document.items() if k.lower() == name), None
        )
    if candidate is None:
        return ""
    if not isinstance(candidate, str):
        raise ValueError(f"field {name!r} is not a string")
    return candidate


def parse_error_response(error_msg: str) -> CustomError:
    """Pull the JSON error body out of an API error message."""
    try:
        json_text = extract_json(error_msg)
    except ValueError as exc:
        raise ValueError(f"failed to extract JSON: {exc}") from exc

    try:
        document = json.loads(json_text)
        if not isinstance(document, dict):
            raise ValueError("error response is not a JSON object")
        return CustomError(
            code=_lookup_string(document, "code"),
            reason=_lookup_string(document, "reason"),
        )
    except ValueError as exc:
        raise ValueError(f"failed to parse error response: {exc}") from exc


def validate_uuid(value: Any, key: str) -> ValidationResult:
    """Check that the value is a UUID."""
    try:
        uuid.UUID(value)
    except (TypeError, ValueError, AttributeError):
        return [], [ValueError(f'"{key}" must be a valid UUID')]
    return [], []