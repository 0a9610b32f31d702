import json
import subprocess
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from civotf.utils import (
    CustomError,
    Diagnostic,
    Severity,
    VersionInfo,
    check_app_name,
    extract_json,
    get_comma_separated_allowed_keys,
    in_pool,
    parse_error_response,
    resource_common_parse_id,
    string_to_int,
    validate_cluster_type,
    validate_cni_name,
    validate_name,
    validate_name_only_contains_alphanumeric_characters,
    validate_name_size,
    validate_provider_version,
    validate_uuid,
)


def _messages(result):
    warnings, errors = result
    assert warnings == []
    return [str(e) for e in errors]


def test_validate_name_accepts_plain_name():
    assert _messages(validate_name("my-volume", "name")) == []


def test_validate_name_rejects_whitespace():
    assert _messages(validate_name("has space", "name")) == [
        "name cannot contain whitespace. Got has space"
    ]


def test_validate_name_rejects_non_string():
    assert _messages(validate_name(5, "name")) == ["expected name to be string"]


@pytest.mark.parametrize("cni", ["flannel", "cilium"])
def test_validate_cni_name_supported(cni):
    assert _messages(validate_cni_name(cni, "cni")) == []


def test_validate_cni_name_unsupported():
    assert _messages(validate_cni_name("calico", "cni")) == [
        "CNI plugin provided isn't valid/supported"
    ]


def test_validate_cni_name_whitespace():
    assert _messages(validate_cni_name("fl annel", "cni")) == [
        "CNI cannot contain whitespace. Got fl annel"
    ]


def test_validate_cni_name_non_string():
    assert _messages(validate_cni_name(None, "cni")) == ["expected CNI to be string"]


def test_validate_name_size_limit():
    assert _messages(validate_name_size("a" * 63, "name")) == []
    assert _messages(validate_name_size("a" * 64, "name")) == [
        "the len of the name has to be less than 63. Got 64"
    ]


def test_validate_name_size_whitespace_first():
    assert _messages(validate_name_size("a b", "name")) == [
        "name cannot contain whitespace. Got a b"
    ]


def test_resource_common_parse_id_splits_once():
    assert resource_common_parse_id("first:second") == ("first", "second")
    assert resource_common_parse_id("a:b:c") == ("a", "b:c")


@pytest.mark.parametrize("bad", ["noseparator", ":right", "left:", ""])
def test_resource_common_parse_id_rejects(bad):
    with pytest.raises(ValueError, match="expected attribute1:attribute2"):
        resource_common_parse_id(bad)


def test_check_app_name_matches_substring():
    client = MagicMock()
    client.list_kubernetes_marketplace_applications.return_value = [
        SimpleNamespace(name="traefik"),
        SimpleNamespace(name="metrics-server"),
    ]
    assert check_app_name("traefik2-nodeport", client) is True
    assert check_app_name("longhorn", client) is False


def test_check_app_name_api_failure():
    client = MagicMock()
    client.list_kubernetes_marketplace_applications.side_effect = RuntimeError("down")
    assert check_app_name("traefik", client) is False


def test_get_comma_separated_allowed_keys_sorted():
    assert get_comma_separated_allowed_keys(["name", "cpu", "disk"]) == (
        "`cpu`, `disk`, `name`"
    )
    assert get_comma_separated_allowed_keys([]) == ""


def test_alphanumeric_name_valid():
    assert validate_name_only_contains_alphanumeric_characters("node_pool-1.a", []) == []


def test_alphanumeric_name_with_space_gives_two_diagnostics():
    diagnostics = validate_name_only_contains_alphanumeric_characters("bad name", [])
    assert [d.summary for d in diagnostics] == [
        "cannot contain whitespace",
        "alphanumeric characters",
    ]
    assert all(d.severity is Severity.ERROR for d in diagnostics)


def test_alphanumeric_name_rejects_symbols():
    diagnostics = validate_name_only_contains_alphanumeric_characters("pool$", [])
    assert diagnostics == [
        Diagnostic(
            Severity.ERROR,
            "alphanumeric characters",
            "name can only contain alphanumeric characters, hyphens, underscores "
            "and dots. Got pool$",
        )
    ]


def test_alphanumeric_name_rejects_trailing_newline():
    diagnostics = validate_name_only_contains_alphanumeric_characters("pool\n", [])
    assert len(diagnostics) == 2


def test_string_to_int():
    assert string_to_int("25G") == 25
    assert string_to_int("40") == 40


@pytest.mark.parametrize("bad", ["G", "ten", "1.5G", ""])
def test_string_to_int_rejects(bad):
    with pytest.raises(ValueError):
        string_to_int(bad)


def test_in_pool():
    pools = [SimpleNamespace(id="pool-a"), SimpleNamespace(id="pool-b")]
    assert in_pool("pool-b", pools) is True
    assert in_pool("pool-c", pools) is False
    assert in_pool("pool-a", []) is False


@pytest.mark.parametrize("cluster_type", ["k3s", "talos"])
def test_validate_cluster_type_ok(cluster_type):
    assert validate_cluster_type(cluster_type, []) == []


def test_validate_cluster_type_invalid():
    diagnostics = validate_cluster_type("eks", [])
    assert len(diagnostics) == 1
    assert diagnostics[0].summary == "Invalid Cluster Type"
    assert diagnostics[0].severity is Severity.ERROR


def _terraform_output(version):
    payload = {"provider_selections": {"registry.terraform.io/civo/civo": version}}
    return SimpleNamespace(stdout=json.dumps(payload).encode())


@patch("civotf.utils.subprocess.run")
def test_provider_version_old_password_warning(run):
    run.return_value = _terraform_output("1.0.40")
    diagnostics = validate_provider_version(True, ["write_password"])
    assert [d.summary for d in diagnostics] == [
        "Default initial_password behavior changed"
    ]
    assert diagnostics[0].severity is Severity.WARNING


@patch("civotf.utils.subprocess.run")
def test_provider_version_threshold_kubeconfig_warning(run):
    run.return_value = _terraform_output("1.0.49")
    diagnostics = validate_provider_version(True, ["write_kubeconfig"])
    assert [d.summary for d in diagnostics] == ["Default kubeconfig behavior changed"]


@patch("civotf.utils.subprocess.run")
def test_provider_version_new_no_warning(run):
    run.return_value = _terraform_output("1.0.50")
    assert validate_provider_version(True, ["write_password"]) == []


@patch("civotf.utils.subprocess.run")
def test_provider_version_other_field_no_warning(run):
    run.return_value = _terraform_output("1.0.1")
    assert validate_provider_version(True, ["region"]) == []


@patch("civotf.utils.subprocess.run")
def test_provider_version_terraform_missing(run):
    run.side_effect = FileNotFoundError("terraform")
    assert validate_provider_version(True, ["write_password"]) == []


@patch("civotf.utils.subprocess.run")
def test_provider_version_terraform_fails(run):
    run.side_effect = subprocess.CalledProcessError(1, ["terraform"])
    assert validate_provider_version(True, ["write_password"]) == []


@patch("civotf.utils.subprocess.run")
def test_provider_version_unparsable_output(run):
    run.return_value = SimpleNamespace(stdout=b"not json")
    assert validate_provider_version(True, ["write_password"]) == []


@patch("civotf.utils.subprocess.run")
def test_provider_version_missing_selection(run):
    run.return_value = SimpleNamespace(stdout=b"{}")
    assert validate_provider_version(True, ["write_password"]) == []


def test_version_info_from_json():
    info = VersionInfo.from_json('{"provider_selections": {"a": "1.2.3"}}')
    assert info.provider_selections == {"a": "1.2.3"}
    with pytest.raises(ValueError):
        VersionInfo.from_json("[]")


def test_extract_json():
    assert extract_json('Error: 404 {"code":"x","reason":"y"} end') == (
        '{"code":"x","reason":"y"}'
    )


def test_extract_json_missing():
    with pytest.raises(ValueError, match="no JSON object found in the string"):
        extract_json("plain message")


def test_parse_error_response():
    err = parse_error_response(
        'Error: 400 {"code":"database_volume_not_found","reason":"gone"}'
    )
    assert err == CustomError("database_volume_not_found", "gone")
    assert str(err) == "database_volume_not_found - gone"


def test_parse_error_response_no_json():
    with pytest.raises(ValueError, match="failed to extract JSON"):
        parse_error_response("nothing here")


def test_parse_error_response_bad_json():
    with pytest.raises(ValueError, match="failed to parse error response"):
        parse_error_response("{not valid}")


def test_validate_uuid():
    assert _messages(validate_uuid("123e4567-e89b-12d3-a456-426614174000", "id")) == []
    assert _messages(validate_uuid("not-a-uuid", "network_id")) == [
        '"network_id" must be a valid UUID'
    ]