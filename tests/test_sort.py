import pytest

from civotf.datalist.sort import Sort, apply_sorts, expand_sorts, sort_schema
from civotf.datalist.values import Schema, ValueType

_FIELDS = (
    "slug",
    "memory",
    "vcpus",
    "disk",
    "transfer",
    "price_monthly",
    "price_hourly",
    "regions",
    "available",
)

_SMALL = ("s-1vcpu-1gb", 1024, 1, 25, 1.0, 5.0, 0.007439999841153622, ("sgp1", "sgp2"), True)
_MEDIUM = ("s-2vcpu-2gb", 2048, 2, 60, 3.0, 15.0, 0.02232000045478344, ("nyc1", "nyc2"), False)
_LARGE = ("s-4vcpu-8gb", 8192, 4, 160, 5.0, 40.0, 0.05951999872922897, ("ams1", "ams2"), True)
_TWIN = ("1gb", 1024, 1, 30, 2.0, 10.0, 0.01487999968230724, ("sgp1", "sgp2"), True)


def _record(row, with_set=True):
    record = dict(zip(_FIELDS, row))
    record["regions"] = list(record["regions"])
    if with_set:
        record["regions_set"] = set(record["regions"])
    return record


def sizes_test_schema():
    schema = {
        name: Schema(value_type)
        for name, value_type in (
            ("slug", ValueType.STRING),
            ("available", ValueType.BOOL),
            ("transfer", ValueType.FLOAT),
            ("price_monthly", ValueType.FLOAT),
            ("price_hourly", ValueType.FLOAT),
            ("memory", ValueType.INT),
            ("vcpus", ValueType.INT),
            ("disk", ValueType.INT),
        )
    }
    schema["regions"] = Schema(ValueType.LIST, elem=Schema(ValueType.STRING))
    schema["regions_set"] = Schema(ValueType.SET, elem=Schema(ValueType.STRING))
    return schema


def sizes_test_data_for_sorts():
    return [_record(row) for row in (_SMALL, _MEDIUM, _LARGE)]


def _slugs(records):
    return [record["slug"] for record in records]


def test_expand_sorts():
    raw_sorts = [
        {"key": "fieldA", "direction": "asc"},
        {"key": "fieldB", "direction": "desc"},
    ]
    assert expand_sorts(raw_sorts) == [Sort("fieldA", "asc"), Sort("fieldB", "desc")]


EXPECTED_ASC = ["s-1vcpu-1gb", "s-2vcpu-2gb", "s-4vcpu-8gb"]


@pytest.mark.parametrize(
    "key",
    ["slug", "memory", "vcpus", "disk", "transfer", "price_monthly", "price_hourly"],
)
def test_apply_sorts(key):
    ascending = apply_sorts(sizes_test_schema(), sizes_test_data_for_sorts(), [Sort(key, "asc")])
    assert _slugs(ascending) == EXPECTED_ASC

    descending = apply_sorts(sizes_test_schema(), sizes_test_data_for_sorts(), [Sort(key, "desc")])
    assert _slugs(descending) == EXPECTED_ASC[::-1]


def test_apply_sorts_desc_is_case_insensitive():
    sizes = apply_sorts(sizes_test_schema(), sizes_test_data_for_sorts(), [Sort("memory", "DESC")])
    assert _slugs(sizes) == EXPECTED_ASC[::-1]


def test_apply_sorts_multiple():
    test_data = [_record(row, with_set=False) for row in (_SMALL, _TWIN, _MEDIUM)]

    sizes = apply_sorts(
        sizes_test_schema(),
        test_data,
        [Sort("memory", "desc"), Sort("disk", "asc")],
    )

    assert len(sizes) == 3
    assert _slugs(sizes) == ["s-2vcpu-2gb", "s-1vcpu-1gb", "1gb"]


def test_apply_sorts_unsupported_type():
    with pytest.raises(ValueError, match="Unsupported value type for sort"):
        apply_sorts(sizes_test_schema(), sizes_test_data_for_sorts(), [Sort("regions", "asc")])


def test_sort_schema_validates_keys_and_direction():
    schema = sort_schema("sizes", ["name", "cpu"])
    assert schema.elem["key"].validate("cpu", "key") == ([], [])
    _, key_errors = schema.elem["key"].validate("ram", "key")
    assert len(key_errors) == 1
    assert schema.elem["direction"].validate("desc", "direction") == ([], [])
    _, direction_errors = schema.elem["direction"].validate("up", "direction")
    assert len(direction_errors) == 1
    assert "`cpu`, `name`" in schema.elem["key"].description