# civotf

`civotf` describes Civo cloud objects as data sources and resources. Each one is a
`Resource` holding an attribute schema and the operations that create, read,
update, delete or import it. Every operation takes a `ResourceData` (the attribute
values and id of one object) and an API client that you supply.

## What is included

- **Sizes** (`civotf.size`): `data_source_size()` lists the instance sizes that can
  be selected, under the `sizes` attribute, and supports `filter` and `sort`.
- **SSH keys** (`civotf.ssh`): `resource_ssh_key()` creates, reads, renames and
  deletes keys; `data_source_ssh_key()` looks a key up by id or name.
- **Volumes** (`civotf.volume`): `resource_volume()` creates, reads, deletes and
  imports volumes (resize, network and name changes are refused);
  `data_source_volume()` looks a volume up by id or name. `wait_for_state()` polls a
  refresh function until it reports a target state, raising `WaitTimeoutError`,
  `LookupError` or `ValueError` when it cannot get there.
- **Volume attachments** (`civotf.volume_attachment`):
  `resource_volume_attachment()` attaches a volume to an instance and detaches it.
- **Data lists** (`civotf.datalist`):
  - `filter.expand_filters` / `filter.apply_filters` filter records with `exact`
    (case-insensitive), `substring` or `re` matching, on one value or on `all` of them.
  - `sort.expand_sorts` / `sort.apply_sorts` sort records on several keys in turn,
    `asc` or `desc`.
  - `schema.new_resource` builds a data source from a `ResourceConfig`.
- **Helpers** (`civotf.utils`): the validators `validate_name`,
  `validate_name_size`, `validate_cni_name`, `validate_uuid`,
  `validate_cluster_type` and `validate_name_only_contains_alphanumeric_characters`;
  `resource_common_parse_id`, `string_to_int`, `parse_error_response` and
  `validate_provider_version`, which runs `terraform version -json` and warns about
  changed defaults for provider versions up to 1.0.49.
  `civotf.names.random_name()` gives a name such as `misty-river`.

Operations report failures by raising `civotf.datalist.schema.DiagnosticError`.

## Installing

```
pip install civotf
```

## Filtering and sorting records

```python
from civotf.datalist.values import Schema, ValueType
from civotf.datalist.filter import expand_filters, apply_filters
from civotf.datalist.sort import expand_sorts, apply_sorts

schema = {"name": Schema(ValueType.STRING), "cpu": Schema(ValueType.INT)}
records = [
    {"name": "g3.small", "cpu": 1},
    {"name": "g3.large", "cpu": 4},
    {"name": "g3.xlarge", "cpu": 6},
]

filters = expand_filters(schema, [{"key": "name", "values": ["large"], "match_by": "substring"}])
matched = apply_filters(schema, records, filters)

sorts = expand_sorts([{"key": "cpu", "direction": "desc"}])
print([r["name"] for r in apply_sorts(schema, matched, sorts)])
# ['g3.xlarge', 'g3.large']
```

## Running an operation

```python
from civotf.datalist.schema import ResourceData
from civotf.ssh import resource_ssh_key

resource = resource_ssh_key()
data = ResourceData(
    {"name": "deploy", "public_key": "ssh-ed25519 AAAA... deploy@example.com"},
    schema=resource.schema,
)
resource.create(data, client)   # client.new_ssh_key(...), then client.find_ssh_key(...)
print(data.id, data.get("fingerprint"))
```

## Validating names

```python
from civotf.utils import validate_name, resource_common_parse_id

warnings, errors = validate_name("my volume", "name")
# errors holds one error: name cannot contain whitespace

resource_common_parse_id("cluster:pool")
# ('cluster', 'pool')
```

## What it does not do

The package contains no HTTP client for the Civo API and no plugin server. The
client object you pass is expected to provide the methods the operations call,
such as `list_instance_sizes`, `find_ssh_key`, `new_ssh_key`, `update_ssh_key`,
`delete_ssh_key`, `find_network`, `find_volume`, `new_volume`, `delete_volume`,
`list_regions`, `list_volumes`, `attach_volume` and `detach_volume`, along with a
writable `region` attribute. A `find_*` method should raise `LookupError` when
the object does not exist; the read operations then clear the id.

## Running the tests

```
pip install -e ".[test]"
pytest
```