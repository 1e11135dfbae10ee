import pytest

from ubitix.utils.modeling import DataParsingError, normalize_keys, parse_json, parse_yaml, try_to_parse

json_data = """
{
    "file": "/var/log/odhcp6c.log",
    "state-file": null,
    "dry-run": false,
    "networks": [
        "fd00:a::/64",
        "fd00:b::/64"
    ],
    "workflow": {
        "owner": "acme",
        "repository": "infra"
    }
}
"""

json_data_duplicates = """
{
    "duplicity-key": 1,
    "duplicity-key": 2
}
"""

json_data_duplicates_inner = """
{
    "workflow": {
        "duplicity-key": 1,
        "duplicity-key": 2
    }
}
"""

yaml_data = """
file: /var/log/odhcp6c.log
state-file: null
dry-run: false
networks:
  - fd00:a::/64
  - fd00:b::/64
workflow:
  owner: acme
  repository: infra
"""

yaml_data_duplicates = """
duplicity-key: 1
duplicity-key: 2
"""

yaml_data_duplicates_inner = """
workflow:
    duplicity-key: 1
    duplicity-key: 2
"""

data_dict = {
    "file": "/var/log/odhcp6c.log",
    "state-file": None,
    "dry-run": False,
    "networks": [
        "fd00:a::/64",
        "fd00:b::/64",
    ],
    "workflow": {
        "owner": "acme",
        "repository": "infra",
    },
}


def test_parse_json() -> None:
    data = parse_json(json_data)
    assert data == data_dict


@pytest.mark.parametrize("data", [json_data, yaml_data])
def test_parse_yaml(data: str) -> None:
    data = parse_yaml(data)
    assert data == data_dict


@pytest.mark.parametrize(
    "data",
    [
        json_data_duplicates,
        json_data_duplicates_inner,
    ],
)
def test_parse_json_duplicates(data: str) -> None:
    with pytest.raises(DataParsingError):
        parse_json(data)


@pytest.mark.parametrize(
    "data",
    [
        json_data_duplicates,
        json_data_duplicates_inner,
        yaml_data_duplicates,
        yaml_data_duplicates_inner,
    ],
)
def test_parse_yaml_duplicates(data: str) -> None:
    with pytest.raises(DataParsingError):
        parse_yaml(data)


@pytest.mark.parametrize("data", [json_data, yaml_data])
def test_try_to_parse(data: str) -> None:
    data = try_to_parse(data)
    assert data == data_dict


def test_try_to_parse_invalid() -> None:
    with pytest.raises(DataParsingError):
        try_to_parse("networks: [fd00:a::/64\nfile: {")


def test_normalize_keys() -> None:
    data = normalize_keys(data_dict)
    assert data["state_file"] is None
    assert data["dry_run"] is False
    assert data["workflow"] == {"owner": "acme", "repository": "infra"}
    # values are never touched
    assert normalize_keys({"a-b": ["c-d", {"e-f": "g-h"}]}) == {"a_b": ["c-d", {"e_f": "g-h"}]}
