import json
from ipaddress import IPv6Address, IPv6Network
from pathlib import Path

import pytest
from pytest import raises

from ubitix.action import Action, AddressRewriter, parse_mapping, run_action
from ubitix.errors import ActionError

MAPPING = {
    IPv6Network("2001:db8:1234:f::/64"): IPv6Network("fd00:a::/64"),
    IPv6Network("2001:db8:1234:e::/64"): IPv6Network("fd00:b::/64"),
}
MAPPING_JSON = json.dumps({"2001:db8:1234:f::/64": "fd00:a::/64", "2001:db8:1234:e::/64": "fd00:b::/64"})

ZONE = """$ORIGIN example.com.
@       IN SOA ns1 hostmaster 2024101901 3600 900 604800 300
ns1     IN AAAA fd00:a::53
web     IN AAAA fd00:b::8:1
legacy  IN A    192.0.2.10
other   IN AAAA fd00:c::1
"""


def test_parse_mapping():
    assert parse_mapping(MAPPING_JSON) == MAPPING


@pytest.mark.parametrize(
    "text",
    [
        "not json",
        "[]",
        '{"2001:db8:1234:f::/64": "nope"}',
        '{"2001:db8:1234:f::/64": 5}',
        '{"2001:db8:1234:f::/64": null}',
        '{"2001:db8:1234:f::/64": ["fd00:a::/64"]}',
        '{"2001:db8:1234:f::/64": "fd00:a::/48"}',
        '{"2001:db8:1234::/60": "fd00:a::/64"}',
        '{"2001:db8:1234:f::1/64": "fd00:a::/64"}',
    ],
)
def test_parse_mapping_invalid(text: str):
    with raises(ActionError):
        parse_mapping(text)


@pytest.mark.parametrize(
    "address,expected",
    [
        ("fd00:a::", "2001:db8:1234:f::"),
        ("fd00:a::53", "2001:db8:1234:f::53"),
        ("fd00:b::dead:beef", "2001:db8:1234:e::dead:beef"),
    ],
)
def test_translate(address: str, expected: str):
    assert AddressRewriter(MAPPING).translate(IPv6Address(address)) == IPv6Address(expected)


def test_translate_outside_mapping():
    assert AddressRewriter(MAPPING).translate(IPv6Address("fd00:c::1")) is None


def test_rewrite_text():
    text, count = AddressRewriter(MAPPING).rewrite_text(
        "listen [fd00:a::1]:443; allow fd00:b::/64; deny fd00:c::/64; at 13:52:01 from 2001:db8::1"
    )
    assert text == (
        "listen [2001:db8:1234:f::1]:443; allow 2001:db8:1234:e::/64; deny fd00:c::/64; at 13:52:01 from 2001:db8::1"
    )
    assert count == 2


@pytest.mark.parametrize(
    "text,expected,count",
    [
        ("The server is fd00:a::1.\n", "The server is 2001:db8:1234:f::1.\n", 1),
        ("Networks fd00:a::/64, fd00:b::/64.", "Networks 2001:db8:1234:f::/64, 2001:db8:1234:e::/64.", 2),
        ("mapped ::ffff:192.0.2.1.", "mapped ::ffff:192.0.2.1.", 0),
    ],
)
def test_rewrite_text_sentence_end(text: str, expected: str, count: int):
    assert AddressRewriter(MAPPING).rewrite_text(text) == (expected, count)


def test_rewrite_directory(tmp_path: Path):
    (tmp_path / "zones").mkdir()
    (tmp_path / "zones" / "example.com.zone").write_text(ZONE)
    (tmp_path / "README").write_text("nothing to see here\n")
    (tmp_path / "blob.bin").write_bytes(b"\xff\xfe fd00:a::1")
    (tmp_path / ".git").mkdir()
    (tmp_path / ".git" / "config").write_text("url = fd00:a::1\n")

    assert Action(MAPPING, tmp_path, IPv6Network("2001:db8:1234::/60")).run() == 1

    zone = (tmp_path / "zones" / "example.com.zone").read_text()
    assert "ns1     IN AAAA 2001:db8:1234:f::53\n" in zone
    assert "web     IN AAAA 2001:db8:1234:e::8:1\n" in zone
    assert "other   IN AAAA fd00:c::1\n" in zone
    assert "192.0.2.10" in zone
    assert (tmp_path / ".git" / "config").read_text() == "url = fd00:a::1\n"
    assert (tmp_path / "blob.bin").read_bytes() == b"\xff\xfe fd00:a::1"


def test_rewrite_is_idempotent(tmp_path: Path):
    (tmp_path / "example.com.zone").write_text(ZONE)
    assert run_action(MAPPING_JSON, tmp_path) == 1
    assert run_action(MAPPING_JSON, tmp_path) == 0


def test_subnets_outside_prefix(tmp_path: Path):
    with raises(ActionError):
        run_action(MAPPING_JSON, tmp_path, "2001:db8:5678::/60")


def test_invalid_prefix(tmp_path: Path):
    with raises(ActionError):
        run_action(MAPPING_JSON, tmp_path, "2001:db8:5678::zz/60")


def test_missing_directory(tmp_path: Path):
    with raises(ActionError):
        run_action(MAPPING_JSON, tmp_path / "missing")
