import re
from ipaddress import IPv6Network
from pathlib import Path
from typing import List, Optional, Set, Tuple

import pytest

from ubitix.errors import FirewallError, NotifierError
from ubitix.gateway.gateway import Gateway
from ubitix.gateway.notifier import Notifier
from ubitix.gateway.rules import Firewall, RuleSynchronizer
from ubitix.gateway.state import FileStore, GatewayState
from ubitix.gateway.subnet import Mapping

PATTERN = re.compile(r"odhcp6c\[\d+\]: prefix (\S+) ")
NETWORKS = [IPv6Network("fd00:a::/64"), IPv6Network("fd00:b::/64")]


def pd_line(prefix: str) -> str:
    return f"Oct 19 13:52:01 router odhcp6c[1234]: prefix {prefix} valid 86400"


class FakeFirewall(Firewall):
    """Records every call, raises for specs listed in 'failing'."""

    def __init__(self) -> None:
        self.calls: List[Tuple[str, str, str, str]] = []
        self.rules: Set[Tuple[str, str, str]] = set()
        self.failing: Set[str] = set()

    async def append(self, table: str, chain: str, spec: str) -> None:
        self.calls.append(("append", table, chain, spec))
        if spec in self.failing:
            raise FirewallError(f"append of '{spec}' failed")
        self.rules.add((table, chain, spec))

    async def delete(self, table: str, chain: str, spec: str) -> None:
        self.calls.append(("delete", table, chain, spec))
        if spec in self.failing or (table, chain, spec) not in self.rules:
            raise FirewallError(f"delete of '{spec}' failed")
        self.rules.remove((table, chain, spec))

    def ops(self) -> List[str]:
        return [c[0] for c in self.calls]


class FakeNotifier(Notifier):
    def __init__(self) -> None:
        self.calls: List[Tuple[IPv6Network, Mapping]] = []
        self.fail = False
        self.error: Optional[Exception] = None

    async def notify(self, prefix: IPv6Network, mapping: Mapping) -> None:
        self.calls.append((prefix, dict(mapping)))
        if self.fail:
            raise NotifierError("dispatch failed with status 401")
        if self.error is not None:
            raise self.error


@pytest.fixture
def firewall() -> FakeFirewall:
    return FakeFirewall()


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def state_file(tmp_path: Path) -> Path:
    return tmp_path / "state" / "gateway.yaml"


@pytest.fixture
def store(state_file: Path) -> FileStore[GatewayState]:
    return FileStore(state_file, GatewayState)


@pytest.fixture
def gateway(firewall: FakeFirewall, notifier: FakeNotifier, store: FileStore[GatewayState]) -> Gateway:
    return Gateway(PATTERN, NETWORKS, RuleSynchronizer(firewall), notifier, store)
