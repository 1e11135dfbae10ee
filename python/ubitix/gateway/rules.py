from abc import ABC, abstractmethod
from ipaddress import IPv6Network
from typing import List, NamedTuple

from ubitix.errors import FirewallError
from ubitix.logging import get_logger
from ubitix.utils.async_utils import call
from ubitix.utils.which import which

from .subnet import Mapping

logger = get_logger(__name__)

NAT_TABLE = "nat"
EGRESS_CHAIN = "POSTROUTING"
INGRESS_CHAIN = "PREROUTING"


class Rule(NamedTuple):
    table: str
    chain: str
    spec: str


def rule_pair(public: IPv6Network, private: IPv6Network) -> List[Rule]:
    """
    NPTv6 rules for one mapping entry, egress first.

    The specs are always rendered the same way for the same pair of networks,
    so the firewall can recognize an already installed rule.
    """
    return [
        Rule(NAT_TABLE, EGRESS_CHAIN, f"-s {private.with_prefixlen} -j NETMAP --to {public.with_prefixlen}"),
        Rule(NAT_TABLE, INGRESS_CHAIN, f"-d {public.with_prefixlen} -j NETMAP --to {private.with_prefixlen}"),
    ]


class Firewall(ABC):
    """
    Handle of a NAT capable firewall.
    """

    @abstractmethod
    async def append(self, table: str, chain: str, spec: str) -> None:
        raise NotImplementedError()

    @abstractmethod
    async def delete(self, table: str, chain: str, spec: str) -> None:
        raise NotImplementedError()


class IP6Tables(Firewall):
    """
    Firewall handle backed by the 'ip6tables' executable.
    """

    def __init__(self, binary: str = "ip6tables") -> None:
        try:
            self._binary = str(which(binary))
        except RuntimeError as e:
            raise FirewallError(str(e)) from e

    async def _run(self, table: str, op: str, chain: str, spec: str) -> int:
        cmd = [self._binary, "-t", table, op, chain, *spec.split()]
        logger.debug(f"Executing '{' '.join(cmd)}'")
        code, stderr = await call(cmd)
        if op != "-C" and code != 0:
            raise FirewallError(f"'{' '.join(cmd)}' failed with exit code {code}: {stderr}")
        return code

    async def exists(self, table: str, chain: str, spec: str) -> bool:
        return await self._run(table, "-C", chain, spec) == 0

    async def append(self, table: str, chain: str, spec: str) -> None:
        if await self.exists(table, chain, spec):
            logger.debug(f"Rule '{spec}' is already present in {table}/{chain}")
            return
        await self._run(table, "-A", chain, spec)

    async def delete(self, table: str, chain: str, spec: str) -> None:
        await self._run(table, "-D", chain, spec)


class LoggingFirewall(Firewall):
    """
    Dry-run firewall, it only logs the rules it would change.
    """

    async def append(self, table: str, chain: str, spec: str) -> None:
        logger.notice(f"(dry-run) append {table}/{chain}: {spec}")

    async def delete(self, table: str, chain: str, spec: str) -> None:
        logger.notice(f"(dry-run) delete {table}/{chain}: {spec}")


class RuleSynchronizer:
    """
    Installs and retracts the NPTv6 rule pairs of a mapping.

    Every mapping entry is handled on its own, a failure of one entry is logged
    and does not stop the others. Both methods return the number of failed entries.
    Callers must await 'retract()' of the old mapping before calling 'install()' with the new one.
    """

    def __init__(self, firewall: Firewall) -> None:
        self._firewall = firewall

    async def install(self, mapping: Mapping) -> int:
        logger.info(f"Appending {len(mapping) * 2} new NPTv6 rules")
        failed = 0
        for public, private in mapping.items():
            logger.info(f"+: {public} <---> {private}")
            try:
                for rule in rule_pair(public, private):
                    await self._firewall.append(rule.table, rule.chain, rule.spec)
            except FirewallError as e:
                failed += 1
                logger.error(f"Failed to append NPTv6 rules for {public} <---> {private}: {e}")
        return failed

    async def retract(self, mapping: Mapping) -> int:
        logger.info(f"Deleting {len(mapping) * 2} old NPTv6 rules")
        failed = 0
        for public, private in mapping.items():
            logger.info(f"-: {public} <---> {private}")
            ok = True
            # both rules are tried, a missing egress rule must not keep the ingress one around
            for rule in rule_pair(public, private):
                try:
                    await self._firewall.delete(rule.table, rule.chain, rule.spec)
                except FirewallError as e:
                    ok = False
                    logger.error(f"Failed to delete NPTv6 rule '{rule.spec}' from {rule.table}/{rule.chain}: {e}")
            if not ok:
                failed += 1
        return failed
