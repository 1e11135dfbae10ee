import json
import re
from ipaddress import IPv6Address, IPv6Interface, IPv6Network
from pathlib import Path
from typing import List, Optional, Tuple

from ubitix.constants import SUBNET_PREFIX_LEN
from ubitix.errors import ActionError
from ubitix.gateway.subnet import Mapping
from ubitix.logging import get_logger

logger = get_logger(__name__)

CANDIDATE_V6 = re.compile(
    r"(?<![A-Za-z0-9:_.-])([0-9A-Fa-f:]*:(?:[0-9A-Fa-f:.]*[0-9A-Fa-f:])?)(?:/(\d{1,3}))?(?![A-Za-z0-9:_-])"
)


def parse_mapping(text: str) -> Mapping:
    """
    Parse the JSON object of public -> private networks, as sent along with the workflow dispatch.
    """

    try:
        raw = json.loads(text)
    except json.JSONDecodeError as e:
        raise ActionError(f"mapping is not a valid JSON: {e}") from e
    if not isinstance(raw, dict):
        raise ActionError("mapping must be a JSON object of public -> private networks")

    mapping: Mapping = {}
    for public, private in raw.items():
        if not isinstance(private, str):
            raise ActionError(f"invalid mapping entry '{public}': expected a string with a network, found {private!r}")
        try:
            public_net, private_net = IPv6Network(public), IPv6Network(private)
        except ValueError as e:
            raise ActionError(f"invalid mapping entry '{public}': '{private}': {e}") from e
        for net in (public_net, private_net):
            if net.prefixlen != SUBNET_PREFIX_LEN:
                raise ActionError(f"invalid mapping entry '{public}': '{private}': {net} is not a /{SUBNET_PREFIX_LEN}")
        mapping[public_net] = private_net
    return mapping


class AddressRewriter:
    """
    Moves IPv6 literals from private networks into the public subnets they are mapped to.

    The host part of every address is preserved, the same way NPTv6 translates it.
    Literals outside of the private networks are left alone.
    """

    def __init__(self, mapping: Mapping) -> None:
        # private -> public, longest private prefix first
        self._reverse: List[Tuple[IPv6Network, IPv6Network]] = sorted(
            ((private, public) for public, private in mapping.items()),
            key=lambda kv: kv[0].prefixlen,
            reverse=True,
        )

    def translate(self, ip: IPv6Address) -> Optional[IPv6Address]:
        for private, public in self._reverse:
            if ip in private:
                offset = int(ip) - int(private.network_address)
                return IPv6Address(int(public.network_address) + offset)
        return None

    def rewrite_text(self, text: str) -> Tuple[str, int]:
        count = 0

        def repl(m: "re.Match[str]") -> str:
            nonlocal count
            token = m.group(0)
            try:
                iface = IPv6Interface(token)
            except ValueError:
                return token

            translated = self.translate(iface.ip)
            if translated is None:
                return token
            count += 1
            return f"{translated}/{m.group(2)}" if m.group(2) is not None else str(translated)

        return CANDIDATE_V6.sub(repl, text), count


class Action:
    """
    Rewrites every text file in a directory so it refers to the public addresses of the mapping.
    """

    def __init__(self, mapping: Mapping, directory: Path, prefix: Optional[IPv6Network] = None) -> None:
        self._rewriter = AddressRewriter(mapping)
        self._directory = directory
        self._prefix = prefix
        self._mapping = mapping

    def _check(self) -> None:
        if not self._directory.is_dir():
            raise ActionError(f"'{self._directory}' is not a directory")
        if self._prefix is not None:
            for public in self._mapping:
                if not public.subnet_of(self._prefix):
                    raise ActionError(f"mapped subnet {public} is not a part of prefix {self._prefix}")

    def rewrite_file(self, path: Path) -> bool:
        try:
            text = path.read_text(encoding="utf8")
        except UnicodeDecodeError:
            logger.debug(f"Skipping '{path}', it is not a UTF-8 text file")
            return False

        new_text, count = self._rewriter.rewrite_text(text)
        if new_text == text:
            return False
        path.write_text(new_text, encoding="utf8")
        logger.info(f"Rewritten {count} addresses in '{path}'")
        return True

    def run(self) -> int:
        """Returns the number of rewritten files."""

        self._check()
        rewritten = 0
        for path in sorted(self._directory.rglob("*")):
            if not path.is_file() or path.is_symlink():
                continue
            if any(part.startswith(".git") for part in path.relative_to(self._directory).parts):
                continue
            try:
                if self.rewrite_file(path):
                    rewritten += 1
            except OSError as e:
                raise ActionError(f"failed to rewrite '{path}': {e}") from e
        logger.notice(f"Rewritten {rewritten} files in '{self._directory}'")
        return rewritten


def run_action(mapping: str, directory: Path, prefix: Optional[str] = None) -> int:
    parsed_prefix: Optional[IPv6Network] = None
    if prefix is not None:
        try:
            parsed_prefix = IPv6Network(prefix)
        except ValueError as e:
            raise ActionError(f"invalid prefix '{prefix}': {e}") from e
    return Action(parse_mapping(mapping), directory, parsed_prefix).run()


__all__ = ["Action", "AddressRewriter", "parse_mapping", "run_action"]
