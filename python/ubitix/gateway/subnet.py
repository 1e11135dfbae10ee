from ipaddress import IPv6Network
from typing import Dict, Iterator, List

from ubitix.constants import SUBNET_PREFIX_LEN
from ubitix.errors import InsufficientSubnetsError, PrefixTooLongError
from ubitix.logging import get_logger

logger = get_logger(__name__)

# public /64 subnet -> private /64 network, ordered from the highest public subnet down
Mapping = Dict[IPv6Network, IPv6Network]


def count_subnets(prefix: IPv6Network) -> int:
    if prefix.prefixlen > SUBNET_PREFIX_LEN:
        return 0
    return 1 << (SUBNET_PREFIX_LEN - prefix.prefixlen)


def subnets_from_top(prefix: IPv6Network, count: int) -> Iterator[IPv6Network]:
    """
    Yield 'count' /64 subnets of the prefix in descending address order, starting with the highest one.

    The subnets are computed, not enumerated, so a short prefix like ::/0 costs nothing extra.
    """
    step = 1 << (128 - SUBNET_PREFIX_LEN)
    top = int(prefix.broadcast_address) + 1 - step
    for i in range(count):
        yield IPv6Network((top - i * step, SUBNET_PREFIX_LEN))


def allocate(prefix: IPv6Network, private_networks: List[IPv6Network]) -> Mapping:
    """
    Map /64 subnets of the delegated prefix onto the private networks.

    The private networks get the highest subnets of the prefix, in their configured order:
    the first network gets the topmost subnet, the second one the subnet right below it, and so on.
    The low end of the delegated prefix stays free for other uses.

    Raises:
        PrefixTooLongError: The prefix cannot be split into /64 subnets.
        InsufficientSubnetsError: There are more private networks than /64 subnets in the prefix.
    """

    if prefix.prefixlen > SUBNET_PREFIX_LEN:
        raise PrefixTooLongError(prefix.prefixlen)

    required = len(private_networks)
    available = count_subnets(prefix)
    if required > available:
        raise InsufficientSubnetsError(prefix.with_prefixlen, required, available)

    mapping: Mapping = {}
    for public, private in zip(subnets_from_top(prefix, required), private_networks):
        if public.prefixlen != SUBNET_PREFIX_LEN:
            logger.warning(f"Assigned subnet {public} is not a /64. Skipping this mapping.")
        elif private.prefixlen != SUBNET_PREFIX_LEN:
            logger.warning(f"Private network {private} is not a /64. Skipping this mapping.")
        else:
            mapping[public] = private
    return mapping
