from ipaddress import IPv6Interface, IPv6Network
from re import Pattern
from typing import List, Optional

from ubitix.errors import AllocationError, NotifierError
from ubitix.logging import get_logger

from .notifier import Notifier
from .rules import RuleSynchronizer
from .state import FileStore, GatewayState
from .subnet import Mapping, allocate
from .watcher import LineHandler

logger = get_logger(__name__)


def parse_prefix(text: str) -> IPv6Network:
    """
    Raises:
        ValueError: The text is not an IPv6 network.
    """

    text = text.strip()
    if "/" not in text:
        raise ValueError(f"'{text}' does not contain a prefix length")

    iface = IPv6Interface(text)
    if iface.ip != iface.network.network_address:
        logger.warning(f"Prefix '{text}' has host bits set, using {iface.network}")
    return iface.network


class Gateway(LineHandler):
    """
    Core of the gateway. Detects changes of the delegated prefix in log lines and moves
    the NPTv6 rules, the workflow and the stored state over to the new prefix.

    All methods are expected to be called from a single task, one at a time.
    """

    def __init__(
        self,
        pattern: Pattern[str],
        networks: List[IPv6Network],
        rules: RuleSynchronizer,
        notifier: Notifier,
        store: FileStore[GatewayState],
    ) -> None:
        self._pattern = pattern
        self._networks = list(networks)
        self._rules = rules
        self._notifier = notifier
        self._store = store
        self._state = GatewayState.default()

    @property
    def state(self) -> GatewayState:
        return self._state

    async def startup(self) -> None:
        """
        Load the stored state and put its mapping back into the firewall.

        When the configured private networks no longer allocate to the stored mapping,
        the stored prefix is allocated again and the gateway transitions to the new mapping.
        """

        self._state = await self._store.load()
        prefix = self._state.prefix
        if prefix is None:
            logger.info("No delegated prefix is known yet, waiting for the first one")
            return

        try:
            mapping = allocate(prefix, self._networks)
        except AllocationError as e:
            logger.error(f"Stored prefix {prefix} cannot be allocated with the current networks: {e}")
            logger.warning("Installing the stored mapping unchanged")
            mapping = self._state.mapping

        if mapping != self._state.mapping:
            logger.notice(f"Configured networks have changed since the last run, reallocating prefix {prefix}")
            await self._transition(prefix, mapping)
            return

        logger.info(f"Restoring {len(mapping)} mappings of prefix {prefix}")
        await self._rules.install(mapping)

    async def shutdown(self) -> None:
        """Retract all installed rules, the stored state stays untouched."""

        logger.info("Retracting NPTv6 rules before exiting")
        await self._rules.retract(self._state.mapping)

    def match(self, line: str) -> Optional[str]:
        m = self._pattern.search(line)
        if m is None:
            return None
        return m.group(1)

    async def handle(self, line: str) -> None:
        """
        Process one log line.

        Raises:
            StateStoreError: The firewall has been changed, but the new state could not be saved.
        """

        text = self.match(line)
        if text is None:
            return

        try:
            prefix = parse_prefix(text)
        except ValueError as e:
            logger.error(f"Failed to parse prefix '{text}': {e}")
            return

        if prefix == self._state.prefix:
            logger.info(f"Prefix {prefix} has not changed, ignoring duplicate")
            return

        logger.notice(f"Detected new delegated prefix {prefix} (previously {self._state.prefix})")
        try:
            mapping = allocate(prefix, self._networks)
        except AllocationError as e:
            logger.error(f"Failed to allocate subnets of prefix {prefix}: {e}")
            return

        await self._transition(prefix, mapping)

    async def _transition(self, prefix: IPv6Network, mapping: Mapping) -> None:
        # old rules must be gone before the new ones are added
        await self._rules.retract(self._state.mapping)
        await self._rules.install(mapping)

        try:
            await self._notifier.notify(prefix, mapping)
        except NotifierError as e:
            logger.error(f"Failed to notify about prefix {prefix}: {e}")
        except Exception as e:
            logger.error(f"Unexpected failure while notifying about prefix {prefix}: {e}", exc_info=True)

        # the firewall already reflects the new mapping, so does the state
        self._state = GatewayState(prefix, mapping)
        await self._store.save(self._state)
        logger.notice(f"Transition to prefix {prefix} finished with {len(mapping)} mappings")
