import asyncio
import signal
import sys
from time import time

from ubitix.config import GatewayConfig
from ubitix.errors import GatewayError
from ubitix.logging import get_logger
from ubitix.utils.compat import asyncio as asyncio_compat
from ubitix.utils.systemd_notify import systemd_notify

from .gateway import Gateway
from .notifier import DisabledNotifier, Notifier, WorkflowNotifier
from .rules import Firewall, IP6Tables, LoggingFirewall, RuleSynchronizer
from .state import FileStore, GatewayState
from .watcher import LogWatcher

logger = get_logger(__name__)


def create_firewall(config: GatewayConfig) -> Firewall:
    if config.firewall.dry_run:
        logger.warning("Firewall is in dry-run mode, no NPTv6 rules will be changed")
        return LoggingFirewall()
    return IP6Tables(config.firewall.binary)


def create_notifier(config: GatewayConfig) -> Notifier:
    workflow = config.workflow
    if workflow is None:
        return DisabledNotifier()
    kwargs = {"api_url": workflow.api_url} if workflow.api_url else {}
    return WorkflowNotifier(
        workflow.token, workflow.owner, workflow.repository, workflow.workflow, ref=workflow.ref, **kwargs
    )


def create_gateway(config: GatewayConfig) -> Gateway:
    store: FileStore[GatewayState] = FileStore(config.state_file, GatewayState)
    store.check()
    return Gateway(
        config.pattern,
        config.networks,
        RuleSynchronizer(create_firewall(config)),
        create_notifier(config),
        store,
    )


class _Shutdown:
    def __init__(self) -> None:
        self.event = asyncio.Event()

    async def sigint_handler(self) -> None:
        logger.info("Received SIGINT, triggering graceful shutdown")
        self.event.set()

    async def sigterm_handler(self) -> None:
        logger.info("Received SIGTERM, triggering graceful shutdown")
        self.event.set()

    def bind(self) -> None:
        asyncio_compat.add_async_signal_handler(signal.SIGTERM, self.sigterm_handler)
        asyncio_compat.add_async_signal_handler(signal.SIGINT, self.sigint_handler)

    def unbind(self) -> None:
        asyncio_compat.remove_signal_handler(signal.SIGTERM)
        asyncio_compat.remove_signal_handler(signal.SIGINT)


async def _sigint_while_shutting_down() -> None:
    logger.warning(
        "Received SIGINT while already shutting down. Ignoring."
        " If you want to forcefully stop the gateway right now, use SIGTERM."
    )


async def _sigterm_while_shutting_down() -> None:
    logger.warning("Received SIGTERM. Invoking dirty shutdown, NPTv6 rules are left in place!")
    sys.exit(128 + signal.SIGTERM)


async def start_gateway(config: GatewayConfig) -> int:
    start_time = time()

    # any error during initialization is fatal
    try:
        gateway = create_gateway(config)
        watcher = LogWatcher(config.file)
        if not watcher.path.is_file():
            raise GatewayError(f"Watched file '{watcher.path}' does not exist.")
        await gateway.startup()
    except GatewayError as e:
        logger.error(e)
        return 1

    shutdown = _Shutdown()
    shutdown.bind()

    logger.notice(f"Gateway initialized in {round(time() - start_time, 3)} seconds")
    systemd_notify(READY="1")

    exit_code = 0
    try:
        await watcher.watch(gateway, shutdown.event)
    except GatewayError as e:
        logger.error(e)
        exit_code = 1

    systemd_notify(STOPPING="1")

    # we don't want to be interrupted while cleaning up, unless the user really wants us to stop
    shutdown.unbind()
    asyncio_compat.add_async_signal_handler(signal.SIGTERM, _sigterm_while_shutting_down)
    asyncio_compat.add_async_signal_handler(signal.SIGINT, _sigint_while_shutting_down)

    # only a clean stop removes the rules, after a failure the next startup takes over from the stored state
    if exit_code == 0:
        await gateway.shutdown()
    logger.notice(f"The gateway run for {round(time() - start_time)} seconds...")
    return exit_code
