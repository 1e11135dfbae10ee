from .gateway import Gateway, parse_prefix
from .notifier import DisabledNotifier, Notifier, WorkflowNotifier
from .rules import Firewall, IP6Tables, LoggingFirewall, RuleSynchronizer, rule_pair
from .runner import start_gateway
from .state import FileStore, GatewayState
from .subnet import Mapping, allocate
from .watcher import LineHandler, LogWatcher

__all__ = [
    "DisabledNotifier",
    "FileStore",
    "Firewall",
    "Gateway",
    "GatewayState",
    "IP6Tables",
    "LineHandler",
    "LogWatcher",
    "LoggingFirewall",
    "Mapping",
    "Notifier",
    "RuleSynchronizer",
    "WorkflowNotifier",
    "allocate",
    "parse_prefix",
    "rule_pair",
    "start_gateway",
]
