import re
from ipaddress import IPv6Network
from pathlib import Path
from re import Pattern
from typing import Any, Dict, List, Literal, Optional

from ubitix.constants import IP6TABLES_EXECUTABLE, STATE_FILE, WORKFLOW_DEFAULT_REF
from ubitix.utils.modeling import BaseSchema

LogLevelEnum = Literal["critical", "error", "warning", "notice", "info", "debug"]
LogTargetEnum = Literal["stdout", "stderr", "syslog"]


class FirewallConfig(BaseSchema):
    """
    NPTv6 rules management.

    ---
    binary: ip6tables executable, looked up in $PATH.
    dry_run: Only log the rules, do not touch the firewall.
    """

    binary: str = IP6TABLES_EXECUTABLE
    dry_run: bool = False


class WorkflowConfig(BaseSchema):
    """
    GitHub Actions workflow dispatched after every change of the prefix.

    ---
    token: Token allowed to dispatch the workflow.
    owner: Owner of the repository.
    repository: Repository with the workflow.
    workflow: Workflow file name or ID.
    ref: Git reference the workflow runs on.
    api_url: GitHub API endpoint, for GitHub Enterprise.
    """

    token: str
    owner: str
    repository: str
    workflow: str
    ref: str = WORKFLOW_DEFAULT_REF
    api_url: Optional[str] = None


class LoggingConfig(BaseSchema):
    level: LogLevelEnum = "notice"
    target: LogTargetEnum = "stdout"


class GatewayConfig(BaseSchema):
    """
    Configuration of the gateway.

    ---
    file: Log file where the prefix delegation events appear.
    regex: Regular expression matching the log lines, the first group captures the prefix.
    networks: Private /64 networks to translate, in the order of allocation priority.
    state_file: Where the last prefix and mapping are stored.
    firewall: Firewall options.
    workflow: GitHub Actions workflow to dispatch, optional.
    logging: Logging options.
    """

    file: Path
    regex: Pattern
    networks: List[IPv6Network] = []
    state_file: Path = STATE_FILE
    firewall: FirewallConfig = FirewallConfig()
    workflow: Optional[WorkflowConfig] = None
    logging: LoggingConfig = LoggingConfig()

    @staticmethod
    def _regex(source: Dict[str, Any]) -> "Pattern[str]":
        value = source.get("regex")
        if value is None:
            raise ValueError("missing attribute 'regex'.")
        if not isinstance(value, str):
            raise ValueError(f"expected string with a regular expression, found {type(value)}")
        try:
            pattern = re.compile(value)
        except re.error as e:
            raise ValueError(f"invalid regular expression: {e}") from e
        if pattern.groups < 1:
            raise ValueError("regular expression must contain a capturing group for the prefix")
        return pattern

    def _validate(self) -> None:
        seen = set()
        for network in self.networks:
            if network in seen:
                raise ValueError(f"network {network} is listed more than once in 'networks'")
            seen.add(network)

    @property
    def pattern(self) -> "Pattern[str]":
        return self.regex
