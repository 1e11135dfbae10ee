from pathlib import Path
from typing import Any, Dict, Optional

from ubitix.logging import get_logger
from ubitix.utils.async_utils import readfile
from ubitix.utils.modeling import ConfigError, DataParsingError, normalize_keys, try_to_parse

from .schema import FirewallConfig, GatewayConfig, LoggingConfig, WorkflowConfig

logger = get_logger(__name__)


async def load_raw_config(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"Configuration file '{path}' does not exist.")

    logger.info(f"Loading configuration from '{path}' file.")
    try:
        data = try_to_parse(await readfile(path))
    except OSError as e:
        raise ConfigError(f"Failed to read configuration file '{path}': {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise DataParsingError(f"Configuration file '{path}' does not contain a dictionary.")
    return normalize_keys(data)


async def load_config(path: Optional[Path], overrides: Optional[Dict[str, Any]] = None) -> GatewayConfig:
    """
    Load and validate the gateway configuration.

    Values in 'overrides' (from the command line) take precedence over the file.
    Without a file, the configuration is made of the overrides only.
    """

    raw: Dict[str, Any] = await load_raw_config(path) if path is not None else {}
    for key, value in (overrides or {}).items():
        if value is not None:
            raw[key] = value
    return GatewayConfig(raw)


__all__ = [
    "FirewallConfig",
    "GatewayConfig",
    "LoggingConfig",
    "WorkflowConfig",
    "load_config",
    "load_raw_config",
]
