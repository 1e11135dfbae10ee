import asyncio
import sys
from pathlib import Path
from typing import Any, Dict, List, NoReturn, Optional

from .action import run_action
from .args import UbitixArgs, parse_args
from .config import GatewayConfig, load_config
from .constants import CONFIG_FILE
from .errors import ActionError
from .gateway import start_gateway
from .logging import configure_logging, get_logger, startup_logging
from .utils.modeling import ConfigError

logger = get_logger(__name__)


def _overrides(args: UbitixArgs) -> Dict[str, Any]:
    return {
        "file": args.file,
        "regex": args.regex,
        "networks": args.network or None,
        "state_file": args.state_file,
    }


def _config_path(args: UbitixArgs) -> Optional[Path]:
    if args.config is not None:
        return Path(args.config).absolute()
    if CONFIG_FILE.exists():
        return CONFIG_FILE
    return None


async def _run_gateway(args: UbitixArgs) -> int:
    try:
        config: GatewayConfig = await load_config(_config_path(args), _overrides(args))
    except ConfigError as e:
        logger.critical(e)
        return 1

    configure_logging(args.loglevel or config.logging.level, args.logtarget or config.logging.target)
    logger.notice("Starting ubitix gateway...")
    return await start_gateway(config)


def _run_action(args: UbitixArgs) -> int:
    configure_logging(args.loglevel or "notice", args.logtarget or "stdout")
    try:
        if args.mapping is None or args.directory is None:
            raise ActionError("both the mapping and the directory to rewrite are required")
        run_action(args.mapping, Path(args.directory), args.prefix)
    except ActionError as e:
        logger.critical(e)
        return 1
    return 0


def main(argv: Optional[List[str]] = None) -> NoReturn:
    args = parse_args(argv)

    # initial logging is to memory until we read the config
    startup_logging(args.loglevel or "notice", args.logtarget or "stderr")

    if args.command == "gateway":
        exit_code = asyncio.run(_run_gateway(args))
    else:
        exit_code = _run_action(args)
    sys.exit(exit_code)
