from __future__ import annotations

import argparse
from dataclasses import dataclass, field
from typing import List, Optional

from .constants import CONFIG_FILE, VERSION
from .logging import LOG_LEVELS, LogTarget


@dataclass
class UbitixArgs:
    command: str
    loglevel: Optional[str] = None
    logtarget: Optional[str] = None

    # gateway
    config: Optional[str] = None
    file: Optional[str] = None
    regex: Optional[str] = None
    network: List[str] = field(default_factory=list)
    state_file: Optional[str] = None

    # action
    mapping: Optional[str] = None
    prefix: Optional[str] = None
    directory: Optional[str] = None


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ubitix",
        description="Keeps private IPv6 networks reachable under a dynamically delegated IPv6 prefix.",
    )
    parser.add_argument(
        "-V",
        "--version",
        help="Get version",
        action="version",
        version=VERSION,
    )
    parser.add_argument(
        "--loglevel",
        default=None,
        choices=LOG_LEVELS,
        help="Logging level, overrides the configuration. Defaults to 'notice'.",
    )
    parser.add_argument(
        "--logtarget",
        default=None,
        choices=[t.value for t in LogTarget],
        help="Logging target, overrides the configuration. Defaults to 'stdout'.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    gateway = subparsers.add_parser(
        "gateway",
        help="Watch the log for delegated prefixes and maintain the NPTv6 rules.",
    )
    gateway.add_argument(
        "-c",
        "--config",
        help=f"Path to the configuration file (YAML/JSON). Defaults to '{CONFIG_FILE}' if it exists.",
        type=str,
        default=None,
    )
    gateway.add_argument("-f", "--file", help="Log file to watch, overrides the configuration.", type=str)
    gateway.add_argument(
        "-r",
        "--regex",
        help="Regular expression with one capturing group matching the delegated prefix.",
        type=str,
    )
    gateway.add_argument(
        "-n",
        "--network",
        help="Private /64 network to translate, may be repeated. Replaces the configured list.",
        action="append",
        default=[],
    )
    gateway.add_argument("--state-file", help="Where to store the gateway state.", type=str)

    action = subparsers.add_parser(
        "action",
        help="Rewrite private IPv6 addresses in a directory of text files to their public counterparts.",
    )
    action.add_argument(
        "-m",
        "--mapping",
        help="JSON object of public -> private /64 networks, as passed to the workflow.",
        type=str,
        required=True,
    )
    action.add_argument("-p", "--prefix", help="Delegated prefix the mapping belongs to.", type=str)
    action.add_argument("directory", help="Directory with the files to rewrite.", type=str)
    return parser


def parse_args(argv: Optional[List[str]] = None) -> UbitixArgs:
    args_ns = create_parser().parse_args(argv)
    return UbitixArgs(**vars(args_ns))
