from __future__ import annotations

import logging
import logging.handlers
import os
import sys
from enum import Enum
from typing import Any, cast


class LogTarget(str, Enum):
    STDOUT = "stdout"
    SYSLOG = "syslog"
    STDERR = "stderr"


NOTICE = (logging.WARNING + logging.INFO) // 2

LOG_LEVELS = ["critical", "error", "warning", "notice", "info", "debug"]

_config_to_level = {
    "critical": logging.CRITICAL,
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "notice": NOTICE,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}

_level_to_name = {
    logging.CRITICAL: "CRIT",
    logging.ERROR: "ERRO",
    logging.WARNING: "WARN",
    NOTICE: "NOTI",
    logging.INFO: "INFO",
    logging.DEBUG: "DEBG",
}


class UbitixLogger(logging.Logger):
    def notice(self, message: str, *args: Any, **kwargs: Any) -> None:
        if self.isEnabledFor(NOTICE):
            self._log(NOTICE, message, args, **kwargs)


logging.setLoggerClass(UbitixLogger)


for level, name in _level_to_name.items():
    logging.addLevelName(level, name)


def get_logger(name: str) -> UbitixLogger:
    return cast(UbitixLogger, logging.getLogger(name))


SERVICE_NAME = "ubitix"
NO_PREFIX_FORMAT_ENV_VAR = "UBITIX_LOGGING_NO_PREFIX_FORMAT"

BASIC_FORMAT = "%(name)s: %(message)s"
NO_PREFIX_FORMAT = f"[%(levelname)s] {BASIC_FORMAT}"


def get_pretty_format(stream: str) -> str:
    return f"%(asctime)s {SERVICE_NAME}[%(process)d]{stream}: [%(levelname)s] {BASIC_FORMAT}"


def get_formatter(target: LogTarget) -> logging.Formatter:
    no_prefix = bool(os.environ.get(NO_PREFIX_FORMAT_ENV_VAR) == "true")

    if target == LogTarget.SYSLOG:
        return logging.Formatter(BASIC_FORMAT)
    if no_prefix:
        return logging.Formatter(NO_PREFIX_FORMAT)

    stream = ""
    if target == LogTarget.STDERR:
        stream = "(stderr)"
    return logging.Formatter(get_pretty_format(stream))


def get_logging_handler(target: LogTarget) -> logging.Handler:
    if target == LogTarget.SYSLOG:
        return logging.handlers.SysLogHandler(address="/dev/log")
    if target == LogTarget.STDERR:
        return logging.StreamHandler(sys.stderr)
    return logging.StreamHandler(sys.stdout)


def startup_logging(loglevel: str, logtarget: str) -> None:
    """
    Until the configuration is loaded, log records are kept in memory.
    Errors are flushed to the startup target straight away.
    """

    level = _config_to_level[loglevel]
    handler = get_logging_handler(LogTarget(logtarget))
    handler.setFormatter(get_formatter(LogTarget(logtarget)))

    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(logging.handlers.MemoryHandler(10_000, logging.ERROR, handler))


def configure_logging(loglevel: str, logtarget: str) -> None:
    level = _config_to_level[loglevel]
    target = LogTarget(logtarget)

    handler = get_logging_handler(target)
    handler.setFormatter(get_formatter(target))

    root = logging.getLogger()

    # if we had a MemoryHandler before, give it the new handler so the buffered records are not lost
    for old in list(root.handlers):
        if isinstance(old, logging.handlers.MemoryHandler):
            old.setTarget(handler)
        old.flush()
        old.close()
        root.removeHandler(old)

    root.addHandler(handler)
    root.setLevel(level)
    get_logger(__name__).debug(f"Logging level set to '{_level_to_name[level]}', target '{target.value}'")
