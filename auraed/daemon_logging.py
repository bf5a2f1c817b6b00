"""Set up logging for auraed according to the context it runs in."""

from __future__ import annotations

import logging
import logging.handlers
import os
import sys

LOGGER_NAME = "auraed"
SYSLOG_ADDRESS = "/dev/log"

_STDOUT_HANDLER = "auraed-stdout"
_SYSLOG_HANDLER = "auraed-syslog"
_COMPACT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_log = logging.getLogger(__name__)


class LoggingError(Exception):
    """Raised when logging cannot be set up."""


def _stdout_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_STDOUT_HANDLER)
    handler.setFormatter(logging.Formatter(_COMPACT_FORMAT))
    return handler


def _already_initialized(logger: logging.Logger) -> bool:
    ours = {_STDOUT_HANDLER, _SYSLOG_HANDLER}
    return any(handler.get_name() in ours for handler in logger.handlers)


def _install(handlers: list[logging.Handler], level: int, failure: str) -> None:
    logger = logging.getLogger(LOGGER_NAME)
    if _already_initialized(logger):
        for handler in handlers:
            handler.close()
        raise LoggingError(failure)
    for handler in handlers:
        logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False


def _init_container(level: int) -> None:
    _log.info("initializing container logging")
    _install([_stdout_handler()], level, "logging for auraed is already initialized")


def _init_daemon(level: int) -> None:
    _log.info("initializing syslog logging")
    if not os.path.exists(SYSLOG_ADDRESS):
        raise LoggingError("Failed to setup syslog logging")
    try:
        syslog = logging.handlers.SysLogHandler(
            address=SYSLOG_ADDRESS, facility=logging.handlers.SysLogHandler.LOG_USER
        )
    except OSError as exc:
        raise LoggingError("Failed to setup syslog logging") from exc
    syslog.set_name(_SYSLOG_HANDLER)
    syslog.ident = f"auraed[{os.getpid()}]: "
    _install([syslog, _stdout_handler()], level, "logging for auraed is already initialized")


def _init_pid1(level: int) -> None:
    _log.info("initializing pid1 logging")
    _install(
        [_stdout_handler()],
        level,
        "Failed to setup basic tracing: logging for auraed is already initialized",
    )


def init_logging(verbose: bool, container: bool, pid: int | None = None) -> None:
    """Configure the ``auraed`` logger.

    Verbose mode logs everything down to debug, otherwise info and above.
    A container logs to stdout; pid 1 logs to stdout; a daemon logs to
    stdout and syslog. Raises LoggingError when logging is already set up
    or syslog is unavailable.
    """
    level = logging.DEBUG if verbose else logging.INFO
    if container:
        _init_container(level)
    elif (os.getpid() if pid is None else pid) == 1:
        _init_pid1(level)
    else:
        _init_daemon(level)