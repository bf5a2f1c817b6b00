"""Start-up of the listening socket for each context auraed runs in."""

from __future__ import annotations

import enum
import ipaddress
import logging
import os
import re
import socket
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from auraed.context import BANNER, Context
from auraed.daemon_logging import LoggingError, init_logging

AURAE_RUNTIME_DIR = "/var/run/aurae"
AURAE_SOCK = "aurae.sock"
DEFAULT_SOCKET_PATH = os.path.join(AURAE_RUNTIME_DIR, AURAE_SOCK)
SOCKET_MODE = 0o766

_PORT = re.compile(r"[0-9]+")
_MAX_PORT = 0xFFFF

logger = logging.getLogger(__name__)


class SystemRuntimeError(Exception):
    """Raised when the system runtime cannot be initialized."""


class SocketKind(enum.Enum):
    TCP = "tcp"
    UNIX = "unix"


@dataclass
class SocketStream:
    """A bound, listening socket, either TCP or Unix domain."""

    kind: SocketKind
    sock: socket.socket
    address: Union[str, tuple]

    def close(self) -> None:
        self.sock.close()

    def __enter__(self) -> SocketStream:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def _parse_port(text: str) -> int | None:
    if not _PORT.fullmatch(text):
        return None
    port = int(text)
    return port if port <= _MAX_PORT else None


def parse_socket_address(value: str) -> tuple[str, int] | None:
    """Parse ``ip:port`` or ``[ipv6]:port`` into ``(host, port)``.

    Host names are not resolved; anything that is not a literal socket
    address gives None.
    """
    if value.startswith("["):
        inner, sep, port_text = value[1:].partition("]:")
        if not sep:
            return None
        host, _, scope = inner.partition("%")
        if "%" in inner and not _PORT.fullmatch(scope):
            return None
        try:
            ipaddress.IPv6Address(host)
        except ValueError:
            return None
        port = _parse_port(port_text)
        return None if port is None else (inner, port)

    host, sep, port_text = value.rpartition(":")
    if not sep:
        return None
    try:
        ipaddress.IPv4Address(host)
    except ValueError:
        return None
    port = _parse_port(port_text)
    return None if port is None else (host, port)


def create_unix_socket_stream(socket_path: str | os.PathLike[str]) -> SocketStream:
    """Bind a Unix domain socket at ``socket_path``, replacing any old file.

    The parent directory is created and the socket is given mode 0766 so
    unprivileged users can dial it and authenticate with mTLS.
    """
    path = Path(socket_path)
    try:
        path.unlink()
    except OSError:
        pass

    parent = path.parent
    if parent == path:
        raise SystemRuntimeError(f"not a valid socket path: {str(path)!r}")
    try:
        parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise SystemRuntimeError(f"Failed to create directory for socket: {path}") from exc
    logger.debug("User Access Socket dir created: %s", parent)

    sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    try:
        sock.bind(os.fspath(path))
        sock.listen()
        logger.debug("Setting socket mode %s -> 766", path)
        os.chmod(path, SOCKET_MODE)
    except OSError as exc:
        sock.close()
        raise SystemRuntimeError(f"Failed to bind unix socket {path}: {exc}") from exc
    logger.info("User Access Socket Created: %s", path)
    return SocketStream(SocketKind.UNIX, sock, os.fspath(path))


def create_tcp_socket_stream(host: str, port: int) -> SocketStream:
    """Bind a listening TCP socket on ``host`` and ``port``."""
    logger.debug("creating tcp stream for %s:%s", host, port)
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    try:
        sock = socket.create_server((host, port), family=family)
    except OSError as exc:
        raise SystemRuntimeError(f"Failed to bind tcp socket {host}:{port}: {exc}") from exc
    address = sock.getsockname()
    logger.info("TCP Access Socket created: %s", address)
    return SocketStream(SocketKind.TCP, sock, address)


def _init_logging(verbose: bool, container: bool) -> None:
    try:
        init_logging(verbose, container)
    except LoggingError as exc:
        raise SystemRuntimeError(str(exc)) from exc


def init_runtime(context: Context, verbose: bool, socket_address: str | None = None) -> SocketStream:
    """Set up logging for ``context`` and open the socket the server listens on.

    Cells and containers always listen on a Unix socket; a daemon listens on
    TCP when given a literal socket address and on a Unix socket otherwise.
    """
    if context is Context.PID1:
        raise SystemRuntimeError("running as pid 1 is not supported by this runtime")

    print(BANNER)
    if context is Context.CELL:
        _init_logging(verbose, False)
        logger.info("Running as a cell")
        return create_unix_socket_stream(socket_address or DEFAULT_SOCKET_PATH)
    if context is Context.CONTAINER:
        _init_logging(verbose, True)
        logger.info("Running as a container.")
        return create_unix_socket_stream(socket_address or DEFAULT_SOCKET_PATH)

    _init_logging(verbose, False)
    logger.info("Running as a daemon.")
    address = socket_address if socket_address is not None else DEFAULT_SOCKET_PATH
    parsed = parse_socket_address(address)
    if parsed is not None:
        logger.debug("Listening on TCP: %s", address)
        return create_tcp_socket_stream(*parsed)
    logger.debug("Listening on UNIX: %s", address)
    return create_unix_socket_stream(address)