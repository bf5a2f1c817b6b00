"""Detection of the context auraed runs in: pid 1, cell, container or daemon."""

from __future__ import annotations

import enum
import os

AURAE_SELF_IDENTIFIER = "_aurae"
PROC_SELF_CGROUP = "/proc/self/cgroup"

BANNER = """
    ┏━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━┓
    ┃   █████╗ ██╗   ██╗██████╗  █████╗ ███████╗ ┃
    ┃  ██╔══██╗██║   ██║██╔══██╗██╔══██╗██╔════╝ ┃
    ┃  ███████║██║   ██║██████╔╝███████║█████╗   ┃
    ┃  ██╔══██║██║   ██║██╔══██╗██╔══██║██╔══╝   ┃
    ┃  ██║  ██║╚██████╔╝██║  ██║██║  ██║███████╗ ┃
    ┃  ╚═╝  ╚═╝ ╚═════╝ ╚═╝  ╚═╝╚═╝  ╚═╝╚══════╝ ┃
    ┗━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━┛
         Distributed Systems Runtime Daemon
"""


class Context(enum.Enum):
    """Where the daemon finds itself running."""

    PID1 = "pid1"
    """Running as the true pid 1 of the machine."""
    CELL = "cell"
    """Nested inside a cell."""
    CONTAINER = "container"
    """The init container of a pod."""
    DAEMON = "daemon"
    """An ordinary daemon on a host."""


def in_new_cgroup_namespace(cgroup_path: str | os.PathLike[str] = PROC_SELF_CGROUP) -> bool:
    """Tell whether the cgroup file shows the auraed pod container namespace.

    The cgroup files of procfs end with a newline; a membership line ending in
    the auraed self identifier marks a nested container namespace.
    """
    with open(cgroup_path, encoding="utf-8") as handle:
        contents = handle.read()
    return contents.endswith(f"{AURAE_SELF_IDENTIFIER}\n")


def detect_context(
    nested: bool,
    cgroup_path: str | os.PathLike[str] = PROC_SELF_CGROUP,
    pid: int | None = None,
) -> Context:
    """Choose the context from the nested flag, the cgroup namespace and the pid."""
    in_cgroup = in_new_cgroup_namespace(cgroup_path)
    if in_cgroup and not nested:
        return Context.CONTAINER
    if nested:
        return Context.CELL
    if (os.getpid() if pid is None else pid) == 1:
        return Context.PID1
    return Context.DAEMON