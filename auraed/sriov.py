"""Configuration of SR-IOV virtual functions through sysfs."""

from __future__ import annotations

import os
import re
from pathlib import Path

_MAX_U16 = 0xFFFF
_UNSIGNED = re.compile(r"\+?[0-9]+")


class SriovError(Exception):
    """Raised when the SR-IOV capabilities of a device cannot be read or parsed."""

    def __init__(self, message: str, *, iface: str | None = None, capabilities: str | None = None) -> None:
        super().__init__(message)
        self.iface = iface
        self.capabilities = capabilities


def _parse_u16(text: str) -> int:
    if not _UNSIGNED.fullmatch(text):
        raise ValueError(f"invalid digit in {text!r}")
    value = int(text)
    if value > _MAX_U16:
        raise ValueError(f"number too large: {text!r}")
    return value


def setup_sriov(iface: str, limit: int, sys_root: str | os.PathLike[str] = "/sys") -> int:
    """Create min(limit, supported) virtual functions for ``iface``.

    Returns the number of virtual functions written; nothing is done when
    ``limit`` is 0.
    """
    if not 0 <= limit <= _MAX_U16:
        raise ValueError(f"limit must be between 0 and {_MAX_U16}, got {limit}")
    if limit == 0:
        return 0

    device = Path(sys_root) / "class" / "net" / iface / "device"
    try:
        totalvfs_text = (device / "sriov_totalvfs").read_text(encoding="utf-8")
    except OSError as exc:
        raise SriovError(f"Failed to get sriov capabilities of device {iface}", iface=iface) from exc

    try:
        totalvfs = _parse_u16(totalvfs_text.rstrip())
    except ValueError as exc:
        raise SriovError(
            f"Failed to parse sriov capabilities {totalvfs_text}",
            iface=iface,
            capabilities=totalvfs_text,
        ) from exc

    count = min(limit, totalvfs)
    (device / "sriov_numvfs").write_text(str(count), encoding="utf-8")
    return count