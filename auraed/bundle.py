"""Writes an OCI bundle that runs the auraed executable as its init."""

from __future__ import annotations

import json
import os
import shutil
from pathlib import Path
from typing import Any, Mapping

PROC_SELF_EXE = "/proc/self/exe"

_ROOTFS_DIRS = ("rootfs", "rootfs/bin", "rootfs/sys", "rootfs/dev", "rootfs/mnt", "rootfs/proc")


class SpawnError(Exception):
    """Raised when the OCI bundle cannot be written."""


def _resolve_executable(executable: str | os.PathLike[str] | None) -> Path:
    if executable is not None:
        return Path(executable)
    try:
        return Path(os.readlink(PROC_SELF_EXE))
    except OSError as exc:
        raise SpawnError(f"reading auraed sym link from procfs: {exc}") from exc


def spawn_auraed_oci_to(
    output: str | os.PathLike[str],
    spec: Mapping[str, Any],
    executable: str | os.PathLike[str] | None = None,
) -> None:
    """Reset ``output`` and write config.json plus a rootfs holding the executable.

    The executable defaults to the one behind /proc/self/exe. It is copied to
    rootfs/bin/auraed (mode 0755) and hard linked as rootfs/bin/init.
    """
    binary_path = _resolve_executable(executable)
    try:
        binary_data = binary_path.read_bytes()
    except OSError as exc:
        raise SpawnError(f"reading auraed executable from procfs: {exc}") from exc

    bundle = Path(output)
    shutil.rmtree(bundle, ignore_errors=True)
    try:
        bundle.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise SpawnError(f"create new output dir clean: {exc}") from exc

    try:
        config_contents = json.dumps(spec, indent=2)
    except (TypeError, ValueError) as exc:
        raise SpawnError(f"json serialize oci config: {exc}") from exc

    try:
        (bundle / "config.json").write_text(config_contents, encoding="utf-8")
        for directory in _ROOTFS_DIRS:
            (bundle / directory).mkdir(parents=True, exist_ok=True)

        auraed = bundle / "rootfs/bin/auraed"
        auraed.write_bytes(binary_data)
        auraed.chmod(0o755)
        os.link(auraed, bundle / "rootfs/bin/init")
    except OSError as exc:
        raise SpawnError(f"writing oci bundle to {bundle}: {exc}") from exc