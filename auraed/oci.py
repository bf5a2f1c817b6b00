"""Default OCI runtime specification for the auraed bundle."""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any

OCI_VERSION = "1.0.2-dev"

_CAPABILITIES = ["CAP_AUDIT_WRITE", "CAP_KILL", "CAP_NET_BIND_SERVICE"]


def _mount(destination: str, typ: str, source: str, options: list[str] | None = None) -> dict[str, Any]:
    mount: dict[str, Any] = {"destination": destination, "type": typ, "source": source}
    if options is not None:
        mount["options"] = list(options)
    return mount


def _default_spec() -> dict[str, Any]:
    return {
        "ociVersion": OCI_VERSION,
        "root": {"path": "rootfs", "readonly": False},
        "mounts": [
            _mount("/proc", "proc", "proc"),
            _mount("/dev", "tmpfs", "tmpfs", ["nosuid", "strictatime", "mode=755", "size=65536k"]),
            _mount(
                "/dev/pts",
                "devpts",
                "devpts",
                ["nosuid", "noexec", "newinstance", "ptmxmode=0666", "mode=0620", "gid=5"],
            ),
            _mount("/dev/shm", "tmpfs", "shm", ["nosuid", "noexec", "nodev", "mode=1777", "size=65536k"]),
            _mount("/dev/mqueue", "mqueue", "mqueue", ["nosuid", "noexec", "nodev"]),
            _mount("/sys", "sysfs", "sysfs", ["nosuid", "noexec", "nodev", "ro"]),
            _mount("/sys/fs/cgroup", "cgroup", "cgroup", ["nosuid", "noexec", "nodev", "relatime", "ro"]),
            _mount("/run", "tmpfs", "tmpfs", ["nosuid", "strictatime", "mode=755", "size=65536k"]),
            _mount("/etc/aurae", "bind", "/etc/aurae", ["rbind", "rw"]),
        ],
        "process": {
            "terminal": False,
            "user": {"uid": 0, "gid": 0},
            "args": ["init"],
            "env": [
                "PATH=/usr/local/sbin:/usr/local/bin:/usr/sbin:/usr/bin:/sbin:/bin",
                "TERM=xterm",
            ],
            "cwd": "/",
            "capabilities": {
                kind: list(_CAPABILITIES)
                for kind in ("bounding", "effective", "inheritable", "permitted", "ambient")
            },
            "rlimits": [{"type": "RLIMIT_NOFILE", "hard": 1024, "soft": 1024}],
            "noNewPrivileges": True,
        },
        "hostname": "aurae",
        "annotations": {},
        "linux": {
            "resources": {"devices": [{"allow": False, "access": "rwm"}]},
            "namespaces": [
                {"type": "pid"},
                {"type": "network"},
                {"type": "ipc"},
                {"type": "uts"},
                {"type": "mount"},
            ],
            "maskedPaths": [
                "/proc/acpi",
                "/proc/asound",
                "/proc/kcore",
                "/proc/keys",
                "/proc/latency_stats",
                "/proc/timer_list",
                "/sys/firmware",
                "/proc/scsi",
            ],
            "readonlyPaths": [
                "/proc/bus",
                "/proc/fs",
                "/proc/irq",
                "/proc/sys",
                "/proc/sysrq-trigger",
            ],
        },
    }


def _field(config: Any, name: str) -> Any:
    if config is None:
        return None
    if isinstance(config, Mapping):
        return config.get(name)
    return getattr(config, name, None)


class AuraeOCIBuilder:
    """Builds the OCI runtime spec (as a JSON-ready dict) for an auraed container."""

    def __init__(self) -> None:
        self._spec = _default_spec()

    def overload_pod_sandbox_config(self, config: Any) -> "AuraeOCIBuilder":
        """Apply the hostname and annotations of a pod sandbox configuration.

        Fields the configuration does not set leave the defaults untouched.
        """
        hostname = _field(config, "hostname")
        if hostname:
            self._spec["hostname"] = str(hostname)
        annotations = _field(config, "annotations")
        if annotations:
            self._spec["annotations"].update({str(k): str(v) for k, v in dict(annotations).items()})
        return self

    def build(self) -> dict[str, Any]:
        """Return an independent copy of the assembled spec."""
        return copy.deepcopy(self._spec)