"""Discovery service: reports that the daemon is healthy and its version."""

from __future__ import annotations

from dataclasses import dataclass
from importlib.metadata import PackageNotFoundError, version
from typing import Any


def _package_version() -> str:
    try:
        return version("auraed")
    except PackageNotFoundError:
        return "unknown"


@dataclass(frozen=True)
class DiscoverRequest:
    """A discovery request; it carries no fields."""


@dataclass(frozen=True)
class DiscoverResponse:
    healthy: bool
    version: str


class DiscoveryService:
    """Answers discovery requests from clients."""

    def __init__(self) -> None:
        self._version = _package_version()

    def discover(self, request: Any = None) -> DiscoverResponse:
        """Report the daemon as healthy, with its version or "unknown"."""
        return DiscoverResponse(healthy=True, version=self._version)