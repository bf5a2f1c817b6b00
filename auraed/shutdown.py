"""Graceful shutdown of the daemon on SIGTERM or SIGINT."""

from __future__ import annotations

import asyncio
import enum
import inspect
import logging
import signal
from typing import Any

CELL_SERVICE = "aurae.cells.v0.CellService"
DISCOVERY_SERVICE = "aurae.discovery.v0.DiscoveryService"

logger = logging.getLogger(__name__)


class ServingStatus(enum.Enum):
    """Health of one service as reported to clients."""

    SERVICE_UNKNOWN = "SERVICE_UNKNOWN"
    SERVING = "SERVING"
    NOT_SERVING = "NOT_SERVING"


class HealthReporter:
    """Keeps the serving status of each named service."""

    def __init__(self) -> None:
        self._statuses: dict[str, ServingStatus] = {}

    def set_serving(self, service: str) -> None:
        self._statuses[service] = ServingStatus.SERVING

    def set_not_serving(self, service: str) -> None:
        self._statuses[service] = ServingStatus.NOT_SERVING

    def status(self, service: str) -> ServingStatus:
        """Return the status of ``service``; unknown services are SERVICE_UNKNOWN."""
        return self._statuses.get(service, ServingStatus.SERVICE_UNKNOWN)


class ShutdownSubscription:
    """A subscriber's handle on the shutdown broadcast.

    The shutdown waits until every subscription has been closed.
    """

    def __init__(self, owner: GracefulShutdown) -> None:
        self._owner = owner
        self._closed = False

    @property
    def triggered(self) -> bool:
        """True once the shutdown has been broadcast."""
        return self._owner._broadcast.is_set()

    @property
    def closed(self) -> bool:
        return self._closed

    async def changed(self) -> None:
        """Wait until the shutdown is broadcast."""
        await self._owner._broadcast.wait()

    def close(self) -> None:
        """Drop this subscription so the shutdown may proceed."""
        if not self._closed:
            self._closed = True
            self._owner._release(self)

    def __enter__(self) -> ShutdownSubscription:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class GracefulShutdown:
    """Waits for a termination signal and winds the daemon down."""

    def __init__(self, health_reporter: HealthReporter, cell_service: Any = None) -> None:
        self.health_reporter = health_reporter
        self.cell_service = cell_service
        self._triggered = asyncio.Event()
        self._broadcast = asyncio.Event()
        self._drained = asyncio.Event()
        self._drained.set()
        self._subscribers: set[ShutdownSubscription] = set()

    def subscribe(self) -> ShutdownSubscription:
        """Return a new subscription to the shutdown broadcast."""
        subscription = ShutdownSubscription(self)
        self._subscribers.add(subscription)
        self._drained.clear()
        return subscription

    def _release(self, subscription: ShutdownSubscription) -> None:
        self._subscribers.discard(subscription)
        if not self._subscribers:
            self._drained.set()

    def trigger(self) -> None:
        """Start the shutdown as if a termination signal had arrived."""
        self._triggered.set()

    async def wait(self) -> None:
        """Wait for SIGTERM, SIGINT or :meth:`trigger`, then shut down.

        Marks the cell and discovery services as not serving, broadcasts the
        shutdown, waits for every subscription to close and finally frees all
        cells and stops all executables of the cell service, if one is given.
        """
        loop = asyncio.get_running_loop()
        installed: list[signal.Signals] = []
        for signum in (signal.SIGTERM, signal.SIGINT):
            try:
                loop.add_signal_handler(signum, self.trigger)
            except (NotImplementedError, RuntimeError, ValueError):
                continue
            installed.append(signum)
        try:
            await self._triggered.wait()
        finally:
            for signum in installed:
                loop.remove_signal_handler(signum)

        self.health_reporter.set_not_serving(CELL_SERVICE)
        self.health_reporter.set_not_serving(DISCOVERY_SERVICE)

        self._broadcast.set()
        await self._drained.wait()

        if self.cell_service is None:
            return
        try:
            await self._call("free_all")
        except Exception as exc:  # noqa: BLE001 - reported and shutdown continues
            logger.error("Attempt to free all cells on terminate resulted in error: %s", exc)
        try:
            await self._call("stop_all")
        except Exception as exc:  # noqa: BLE001 - reported and shutdown continues
            logger.error("Attempt to stop all executables on terminate resulted in error: %s", exc)

    async def _call(self, name: str) -> None:
        result = getattr(self.cell_service, name)()
        if inspect.isawaitable(result):
            await result