"""Observe service: streams daemon logs to clients."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass

from auraed.logs import ChannelClosedError, LaggedError, LogChannel, LogItem, LogReceiver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GetAuraeDaemonLogStreamRequest:
    """Request for the daemon's own log stream; it carries no fields."""


@dataclass(frozen=True)
class GetAuraeDaemonLogStreamResponse:
    item: LogItem | None


@dataclass(frozen=True)
class GetSubProcessStreamRequest:
    channel_type: int = 0
    process_id: int = 0


@dataclass(frozen=True)
class GetSubProcessStreamResponse:
    item: LogItem | None


class ObserveService:
    """Server side of the observe subsystem."""

    def __init__(self, aurae_logger: LogChannel) -> None:
        self.aurae_logger = aurae_logger
        self.sub_process_consumers: list[LogReceiver] = []

    def register_channel(self, consumer: LogReceiver) -> None:
        """Remember a sub-process log consumer."""
        logger.info("Added new channel")
        self.sub_process_consumers.append(consumer)

    async def get_aurae_daemon_log_stream(
        self, request: GetAuraeDaemonLogStreamRequest | None = None
    ) -> AsyncIterator[GetAuraeDaemonLogStreamResponse]:
        """Subscribe to the daemon log and return a stream of its items.

        The stream ends when the channel closes or the consumer falls behind.
        """
        consumer = self.aurae_logger.subscribe()
        return self._forward(consumer)

    @staticmethod
    async def _forward(consumer: LogReceiver) -> AsyncIterator[GetAuraeDaemonLogStreamResponse]:
        while True:
            try:
                item = await consumer.recv()
            except (LaggedError, ChannelClosedError):
                return
            yield GetAuraeDaemonLogStreamResponse(item=item)

    async def get_sub_process_stream(
        self, request: GetSubProcessStreamRequest
    ) -> AsyncIterator[GetSubProcessStreamResponse]:
        """Log the requested channel and process; the returned stream is empty."""
        logger.info("Requested Channel %s", request.channel_type)
        logger.info("Requested Process ID %s", request.process_id)
        return self._empty()

    @staticmethod
    async def _empty() -> AsyncIterator[GetSubProcessStreamResponse]:
        return
        yield  # pragma: no cover