"""Log channels connecting log producers in the daemon to log consumers."""

from __future__ import annotations

import asyncio
import logging
import time
import weakref
from collections import deque
from dataclasses import dataclass

DEFAULT_CAPACITY = 40
STREAM_LOGGER_CHANNEL = "auraed-logs"


def get_timestamp_sec() -> int:
    """Return the current UNIX timestamp in whole seconds."""
    return int(time.time())


@dataclass(frozen=True)
class LogItem:
    """One log line as it travels through a channel."""

    channel: str
    line: str
    timestamp: int


class LaggedError(Exception):
    """Raised when a receiver fell behind and items were overwritten."""

    def __init__(self, skipped: int) -> None:
        super().__init__(f"receiver lagged behind by {skipped} items")
        self.skipped = skipped


class ChannelClosedError(Exception):
    """Raised when the channel is closed and no items remain to be read."""


class LogReceiver:
    """A consumer's view of a :class:`LogChannel`; sees items sent after subscribing."""

    def __init__(self, channel: LogChannel, position: int) -> None:
        self._channel = channel
        self._position = position
        self._event = asyncio.Event()

    def _wake(self) -> None:
        self._event.set()

    async def recv(self) -> LogItem:
        """Wait for and return the next item.

        Raises LaggedError once if items were overwritten before being read,
        after which reading continues at the oldest retained item. Raises
        ChannelClosedError when the channel is closed and drained.
        """
        channel = self._channel
        while True:
            oldest = channel._next_seq - len(channel._buffer)
            if self._position < oldest:
                skipped = oldest - self._position
                self._position = oldest
                raise LaggedError(skipped)
            if self._position < channel._next_seq:
                item = channel._buffer[self._position - oldest]
                self._position += 1
                return item
            if channel._closed:
                raise ChannelClosedError(f"log channel {channel.name!r} is closed")
            self._event.clear()
            await self._event.wait()


class LogChannel:
    """A bounded broadcast channel for the log lines of one producing entity."""

    def __init__(self, name: str, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.name = name
        self.capacity = capacity
        self._buffer: deque[LogItem] = deque(maxlen=capacity)
        self._next_seq = 0
        self._closed = False
        self._receivers: weakref.WeakSet[LogReceiver] = weakref.WeakSet()

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self) -> LogReceiver:
        """Return a new receiver that sees every item sent from now on."""
        receiver = LogReceiver(self, self._next_seq)
        self._receivers.add(receiver)
        return receiver

    def send(self, line: str) -> None:
        """Broadcast a log line; it is dropped silently when nobody listens."""
        self._publish(LogItem(channel=self.name, line=line, timestamp=get_timestamp_sec()))

    def close(self) -> None:
        """Stop the channel; receivers drain what is left and then see it closed."""
        self._closed = True
        self._wake_all()

    def _publish(self, item: LogItem) -> None:
        if self._closed:
            return
        self._buffer.append(item)
        self._next_seq += 1
        self._wake_all()

    def _wake_all(self) -> None:
        for receiver in list(self._receivers):
            receiver._wake()


class StreamLogger(logging.Handler):
    """Logging handler that forwards records to a log channel."""

    def __init__(self, producer: LogChannel) -> None:
        super().__init__()
        self.producer = producer

    def emit(self, record: logging.LogRecord) -> None:
        try:
            line = f"{record.levelname}:{record.name} -- {record.getMessage()}"
        except Exception:  # noqa: BLE001 - logging handlers must not raise
            self.handleError(record)
            return
        self.producer._publish(LogItem(channel=STREAM_LOGGER_CHANNEL, line=line, timestamp=0))