import pytest

from auraed.logs import LogChannel
from auraed.observe import (
    GetAuraeDaemonLogStreamRequest,
    GetSubProcessStreamRequest,
    ObserveService,
)


@pytest.mark.asyncio
async def test_daemon_log_stream_forwards_items_until_closed():
    channel = LogChannel("auraed")
    service = ObserveService(channel)
    stream = await service.get_aurae_daemon_log_stream(GetAuraeDaemonLogStreamRequest())

    channel.send("hello")
    channel.send("bye")
    channel.close()

    lines = [response.item.line async for response in stream]
    assert lines == ["hello", "bye"]


@pytest.mark.asyncio
async def test_daemon_log_stream_subscribes_at_call_time():
    channel = LogChannel("auraed")
    service = ObserveService(channel)
    channel.send("too early")
    stream = await service.get_aurae_daemon_log_stream()
    channel.send("on time")
    channel.close()

    items = [response.item async for response in stream]
    assert [item.line for item in items] == ["on time"]
    assert items[0].channel == "auraed"


@pytest.mark.asyncio
async def test_daemon_log_stream_ends_when_lagging():
    channel = LogChannel("auraed", capacity=1)
    service = ObserveService(channel)
    stream = await service.get_aurae_daemon_log_stream()
    channel.send("first")
    channel.send("second")

    responses = [response async for response in stream]
    assert responses == []


@pytest.mark.asyncio
async def test_sub_process_stream_is_empty():
    service = ObserveService(LogChannel("auraed"))
    stream = await service.get_sub_process_stream(
        GetSubProcessStreamRequest(channel_type=1, process_id=42)
    )
    assert [response async for response in stream] == []


def test_register_channel_keeps_consumers_in_order():
    channel = LogChannel("auraed")
    service = ObserveService(channel)
    first = channel.subscribe()
    second = channel.subscribe()
    service.register_channel(first)
    service.register_channel(second)
    assert service.sub_process_consumers == [first, second]