"""Broadcast dispatcher tests — identical fan-out, skip closed, isolate failures."""

import pytest

from intraportal.realtime.broadcast import Broadcaster
from intraportal.realtime.protocol import UpdateEvent


@pytest.mark.asyncio
async def test_every_open_connection_gets_identical_text(registry, connect):
    conns = [await connect(f"u{i}") for i in range(3)]
    report = await Broadcaster(registry).broadcast(
        UpdateEvent("news", "created", {"id": "n1"})
    )

    assert len(report.delivered) == 3
    payloads = {c.transport.sent[0] for c in conns}
    assert len(payloads) == 1
    frame = conns[0].transport.frames()[0]
    assert frame["type"] == "update"
    assert frame["resource"] == "news"
    assert frame["action"] == "created"
    assert frame["data"] == {"id": "n1"}


@pytest.mark.asyncio
async def test_closed_transport_skipped(registry, connect):
    open_conn = await connect("open")
    closed_conn = await connect("closed", open_=False)

    report = await Broadcaster(registry).broadcast(UpdateEvent("event", "updated"))

    assert report.delivered == [open_conn]
    assert report.skipped == [closed_conn]
    assert closed_conn.transport.sent == []


@pytest.mark.asyncio
async def test_send_failure_does_not_abort_fan_out(registry, connect):
    broken = await connect("broken", fail_send=True)
    others = [await connect(f"ok{i}") for i in range(3)]

    report = await Broadcaster(registry).broadcast(UpdateEvent("document", "deleted"))

    assert report.failed == [broken]
    assert set(report.delivered) == set(others)
    assert report.recipients == 4


@pytest.mark.asyncio
async def test_broadcaster_never_mutates_registry(registry, connect):
    await connect("broken", fail_send=True)
    await connect("closed", open_=False)
    await connect("fine")

    await Broadcaster(registry).broadcast(UpdateEvent("news", "deleted"))

    assert len(registry) == 3


@pytest.mark.asyncio
async def test_empty_registry(registry):
    report = await Broadcaster(registry).broadcast(UpdateEvent("news", "created"))
    assert report.recipients == 0
