"""Unit tests for the WebSocket broadcast channel."""

import asyncio
from datetime import datetime, timezone

import pytest

from order_tracker.models import Order
from order_tracker.services.live import ALL_ORDERS, NEW_ORDER, LiveUpdateChannel

pytestmark = [pytest.mark.unit, pytest.mark.anyio]


class FakeWebSocket:
    def __init__(self, broken: bool = False):
        self.broken = broken
        self.accepted = False
        self.sent = []

    async def accept(self):
        self.accepted = True

    async def send_json(self, data):
        if self.broken:
            raise RuntimeError("connection reset")
        self.sent.append(data)

    async def received(self, count: int, timeout: float = 1.0) -> list:
        """Wait until the sender task has delivered ``count`` messages."""
        async def poll():
            while len(self.sent) < count:
                await asyncio.sleep(0.001)

        await asyncio.wait_for(poll(), timeout)
        return self.sent


class StalledWebSocket(FakeWebSocket):
    """A peer that stopped reading: sends never complete."""

    async def send_json(self, data):
        await asyncio.Event().wait()


def make_order(tracking_id: str = "TID1") -> Order:
    return Order(
        tracking_id=tracking_id,
        customer_name="Asha",
        customer_phone="123",
        total_amount=0,
        created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
    )


async def _empty():
    return []


@pytest.fixture()
async def channel():
    live = LiveUpdateChannel(queue_size=3)
    yield live
    await live.close()


async def test_connect_accepts_and_sends_snapshot(channel):
    ws = FakeWebSocket()

    async def load():
        return [make_order("TID1"), make_order("TID2")]

    await channel.connect(ws, load)

    assert ws.accepted
    assert channel.client_count == 1
    sent = await ws.received(1)
    assert sent[0]["event"] == ALL_ORDERS
    assert [o["trackingId"] for o in sent[0]["data"]] == ["TID1", "TID2"]


async def test_broadcast_reaches_every_client(channel):
    clients = [FakeWebSocket() for _ in range(3)]
    for ws in clients:
        await channel.connect(ws, _empty)

    queued = channel.broadcast_new_order(make_order("TID7"))

    assert queued == 3
    for ws in clients:
        sent = await ws.received(2)
        assert sent[-1] == {"event": NEW_ORDER, "data": make_order("TID7").to_public()}


async def test_events_arrive_in_publish_order(channel):
    ws = FakeWebSocket()
    await channel.connect(ws, _empty)

    channel.broadcast_new_order(make_order("TID1"))
    channel.broadcast_snapshot([make_order("TID1")])

    sent = await ws.received(3)
    assert [m["event"] for m in sent] == [ALL_ORDERS, NEW_ORDER, ALL_ORDERS]


async def test_failing_client_is_dropped_without_blocking_others(channel):
    healthy = FakeWebSocket()
    await channel.connect(healthy, _empty)
    broken = FakeWebSocket(broken=True)
    await channel.connect(broken, _empty)

    channel.broadcast_snapshot([make_order()])

    sent = await healthy.received(2)
    assert sent[-1]["event"] == ALL_ORDERS
    for _ in range(100):
        if channel.client_count == 1:
            break
        await asyncio.sleep(0.001)
    assert channel.client_count == 1


async def test_stalled_client_does_not_hold_up_broadcast(channel):
    healthy = FakeWebSocket()
    stalled = StalledWebSocket()
    await channel.connect(stalled, _empty)
    await channel.connect(healthy, _empty)

    # Returns immediately even though one peer never reads.
    assert channel.broadcast_new_order(make_order("TID1")) == 2

    sent = await healthy.received(2)
    assert sent[-1]["data"]["trackingId"] == "TID1"


async def test_stalled_client_is_dropped_when_its_queue_overflows(channel):
    healthy = FakeWebSocket()
    stalled = StalledWebSocket()
    await channel.connect(stalled, _empty)
    await channel.connect(healthy, _empty)
    await healthy.received(1)

    for i in range(5):
        channel.broadcast_new_order(make_order(f"TID{i}"))
        await healthy.received(2 + i)

    assert channel.client_count == 1
    assert channel.send_snapshot(stalled, []) is False
    sent = await healthy.received(6)
    assert [m["data"]["trackingId"] for m in sent[1:]] == [f"TID{i}" for i in range(5)]


async def test_broadcast_without_clients_is_noop(channel):
    assert channel.broadcast(NEW_ORDER, {}) == 0


async def test_disconnect_is_idempotent(channel):
    ws = FakeWebSocket()
    await channel.connect(ws, _empty)
    channel.disconnect(ws)
    channel.disconnect(ws)
    assert channel.client_count == 0
