"""
Live Update Channel

Keeps every open dashboard and tracking page in step with the order
workbook over WebSockets. Two events are pushed, each as
``{"event": <name>, "data": <payload>}``:

    all-orders  full snapshot (sent on connect, on request, after status changes)
    new-order   the single order just created

Delivery is fire-and-forget and never holds up the request that caused
it. A client that misses an event gets back in sync from the snapshot it
receives when it reconnects, or by sending the text ``sync`` on its open
socket.

Author: Khalil Bannouri
Version: 1.0.0
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from fastapi import WebSocket

from order_tracker.models import Order

logger = logging.getLogger(__name__)

ALL_ORDERS = "all-orders"
NEW_ORDER = "new-order"
SYNC_REQUEST = "sync"

DEFAULT_QUEUE_SIZE = 100


class _Client:
    """One socket, its outbound queue and the task draining it."""

    def __init__(self, websocket: WebSocket, queue_size: int):
        self.websocket = websocket
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=queue_size)
        self.sender: Optional[asyncio.Task] = None


class LiveUpdateChannel:
    """
    Registry of connected WebSocket clients with best-effort broadcast.

    Broadcasting only enqueues: each client has its own queue drained by
    its own sender task, so events reach a client in the order they were
    published and a client that stops reading only backs up its own queue.
    A client whose queue overflows, or whose send fails, is dropped.
    """

    def __init__(self, queue_size: int = DEFAULT_QUEUE_SIZE):
        self.queue_size = queue_size
        self._clients: dict[WebSocket, _Client] = {}

    @property
    def client_count(self) -> int:
        return len(self._clients)

    async def connect(
        self,
        websocket: WebSocket,
        load_orders: Callable[[], Awaitable[list[Order]]],
    ) -> None:
        """
        Accept a client and bootstrap it with the current snapshot.

        The client is registered before the snapshot is loaded, so an order
        created in between reaches it either as an event or in the snapshot.
        """
        await websocket.accept()
        client = _Client(websocket, self.queue_size)
        client.sender = asyncio.create_task(self._pump(client))
        self._clients[websocket] = client
        logger.info(f"Client connected ({self.client_count} live)")
        self.send_snapshot(websocket, await load_orders())

    def disconnect(self, websocket: WebSocket) -> None:
        client = self._clients.pop(websocket, None)
        if client is None:
            return
        if client.sender is not None and client.sender is not asyncio.current_task():
            client.sender.cancel()
        logger.info(f"Client disconnected ({self.client_count} live)")

    def send_snapshot(self, websocket: WebSocket, orders: list[Order]) -> bool:
        """Queue a snapshot for one client. False if it is no longer connected."""
        client = self._clients.get(websocket)
        if client is None:
            return False
        return self._enqueue(client, _message(ALL_ORDERS, [o.to_public() for o in orders]))

    def broadcast(self, event: str, data: Any) -> int:
        """
        Queue one event for every connected client and return at once.

        Returns how many clients it was queued for.
        """
        if not self._clients:
            return 0

        message = _message(event, data)
        clients = list(self._clients.values())
        queued = sum(1 for client in clients if self._enqueue(client, message))
        logger.debug(f"Broadcast '{event}' queued for {queued}/{len(clients)} client(s)")
        return queued

    def broadcast_new_order(self, order: Order) -> int:
        return self.broadcast(NEW_ORDER, order.to_public())

    def broadcast_snapshot(self, orders: list[Order]) -> int:
        return self.broadcast(ALL_ORDERS, [o.to_public() for o in orders])

    async def close(self) -> None:
        """Stop every sender task (application shutdown)."""
        senders = [c.sender for c in self._clients.values() if c.sender is not None]
        for websocket in list(self._clients):
            self.disconnect(websocket)
        await asyncio.gather(*senders, return_exceptions=True)

    def _enqueue(self, client: _Client, message: dict[str, Any]) -> bool:
        try:
            client.queue.put_nowait(message)
        except asyncio.QueueFull:
            logger.warning(f"Dropping client with {client.queue.qsize()} undelivered event(s)")
            self.disconnect(client.websocket)
            return False
        return True

    async def _pump(self, client: _Client) -> None:
        while True:
            message = await client.queue.get()
            try:
                await client.websocket.send_json(message)
            except Exception as e:
                logger.warning(f"Dropping client after failed '{message['event']}' delivery: {e!r}")
                self.disconnect(client.websocket)
                return
            finally:
                client.queue.task_done()


def _message(event: str, data: Any) -> dict[str, Any]:
    return {"event": event, "data": data}
