"""
Status Service

Moves an order along Pending -> Out for Delivery -> Delivered and pushes
the refreshed collection to every live client.
"""

import asyncio
import logging
from typing import Any

from order_tracker.core.exceptions import (
    InvalidStatusTransitionError,
    MissingFieldError,
    OrderNotFoundError,
)
from order_tracker.models import Order, OrderStatus
from order_tracker.services.live import LiveUpdateChannel
from order_tracker.services.store import OrderStore

logger = logging.getLogger(__name__)


class StatusService:
    """Applies status transitions to stored orders."""

    def __init__(
        self,
        store: OrderStore,
        channel: LiveUpdateChannel,
        enforce_progression: bool = True,
    ):
        self.store = store
        self.channel = channel
        self.enforce_progression = enforce_progression

    def resolve_status(self, new_status: Any) -> OrderStatus:
        status = OrderStatus.parse(new_status)
        if status is None:
            allowed = ", ".join(s.value for s in OrderStatus)
            raise InvalidStatusTransitionError(f"Unknown status {new_status!r}. Options: {allowed}")
        return status

    async def update_status(self, tracking_id: Any, new_status: Any) -> Order:
        """
        Set the status of one order.

        Raises:
            MissingFieldError: tracking ID or status absent
            InvalidStatusTransitionError: unknown status, or a backwards move
                while progression is enforced
            OrderNotFoundError: no order with that tracking ID

        Returns:
            The updated order
        """
        if not isinstance(tracking_id, str) or not tracking_id.strip() or new_status in (None, ""):
            raise MissingFieldError("Missing data: trackingId and newStatus are required")
        tracking_id = tracking_id.strip()
        target = self.resolve_status(new_status)

        def apply(orders: list[Order]) -> tuple[Order, list[Order]]:
            for index, order in enumerate(orders):
                if order.tracking_id != tracking_id:
                    continue
                if self.enforce_progression and not order.status.can_advance_to(target):
                    raise InvalidStatusTransitionError(
                        f"Cannot move order {tracking_id} from {order.status.value} back to {target.value}"
                    )
                orders[index] = order.model_copy(update={"status": target})
                return orders[index], list(orders)
            raise OrderNotFoundError(tracking_id)

        updated, snapshot = await asyncio.to_thread(self.store.update, apply)
        logger.info(f"Order {tracking_id} status -> {target.value}")

        self.channel.broadcast_snapshot(snapshot)
        return updated
