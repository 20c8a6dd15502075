"""
Order Service

Turns a storefront order request into a stored Order: validates the
customer details, normalizes the line items, assigns the tracking ID,
fixes the total, appends to the store and announces the order on the
live channel.

Author: Khalil Bannouri
Version: 1.0.0
"""

import asyncio
import logging
import math
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from order_tracker.core.exceptions import InvalidOrderError, OrderNotFoundError
from order_tracker.models import LineItem, Order, OrderStatus, compute_total
from order_tracker.services.live import LiveUpdateChannel
from order_tracker.services.migrations import parse_line_item
from order_tracker.services.store import OrderStore
from order_tracker.services.tracking import generate_tracking_id

logger = logging.getLogger(__name__)


def _required_text(value: Any, field: str) -> str:
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise InvalidOrderError(f"Missing {field}")
    text = str(value).strip()
    if not text:
        raise InvalidOrderError(f"Missing {field}")
    return text


class OrderService:
    """Creates and looks up orders."""

    def __init__(
        self,
        store: OrderStore,
        channel: LiveUpdateChannel,
        menu_catalog: Optional[Mapping[str, str]] = None,
        new_tracking_id: Callable[[], str] = generate_tracking_id,
    ):
        self.store = store
        self.channel = channel
        self.menu_catalog = dict(menu_catalog or {})
        self._new_tracking_id = new_tracking_id

    def normalize_items(self, items: Any) -> list[LineItem]:
        """
        Validate and coerce the submitted item list.

        Items may name a catalog entry by ``id`` instead of giving a ``name``.
        Quantities fall back to 1 and prices to 0 when missing or unusable.

        Raises:
            InvalidOrderError: items missing, empty, or not a list of objects
        """
        if not isinstance(items, list) or not items:
            raise InvalidOrderError("Order must contain at least one item")

        normalized = []
        for entry in items:
            if not isinstance(entry, dict):
                raise InvalidOrderError("Each item must be an object with name, qty and price")
            catalog_name = self.menu_catalog.get(str(entry.get("id", "")))
            item = parse_line_item(entry)
            if catalog_name:
                item = item.model_copy(update={"name": catalog_name})
            normalized.append(item)
        return normalized

    def build_order(
        self,
        name: Any,
        phone: Any,
        items: Any,
        address: Any = None,
    ) -> Order:
        """Validated, normalized order that is not yet stored."""
        customer_name = _required_text(name, "customer name")
        customer_phone = _required_text(phone, "customer phone")
        line_items = self.normalize_items(items)
        delivery_address = address.strip() if isinstance(address, str) else None
        total = compute_total(line_items)
        if not math.isfinite(total):
            raise InvalidOrderError("Order total is out of range")

        return Order(
            tracking_id=self._new_tracking_id(),
            customer_name=customer_name,
            customer_phone=customer_phone,
            delivery_address=delivery_address or None,
            items=line_items,
            total_amount=total,
            status=OrderStatus.PENDING,
            created_at=datetime.now(timezone.utc),
        )

    async def create_order(
        self,
        name: Any,
        phone: Any,
        items: Any,
        address: Any = None,
    ) -> Order:
        """
        Store a new order and push it to every live client.

        Returns:
            The stored order; its ``tracking_id`` goes back to the customer
        """
        order = self.build_order(name, phone, items, address)

        def append(orders: list[Order]) -> Order:
            taken = {o.tracking_id for o in orders}
            stored = order
            while stored.tracking_id in taken:
                stored = stored.model_copy(update={"tracking_id": self._new_tracking_id()})
            orders.append(stored)
            return stored

        stored = await asyncio.to_thread(self.store.update, append)
        logger.info(f"Order {stored.tracking_id} created for {stored.customer_name} (total {stored.total_amount:.2f})")

        self.channel.broadcast_new_order(stored)
        return stored

    async def list_orders(self) -> list[Order]:
        return await asyncio.to_thread(self.store.load_all)

    async def get_order(self, tracking_id: str) -> Order:
        for order in await self.list_orders():
            if order.tracking_id == tracking_id:
                return order
        raise OrderNotFoundError(tracking_id)

    async def clear_orders(self) -> None:
        """Admin reset: empty the store and tell every client."""
        await asyncio.to_thread(self.store.clear)
        self.channel.broadcast_snapshot([])
