"""
                        Services Module

Contains the order lifecycle and live-synchronization logic.

Services:
    - store: Excel-backed order collection with file locking
    - orders: order creation and lookup
    - status: status transitions
    - live: WebSocket broadcast channel

Each service is built once from the settings and cached; the FastAPI
routes receive them through ``Depends``.
"""

import logging
from functools import lru_cache

from order_tracker.core.config import get_settings
from order_tracker.services.live import LiveUpdateChannel
from order_tracker.services.orders import OrderService
from order_tracker.services.status import StatusService
from order_tracker.services.store import OrderStore

logger = logging.getLogger(__name__)


@lru_cache()
def get_store() -> OrderStore:
    """Get the configured order store."""
    store = OrderStore.from_settings(get_settings())
    logger.info(f"Order Store: {store.path} (sheet '{store.sheet_name}')")
    return store


@lru_cache()
def get_live_channel() -> LiveUpdateChannel:
    return LiveUpdateChannel(queue_size=get_settings().live_queue_size)


@lru_cache()
def get_order_service() -> OrderService:
    return OrderService(
        store=get_store(),
        channel=get_live_channel(),
        menu_catalog=get_settings().menu_catalog,
    )


@lru_cache()
def get_status_service() -> StatusService:
    return StatusService(
        store=get_store(),
        channel=get_live_channel(),
        enforce_progression=get_settings().enforce_status_progression,
    )


def reset_services() -> None:
    """Clear the cached service instances."""
    for factory in (get_store, get_live_channel, get_order_service, get_status_service):
        factory.cache_clear()


__all__ = [
    "get_store",
    "get_live_channel",
    "get_order_service",
    "get_status_service",
    "reset_services",
    "OrderStore",
    "OrderService",
    "StatusService",
    "LiveUpdateChannel",
]
