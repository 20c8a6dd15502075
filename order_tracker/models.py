"""
Order Domain Models

Pydantic models for the one entity this service manages. Field aliases are
the camelCase names the storefront, the dashboard and the workbook columns
use, so ``model_dump(by_alias=True)`` is the wire format everywhere.

Author: Khalil Bannouri
Version: 1.0.0
"""

import enum
import math
import re
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class OrderStatus(str, enum.Enum):
    """Delivery stages, in the only order an order may pass through them."""
    PENDING = "Pending"
    OUT_FOR_DELIVERY = "Out for Delivery"
    DELIVERED = "Delivered"

    @classmethod
    def parse(cls, value: Any) -> Optional["OrderStatus"]:
        """
        Match a status name regardless of case, spaces, dashes or underscores.

        ``"out_for_delivery"``, ``"OUT FOR DELIVERY"`` and ``"OutForDelivery"``
        all resolve to OUT_FOR_DELIVERY. Returns None for anything unknown.
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        key = _squash(value)
        for status in cls:
            if key in (_squash(status.value), _squash(status.name)):
                return status
        return None

    @property
    def rank(self) -> int:
        return list(OrderStatus).index(self)

    def can_advance_to(self, target: "OrderStatus") -> bool:
        """Forward moves (including skipping a stage) and no-op repeats."""
        return target.rank >= self.rank


def _squash(value: str) -> str:
    return re.sub(r"[\s_\-]+", "", value).lower()


# =============================================================================
# LENIENT COERCION
# =============================================================================

def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def coerce_quantity(value: Any) -> int:
    """Whole positive quantity; anything missing, non-numeric or below 1 is 1."""
    number = _as_number(value)
    if number is None or number < 1:
        return 1
    return int(number)


def coerce_price(value: Any) -> float:
    """Non-negative unit price; anything missing, non-numeric or negative is 0."""
    number = _as_number(value)
    if number is None or number < 0:
        return 0.0
    return number


# =============================================================================
# MODELS
# =============================================================================

class LineItem(BaseModel):
    """Single item in an order."""
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1, examples=["Gulabjamun (Box of 6)"])
    quantity: int = Field(..., ge=1, alias="qty", examples=[2])
    unit_price: float = Field(..., ge=0, alias="price", examples=[10.0])

    @property
    def line_total(self) -> float:
        return self.quantity * self.unit_price


def compute_total(items: list[LineItem]) -> float:
    """Order total: sum of quantity x unit price, rounded to paise."""
    return round(sum(item.line_total for item in items), 2)


class Order(BaseModel):
    """
    A customer order.

    ``tracking_id``, ``total_amount`` and ``created_at`` are fixed at creation;
    only ``status`` changes afterwards.
    """
    model_config = ConfigDict(populate_by_name=True)

    tracking_id: str = Field(..., min_length=1, alias="trackingId")
    customer_name: str = Field(..., alias="customerName")
    customer_phone: str = Field(..., alias="customerPhone")
    delivery_address: Optional[str] = Field(None, alias="deliveryAddress")
    items: list[LineItem] = Field(default_factory=list)
    total_amount: float = Field(..., alias="totalAmount")
    status: OrderStatus = Field(default=OrderStatus.PENDING)
    created_at: datetime = Field(..., alias="createdAt")

    def to_public(self) -> dict[str, Any]:
        """JSON-ready dict with the wire field names."""
        return self.model_dump(mode="json", by_alias=True)

    def __repr__(self) -> str:
        return f"<Order {self.tracking_id} - {self.customer_name} - {self.status.value}>"
