"""
Workbook Record Migration

Every row read from the order workbook passes through ``migrate_record``
exactly once, at load time, and comes out as a typed ``Order``.

Schema versions:
    1 - legacy sheet written by the first storefront: ``name``, ``phone``,
        ``address``, ``Tracking ID``, ``Order Status``, items as JSON text,
        totals sometimes missing, no ``schemaVersion`` column.
    2 - current layout (the ``Order`` wire names plus ``schemaVersion``).

Rows whose item list cannot be decoded keep their other fields, get an
empty item list, and are reported back so the store can quarantine the
raw row.

Author: Khalil Bannouri
Version: 1.0.0
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from pydantic import ValidationError

from order_tracker.models import (
    LineItem,
    Order,
    OrderStatus,
    coerce_price,
    coerce_quantity,
    compute_total,
)

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 2

LEGACY_FIELD_NAMES = {
    "Tracking ID": "trackingId",
    "Order Status": "status",
    "name": "customerName",
    "phone": "customerPhone",
    "address": "deliveryAddress",
    "timestamp": "createdAt",
}

UNNAMED_ITEM = "Unnamed Item"


@dataclass
class MigrationResult:
    """A migrated order, whether it differs from the stored row, and the
    reason the raw row needs quarantining (if it does)."""
    order: Order
    changed: bool = False
    quarantine_reason: Optional[str] = None


class MalformedItemsError(ValueError):
    pass


def _text(value: Any) -> Optional[str]:
    """Cell value as stripped text, None for blanks."""
    if value is None:
        return None
    if isinstance(value, float) and value != value:  # NaN cell
        return None
    text = str(value).strip()
    return text or None


def detect_version(raw: dict[str, Any]) -> int:
    version = _text(raw.get("schemaVersion"))
    if version is None:
        return 1
    try:
        return int(float(version))
    except ValueError:
        return 1


def upgrade_v1(raw: dict[str, Any]) -> dict[str, Any]:
    """Rename legacy column names without clobbering current ones."""
    record = dict(raw)
    for old, new in LEGACY_FIELD_NAMES.items():
        if old in record:
            value = record.pop(old)
            if _text(record.get(new)) is None:
                record[new] = value
    return record


def parse_line_item(entry: Any) -> LineItem:
    """Build a LineItem from a stored or submitted item dict."""
    if not isinstance(entry, dict):
        raise MalformedItemsError(f"item is not an object: {entry!r}")
    quantity = entry.get("qty", entry.get("quantity"))
    price = entry.get("price", entry.get("unit_price"))
    return LineItem(
        name=_text(entry.get("name")) or UNNAMED_ITEM,
        quantity=coerce_quantity(quantity),
        unit_price=coerce_price(price),
    )


def parse_items(value: Any) -> list[LineItem]:
    """Decode the items cell. Blank means no items; junk raises."""
    if isinstance(value, str):
        if _text(value) is None:
            return []
        try:
            value = json.loads(value)
        except json.JSONDecodeError as e:
            raise MalformedItemsError(f"items is not valid JSON: {e}") from e
    if value is None or (isinstance(value, float) and value != value):
        return []
    if not isinstance(value, list):
        raise MalformedItemsError(f"items is not a list: {type(value).__name__}")
    return [parse_line_item(entry) for entry in value]


def _parse_created_at(value: Any, fallback: datetime) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    else:
        text = _text(value)
        if text is None:
            return fallback
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            logger.warning(f"Unreadable createdAt {text!r}, using load time")
            return fallback
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_total(value: Any, items: list[LineItem]) -> float:
    text = _text(value)
    if text is not None:
        try:
            total = float(text)
            if total == total and total >= 0:
                return total
        except ValueError:
            pass
    return compute_total(items)


def migrate_record(
    raw: dict[str, Any],
    new_tracking_id: Callable[[], str],
    now: Optional[datetime] = None,
) -> MigrationResult:
    """
    Turn one stored row into an Order.

    Args:
        raw: Row as read from the workbook (column name -> cell value)
        new_tracking_id: Called when the row has no tracking ID
        now: Timestamp for rows missing ``createdAt``

    Returns:
        MigrationResult with the order and an optional quarantine reason
    """
    now = now or datetime.now(timezone.utc)
    version = detect_version(raw)
    record = upgrade_v1(raw) if version < 2 else dict(raw)
    changed = version < SCHEMA_VERSION

    reason = None
    try:
        items = parse_items(record.get("items"))
    except (MalformedItemsError, ValidationError) as e:
        reason = str(e)
        items = []

    tracking_id = _text(record.get("trackingId"))
    if tracking_id is None:
        tracking_id = new_tracking_id()
        changed = True
        logger.info(f"Back-filled missing tracking ID with {tracking_id}")

    status_text = _text(record.get("status"))
    status = OrderStatus.parse(status_text) if status_text else None
    if status is None:
        if status_text:
            logger.warning(f"Order {tracking_id}: unknown status {status_text!r}, reset to Pending")
        status = OrderStatus.PENDING
    if status.value != status_text:
        changed = True
    if _text(record.get("totalAmount")) is None or _text(record.get("createdAt")) is None:
        changed = True

    order = Order(
        tracking_id=tracking_id,
        customer_name=_text(record.get("customerName")) or "",
        customer_phone=_text(record.get("customerPhone")) or "",
        delivery_address=_text(record.get("deliveryAddress")),
        items=items,
        total_amount=_parse_total(record.get("totalAmount"), items),
        status=status,
        created_at=_parse_created_at(record.get("createdAt"), now),
    )
    return MigrationResult(
        order=order,
        changed=changed or reason is not None,
        quarantine_reason=reason,
    )


def to_record(order: Order) -> dict[str, Any]:
    """Order as a current-version workbook row."""
    row = order.to_public()
    row["items"] = json.dumps(row["items"])
    row["schemaVersion"] = SCHEMA_VERSION
    return row
