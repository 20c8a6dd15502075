"""
Excel Order Store with Concurrency Control

The whole order collection lives in one worksheet and is always read and
written as a unit. Writers are serialized twice over:
- a process-wide mutex, so two requests in this server never interleave
  their load and save
- a FileLock on a sidecar lock file, so a second process (a script, another
  worker) cannot either

Saves go to a temporary workbook next to the real one and are moved into
place with ``os.replace``, so readers never see a half-written file.

Author: Khalil Bannouri
Version: 1.0.0
"""

import json
import logging
import os
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar

import pandas as pd
from filelock import FileLock, Timeout

from order_tracker.core.config import Settings
from order_tracker.core.exceptions import StorageError
from order_tracker.models import Order
from order_tracker.services.migrations import migrate_record, to_record
from order_tracker.services.tracking import generate_tracking_id

logger = logging.getLogger(__name__)

T = TypeVar("T")


class OrderStore:
    """Durable tracking ID -> order collection backed by an .xlsx workbook."""

    ORDER_COLUMNS = [
        "trackingId",
        "customerName",
        "customerPhone",
        "deliveryAddress",
        "items",
        "totalAmount",
        "status",
        "createdAt",
        "schemaVersion",
    ]

    def __init__(
        self,
        path: Path,
        sheet_name: str = "Orders",
        lock_path: Optional[Path] = None,
        lock_timeout: float = 30,
        quarantine_path: Optional[Path] = None,
        new_tracking_id: Callable[[], str] = generate_tracking_id,
    ):
        self.path = Path(path)
        self.sheet_name = sheet_name
        self.lock_path = Path(lock_path) if lock_path else self.path.with_name(self.path.name + ".lock")
        self.lock_timeout = lock_timeout
        self.quarantine_path = quarantine_path
        self._new_tracking_id = new_tracking_id
        self._mutex = threading.RLock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "OrderStore":
        return cls(
            path=settings.orders_path,
            sheet_name=settings.orders_sheet,
            lock_path=settings.lock_path,
            lock_timeout=settings.excel_lock_timeout,
            quarantine_path=settings.quarantine_path,
        )

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _ensure_data_dir(self) -> None:
        """Create data directory if needed."""
        if not self.path.parent.exists():
            self.path.parent.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created data directory: {self.path.parent}")

    def _file_lock(self) -> FileLock:
        self._ensure_data_dir()
        return FileLock(str(self.lock_path), timeout=self.lock_timeout)

    def _read_rows(self) -> list[dict[str, Any]]:
        if not self.path.exists():
            return []
        try:
            with pd.ExcelFile(self.path, engine="openpyxl") as workbook:
                if self.sheet_name not in workbook.sheet_names:
                    return []
                # Text only: phone numbers and IDs must not turn into floats.
                df = workbook.parse(self.sheet_name, dtype=str, keep_default_na=False)
        except Exception as e:
            logger.exception(f"Error reading {self.path}")
            raise StorageError(f"Could not read order workbook: {e}") from e
        return df.to_dict("records")

    def _quarantine(self, raw: dict[str, Any], reason: str) -> None:
        logger.warning(f"Quarantined order row ({reason}): {raw}")
        if self.quarantine_path is None:
            return
        entry = {
            "quarantined_at": datetime.now(timezone.utc).isoformat(),
            "reason": reason,
            "record": raw,
        }
        with open(self.quarantine_path, "a", encoding="utf-8") as fh:
            fh.write(json.dumps(entry, default=str) + "\n")

    def _read(self) -> list[Order]:
        """Load and migrate every row; migrated rows are written back once."""
        orders = []
        migrated = 0
        seen: set[str] = set()
        for raw in self._read_rows():
            result = migrate_record(raw, self._new_tracking_id)
            if result.quarantine_reason:
                self._quarantine(raw, result.quarantine_reason)
            order = result.order
            if order.tracking_id in seen:
                replacement = self._new_tracking_id()
                logger.warning(f"Duplicate tracking ID {order.tracking_id} re-keyed to {replacement}")
                order = order.model_copy(update={"tracking_id": replacement})
                migrated += 1
            elif result.changed:
                migrated += 1
            seen.add(order.tracking_id)
            orders.append(order)

        if migrated:
            self._write(orders)
            logger.info(f"Migrated {migrated} legacy order row(s) in {self.path}")
        return orders

    def _write(self, orders: list[Order]) -> None:
        self._ensure_data_dir()
        df = pd.DataFrame([to_record(o) for o in orders], columns=self.ORDER_COLUMNS)
        tmp_path = self.path.with_name(f".{self.path.stem}.tmp{self.path.suffix}")
        try:
            with pd.ExcelWriter(tmp_path, engine="openpyxl") as writer:
                df.to_excel(writer, sheet_name=self.sheet_name, index=False)
            os.replace(tmp_path, self.path)
        except Exception as e:
            logger.exception(f"Error writing {self.path}")
            if tmp_path.exists():
                tmp_path.unlink()
            raise StorageError(f"Could not write order workbook: {e}") from e

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def exists(self) -> bool:
        return self.path.exists()

    def load_all(self) -> list[Order]:
        """Every stored order, oldest first. Empty before the first save."""
        return self._locked(self._read)

    def save_all(self, orders: list[Order]) -> None:
        """Replace the whole stored collection."""
        def replace(current: list[Order]) -> None:
            current[:] = orders

        self.update(replace)

    def update(self, mutate: Callable[[list[Order]], T]) -> T:
        """
        Load, mutate in place, save - as one serialized step.

        If ``mutate`` raises, nothing is written and the error propagates.
        """
        def transaction() -> T:
            orders = self._read()
            result = mutate(orders)
            self._write(orders)
            return result

        return self._locked(transaction)

    def _locked(self, fn: Callable[[], T]) -> T:
        try:
            with self._mutex, self._file_lock():
                return fn()
        except Timeout as e:
            logger.error(f"Lock timeout on {self.lock_path}")
            raise StorageError(f"Lock timeout ({self.lock_timeout}s)") from e

    def append(self, order: Order) -> None:
        self.update(lambda orders: orders.append(order))

    def clear(self) -> None:
        """
        Drop every order (admin reset).

        The workbook is overwritten without being read, so this also
        replaces a workbook that can no longer be parsed.
        """
        self._locked(lambda: self._write([]))
        logger.info("All orders cleared")
