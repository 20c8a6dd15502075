"""
Core module initialization.
Exports configuration, logging utilities and the error taxonomy.
"""

from order_tracker.core.config import get_settings, setup_logging, Settings, EnvironmentMode
from order_tracker.core.exceptions import (
    OrderTrackerError,
    InvalidOrderError,
    MissingFieldError,
    InvalidStatusTransitionError,
    UnauthorizedError,
    OrderNotFoundError,
    ExportNotFoundError,
    StorageError,
)

__all__ = [
    "get_settings",
    "setup_logging",
    "Settings",
    "EnvironmentMode",
    "OrderTrackerError",
    "InvalidOrderError",
    "MissingFieldError",
    "InvalidStatusTransitionError",
    "UnauthorizedError",
    "OrderNotFoundError",
    "ExportNotFoundError",
    "StorageError",
]
