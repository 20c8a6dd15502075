"""
Order tracker exceptions.

Raised by the services when a request cannot be honoured. The API layer
turns every OrderTrackerError into a ``{"success": false, "error": ...}``
JSON body using the carried ``status_code``.
"""


class OrderTrackerError(Exception):
    """Base class for all errors surfaced to API callers."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidOrderError(OrderTrackerError):
    """Missing customer details or a malformed item list."""

    status_code = 400


class MissingFieldError(OrderTrackerError):
    """A status update arrived without a tracking ID or a new status."""

    status_code = 400


class InvalidStatusTransitionError(OrderTrackerError):
    """Unknown status name, or a move back through the delivery stages."""

    status_code = 400


class UnauthorizedError(OrderTrackerError):
    status_code = 403


class OrderNotFoundError(OrderTrackerError):
    """No stored order carries the requested tracking ID."""

    status_code = 404

    def __init__(self, tracking_id: str):
        super().__init__(f"Tracking ID not found: {tracking_id}")
        self.tracking_id = tracking_id


class ExportNotFoundError(OrderTrackerError):
    """The order workbook has not been created yet."""

    status_code = 404


class StorageError(OrderTrackerError):
    """The order workbook could not be read, locked or written."""

    status_code = 500
