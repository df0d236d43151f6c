# Overview: Error kinds raised by the bookkeeping services.
"""
Every service failure is raised synchronously as a BookkeepingError subclass.
Routes map them to HTTP statuses; `details` carries the structured data a
client needs to render the message.
"""
from __future__ import annotations


class BookkeepingError(Exception):
    """Base class for bookkeeping failures."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NotFoundError(BookkeepingError):
    """Referenced record is absent."""


class ItemNotFoundError(NotFoundError):
    """A sale references an inventory item that does not exist."""
    def __init__(self, item_id: int):
        super().__init__("Inventory item not found", details={"inventory_item_id": item_id})
        self.item_id = item_id


class InsufficientStockError(BookkeepingError):
    """Reservation would drive current_stock below zero."""
    def __init__(self, item_name: str, available: int, requested: int):
        super().__init__(
            f"Insufficient stock for {item_name}. Available: {available}, Requested: {requested}",
            details={"item_name": item_name, "available": available, "requested": requested},
        )
        self.item_name = item_name
        self.available = available
        self.requested = requested


class StoreUnavailableError(BookkeepingError):
    """The database could not be reached or stayed locked after retries."""
