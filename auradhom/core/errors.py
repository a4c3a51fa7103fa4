# auradhom/core/errors.py
"""
Domain errors raised by the order lifecycle.

Services raise these; `auradhom.main` maps them to HTTP responses.
"""
from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from auradhom.models.order import Order


class OrderError(Exception):
    """Base class for every order lifecycle error."""


class ValidationError(OrderError):
    """Structurally invalid input (no items, missing phone, empty reason...)."""


class DuplicateOrderError(OrderError):
    """
    An order with the same order number already exists.

    The existing record is attached so callers can recover with it.
    """

    def __init__(self, existing: Order):
        super().__init__(f"Order {existing.order_number} already exists")
        self.existing = existing


class InvalidTransitionError(OrderError):
    """Transition requested on a missing or non-pending order."""

    def __init__(self, order_id: str, current_status: str | None):
        if current_status is None:
            message = f"Order {order_id} not found"
        else:
            message = f"Order {order_id} is {current_status}, expected pending"
        super().__init__(message)
        self.order_id = order_id
        self.current_status = current_status


class PersistenceError(OrderError):
    """The backing store was unreachable or rejected the operation."""


class BackupError(OrderError):
    """Backup cache write failed. Logged by the backup service, never raised to callers."""
