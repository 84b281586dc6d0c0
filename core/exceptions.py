"""
Custom exceptions for Brew & Bean POS.

Exception Hierarchy:
    POSError (base)
    ├── ValidationError        - Bad input shape (empty name, negative price)
    ├── NotFoundError          - Unknown item, category, cart line or order
    ├── StockError             - Stock violation while building or committing a cart
    │   ├── OutOfStockError        - Item has no stock at all
    │   └── InsufficientStockError - Requested quantity exceeds stock
    ├── InvalidStateError      - Illegal transition (double refund, removing a held item)
    └── PermissionDeniedError  - Role lacks the capability for an operation

Usage:
    All errors are local and recoverable. They are raised by the services,
    surfaced to the caller, and mapped to JSON responses by the web boundary.
    No operation partially applies before raising.
"""

from typing import Optional, Dict, Any


class POSError(Exception):
    """
    Base exception for all POS errors.

    All custom exceptions inherit from this class, allowing callers to catch
    all application-specific errors with a single except clause if needed.
    """

    #: Short machine-readable name used by the web boundary.
    kind = "pos_error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize the exception.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional context for debugging
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable error body."""
        return {
            "error": self.kind,
            "message": self.message,
            "details": dict(self.details),
        }


class ValidationError(POSError):
    """
    Input failed validation.

    Raised by validated constructors and setters (empty item name,
    non-positive selling price, negative cost, unknown field, bad quantity).
    """

    kind = "validation_error"

    def __init__(self, message: str, field: Optional[str] = None, **details: Any):
        if field:
            details["field"] = field
        super().__init__(message, details)
        self.field = field


class NotFoundError(POSError):
    """An item, category, cart line or order id is unknown."""

    kind = "not_found"

    def __init__(self, entity: str, entity_id: str):
        message = f"{entity.capitalize()} not found: {entity_id}"
        super().__init__(message, {"entity": entity, "id": entity_id})
        self.entity = entity
        self.entity_id = entity_id


# =============================================================================
# STOCK ERRORS - cart building and commit
# =============================================================================

class StockError(POSError):
    """
    Base class for stock violations.

    Raised while adding to a cart (against the stock reported at that moment)
    and while committing (against the stock re-checked under lock).
    """

    kind = "stock_error"

    def __init__(
        self,
        message: str,
        item_id: str,
        requested: int,
        available: int,
        details: Optional[Dict[str, Any]] = None
    ):
        error_details = details or {}
        error_details.update({
            "item_id": item_id,
            "requested": requested,
            "available": available,
        })
        super().__init__(message, error_details)
        self.item_id = item_id
        self.requested = requested
        self.available = available


class OutOfStockError(StockError):
    """The item has no stock left."""

    kind = "out_of_stock"

    def __init__(self, item_id: str, item_name: str = "", requested: int = 1):
        label = item_name or item_id
        super().__init__(f"{label} is out of stock", item_id, requested, 0)
        self.item_name = item_name


class InsufficientStockError(StockError):
    """
    Not enough stock to cover the requested quantity.

    For a commit, this is raised for the whole cart: no line is applied.
    """

    kind = "insufficient_stock"

    def __init__(
        self,
        item_id: str,
        requested: int,
        available: int,
        item_name: str = ""
    ):
        label = item_name or item_id
        message = (
            f"Insufficient stock for {label}: "
            f"need {requested}, only {available} available"
        )
        super().__init__(message, item_id, requested, available)
        self.item_name = item_name


class InvalidStateError(POSError):
    """
    Operation is not allowed in the current state.

    Typical causes:
    - Refunding an order that is not completed
    - Removing an item that sits in an open cart
    - Deleting a category that items still reference
    """

    kind = "invalid_state"


class PermissionDeniedError(POSError):
    """The caller's role does not grant the requested capability."""

    kind = "permission_denied"

    def __init__(self, role: str, capability: str):
        message = f"Role '{role}' is not allowed to {capability.replace('_', ' ')}"
        super().__init__(message, {"role": role, "capability": capability})
        self.role = role
        self.capability = capability
