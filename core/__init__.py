"""
Core module for Brew & Bean POS.

Contains fundamental components shared by the services and the web boundary:
- exceptions: Custom exception hierarchy
- roles: Role tags and capability checks
"""

from .exceptions import (
    POSError,
    ValidationError,
    NotFoundError,
    StockError,
    OutOfStockError,
    InsufficientStockError,
    InvalidStateError,
    PermissionDeniedError,
)
from .roles import Role, Capability, authorize, can, capabilities_for

__all__ = [
    "POSError",
    "ValidationError",
    "NotFoundError",
    "StockError",
    "OutOfStockError",
    "InsufficientStockError",
    "InvalidStateError",
    "PermissionDeniedError",
    "Role",
    "Capability",
    "authorize",
    "can",
    "capabilities_for",
]
