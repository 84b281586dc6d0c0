"""
Roles and capabilities.

The login boundary hands the core a role tag; the core never sees
credentials. Every gated operation names a capability, and authorize()
checks it against the role's grant table.
"""

from __future__ import annotations

from enum import Enum
from typing import FrozenSet, Union

from .exceptions import PermissionDeniedError, ValidationError


class Role(Enum):
    """Role handed to the core by the authentication boundary."""

    ADMIN = "admin"
    """Manages inventory, refunds orders and reads analytics."""

    CASHIER = "cashier"
    """Builds carts and charges them."""

    @classmethod
    def parse(cls, value: Union["Role", str]) -> "Role":
        """
        Coerce a role tag into a Role.

        The storefront login calls the cashier role "user", so that
        spelling is accepted too.

        Raises:
            ValidationError: If the tag is not a known role
        """
        if isinstance(value, Role):
            return value
        tag = (value or "").strip().lower()
        if tag == "user":
            return cls.CASHIER
        try:
            return cls(tag)
        except ValueError:
            raise ValidationError(f"Unknown role: {value!r}", field="role") from None


class Capability(Enum):
    """Operations gated by role."""

    SELL = "sell"
    VIEW_MENU = "view_menu"
    VIEW_ORDERS = "view_orders"
    REFUND = "refund"
    MANAGE_INVENTORY = "manage_inventory"
    VIEW_ANALYTICS = "view_analytics"


_GRANTS = {
    Role.CASHIER: frozenset({
        Capability.SELL,
        Capability.VIEW_MENU,
        Capability.VIEW_ORDERS,
    }),
    Role.ADMIN: frozenset(Capability),
}


def capabilities_for(role: Union[Role, str]) -> FrozenSet[Capability]:
    """Capabilities granted to a role."""
    return _GRANTS[Role.parse(role)]


def can(role: Union[Role, str], capability: Capability) -> bool:
    return capability in capabilities_for(role)


def authorize(role: Union[Role, str], capability: Capability) -> Role:
    """
    Check that a role holds a capability.

    Returns:
        The parsed Role

    Raises:
        PermissionDeniedError: If the capability is not granted
    """
    parsed = Role.parse(role)
    if capability not in _GRANTS[parsed]:
        raise PermissionDeniedError(parsed.value, capability.value)
    return parsed
