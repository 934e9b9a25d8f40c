"""
Storefront Domain Models

Transient, in-memory records the router holds on behalf of the screens:
- Cart lines (never persisted by the storefront itself)
- A reference to the order being tracked

Restaurants, products and orders live in the hosted backend; the storefront
only keeps the fields it needs to route and render.

Version: 1.0.0
"""

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from storefront.core.constants import ORDER_STATUSES


class OrderStatus(str, enum.Enum):
    """Order status workflow, in tracking order."""
    PREPARING = ORDER_STATUSES[0]
    OUT_FOR_DELIVERY = ORDER_STATUSES[1]
    DELIVERED = ORDER_STATUSES[2]
    COMPLETED = ORDER_STATUSES[3]
    CANCELLED = ORDER_STATUSES[4]

    @property
    def is_final(self) -> bool:
        return self in (OrderStatus.COMPLETED, OrderStatus.CANCELLED)


@dataclass(frozen=True)
class CartItem:
    """
    One line of the shopping cart.

    Frozen so a cart (a tuple of items) is hashable and derived values
    can be memoized on it.

    Attributes:
        product_ref: Backend id of the product
        quantity: Number of units, at least 1
        name: Product name shown in the basket
        unit_price: Price of one unit
        restaurant_id: Backend id of the restaurant selling it
    """
    product_ref: str
    quantity: int
    name: str = ""
    unit_price: float = 0.0
    restaurant_id: Optional[str] = None

    def __post_init__(self):
        if self.quantity < 1:
            raise ValueError(f"Cart quantity must be at least 1, got {self.quantity}")

    @property
    def line_total(self) -> float:
        return round(self.quantity * self.unit_price, 2)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "product_ref": self.product_ref,
            "quantity": self.quantity,
            "name": self.name,
            "unit_price": self.unit_price,
            "restaurant_id": self.restaurant_id,
            "line_total": self.line_total,
        }


@dataclass(frozen=True)
class OrderRef:
    """Reference to a backend order selected for tracking."""
    id: str
    status: OrderStatus = OrderStatus.PREPARING
    restaurant_id: Optional[str] = None
    total_amount: Optional[float] = None
    created_at: Optional[datetime] = field(default=None, compare=False)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "status": self.status.value,
            "restaurant_id": self.restaurant_id,
            "total_amount": self.total_amount,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


def cart_total(cart: tuple[CartItem, ...]) -> float:
    """Sum of line totals, rounded to cents."""
    return round(sum(item.line_total for item in cart), 2)
