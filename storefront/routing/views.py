"""
View Descriptors

What the router hands to the presentational client: which screen to
render with which props, and the surrounding layout (header, bottom
navigation, owner dashboard shortcut).

Also holds the two derived values the layout shows, both pure and memoized.

Version: 1.0.0
"""

import enum
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Optional

from storefront.models import CartItem
from storefront.routing.pages import Page
from storefront.services.backend.base import UserRecord


class Screen(str, enum.Enum):
    """Presentational screens the client knows how to render."""
    NONE = "none"  # render nothing this cycle, a redirect is pending
    LOADING = "loading"
    AUTH = "auth"
    RESTAURANT_LISTING = "restaurant_listing"
    CART = "cart"
    CHECKOUT = "checkout"
    ORDER_HISTORY = "order_history"
    ORDER_TRACKING = "order_tracking"
    OWNER_DASHBOARD = "owner_dashboard"


@dataclass(frozen=True)
class ScreenView:
    screen: Screen
    props: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class NavItem:
    """Bottom navigation entry."""
    key: Page
    label: str
    icon: str
    count: Optional[int] = None
    active: bool = False

    @property
    def show_badge(self) -> bool:
        return self.key == Page.CART and bool(self.count)


@dataclass(frozen=True)
class HeaderView:
    brand: str
    greeting: Optional[str] = None
    show_logout: bool = False


@dataclass(frozen=True)
class LayoutView:
    """
    Chrome around the current screen.

    Attributes:
        header: Brand plus greeting/logout once signed in; None on the dashboard
        nav_items: Bottom navigation, empty unless signed in and off the dashboard
        show_owner_button: Floating shortcut into the owner dashboard
    """
    header: Optional[HeaderView]
    nav_items: tuple[NavItem, ...] = ()
    show_owner_button: bool = False


NAV_ENTRIES = (
    (Page.PRODUCTS, "Shops", "🍔"),
    (Page.CART, "Basket", "🧺"),
    (Page.HISTORY, "Orders", "🛵"),
)


# =============================================================================
# DERIVED VALUES
# =============================================================================

@lru_cache(maxsize=128)
def cart_item_count(cart: tuple[CartItem, ...]) -> int:
    """Total number of units in the cart."""
    return sum(item.quantity for item in cart)


@lru_cache(maxsize=128)
def display_name(user: Optional[UserRecord]) -> str:
    """
    Short name for the header greeting.

    Email local part when there is an email, otherwise "User-" plus the
    first four characters of the id, otherwise "Guest".

    Example:
        >>> display_name(UserRecord(id="1234567"))
        'User-1234'
    """
    if user and user.email:
        return user.email.split("@")[0]
    if user and user.id:
        return f"User-{user.id[:4]}"
    return "Guest"
