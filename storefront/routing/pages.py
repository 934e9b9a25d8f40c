"""Route identifiers the storefront can be on."""

import enum


class Page(str, enum.Enum):
    AUTH = "auth"
    PRODUCTS = "products"
    CART = "cart"
    CHECKOUT = "checkout"
    HISTORY = "history"
    DETAILS = "details"
    OWNER_DASHBOARD = "owner-dashboard"


DEFAULT_PAGE = Page.PRODUCTS

# Pages a signed-out visitor may stay on. The owner dashboard runs its own
# sign-in flow.
PUBLIC_PAGES = frozenset({Page.AUTH, Page.OWNER_DASHBOARD})
